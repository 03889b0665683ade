import pytest

from scriptdecl.core.exceptions import (
    BuildError,
    DeclarationError,
    DuplicateSymbolError,
    ErrorPolicy,
    ErrorReporter,
    ScriptDeclException,
    UnknownSymbolError,
)


def test_declaration_error_message_names_symbol_and_member():
    err = DeclarationError("Bad value", qualified_name="A.B", member="C", details={"value": 3})

    assert str(err) == "Bad value: A.B.C - {'value': 3}"
    assert isinstance(err, ScriptDeclException)


def test_fail_policy_raises_and_records():
    reporter = ErrorReporter(policy=ErrorPolicy.FAIL)
    err = UnknownSymbolError("No symbol registered", qualified_name="A.B")

    with pytest.raises(UnknownSymbolError):
        reporter.report(err)

    assert reporter.errors == [err]


def test_collect_policy_logs_and_keeps_going():
    logged = []

    class _Logger:
        def error(self, msg):
            logged.append(msg)

    reporter = ErrorReporter(policy=ErrorPolicy.COLLECT, logger=_Logger())
    reporter.report(DuplicateSymbolError("Symbol already registered", qualified_name="A.B"))

    assert reporter.has_errors
    assert logged == ["DuplicateSymbolError: Symbol already registered: A.B"]


def test_custom_handler_sees_every_error():
    seen = []
    reporter = ErrorReporter(custom_handler=seen.append)
    err = UnknownSymbolError("No symbol registered", qualified_name="A.B")

    reporter.report(err)

    assert seen == [err]


def test_build_error_summarises_errors():
    err = BuildError("Build 'x' failed", [UnknownSymbolError("No symbol registered", qualified_name="A.B")])

    assert "1 error(s)" in str(err)
    assert "A.B" in str(err)
