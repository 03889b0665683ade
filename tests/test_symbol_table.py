import threading

import pytest

from scriptdecl.core.exceptions import DuplicateSymbolError, InvalidMemberValueError, UnknownSymbolError
from scriptdecl.core.projection import projected_name
from scriptdecl.models.declaration import TypeDeclaration
from scriptdecl.registry.symbol_table import SymbolTable


def _decl(name="FeedXmlIncludeFlags", namespace="System.Windows.Feeds", **kwargs):
    data = {"name": name, "namespace": namespace, "kind": "enum"}
    data.update(kwargs)
    return TypeDeclaration.model_validate(data)


def test_register_and_resolve_round_trip():
    table = SymbolTable()
    decl = _decl(tags=["imported"])

    table.register(decl)

    assert table.resolve("System.Windows.Feeds.FeedXmlIncludeFlags") is decl
    assert table.try_resolve("System.Windows.Feeds.FeedXmlIncludeFlags") is decl
    assert "System.Windows.Feeds.FeedXmlIncludeFlags" in table
    assert len(table) == 1


def test_resolve_by_projected_name_returns_registered_declaration():
    table = SymbolTable()
    flat = _decl(tags=["imported", "ignore_namespace"])
    qualified = _decl(name="FeedItem", kind="class", tags=["imported"])
    table.register_all([flat, qualified])

    for decl in (flat, qualified):
        assert table.resolve_projected(projected_name(decl)) is decl


def test_resolve_missing_raises_unknown_symbol():
    table = SymbolTable()

    with pytest.raises(UnknownSymbolError, match="No symbol registered: System.Windows.Feeds.Missing"):
        table.resolve("System.Windows.Feeds.Missing")

    assert table.try_resolve("System.Windows.Feeds.Missing") is None

    with pytest.raises(UnknownSymbolError):
        table.resolve_projected("Missing")


def test_duplicate_registration_keeps_first():
    table = SymbolTable()
    first = _decl(tags=["imported"], members=[{"name": "None", "value": 0}])
    second = _decl(tags=["imported"], members=[{"name": "Other", "value": 0}])

    table.register(first)
    with pytest.raises(DuplicateSymbolError, match="already registered"):
        table.register(second)

    assert table.resolve(first.qualified_name) is first
    assert len(table) == 1


def test_colliding_projected_names_are_duplicates():
    table = SymbolTable()
    table.register(_decl(tags=["imported", "ignore_namespace"]))

    with pytest.raises(DuplicateSymbolError, match="Projected name already used") as exc:
        table.register(_decl(namespace="System.Other", tags=["imported", "ignore_namespace"]))

    assert exc.value.details["registered_by"] == "System.Windows.Feeds.FeedXmlIncludeFlags"
    assert table.names() == ["System.Windows.Feeds.FeedXmlIncludeFlags"]


def test_invalid_member_values_are_not_registered():
    table = SymbolTable()
    bad = _decl(members=[{"name": "A", "value": 1}, {"name": "B", "value": 1}])

    with pytest.raises(InvalidMemberValueError):
        table.register(bad)

    assert bad.qualified_name not in table


def test_constructor_registers_initial_declarations():
    a = _decl(name="A")
    b = _decl(name="B")
    table = SymbolTable([a, b])

    assert table.names() == ["System.Windows.Feeds.A", "System.Windows.Feeds.B"]
    assert list(table) == [a, b]


def test_concurrent_registration_admits_exactly_one():
    table = SymbolTable()
    decl = _decl(tags=["imported"])
    outcomes = []
    lock = threading.Lock()
    barrier = threading.Barrier(8)

    def worker():
        barrier.wait()
        try:
            table.register(decl)
            result = "ok"
        except DuplicateSymbolError:
            result = "dup"
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert outcomes.count("ok") == 1
    assert outcomes.count("dup") == 7
    assert len(table) == 1
