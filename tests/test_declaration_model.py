import pytest
from pydantic import ValidationError

from scriptdecl.core.exceptions import InvalidMemberValueError
from scriptdecl.models.declaration import (
    DeclarationTag,
    EnumMember,
    ExternalOrigin,
    LocalOrigin,
    TypeDeclaration,
)


def _enum(members, **kwargs):
    return TypeDeclaration.model_validate(
        {"name": "Sample", "namespace": "System.Tests", "kind": "enum", "members": members, **kwargs}
    )


def test_qualified_name_joins_namespace_and_name():
    decl = _enum([])
    assert decl.qualified_name == "System.Tests.Sample"

    bare = TypeDeclaration(name="Sample")
    assert bare.qualified_name == "Sample"


def test_tags_parse_from_strings():
    decl = _enum([], tags=["imported", "numeric_values"])

    assert decl.tags == frozenset({DeclarationTag.IMPORTED, DeclarationTag.NUMERIC_VALUES})
    assert decl.is_imported
    assert decl.is_numeric
    assert not decl.flattens_namespace


def test_unknown_tag_is_rejected():
    with pytest.raises(ValidationError):
        _enum([], tags=["serializable"])


def test_imported_declaration_has_external_origin():
    decl = _enum([], tags=["imported", "ignore_namespace"])

    assert isinstance(decl.origin, ExternalOrigin)
    assert decl.origin.projection.flatten_namespace is True


def test_local_declaration_has_local_origin_with_body():
    decl = TypeDeclaration(name="Helper", kind="class", body="Helper = function() {};")

    assert isinstance(decl.origin, LocalOrigin)
    assert decl.origin.body == "Helper = function() {};"


def test_explicit_values_are_kept_verbatim():
    decl = _enum([{"name": "None", "value": 0}, {"name": "CFExtensions", "value": 1}])

    assert [(m.name, m.value) for m in decl.resolved_members()] == [("None", 0), ("CFExtensions", 1)]


def test_implicit_values_continue_from_previous_member():
    decl = _enum([{"name": "A"}, {"name": "B"}, {"name": "C", "value": 10}, {"name": "D"}])

    assert [m.value for m in decl.resolved_members()] == [0, 1, 10, 11]


def test_implicit_values_skip_values_claimed_later():
    decl = _enum([{"name": "A"}, {"name": "B"}, {"name": "C", "value": 1}])

    assert [m.value for m in decl.resolved_members()] == [0, 2, 1]


def test_conflicting_explicit_values_raise_invalid_member_value():
    decl = _enum([{"name": "A", "value": 1}, {"name": "B", "value": 1}])

    with pytest.raises(InvalidMemberValueError, match="System.Tests.Sample.B") as exc:
        decl.resolved_members()

    assert exc.value.qualified_name == "System.Tests.Sample"
    assert exc.value.member == "B"


def test_member_values_must_be_integers():
    with pytest.raises(ValidationError):
        _enum([{"name": "A", "value": "1"}])

    with pytest.raises(ValidationError):
        _enum([{"name": "A", "value": True}])


def test_duplicate_member_names_are_rejected():
    with pytest.raises(ValidationError, match="duplicate member name"):
        _enum([{"name": "A", "value": 0}, {"name": "A", "value": 1}])


def test_numeric_values_only_on_enums():
    with pytest.raises(ValidationError, match="numeric_values"):
        TypeDeclaration(name="Feed", kind="class", tags=frozenset({DeclarationTag.NUMERIC_VALUES}))


def test_members_only_on_enums():
    with pytest.raises(ValidationError, match="members"):
        TypeDeclaration.model_validate({"name": "Feed", "kind": "interface", "members": [{"name": "A"}]})


def test_numeric_values_reject_member_attributes():
    with pytest.raises(ValidationError, match="cannot attach data"):
        _enum(
            [{"name": "A", "value": 0, "attributes": {"script_name": "a"}}],
            tags=["numeric_values"],
        )


def test_imported_declaration_rejects_body():
    with pytest.raises(ValidationError, match="imported"):
        TypeDeclaration(
            name="Feed",
            kind="class",
            tags=frozenset({DeclarationTag.IMPORTED}),
            body="Feed = {};",
        )


def test_invalid_identifiers_are_rejected():
    with pytest.raises(ValidationError):
        TypeDeclaration(name="Feed Flags")

    with pytest.raises(ValidationError):
        TypeDeclaration(name="Flags", namespace="System..Feeds")

    with pytest.raises(ValidationError):
        EnumMember(name="1st")


def test_declarations_are_immutable():
    decl = _enum([{"name": "A", "value": 0}])

    with pytest.raises(ValidationError):
        decl.name = "Other"


def test_member_attributes_are_immutable():
    numeric = _enum([{"name": "A", "value": 0}], tags=["imported", "numeric_values"])
    local = _enum([{"name": "A", "value": 0, "attributes": {"script_name": "a"}}])

    with pytest.raises(TypeError):
        numeric.members[0].attributes["script_name"] = "a"
    with pytest.raises(TypeError):
        local.members[0].attributes["script_name"] = "b"
    with pytest.raises(TypeError):
        local.resolved_members()[0].attributes["script_name"] = "b"

    assert dict(numeric.members[0].attributes) == {}
    assert local.members[0].script_name == "a"


def test_attributes_are_copied_from_input():
    source = {"script_name": "a"}
    member = EnumMember(name="A", attributes=source)

    source["script_name"] = "b"

    assert member.attributes["script_name"] == "a"
