from __future__ import annotations

from typing import Iterable

from scriptdecl.core.exceptions import NotFlagsEnumError, NotNumericEncodableError, UnknownMemberError
from scriptdecl.models.declaration import TypeDeclaration


def projected_name(declaration: TypeDeclaration) -> str:
    """Name the generated output must use when referencing ``declaration``.

    With ``ignore_namespace`` the bare identifier is returned; otherwise the
    identifier is qualified by the declared namespace. ``script_name``
    replaces the bare identifier in both cases.
    """
    identifier = declaration.script_name or declaration.name
    if declaration.flattens_namespace or not declaration.namespace:
        return identifier
    return f"{declaration.namespace}.{identifier}"


def encode_member(declaration: TypeDeclaration, member_name: str) -> int:
    """Return the integer value of ``member_name`` exactly as declared.

    Raises:
        NotNumericEncodableError: if the declaration is not a numeric_values enum.
        UnknownMemberError: if the enum has no such member.
    """
    if not declaration.is_numeric:
        raise NotNumericEncodableError(
            "Declaration is not tagged numeric_values",
            qualified_name=declaration.qualified_name,
            member=member_name,
            details={"kind": declaration.kind, "tags": sorted(t.value for t in declaration.tags)},
        )

    for member in declaration.resolved_members():
        if member.name == member_name:
            return member.value

    raise UnknownMemberError(
        "No such member",
        qualified_name=declaration.qualified_name,
        member=member_name,
    )


def combine_flags(declaration: TypeDeclaration, member_names: Iterable[str]) -> int:
    """Bitwise OR of the encoded values of ``member_names``.

    Only numeric_values enums marked ``flags`` combine. An empty selection
    combines to 0.

    Raises:
        NotNumericEncodableError: if the declaration is not a numeric_values enum.
        NotFlagsEnumError: if the enum is not marked ``flags``.
    """
    member_names = list(member_names)
    if declaration.is_numeric and not declaration.flags:
        raise NotFlagsEnumError(
            "Enum is not marked flags",
            qualified_name=declaration.qualified_name,
            details={"members": member_names},
        )
    result = 0
    for name in member_names:
        result |= encode_member(declaration, name)
    return result
