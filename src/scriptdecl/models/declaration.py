from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Literal, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator, model_validator

from scriptdecl.core.exceptions import InvalidMemberValueError

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

DeclarationKind = Literal["enum", "class", "interface", "delegate"]


class DeclarationTag(str, Enum):
    """Closed set of tags a declaration author may attach to a type."""

    IMPORTED = "imported"                  # No local implementation; resolve externally
    IGNORE_NAMESPACE = "ignore_namespace"  # Project the bare identifier
    NUMERIC_VALUES = "numeric_values"      # Enum members are plain integers


@dataclass(frozen=True)
class ProjectionRule:
    flatten_namespace: bool = False


@dataclass(frozen=True)
class LocalOrigin:
    """The declaration is implemented here; the consumer emits a definition."""

    body: Optional[str] = None
    kind: Literal["local"] = "local"


@dataclass(frozen=True)
class ExternalOrigin:
    """The declaration exists in the host platform; only a name/value projection is emitted."""

    projection: ProjectionRule = field(default_factory=ProjectionRule)
    kind: Literal["external"] = "external"


DeclarationOrigin = Union[LocalOrigin, ExternalOrigin]


def member_script_name(name: str, attributes: Mapping[str, Any]) -> str:
    """Identifier a member is emitted as; the ``script_name`` attribute overrides ``name``."""
    return str(attributes.get("script_name", name))


@dataclass(frozen=True)
class ResolvedMember:
    name: str
    value: int
    attributes: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def script_name(self) -> str:
        return member_script_name(self.name, self.attributes)


class EnumMember(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    # Omitted -> next unused value
    value: Optional[StrictInt] = None
    # Member-level script metadata (e.g. {"script_name": "cfExtensions"})
    attributes: Mapping[str, Any] = Field(default_factory=lambda: MappingProxyType({}))

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        if not _IDENTIFIER.match(value):
            raise ValueError(f"member name {value!r} is not a valid identifier")
        return value

    @field_validator("attributes")
    @classmethod
    def _freeze_attributes(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        return MappingProxyType(dict(value))

    @property
    def script_name(self) -> str:
        return member_script_name(self.name, self.attributes)


class TypeDeclaration(BaseModel):
    """Description of one type for the code generator.

    Imported declarations have no definition of their own: every reference
    is mapped onto the external symbol named by :func:`projected_name`.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    namespace: str = ""
    kind: DeclarationKind = "enum"
    tags: FrozenSet[DeclarationTag] = frozenset()

    # Bit-flag enumeration: members are meant to be OR-combined.
    flags: bool = False
    members: Tuple[EnumMember, ...] = ()

    # Emitted source for local (non-imported) declarations.
    body: Optional[str] = None
    # Overrides the bare identifier used in generated output.
    script_name: Optional[str] = None

    @field_validator("name", "script_name")
    @classmethod
    def _validate_identifier(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not _IDENTIFIER.match(value):
            raise ValueError(f"{value!r} is not a valid identifier")
        return value

    @field_validator("namespace")
    @classmethod
    def _validate_namespace(cls, value: str) -> str:
        if value and not all(_IDENTIFIER.match(part) for part in value.split(".")):
            raise ValueError(f"namespace {value!r} must be a dotted path of identifiers")
        return value

    @model_validator(mode="after")
    def _validate_tags_against_shape(self) -> "TypeDeclaration":
        if self.kind != "enum":
            if self.members:
                raise ValueError("members are only allowed when kind is 'enum'")
            if DeclarationTag.NUMERIC_VALUES in self.tags:
                raise ValueError("numeric_values is only allowed when kind is 'enum'")
            if self.flags:
                raise ValueError("flags is only allowed when kind is 'enum'")

        if self.is_imported and self.body is not None:
            raise ValueError("imported declarations cannot carry a body")

        if self.is_numeric:
            if self.body is not None:
                raise ValueError("numeric_values declarations cannot carry a body")
            carrying = [m.name for m in self.members if m.attributes]
            if carrying:
                raise ValueError(
                    f"numeric_values declarations cannot attach data to members: {carrying}"
                )

        seen = set()
        for member in self.members:
            if member.name in seen:
                raise ValueError(f"duplicate member name {member.name!r}")
            seen.add(member.name)
        return self

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}.{self.name}" if self.namespace else self.name

    @property
    def is_imported(self) -> bool:
        return DeclarationTag.IMPORTED in self.tags

    @property
    def is_numeric(self) -> bool:
        return self.kind == "enum" and DeclarationTag.NUMERIC_VALUES in self.tags

    @property
    def flattens_namespace(self) -> bool:
        return DeclarationTag.IGNORE_NAMESPACE in self.tags

    @property
    def origin(self) -> DeclarationOrigin:
        if self.is_imported:
            return ExternalOrigin(projection=ProjectionRule(flatten_namespace=self.flattens_namespace))
        return LocalOrigin(body=self.body)

    def resolved_members(self) -> Tuple[ResolvedMember, ...]:
        """Assign implicit member values and check uniqueness.

        Explicit values are kept verbatim. An implicit member takes the value
        after the previous member (0 for the first), skipping any value
        already claimed by an explicit member.

        Raises:
            InvalidMemberValueError: if two members end up with the same value.
        """
        claimed: Dict[int, str] = {}
        for member in self.members:
            if member.value is None:
                continue
            if member.value in claimed:
                raise InvalidMemberValueError(
                    "Conflicting explicit member value",
                    qualified_name=self.qualified_name,
                    member=member.name,
                    details={"value": member.value, "conflicts_with": claimed[member.value]},
                )
            claimed[member.value] = member.name

        resolved = []
        previous: Optional[int] = None
        for member in self.members:
            if member.value is not None:
                value = member.value
            else:
                value = 0 if previous is None else previous + 1
                while value in claimed:
                    value += 1
                claimed[value] = member.name
            resolved.append(
                ResolvedMember(name=member.name, value=value, attributes=MappingProxyType(dict(member.attributes)))
            )
            previous = value
        return tuple(resolved)

    def member(self, name: str) -> Optional[EnumMember]:
        for m in self.members:
            if m.name == name:
                return m
        return None
