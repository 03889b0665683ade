from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from scriptdecl.core.exceptions import DeclarationError, ErrorReporter, NotFlagsEnumError, UnknownMemberError
from scriptdecl.core.logger import get_logger
from scriptdecl.core.projection import combine_flags, encode_member, projected_name
from scriptdecl.models.build_config import SymbolReference, UnitConfig
from scriptdecl.models.declaration import ExternalOrigin, LocalOrigin, TypeDeclaration
from scriptdecl.registry.symbol_table import SymbolTable

logger = get_logger(__name__)


@dataclass
class CompiledUnit:
    name: str
    # One target-language expression per successfully compiled reference
    expressions: List[str] = field(default_factory=list)
    # qualified name -> projected name, for imported symbols (nothing emitted)
    cross_references: Dict[str, str] = field(default_factory=dict)
    # qualified name -> emitted definition, for local symbols
    definitions: Dict[str, str] = field(default_factory=dict)
    errors: List[DeclarationError] = field(default_factory=list)

    @property
    def status(self) -> str:
        return "failed" if self.errors else "success"

    def to_dict(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "status": self.status,
            "expressions": list(self.expressions),
            "cross_references": dict(self.cross_references),
            "definitions": dict(self.definitions),
            "errors": [str(e) for e in self.errors],
        }


class ReferenceCompiler:
    """Turns symbol references into target-language expressions.

    Every reference is resolved through the symbol table first. Imported
    declarations only ever contribute a projected name; local declarations
    additionally get their definition emitted once per unit.
    """

    def __init__(self, table: SymbolTable, reporter: Optional[ErrorReporter] = None):
        self.table = table
        self.reporter = reporter or ErrorReporter()

    def compile_type_reference(self, qualified_name: str) -> str:
        return projected_name(self.table.resolve(qualified_name))

    def compile_member_reference(self, qualified_name: str, member: str) -> str:
        declaration = self.table.resolve(qualified_name)
        if declaration.is_numeric:
            return str(encode_member(declaration, member))
        return f"{projected_name(declaration)}.{self._member_script_name(declaration, member)}"

    def compile_flags(self, qualified_name: str, members: Iterable[str]) -> str:
        declaration = self.table.resolve(qualified_name)
        members = list(members)
        if declaration.is_numeric:
            return str(combine_flags(declaration, members))
        if not declaration.flags:
            raise NotFlagsEnumError(
                "Enum is not marked flags",
                qualified_name=declaration.qualified_name,
                details={"members": members},
            )
        if not members:
            return "0"
        return " | ".join(self.compile_member_reference(qualified_name, m) for m in members)

    def compile_reference(self, reference: SymbolReference) -> str:
        if reference.members is not None:
            return self.compile_flags(reference.symbol, reference.members)
        if reference.member is not None:
            return self.compile_member_reference(reference.symbol, reference.member)
        return self.compile_type_reference(reference.symbol)

    def compile_unit(self, unit: UnitConfig) -> CompiledUnit:
        """Compile every reference of ``unit``.

        A reference that fails is recorded on the unit and handed to the
        error reporter; the remaining references are still compiled so every
        offending symbol is listed. Under ErrorPolicy.FAIL the reporter
        raises at the first error.
        """
        result = CompiledUnit(name=unit.name)
        for reference in unit.references:
            try:
                declaration = self.table.resolve(reference.symbol)
                expression = self.compile_reference(reference)
            except DeclarationError as err:
                result.errors.append(err)
                self.reporter.report(err)
                continue

            result.expressions.append(expression)
            self._record_symbol(result, declaration)

        logger.info(
            f"Compiled unit {unit.name!r}: status={result.status}, "
            f"references={len(unit.references)}, errors={len(result.errors)}"
        )
        return result

    def _record_symbol(self, result: CompiledUnit, declaration: TypeDeclaration) -> None:
        key = declaration.qualified_name
        origin = declaration.origin
        if isinstance(origin, ExternalOrigin):
            result.cross_references[key] = projected_name(declaration)
        elif isinstance(origin, LocalOrigin):
            if key not in result.definitions:
                result.definitions[key] = self._definition_source(declaration, origin)
        else:
            raise TypeError(f"Unsupported declaration origin: {origin!r}")

    @staticmethod
    def _definition_source(declaration: TypeDeclaration, origin: LocalOrigin) -> str:
        if origin.body is not None:
            return origin.body
        name = projected_name(declaration)
        if declaration.kind == "enum":
            members = ", ".join(f"{m.script_name}: {m.value}" for m in declaration.resolved_members())
            return f"{name} = {{{members}}};"
        return f"{name} = {{}};"

    @staticmethod
    def _member_script_name(declaration: TypeDeclaration, member: str) -> str:
        found = declaration.member(member)
        if found is None:
            raise UnknownMemberError(
                "No such member",
                qualified_name=declaration.qualified_name,
                member=member,
            )
        return found.script_name
