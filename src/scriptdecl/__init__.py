"""scriptdecl.

Declarations of externally-hosted API surfaces for script code generation.

A declaration marks a type as imported (no definition is emitted), records
how its name is projected into generated output, and, for enumerations
tagged numeric_values, how members are encoded as plain integers.

Public API for build tooling.
"""

from scriptdecl.build import BuildResult, BuildSession
from scriptdecl.core.projection import combine_flags, encode_member, projected_name
from scriptdecl.models.declaration import DeclarationTag, EnumMember, TypeDeclaration
from scriptdecl.registry.symbol_table import SymbolTable

__version__ = "0.1.0"

__all__ = [
    "BuildResult",
    "BuildSession",
    "DeclarationTag",
    "EnumMember",
    "SymbolTable",
    "TypeDeclaration",
    "combine_flags",
    "encode_member",
    "projected_name",
]
