from __future__ import annotations

from importlib import resources
from typing import Iterable, List

from scriptdecl.core.logger import get_logger
from scriptdecl.loaders.declaration_loader import parse_declarations, read_structured_file
from scriptdecl.models.declaration import TypeDeclaration
from scriptdecl.registry.symbol_table import SymbolTable

logger = get_logger(__name__)


BUILTIN_LIBRARIES: tuple[str, ...] = (
    # Windows
    "windows/feeds.yaml",
)


def builtin_declarations(libraries: Iterable[str] = BUILTIN_LIBRARIES) -> List[TypeDeclaration]:
    """Read the declaration files shipped inside the package."""
    root = resources.files("scriptdecl") / "libraries"
    declarations: List[TypeDeclaration] = []
    for library in libraries:
        resource = root
        for part in library.split("/"):
            resource = resource / part
        with resources.as_file(resource) as path:
            declarations.extend(parse_declarations(read_structured_file(path)))
    return declarations


def load_builtin_libraries(table: SymbolTable, *, libraries: Iterable[str] = BUILTIN_LIBRARIES) -> List[TypeDeclaration]:
    """Register the packaged host-platform declarations into ``table``."""
    libraries = tuple(libraries)
    registered = table.register_all(builtin_declarations(libraries))
    logger.info(f"Registered {len(registered)} builtin declaration(s) from {len(libraries)} library file(s)")
    return registered
