from __future__ import annotations

import threading
from typing import Dict, Iterable, Iterator, List, Optional

from scriptdecl.core.exceptions import DuplicateSymbolError, UnknownSymbolError
from scriptdecl.core.logger import get_logger
from scriptdecl.core.projection import projected_name
from scriptdecl.models.declaration import TypeDeclaration

logger = get_logger(__name__)


class SymbolTable:
    """Declarations known to one build, keyed by qualified name.

    Construct one per build and pass it to every stage that needs to
    resolve symbols. Registration is insert-if-absent under a lock, so
    several workers may register concurrently.
    """

    def __init__(self, declarations: Optional[Iterable[TypeDeclaration]] = None):
        self._lock = threading.Lock()
        self._by_name: Dict[str, TypeDeclaration] = {}
        self._by_projection: Dict[str, str] = {}
        for declaration in declarations or ():
            self.register(declaration)

    def register(self, declaration: TypeDeclaration) -> TypeDeclaration:
        """Make ``declaration`` resolvable for the rest of the build.

        Raises:
            DuplicateSymbolError: qualified or projected name already taken.
            InvalidMemberValueError: member values cannot be determined.
        """
        # Validate members before taking the lock; a bad declaration never lands in the table.
        declaration.resolved_members()

        key = declaration.qualified_name
        projection = projected_name(declaration)
        with self._lock:
            if key in self._by_name:
                raise DuplicateSymbolError(
                    "Symbol already registered",
                    qualified_name=key,
                )
            owner = self._by_projection.get(projection)
            if owner is not None:
                raise DuplicateSymbolError(
                    "Projected name already used",
                    qualified_name=key,
                    details={"projected_name": projection, "registered_by": owner},
                )
            self._by_name[key] = declaration
            self._by_projection[projection] = key

        logger.debug(f"Registered {key} as {projection!r} ({declaration.origin.kind})")
        return declaration

    def register_all(self, declarations: Iterable[TypeDeclaration]) -> List[TypeDeclaration]:
        return [self.register(d) for d in declarations]

    def resolve(self, qualified_name: str) -> TypeDeclaration:
        try:
            return self._by_name[qualified_name]
        except KeyError:
            raise UnknownSymbolError("No symbol registered", qualified_name=qualified_name) from None

    def try_resolve(self, qualified_name: str) -> Optional[TypeDeclaration]:
        return self._by_name.get(qualified_name)

    def resolve_projected(self, name: str) -> TypeDeclaration:
        """Inverse of :func:`projected_name` over the registered declarations."""
        try:
            return self._by_name[self._by_projection[name]]
        except KeyError:
            raise UnknownSymbolError(
                "No symbol projects to this name", qualified_name=name
            ) from None

    def __contains__(self, qualified_name: object) -> bool:
        return qualified_name in self._by_name

    def __len__(self) -> int:
        return len(self._by_name)

    def __iter__(self) -> Iterator[TypeDeclaration]:
        return iter(list(self._by_name.values()))

    def names(self) -> List[str]:
        return sorted(self._by_name)
