from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Union

from pydantic import TypeAdapter

from scriptdecl.core.logger import get_logger
from scriptdecl.models.declaration import TypeDeclaration

logger = get_logger(__name__)

_DECLARATIONS = TypeAdapter(List[TypeDeclaration])
_DOCUMENT_KEYS = frozenset({"namespace", "declarations"})


def read_structured_file(path: Union[str, Path]) -> Any:
    """Parse a JSON or YAML file by its suffix."""
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    with open(file_path, "r", encoding="utf-8") as f:
        if file_path.suffix == ".json":
            return json.load(f)
        if file_path.suffix in (".yaml", ".yml"):
            try:
                import yaml
            except ImportError:
                raise ImportError(
                    "PyYAML required for YAML files. "
                    "Install with: pip install pyyaml"
                )
            return yaml.safe_load(f)

    raise ValueError(
        f"Unsupported file format: {file_path.suffix}. "
        "Use .json or .yaml"
    )


def parse_declarations(document: Any) -> List[TypeDeclaration]:
    """Build declarations from an already-parsed document.

    The document is either a list of declarations or a mapping with a
    ``declarations`` list. A top-level ``namespace`` in the mapping is the
    default for entries that do not set their own.
    """
    if document is None:
        return []

    if isinstance(document, list):
        entries = document
        default_namespace = None
    elif isinstance(document, dict):
        unknown = sorted(set(document) - _DOCUMENT_KEYS)
        if unknown:
            raise ValueError(f"Unknown top-level keys in declaration document: {unknown}")
        if "declarations" not in document:
            raise ValueError("Declaration document mapping must have a 'declarations' list")
        entries = document["declarations"] or []
        if not isinstance(entries, list):
            raise ValueError(f"'declarations' must be a list, got {type(entries).__name__}")
        default_namespace = document.get("namespace")
    else:
        raise ValueError(f"Declaration document must be a list or mapping, got {type(document).__name__}")

    if default_namespace:
        entries = [_with_namespace(e, default_namespace) for e in entries]

    return _DECLARATIONS.validate_python(entries)


def _with_namespace(entry: Any, namespace: str) -> Any:
    if isinstance(entry, dict) and "namespace" not in entry:
        merged: Dict[str, Any] = dict(entry)
        merged["namespace"] = namespace
        return merged
    return entry


def load_declarations(path: Union[str, Path]) -> List[TypeDeclaration]:
    declarations = parse_declarations(read_structured_file(path))
    logger.info(f"Loaded {len(declarations)} declaration(s) from {path}")
    return declarations
