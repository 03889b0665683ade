"""
Command-line interface and entry points for scriptdecl.

Provides the functions build tooling calls directly (``build``,
``validate_declarations``, ``resolve_symbol``) and the ``scriptdecl``
console script wrapping them.
"""

import argparse
import json
import sys
from typing import Any, Dict, List, Optional, Sequence

from scriptdecl.bootstrap import load_builtin_libraries
from scriptdecl.build import BuildSession
from scriptdecl.core.exceptions import BuildError
from scriptdecl.core.logger import configure_root_logger, get_logger
from scriptdecl.core.projection import encode_member, projected_name
from scriptdecl.loaders.declaration_loader import load_declarations, read_structured_file
from scriptdecl.registry.symbol_table import SymbolTable

logger = get_logger(__name__)


def build(
    config_path: Optional[str] = None,
    config_dict: Optional[Dict[str, Any]] = None,
    *,
    build_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Run a build from a config file (JSON/YAML) or a config dictionary.

    Returns:
        The build result as a JSON-serialisable dict.

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ValueError: If neither config_path nor config_dict provided
        BuildError: If any unit or declaration failed

    Example:
        >>> from scriptdecl.cli import build
        >>> result = build(config_dict={"build_name": "feeds", "units": []})
        >>> result["status"]
        'success'
    """
    if config_dict:
        config = config_dict
        logger.info("Using provided config dictionary")
    elif config_path:
        config = read_structured_file(config_path)
        logger.info(f"Loaded config from {config_path}")
    else:
        raise ValueError("Either config_path or config_dict must be provided")

    result = BuildSession(build_id=build_id).run(config)
    if result.status != "success":
        errors = list(result.errors)
        for unit in result.units:
            errors.extend(unit.errors)
        raise BuildError(f"Build '{result.build_name}' failed", errors)
    return result.to_dict()


def _load_table(paths: Sequence[str], include_builtin: bool) -> SymbolTable:
    table = SymbolTable()
    if include_builtin:
        load_builtin_libraries(table)
    for path in paths:
        table.register_all(load_declarations(path))
    return table


def validate_declarations(paths: Sequence[str], *, include_builtin: bool = True) -> List[str]:
    """
    Load and register declaration files without compiling anything.

    Returns:
        Sorted qualified names of every registered declaration

    Raises:
        DeclarationError: On the first duplicate or malformed declaration
    """
    table = _load_table(paths, include_builtin)
    logger.info(f"Declarations are valid: {len(table)} symbol(s)")
    return table.names()


def resolve_symbol(
    qualified_name: str,
    *,
    member: Optional[str] = None,
    paths: Sequence[str] = (),
    include_builtin: bool = True,
) -> Dict[str, Any]:
    """Describe how a symbol (and optionally one member) is projected."""
    table = _load_table(paths, include_builtin)
    declaration = table.resolve(qualified_name)
    info: Dict[str, Any] = {
        "qualified_name": declaration.qualified_name,
        "projected_name": projected_name(declaration),
        "origin": declaration.origin.kind,
        "tags": sorted(t.value for t in declaration.tags),
    }
    if member is not None:
        info["member"] = member
        info["value"] = encode_member(declaration, member)
    return info


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scriptdecl",
        description="Imported-symbol declarations for script code generation",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    parser.add_argument(
        "--no-builtin",
        dest="include_builtin",
        action="store_false",
        help="Do not load the packaged host-platform declarations",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    validate_parser = subparsers.add_parser("validate", help="Validate declaration files")
    validate_parser.add_argument("files", nargs="*", help="Declaration files (JSON or YAML)")

    resolve_parser = subparsers.add_parser("resolve", help="Show the projection of a symbol")
    resolve_parser.add_argument("symbol", help="Qualified name of the declaration")
    resolve_parser.add_argument("--member", "-m", help="Enum member to encode")
    resolve_parser.add_argument("--files", nargs="*", default=[], help="Extra declaration files")

    build_parser = subparsers.add_parser("build", help="Run a build configuration")
    build_parser.add_argument("config", help="Path to build configuration (JSON or YAML)")

    return parser


def cli(argv: Optional[Sequence[str]] = None) -> int:
    """
    Command-line interface for scriptdecl.

    Usage:
        scriptdecl validate libs/feeds.yaml
        scriptdecl resolve System.Windows.Feeds.FeedXmlIncludeFlags --member CFExtensions
        scriptdecl build build.yaml
    """
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_root_logger("DEBUG" if args.verbose else "INFO")

    try:
        if args.command == "validate":
            for name in validate_declarations(args.files, include_builtin=args.include_builtin):
                print(name)
            return 0

        if args.command == "resolve":
            info = resolve_symbol(
                args.symbol,
                member=args.member,
                paths=args.files,
                include_builtin=args.include_builtin,
            )
            print(json.dumps(info, indent=2))
            return 0

        if args.command == "build":
            print(json.dumps(build(config_path=args.config), indent=2))
            return 0
    except Exception as e:
        logger.error(f"{args.command} failed: {e}")
        return 1

    parser.print_help()
    return 0


def main() -> None:
    sys.exit(cli())


if __name__ == "__main__":
    main()
