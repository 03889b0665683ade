from __future__ import annotations

import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from scriptdecl.bootstrap import builtin_declarations
from scriptdecl.consumer.reference_compiler import CompiledUnit, ReferenceCompiler
from scriptdecl.core.events import (
    EventBus,
    EventObserver,
    build_default_bus,
    publish_event,
    set_global_bus,
    timed_stage,
)
from scriptdecl.core.exceptions import DeclarationError, ErrorPolicy, ErrorReporter
from scriptdecl.core.logger import configure_root_logger, get_logger, push_build_id, reset_build_id
from scriptdecl.loaders.declaration_loader import load_declarations
from scriptdecl.models.build_config import BuildConfig
from scriptdecl.models.declaration import TypeDeclaration
from scriptdecl.registry.symbol_table import SymbolTable


@dataclass
class BuildResult:
    build_id: str
    build_name: str
    units: List[CompiledUnit] = field(default_factory=list)
    errors: List[DeclarationError] = field(default_factory=list)
    symbol_count: int = 0

    @property
    def status(self) -> str:
        if self.errors or any(u.status == "failed" for u in self.units):
            return "failed"
        return "success"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "build_id": self.build_id,
            "build_name": self.build_name,
            "symbol_count": self.symbol_count,
            "units": [u.to_dict() for u in self.units],
            "errors": [str(e) for e in self.errors],
        }


class BuildSession:
    """
    Runs one build: load declarations, register them, compile every unit.

    Example:
        >>> from scriptdecl.build import BuildSession
        >>> session = BuildSession(build_id="nightly-42")
        >>> result = session.run({"build_name": "feeds", "units": [...]})
        >>> result.status
        'success'
    """

    def __init__(
        self,
        build_id: Optional[str] = None,
        *,
        max_workers: Optional[int] = None,
        observers: Optional[List[EventObserver]] = None,
    ):
        """
        Args:
            build_id: Identifier for this build. A UUID is generated if omitted.
            max_workers: Overrides the config's validation worker count.
            observers: Event observers; when given, a bus is always created.
        """
        self.build_id = str(build_id) if build_id is not None else str(uuid.uuid4())
        self.max_workers = max_workers
        self.observers = observers

    def run(
        self,
        cfg: Union[Dict[str, Any], BuildConfig],
        *,
        table: Optional[SymbolTable] = None,
    ) -> BuildResult:
        """
        Execute the build described by ``cfg``.

        Args:
            cfg: Build configuration as a dict or an already-validated BuildConfig.
            table: Symbol table to register into. A fresh one is used if omitted.

        Raises:
            ValidationError: If the config dict is invalid.
            DeclarationError: On the first error when error_policy is 'fail'.
        """
        if isinstance(cfg, dict):
            cfg = BuildConfig.model_validate(cfg)

        configure_root_logger(cfg.log_level)
        log = get_logger(__name__)

        if self.observers is not None:
            bus: Optional[EventBus] = EventBus(
                build_id=self.build_id, build_name=cfg.build_name, observers=self.observers
            )
        else:
            bus = build_default_bus(build_id=self.build_id, build_name=cfg.build_name)

        token = push_build_id(self.build_id)
        set_global_bus(bus)
        publish_event(stage="build", status="started")
        try:
            result = run_build(
                build_id=self.build_id,
                cfg=cfg,
                table=table if table is not None else SymbolTable(),
                max_workers=self.max_workers or cfg.max_workers,
            )
            publish_event(
                stage="build",
                status="completed",
                counts={"units": len(result.units), "errors": len(result.errors)},
                details={"result": result.status},
            )
            log.info(f"Build '{cfg.build_name}' finished with status: {result.status}")
            return result
        except Exception as exc:
            publish_event(stage="build", status="failed", error={"code": type(exc).__name__, "message": str(exc)})
            raise
        finally:
            reset_build_id(token)
            set_global_bus(None)


def register_declarations(
    table: SymbolTable,
    declarations: Sequence[TypeDeclaration],
    reporter: ErrorReporter,
    *,
    max_workers: int = 1,
) -> int:
    """Register ``declarations`` in input order and report failures.

    With ``max_workers > 1`` member-value validation runs on a thread pool.
    Inserts stay serial so the first declaration of a name always wins.
    """

    def _validate(declaration: TypeDeclaration) -> Optional[DeclarationError]:
        try:
            declaration.resolved_members()
        except DeclarationError as err:
            return err
        return None

    def _register(declaration: TypeDeclaration) -> Optional[DeclarationError]:
        try:
            table.register(declaration)
        except DeclarationError as err:
            return err
        return None

    if max_workers > 1 and len(declarations) > 1:
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="scriptdecl-validate") as pool:
            failures = list(pool.map(_validate, declarations))
    else:
        failures = [None] * len(declarations)

    outcomes = [
        failure if failure is not None else _register(declaration)
        for declaration, failure in zip(declarations, failures)
    ]

    registered = 0
    for outcome in outcomes:
        if outcome is None:
            registered += 1
        else:
            reporter.report(outcome)
    return registered


def run_build(
    build_id: str,
    cfg: BuildConfig,
    *,
    table: SymbolTable,
    max_workers: int = 1,
) -> BuildResult:
    log = get_logger(__name__)
    log.info(f"Build '{cfg.build_name}' started with build_id={build_id}")

    reporter = ErrorReporter(policy=ErrorPolicy(cfg.error_policy), logger=log)
    result = BuildResult(build_id=build_id, build_name=cfg.build_name)

    with timed_stage("declarations.load", details={"paths": list(cfg.declaration_paths)}):
        declarations: List[TypeDeclaration] = []
        if cfg.include_builtin:
            declarations.extend(builtin_declarations())
        for path in cfg.declaration_paths:
            declarations.extend(load_declarations(path))
    log.info(f"Loaded {len(declarations)} declaration(s)")

    with timed_stage("declarations.register", details={"max_workers": max_workers}):
        registered = register_declarations(table, declarations, reporter, max_workers=max_workers)
    log.info(f"Registered {registered} of {len(declarations)} declaration(s)")
    # Registration failures belong to the build, not to a unit
    result.errors.extend(reporter.errors)

    compiler = ReferenceCompiler(table, reporter)
    for unit in cfg.units:
        with timed_stage("unit.compile", details={"unit": unit.name}):
            compiled = compiler.compile_unit(unit)
        result.units.append(compiled)

    result.symbol_count = len(table)
    return result
