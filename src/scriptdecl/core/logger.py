import logging
import sys
import contextvars
from typing import Optional

# Context variable to carry the current build id across the call chain
_BUILD_ID: contextvars.ContextVar[str] = contextvars.ContextVar("build_id", default="-")


class _BuildIdFilter(logging.Filter):
    """Logging filter that injects the build_id from contextvars into the record."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        record.build_id = _BUILD_ID.get()
        return True


def _build_formatter() -> logging.Formatter:
    return logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | build=%(build_id)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def configure_root_logger(level: str = "INFO") -> None:
    """
    Configure root logger and scriptdecl-specific logger.

    Root logger stays at INFO so third-party libraries stay quiet.
    Only scriptdecl namespace logs are set to the requested level.

    Safe to call multiple times; it will not duplicate handlers.
    """
    root = logging.getLogger()

    for h in root.handlers:
        if isinstance(h, logging.StreamHandler) and any(isinstance(f, _BuildIdFilter) for f in h.filters):
            # Already configured; just update the scriptdecl logger level
            logging.getLogger("scriptdecl").setLevel(getattr(logging, level.upper(), logging.INFO))
            return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_build_formatter())
    handler.addFilter(_BuildIdFilter())
    handler.setLevel(logging.DEBUG)
    root.addHandler(handler)
    if root.level == logging.NOTSET or root.level > logging.INFO:
        root.setLevel(logging.INFO)

    logging.getLogger("scriptdecl").setLevel(getattr(logging, level.upper(), logging.INFO))


def get_logger(name: str = "scriptdecl") -> logging.Logger:
    """Get a module-specific logger; handlers live on the root logger."""
    return logging.getLogger(name)


def push_build_id(build_id: Optional[str]) -> Optional[contextvars.Token]:
    """Set the current build id in context and return a token for later reset."""
    if not build_id:
        return None
    return _BUILD_ID.set(build_id)


def reset_build_id(token: Optional[contextvars.Token]) -> None:
    """Reset the build id context using the provided token (if any)."""
    if token is None:
        return
    _BUILD_ID.reset(token)
