"""
Custom exception classes for the scriptdecl toolchain.

Every failure here is a build-time classification of malformed declaration
data. Errors carry the offending qualified name (and member, where one is
involved) so they can be surfaced to whoever started the build.
"""

from enum import Enum
from typing import Any, Callable, Dict, List, Optional


class ScriptDeclException(Exception):
    """Base exception class for all scriptdecl exceptions."""

    pass


class DeclarationError(ScriptDeclException):
    """
    Raised when a declaration cannot be registered, resolved or encoded.

    Example:
        >>> raise DuplicateSymbolError(
        ...     reason="Symbol already registered",
        ...     qualified_name="System.Windows.Feeds.FeedXmlIncludeFlags",
        ... )
    """

    def __init__(
        self,
        reason: str,
        *,
        qualified_name: str,
        member: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.reason = reason
        self.qualified_name = qualified_name
        self.member = member
        self.details = details or {}
        message = f"{reason}: {qualified_name}"
        if member is not None:
            message += f".{member}"
        if self.details:
            message += f" - {self.details}"
        super().__init__(message)


class DuplicateSymbolError(DeclarationError):
    """Raised when a qualified (or projected) name is already taken."""

    pass


class UnknownSymbolError(DeclarationError):
    """Raised when resolving a name that was never registered."""

    pass


class InvalidMemberValueError(DeclarationError):
    """Raised when an enumeration member's integer value cannot be determined."""

    pass


class NotNumericEncodableError(DeclarationError):
    """Raised when encoding a member of a declaration not tagged numeric_values."""

    pass


class UnknownMemberError(DeclarationError):
    """Raised when a member name does not exist on the declaration."""

    pass


class NotFlagsEnumError(DeclarationError):
    """Raised when OR-combining members of an enum not marked as flags."""

    pass


class BuildError(ScriptDeclException):
    """Raised when a build finishes with one or more failed units."""

    def __init__(self, reason: str, errors: Optional[List[DeclarationError]] = None):
        self.reason = reason
        self.errors = list(errors or [])
        message = reason
        if self.errors:
            message += f" ({len(self.errors)} error(s): " + "; ".join(str(e) for e in self.errors) + ")"
        super().__init__(message)


class ErrorPolicy(Enum):
    """Policy for handling declaration errors during a build."""

    FAIL = "fail"          # Raise at the first error
    COLLECT = "collect"    # Record the error and keep going with other units


class ErrorReporter:
    """
    Handles declaration errors based on configured policy.

    Usage:
        >>> reporter = ErrorReporter(policy=ErrorPolicy.FAIL)
        >>> reporter.report(err)
        # Raises err

        >>> reporter = ErrorReporter(policy=ErrorPolicy.COLLECT, logger=log)
        >>> reporter.report(err)
        # Logs the error, keeps it in reporter.errors
    """

    def __init__(
        self,
        policy: ErrorPolicy = ErrorPolicy.COLLECT,
        logger: Optional[Any] = None,
        custom_handler: Optional[Callable[[DeclarationError], None]] = None,
    ):
        """
        Initialize the reporter.

        Args:
            policy: How to handle errors (FAIL, COLLECT)
            logger: Logger instance used to record collected errors
            custom_handler: Called for every reported error before the policy applies
        """
        self.policy = policy
        self.logger = logger
        self.custom_handler = custom_handler
        self.errors: List[DeclarationError] = []

    def report(self, error: DeclarationError) -> None:
        """
        Record an error, raising it if the policy is FAIL.

        Raises:
            DeclarationError: If policy is FAIL
        """
        self.errors.append(error)

        if self.custom_handler:
            self.custom_handler(error)

        if self.policy == ErrorPolicy.FAIL:
            raise error

        if self.logger:
            self.logger.error(f"{type(error).__name__}: {error}")

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)
