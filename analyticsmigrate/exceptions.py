"""AnalyticsMigrate Exception Hierarchy.

Exceptions raised by the export reconciliation tooling. Every exception
carries structured context so a failed run can be diagnosed from its
serialized form alone.

Exception Hierarchy:
    AnalyticsMigrateException (base)
    ├── DataException
    │   ├── ExportParseError
    │   └── MissingIdempotencyKeyError
    └── ReconciliationException
        ├── InvariantViolationError
        └── UnresolvedDuplicatesError

All exceptions include:
- error_code: Identifier derived from the class name
- context: Dictionary with error-specific details
- timestamp: When the error occurred

Example:
    >>> from analyticsmigrate.exceptions import ExportParseError
    >>> raise ExportParseError(
    ...     message="Failed to parse event",
    ...     file_path="export/2025-07-01.json",
    ...     line_number=12,
    ... )

Author: AnalyticsMigrate Team
Status: Production Ready
"""

import json
import re
from datetime import datetime
from typing import Any, Dict, List, Optional


# ==============================================================================
# Base Exception
# ==============================================================================

class AnalyticsMigrateException(Exception):
    """Base exception for all AnalyticsMigrate errors.

    Attributes:
        message: Human-readable error message
        error_code: Unique error identifier (e.g., "AM_DATA_EXPORT_PARSE_ERROR")
        context: Dictionary with error-specific details
        timestamp: When the error occurred
    """

    ERROR_PREFIX = "AM"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        """Initialize exception with rich context.

        Args:
            message: Human-readable error message
            error_code: Unique error identifier (auto-generated if not provided)
            context: Dictionary with error-specific details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self._generate_error_code()
        self.context = context or {}
        self.timestamp = datetime.now()

    def _generate_error_code(self) -> str:
        """Generate error code based on exception class.

        Returns:
            Error code like "AM_DATA_EXPORT_PARSE_ERROR"
        """
        class_name = self.__class__.__name__
        error_type = re.sub(r'(?<!^)(?=[A-Z])', '_', class_name).upper()
        return f"{self.ERROR_PREFIX}_{error_type}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def to_json(self) -> str:
        """Convert exception to JSON string."""
        return json.dumps(self.to_dict(), indent=2, default=str)

    def __str__(self) -> str:
        return f"[{self.error_code}] - {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message='{self.message}', "
            f"error_code='{self.error_code}')"
        )


# ==============================================================================
# Data Exceptions
# ==============================================================================

class DataException(AnalyticsMigrateException):
    """Base exception for export data errors."""
    ERROR_PREFIX = "AM_DATA"


class ExportParseError(DataException):
    """An export line could not be parsed into an event record.

    Example:
        >>> raise ExportParseError(
        ...     message="Failed to parse event",
        ...     file_path="/exports/day1.json",
        ...     line_number=3,
        ...     cause=ValueError("Expecting value"),
        ... )
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        file_path: Optional[str] = None,
        line_number: Optional[int] = None,
        cause: Optional[Exception] = None,
    ):
        """Initialize export parse error.

        Args:
            message: Error message
            context: Error context
            file_path: Export file that contained the bad line
            line_number: 1-based line number within the file
            cause: Original exception
        """
        context = context or {}
        if file_path:
            context["file_path"] = file_path
        if line_number is not None:
            context["line_number"] = line_number
        if cause:
            context["cause"] = str(cause)
            context["cause_type"] = type(cause).__name__
        super().__init__(message, context=context)


class MissingIdempotencyKeyError(DataException):
    """An event without an idempotency key was seen under the fail policy."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        position: Optional[int] = None,
        event_type: Optional[str] = None,
    ):
        """Initialize missing key error.

        Args:
            message: Error message
            context: Error context
            position: 0-based position of the record in the input stream
            event_type: Event type of the offending record, if any
        """
        context = context or {}
        if position is not None:
            context["position"] = position
        if event_type:
            context["event_type"] = event_type
        super().__init__(message, context=context)


# ==============================================================================
# Reconciliation Exceptions
# ==============================================================================

class ReconciliationException(AnalyticsMigrateException):
    """Base exception for duplicate reconciliation errors."""
    ERROR_PREFIX = "AM_RECON"


class InvariantViolationError(ReconciliationException):
    """A structurally impossible state was reached.

    Raised instead of guessing when the record model contradicts itself,
    e.g. two property maps reported unequal while both are absent.
    """
    pass


class UnresolvedDuplicatesError(ReconciliationException):
    """Duplicate groups need manual review before a cleaned export is written.

    Example:
        >>> raise UnresolvedDuplicatesError(
        ...     message="2 duplicate groups require manual review",
        ...     idempotency_keys=["abc", "def"],
        ...     dupe_type_counts={"UnknownPropDiff": 2},
        ... )
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        idempotency_keys: Optional[List[str]] = None,
        dupe_type_counts: Optional[Dict[str, int]] = None,
    ):
        """Initialize unresolved duplicates error.

        Args:
            message: Error message
            context: Error context
            idempotency_keys: Keys of the groups that resolved to Error
            dupe_type_counts: Count of unresolved groups per dupe type
        """
        context = context or {}
        self.idempotency_keys = list(idempotency_keys or [])
        context["idempotency_keys"] = self.idempotency_keys
        if dupe_type_counts:
            context["dupe_type_counts"] = dupe_type_counts
        super().__init__(message, context=context)


# ==============================================================================
# Exception Utilities
# ==============================================================================

def format_exception_chain(exc: Exception) -> str:
    """Format exception chain for logging/display.

    Args:
        exc: Exception to format

    Returns:
        Formatted string with full exception chain
    """
    lines = []
    current: Optional[BaseException] = exc

    while current is not None:
        if isinstance(current, AnalyticsMigrateException):
            lines.append(str(current))
            lines.append(f"  Context: {current.context}")
        else:
            lines.append(f"{type(current).__name__}: {current}")
        current = getattr(current, "__cause__", None)

    return "\n".join(lines)
