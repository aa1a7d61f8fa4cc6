"""
Custom exceptions for the ingestion pipeline with structured error context.

Each exception carries a context dictionary so that the runner can turn it
into a RunReport entry (and a log line) without losing detail.

Exception Hierarchy:
    IngestionError (base)
    ├── ConfigurationError
    ├── FetchError            (kind: timeout | http_status | network)
    ├── ExtractionError
    └── PersistenceError
        └── UnresolvedSpeakerError

Only ConfigurationError escapes IngestionRunner.run_ingestion(); everything
else is caught per item and recorded in the run report.
"""

from typing import Optional, Dict, Any, Tuple
from datetime import datetime, timezone
import enum


class IngestionError(Exception):
    """
    Base exception for all ingestion errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (source, data type, url, ...)
        original_exception: The original exception that was caught (if any)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc)

        self.context["error_timestamp"] = self.timestamp.isoformat()

        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    @property
    def error_kind(self) -> str:
        """Short label used in run reports."""
        return self.__class__.__name__

    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/storage."""
        return {
            "error_type": self.__class__.__name__,
            "error_kind": self.error_kind,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Configuration Errors
# ============================================================================

class ConfigurationError(IngestionError):
    """
    Raised for an invalid source catalog or run filter.

    Fatal only to the single run_ingestion() call, and raised before any
    network activity.
    """
    pass


# ============================================================================
# Fetch Errors
# ============================================================================

class FetchErrorKind(str, enum.Enum):
    """Why a fetch gave up"""
    TIMEOUT = "timeout"
    HTTP_STATUS = "http_status"
    NETWORK = "network"


class FetchError(IngestionError):
    """
    Raised when an endpoint could not be retrieved after all attempts.

    Context includes:
        - url: The absolute address that failed
        - source_name / data_type: What was being fetched
        - status_code: Last HTTP status (HTTP_STATUS only)
        - attempts: Number of attempts made
    """

    def __init__(
        self,
        message: str,
        kind: FetchErrorKind,
        attempts: int,
        url: str,
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        context = dict(context or {})
        context.update({"url": url, "kind": kind.value, "attempts": attempts})
        if status_code is not None:
            context["status_code"] = status_code
        super().__init__(message, context, original_exception)
        self.kind = kind
        self.attempts = attempts
        self.url = url
        self.status_code = status_code

    @property
    def error_kind(self) -> str:
        return f"FetchError.{self.kind.value}"


# ============================================================================
# Extraction Errors
# ============================================================================

class ExtractionError(IngestionError):
    """
    Unexpected failure while extracting or normalizing one document.

    An empty result is NOT an error; this is only used when parsing code
    itself blows up on a document.
    """
    pass


# ============================================================================
# Persistence Errors
# ============================================================================

class PersistenceError(IngestionError):
    """
    Raised when a single record could not be written.

    Context includes:
        - entity_kind: Kind of record (politicians, bills, ...)
        - natural_key: The record's natural key
    """

    def __init__(
        self,
        message: str,
        natural_key: Tuple[Any, ...] = (),
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        context = dict(context or {})
        context["natural_key"] = natural_key
        super().__init__(message, context, original_exception)
        self.natural_key = natural_key


class UnresolvedSpeakerError(PersistenceError):
    """A statement whose speaker matches no known politician; the statement is dropped."""
    pass
