"""
Gazette Collector Exception Hierarchy

Centralized exception classes for the collector.
Every failure kind is its own class so callers can branch on it
(e.g. to decide whether to try the next gazette issue candidate).
"""
from typing import Optional, Any, List


class CollectorError(Exception):
    """
    Base exception for all collector errors.

    All custom exceptions should inherit from this class
    to enable consistent error handling across the application.
    """

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        """
        Initialize CollectorError.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional error context
        """
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ConfigurationError(CollectorError):
    """
    Configuration errors.

    Raised when configuration is missing or invalid.
    """

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
        config_key: Optional[str] = None,
    ):
        super().__init__(message, details)
        self.config_key = config_key

    def __str__(self) -> str:
        base = super().__str__()
        if self.config_key:
            return f"{base} | Key: {self.config_key}"
        return base


class DatabaseError(CollectorError):
    """
    Database-related errors.

    Raised when the document store cannot be read or written.
    """

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ):
        """
        Initialize DatabaseError.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional error context
            original_error: The original exception that caused this error
        """
        super().__init__(message, details)
        self.original_error = original_error

    def __str__(self) -> str:
        """Return string representation including original error if present."""
        base = super().__str__()
        if self.original_error:
            return f"{base} | Caused by: {type(self.original_error).__name__}: {self.original_error}"
        return base


class InvalidInputError(CollectorError):
    """Raised when a text needed for a computation is missing or blank."""


# =============================================================================
# Page navigation
# =============================================================================

class NavigationError(CollectorError):
    """
    Errors raised by a page navigator.

    Carries the selector and URL involved when they are known.
    """

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
        selector: Optional[str] = None,
        url: Optional[str] = None,
    ):
        super().__init__(message, details)
        self.selector = selector
        self.url = url

    def __str__(self) -> str:
        base = super().__str__()
        parts = [base]
        if self.selector:
            parts.append(f"Selector: {self.selector}")
        if self.url:
            parts.append(f"URL: {self.url}")
        return " | ".join(parts) if len(parts) > 1 else base


class ElementNotFoundError(NavigationError):
    """A loaded page does not contain the requested element."""


class NavigationTimeoutError(NavigationError):
    """A page or element did not load in time."""


# =============================================================================
# Gazette acquisition
# =============================================================================

class GazetteError(CollectorError):
    """
    Gazette acquisition errors.

    Raised while acquiring or extracting one document from a gazette issue.
    """

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
        gazette_issue: Optional[str] = None,
        identifier: Optional[str] = None,
        url: Optional[str] = None,
    ):
        """
        Initialize GazetteError.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional error context
            gazette_issue: The gazette issue reference (e.g. "45/21")
            identifier: The bill or law identifier being acquired
            url: The document URL, when one was already found
        """
        super().__init__(message, details)
        self.gazette_issue = gazette_issue
        self.identifier = identifier
        self.url = url

    def __str__(self) -> str:
        """Return string representation including issue and identifier if present."""
        base = super().__str__()
        parts = [base]
        if self.gazette_issue:
            parts.append(f"Gazette: {self.gazette_issue}")
        if self.identifier:
            parts.append(f"Identifier: {self.identifier}")
        return " | ".join(parts) if len(parts) > 1 else base


class InvalidIssueError(GazetteError):
    """The gazette issue reference is not of the form number/year."""


class InvalidIdentifierError(GazetteError):
    """The identifier does not match the pattern of its document kind."""


class IssueNotFoundError(GazetteError):
    """The gazette archive has no row for the issue."""


class LegislationNotFoundError(IssueNotFoundError):
    """The issue exists but its table of contents has no link for the identifier."""


class NoRetrievalPathError(GazetteError):
    """The issue row offers neither a details page nor a PDF download."""


class IdentifierNotInPdfError(GazetteError):
    """
    The downloaded PDF does not contain the requested document.

    One reason is kept per identifier part that was searched for.
    """

    def __init__(self, message: str, reasons: Optional[List[str]] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.reasons = reasons or []

    def __str__(self) -> str:
        base = super().__str__()
        if self.reasons:
            return f"{base} | {' & '.join(self.reasons)}"
        return base


class DownloadTimedOutError(GazetteError):
    """Waiting for a gazette PDF download timed out. Retryable by the caller."""


class PageUnreachableError(GazetteError):
    """A gazette page never loaded (as opposed to content missing from a loaded page)."""


class BoundaryExtractionError(GazetteError):
    """The legally relevant part of a document could not be determined."""


class NoStartMarkerError(BoundaryExtractionError):
    """Neither the decree formula nor the first article was found."""


class EndBeforeStartError(BoundaryExtractionError):
    """The end marker occurs before the start marker."""


class EmptyExtractionError(BoundaryExtractionError):
    """Markers were found but nothing remained between them."""


class AcquisitionFailedError(GazetteError):
    """
    Every gazette issue candidate failed for a request.

    Keeps the per-candidate failures in preference order.
    """

    def __init__(self, message: str, failures: Optional[List[GazetteError]] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.failures = failures or []

    def __str__(self) -> str:
        base = super().__str__()
        if self.failures:
            reasons = "; ".join(
                f"({failure.gazette_issue or '?'}) {type(failure).__name__}: {failure.message}"
                for failure in self.failures
            )
            return f"{base} | {reasons}"
        return base
