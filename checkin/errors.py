"""
errors.py - Error Taxonomy
===========================
Exceptions raised inside the check-in core, plus the conversion to the
ErrorResult value the UI layer renders.

- NotFoundError        : the Scan-ID export file does not exist
- EmptyDataError       : the export has no data rows
- InvalidQueryError    : a member search was asked for with no criteria
- InvalidArgumentError : a required argument (e.g. member id) is blank
- TransportError       : a Wix call failed (network, auth, bad response)

"Nothing found" is not an error: it is a successful result with no candidates.
"""

from .models import ErrorResult


class CheckinError(Exception):
    """Base class for all check-in errors."""

    def to_result(self) -> ErrorResult:
        """Convert to the ErrorResult rendered by the front end."""
        return ErrorResult(error=str(self), kind=type(self).__name__)


class NotFoundError(CheckinError):
    """The Scan-ID export file does not exist."""


class EmptyDataError(CheckinError):
    """The export has a header but no data rows."""


class InvalidQueryError(CheckinError):
    """A member search with no name and no date of birth."""


class InvalidArgumentError(CheckinError):
    """A required argument was blank."""


class TransportError(CheckinError):
    """
    A remote call failed.

    The message always carries the remote error text when one was returned,
    since the Wix API tends to change field names and operators without notice.
    """

    def __init__(self, message: str, status: int = 0, body: str = "", path: str = ""):
        super().__init__(message)
        self.status = status
        self.body = body
        self.path = path

    def to_result(self) -> ErrorResult:
        return ErrorResult(
            error=str(self),
            kind=type(self).__name__,
            details={"status": self.status, "path": self.path, "body": self.body},
        )
