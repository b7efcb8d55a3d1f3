"""
Failure classification for the API boundary.

The collection core never raises: bad links and bad numeric input degrade
to dropped tokens or None values. Failures only exist at the edges, where
a catalog cannot be loaded or a request is missing what it needs.
Those edges raise KnownError, which the API turns into a FailureDetail
body with a matching HTTP status.
"""

from enum import Enum

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Input validation failures
    MISSING_REQUIRED = "missing_required"

    # Catalog data failures
    VALIDATION_FAILED = "validation_failed"

    # Service failures
    SERVICE_UNAVAILABLE = "service_unavailable"


class FailureDetail(BaseModel):
    """Detailed information about a failure."""

    kind: FailureKind = Field(
        ...,
        description="Classification of the failure",
    )
    message: str = Field(
        ...,
        description="User-appropriate explanation of what went wrong",
    )
    detail: str | None = Field(
        default=None,
        description="Additional technical detail (optional)",
    )
    suggestion: str | None = Field(
        default=None,
        description="Suggested action for the user",
    )


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
        status_code: int = 400,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.suggestion = suggestion
        self.status_code = status_code
        super().__init__(message)

    def to_detail(self) -> FailureDetail:
        """Convert to a FailureDetail response body."""
        return FailureDetail(
            kind=self.kind,
            message=self.message,
            detail=self.detail,
            suggestion=self.suggestion,
        )


class CatalogError(KnownError):
    """
    Raised when the pet catalog cannot be loaded.

    Covers missing files, unparseable JSON, invalid records and
    duplicate ids or codes. Without a catalog no link can be decoded,
    so this maps to 503.
    """

    def __init__(
        self,
        message: str,
        detail: str | None = None,
        kind: FailureKind = FailureKind.SERVICE_UNAVAILABLE,
    ):
        super().__init__(
            kind=kind,
            message=message,
            detail=detail,
            suggestion="Check the catalog files or run `python -m petshelf.jobs.download_catalog`.",
            status_code=503,
        )
