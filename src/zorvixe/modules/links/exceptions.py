"""
Link Service Exceptions

Every failure the link workflows report to callers. Each error carries a
stable ``error_code`` and the HTTP status the routers answer with.

Token failures are deliberately collapsed into ``InvalidOrExpiredLinkError``:
an unknown, deactivated and expired token all look the same to the holder.
"""

from typing import Any

from fastapi import HTTPException, status


class LinkServiceError(Exception):
    """Base exception for link workflow errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)

    def to_detail(self) -> dict[str, Any]:
        return {"error": self.error_code, "message": self.message}


class SubjectNotFoundError(LinkServiceError):
    """The client or candidate does not exist."""

    def __init__(self, subject_label: str = "subject"):
        super().__init__(
            message=f"{subject_label.capitalize()} not found",
            error_code=f"{subject_label.upper()}_NOT_FOUND",
            status_code=404,
        )


class LinkNotFoundError(LinkServiceError):
    """No non-expired link exists for the subject."""

    def __init__(self, subject_label: str = "subject"):
        super().__init__(
            message=f"No active link found for this {subject_label}",
            error_code="LINK_NOT_FOUND",
            status_code=404,
        )


class OutcomeNotFoundError(LinkServiceError):
    """A payment registration or upload record does not exist."""

    def __init__(self, message: str, error_code: str = "OUTCOME_NOT_FOUND"):
        super().__init__(message=message, error_code=error_code, status_code=404)


class InvalidOrExpiredLinkError(LinkServiceError):
    """The token is unknown, deactivated or past its expiry."""

    def __init__(self):
        super().__init__(
            message="Invalid or expired link",
            error_code="INVALID_OR_EXPIRED_LINK",
            status_code=404,
        )


class AlreadyCompletedError(LinkServiceError):
    """The subject's one completion has already been recorded."""

    def __init__(self, message: str = "This link has already been used"):
        super().__init__(
            message=message,
            error_code="ALREADY_COMPLETED",
            status_code=409,
        )


class ValidationFailedError(LinkServiceError):
    """Input failed validation. ``errors`` maps field names to messages."""

    def __init__(self, errors: dict[str, str], message: str = "Validation failed"):
        self.errors = errors
        super().__init__(
            message=message,
            error_code="VALIDATION_FAILED",
            status_code=400,
        )

    def to_detail(self) -> dict[str, Any]:
        return {**super().to_detail(), "errors": self.errors}


class StorageFailedError(LinkServiceError):
    """The database or document store failed. Details are only logged."""

    def __init__(self):
        super().__init__(
            message="Service temporarily unavailable. Please try again later.",
            error_code="STORAGE_FAILED",
            status_code=503,
        )


def to_http_exception(e: LinkServiceError) -> HTTPException:
    """Convert a service error into the HTTPException the routers raise."""
    return HTTPException(status_code=e.status_code, detail=e.to_detail())


def internal_error() -> HTTPException:
    """500 response for unexpected failures. Details stay in the server log."""
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred. Please try again later.",
        },
    )
