"""
Custom exception hierarchy for centralized error handling.
All exceptions map to appropriate HTTP status codes.
"""
from typing import Any, Dict, Optional


class AppException(Exception):
    """Base exception for all application errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to API response format."""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details,
            }
        }


class ValidationError(AppException):
    """Invalid input data."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            message=message,
            status_code=400,
            error_code="VALIDATION_ERROR",
            details=details,
        )


class AuthenticationError(AppException):
    """Request carries no caller identity."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(
            message=message,
            status_code=401,
            error_code="AUTHENTICATION_REQUIRED",
        )


class NotFoundError(AppException):
    """Resource not found."""

    def __init__(self, resource: str, identifier: str) -> None:
        super().__init__(
            message=f"{resource} not found: {identifier}",
            status_code=404,
            error_code="NOT_FOUND",
            details={"resource": resource, "identifier": identifier},
        )


class NotApplicableError(AppException):
    """Operation has no meaningful result for the given arguments."""

    def __init__(self, reason: str) -> None:
        super().__init__(
            message=reason,
            status_code=404,
            error_code="NOT_APPLICABLE",
            details={"reason": reason},
        )


class DataStoreError(AppException):
    """A query against the backing data store failed."""

    def __init__(self, operation: str, reason: str = "Unknown") -> None:
        super().__init__(
            message=f"Data store {operation} failed: {reason}",
            status_code=502,
            error_code="DATA_STORE_ERROR",
            details={"operation": operation, "reason": reason},
        )


class FeedGenerationError(AppException):
    """Feed could not be generated (social graph or taste profile missing)."""

    def __init__(self, reason: str = "Unknown error") -> None:
        super().__init__(
            message=f"Failed to generate feed: {reason}",
            status_code=500,
            error_code="FEED_GENERATION_FAILED",
            details={"reason": reason},
        )
