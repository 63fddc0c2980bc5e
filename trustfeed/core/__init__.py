"""Core infrastructure components."""
from .exceptions import (
    AppException,
    AuthenticationError,
    DataStoreError,
    FeedGenerationError,
    NotApplicableError,
    NotFoundError,
    ValidationError,
)
from .telemetry import get_tracer, setup_telemetry

__all__ = [
    "AppException",
    "AuthenticationError",
    "DataStoreError",
    "FeedGenerationError",
    "NotApplicableError",
    "NotFoundError",
    "ValidationError",
    "get_tracer",
    "setup_telemetry",
]
