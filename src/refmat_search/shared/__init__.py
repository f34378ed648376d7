"""
Shared kernel for refmat-search.

Provides:
- Unified exception hierarchy
- Async utilities for parallel upstream calls
"""

from .async_utils import (
    CircuitBreaker,
    batch_process,
    gather_with_errors,
)
from .exceptions import (
    ConfigurationError,
    ErrorCategory,
    ErrorContext,
    ErrorSeverity,
    InconsistentStateError,
    InvalidParameterError,
    InvalidQueryError,
    NetworkError,
    NotFoundError,
    ParseError,
    RateLimitError,
    RefMatSearchError,
    ServiceUnavailableError,
    UpstreamError,
    ValidationError,
    is_retryable_error,
)

__all__ = [
    # Exceptions
    "RefMatSearchError",
    "ErrorContext",
    "ErrorSeverity",
    "ErrorCategory",
    "UpstreamError",
    "RateLimitError",
    "NetworkError",
    "ServiceUnavailableError",
    "ParseError",
    "ValidationError",
    "InvalidQueryError",
    "InvalidParameterError",
    "NotFoundError",
    "InconsistentStateError",
    "ConfigurationError",
    "is_retryable_error",
    # Async utilities
    "gather_with_errors",
    "batch_process",
    "CircuitBreaker",
]
