"""
Error handling module for the product search pipeline.

Provides the error taxonomy, user-facing classification and retry logic.
"""

from .error_handler import ErrorHandler, RetryConfig
from .errors import (
    USER_MESSAGES,
    CountryNotSupportedError,
    CurationError,
    CurationFailedError,
    CurationParseError,
    CurationTimeoutError,
    ErrorCategory,
    InvalidTransitionError,
    JobNotFoundError,
    QueryValidationError,
    SearchProviderError,
    ValetError,
    classify_error,
    user_message_for,
)

__all__ = [
    'ErrorHandler',
    'RetryConfig',
    'USER_MESSAGES',
    'CountryNotSupportedError',
    'CurationError',
    'CurationFailedError',
    'CurationParseError',
    'CurationTimeoutError',
    'ErrorCategory',
    'InvalidTransitionError',
    'JobNotFoundError',
    'QueryValidationError',
    'SearchProviderError',
    'ValetError',
    'classify_error',
    'user_message_for',
]
