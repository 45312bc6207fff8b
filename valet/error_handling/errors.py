"""
Error taxonomy for the product search pipeline.

Every error raised across a stage boundary carries a user-facing message. The
job orchestrator records that message on the failed job; internal detail only
goes to the logs.
"""

import asyncio
from enum import Enum
from typing import Iterable, Optional

import anthropic


class ErrorCategory(str, Enum):
    """User-facing error categories"""
    VALIDATION = "validation"
    COUNTRY = "country"
    QUOTA = "quota"
    TIMEOUT = "timeout"
    AUTHENTICATION = "authentication"
    PARSE = "parse"
    GENERIC = "generic"


USER_MESSAGES = {
    ErrorCategory.VALIDATION: "Paramètres de recherche invalides.",
    ErrorCategory.COUNTRY: "Ce pays n'est pas pris en charge pour la recherche.",
    ErrorCategory.QUOTA: "Quota du service de recherche dépassé. Veuillez réessayer plus tard.",
    ErrorCategory.TIMEOUT: "La recherche a pris trop de temps. Veuillez réessayer.",
    ErrorCategory.AUTHENTICATION: "Le service de recherche est mal configuré (authentification refusée).",
    ErrorCategory.PARSE: "La réponse du service d'analyse est illisible.",
    ErrorCategory.GENERIC: "Une erreur est survenue pendant la recherche.",
}


class ValetError(Exception):
    """Base class for errors with a user-facing message."""

    category = ErrorCategory.GENERIC

    def __init__(self, message: str, user_message: Optional[str] = None):
        super().__init__(message)
        self.user_message = user_message or USER_MESSAGES[self.category]


class QueryValidationError(ValetError):
    """Raised when the search request itself is invalid."""

    category = ErrorCategory.VALIDATION

    def __init__(self, message: str):
        super().__init__(message, user_message=message)


class CountryNotSupportedError(ValetError):
    """Raised when the country has no shopping search support."""

    category = ErrorCategory.COUNTRY

    def __init__(self, country: str, supported: Iterable[str]):
        self.country = country
        self.supported = sorted(supported)
        user_message = (
            f"Le pays '{country}' n'est pas pris en charge. "
            f"Pays supportés : {', '.join(self.supported)}"
        )
        super().__init__(f"Country not supported: {country}", user_message=user_message)


class SearchProviderError(ValetError):
    """Raised when the search provider fails or answers with an error status."""

    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        if status in (401, 403):
            self.category = ErrorCategory.AUTHENTICATION
        elif status == 429:
            self.category = ErrorCategory.QUOTA
        super().__init__(message)


class CurationError(ValetError):
    """Base class for curation stage failures."""


class CurationParseError(CurationError):
    """The model output could not be turned into a product list."""

    category = ErrorCategory.PARSE


class CurationTimeoutError(CurationError):
    """The deep research task did not finish within its ceiling."""

    category = ErrorCategory.TIMEOUT


class CurationFailedError(CurationError):
    """The deep research task ended as failed or cancelled."""

    def __init__(self, message: str, category: ErrorCategory = ErrorCategory.GENERIC):
        self.category = category
        super().__init__(message)


class InvalidTransitionError(ValetError):
    """Raised on a job state transition the state machine does not allow."""


class JobNotFoundError(ValetError):
    """Raised when a job does not exist or belongs to another user."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job {job_id} not found", user_message="Recherche introuvable")


def classify_error(error: BaseException) -> ErrorCategory:
    """
    Map an exception raised by a pipeline stage to a user-facing category.

    Provider SDK errors are classified by type; quota problems reported as
    billing errors by the LLM provider are detected from the message.
    """
    if isinstance(error, ValetError):
        return error.category

    if isinstance(error, anthropic.RateLimitError):
        return ErrorCategory.QUOTA
    if isinstance(error, (anthropic.AuthenticationError, anthropic.PermissionDeniedError)):
        return ErrorCategory.AUTHENTICATION
    if isinstance(error, (anthropic.APITimeoutError, asyncio.TimeoutError, TimeoutError)):
        return ErrorCategory.TIMEOUT

    text = str(error).lower()
    if "credit balance" in text or "quota" in text or "rate limit" in text:
        return ErrorCategory.QUOTA

    return ErrorCategory.GENERIC


def user_message_for(error: BaseException) -> str:
    """Human-readable message for any pipeline error."""
    if isinstance(error, ValetError):
        return error.user_message
    return USER_MESSAGES[classify_error(error)]
