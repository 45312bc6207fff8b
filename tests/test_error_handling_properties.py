"""
Property-based tests for error handling.

These tests verify the retry policy for single provider calls and the
classification of pipeline errors into user-facing messages.
"""

import pytest
import asyncio
import httpx
import anthropic
from unittest.mock import AsyncMock, patch
from hypothesis import given, settings, strategies as st

from valet.error_handling import (
    USER_MESSAGES,
    CountryNotSupportedError,
    CurationFailedError,
    CurationParseError,
    CurationTimeoutError,
    ErrorCategory,
    ErrorHandler,
    JobNotFoundError,
    RetryConfig,
    SearchProviderError,
    classify_error,
    user_message_for,
)


# Strategy for generating retry configuration values
retry_counts = st.integers(min_value=1, max_value=6)
delay_values = st.floats(min_value=0.1, max_value=10.0)
multiplier_values = st.floats(min_value=1.1, max_value=3.0)
attempt_numbers = st.integers(min_value=0, max_value=8)

_REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


def _api_error(cls, status):
    return cls("provider error", response=httpx.Response(status, request=_REQUEST), body=None)


@given(
    base_delay=delay_values,
    multiplier=multiplier_values,
    attempt=attempt_numbers
)
@settings(max_examples=100)
def test_backoff_delay_escalation(base_delay, multiplier, attempt):
    """
    **Feature: product-search, Retry backoff escalation**

    Each retry waits longer than the previous one, by the configured
    multiplier.
    """
    config = RetryConfig(base_delay_seconds=base_delay, backoff_multiplier=multiplier)

    current = config.get_backoff_delay(attempt)
    following = config.get_backoff_delay(attempt + 1)

    assert current == pytest.approx(base_delay * (multiplier ** attempt))
    assert following > current
    assert following / current == pytest.approx(multiplier)


@given(max_retries=retry_counts)
@settings(max_examples=50)
def test_retry_exhaustion_raises_last_error(max_retries):
    """
    For any retry count, a permanently failing call is attempted exactly
    max_retries times and the last error propagates.
    """
    errors = [ConnectionError(f"attempt {i}") for i in range(max_retries)]
    operation = AsyncMock(side_effect=errors)
    handler = ErrorHandler(max_retries=max_retries, base_delay_seconds=0.01)

    with patch('asyncio.sleep', new=AsyncMock()) as sleep:
        with pytest.raises(ConnectionError) as exc_info:
            asyncio.run(handler.retry_with_backoff(operation))

    assert operation.call_count == max_retries
    assert sleep.await_count == max_retries - 1
    assert str(exc_info.value) == f"attempt {max_retries - 1}"


@given(failures=st.integers(min_value=0, max_value=3))
@settings(max_examples=50)
def test_retry_returns_first_success(failures):
    operation = AsyncMock(side_effect=[TimeoutError()] * failures + ["ok"])
    handler = ErrorHandler(max_retries=4, base_delay_seconds=0.01)

    with patch('asyncio.sleep', new=AsyncMock()):
        result = asyncio.run(handler.retry_with_backoff(operation))

    assert result == "ok"
    assert operation.call_count == failures + 1


def test_non_retryable_errors_propagate_immediately():
    operation = AsyncMock(side_effect=ValueError("bad input"))
    handler = ErrorHandler(max_retries=3, retry_on=(ConnectionError,))

    with pytest.raises(ValueError):
        asyncio.run(handler.retry_with_backoff(operation))

    assert operation.call_count == 1


def test_should_retry_predicate_filters_errors():
    operation = AsyncMock(side_effect=SearchProviderError("bad request", status=400))
    handler = ErrorHandler(
        max_retries=3,
        retry_on=(SearchProviderError,),
        should_retry=lambda e: e.status >= 500
    )

    with pytest.raises(SearchProviderError):
        asyncio.run(handler.retry_with_backoff(operation))

    assert operation.call_count == 1


@pytest.mark.parametrize("error, category", [
    (CountryNotSupportedError("ma", ["fr", "us"]), ErrorCategory.COUNTRY),
    (CurationParseError("bad json"), ErrorCategory.PARSE),
    (CurationTimeoutError("too long"), ErrorCategory.TIMEOUT),
    (CurationFailedError("errored", category=ErrorCategory.QUOTA), ErrorCategory.QUOTA),
    (SearchProviderError("forbidden", status=403), ErrorCategory.AUTHENTICATION),
    (SearchProviderError("unavailable", status=503), ErrorCategory.GENERIC),
    (asyncio.TimeoutError(), ErrorCategory.TIMEOUT),
    (RuntimeError("Your credit balance is too low"), ErrorCategory.QUOTA),
    (RuntimeError("Rate limit reached"), ErrorCategory.QUOTA),
    (KeyError("products"), ErrorCategory.GENERIC),
])
def test_classify_error(error, category):
    assert classify_error(error) == category


def test_classify_anthropic_errors():
    assert classify_error(_api_error(anthropic.RateLimitError, 429)) == ErrorCategory.QUOTA
    assert classify_error(_api_error(anthropic.AuthenticationError, 401)) == ErrorCategory.AUTHENTICATION
    assert classify_error(_api_error(anthropic.PermissionDeniedError, 403)) == ErrorCategory.AUTHENTICATION
    assert classify_error(anthropic.APITimeoutError(request=_REQUEST)) == ErrorCategory.TIMEOUT
    assert classify_error(_api_error(anthropic.InternalServerError, 500)) == ErrorCategory.GENERIC


@given(category=st.sampled_from(list(ErrorCategory)))
@settings(max_examples=20)
def test_every_category_has_a_user_message(category):
    assert USER_MESSAGES[category].strip()


def test_user_messages_never_expose_exception_text():
    error = RuntimeError("Traceback: connection to 10.0.0.3 refused")

    message = user_message_for(error)

    assert message == USER_MESSAGES[ErrorCategory.GENERIC]
    assert "10.0.0.3" not in message


def test_country_error_lists_supported_codes_sorted():
    error = CountryNotSupportedError("ma", ["us", "fr", "de"])

    assert error.user_message == "Le pays 'ma' n'est pas pris en charge. Pays supportés : de, fr, us"


def test_job_not_found_message():
    assert JobNotFoundError("abc").user_message == "Recherche introuvable"
