"""
Error handler with retry logic for upstream provider calls.

Implements exponential backoff for a single transient call. The search
pipeline as a whole is never retried.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple, Type
from datetime import datetime


logger = logging.getLogger(__name__)


@dataclass
class RetryConfig:
    """
    Configuration for retry behavior with exponential backoff.

    Attributes:
        max_retries: Maximum number of attempts
        base_delay_seconds: Delay before the second attempt
        backoff_multiplier: Multiplier applied to the delay on each retry
    """
    max_retries: int = 2
    base_delay_seconds: float = 1.0
    backoff_multiplier: float = 2.0

    def get_backoff_delay(self, attempt: int) -> float:
        """
        Calculate backoff delay before retry attempt.

        delay = base_delay_seconds * (backoff_multiplier ^ attempt)

        Args:
            attempt: The retry attempt number (0-indexed)

        Returns:
            Delay in seconds before the retry attempt
        """
        return self.base_delay_seconds * (self.backoff_multiplier ** attempt)


class ErrorHandler:
    """
    Retries an async operation on transient errors.

    Only exceptions listed in ``retry_on`` (and accepted by ``should_retry``
    when given) are retried; anything else propagates immediately.
    """

    def __init__(
        self,
        max_retries: int = 2,
        base_delay_seconds: float = 1.0,
        retry_on: Tuple[Type[BaseException], ...] = (Exception,),
        should_retry: Optional[Callable[[BaseException], bool]] = None
    ):
        self.config = RetryConfig(
            max_retries=max(1, max_retries),
            base_delay_seconds=base_delay_seconds
        )
        self.retry_on = retry_on
        self.should_retry = should_retry

    async def retry_with_backoff(
        self,
        operation: Callable,
        *args,
        **kwargs
    ) -> Any:
        """
        Execute operation with exponential backoff retry logic.

        Args:
            operation: Async callable to execute
            *args: Positional arguments for the operation
            **kwargs: Keyword arguments for the operation

        Returns:
            Result from successful operation execution

        Raises:
            Exception: The last exception encountered if all retries are exhausted,
                or the first non-retryable exception
        """
        name = getattr(operation, "__name__", repr(operation))

        for attempt in range(self.config.max_retries):
            try:
                return await operation(*args, **kwargs)
            except self.retry_on as e:
                if self.should_retry is not None and not self.should_retry(e):
                    raise

                self._log_error(name, attempt + 1, self.config.max_retries, e)

                if attempt == self.config.max_retries - 1:
                    logger.error(
                        f"Operation {name} failed after {self.config.max_retries} attempts. "
                        f"Final error: {str(e)}"
                    )
                    raise

                backoff_delay = self.config.get_backoff_delay(attempt)
                logger.info(f"Waiting {backoff_delay:.1f}s before retry...")
                await asyncio.sleep(backoff_delay)

    def _log_error(
        self,
        operation_name: str,
        attempt: int,
        max_attempts: int,
        error: BaseException
    ) -> None:
        """Log error with timestamp and context."""
        context = {
            'timestamp': datetime.now().isoformat(),
            'operation': operation_name,
            'attempt': f"{attempt}/{max_attempts}",
            'error_type': type(error).__name__,
            'error_message': str(error),
        }

        logger.warning(
            f"Operation failed: {operation_name} | "
            f"Attempt: {attempt}/{max_attempts} | "
            f"Error: {type(error).__name__}: {str(error)}"
        )
        logger.debug(f"Full error context: {context}")
