"""
Deep research curation - long-running curation through the Message Batches API.

The curation request is submitted as a background batch, then polled on a
fixed interval until it ends or the hard ceiling expires.
"""

import asyncio
import logging
import uuid
from typing import Any, Optional

import anthropic

from valet.error_handling import (
    CurationFailedError,
    CurationParseError,
    CurationTimeoutError,
    ErrorCategory,
)
from valet.models import SearchCandidates
from .curator import ChatCurator, response_text
from .parser import CurationOutput, parse_curation_output

logger = logging.getLogger(__name__)


# Batch result type -> task outcome
RESULT_OUTCOMES = {
    "succeeded": "completed",
    "errored": "failed",
    "canceled": "cancelled",
    "expired": "cancelled",
}

ERROR_CATEGORIES = {
    "rate_limit_error": ErrorCategory.QUOTA,
    "overloaded_error": ErrorCategory.QUOTA,
    "billing_error": ErrorCategory.QUOTA,
    "authentication_error": ErrorCategory.AUTHENTICATION,
    "permission_error": ErrorCategory.AUTHENTICATION,
    "timeout_error": ErrorCategory.TIMEOUT,
}


def _error_type(result: Any) -> Optional[str]:
    error = getattr(result, "error", None)
    inner = getattr(error, "error", error)
    return getattr(inner, "type", None)


class DeepResearchCurator(ChatCurator):
    """
    Curate search candidates with a polled background task.

    Attributes:
        poll_interval: Seconds between status checks
        max_wait: Hard ceiling in seconds before the task is cancelled
    """

    def __init__(
        self,
        client: anthropic.AsyncAnthropic,
        model: str,
        max_tokens: int = 4096,
        temperature: float = 0.1,
        poll_interval: float = 5.0,
        max_wait: float = 1800.0
    ):
        super().__init__(client, model, max_tokens=max_tokens, temperature=temperature)
        self.poll_interval = poll_interval
        self.max_wait = max_wait

    async def curate(
        self,
        query: str,
        country: str,
        candidates: SearchCandidates,
        request_id: Optional[str] = None
    ) -> CurationOutput:
        """
        Submit the curation task and wait for its output.

        Raises:
            CurationTimeoutError: The ceiling expired before the task ended
            CurationFailedError: The task ended as failed or cancelled
            CurationParseError: The output could not be parsed
        """
        custom_id = request_id or uuid.uuid4().hex
        batch = await self.client.messages.batches.create(
            requests=[{
                "custom_id": custom_id,
                "params": self.build_request(query, country, candidates),
            }]
        )
        logger.info(f"Submitted deep research task {batch.id} for '{query}'")

        await self._wait_until_ended(batch.id)
        return await self._collect_output(batch.id, custom_id)

    async def _wait_until_ended(self, batch_id: str) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.max_wait

        while True:
            batch = await self.client.messages.batches.retrieve(batch_id)
            status = batch.processing_status
            logger.debug(f"Deep research task {batch_id} status: {status}")

            if status == "ended":
                return

            if loop.time() >= deadline:
                logger.warning(f"Deep research task {batch_id} exceeded {self.max_wait:.0f}s, cancelling")
                try:
                    await self.client.messages.batches.cancel(batch_id)
                except anthropic.APIError as e:
                    logger.warning(f"Failed to cancel deep research task {batch_id}: {e}")
                raise CurationTimeoutError(f"Deep research task {batch_id} timed out")

            await asyncio.sleep(self.poll_interval)

    async def _collect_output(self, batch_id: str, custom_id: str) -> CurationOutput:
        results = await self.client.messages.batches.results(batch_id)

        async for entry in results:
            if entry.custom_id != custom_id:
                continue

            result = entry.result
            outcome = RESULT_OUTCOMES.get(result.type, "failed")
            logger.info(f"Deep research task {batch_id} {outcome}")

            if outcome == "completed":
                text = response_text(result.message)
                if not text:
                    raise CurationParseError("No response from deep research task")
                return parse_curation_output(text)

            if outcome == "cancelled":
                category = ErrorCategory.TIMEOUT if result.type == "expired" else ErrorCategory.GENERIC
                raise CurationFailedError(f"Deep research task {batch_id} {result.type}", category=category)

            error_type = _error_type(result)
            raise CurationFailedError(
                f"Deep research task {batch_id} failed: {error_type}",
                category=ERROR_CATEGORIES.get(error_type, ErrorCategory.GENERIC)
            )

        raise CurationFailedError(f"Deep research task {batch_id} returned no result")
