"""
Product curation with Claude - one synchronous Messages API call.
"""

import logging
from typing import Any, Dict, Optional

import anthropic

from valet.config import ValetSettings
from valet.error_handling import CurationParseError
from valet.models import SearchCandidates
from .parser import CurationOutput, parse_curation_output
from .prompts import build_system_prompt, build_user_prompt

logger = logging.getLogger(__name__)


def response_text(message: Any) -> str:
    """Concatenate the text blocks of a Messages API response."""
    blocks = getattr(message, "content", None) or []
    return "".join(
        getattr(block, "text", "")
        for block in blocks
        if getattr(block, "type", None) == "text"
    ).strip()


class ChatCurator:
    """Curate search candidates with a single low-temperature completion"""

    def __init__(
        self,
        client: anthropic.AsyncAnthropic,
        model: str,
        max_tokens: int = 4096,
        temperature: float = 0.1
    ):
        self.client = client
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

    def build_request(self, query: str, country: str, candidates: SearchCandidates) -> Dict[str, Any]:
        """Messages API parameters for a curation request."""
        return {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "system": build_system_prompt(),
            "messages": [{
                "role": "user",
                "content": build_user_prompt(query, country, candidates.engine, candidates.results)
            }]
        }

    async def curate(
        self,
        query: str,
        country: str,
        candidates: SearchCandidates,
        request_id: Optional[str] = None
    ) -> CurationOutput:
        """
        Select and format the best products among the candidates.

        Raises:
            CurationParseError: Empty or unparseable model output
            anthropic.APIError: Provider failure (classified by the caller)
        """
        logger.info(f"Curating {len(candidates.results)} candidates with {self.model}")
        message = await self.client.messages.create(**self.build_request(query, country, candidates))

        text = response_text(message)
        if not text:
            raise CurationParseError("No response from curation model")

        output = parse_curation_output(text)
        logger.info(f"Model selected {len(output.products)} products")
        return output


def build_curator(settings: ValetSettings):
    """Create the curator selected by CURATION_MODE."""
    from .deep_research import DeepResearchCurator

    client = anthropic.AsyncAnthropic(
        api_key=settings.require_anthropic_key(),
        timeout=settings.curation.timeout_seconds
    )
    config = settings.curation

    if config.mode == "deep":
        return DeepResearchCurator(
            client,
            model=config.model,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            poll_interval=config.poll_interval_seconds,
            max_wait=config.max_wait_seconds
        )

    return ChatCurator(
        client,
        model=config.model,
        max_tokens=config.max_tokens,
        temperature=config.temperature
    )
