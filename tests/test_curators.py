"""Tests for the chat and deep research curators."""

import asyncio
import json
import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock

from valet.config import get_settings
from valet.error_handling import (
    CurationFailedError,
    CurationParseError,
    CurationTimeoutError,
    ErrorCategory,
    classify_error,
)
from valet.models import SearchCandidate, SearchCandidates
from valet.services.curation import ChatCurator, DeepResearchCurator, build_curator


PAYLOAD = {
    "description": "Casques sans fil",
    "products": [
        {"id": 1, "name": "Casque A", "price": 99.9, "currency": "eur", "url": "https://www.fnac.com/a",
         "source": "fnac.com", "imageUrl": "https://static.fnac.com/a.jpg", "snippet": "Bluetooth"},
    ],
}

CANDIDATES = SearchCandidates(
    engine="google_shopping",
    results=[SearchCandidate(position=1, title="Casque A", price="99,90 €", url="https://www.fnac.com/a")],
    total_found=1,
)


def _message(text: str):
    return SimpleNamespace(content=[SimpleNamespace(type="text", text=text)])


def _chat_client(text: str):
    create = AsyncMock(return_value=_message(text))
    return SimpleNamespace(messages=SimpleNamespace(create=create)), create


class FakeResults:
    def __init__(self, entries):
        self._entries = list(entries)

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for entry in self._entries:
            yield entry


def _batches_client(statuses, entries):
    retrieve = AsyncMock(side_effect=[SimpleNamespace(id="batch_1", processing_status=s) for s in statuses])
    batches = SimpleNamespace(
        create=AsyncMock(return_value=SimpleNamespace(id="batch_1", processing_status="in_progress")),
        retrieve=retrieve,
        results=AsyncMock(return_value=FakeResults(entries)),
        cancel=AsyncMock(),
    )
    return SimpleNamespace(messages=SimpleNamespace(batches=batches)), batches


def _entry(custom_id, result_type, text=None, error_type=None):
    result = SimpleNamespace(type=result_type)
    if text is not None:
        result.message = _message(text)
    if error_type is not None:
        result.error = SimpleNamespace(type="error", error=SimpleNamespace(type=error_type, message="x"))
    return SimpleNamespace(custom_id=custom_id, result=result)


def test_chat_curator_parses_products():
    client, create = _chat_client(json.dumps(PAYLOAD))
    curator = ChatCurator(client, model="claude-test")

    output = asyncio.run(curator.curate("casque", "fr", CANDIDATES))

    assert output.description == "Casques sans fil"
    assert [p.id for p in output.products] == ["1"]
    assert output.products[0].currency == "EUR"

    kwargs = create.call_args.kwargs
    assert kwargs["model"] == "claude-test"
    assert kwargs["temperature"] == 0.1
    assert "TOP 10" in kwargs["system"]
    assert "casque" in kwargs["messages"][0]["content"]
    assert "https://www.fnac.com/a" in kwargs["messages"][0]["content"]


def test_chat_curator_empty_response_is_parse_error():
    client, _ = _chat_client("   ")

    with pytest.raises(CurationParseError) as exc_info:
        asyncio.run(ChatCurator(client, model="claude-test").curate("casque", "fr", CANDIDATES))

    assert classify_error(exc_info.value) == ErrorCategory.PARSE


def test_deep_research_polls_until_ended():
    client, batches = _batches_client(
        ["in_progress", "in_progress", "ended"],
        [_entry("other", "succeeded", text="{}"), _entry("job-1", "succeeded", text=json.dumps(PAYLOAD))],
    )
    curator = DeepResearchCurator(client, model="claude-test", poll_interval=0, max_wait=60)

    output = asyncio.run(curator.curate("casque", "fr", CANDIDATES, request_id="job-1"))

    assert [p.name for p in output.products] == ["Casque A"]
    assert batches.retrieve.call_count == 3
    request = batches.create.call_args.kwargs["requests"][0]
    assert request["custom_id"] == "job-1"
    assert request["params"]["model"] == "claude-test"
    batches.cancel.assert_not_called()


def test_deep_research_timeout_cancels_task():
    client, batches = _batches_client(["in_progress"] * 5, [])
    curator = DeepResearchCurator(client, model="claude-test", poll_interval=0, max_wait=0)

    with pytest.raises(CurationTimeoutError) as exc_info:
        asyncio.run(curator.curate("casque", "fr", CANDIDATES, request_id="job-1"))

    batches.cancel.assert_awaited_once_with("batch_1")
    assert classify_error(exc_info.value) == ErrorCategory.TIMEOUT


@pytest.mark.parametrize("error_type, category", [
    ("rate_limit_error", ErrorCategory.QUOTA),
    ("overloaded_error", ErrorCategory.QUOTA),
    ("authentication_error", ErrorCategory.AUTHENTICATION),
    ("api_error", ErrorCategory.GENERIC),
])
def test_deep_research_failure_is_classified(error_type, category):
    client, _ = _batches_client(["ended"], [_entry("job-1", "errored", error_type=error_type)])
    curator = DeepResearchCurator(client, model="claude-test", poll_interval=0)

    with pytest.raises(CurationFailedError) as exc_info:
        asyncio.run(curator.curate("casque", "fr", CANDIDATES, request_id="job-1"))

    assert classify_error(exc_info.value) == category


@pytest.mark.parametrize("result_type, category", [
    ("canceled", ErrorCategory.GENERIC),
    ("expired", ErrorCategory.TIMEOUT),
])
def test_deep_research_cancelled_outcomes(result_type, category):
    client, _ = _batches_client(["ended"], [_entry("job-1", result_type)])
    curator = DeepResearchCurator(client, model="claude-test", poll_interval=0)

    with pytest.raises(CurationFailedError) as exc_info:
        asyncio.run(curator.curate("casque", "fr", CANDIDATES, request_id="job-1"))

    assert exc_info.value.category == category


def test_deep_research_prose_output_is_recovered():
    text = "Voici ma sélection après recherche :\n" + json.dumps(PAYLOAD) + "\nBonne journée."
    client, _ = _batches_client(["ended"], [_entry("job-1", "succeeded", text=text)])
    curator = DeepResearchCurator(client, model="claude-test", poll_interval=0)

    output = asyncio.run(curator.curate("casque", "fr", CANDIDATES, request_id="job-1"))

    assert output.used_fallback
    assert len(output.products) == 1


def test_build_curator_selects_mode():
    chat = build_curator(get_settings({"ANTHROPIC_API_KEY": "sk-test"}))
    deep = build_curator(get_settings({
        "ANTHROPIC_API_KEY": "sk-test",
        "CURATION_MODE": "deep",
        "DEEP_POLL_INTERVAL": "2",
        "DEEP_MAX_WAIT": "60",
    }))

    assert type(chat) is ChatCurator
    assert isinstance(deep, DeepResearchCurator)
    assert deep.poll_interval == 2.0
    assert deep.max_wait == 60.0


def test_build_curator_requires_key():
    with pytest.raises(ValueError, match="ANTHROPIC_API_KEY"):
        build_curator(get_settings({}))
