"""Tests for the chat-completion classification backend."""

import json

from ticketdesk.core import LLMException
from ticketdesk.classification.domain import (
    ClassificationRequest, BackendSuccess, BackendTransportError, BackendParseError
)
from ticketdesk.classification.infrastructure import LLMClassificationBackend

from fakes import FakeLLMClient

REQUEST = ClassificationRequest(
    ticket_id="t-1",
    system_prompt="Available categories: Billing",
    user_prompt="Ticket Subject: s\n\nTicket Body: b\n\nCurrent Status: open",
    model="gpt-3.5-turbo",
    temperature=0.3,
    max_tokens=200
)
ANSWER = {"category": "Billing", "explanation": "Refund request", "confidence": 80}


async def test_decodes_json_answer():
    client = FakeLLMClient(json.dumps(ANSWER))

    outcome = await LLMClassificationBackend(client).classify(REQUEST)

    assert outcome == BackendSuccess(ANSWER)


async def test_requests_strict_json_with_request_settings():
    client = FakeLLMClient(json.dumps(ANSWER))

    await LLMClassificationBackend(client).classify(REQUEST)

    call = client.calls[0]
    assert call["response_format"] == {"type": "json_object"}
    assert call["model"] == "gpt-3.5-turbo"
    assert call["temperature"] == 0.3
    assert call["max_tokens"] == 200
    assert call["operation"] == "classification"
    assert call["messages"] == REQUEST.messages


async def test_strips_markdown_fence():
    client = FakeLLMClient("```json\n" + json.dumps(ANSWER) + "\n```")

    outcome = await LLMClassificationBackend(client).classify(REQUEST)

    assert outcome == BackendSuccess(ANSWER)


async def test_non_json_answer_is_parse_error():
    outcome = await LLMClassificationBackend(FakeLLMClient("I think it's Billing")).classify(REQUEST)

    assert isinstance(outcome, BackendParseError)
    assert outcome.raw_content == "I think it's Billing"


async def test_client_failure_is_transport_error():
    client = FakeLLMClient(error=LLMException("Chat completion failed: 503"))

    outcome = await LLMClassificationBackend(client).classify(REQUEST)

    assert isinstance(outcome, BackendTransportError)
    assert "503" in outcome.message


async def test_missing_client_is_transport_error():
    outcome = await LLMClassificationBackend(None).classify(REQUEST)

    assert outcome == BackendTransportError("LLM client not configured")


async def test_json_that_is_not_an_object_is_still_success():
    outcome = await LLMClassificationBackend(FakeLLMClient("[1, 2]")).classify(REQUEST)

    # Structural checks belong to the validator
    assert outcome == BackendSuccess([1, 2])


async def test_unexpected_client_error_is_transport_error():
    client = FakeLLMClient(error=RuntimeError("socket closed"))

    outcome = await LLMClassificationBackend(client).classify(REQUEST)

    assert isinstance(outcome, BackendTransportError)
    assert "RuntimeError" in outcome.message
    assert "socket closed" in outcome.message
