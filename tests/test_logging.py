"""Tests for the JSON log formatter."""

import json
import logging

from ticketdesk.shared.infrastructure.logging import CustomJsonFormatter


def _format(**extra):
    formatter = CustomJsonFormatter("%(name)s %(levelname)s %(message)s", environment="test")
    record = logging.LogRecord("ticketdesk", logging.INFO, __file__, 1, "Ticket classified", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return json.loads(formatter.format(record))


def test_adds_context_fields():
    payload = _format(correlation_id="abc", ticket_id="t-1")

    assert payload["message"] == "Ticket classified"
    assert payload["correlation_id"] == "abc"
    assert payload["environment"] == "test"
    assert payload["ticket_id"] == "t-1"
    assert "timestamp" in payload


def test_redacts_secrets_but_not_token_counts():
    payload = _format(openai_api_key="sk-secret", auth_token="xyz", prompt_tokens=120)

    assert payload["openai_api_key"] == "***REDACTED***"
    assert payload["auth_token"] == "***REDACTED***"
    assert payload["prompt_tokens"] == 120
