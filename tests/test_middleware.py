"""Tests for request tracing middleware and the global exception handler."""

import logging

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient

from ticketdesk.shared.api.middleware import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    global_exception_handler
)


@pytest.fixture
def traced_client():
    app = FastAPI()
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(CorrelationIDMiddleware)
    app.add_exception_handler(Exception, global_exception_handler)

    @app.get("/tickets/{ticket_id}")
    async def get_ticket(ticket_id: str):
        return {"id": ticket_id}

    @app.post("/tickets/{ticket_id}/classify")
    async def classify(ticket_id: str):
        raise HTTPException(status_code=429, detail="Rate limit exceeded", headers={"Retry-After": "42"})

    @app.get("/crash")
    async def crash():
        raise RuntimeError("database exploded")

    return TestClient(app, raise_server_exceptions=False)


def _finished(caplog):
    return [r for r in caplog.records if r.getMessage() == "Request finished"]


def test_generates_correlation_id(traced_client):
    response = traced_client.get("/tickets/t-1")
    assert response.headers["X-Correlation-ID"]


def test_blank_correlation_header_is_replaced(traced_client):
    response = traced_client.get("/tickets/t-1", headers={"X-Correlation-ID": "  "})
    assert response.headers["X-Correlation-ID"].strip()


def test_finished_record_carries_route_and_ticket(traced_client, caplog):
    caplog.set_level(logging.INFO)

    traced_client.get("/tickets/t-42", headers={"X-Correlation-ID": "corr-1"})

    record = _finished(caplog)[-1]
    assert record.levelno == logging.INFO
    assert record.correlation_id == "corr-1"
    assert record.route == "/tickets/{ticket_id}"
    assert record.ticket_id == "t-42"
    assert record.status_code == 200


def test_rate_limited_request_logs_retry_after(traced_client, caplog):
    caplog.set_level(logging.INFO)

    traced_client.post("/tickets/t-7/classify")

    record = _finished(caplog)[-1]
    assert record.levelno == logging.WARNING
    assert record.status_code == 429
    assert record.retry_after == "42"
    assert record.ticket_id == "t-7"


def test_unhandled_error_becomes_json_500(traced_client, caplog):
    caplog.set_level(logging.INFO)

    response = traced_client.get("/crash", headers={"X-Correlation-ID": "corr-9"})

    assert response.status_code == 500
    body = response.json()
    assert body["detail"] == "Internal server error"
    assert body["correlation_id"] == "corr-9"
    assert body["debug_info"] is None
    errors = [r for r in caplog.records if r.getMessage() == "Unhandled exception"]
    assert errors and errors[0].error_type == "RuntimeError"
