"""End-to-end tests for the HTTP API."""

import random

from ticketdesk.classification.application import ClassificationEngine, ClassifierOptions
from ticketdesk.classification.domain import RateLimitPolicy, BackendSuccess, FallbackClassifier
from ticketdesk.classification.infrastructure import InMemoryRateLimiter

from fakes import StubBackend


def _install_engine(client, backend, enabled=True, max_calls=10):
    client.app.state.classification_engine = ClassificationEngine(
        backend=backend,
        rate_limiter=InMemoryRateLimiter(),
        options=ClassifierOptions(
            enabled=enabled,
            model="gpt-3.5-turbo",
            temperature=0.3,
            max_tokens=200,
            timeout_seconds=5.0,
            rate_limit=RateLimitPolicy("classify", max_calls, 60)
        ),
        fallback=FallbackClassifier(random.Random(0))
    )


def _create_ticket(client, **overrides):
    payload = {"subject": "Invoice wrong", "body": "I was charged twice", "status": "open"}
    payload.update(overrides)
    response = client.post("/tickets", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


# ========== Service endpoints ==========

def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["checks"]["classification"] == "disabled"


def test_root(client):
    assert client.get("/").json()["service"] == "TicketDesk"


def test_correlation_id_is_echoed(client):
    response = client.get("/health", headers={"X-Correlation-ID": "abc-123"})
    assert response.headers["X-Correlation-ID"] == "abc-123"


# ========== Tickets ==========

def test_create_and_get_ticket(client, seed_categories):
    ids = seed_categories(["Billing"])

    created = _create_ticket(client, category_id=ids["Billing"], created_by="alice")
    fetched = client.get(f"/tickets/{created['id']}").json()

    assert fetched["subject"] == "Invoice wrong"
    assert fetched["category"] == {"id": ids["Billing"], "name": "Billing"}
    assert fetched["created_by"] == "alice"
    assert fetched["explanation"] is None


def test_create_with_unknown_category_is_rejected(client):
    response = client.post("/tickets", json={
        "subject": "s", "body": "b", "status": "open",
        "category_id": "00000000-0000-0000-0000-000000000000"
    })

    assert response.status_code == 422
    assert response.json()["detail"] == "The selected category_id is invalid."


def test_create_with_invalid_status_is_rejected(client):
    response = client.post("/tickets", json={"subject": "s", "body": "b", "status": "pending"})
    assert response.status_code == 422


def test_get_missing_ticket(client):
    assert client.get("/tickets/00000000-0000-0000-0000-000000000000").status_code == 404


def test_patch_updates_only_given_fields(client):
    ticket = _create_ticket(client)

    response = client.patch(f"/tickets/{ticket['id']}", json={"status": "in_progress"})

    assert response.status_code == 200
    assert response.json()["status"] == "in_progress"
    assert response.json()["subject"] == "Invoice wrong"


def test_patch_rejects_null_subject(client):
    ticket = _create_ticket(client)

    response = client.patch(f"/tickets/{ticket['id']}", json={"subject": None})

    assert response.status_code == 422


def test_list_filters_and_paginates(client):
    for i in range(3):
        _create_ticket(client, subject=f"Invoice {i}")
    _create_ticket(client, subject="Login", body="Cannot sign in", status="closed")

    body = client.get("/tickets", params={"search": "invoice", "per_page": 2, "sort_by": "subject", "sort_order": "asc"}).json()

    assert [t["subject"] for t in body["data"]] == ["Invoice 0", "Invoice 1"]
    assert body["pagination"] == {
        "current_page": 1, "last_page": 2, "per_page": 2, "total": 3, "from": 1, "to": 2
    }

    closed = client.get("/tickets", params={"status": "closed"}).json()
    assert [t["subject"] for t in closed["data"]] == ["Login"]


def test_per_page_is_capped(client):
    _create_ticket(client)

    body = client.get("/tickets", params={"per_page": 500}).json()

    assert body["pagination"]["per_page"] == 100


def test_unknown_sort_field_is_rejected(client):
    assert client.get("/tickets", params={"sort_by": "body"}).status_code == 422


def test_categories_with_counts(client, seed_categories):
    ids = seed_categories(["Billing", "Sales"])
    _create_ticket(client, category_id=ids["Billing"])

    data = client.get("/categories").json()["data"]

    assert {c["name"]: c["tickets_count"] for c in data} == {"Billing": 1, "Sales": 0}


# ========== Classification ==========

def test_classify_status_defaults(client):
    body = client.get("/tickets/classify/status").json()

    assert body["classification_enabled"] is False
    assert body["rate_limit_status"] == {
        "calls_made": 0,
        "max_calls": 10,
        "remaining_calls": 10,
        "window_seconds": 60,
        "available_in_seconds": 0
    }


def test_classify_with_feature_disabled_uses_fallback(client, seed_categories):
    seed_categories(["Billing", "Technical Support"])
    ticket = _create_ticket(client)

    response = client.post(f"/tickets/{ticket['id']}/classify")

    assert response.status_code == 200
    body = response.json()
    assert body["classification_enabled"] is False
    assert body["classification"]["explanation"] == (
        "Automatically classified using fallback system (feature disabled)"
    )
    assert 10 <= body["classification"]["confidence"] <= 95
    assert body["ticket"]["category"]["name"] == body["classification"]["category"]
    assert body["rate_limit_status"]["calls_made"] == 0


def test_classify_missing_ticket(client):
    response = client.post("/tickets/00000000-0000-0000-0000-000000000000/classify")
    assert response.status_code == 404


def test_classify_with_llm_answer(client, seed_categories):
    seed_categories(["Billing", "Technical Support"])
    _install_engine(client, StubBackend(BackendSuccess(
        {"category": "Billing", "explanation": "Duplicate charge", "confidence": 91}
    )))
    ticket = _create_ticket(client)

    body = client.post(f"/tickets/{ticket['id']}/classify").json()

    assert body["classification"] == {"category": "Billing", "explanation": "Duplicate charge", "confidence": 91}
    assert body["ticket"]["category"]["name"] == "Billing"
    assert body["ticket"]["confidence"] == 91
    assert body["classification_enabled"] is True

    stored = client.get(f"/tickets/{ticket['id']}").json()
    assert stored["explanation"] == "Duplicate charge"


def test_classify_rate_limited(client, seed_categories):
    seed_categories(["Billing"])
    _install_engine(client, StubBackend(BackendSuccess(
        {"category": "Billing", "explanation": "x", "confidence": 50}
    )), max_calls=1)
    ticket = _create_ticket(client)

    assert client.post(f"/tickets/{ticket['id']}/classify").status_code == 200
    response = client.post(f"/tickets/{ticket['id']}/classify")

    assert response.status_code == 429
    assert 1 <= int(response.headers["Retry-After"]) <= 60
    detail = response.json()["detail"]
    assert detail["message"] == "Rate limit exceeded. Please try again later."
    assert detail["rate_limit_status"]["remaining_calls"] == 0

    status = client.get("/tickets/classify/status").json()["rate_limit_status"]
    assert status["calls_made"] == 1


def test_manual_category_survives_reclassification(client, seed_categories):
    ids = seed_categories(["Billing", "Technical Support"])
    _install_engine(client, StubBackend(BackendSuccess(
        {"category": "Billing", "explanation": "Duplicate charge", "confidence": 91}
    )))
    ticket = _create_ticket(client)

    first = client.post(f"/tickets/{ticket['id']}/classify").json()
    assert first["ticket"]["category_id"] == ids["Billing"]

    client.patch(f"/tickets/{ticket['id']}", json={"category_id": ids["Technical Support"]})
    second = client.post(f"/tickets/{ticket['id']}/classify").json()

    assert second["classification"]["category"] == "Billing"
    assert second["ticket"]["category_id"] == ids["Technical Support"]
    assert second["ticket"]["confidence"] == 91
