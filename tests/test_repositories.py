"""Tests for the SQLAlchemy repositories against SQLite."""

import pytest

from ticketdesk.core import RepositoryException
from ticketdesk.tickets.infrastructure import SQLAlchemyTicketRepository, SQLAlchemyCategoryRepository


@pytest.fixture
def ticket_repo(session):
    return SQLAlchemyTicketRepository(session)


@pytest.fixture
def category_repo(session):
    return SQLAlchemyCategoryRepository(session)


async def _ticket(repo, **overrides):
    fields = {"subject": "Cannot log in", "body": "Password rejected", "status": "open"}
    fields.update(overrides)
    return await repo.create(fields)


# ========== Categories ==========

async def test_category_names_are_sorted(category_repo):
    await category_repo.create("Technical Support")
    await category_repo.create("Billing")

    assert await category_repo.list_names() == ["Billing", "Technical Support"]


async def test_get_by_name_is_exact(category_repo):
    billing = await category_repo.create("Billing")

    assert (await category_repo.get_by_name("Billing")).id == billing.id
    assert await category_repo.get_by_name("billing") is None
    assert await category_repo.get_by_name("Sales") is None


async def test_get_category_by_malformed_id_is_none(category_repo):
    assert await category_repo.get_by_id("not-a-uuid") is None


async def test_ticket_counts_include_empty_categories(category_repo, ticket_repo):
    billing = await category_repo.create("Billing")
    await category_repo.create("Sales")
    await _ticket(ticket_repo, category_id=billing.id)
    await _ticket(ticket_repo, category_id=billing.id)

    counts = {category.name: count for category, count in await category_repo.list_with_ticket_counts()}

    assert counts == {"Billing": 2, "Sales": 0}


# ========== Tickets ==========

async def test_create_and_get_ticket_with_category(category_repo, ticket_repo):
    billing = await category_repo.create("Billing")

    created = await _ticket(ticket_repo, category_id=billing.id, created_by="alice")
    fetched = await ticket_repo.get_by_id(created.id)

    assert fetched.subject == "Cannot log in"
    assert fetched.category_id == billing.id
    assert fetched.category.name == "Billing"
    assert fetched.created_by == "alice"
    assert fetched.explanation is None
    assert fetched.created_at is not None


async def test_get_missing_or_malformed_ticket_is_none(ticket_repo):
    assert await ticket_repo.get_by_id("00000000-0000-0000-0000-000000000000") is None
    assert await ticket_repo.get_by_id("nope") is None


async def test_update_applies_given_fields_only(ticket_repo):
    ticket = await _ticket(ticket_repo)

    updated = await ticket_repo.update(ticket.id, {"status": "resolved"})

    assert updated.status == "resolved"
    assert updated.subject == "Cannot log in"


async def test_update_missing_ticket_raises(ticket_repo):
    with pytest.raises(RepositoryException):
        await ticket_repo.update("00000000-0000-0000-0000-000000000000", {"status": "closed"})


async def test_update_classification_without_category_keeps_category(category_repo, ticket_repo):
    support = await category_repo.create("Technical Support")
    ticket = await _ticket(ticket_repo, category_id=support.id)

    updated = await ticket_repo.update_classification(ticket.id, "Refund request", 64)

    assert updated.explanation == "Refund request"
    assert updated.confidence == 64
    assert updated.category_id == support.id


async def test_update_classification_with_category_moves_ticket(category_repo, ticket_repo):
    billing = await category_repo.create("Billing")
    ticket = await _ticket(ticket_repo)

    updated = await ticket_repo.update_classification(ticket.id, "Refund request", 64, category_id=billing.id)

    assert updated.category_id == billing.id
    assert updated.category.name == "Billing"


async def test_search_covers_subject_body_and_explanation(ticket_repo):
    await _ticket(ticket_repo, subject="Invoice missing")
    await _ticket(ticket_repo, body="The invoice total is wrong")
    await _ticket(ticket_repo, explanation="Invoice dispute", confidence=50)
    await _ticket(ticket_repo, subject="Other")

    items, total = await ticket_repo.list({"search": "invoice"})

    assert total == 3
    assert len(items) == 3


async def test_filters_combine(category_repo, ticket_repo):
    billing = await category_repo.create("Billing")
    await _ticket(ticket_repo, category_id=billing.id, confidence=90, explanation="x", created_by="bob")
    await _ticket(ticket_repo, category_id=billing.id, confidence=20, explanation="x", created_by="bob")
    await _ticket(ticket_repo, status="closed", category_id=billing.id, confidence=95, explanation="x")

    items, total = await ticket_repo.list({
        "status": "open",
        "category_id": billing.id,
        "min_confidence": 50,
        "max_confidence": 100,
        "created_by": "bob",
    })

    assert total == 1
    assert items[0].confidence == 90


async def test_malformed_category_filter_matches_nothing(ticket_repo):
    await _ticket(ticket_repo)

    assert await ticket_repo.list({"category_id": "nope"}) == ([], 0)


async def test_sorting_and_pagination(ticket_repo):
    for subject in ["b", "d", "a", "c", "e"]:
        await _ticket(ticket_repo, subject=subject)

    page, total = await ticket_repo.list({}, sort_by="subject", sort_order="asc", limit=2, offset=2)

    assert total == 5
    assert [t.subject for t in page] == ["c", "d"]
