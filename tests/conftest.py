"""
Shared pytest fixtures.

Environment variables are set before any ticketdesk import so the cached
settings point at a throwaway SQLite database.
"""

import asyncio
import os
import tempfile
from pathlib import Path

_TEST_DIR = Path(tempfile.mkdtemp(prefix="ticketdesk-tests-"))
_APP_DB_PATH = _TEST_DIR / "app.db"

os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_APP_DB_PATH}"
os.environ["ENVIRONMENT"] = "test"
os.environ["CLASSIFY_ENABLED"] = "false"
os.environ["LOG_LEVEL"] = "INFO"
for _var in ("OPENAI_API_KEY", "GROQ_API_KEY", "ZAI_API_KEY", "MOCK_LLM", "LLM_PROVIDER"):
    os.environ.pop(_var, None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker  # noqa: E402

from ticketdesk.infrastructure.database import (  # noqa: E402
    Base, init_database, close_database, create_tables, drop_tables, get_session_context
)
from ticketdesk.tickets.infrastructure.models import CategoryModel, TicketModel  # noqa: E402


# ========== Database ==========

@pytest.fixture
async def session(tmp_path):
    """Session on a fresh SQLite database, committed on exit."""
    init_database(f"sqlite+aiosqlite:///{tmp_path / 'repo.db'}")
    await create_tables()
    try:
        async with get_session_context() as db_session:
            yield db_session
    finally:
        await drop_tables()
        await close_database()


# ========== API ==========

@pytest.fixture
def client():
    """TestClient with the lifespan running against an empty database."""
    _APP_DB_PATH.unlink(missing_ok=True)

    from ticketdesk.main import app

    with TestClient(app) as test_client:
        yield test_client


def _seed(names, tickets=()):
    async def run():
        engine = create_async_engine(os.environ["DATABASE_URL"])
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        maker = async_sessionmaker(engine, expire_on_commit=False)
        async with maker() as db_session:
            categories = {name: CategoryModel(name=name) for name in names}
            db_session.add_all(categories.values())
            await db_session.flush()

            for ticket in tickets:
                values = dict(ticket)
                category_name = values.pop("category", None)
                if category_name:
                    values["category_id"] = categories[category_name].id
                db_session.add(TicketModel(**values))

            await db_session.commit()
            ids = {name: str(model.id) for name, model in categories.items()}

        await engine.dispose()
        return ids

    return asyncio.run(run())


@pytest.fixture
def seed_categories():
    """
    Insert categories (and optionally tickets) into the app database.

    Returns a mapping of category name to ID.
    """
    return _seed
