"""Functional test bootstrap.

The app runs on the in-memory entity store with test-support routes
enabled. Environment is set before any `form_admin` import so the first
`load_config()` sees it. SQL-backed tests use the `sql_engine` fixture,
which gives each test a fresh in-memory SQLite database with the packaged
migrations applied.
"""

from __future__ import annotations

import os

import pytest

os.environ["STORE_BACKEND"] = "memory"
os.environ["ENABLE_TEST_SUPPORT"] = "1"
os.environ["AUTO_APPLY_MIGRATIONS"] = "0"
os.environ.pop("TEST_DATABASE_URL", None)
os.environ.pop("DATABASE_URL", None)

SQLITE_MEMORY_URL = "sqlite+pysqlite:///:memory:"


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def _clear_buffers():
    from form_admin.logic import audit, saga

    audit.AUDIT_BUFFER.clear()
    saga.INCOMPLETE_SAGAS.clear()
    yield
    audit.AUDIT_BUFFER.clear()
    saga.INCOMPLETE_SAGAS.clear()


@pytest.fixture
def client():
    from fastapi.testclient import TestClient

    from form_admin.main import create_app

    with TestClient(create_app()) as c:
        c.post("/__test__/reset-state")
        yield c


@pytest.fixture
def stores():
    from form_admin.logic.entity_store import Stores
    from form_admin.logic.inmemory_store import InMemoryEntityStore

    return Stores(
        forms=InMemoryEntityStore("form"),
        sections=InMemoryEntityStore("section"),
        questions=InMemoryEntityStore("question"),
    )


@pytest.fixture
def graph(stores):
    from form_admin.logic.graph import ReferentialGraph

    return ReferentialGraph(stores)


@pytest.fixture
def sql_engine():
    from form_admin.db.base import dispose_engine, get_engine
    from form_admin.db.migrations_runner import apply_migrations

    dispose_engine()
    engine = get_engine(SQLITE_MEMORY_URL)
    apply_migrations(engine)
    yield engine
    dispose_engine()
