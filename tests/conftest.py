"""Shared test fixtures."""

import pytest_asyncio

from revision_history.db.connection import create_connection
from revision_history.store.revision_store import RevisionStore


class FakeClock:
    """Settable clock so revisions get distinct, predictable timestamps."""

    def __init__(self, start: float = 1_700_000_000):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float = 1) -> None:
        self.now += seconds


class FakeAdapter:
    """In-memory entity storage implementing EntityAdapter."""

    def __init__(self):
        self.rows: dict[str, dict] = {}
        self.applied: list[tuple[str, dict]] = []

    async def load_state(self, entity_id: str) -> dict | None:
        row = self.rows.get(entity_id)
        return dict(row) if row is not None else None

    async def apply_state(self, entity_id: str, data: dict) -> None:
        self.applied.append((entity_id, data))
        self.rows[entity_id] = dict(data)


@pytest_asyncio.fixture
async def db():
    """In-memory database with full schema."""
    conn = await create_connection(":memory:")
    yield conn
    await conn.close()


@pytest_asyncio.fixture
async def clock():
    """Fake clock starting at a fixed epoch."""
    return FakeClock()


@pytest_asyncio.fixture
async def store(db, clock):
    """Revision store for site-1 backed by in-memory DB."""
    return RevisionStore(db, "site-1", clock=clock)
