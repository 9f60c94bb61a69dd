"""Shared fixtures: a fresh SQLite database and an in-memory keychain per test."""

from __future__ import annotations

import keyring
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import src.entities  # noqa: F401
from escalate.audit import AuditRecorder
from escalate.pipeline import PostingPipeline
from escalate.store import EscalationStore
from src.database import Base, enable_sqlite_foreign_keys
from tests.helpers import FakePublisher, MemoryKeyring


@pytest.fixture(autouse=True)
def memory_keyring():
    previous = keyring.get_keyring()
    backend = MemoryKeyring()
    keyring.set_keyring(backend)
    yield backend
    keyring.set_keyring(previous)


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def store(session_factory):
    return EscalationStore(session_factory)


@pytest_asyncio.fixture
async def audit(session_factory):
    return AuditRecorder(session_factory)


@pytest_asyncio.fixture
async def publisher():
    return FakePublisher()


@pytest_asyncio.fixture
async def pipeline(store, audit, publisher):
    async def factory():
        return publisher

    return PostingPipeline(store=store, audit=audit, publisher_factory=factory)
