from __future__ import annotations

import os

os.environ.setdefault("DEEPWORK_DATABASE_URL", "sqlite://")
os.environ.setdefault("DEEPWORK_OPIK_ENABLED", "false")

from datetime import date, datetime
from typing import Any, List, Sequence

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from deepwork.db.base import Base
from deepwork.db.models.task import TaskRecord  # noqa: F401
from deepwork.db.repository import SqlTaskRepository
from deepwork.domain.task import Task
from deepwork.llm.client import Message

# Monday 10 March 2025, 10:07
NOW = datetime(2025, 3, 10, 10, 7)
TODAY = NOW.date()


class FakeLLMClient:
    """Replays queued replies and records every conversation it receives."""

    def __init__(self, replies: Sequence[Any] = ()) -> None:
        self.replies: List[Any] = list(replies)
        self.calls: List[List[Message]] = []

    def _next(self, messages: Sequence[Message]) -> Any:
        self.calls.append(list(messages))
        if not self.replies:
            raise AssertionError("unexpected LLM call")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    def chat(self, messages: Sequence[Message]) -> str:
        return self._next(messages)

    def chat_json(self, messages: Sequence[Message]) -> Any:
        return self._next(messages)


def make_task(
    description: str = "Write report",
    start: str = "09:00",
    end: str = "10:00",
    *,
    category: str = "deep",
    day: date = TODAY,
) -> Task:
    return Task.new(description, category, day, start, end)


def proposal(description: str, start: str, end: str, *, day: str = "2025-03-10", category: str = "deep") -> dict:
    return {
        "description": description,
        "category": category,
        "scheduled_date": day,
        "scheduled_start": start,
        "scheduled_end": end,
    }


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):  # pragma: no cover - sqlite setup
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    yield TestingSessionLocal
    engine.dispose()


@pytest.fixture()
def repository(session_factory):
    db = session_factory()
    try:
        yield SqlTaskRepository(db)
    finally:
        db.close()


@pytest.fixture()
def fake_llm() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture()
def client(session_factory, fake_llm):
    from deepwork.api.deps import get_clock, get_llm_client_factory, get_session_store
    from deepwork.db.deps import get_db
    from deepwork.main import app
    from deepwork.services.planning_sessions import PlanningSessionStore

    store = PlanningSessionStore()

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: (lambda: NOW)
    app.dependency_overrides[get_llm_client_factory] = lambda: (lambda settings: fake_llm)
    app.dependency_overrides[get_session_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
