"""Shared FastAPI dependencies for the planning engine."""
from __future__ import annotations

from datetime import datetime
from typing import Callable

from fastapi import Depends
from sqlalchemy.orm import Session

from deepwork.core.config import Settings, get_settings
from deepwork.db.deps import get_db
from deepwork.db.repository import SqlTaskRepository
from deepwork.domain.timeutil import local_now
from deepwork.llm.client import LLMClient
from deepwork.llm.factory import create_llm_client
from deepwork.services.planning_sessions import PlanningSessionStore, session_store
from deepwork.services.scheduler import Scheduler


def get_repository(db: Session = Depends(get_db)) -> SqlTaskRepository:
    return SqlTaskRepository(db)


def get_scheduler(settings: Settings = Depends(get_settings)) -> Scheduler:
    return Scheduler.from_settings(settings)


def get_clock(settings: Settings = Depends(get_settings)) -> Callable[[], datetime]:
    """Return a callable giving "now" in the configured time zone."""
    return lambda: local_now(settings.timezone)


def get_llm_client_factory() -> Callable[[Settings], LLMClient]:
    """Return the callable that builds the configured LLM client."""
    return create_llm_client


def get_session_store() -> PlanningSessionStore:
    return session_store
