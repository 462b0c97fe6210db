"""In-process registry of planning sessions served over HTTP."""
from __future__ import annotations

from threading import Lock
from typing import Dict

from deepwork.services.planner import NoActiveSessionError, PlanningSession


class PlanningSessionStore:
    """Thread-safe map of session id to PlanningSession.

    Only the dict is guarded; a session itself is mutated by one request at a time.
    """

    def __init__(self) -> None:
        self._sessions: Dict[str, PlanningSession] = {}
        self._lock = Lock()

    def create(self) -> PlanningSession:
        session = PlanningSession()
        with self._lock:
            self._sessions[session.id] = session
        return session

    def get(self, session_id: str) -> PlanningSession:
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise NoActiveSessionError(f"no active planning session {session_id}")
        return session

    def discard(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


session_store = PlanningSessionStore()
