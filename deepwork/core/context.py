"""Per-request and per-planning-session context."""
from __future__ import annotations

from contextvars import ContextVar

request_id_ctx_var: ContextVar[str | None] = ContextVar("request_id", default=None)
session_id_ctx_var: ContextVar[str | None] = ContextVar("planning_session_id", default=None)


def get_request_id() -> str | None:
    """Return the current request id if available."""
    return request_id_ctx_var.get()


def get_session_id() -> str | None:
    """Return the planning session being served, if any."""
    return session_id_ctx_var.get()
