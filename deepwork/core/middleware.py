"""HTTP middleware binding request and planning-session context."""
from __future__ import annotations

from typing import Callable
from uuid import uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from deepwork.core.context import request_id_ctx_var, session_id_ctx_var

REQUEST_ID_HEADER = "X-Request-Id"
_PLANS_PREFIX = "/plans/"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assign a request id, echo it back, and expose the plan session id to logs."""

    async def dispatch(self, request: Request, call_next: Callable[[Request], Response]) -> Response:  # type: ignore[override]
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
        request.state.request_id = request_id
        request_token = request_id_ctx_var.set(request_id)
        session_token = session_id_ctx_var.set(_session_from_path(request.url.path))

        try:
            response = await call_next(request)
        finally:
            session_id_ctx_var.reset(session_token)
            request_id_ctx_var.reset(request_token)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def _session_from_path(path: str) -> str | None:
    if not path.startswith(_PLANS_PREFIX):
        return None
    session_id = path[len(_PLANS_PREFIX):].split("/", 1)[0]
    return session_id or None
