"""Planner and repository counters recorded as Opik metric traces."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from deepwork.core.context import get_session_id
from deepwork.observability.client import get_opik_client

logger = logging.getLogger(__name__)

PLAN_ATTEMPTS = "planner.attempts"
PLAN_VALIDATION_ERRORS = "planner.validation_errors"
PLAN_TASKS_SAVED = "planner.tasks_saved"


def log_metric(name: str, value: float | int, metadata: Optional[Dict[str, Any]] = None) -> None:
    """Record a metric when Opik is enabled; otherwise only debug-log it."""
    client = get_opik_client()
    if not client:
        logger.debug("metric %s=%s", name, value)
        return

    payload: Dict[str, Any] = {"value": value}
    session_id = get_session_id()
    if session_id:
        payload["session_id"] = session_id
    if metadata:
        payload.update(metadata)

    try:
        client.trace(name=f"metric:{name}", metadata=payload)
    except Exception as exc:  # pragma: no cover - depends on the remote service
        logger.debug("Unable to record metric %s: %s", name, exc)
