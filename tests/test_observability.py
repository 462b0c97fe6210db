"""Tests ensuring observability wiring is safe by default."""
from __future__ import annotations

import logging
from typing import Any, Dict

import pytest

from deepwork.core.context import request_id_ctx_var, session_id_ctx_var
from deepwork.core.logging import ContextFilter
from deepwork.observability import metrics, tracing


class _DummyTrace:
    def __init__(self, name: str, metadata: Dict[str, Any]):
        self.name = name
        self.metadata = metadata
        self.updates: list[Dict[str, Any]] = []
        self.ended = False

    def update(self, **kwargs) -> None:
        self.updates.append(kwargs)

    def end(self) -> None:
        self.ended = True


class _DummyClient:
    def __init__(self):
        self.traces: list[_DummyTrace] = []

    def trace(self, name: str, metadata: Dict[str, Any] | None = None):
        trace = _DummyTrace(name, metadata or {})
        self.traces.append(trace)
        return trace


def test_app_import_succeeds_when_opik_is_disabled(monkeypatch) -> None:
    monkeypatch.setenv("DEEPWORK_OPIK_ENABLED", "false")
    monkeypatch.delenv("DEEPWORK_OPIK_API_KEY", raising=False)

    import deepwork.main as main_module
    import deepwork.observability.client as client_module

    client_module.reset_opik()
    assert client_module.init_opik() is None
    assert hasattr(main_module, "app")


def test_trace_is_a_no_op_without_opik(monkeypatch) -> None:
    monkeypatch.setattr(tracing, "get_opik_client", lambda: None)

    with tracing.trace("planner.attempt", metadata={"attempt": 1}) as span:
        assert span is None


def test_trace_carries_context_ids(monkeypatch) -> None:
    dummy_client = _DummyClient()
    monkeypatch.setattr(tracing, "get_opik_client", lambda: dummy_client)
    request_token = request_id_ctx_var.set("req-1")
    session_token = session_id_ctx_var.set("sess-1")
    try:
        with tracing.trace("planner.save", metadata={"tasks": 2, "empty": ""}):
            pass
    finally:
        session_id_ctx_var.reset(session_token)
        request_id_ctx_var.reset(request_token)

    recorded = dummy_client.traces[0]
    assert recorded.metadata == {"tasks": 2, "session_id": "sess-1", "request_id": "req-1"}
    assert recorded.ended is True


def test_trace_records_errors(monkeypatch) -> None:
    dummy_client = _DummyClient()
    monkeypatch.setattr(tracing, "get_opik_client", lambda: dummy_client)

    with pytest.raises(RuntimeError):
        with tracing.trace("planner.attempt"):
            raise RuntimeError("boom")

    recorded = dummy_client.traces[0]
    assert recorded.updates == [{"error_info": {"message": "boom", "type": "RuntimeError"}}]
    assert recorded.ended is True


def test_log_metric_records_a_trace(monkeypatch) -> None:
    dummy_client = _DummyClient()
    monkeypatch.setattr(metrics, "get_opik_client", lambda: dummy_client)

    metrics.log_metric(metrics.PLAN_ATTEMPTS, 2, metadata={"valid": True})

    recorded = dummy_client.traces[0]
    assert recorded.name == "metric:planner.attempts"
    assert recorded.metadata == {"value": 2, "valid": True}


def test_context_filter_stamps_records() -> None:
    record = logging.LogRecord("deepwork", logging.INFO, __file__, 1, "hello", (), None)
    token = session_id_ctx_var.set("sess-9")
    try:
        ContextFilter().filter(record)
    finally:
        session_id_ctx_var.reset(token)

    assert record.session_id == "sess-9"
    assert record.request_id == "-"
