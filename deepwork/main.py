"""Main FastAPI application for the deep-work planner."""
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from deepwork import __version__
from deepwork.api.routes.plans import router as plans_router
from deepwork.api.routes.tasks import router as tasks_router
from deepwork.api.routes.weeks import router as weeks_router
from deepwork.core.config import settings
from deepwork.core.logging import configure_logging
from deepwork.core.middleware import RequestContextMiddleware
from deepwork.db.session import init_db
from deepwork.domain.errors import DeepWorkError, OverlapError, TaskNotFoundError, TaskValidationError
from deepwork.llm.client import PlanningError
from deepwork.llm.factory import LLMConfigurationError
from deepwork.observability.client import init_opik
from deepwork.observability.tracing import trace
from deepwork.services.planner import NoActiveSessionError, UnresolvedValidationError

configure_logging(log_level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name, version=__version__, debug=settings.debug)
app.add_middleware(RequestContextMiddleware)
app.include_router(tasks_router)
app.include_router(weeks_router)
app.include_router(plans_router)


def _error_body(request: Request, kind: str, message: str, **extra) -> dict:
    body = {"detail": message, "kind": kind, "request_id": getattr(request.state, "request_id", None)}
    body.update(extra)
    return body


@app.exception_handler(TaskNotFoundError)
async def task_not_found_handler(request: Request, exc: TaskNotFoundError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=_error_body(request, exc.kind.value, exc.message, task_id=exc.context.get("task_id")),
    )


@app.exception_handler(OverlapError)
async def overlap_handler(request: Request, exc: OverlapError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=_error_body(request, exc.kind.value, exc.message, conflict_id=exc.context.get("conflict_id")),
    )


@app.exception_handler(TaskValidationError)
async def task_validation_handler(request: Request, exc: TaskValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body(request, exc.kind.value, exc.message),
    )


@app.exception_handler(DeepWorkError)
async def domain_error_handler(request: Request, exc: DeepWorkError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(request, exc.kind.value, exc.message),
    )


@app.exception_handler(NoActiveSessionError)
async def no_session_handler(request: Request, exc: NoActiveSessionError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=_error_body(request, "no_active_session", str(exc)),
    )


@app.exception_handler(UnresolvedValidationError)
async def unresolved_plan_handler(request: Request, exc: UnresolvedValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=_error_body(
            request,
            "unresolved_validation",
            str(exc),
            validation_errors=[
                {"task_index": issue.task_index, "field": issue.field, "message": issue.message}
                for issue in exc.issues
            ],
        ),
    )


@app.exception_handler(LLMConfigurationError)
async def llm_configuration_handler(request: Request, exc: LLMConfigurationError) -> JSONResponse:
    logger.warning("LLM is not configured: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=_error_body(request, "llm_not_configured", str(exc)),
    )


@app.exception_handler(PlanningError)
async def planning_error_handler(request: Request, exc: PlanningError) -> JSONResponse:
    logger.error("Planning failed: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content=_error_body(request, "planning_failed", str(exc)),
    )


@app.on_event("startup")
async def startup() -> None:
    """Create tables and initialize observability after the event loop starts."""
    init_db()
    init_opik()


@app.get("/health", tags=["health"], summary="Readiness probe")
async def health_check(request: Request) -> dict[str, str]:
    """Return a simple status payload so automation can probe the API."""
    with trace("http.health_check", metadata={"route": "/health"}, request_id=request.state.request_id):
        return {"status": "ok"}
