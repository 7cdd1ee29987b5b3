"""
FastAPI application for the Cost Estimator.

Wires routers, middleware, exception handlers and error tracking.
"""
import os
import traceback

import sentry_sdk
import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

from estimator import __version__
from estimator.api.routes import export, generation, projects, settings as settings_routes
from estimator.config import get_settings
from estimator.exceptions import EstimatorError
from estimator.logging_config import configure_logging
from estimator.middleware.logging import (
    CorrelationIdMiddleware,
    RequestLoggingMiddleware,
    redact_sensitive_data,
)

API_PREFIX = "/api/v1/estimator"

settings = get_settings()
configure_logging(settings.log_level, json_logs=settings.log_json)
logger = structlog.get_logger(__name__)


def _scrub_event(event: dict, hint: dict) -> dict:
    """Strip API keys from Sentry events."""
    request = event.get("request") or {}
    if "data" in request:
        request["data"] = redact_sensitive_data(request["data"])
    if "extra" in event:
        event["extra"] = redact_sensitive_data(event["extra"])
    return event


def init_error_tracking() -> bool:
    """Enable Sentry when SENTRY_DSN is set. Returns whether it was enabled."""
    dsn = os.getenv("SENTRY_DSN")
    if not dsn:
        return False
    sentry_sdk.init(
        dsn=dsn,
        environment=os.getenv("ENVIRONMENT", "development"),
        release=f"cost-estimator@{__version__}",
        traces_sample_rate=float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.1")),
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            LoggingIntegration(level=None, event_level="ERROR"),
        ],
        send_default_pii=False,
        before_send=_scrub_event,
    )
    return True


sentry_enabled = init_error_tracking()

app = FastAPI(
    title="Cost Estimator API",
    description="""
## Project Cost Estimation API

Price projects task by task: each task costs
`size_factor × complexity factor × base rate`.

- **Projects & Tasks**: ordered task lists with totals recalculated on every change
- **Global Settings**: changing the base rate or multipliers re-prices every project
- **LLM Task Generation**: draft tasks from a project description (Claude or OpenAI)
- **Excel Export**: download an estimate workbook

| Complexity | Default factor |
|------------|----------------|
| low | 1 |
| medium | 2 |
| high | 4 |
| veryHigh | 8 |
    """,
    version=__version__,
    openapi_tags=[
        {"name": "Projects", "description": "Projects and their tasks"},
        {"name": "Settings", "description": "Base rate, complexity factors and LLM configuration"},
        {"name": "Generation", "description": "LLM-assisted task drafting"},
        {"name": "Export", "description": "Excel estimate download"},
    ],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Correlation-ID", "Content-Disposition"],
)
# Added last so it runs first and the request logger sees the ID.
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(CorrelationIdMiddleware)

app.include_router(projects.router, prefix=API_PREFIX, tags=["Projects"])
app.include_router(settings_routes.router, prefix=API_PREFIX, tags=["Settings"])
app.include_router(generation.router, prefix=API_PREFIX, tags=["Generation"])
app.include_router(export.router, prefix=API_PREFIX, tags=["Export"])


@app.exception_handler(EstimatorError)
async def estimator_exception_handler(request: Request, exc: EstimatorError):
    """Render estimator errors as ``{error, error_code, message, details}``."""
    log = logger.warning if exc.http_status < 500 else logger.error
    log(
        "estimator_error",
        error_code=exc.error_code,
        message=exc.message,
        details=exc.details,
        path=request.url.path,
    )
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    sentry_sdk.capture_exception(exc)
    logger.error(
        "unhandled_error",
        error_type=type(exc).__name__,
        error=str(exc),
        path=request.url.path,
        traceback=traceback.format_exc(),
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": True,
            "error_code": "EST-999",
            "message": "An unexpected error occurred. Please try again.",
            "details": {"error_type": type(exc).__name__} if settings.debug else {},
        },
    )


@app.on_event("startup")
async def startup_event() -> None:
    logger.info(
        "estimator_starting",
        version=__version__,
        storage_backend=settings.storage_backend,
        sentry_enabled=sentry_enabled,
    )


@app.on_event("shutdown")
async def shutdown_event() -> None:
    logger.info("estimator_stopping")


@app.get("/health", tags=["Health"])
async def health_check() -> dict:
    return {"status": "healthy", "version": __version__}
