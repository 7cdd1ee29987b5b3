"""
Request logging middleware and structlog processors.

Every request carries a correlation ID (taken from ``X-Correlation-ID`` or
generated) that is attached to all log entries emitted while serving it.
Credentials such as LLM API keys are redacted before anything is rendered.
"""
import time
import uuid
from contextvars import ContextVar
from typing import Any, Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

CORRELATION_HEADER = "X-Correlation-ID"
REDACTED = "[REDACTED]"
MAX_REDACTION_DEPTH = 5

correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

logger = structlog.get_logger(__name__)

SENSITIVE_FIELDS = ("api_key", "apikey", "token", "authorization", "secret", "password")


def get_correlation_id() -> str:
    return correlation_id.get()


def _is_sensitive(key: Any) -> bool:
    lowered = str(key).lower()
    return any(field in lowered for field in SENSITIVE_FIELDS)


def _redact_value(value: Any, depth: int) -> Any:
    if isinstance(value, dict):
        return redact_sensitive_data(value, depth)
    if isinstance(value, list):
        return [_redact_value(item, depth) for item in value]
    return value


def redact_sensitive_data(data: dict, depth: int = 0) -> dict:
    """
    Return a copy of ``data`` with credential-like keys masked.

    Nested dicts and lists are walked up to ``MAX_REDACTION_DEPTH`` levels.
    """
    if depth > MAX_REDACTION_DEPTH or not isinstance(data, dict):
        return data
    return {
        key: REDACTED if _is_sensitive(key) else _redact_value(value, depth + 1)
        for key, value in data.items()
    }


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Assigns a correlation ID to each request and echoes it back."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        token = correlation_id.set(request_id)
        try:
            response = await call_next(request)
        finally:
            correlation_id.reset(token)
        response.headers[CORRELATION_HEADER] = request_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status and duration of every API request."""

    SKIP_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}

    # Generation requests wait on the LLM provider.
    SLOW_REQUEST_MS = 5000

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in self.SKIP_PATHS:
            return await call_next(request)

        log = logger.bind(
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else None,
        )
        started = time.perf_counter()
        log.info("request_started")

        try:
            response = await call_next(request)
        except Exception as e:
            log.error(
                "request_failed",
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=_elapsed_ms(started),
            )
            raise

        duration_ms = _elapsed_ms(started)
        log.info("request_completed", status_code=response.status_code, duration_ms=duration_ms)
        if duration_ms > self.SLOW_REQUEST_MS:
            log.warning("slow_request", duration_ms=duration_ms)
        return response


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


def add_correlation_id_processor(logger: Any, method_name: str, event_dict: dict) -> dict:
    """Structlog processor adding the current correlation ID."""
    event_dict["correlation_id"] = get_correlation_id()
    return event_dict


def redact_sensitive_processor(logger: Any, method_name: str, event_dict: dict) -> dict:
    """Structlog processor masking credential-like keys."""
    return redact_sensitive_data(event_dict)
