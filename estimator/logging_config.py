"""
Structured logging setup.

structlog renders through the standard library so uvicorn and library
loggers share one output stream.
"""
import logging
import sys

import structlog

from estimator.middleware.logging import add_correlation_id_processor, redact_sensitive_processor

# Libraries that log every request at INFO.
QUIET_LOGGERS = ("httpx", "httpcore", "openpyxl")


def configure_logging(log_level: str = "INFO", json_logs: bool = True) -> None:
    """Configure structlog and the root logger."""
    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            add_correlation_id_processor,
            redact_sensitive_processor,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level.upper())
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
