"""
Structured logging setup.

All modules log through structlog; events are rendered as JSON lines on
stdout with the request id bound by the HTTP middleware in main.py.
"""
import logging
import sys
from typing import Any

import structlog


def setup_logging(log_level: str = "INFO", app_env: str = "development") -> None:
    level = getattr(logging, log_level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    if not any(getattr(h, "_portal_handler", False) for h in root_logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter("%(message)s"))
        handler._portal_handler = True  # type: ignore[attr-defined]
        root_logger.addHandler(handler)

    logging.getLogger("pymongo").setLevel(logging.WARNING)

    structlog.get_logger(__name__).info("logging_configured", log_level=log_level, app_env=app_env)


def get_logger(name: str) -> Any:
    return structlog.get_logger(name)
