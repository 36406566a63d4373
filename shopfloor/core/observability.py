"""
Observability Infrastructure

Structured logging and operation metrics for the production engine.
"""

import logging
import sys
from typing import Any

import structlog
from prometheus_client import Counter

from .config import Settings, settings as default_settings

ENGINE_OPERATIONS = Counter(
    "shopfloor_engine_operations_total",
    "Total engine operations",
    ["operation", "status"],
)

CASCADE_STEPS = Counter(
    "shopfloor_cascade_steps_total",
    "Progress cascade steps by level and outcome",
    ["level", "outcome"],
)

BREAKDOWN_EVENTS = Counter(
    "shopfloor_breakdown_events_total",
    "Breakdown reports and resolutions",
    ["event"],
)


def setup_structured_logging(settings: Settings | None = None) -> None:
    """Configure structlog on top of the standard library logger."""
    settings = settings or default_settings
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if settings.LOG_FORMAT == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(colors=settings.ENVIRONMENT == "local")
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger for the given module name."""
    return structlog.get_logger(name)


def record_operation(operation: str, status: str) -> None:
    ENGINE_OPERATIONS.labels(operation=operation, status=status).inc()


def record_cascade_step(level: str, outcome: str) -> None:
    CASCADE_STEPS.labels(level=level, outcome=outcome).inc()


def record_breakdown_event(event: str) -> None:
    BREAKDOWN_EVENTS.labels(event=event).inc()
