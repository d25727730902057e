"""Structured logging setup."""

from __future__ import annotations

import logging

import structlog

SERVICE_NAME = "sideline-access"


def configure_logging(level: str = "info", fmt: str = "json", service: str = SERVICE_NAME) -> None:
    """Configure structlog rendering and tag every event with ``service``.

    ``fmt`` is ``json`` for log shipping or ``text`` for a console.
    """
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if fmt == "json":
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
    )
    structlog.contextvars.bind_contextvars(service=service)
