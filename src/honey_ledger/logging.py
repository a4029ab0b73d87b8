"""
Structured JSON logging for the honey ledger.

Usage:
    from honey_ledger.logging import configure_logging, get_logger

    # Once, by whatever process embeds the engine
    configure_logging("honey-ledger", log_level="INFO")

    # In any module
    logger = get_logger(__name__)
    logger.info("drum_committed", drum_id=drum.id, total_kg=str(drum.total_kg))
"""

import logging
import sys
from typing import Any, cast

import structlog
from structlog.types import EventDict, Processor

_configured = False


def configure_logging(service_name: str, log_level: str = "INFO", *, force: bool = False) -> None:
    """
    Configure structured JSON logging.

    Modifies global logging state; call it once at startup. Repeated calls are
    ignored unless ``force`` is set (tests reconfigure between cases).

    Args:
        service_name: Value stamped into the ``service`` field of every entry
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        force: Re-apply configuration even if already configured
    """
    global _configured
    if _configured and not force:
        return

    level = getattr(logging, log_level.upper(), logging.INFO)

    def add_service_name(
        _logger: Any,
        _method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        event_dict["service"] = service_name
        return event_dict

    shared_processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        add_service_name,
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.dict_tracebacks,
        structlog.processors.JSONRenderer(),
    ]

    structlog.configure(
        processors=shared_processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=not force,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))

    root_logger = logging.getLogger()
    for h in root_logger.handlers[:]:
        root_logger.removeHandler(h)

    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    _configured = True


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """
    Get a structured logger for a module.

    Args:
        name: Module name (typically __name__)
    """
    return cast(structlog.BoundLogger, structlog.get_logger(name))
