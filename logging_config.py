"""Structured logging configuration for the SignalFx emitter"""
import logging
import os
import sys
from typing import Any, Dict, List
import structlog
from structlog.stdlib import LoggerFactory
from structlog.dev import ConsoleRenderer
from structlog.processors import JSONRenderer, TimeStamper, StackInfoRenderer
from config import HandlerConfig


# Identity carried by every record a handler logs
AGENT_NAME = "fullerite"
HANDLER_PKG = "handler"

# Chatty libraries kept at WARNING
_QUIET_LOGGERS = ("httpx", "httpcore")


def _is_development() -> bool:
    return os.getenv("ENVIRONMENT", "production").lower() == "development"


def _build_processors(development: bool) -> List[Any]:
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        TimeStamper(fmt="iso"),
        StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    processors.append(ConsoleRenderer() if development else JSONRenderer())
    return processors


def _build_handlers(config: HandlerConfig, level: int) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if config.log_file is not None:
        config.log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(str(config.log_file)))
    for handler in handlers:
        handler.setLevel(level)
    return handlers


def setup_structured_logging(config: HandlerConfig) -> None:
    """Route structlog through stdlib logging at the configured level.

    Records render as JSON unless ENVIRONMENT=development, which switches to
    the console renderer. A file handler is added only when ``log_file`` is set.
    """
    level = getattr(logging, config.log_level.upper())

    structlog.configure(
        processors=_build_processors(_is_development()),
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=_build_handlers(config, level),
        force=True,
    )

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance"""
    return structlog.get_logger(name)


def get_handler_logger(name: str, handler_name: str) -> structlog.stdlib.BoundLogger:
    """Logger bound with the agent, package and handler identity"""
    return get_logger(name).bind(app=AGENT_NAME, pkg=HANDLER_PKG, handler=handler_name)


def log_emission(logger: structlog.stdlib.BoundLogger, datapoint_count: int, emission_time: float, dropped: int = 0) -> None:
    """Log a flush to the backend with structured data"""
    logger.info(
        "POST to SignalFx completed",
        datapoint_count=datapoint_count,
        emission_time_seconds=round(emission_time, 3),
        dropped=dropped,
        event_type="signalfx_emission"
    )


def log_error(logger: structlog.stdlib.BoundLogger, error: Exception, context: Dict[str, Any] = None) -> None:
    """Log error with structured context"""
    logger.error(
        "Error occurred",
        error=str(error),
        error_type=type(error).__name__,
        context=context or {},
        event_type="error"
    )
