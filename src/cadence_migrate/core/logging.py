"""Logging configuration for cadence-migrate."""
import sys
from typing import Any, List, Optional, TextIO

import structlog

LEVELS = {
    "DEBUG": 10,
    "INFO": 20,
    "WARNING": 30,
    "ERROR": 40,
}


def configure_logging(log_level: str = "INFO", log_file: Optional[str] = None, json_output: bool = True) -> None:
    """Configure structured logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional file path for logging (stderr by default)
        json_output: Render JSON lines; False switches to the console renderer
    """
    numeric_level = LEVELS.get(log_level.upper(), 20)

    renderer: Any = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(colors=False)
    processors: List[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        renderer,
    ]

    sink: TextIO = sys.stderr if log_file is None else open(log_file, "a", encoding="utf-8")

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=sink),
        # Loggers re-read the configuration so each CLI run can redirect output
        cache_logger_on_first_use=False,
    )


def bind_run_context(**values: Any) -> None:
    """Attach values (run id, root path) to every subsequent log record."""
    structlog.contextvars.bind_contextvars(**values)


def clear_run_context() -> None:
    structlog.contextvars.clear_contextvars()


def get_logger(name: str) -> Any:
    """Get a logger instance with the given name.

    Args:
        name: Logger name (typically module or tool name)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)
