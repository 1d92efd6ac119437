"""Structured logging setup for loggraph."""

import structlog
from pathlib import Path
from typing import Any, Optional
import os


def configure_logging(log_dir: Optional[Path] = None) -> None:
    """
    Configure structlog for JSON logging to ~/.cache/loggraph/logs/loggraph.log.

    Log level can be controlled via LOGGRAPH_LOG_LEVEL environment variable:
    - Set to "DEBUG" to see per-file and per-block indexing details
    - Defaults to "INFO" if not set

    Log levels:
    - DEBUG: Per-file ingestion, store submissions, edge resolution
    - INFO: Pass start/finish, phase transitions, counts
    - WARNING: Skipped files, unresolved links in lenient mode
    - ERROR: Store failures, linking failures

    Example:
        # Enable debug logging
        export LOGGRAPH_LOG_LEVEL=DEBUG
        loggraph index ~/logseq

        # View logs with jq for readability:
        tail -f ~/.cache/loggraph/logs/loggraph.log | jq .

    Args:
        log_dir: Optional log directory (default: ~/.cache/loggraph/logs)
    """
    if log_dir is None:
        log_dir = Path.home() / ".cache" / "loggraph" / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "loggraph.log"

    log_level = os.environ.get("LOGGRAPH_LOG_LEVEL", "INFO").upper()

    valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR"]
    if log_level not in valid_levels:
        log_level = "INFO"

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=open(log_file, "a")),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ of calling module)

    Returns:
        Structured logger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("file_indexed", path="pages/foo.md", blocks=12)
    """
    return structlog.get_logger(name)
