"""
Structured logging for Janus.

structlog renders through stdlib logging, so httpx and py-clob-client
output lands on the same handlers. Every Janus logger lives under the
``janus`` namespace. The optional log file doubles as the persistent
trading history.
"""
import logging
import sys
from pathlib import Path
from typing import Optional

import structlog

from janus.core.errors import ConfigurationError

ROOT_LOGGER = "janus"

_SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]


def _file_handler(log_file: str) -> logging.FileHandler:
    """Append-mode handler for the history file, creating its directory."""
    path = Path(log_file)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(path, encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"janus.log_file {log_file} is not writable", cause=e) from e


def _renderer(json_output: bool, colors: bool) -> list[structlog.types.Processor]:
    if json_output:
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [
        structlog.dev.ConsoleRenderer(
            colors=colors,
            exception_formatter=structlog.dev.plain_traceback,
        )
    ]


def setup_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: Optional[str] = None,
) -> structlog.stdlib.BoundLogger:
    """Configure structlog and the stdlib root logger.

    Args:
        level: Log level name; unknown names fall back to INFO.
        json_output: Render JSON lines instead of console output.
        log_file: Also append every line to this file.

    Raises:
        ConfigurationError: If the log file cannot be opened.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(_file_handler(log_file))
    for handler in handlers:
        handler.setLevel(log_level)

    logging.basicConfig(format="%(message)s", level=log_level, handlers=handlers, force=True)

    # Plain console text when a history file is written
    structlog.configure(
        processors=_SHARED_PROCESSORS + _renderer(json_output, colors=log_file is None),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    return get_logger()


def get_logger(name: str = ROOT_LOGGER) -> structlog.stdlib.BoundLogger:
    """Logger under the janus namespace.

    Module names (``janus.services.dispatcher``) pass through unchanged;
    short names are prefixed, so ``"main"`` becomes ``janus.main``.
    """
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return structlog.get_logger(name)
