"""Structlog setup: JSON lines to a rotating file, colored lines to the console."""

import logging
import logging.handlers
from pathlib import Path

import structlog
from structlog.typing import Processor

from catalog_notifications.config import Settings, get_settings
from catalog_notifications.logging.processors import (
    add_process_info,
    add_service_context,
    console_renderer,
)

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5

# Applied to records from libraries that log through stdlib (requests, websockets)
_FOREIGN_CHAIN: list[Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
]


def _json_file_handler(path: str, level: int) -> logging.Handler:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.processors.JSONRenderer(),
            foreign_pre_chain=[*_FOREIGN_CHAIN, add_service_context, add_process_info],
        )
    )
    return handler


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=console_renderer,
            foreign_pre_chain=_FOREIGN_CHAIN,
        )
    )
    return handler


def setup_logging(settings: Settings | None = None) -> None:
    """Route structlog and stdlib logging to a JSON file and the console.

    The file gets every field, service and process metadata included, and
    rotates at 10MB keeping five backups. The console gets one colored line
    per event. Session and user ids bound with ``bind_session_context`` show
    up in both.

    Args:
        settings: Client settings; defaults to the cached environment settings.
    """
    settings = settings or get_settings()
    level_name = settings.log_level.upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    structlog.configure(
        processors=[
            *_FOREIGN_CHAIN,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            add_service_context,
            add_process_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(_json_file_handler(settings.log_file_path, level))
    root.addHandler(_console_handler(level))
    root.setLevel(level)

    # websockets logs every frame at DEBUG
    logging.getLogger("websockets").setLevel(max(level, logging.INFO))

    structlog.get_logger(__name__).info(
        "Logging configured",
        log_file=settings.log_file_path,
        log_level=level_name,
    )
