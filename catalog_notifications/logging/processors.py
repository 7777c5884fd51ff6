"""Structlog processors adding client metadata, and the console renderer."""

import os
import threading

from colorama import Fore, Style, init
from structlog.typing import EventDict, WrappedLogger

from catalog_notifications.config import get_settings

LEVEL_COLORS = {
    "DEBUG": Fore.CYAN,
    "INFO": Fore.GREEN,
    "WARNING": Fore.YELLOW,
    "ERROR": Fore.RED,
    "CRITICAL": Fore.RED + Style.BRIGHT,
}

# Shown in the line header, or only kept in the JSON file
CONSOLE_HIDDEN_KEYS = frozenset(
    {
        "event",
        "level",
        "logger",
        "timestamp",
        "session_id",
        "user_id",
        "service_name",
        "environment",
        "process_id",
        "thread_id",
    }
)

init(autoreset=True)


def add_service_context(
    _logger: WrappedLogger, _method_name: str, event_dict: EventDict
) -> EventDict:
    """Stamp every event with the client's service name and environment.

    Both values come from the cached settings, so they follow the
    ``CATALOG_NOTIFICATIONS_SERVICE_NAME`` and
    ``CATALOG_NOTIFICATIONS_ENVIRONMENT`` variables.
    """
    settings = get_settings()
    event_dict.setdefault("service_name", settings.service_name)
    event_dict.setdefault("environment", settings.environment)
    return event_dict


def add_process_info(
    _logger: WrappedLogger, _method_name: str, event_dict: EventDict
) -> EventDict:
    """Record the emitting process and thread.

    Snapshot fetches and mutations run in worker threads, so the thread id
    tells them apart from the event loop.
    """
    event_dict["process_id"] = os.getpid()
    event_dict["thread_id"] = threading.get_ident()
    return event_dict


def _paint(color: str, text) -> str:
    return f"{color}{text}{Style.RESET_ALL}"


def console_renderer(
    _logger: WrappedLogger, _method_name: str, event_dict: EventDict
) -> str:
    """Render an event as one colored console line.

    Layout: ``[LEVEL] timestamp | session[/user] | logger | event key=value ...``

    Args:
        _logger: Unused, part of the structlog processor signature.
        _method_name: Unused, part of the structlog processor signature.
        event_dict: The event to render.

    Returns:
        The colored line.
    """
    level = str(event_dict.get("level", "info")).upper()
    session = event_dict.get("session_id") or "no-session"
    if event_dict.get("user_id") is not None:
        session = f"{session}/{event_dict['user_id']}"

    header = " | ".join(
        [
            _paint(Fore.WHITE, event_dict.get("timestamp", "")),
            _paint(Fore.MAGENTA, session),
            _paint(Fore.BLUE, event_dict.get("logger", "root")),
            str(event_dict.get("event", "")),
        ]
    )
    line = f"{_paint(LEVEL_COLORS.get(level, Fore.WHITE), f'[{level:<8}]')} {header}"

    extras = [
        f"{key}={value}"
        for key, value in event_dict.items()
        if key not in CONSOLE_HIDDEN_KEYS
    ]
    if extras:
        line = f"{line} {_paint(Fore.YELLOW, ' '.join(extras))}"
    return line
