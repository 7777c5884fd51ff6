"""Context-local session tracking for log correlation.

Session identifiers are stored with ``structlog.contextvars`` so that every
coroutine spawned by a session (live subscriber, gateway calls) carries the
same ``session_id`` and ``user_id`` in its log events.
"""

import structlog


def bind_session_context(session_id: str, user_id: int | None = None) -> None:
    """Bind the session (and optionally user) identifiers to the current context.

    Args:
        session_id: Unique identifier of the notification session.
        user_id: Resolved user ID, when known.
    """
    context: dict[str, object] = {"session_id": session_id}
    if user_id is not None:
        context["user_id"] = user_id
    structlog.contextvars.bind_contextvars(**context)


def get_session_id() -> str | None:
    """Retrieve the session ID bound to the current context.

    Returns:
        The current session ID, or None if not set.
    """
    return structlog.contextvars.get_contextvars().get("session_id")


def clear_session_context() -> None:
    """Remove the session identifiers from the current context."""
    structlog.contextvars.unbind_contextvars("session_id", "user_id")
