"""Connection lifecycle of the live subscriber as a pure state machine.

``transition`` maps a (state, event) pair to the next state and the effects
the subscriber must carry out. It performs no I/O, which keeps every rule of
the lifecycle testable without a socket.
"""

from dataclasses import dataclass, replace
from enum import Enum

from catalog_notifications.enums import ConnectionStatus


class ConnectionEvent(str, Enum):
    """Inputs of the connection state machine."""

    CONNECT_REQUESTED = "connect_requested"
    IDENTITY_FAILED = "identity_failed"
    CONNECTED = "connected"
    TRANSPORT_CLOSED = "transport_closed"
    TRANSPORT_ERROR = "transport_error"
    PROTOCOL_ERROR = "protocol_error"
    MANUAL_RECONNECT = "manual_reconnect"
    SHUTDOWN = "shutdown"


class Effect(str, Enum):
    """Side effects requested by a transition."""

    SUBSCRIBE = "subscribe"
    ALREADY_SUBSCRIBED = "already_subscribed"
    UNSUBSCRIBE = "unsubscribe"
    FETCH_SNAPSHOT = "fetch_snapshot"
    CLOSE_TRANSPORT = "close_transport"
    SCHEDULE_RETRY = "schedule_retry"
    IGNORED = "ignored"


@dataclass(frozen=True)
class ConnectionState:
    """Snapshot of the connection lifecycle.

    Attributes:
        status: Status observable by the UI
        reconnect_attempts: Failed connections since the last success
        subscribed: Whether a topic subscription handle is held
        has_connected: Whether the session has been connected at least once
    """

    status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    reconnect_attempts: int = 0
    subscribed: bool = False
    has_connected: bool = False


Transition = tuple[ConnectionState, tuple[Effect, ...]]

_IDLE = (ConnectionStatus.DISCONNECTED, ConnectionStatus.ERROR)


def _failed(state: ConnectionState, status: ConnectionStatus) -> ConnectionState:
    return replace(
        state,
        status=status,
        reconnect_attempts=state.reconnect_attempts + 1,
        subscribed=False,
    )


def transition(state: ConnectionState, event: ConnectionEvent) -> Transition:
    """Apply ``event`` to ``state``.

    Returns:
        The next state and the effects to run, in order
    """
    status = state.status

    if event is ConnectionEvent.CONNECT_REQUESTED:
        if status in _IDLE:
            return replace(state, status=ConnectionStatus.CONNECTING), ()
        return state, (Effect.IGNORED,)

    if event is ConnectionEvent.IDENTITY_FAILED:
        if status is ConnectionStatus.CONNECTING:
            return replace(state, status=ConnectionStatus.ERROR), ()
        return state, (Effect.IGNORED,)

    if event is ConnectionEvent.CONNECTED:
        if status is not ConnectionStatus.CONNECTING:
            return state, (Effect.IGNORED,)
        effects = [Effect.ALREADY_SUBSCRIBED if state.subscribed else Effect.SUBSCRIBE]
        if not state.has_connected:
            effects.append(Effect.FETCH_SNAPSHOT)
        next_state = replace(
            state,
            status=ConnectionStatus.CONNECTED,
            reconnect_attempts=0,
            subscribed=True,
            has_connected=True,
        )
        return next_state, tuple(effects)

    if event is ConnectionEvent.TRANSPORT_CLOSED:
        if status in _IDLE:
            return state, (Effect.IGNORED,)
        return _failed(state, ConnectionStatus.DISCONNECTED), (Effect.SCHEDULE_RETRY,)

    if event is ConnectionEvent.TRANSPORT_ERROR:
        return _failed(state, ConnectionStatus.ERROR), (Effect.SCHEDULE_RETRY,)

    if event is ConnectionEvent.PROTOCOL_ERROR:
        return _failed(state, ConnectionStatus.ERROR), (
            Effect.CLOSE_TRANSPORT,
            Effect.SCHEDULE_RETRY,
        )

    if event is ConnectionEvent.MANUAL_RECONNECT:
        if status is ConnectionStatus.CONNECTING:
            return state, (Effect.IGNORED,)
        next_state = replace(
            state,
            status=ConnectionStatus.CONNECTING,
            reconnect_attempts=0,
            subscribed=False,
        )
        return next_state, (Effect.UNSUBSCRIBE, Effect.CLOSE_TRANSPORT)

    if event is ConnectionEvent.SHUTDOWN:
        next_state = replace(state, status=ConnectionStatus.DISCONNECTED, subscribed=False)
        return next_state, (Effect.UNSUBSCRIBE, Effect.CLOSE_TRANSPORT)

    raise ValueError(f"Unknown connection event: {event!r}")
