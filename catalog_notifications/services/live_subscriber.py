"""Live notification subscription over STOMP/WebSocket.

The subscriber resolves the current user, opens the WebSocket, performs the
STOMP handshake and subscribes to the user's notification topic. Every
lifecycle decision goes through ``connection_state.transition``; this module
only carries out the effects it returns.
"""

import asyncio
import contextlib
import itertools
from collections.abc import Awaitable, Callable
from typing import Any
from urllib.parse import urlsplit, urlunsplit

import structlog
import websockets
from pydantic import ValidationError
from websockets.exceptions import ConnectionClosed, WebSocketException

from catalog_notifications.config import Settings, get_settings
from catalog_notifications.constants import (
    HEARTBEAT_GRACE_FACTOR,
    STOMP_RECEIPT_PREFIX,
    STOMP_SUBSCRIPTION_PREFIX,
)
from catalog_notifications.enums import ConnectionStatus
from catalog_notifications.exceptions import (
    ProtocolError,
    SubscriptionError,
)
from catalog_notifications.schemas import Notification
from catalog_notifications.services import stomp
from catalog_notifications.services.connection_state import (
    ConnectionEvent,
    ConnectionState,
    Effect,
    transition,
)
from catalog_notifications.services.notification_api_client import (
    NotificationApiClient,
)

logger = structlog.get_logger(__name__)

# Cap on the backoff exponent; the delay is clamped long before this
_MAX_BACKOFF_EXPONENT = 16

ConnectFactory = Callable[..., Any]
NotificationCallback = Callable[[Notification], object]
SnapshotCallback = Callable[[], Awaitable[object]]
StatusListener = Callable[[ConnectionStatus], None]


def backoff_delay(attempts: int, base: float, maximum: float) -> float:
    """Exponential reconnect delay: base, 2x base, 4x base ... capped at maximum."""
    exponent = min(max(attempts, 1) - 1, _MAX_BACKOFF_EXPONENT)
    return min(base * (2**exponent), maximum)


def parse_notification(body: str) -> Notification:
    """Parse the JSON body of a MESSAGE frame.

    Raises:
        ProtocolError: If the body is not a valid notification
    """
    try:
        return Notification.model_validate_json(body)
    except ValidationError as e:
        raise ProtocolError(
            f"Invalid notification payload: {e.error_count()} validation errors"
        ) from e


class LiveSubscriber:
    """Keeps one STOMP subscription to ``/topic/notifications/{userId}`` alive."""

    def __init__(
        self,
        api_client: NotificationApiClient,
        on_notification: NotificationCallback,
        on_first_connect: SnapshotCallback,
        settings: Settings | None = None,
        on_status_change: StatusListener | None = None,
        connect: ConnectFactory | None = None,
    ):
        """Initialize live subscriber.

        Args:
            api_client: REST client used to resolve the current user
            on_notification: Called with every notification pushed on the topic
            on_first_connect: Coroutine function run after the first successful
                connection of the session, in the background
            settings: Client settings; defaults to the environment settings
            on_status_change: Called whenever the connection status changes
            connect: WebSocket connect factory, ``websockets.connect`` by default
        """
        self._api_client = api_client
        self._on_notification = on_notification
        self._on_first_connect = on_first_connect
        self._settings = settings or get_settings()
        self._on_status_change = on_status_change
        self._connect = connect or websockets.connect

        self._state = ConnectionState()
        self._user_id: int | None = None
        self._websocket: Any = None
        self._subscription_id: str | None = None
        self._subscription_ids = itertools.count()
        self._heartbeat: tuple[int, int] = (0, 0)

        self._task: asyncio.Task | None = None
        self._heartbeat_task: asyncio.Task | None = None
        self._snapshot_task: asyncio.Task | None = None

        self._closed = False
        self._detaching = False
        self._reconnecting = False

    @property
    def state(self) -> ConnectionState:
        """Current connection state."""
        return self._state

    @property
    def status(self) -> ConnectionStatus:
        """Current connection status."""
        return self._state.status

    @property
    def reconnect_attempts(self) -> int:
        """Failed connections since the last successful one."""
        return self._state.reconnect_attempts

    @property
    def user_id(self) -> int | None:
        """ID of the user whose topic is subscribed, once resolved."""
        return self._user_id

    @property
    def topic(self) -> str | None:
        """Destination of the user's notification topic."""
        if self._user_id is None:
            return None
        return f"{self._settings.topic_prefix}/{self._user_id}"

    @property
    def websocket_url(self) -> str:
        """WebSocket URL derived from the API base URL."""
        parts = urlsplit(self._settings.api_base_url)
        scheme = "wss" if parts.scheme == "https" else "ws"
        path = parts.path.rstrip("/") + self._settings.ws_path
        return urlunsplit((scheme, parts.netloc, path, "", ""))

    def backoff_delay(self) -> float:
        """Delay before the next automatic reconnect, in seconds."""
        return backoff_delay(
            self._state.reconnect_attempts,
            self._settings.reconnect_delay,
            self._settings.max_reconnect_delay,
        )

    async def connect(self) -> None:
        """Resolve the current user and start the connection loop.

        Returns once the loop runs in the background. A failed identity lookup
        leaves the subscriber in ``error`` without scheduling a retry.
        """
        if self._closed:
            logger.warning("Live subscriber is closed, ignoring connect request")
            return
        if self._task is not None and not self._task.done():
            logger.info("Live subscriber already running, ignoring connect request")
            return

        effects = await self._handle(ConnectionEvent.CONNECT_REQUESTED)
        if Effect.IGNORED in effects:
            logger.info(
                "Live subscriber already connecting or connected",
                status=self.status.value,
            )
            return
        await self._start()

    async def reconnect(self) -> None:
        """Tear down the current connection and connect again.

        Resets the attempt counter. A request made while a connection attempt
        is already in progress is ignored.
        """
        if self._closed:
            logger.warning("Live subscriber is closed, ignoring reconnect request")
            return
        if self._reconnecting:
            logger.info("Reconnect already in progress, ignoring request")
            return

        self._reconnecting = True
        try:
            logger.info("Manual reconnect requested", status=self.status.value)
            effects = await self._detach(ConnectionEvent.MANUAL_RECONNECT)
            if Effect.IGNORED in effects:
                logger.info("Connection attempt in progress, ignoring reconnect")
                return

            await asyncio.sleep(self._settings.manual_reconnect_delay)
            if self._closed:
                return
            await self._start()
        finally:
            self._reconnecting = False

    async def close(self) -> None:
        """Unsubscribe, disconnect and stop all background work."""
        if self._closed:
            return
        self._closed = True
        await self._detach(ConnectionEvent.SHUTDOWN)

        for task in (self._snapshot_task, self._heartbeat_task):
            await _cancel(task)
        logger.info("Live subscriber closed", user_id=self._user_id)

    async def _start(self) -> None:
        try:
            user = await self._api_client.get_current_user()
        except Exception as e:
            logger.error(
                "Failed to resolve user for live notifications",
                error=str(e),
                error_type=type(e).__name__,
            )
            await self._handle(ConnectionEvent.IDENTITY_FAILED)
            return

        if self._closed:
            return
        self._user_id = user.id
        structlog.contextvars.bind_contextvars(user_id=user.id)
        self._task = asyncio.create_task(
            self._run(), name=f"live-subscriber-{user.id}"
        )

    async def _detach(self, event: ConnectionEvent) -> tuple[Effect, ...]:
        # Transport events raised while tearing down are not state changes
        self._detaching = True
        try:
            return await self._handle(event)
        finally:
            self._detaching = False

    def _dispatch(self, event: ConnectionEvent) -> tuple[Effect, ...]:
        previous = self._state
        self._state, effects = transition(previous, event)

        if Effect.IGNORED in effects:
            logger.debug(
                "Connection event ignored",
                connection_event=event.value,
                status=previous.status.value,
            )
        if self._state.status is not previous.status:
            logger.info(
                "Connection status changed",
                connection_event=event.value,
                previous_status=previous.status.value,
                status=self._state.status.value,
                reconnect_attempts=self._state.reconnect_attempts,
            )
            if self._on_status_change is not None:
                self._on_status_change(self._state.status)
        return effects

    async def _handle(self, event: ConnectionEvent) -> tuple[Effect, ...]:
        effects = self._dispatch(event)
        for effect in effects:
            await self._run_effect(effect)
        return effects

    async def _run_effect(self, effect: Effect) -> None:
        if effect is Effect.SUBSCRIBE:
            await self._subscribe()
        elif effect is Effect.ALREADY_SUBSCRIBED:
            logger.info("Already subscribed, skipping new subscription", topic=self.topic)
        elif effect is Effect.FETCH_SNAPSHOT:
            self._snapshot_task = asyncio.create_task(self._refresh_snapshot())
        elif effect is Effect.UNSUBSCRIBE:
            await self._unsubscribe()
        elif effect is Effect.CLOSE_TRANSPORT:
            await self._close_transport()
        # SCHEDULE_RETRY is carried out by the connection loop

    async def _run(self) -> None:
        while not self._closed:
            try:
                effects = await self._connect_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Live connection attempt failed unexpectedly", topic=self.topic)
                effects = await self._transport_event(ConnectionEvent.TRANSPORT_ERROR)
            if self._closed or Effect.SCHEDULE_RETRY not in effects:
                return

            delay = self.backoff_delay()
            logger.info(
                "Scheduling reconnect",
                delay_seconds=delay,
                reconnect_attempts=self.reconnect_attempts,
            )
            await asyncio.sleep(delay)
            if self._closed:
                return
            await self._handle(ConnectionEvent.CONNECT_REQUESTED)

    async def _transport_event(self, event: ConnectionEvent) -> tuple[Effect, ...]:
        if self._detaching or self._closed:
            return ()
        return await self._handle(event)

    async def _connect_once(self) -> tuple[Effect, ...]:
        url = self.websocket_url
        logger.info("Connecting to live notifications", url=url, topic=self.topic)
        try:
            async with self._connect(
                url,
                open_timeout=self._settings.connect_timeout,
                ping_interval=None,
            ) as websocket:
                self._websocket = websocket
                try:
                    await self._handshake(websocket)
                    await self._handle(ConnectionEvent.CONNECTED)
                    self._start_heartbeat(websocket)
                    await self._read_loop(websocket)
                finally:
                    await _cancel(self._heartbeat_task)
                    self._heartbeat_task = None
                    self._websocket = None
                    self._subscription_id = None
        except (SubscriptionError, ProtocolError) as e:
            logger.error("STOMP protocol error", error=str(e), topic=self.topic)
            return await self._transport_event(ConnectionEvent.PROTOCOL_ERROR)
        except ConnectionClosed as e:
            logger.warning("Live connection closed", reason=str(e))
            return await self._transport_event(ConnectionEvent.TRANSPORT_CLOSED)
        except (OSError, asyncio.TimeoutError, WebSocketException) as e:
            logger.error(
                "Live connection failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            return await self._transport_event(ConnectionEvent.TRANSPORT_ERROR)
        return await self._transport_event(ConnectionEvent.TRANSPORT_CLOSED)

    async def _handshake(self, websocket: Any) -> None:
        """Send CONNECT and wait for the CONNECTED frame.

        Raises:
            SubscriptionError: If the server answers with an ERROR frame
            ProtocolError: If any other frame arrives first
            TimeoutError: If no answer arrives within the connect timeout
        """
        requested = (
            self._settings.heartbeat_outgoing_ms,
            self._settings.heartbeat_incoming_ms,
        )
        frame = stomp.connect_frame(
            host=urlsplit(self.websocket_url).hostname or "",
            token=self._api_client.credentials(),
            heartbeat=requested,
        )
        await websocket.send(frame.encode())

        async with asyncio.timeout(self._settings.connect_timeout):
            while True:
                for frame in stomp.decode_message(await websocket.recv()):
                    if frame.command == "CONNECTED":
                        self._heartbeat = stomp.negotiate_heartbeat(
                            requested, frame.headers.get("heart-beat")
                        )
                        logger.info(
                            "STOMP session established",
                            server=frame.headers.get("server"),
                            heartbeat=self._heartbeat,
                        )
                        return
                    if frame.command == "ERROR":
                        raise SubscriptionError(
                            frame.headers.get("message") or frame.body or "STOMP error",
                            destination=self.topic,
                        )
                    raise ProtocolError(
                        f"Expected CONNECTED frame, received {frame.command}"
                    )

    async def _subscribe(self) -> None:
        if self._subscription_id is not None:
            logger.info("Already subscribed, skipping new subscription", topic=self.topic)
            return
        if self._websocket is None:
            return

        subscription_id = f"{STOMP_SUBSCRIPTION_PREFIX}{next(self._subscription_ids)}"
        frame = stomp.subscribe_frame(
            self.topic,
            subscription_id,
            receipt=f"{STOMP_RECEIPT_PREFIX}{subscription_id}",
        )
        await self._websocket.send(frame.encode())
        self._subscription_id = subscription_id
        logger.info(
            "Subscribed to notification topic",
            topic=self.topic,
            subscription_id=subscription_id,
        )

    async def _unsubscribe(self) -> None:
        subscription_id, self._subscription_id = self._subscription_id, None
        if subscription_id is None or self._websocket is None:
            return
        try:
            await self._websocket.send(stomp.unsubscribe_frame(subscription_id).encode())
        except ConnectionClosed as e:
            logger.debug("Connection closed before UNSUBSCRIBE", reason=str(e))
            return
        logger.info(
            "Unsubscribed from notification topic",
            topic=self.topic,
            subscription_id=subscription_id,
        )

    async def _close_transport(self) -> None:
        websocket = self._websocket
        if websocket is not None:
            try:
                await websocket.send(stomp.disconnect_frame().encode())
            except ConnectionClosed as e:
                logger.debug("Connection closed before DISCONNECT", reason=str(e))
            await websocket.close()

        # From inside the loop the socket context is already unwinding
        if asyncio.current_task() is not self._task:
            await _cancel(self._task)
            self._task = None

    def _start_heartbeat(self, websocket: Any) -> None:
        outgoing, _ = self._heartbeat
        if outgoing and self.status is ConnectionStatus.CONNECTED:
            self._heartbeat_task = asyncio.create_task(
                self._send_heartbeats(websocket, outgoing / 1000)
            )

    async def _send_heartbeats(self, websocket: Any, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await websocket.send(stomp.HEARTBEAT)
            except ConnectionClosed:
                return

    async def _read_loop(self, websocket: Any) -> None:
        _, incoming = self._heartbeat
        timeout = incoming * HEARTBEAT_GRACE_FACTOR / 1000 if incoming else None

        while True:
            try:
                message = await asyncio.wait_for(websocket.recv(), timeout)
            except asyncio.TimeoutError:
                logger.warning("No heart-beat from server", timeout_seconds=timeout)
                raise

            try:
                frames = stomp.decode_message(message)
            except ProtocolError as e:
                logger.warning("Dropping malformed STOMP message", error=str(e))
                continue

            for frame in frames:
                self._handle_frame(frame)

    def _handle_frame(self, frame: stomp.StompFrame) -> None:
        """Route one inbound frame.

        Raises:
            SubscriptionError: For an ERROR frame
        """
        if frame.command == "MESSAGE":
            self._handle_message(frame)
        elif frame.command == "RECEIPT":
            logger.debug("Subscription confirmed", receipt=frame.headers.get("receipt-id"))
        elif frame.command == "ERROR":
            raise SubscriptionError(
                frame.headers.get("message") or frame.body or "STOMP error",
                destination=self.topic,
            )
        else:
            logger.debug("Ignoring unexpected STOMP frame", command=frame.command)

    def _handle_message(self, frame: stomp.StompFrame) -> None:
        if self.status is not ConnectionStatus.CONNECTED:
            logger.debug("Dropping message received while not connected")
            return
        subscription = frame.headers.get("subscription")
        if subscription is not None and subscription != self._subscription_id:
            logger.debug("Dropping message for stale subscription", subscription=subscription)
            return

        try:
            notification = parse_notification(frame.body)
        except ProtocolError as e:
            logger.error("Dropping malformed notification", error=str(e), body=frame.body[:200])
            return

        logger.info(
            "Live notification received",
            notification_id=notification.id,
            notification_type=notification.notification_type,
        )
        try:
            self._on_notification(notification)
        except Exception as e:
            logger.error(
                "Notification callback failed",
                notification_id=notification.id,
                error=str(e),
            )

    async def _refresh_snapshot(self) -> None:
        try:
            await self._on_first_connect()
        except Exception as e:
            logger.error("Snapshot refresh after connect failed", error=str(e))


async def _cancel(task: asyncio.Task | None) -> None:
    if task is None or task.done() or task is asyncio.current_task():
        return
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task
