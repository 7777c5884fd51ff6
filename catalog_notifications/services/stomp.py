"""Minimal STOMP 1.2 frame codec used over the notification WebSocket.

Only what a subscribing client needs is covered: CONNECT / SUBSCRIBE /
UNSUBSCRIBE / DISCONNECT going out, CONNECTED / MESSAGE / RECEIPT / ERROR
coming in, and heart-beats in both directions.
"""

from dataclasses import dataclass, field

from catalog_notifications.constants import (
    AUTHORIZATION_HEADER,
    BEARER_PREFIX,
    STOMP_ACCEPT_VERSION,
    STOMP_EOL,
    STOMP_NULL,
)
from catalog_notifications.exceptions import ProtocolError

# Header value escaping, STOMP 1.2 section "Value Encoding"
_ESCAPES = {"\\": "\\\\", "\r": "\\r", "\n": "\\n", ":": "\\c"}
_UNESCAPES = {"\\": "\\", "r": "\r", "n": "\n", "c": ":"}

# CONNECT and CONNECTED frames never escape their headers
_UNESCAPED_COMMANDS = {"CONNECT", "CONNECTED"}

HEARTBEAT = STOMP_EOL


@dataclass
class StompFrame:
    """One STOMP frame."""

    command: str
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""

    def encode(self) -> str:
        """Serialize the frame for sending as one WebSocket text message."""
        escape = self.command not in _UNESCAPED_COMMANDS
        lines = [self.command]
        for name, value in self.headers.items():
            if escape:
                name, value = _escape(name), _escape(str(value))
            lines.append(f"{name}:{value}")
        return STOMP_EOL.join(lines) + STOMP_EOL + STOMP_EOL + self.body + STOMP_NULL


def _escape(value: str) -> str:
    return "".join(_ESCAPES.get(char, char) for char in value)


def _unescape(value: str) -> str:
    result = []
    chars = iter(value)
    for char in chars:
        if char != "\\":
            result.append(char)
            continue
        code = next(chars, None)
        if code not in _UNESCAPES:
            raise ProtocolError(f"Invalid header escape sequence: \\{code or ''}")
        result.append(_UNESCAPES[code])
    return "".join(result)


def decode_frame(raw: str) -> StompFrame:
    """Parse one frame (without its trailing NULL).

    Raises:
        ProtocolError: If the frame has no command or a malformed header
    """
    head, separator, body = raw.partition(STOMP_EOL + STOMP_EOL)
    if not separator:
        # CRLF line endings are allowed by STOMP 1.2
        head, separator, body = raw.partition("\r\n\r\n")
    head = head.lstrip("\r\n")
    if not head:
        raise ProtocolError("STOMP frame without command")

    lines = head.replace("\r\n", STOMP_EOL).split(STOMP_EOL)
    command = lines[0].strip()
    if not command:
        raise ProtocolError("STOMP frame without command")

    escape = command not in _UNESCAPED_COMMANDS
    headers: dict[str, str] = {}
    for line in lines[1:]:
        if not line:
            continue
        name, colon, value = line.partition(":")
        if not colon:
            raise ProtocolError(f"Malformed STOMP header line: {line!r}")
        if escape:
            name, value = _unescape(name), _unescape(value)
        # Repeated headers: the first occurrence wins
        headers.setdefault(name, value)

    if "content-length" in headers:
        try:
            length = int(headers["content-length"])
        except ValueError as e:
            raise ProtocolError("Invalid content-length header") from e
        body = body.encode("utf-8")[:length].decode("utf-8", errors="replace")

    return StompFrame(command=command, headers=headers, body=body)


def decode_message(message: str | bytes) -> list[StompFrame]:
    """Split one WebSocket message into frames, skipping heart-beats.

    Raises:
        ProtocolError: If any frame is malformed
    """
    if isinstance(message, bytes):
        try:
            message = message.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ProtocolError("STOMP message is not valid UTF-8") from e

    frames = []
    for chunk in message.split(STOMP_NULL):
        if not chunk.strip("\r\n"):
            continue
        frames.append(decode_frame(chunk))
    return frames


def connect_frame(
    host: str,
    token: str | None = None,
    heartbeat: tuple[int, int] = (0, 0),
) -> StompFrame:
    """Build the CONNECT frame opening a session."""
    headers = {
        "accept-version": STOMP_ACCEPT_VERSION,
        "host": host,
        "heart-beat": f"{heartbeat[0]},{heartbeat[1]}",
    }
    if token:
        headers[AUTHORIZATION_HEADER] = f"{BEARER_PREFIX} {token}"
    return StompFrame("CONNECT", headers)


def subscribe_frame(
    destination: str, subscription_id: str, receipt: str | None = None
) -> StompFrame:
    """Build a SUBSCRIBE frame with automatic acknowledgement."""
    headers = {"id": subscription_id, "destination": destination, "ack": "auto"}
    if receipt:
        headers["receipt"] = receipt
    return StompFrame("SUBSCRIBE", headers)


def unsubscribe_frame(subscription_id: str) -> StompFrame:
    """Build an UNSUBSCRIBE frame."""
    return StompFrame("UNSUBSCRIBE", {"id": subscription_id})


def disconnect_frame() -> StompFrame:
    """Build a DISCONNECT frame."""
    return StompFrame("DISCONNECT")


def negotiate_heartbeat(
    client: tuple[int, int], server_header: str | None
) -> tuple[int, int]:
    """Compute the effective heart-beat intervals in milliseconds.

    Args:
        client: (outgoing, incoming) intervals the client offered
        server_header: ``heart-beat`` header of the CONNECTED frame

    Returns:
        (outgoing, incoming) intervals; 0 disables a direction
    """
    try:
        server_outgoing, server_incoming = (
            int(part) for part in (server_header or "0,0").split(",")
        )
    except ValueError:
        server_outgoing, server_incoming = 0, 0

    client_outgoing, client_incoming = client
    outgoing = (
        max(client_outgoing, server_incoming) if client_outgoing and server_incoming else 0
    )
    incoming = (
        max(client_incoming, server_outgoing) if client_incoming and server_outgoing else 0
    )
    return outgoing, incoming
