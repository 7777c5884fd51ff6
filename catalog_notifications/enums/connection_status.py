"""Live connection status values."""

from enum import Enum


class ConnectionStatus(str, Enum):
    """Status of the live notification connection, observable by the UI."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"
