# =============================================================================
# wsconn -- Type Definitions
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .constants import (
    BUFFER_SIZE,
    HANDSHAKE_TIMEOUT,
    MAX_SIZE,
    RECONNECT_BASE_DELAY,
    RECONNECT_MAX_RETRIES,
    SCHEME_PLAIN,
    SCHEME_SECURE,
)


class ConnectionState(str, Enum):
    """Lifecycle state of the managed connection.

    Typical flow: DISCONNECTED -> CONNECTING -> CONNECTED -> DISCONNECTED.
    RECONNECTING is transient, FAILED means reconnection gave up and the
    caller has to intervene.
    """

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ClientConfig:
    """Connection settings, fixed for the lifetime of a manager.

    Attributes:
        url: Target URL, ``ws://`` or ``wss://``.
        handshake_timeout: Seconds allowed for socket connect and upgrade
            together; the upgrade gets whatever the connect left over.
        max_size: Largest accepted incoming message in bytes.
        buffer_size: Socket receive buffer in bytes.
        max_retries: Connection attempts made by one ``reconnect()``.
        backoff_base: Wait in seconds before the second attempt; doubles
            before every following one.
    """

    url: str
    handshake_timeout: float = HANDSHAKE_TIMEOUT
    max_size: int = MAX_SIZE
    buffer_size: int = BUFFER_SIZE
    max_retries: int = RECONNECT_MAX_RETRIES
    backoff_base: float = RECONNECT_BASE_DELAY

    def __post_init__(self) -> None:
        if not self.url:
            raise ValueError("url must not be empty")
        if self.handshake_timeout <= 0:
            raise ValueError("handshake_timeout must be positive")
        if self.max_size <= 0:
            raise ValueError("max_size must be positive")
        if self.buffer_size <= 0:
            raise ValueError("buffer_size must be positive")
        if self.max_retries < 0:
            raise ValueError("max_retries must not be negative")
        if self.backoff_base < 0:
            raise ValueError("backoff_base must not be negative")


@dataclass(frozen=True, slots=True)
class ConnectionParams:
    """Socket address and request target resolved from a URL.

    ``path`` is the request target sent in the upgrade request, query
    string included.
    """

    host: str
    port: int
    path: str
    tls: bool

    @property
    def scheme(self) -> str:
        return SCHEME_SECURE if self.tls else SCHEME_PLAIN

    @property
    def uri(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"{self.scheme}://{host}:{self.port}{self.path}"


@dataclass(frozen=True, slots=True)
class Message:
    """One application message read from the connection."""

    data: str | bytes

    @property
    def is_text(self) -> bool:
        return isinstance(self.data, str)

    @property
    def is_binary(self) -> bool:
        return isinstance(self.data, bytes)

    def __len__(self) -> int:
        return len(self.data)


@dataclass
class ConnectionStats:
    """Counters for the lifetime of one manager."""

    connect_attempts: int = 0
    reconnect_count: int = 0
    messages_sent: int = 0
    messages_received: int = 0
    bytes_sent: int = 0
    bytes_received: int = 0
    connected_since: float | None = None
    last_error: str | None = None
