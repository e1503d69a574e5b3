"""Lifecycle manager for a single persistent WebSocket connection.

Async usage::

    from wsconn import ConnectionManager

    async with ConnectionManager("wss://example.com/feed", max_retries=5) as conn:
        await conn.write("hello")
        while (msg := await conn.read()) is not None:
            print(msg.data)

Recovering from a dropped connection::

    try:
        msg = await conn.read()
    except TransportError:
        await conn.reconnect()  # raises ReconnectionExhaustedError on give-up

Sync usage::

    from wsconn import SyncConnectionManager

    with SyncConnectionManager("wss://example.com/feed") as conn:
        conn.read_timeout(5.0)
        msg = conn.read()
"""

from ._version import __version__
from .connection import ConnectionManager
from .errors import (
    ClientClosedError,
    HandshakeError,
    NotConnectedError,
    ParseError,
    ReadTimeoutError,
    ReconnectionExhaustedError,
    TransportError,
    WSConnError,
)
from .resolver import resolve
from .sync_client import SyncConnectionManager
from .transport import Transport, WebsocketsTransport
from .types import (
    ClientConfig,
    ConnectionParams,
    ConnectionState,
    ConnectionStats,
    Message,
)

__all__ = [
    "__version__",
    "resolve",
    "ConnectionManager",
    "SyncConnectionManager",
    "Transport",
    "WebsocketsTransport",
    "ClientConfig",
    "ConnectionParams",
    "ConnectionState",
    "ConnectionStats",
    "Message",
    "WSConnError",
    "ParseError",
    "TransportError",
    "ReadTimeoutError",
    "HandshakeError",
    "NotConnectedError",
    "ClientClosedError",
    "ReconnectionExhaustedError",
]
