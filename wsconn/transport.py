# =============================================================================
# wsconn -- Transport
# =============================================================================
#
# The socket + framing capability the connection manager drives. The
# default implementation delegates the WebSocket protocol to `websockets`.
# =============================================================================

from __future__ import annotations

import asyncio
import socket
from typing import Any, Protocol, runtime_checkable

import websockets.asyncio.client
from websockets.exceptions import (
    ConnectionClosed,
    ConnectionClosedOK,
    InvalidHandshake,
)

from ._logging import logger
from .errors import HandshakeError, ReadTimeoutError, TransportError
from .types import ConnectionParams, Message


@runtime_checkable
class Transport(Protocol):
    """Operations the connection manager needs from a WebSocket transport.

    A handle returned by :meth:`connect` is opaque to the manager. It is
    passed back to every other method and released with :meth:`deinit`.
    """

    async def connect(
        self,
        params: ConnectionParams,
        *,
        max_size: int,
        buffer_size: int,
        timeout: float | None,
    ) -> Any: ...

    async def handshake(
        self,
        handle: Any,
        path: str,
        *,
        timeout: float | None,
        headers: dict[str, str],
    ) -> None: ...

    async def write(self, handle: Any, data: str | bytes) -> None: ...

    async def write_pong(self, handle: Any, data: bytes) -> None: ...

    async def read(self, handle: Any) -> Message | None: ...

    def read_timeout(self, handle: Any, timeout: float | None) -> None: ...

    def done(self, handle: Any, message: Message) -> None: ...

    async def close(self, handle: Any, code: int, reason: str) -> None: ...

    def deinit(self, handle: Any) -> None: ...


class WebsocketsHandle:
    """A TCP socket, upgraded to a WebSocket once the handshake succeeds."""

    __slots__ = ("params", "sock", "connection", "max_size", "read_timeout")

    def __init__(self, params: ConnectionParams, sock: socket.socket, max_size: int) -> None:
        self.params = params
        self.sock: socket.socket | None = sock
        self.connection: websockets.asyncio.client.ClientConnection | None = None
        self.max_size = max_size
        self.read_timeout: float | None = None

    def __repr__(self) -> str:
        upgraded = self.connection is not None
        return f"<WebsocketsHandle {self.params.uri} upgraded={upgraded}>"


class WebsocketsTransport:
    """:class:`Transport` backed by ``websockets.asyncio.client``."""

    async def connect(
        self,
        params: ConnectionParams,
        *,
        max_size: int,
        buffer_size: int,
        timeout: float | None,
    ) -> WebsocketsHandle:
        """Open a TCP socket to ``params.host:params.port``."""
        loop = asyncio.get_running_loop()
        try:
            async with asyncio.timeout(timeout):
                infos = await loop.getaddrinfo(
                    params.host, params.port, type=socket.SOCK_STREAM
                )
                sock = await self._open_socket(loop, infos, buffer_size)
        except TimeoutError as exc:
            raise TransportError(
                f"Timed out opening socket to {params.host}:{params.port} after {timeout}s"
            ) from exc
        except OSError as exc:
            raise TransportError(
                f"Failed to open socket to {params.host}:{params.port}: {exc}"
            ) from exc

        return WebsocketsHandle(params, sock, max_size)

    @staticmethod
    async def _open_socket(
        loop: asyncio.AbstractEventLoop,
        infos: list[tuple[Any, ...]],
        buffer_size: int,
    ) -> socket.socket:
        """Try each resolved address in turn; return the first connected socket."""
        last_exc: OSError | None = None
        for family, type_, proto, _, address in infos:
            sock = socket.socket(family, type_, proto)
            try:
                sock.setblocking(False)
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_RCVBUF, buffer_size)
                await loop.sock_connect(sock, address)
            except OSError as exc:
                sock.close()
                last_exc = exc
                continue
            except BaseException:
                # cancelled or timed out mid-connect
                sock.close()
                raise
            return sock

        raise last_exc or OSError("getaddrinfo returned no addresses")

    async def handshake(
        self,
        handle: WebsocketsHandle,
        path: str,
        *,
        timeout: float | None,
        headers: dict[str, str],
    ) -> None:
        """Upgrade the socket; TLS is negotiated first for ``wss``."""
        if handle.sock is None:
            raise TransportError("Socket already released")

        params = handle.params
        uri = ConnectionParams(params.host, params.port, path, params.tls).uri
        # websockets derives Host from the URI and would send it twice
        extra = {k: v for k, v in headers.items() if k.lower() != "host"}

        try:
            handle.connection = await websockets.asyncio.client.connect(
                uri,
                sock=handle.sock,
                additional_headers=extra,
                max_size=handle.max_size,
                open_timeout=timeout,
                proxy=None,  # already connected to the target
            )
        except InvalidHandshake as exc:
            raise HandshakeError(f"Handshake with {uri} rejected: {exc}") from exc
        except TimeoutError as exc:
            raise HandshakeError(
                f"Handshake with {uri} timed out after {timeout}s"
            ) from exc
        except OSError as exc:
            raise TransportError(f"Transport failure during handshake: {exc}") from exc

        # The asyncio transport owns the socket now
        handle.sock = None

    async def write(self, handle: WebsocketsHandle, data: str | bytes) -> None:
        conn = self._connection(handle)
        try:
            await conn.send(data)
        except (ConnectionClosed, OSError) as exc:
            raise TransportError(f"Write failed: {exc}") from exc

    async def write_pong(self, handle: WebsocketsHandle, data: bytes) -> None:
        conn = self._connection(handle)
        try:
            await conn.pong(data)
        except (ConnectionClosed, OSError) as exc:
            raise TransportError(f"Pong failed: {exc}") from exc

    async def read(self, handle: WebsocketsHandle) -> Message | None:
        conn = self._connection(handle)
        try:
            if handle.read_timeout is None:
                data = await conn.recv()
            else:
                data = await asyncio.wait_for(conn.recv(), handle.read_timeout)
        except ConnectionClosedOK:
            logger.debug("Peer closed the connection normally")
            return None
        except TimeoutError as exc:
            raise ReadTimeoutError(
                f"No message within {handle.read_timeout}s"
            ) from exc
        except (ConnectionClosed, OSError) as exc:
            raise TransportError(f"Read failed: {exc}") from exc
        return Message(data)

    def read_timeout(self, handle: WebsocketsHandle, timeout: float | None) -> None:
        handle.read_timeout = timeout

    def done(self, handle: WebsocketsHandle, message: Message) -> None:
        # websockets hands out immutable copies; nothing to recycle
        pass

    async def close(self, handle: WebsocketsHandle, code: int, reason: str) -> None:
        conn = self._connection(handle)
        try:
            await conn.close(code, reason)
        except OSError as exc:
            raise TransportError(f"Close failed: {exc}") from exc

    def deinit(self, handle: WebsocketsHandle) -> None:
        conn = handle.connection
        handle.connection = None
        if conn is not None:
            conn.transport.abort()
        sock = handle.sock
        handle.sock = None
        if sock is not None:
            sock.close()

    @staticmethod
    def _connection(
        handle: WebsocketsHandle,
    ) -> websockets.asyncio.client.ClientConnection:
        if handle.connection is None:
            raise TransportError("Handshake has not completed")
        return handle.connection
