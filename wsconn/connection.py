# =============================================================================
# wsconn -- Connection Manager
# =============================================================================
#
# Lifecycle of one WebSocket connection: connect, I/O delegation, close,
# and reconnection with exponential backoff.
# =============================================================================

from __future__ import annotations

import asyncio
import time
from typing import Any, Callable

from ._logging import logger
from .constants import WS_CLOSE_GOING_AWAY, WS_CLOSE_NORMAL
from .errors import (
    ClientClosedError,
    HandshakeError,
    NotConnectedError,
    ReconnectionExhaustedError,
    WSConnError,
)
from .resolver import resolve
from .transport import Transport, WebsocketsTransport
from .types import ClientConfig, ConnectionParams, ConnectionState, ConnectionStats, Message


class ConnectionManager:
    """Owns at most one live WebSocket and keeps it alive on request.

    The manager is not thread-safe: drive it from a single task. Every I/O
    method raises :class:`NotConnectedError` when no connection is live.

    Args:
        config: A :class:`ClientConfig`, or the target URL. With a URL,
            keyword overrides are forwarded to :class:`ClientConfig`.
        transport: Socket + framing implementation (default:
            :class:`WebsocketsTransport`).
        on_state_change: Called with the new state on every transition.

    Example::

        async with ConnectionManager("wss://example.com/feed") as conn:
            await conn.write("hello")
            msg = await conn.read()
    """

    def __init__(
        self,
        config: ClientConfig | str,
        *,
        transport: Transport | None = None,
        on_state_change: Callable[[ConnectionState], Any] | None = None,
        **overrides: Any,
    ) -> None:
        if isinstance(config, str):
            config = ClientConfig(config, **overrides)
        elif overrides:
            raise TypeError("Keyword overrides require a URL, not a ClientConfig")

        self._config = config
        self._transport: Transport = transport or WebsocketsTransport()
        self._on_state_change = on_state_change

        # State
        self._handle: Any | None = None
        self._params: ConnectionParams | None = None
        self._state = ConnectionState.DISCONNECTED
        self._stats = ConnectionStats()
        self._torn_down = False

        self._sleep = asyncio.sleep
        self._clock = time.monotonic

    async def __aenter__(self) -> ConnectionManager:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        if self._handle is not None:
            try:
                await self.close()
            except Exception as exc:
                logger.debug("Close on exit failed: %s", exc)
        self.teardown()

    # -- Properties -----------------------------------------------------------

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._handle is not None and self._state == ConnectionState.CONNECTED

    @property
    def params(self) -> ConnectionParams | None:
        """Parameters resolved by the most recent connection attempt."""
        return self._params

    @property
    def stats(self) -> ConnectionStats:
        return self._stats

    # -- Connect / Reconnect --------------------------------------------------

    async def connect(self) -> None:
        """Open the socket and complete the WebSocket handshake.

        Any existing connection is released first. Errors from resolving,
        connecting or the handshake propagate unchanged; no retry happens
        here, see :meth:`reconnect`.
        """
        self._ensure_usable()
        self._release_handle()
        self._set_state(ConnectionState.CONNECTING)
        try:
            await self._establish()
        except BaseException:
            self._set_state(ConnectionState.DISCONNECTED)
            raise
        self._set_state(ConnectionState.CONNECTED)

    async def reconnect(self) -> None:
        """Drop the current connection and reconnect with backoff.

        Makes up to ``max_retries`` attempts. The first attempt runs
        immediately; each later one waits the current delay, which starts
        at ``backoff_base`` and doubles every time.

        Raises:
            ReconnectionExhaustedError: If every attempt failed. The state
                is then FAILED and no connection is held.
        """
        self._ensure_usable()

        max_retries = self._config.max_retries
        backoff = self._config.backoff_base
        last_error: WSConnError | None = None

        try:
            await self._discard_handle()
            self._set_state(ConnectionState.RECONNECTING)

            for attempt in range(max_retries):
                logger.info("Reconnection attempt %d of %d", attempt + 1, max_retries)

                if attempt > 0:
                    logger.info("Waiting %.1fs before retry", backoff)
                    await self._sleep(backoff)
                    backoff *= 2
                    self._ensure_usable()

                try:
                    await self._establish()
                except ClientClosedError:
                    raise
                except WSConnError as exc:
                    logger.warning("Reconnection attempt %d failed: %s", attempt + 1, exc)
                    last_error = exc
                    continue

                self._stats.reconnect_count += 1
                self._set_state(ConnectionState.CONNECTED)
                logger.info("Reconnected after %d attempts", attempt + 1)
                return
        except BaseException:
            # Cancelled mid-close, mid-wait or mid-attempt, or torn down
            self._release_handle()
            self._set_state(ConnectionState.DISCONNECTED)
            raise

        logger.error("Failed to reconnect after %d attempts, giving up", max_retries)
        self._set_state(ConnectionState.FAILED)
        raise ReconnectionExhaustedError(max_retries, last_error)

    async def _establish(self) -> None:
        """One resolve -> socket -> handshake sequence."""
        cfg = self._config
        self._stats.connect_attempts += 1

        try:
            params = resolve(cfg.url)
        except WSConnError as exc:
            self._stats.last_error = str(exc)
            raise
        self._params = params
        logger.info(
            "ws connection details: host=%s, port=%d, tls=%s",
            params.host,
            params.port,
            params.tls,
        )

        handle: Any | None = None
        started = self._clock()
        try:
            handle = await self._transport.connect(
                params,
                max_size=cfg.max_size,
                buffer_size=cfg.buffer_size,
                timeout=cfg.handshake_timeout,
            )
            # connect and upgrade share one handshake_timeout budget
            remaining = cfg.handshake_timeout - (self._clock() - started)
            if remaining <= 0:
                raise HandshakeError(
                    f"Socket connect used up the {cfg.handshake_timeout}s handshake timeout"
                )
            await self._transport.handshake(
                handle,
                params.path,
                timeout=remaining,
                headers={"Host": params.host},
            )
        except BaseException as exc:
            if handle is not None:
                self._deinit(handle)
            if isinstance(exc, WSConnError):
                self._stats.last_error = str(exc)
                logger.error("ws connect/handshake failed: %s", exc)
            raise

        if self._torn_down:
            self._deinit(handle)
            raise ClientClosedError("ConnectionManager was torn down while connecting")

        self._handle = handle
        self._stats.connected_since = self._clock()
        logger.info("ws connection and handshake successful")

    # -- I/O ------------------------------------------------------------------

    async def write(self, data: str | bytes) -> None:
        """Send a text (``str``) or binary (``bytes``) message."""
        handle = self._require_handle()
        await self._transport.write(handle, data)
        self._stats.messages_sent += 1
        self._stats.bytes_sent += _size(data)

    async def write_pong(self, data: bytes = b"") -> None:
        """Send a pong control frame carrying *data*."""
        handle = self._require_handle()
        await self._transport.write_pong(handle, data)

    async def read(self) -> Message | None:
        """Wait for the next message; ``None`` once the peer closed cleanly."""
        handle = self._require_handle()
        message = await self._transport.read(handle)
        if message is not None:
            self._stats.messages_received += 1
            self._stats.bytes_received += _size(message.data)
        return message

    def read_timeout(self, timeout: float | None) -> None:
        """Bound subsequent :meth:`read` calls to *timeout* seconds.

        The setting belongs to the current connection; a reconnected one
        starts without a timeout.
        """
        handle = self._require_handle()
        self._transport.read_timeout(handle, timeout)

    def done(self, message: Message) -> None:
        """Tell the transport *message* is no longer in use. Never raises."""
        if self._handle is None:
            return
        try:
            self._transport.done(self._handle, message)
        except Exception as exc:
            logger.debug("Releasing message failed: %s", exc)

    # -- Close / Teardown -----------------------------------------------------

    async def close(self, code: int = WS_CLOSE_NORMAL, reason: str = "") -> None:
        """Run the closing handshake, then release the connection.

        The connection is released even if the closing handshake fails;
        that failure is re-raised.
        """
        handle = self._require_handle()
        try:
            await self._transport.close(handle, code, reason)
        finally:
            self._release_handle()
            self._set_state(ConnectionState.DISCONNECTED)

    def teardown(self) -> None:
        """Release everything the manager owns. Safe to call repeatedly."""
        if self._torn_down:
            return
        self._torn_down = True
        self._release_handle()
        self._params = None
        self._set_state(ConnectionState.DISCONNECTED)

    # -- Internal -------------------------------------------------------------

    def _require_handle(self) -> Any:
        if self._handle is None:
            raise NotConnectedError("Not connected")
        return self._handle

    def _ensure_usable(self) -> None:
        if self._torn_down:
            raise ClientClosedError("ConnectionManager has been torn down")

    async def _discard_handle(self) -> None:
        """Close the current connection gracefully, ignoring failures."""
        handle = self._handle
        if handle is None:
            return
        try:
            await self._transport.close(handle, WS_CLOSE_GOING_AWAY, "Reconnecting")
        except Exception as exc:
            logger.debug("Graceful close before reconnect failed: %s", exc)
        finally:
            self._release_handle()

    def _release_handle(self) -> None:
        handle = self._handle
        self._handle = None
        self._stats.connected_since = None
        if handle is not None:
            self._deinit(handle)

    def _deinit(self, handle: Any) -> None:
        try:
            self._transport.deinit(handle)
        except Exception as exc:
            logger.debug("Releasing transport handle failed: %s", exc)

    def _set_state(self, new_state: ConnectionState) -> None:
        if new_state == self._state:
            return
        old = self._state
        self._state = new_state
        logger.debug("State: %s -> %s", old.value, new_state.value)
        if self._on_state_change:
            self._on_state_change(new_state)


def _size(data: str | bytes) -> int:
    return len(data.encode()) if isinstance(data, str) else len(data)
