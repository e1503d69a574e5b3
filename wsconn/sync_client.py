# =============================================================================
# wsconn -- Synchronous Wrapper
# =============================================================================
#
# Thread-based wrapper around ConnectionManager for blocking usage.
# =============================================================================

from __future__ import annotations

import asyncio
import threading
from typing import Any, Callable, Coroutine, TypeVar

from ._logging import logger
from .connection import ConnectionManager
from .constants import SYNC_SHUTDOWN_TIMEOUT, SYNC_THREAD_NAME, WS_CLOSE_NORMAL
from .errors import ClientClosedError
from .transport import Transport
from .types import ClientConfig, ConnectionState, ConnectionStats, Message

T = TypeVar("T")


class SyncConnectionManager:
    """Blocking :class:`ConnectionManager`.

    Runs the async manager on a private event loop in a background thread.
    Each method blocks until the underlying coroutine finishes and re-raises
    whatever it raised.

    Args:
        config: A :class:`ClientConfig` or the target URL.
        transport: Optional transport, see :class:`ConnectionManager`.
        on_state_change: Called from the background thread on transitions.
        **overrides: :class:`ClientConfig` fields when *config* is a URL.

    Example::

        with SyncConnectionManager("wss://example.com/feed") as conn:
            conn.write("hello")
            msg = conn.read()
    """

    def __init__(
        self,
        config: ClientConfig | str,
        *,
        transport: Transport | None = None,
        on_state_change: Callable[[ConnectionState], Any] | None = None,
        **overrides: Any,
    ) -> None:
        self._manager = ConnectionManager(
            config,
            transport=transport,
            on_state_change=on_state_change,
            **overrides,
        )
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._run_loop, daemon=True, name=SYNC_THREAD_NAME
        )
        self._lock = threading.Lock()
        self._stopped = False
        self._thread.start()

    def __enter__(self) -> SyncConnectionManager:
        self.connect()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        if self._manager.is_connected:
            try:
                self.close()
            except Exception as exc:
                logger.debug("Close on exit failed: %s", exc)
        self.teardown()

    # -- Properties -----------------------------------------------------------

    @property
    def manager(self) -> ConnectionManager:
        return self._manager

    @property
    def state(self) -> ConnectionState:
        return self._manager.state

    @property
    def is_connected(self) -> bool:
        return self._manager.is_connected

    @property
    def stats(self) -> ConnectionStats:
        return self._manager.stats

    # -- Lifecycle ------------------------------------------------------------

    def connect(self) -> None:
        self._call(self._manager.connect())

    def reconnect(self) -> None:
        self._call(self._manager.reconnect())

    def close(self, code: int = WS_CLOSE_NORMAL, reason: str = "") -> None:
        self._call(self._manager.close(code, reason))

    def teardown(self) -> None:
        """Tear down the manager and stop the background thread."""
        with self._lock:
            if self._stopped:
                return
            self._stopped = True

        try:
            asyncio.run_coroutine_threadsafe(
                self._teardown_manager(), self._loop
            ).result(timeout=SYNC_SHUTDOWN_TIMEOUT)
        except Exception as exc:
            logger.debug("Teardown on loop thread failed: %s", exc)

        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=SYNC_SHUTDOWN_TIMEOUT)
        if not self._thread.is_alive():
            self._loop.close()

    # -- I/O ------------------------------------------------------------------

    def write(self, data: str | bytes) -> None:
        self._call(self._manager.write(data))

    def write_pong(self, data: bytes = b"") -> None:
        self._call(self._manager.write_pong(data))

    def read(self) -> Message | None:
        """Block until the next message, ``None`` after a clean close."""
        return self._call(self._manager.read())

    def read_timeout(self, timeout: float | None) -> None:
        self._call(self._on_loop(self._manager.read_timeout, timeout))

    def done(self, message: Message) -> None:
        if self._stopped:
            return
        self._call(self._on_loop(self._manager.done, message))

    # -- Internal -------------------------------------------------------------

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    def _call(self, coro: Coroutine[Any, Any, T]) -> T:
        if self._stopped:
            coro.close()
            raise ClientClosedError("SyncConnectionManager has been torn down")
        return asyncio.run_coroutine_threadsafe(coro, self._loop).result()

    async def _teardown_manager(self) -> None:
        self._manager.teardown()

    @staticmethod
    async def _on_loop(fn: Callable[..., T], *args: Any) -> T:
        return fn(*args)
