"""Shared fixtures: a scripted in-memory transport."""

from collections import deque

import pytest

from wsconn.connection import ConnectionManager
from wsconn.errors import HandshakeError, TransportError
from wsconn.types import Message

URL = "wss://example.com/feed"


class FakeHandle:
    def __init__(self, number, params):
        self.number = number
        self.params = params
        self.released = False
        self.release_count = 0
        self.timeout = None
        self.inbox = deque()
        self.peer_closed = False

    def __repr__(self):
        return f"<FakeHandle #{self.number} released={self.released}>"


class FakeTransport:
    """Records every call; failures are scripted per attempt.

    ``connect_errors`` and ``handshake_errors`` are consumed one entry per
    call; ``None`` means that call succeeds.
    """

    def __init__(self, connect_errors=(), handshake_errors=()):
        self.connect_errors = deque(connect_errors)
        self.handshake_errors = deque(handshake_errors)
        self.close_error = None
        self.handles = []
        self.connect_calls = []
        self.handshake_calls = []
        self.written = []
        self.pongs = []
        self.closed = []
        self.done_messages = []

    @property
    def live_handles(self):
        return [h for h in self.handles if not h.released]

    async def connect(self, params, *, max_size, buffer_size, timeout):
        self.connect_calls.append(
            {"params": params, "max_size": max_size, "buffer_size": buffer_size, "timeout": timeout}
        )
        if self.connect_errors:
            err = self.connect_errors.popleft()
            if err is not None:
                raise err
        handle = FakeHandle(len(self.handles) + 1, params)
        self.handles.append(handle)
        return handle

    async def handshake(self, handle, path, *, timeout, headers):
        self.handshake_calls.append({"handle": handle, "path": path, "timeout": timeout, "headers": headers})
        if self.handshake_errors:
            err = self.handshake_errors.popleft()
            if err is not None:
                raise err

    async def write(self, handle, data):
        self.written.append((handle, data))

    async def write_pong(self, handle, data):
        self.pongs.append((handle, data))

    async def read(self, handle):
        if handle.inbox:
            return Message(handle.inbox.popleft())
        if handle.peer_closed:
            return None
        raise TransportError("read timed out")

    def read_timeout(self, handle, timeout):
        handle.timeout = timeout

    def done(self, handle, message):
        self.done_messages.append((handle, message))

    async def close(self, handle, code, reason):
        self.closed.append((handle, code, reason))
        if self.close_error is not None:
            raise self.close_error

    def deinit(self, handle):
        handle.release_count += 1
        handle.released = True


def handshake_failures(n):
    return [HandshakeError(f"rejected #{i + 1}") for i in range(n)]


class SleepRecorder:
    """Stands in for ``asyncio.sleep`` and records requested delays."""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def sleeps():
    return SleepRecorder()


@pytest.fixture
def make_manager(sleeps):
    def factory(transport, url=URL, **overrides):
        manager = ConnectionManager(url, transport=transport, **overrides)
        manager._sleep = sleeps
        return manager

    return factory
