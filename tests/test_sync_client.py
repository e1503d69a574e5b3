"""Tests for SyncConnectionManager."""

import pytest

from tests.conftest import URL, FakeTransport, handshake_failures
from wsconn.errors import ClientClosedError, HandshakeError, NotConnectedError
from wsconn.sync_client import SyncConnectionManager
from wsconn.types import ConnectionState, Message


@pytest.fixture
def transport():
    return FakeTransport()


class TestSyncClient:
    def test_defaults(self, transport):
        client = SyncConnectionManager(URL, transport=transport)
        try:
            assert client.state == ConnectionState.DISCONNECTED
            assert client.is_connected is False
            assert client.manager.config.url == URL
        finally:
            client.teardown()

    def test_round_trip(self, transport):
        with SyncConnectionManager(URL, transport=transport) as client:
            assert client.is_connected is True
            handle = transport.handles[0]
            handle.inbox.append("tick")

            client.write("hello")
            client.write_pong(b"p")
            client.read_timeout(1.5)
            msg = client.read()
            client.done(msg)

            assert transport.written == [(handle, "hello")]
            assert transport.pongs == [(handle, b"p")]
            assert handle.timeout == 1.5
            assert msg == Message("tick")
            assert transport.done_messages == [(handle, msg)]
            assert client.stats.messages_received == 1

        assert handle.released is True
        assert transport.closed[0][0] is handle

    def test_errors_propagate(self):
        transport = FakeTransport(handshake_errors=handshake_failures(1))
        client = SyncConnectionManager(URL, transport=transport)
        try:
            with pytest.raises(HandshakeError):
                client.connect()
            with pytest.raises(NotConnectedError):
                client.write("x")
        finally:
            client.teardown()

    def test_reconnect(self):
        transport = FakeTransport(handshake_errors=handshake_failures(1))
        client = SyncConnectionManager(
            URL, transport=transport, max_retries=2, backoff_base=0.01
        )
        try:
            client.reconnect()
            assert client.is_connected is True
            assert len(transport.connect_calls) == 2
        finally:
            client.teardown()

    def test_teardown_is_idempotent(self, transport):
        client = SyncConnectionManager(URL, transport=transport)
        client.connect()
        client.teardown()
        client.teardown()

        assert transport.handles[0].release_count == 1
        assert client._thread.is_alive() is False

    def test_calls_after_teardown(self, transport):
        client = SyncConnectionManager(URL, transport=transport)
        client.teardown()
        with pytest.raises(ClientClosedError):
            client.connect()
        client.done(Message("ignored"))
