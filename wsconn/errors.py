# =============================================================================
# wsconn -- Error Types
# =============================================================================


class WSConnError(Exception):
    """Base exception for all wsconn errors."""


class ParseError(WSConnError, ValueError):
    """The URL is malformed, uses an unsupported scheme, or has no host."""


class TransportError(WSConnError):
    """Socket, TLS or I/O failure reported by the transport."""


class ReadTimeoutError(TransportError):
    """No message arrived within the configured read timeout."""


class HandshakeError(WSConnError):
    """The WebSocket upgrade was rejected or timed out."""


class NotConnectedError(WSConnError):
    """An I/O operation was attempted without a live connection."""


class ClientClosedError(NotConnectedError):
    """The manager has been torn down and cannot connect again."""


class ReconnectionExhaustedError(WSConnError):
    """Every reconnection attempt failed."""

    def __init__(self, attempts: int, last_error: BaseException | None = None) -> None:
        self.attempts = attempts
        self.last_error = last_error
        msg = f"Failed to reconnect after {attempts} attempts"
        if last_error is not None:
            msg += f": {last_error}"
        super().__init__(msg)
