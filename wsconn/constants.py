# =============================================================================
# wsconn -- Defaults and Protocol Constants
# =============================================================================

# -- Connection defaults -------------------------------------------------------

HANDSHAKE_TIMEOUT = 10.0  # seconds
MAX_SIZE = 4096  # bytes, largest accepted message
BUFFER_SIZE = 1024  # bytes, socket receive buffer

# -- Reconnection --------------------------------------------------------------

RECONNECT_MAX_RETRIES = 10
RECONNECT_BASE_DELAY = 1.0  # seconds, doubled after every wait

# -- URL schemes ---------------------------------------------------------------

SCHEME_PLAIN = "ws"
SCHEME_SECURE = "wss"

# -- WebSocket close codes -----------------------------------------------------

WS_CLOSE_NORMAL = 1000
WS_CLOSE_GOING_AWAY = 1001

# -- Sync wrapper --------------------------------------------------------------

SYNC_THREAD_NAME = "wsconn-client"
SYNC_SHUTDOWN_TIMEOUT = 5.0  # seconds
