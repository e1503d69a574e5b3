# =============================================================================
# wsconn -- URL Resolver
# =============================================================================
#
# Turns a ws:// or wss:// URL into socket address + request target.
# =============================================================================

from __future__ import annotations

import urllib.parse

from websockets.exceptions import InvalidURI
from websockets.uri import parse_uri

from .errors import ParseError
from .types import ConnectionParams


def resolve(url: str) -> ConnectionParams:
    """Resolve *url* into :class:`ConnectionParams`.

    An explicit port always wins. Without one, ``wss`` maps to 443 and
    ``ws`` to 80.

    Raises:
        ParseError: If the URL is malformed, its scheme is neither ``ws``
            nor ``wss``, the host is missing, the port is invalid or 0, or
            it carries ``user:password@`` credentials.
    """
    try:
        wsuri = parse_uri(url)
    except InvalidURI as exc:
        raise ParseError(f"Invalid WebSocket URL {url!r}: {exc}") from exc
    except ValueError as exc:
        # urllib rejects non-numeric and out-of-range ports this way
        raise ParseError(f"Invalid port in URL {url!r}: {exc}") from exc

    if not wsuri.host:
        raise ParseError(f"Missing host in URL {url!r}")
    # parse_uri treats an explicit :0 as "no port" and substitutes the default
    if urllib.parse.urlsplit(url).port == 0:
        raise ParseError(f"Port 0 is not a valid destination in URL {url!r}")
    if wsuri.username is not None:
        raise ParseError(f"Credentials in URL {url!r} are not supported")

    return ConnectionParams(
        host=wsuri.host,
        port=wsuri.port,
        path=wsuri.resource_name,
        tls=wsuri.secure,
    )
