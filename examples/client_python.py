"""Reconnecting WebSocket reader.

Connects to a WebSocket endpoint, optionally sends one message, and prints
everything received. Dropped connections are re-established with
exponential backoff until the retry budget runs out.

    pip install wsconn

    python examples/client_python.py --url wss://ws.postman-echo.com/raw --send hello
"""

import argparse
import asyncio
import logging
import signal

from wsconn import (
    ConnectionManager,
    ReadTimeoutError,
    ReconnectionExhaustedError,
    TransportError,
)


async def main(url: str, send: str | None, max_retries: int, idle: float):
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    async with ConnectionManager(url, max_retries=max_retries) as conn:
        print(f"Connected to {url}")
        if send:
            await conn.write(send)
        conn.read_timeout(idle)

        while not stop.is_set():
            try:
                msg = await conn.read()
            except ReadTimeoutError:
                continue
            except TransportError as exc:
                print(f"Connection lost: {exc}")
                msg = None

            if msg is not None:
                print(f"<- {msg.data!r}")
                conn.done(msg)
                continue

            try:
                await conn.reconnect()
            except ReconnectionExhaustedError as exc:
                print(exc)
                return
            conn.read_timeout(idle)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="wsconn reconnecting reader")
    parser.add_argument("--url", default="ws://localhost:8765/")
    parser.add_argument("--send", default=None, help="Message to send after connecting")
    parser.add_argument("--max-retries", type=int, default=10)
    parser.add_argument("--idle", type=float, default=1.0, help="Read timeout in seconds")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    asyncio.run(main(args.url, args.send, args.max_retries, args.idle))
