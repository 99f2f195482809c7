"""Asyncio UDP socket abstraction with instrumentation."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import override

logger = logging.getLogger(__name__)

DatagramCallback = Callable[[bytes], None]
ErrorCallback = Callable[[Exception], None]


class _DatagramHandler(asyncio.DatagramProtocol):
    """Forward datagrams and socket errors to the callbacks given at open()."""

    def __init__(self, on_datagram: DatagramCallback, on_error: ErrorCallback) -> None:
        self._on_datagram = on_datagram
        self._on_error = on_error

    @override
    def datagram_received(self, data: bytes, addr: tuple[str | bytes, int]) -> None:
        self._on_datagram(data)

    @override
    def error_received(self, exc: Exception) -> None:
        self._on_error(exc)


class UDPConnection:
    """Async UDP endpoint connected to one remote host."""

    def __init__(
        self,
        host: str,
        port: int,
        open_timeout: float = 5.0,
    ):
        """
        Initialize UDP endpoint parameters.

        Args:
            host: Remote host
            port: Remote port
            open_timeout: Seconds allowed for resolving and binding the socket
        """
        self.host = host
        self.port = port
        self.open_timeout = open_timeout
        self.transport: asyncio.DatagramTransport | None = None

    async def open(self, on_datagram: DatagramCallback, on_error: ErrorCallback) -> None:
        """
        Bind a local ephemeral port and connect it to the remote address.

        Args:
            on_datagram: Called with every datagram received
            on_error: Called with socket errors reported by the event loop

        Raises:
            OSError: If the socket cannot be created or bound
            TimeoutError: If address resolution takes longer than open_timeout
        """
        start_time = time.perf_counter()
        loop = asyncio.get_running_loop()
        logger.info(
            "Opening UDP endpoint to %s:%d",
            self.host,
            self.port,
            extra={"host": self.host, "port": self.port},
        )
        transport, _ = await asyncio.wait_for(
            loop.create_datagram_endpoint(
                lambda: _DatagramHandler(on_datagram, on_error),
                remote_addr=(self.host, self.port),
            ),
            timeout=self.open_timeout,
        )
        self.transport = transport
        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.debug(
            "UDP endpoint to %s:%d ready in %.1fms",
            self.host,
            self.port,
            elapsed_ms,
            extra={"host": self.host, "port": self.port},
        )

    def send(self, data: bytes) -> bool:
        """
        Send one datagram.

        Returns:
            True if the datagram was handed to the socket, False otherwise
        """
        if self.transport is None or self.transport.is_closing():
            logger.debug(
                "Cannot send: endpoint not open",
                extra={"host": self.host, "port": self.port},
            )
            return False

        try:
            self.transport.sendto(data)
        except OSError:
            logger.exception(
                "Send to %s:%d failed",
                self.host,
                self.port,
                extra={"host": self.host, "port": self.port, "bytes": len(data)},
            )
            return False
        logger.debug(
            "Sent %d bytes to %s:%d",
            len(data),
            self.host,
            self.port,
            extra={"bytes": len(data), "host": self.host, "port": self.port},
        )
        return True

    def close(self) -> None:
        """Close the endpoint. Safe to call more than once."""
        if self.transport is None:
            return
        logger.info(
            "Closing UDP endpoint to %s:%d",
            self.host,
            self.port,
            extra={"host": self.host, "port": self.port},
        )
        try:
            self.transport.close()
        finally:
            self.transport = None

    @property
    def is_open(self) -> bool:
        return self.transport is not None and not self.transport.is_closing()

    def __repr__(self) -> str:
        status = "open" if self.is_open else "closed"
        return f"UDPConnection({self.host}:{self.port}, {status})"
