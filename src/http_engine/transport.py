"""
Transport handle for http_engine.

A ``Transport`` owns one NetworkStream for the lifetime of a single
transaction. It adds the line-oriented and fixed-length reads the
wire codec needs, applies the per-operation timeout, and turns raw
socket failures into ``TransportError``.
"""

import asyncio
import logging
from typing import Awaitable, Optional, TypeVar

from .exceptions import FramingError, TimeoutError, TransportError
from .network.stream import NetworkStream

logger = logging.getLogger(__name__)

T = TypeVar("T")

READ_SIZE = 8192
MAX_LINE_SIZE = 64 * 1024


class Transport:
    """
    Buffered, timeout-bounded byte stream.

    Lines are decoded as ISO-8859-1, which maps every byte to one
    character, so header text round-trips without loss.
    """

    def __init__(
        self,
        stream: NetworkStream,
        timeout: Optional[float] = None,
        read_size: int = READ_SIZE,
    ) -> None:
        self._stream = stream
        self._timeout = timeout
        self._read_size = read_size
        self._buffer = bytearray()
        self._closed = False
        self.bytes_sent = 0
        self.bytes_received = 0

    async def _run(self, operation: Awaitable[T], action: str) -> T:
        if self._closed:
            if asyncio.iscoroutine(operation):
                operation.close()
            raise TransportError(f"cannot {action}: transport is closed")
        try:
            if self._timeout is not None:
                return await asyncio.wait_for(operation, self._timeout)
            return await operation
        except asyncio.TimeoutError:
            raise TimeoutError(f"{action} timed out", timeout=self._timeout)
        except (OSError, RuntimeError) as e:
            raise TransportError(f"{action} failed: {e}", cause=e) from e

    async def _fill(self) -> bool:
        data = await self._run(self._stream.read(self._read_size), "receive")
        if not data:
            return False
        self.bytes_received += len(data)
        self._buffer.extend(data)
        return True

    async def send(self, data: bytes) -> int:
        """Send all of ``data`` and return the number of bytes sent."""
        await self._run(self._stream.write(data), "send")
        self.bytes_sent += len(data)
        return len(data)

    async def receive_line(self) -> str:
        """
        Read one line, excluding its line terminator.

        Both CRLF and a bare LF end a line.

        Raises:
            TransportError: If the peer closes before the line ends.
            FramingError: If the line exceeds MAX_LINE_SIZE.
        """
        start = 0
        while True:
            index = self._buffer.find(b"\n", start)
            if index >= 0:
                line = bytes(self._buffer[:index])
                del self._buffer[:index + 1]
                if line.endswith(b"\r"):
                    line = line[:-1]
                return line.decode("iso-8859-1")
            if len(self._buffer) > MAX_LINE_SIZE:
                raise FramingError(f"line exceeds {MAX_LINE_SIZE} bytes")
            start = len(self._buffer)
            if not await self._fill():
                raise TransportError("connection closed while reading a line")

    async def receive_exactly(self, size: int) -> bytes:
        """
        Read exactly ``size`` bytes.

        Raises:
            TransportError: If the peer closes before ``size`` bytes arrive.
        """
        while len(self._buffer) < size:
            if not await self._fill():
                raise TransportError(
                    f"connection closed after {len(self._buffer)} of {size} bytes"
                )
        data = bytes(self._buffer[:size])
        del self._buffer[:size]
        return data

    async def receive_some(self, max_bytes: int = READ_SIZE) -> bytes:
        """Read up to ``max_bytes``; returns ``b""`` once the peer has closed."""
        if not self._buffer and not await self._fill():
            return b""
        data = bytes(self._buffer[:max_bytes])
        del self._buffer[:max_bytes]
        return data

    async def close(self) -> None:
        """Close the underlying stream. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._buffer.clear()
        try:
            await self._stream.aclose()
        except OSError as e:
            logger.warning(f"Error closing transport: {e}")

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def stream(self) -> NetworkStream:
        return self._stream
