"""
Mock network implementations for testing.

This module provides mock implementations of NetworkStream and NetworkBackend
that can be used for unit testing without requiring actual network connections.
"""

from collections import defaultdict, deque
from typing import Any, Deque, Dict, List, Optional, Tuple

from .backend import NetworkBackend
from .stream import NetworkStream


class MockNetworkStream(NetworkStream):
    """
    Mock network stream for testing.

    This implementation simulates a network stream in memory,
    allowing tests to verify network behavior without actual I/O.
    Reads return at most ``read_size`` bytes at a time so that
    buffering code sees realistically fragmented input.
    """

    def __init__(
        self,
        data: bytes = b"",
        read_size: Optional[int] = None,
        read_error: Optional[Exception] = None,
        write_error: Optional[Exception] = None,
    ):
        """
        Initialize the mock stream.

        Args:
            data: Initial data to be available for reading.
            read_size: Largest chunk handed out by a single read.
            read_error: Raised by ``read`` once the scripted data is used up.
            write_error: Raised by every ``write``.
        """
        self._data = data
        self._position = 0
        self._closed = False
        self._close_count = 0
        self._read_size = read_size
        self._read_error = read_error
        self._write_error = write_error
        self._extra_info: Dict[str, Any] = {}
        self._write_buffer: List[bytes] = []

    async def read(self, max_bytes: Optional[int] = None) -> bytes:
        """
        Read data from the mock stream.

        Returns:
            The data read from the stream, ``b""`` at end of data.

        Raises:
            RuntimeError: If the stream is closed.
        """
        if self._closed:
            raise RuntimeError("Stream is closed")

        if self._position >= len(self._data):
            if self._read_error is not None:
                raise self._read_error
            return b""

        limit = len(self._data) - self._position
        if max_bytes is not None:
            limit = min(limit, max_bytes)
        if self._read_size is not None:
            limit = min(limit, self._read_size)

        result = self._data[self._position:self._position + limit]
        self._position += limit
        return result

    async def write(self, data: bytes) -> None:
        """
        Write data to the mock stream.

        Raises:
            RuntimeError: If the stream is closed.
        """
        if self._closed:
            raise RuntimeError("Stream is closed")
        if self._write_error is not None:
            raise self._write_error

        self._write_buffer.append(data)

    async def aclose(self) -> None:
        """Close the mock stream."""
        self._closed = True
        self._close_count += 1

    def get_extra_info(self, name: str) -> Optional[Any]:
        return self._extra_info.get(name)

    @property
    def is_closed(self) -> bool:
        """Check if the mock stream is closed."""
        return self._closed

    @property
    def close_count(self) -> int:
        """Number of times ``aclose`` was called."""
        return self._close_count

    @property
    def written_data(self) -> bytes:
        """Get all data that was written to the stream."""
        return b"".join(self._write_buffer)

    @property
    def unread_data(self) -> bytes:
        """Scripted data that no read has consumed yet."""
        return self._data[self._position:]

    def set_extra_info(self, name: str, value: Any) -> None:
        self._extra_info[name] = value

    def add_data(self, data: bytes) -> None:
        """
        Add data to be available for reading.

        Args:
            data: The data to add.
        """
        self._data += data


class MockNetworkBackend(NetworkBackend):
    """
    Mock network backend for testing.

    Every ``connect_tcp`` call creates a brand-new MockNetworkStream
    loaded with the next reply queued for that host and port, and
    records the connection so tests can inspect what was written.
    """

    def __init__(self, read_size: Optional[int] = None):
        self._replies: Dict[Tuple[str, int], Deque[bytes]] = defaultdict(deque)
        self._failures: Dict[Tuple[str, int], Exception] = {}
        self._read_size = read_size
        self.connections: List[Tuple[str, int, MockNetworkStream]] = []

    def add_response(self, host: str, port: int, data: bytes) -> None:
        """
        Queue the bytes the next connection to ``host:port`` will read.

        Args:
            host: The hostname.
            port: The port number.
            data: The raw response bytes.
        """
        self._replies[(host, port)].append(data)

    def fail_connect(self, host: str, port: int, error: Exception) -> None:
        """Make every connection attempt to ``host:port`` raise ``error``."""
        self._failures[(host, port)] = error

    async def connect_tcp(
        self,
        host: str,
        port: int,
        timeout: Optional[float] = None
    ) -> MockNetworkStream:
        """
        Create a mock TCP connection.

        Raises:
            ConnectionRefusedError: If no reply was queued for ``host:port``.
        """
        key = (host, port)
        if key in self._failures:
            raise self._failures[key]

        replies = self._replies.get(key)
        if not replies:
            raise ConnectionRefusedError(f"No mock reply queued for {host}:{port}")

        stream = MockNetworkStream(replies.popleft(), read_size=self._read_size)
        stream.set_extra_info("socket", len(self.connections))
        stream.set_extra_info("peername", (host, port))
        stream.set_extra_info("sockname", ("127.0.0.1", 12345))
        self.connections.append((host, port, stream))
        return stream

    def get_connections(self, host: str, port: int) -> List[MockNetworkStream]:
        """Return every stream opened to ``host:port``, oldest first."""
        return [s for h, p, s in self.connections if (h, p) == (host, port)]

    def reset(self) -> None:
        """Forget queued replies and recorded connections."""
        self._replies.clear()
        self._failures.clear()
        self.connections.clear()
