"""
Network stream interface for http_engine.

This module defines the NetworkStream interface: the raw, unbuffered
byte stream a transaction runs over. Line framing and timeouts are
layered on top by ``http_engine.transport``.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class NetworkStream(ABC):
    """
    Interface for bidirectional byte streams.

    Implementations wrap a single connected socket (or an in-memory
    stand-in). A stream is used by exactly one transaction and is
    never shared.
    """

    @abstractmethod
    async def read(self, max_bytes: Optional[int] = None) -> bytes:
        """
        Read data from the stream.

        Args:
            max_bytes: Maximum number of bytes to return. If None, the
                      implementation picks its own buffer size.

        Returns:
            The bytes read, or ``b""`` once the peer has closed the stream.

        Raises:
            RuntimeError: If the stream is closed.
            OSError: If a network error occurs.
        """
        pass

    @abstractmethod
    async def write(self, data: bytes) -> None:
        """
        Write all of ``data`` to the stream.

        Raises:
            RuntimeError: If the stream is closed.
            OSError: If a network error occurs.
        """
        pass

    @abstractmethod
    async def aclose(self) -> None:
        """Close the stream and release the underlying socket."""
        pass

    @abstractmethod
    def get_extra_info(self, name: str) -> Optional[Any]:
        """
        Get extra information about the stream.

        Args:
            name: The name of the information to retrieve, such as
                 "peername" or "sockname".

        Returns:
            The requested information or None if not available.
        """
        pass

    @property
    @abstractmethod
    def is_closed(self) -> bool:
        """Check if the stream is closed."""
        pass
