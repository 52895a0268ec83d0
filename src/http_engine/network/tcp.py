"""
asyncio socket backend for http_engine.

Connections are plain non-blocking sockets driven by the running
asyncio event loop (``sock_connect``/``sock_recv``/``sock_sendall``).
"""

import asyncio
import logging
import socket
from typing import Any, Optional

from .backend import NetworkBackend
from .stream import NetworkStream
from .utils import create_socket, validate_port

logger = logging.getLogger(__name__)

DEFAULT_READ_SIZE = 8192


class AsyncioNetworkStream(NetworkStream):
    """Network stream over a connected non-blocking socket."""

    def __init__(self, sock: socket.socket) -> None:
        self.sock = sock
        self.closed = False

    async def read(self, max_bytes: Optional[int] = None) -> bytes:
        if self.closed:
            raise RuntimeError("Stream is closed")
        loop = asyncio.get_running_loop()
        return await loop.sock_recv(self.sock, max_bytes or DEFAULT_READ_SIZE)

    async def write(self, data: bytes) -> None:
        if self.closed:
            raise RuntimeError("Stream is closed")
        loop = asyncio.get_running_loop()
        await loop.sock_sendall(self.sock, data)

    async def aclose(self) -> None:
        if not self.closed:
            self.closed = True
            self.sock.close()

    def get_extra_info(self, name: str) -> Optional[Any]:
        if name == "socket":
            return self.sock
        elif name == "peername":
            try:
                return self.sock.getpeername()
            except OSError:
                return None
        elif name == "sockname":
            try:
                return self.sock.getsockname()
            except OSError:
                return None
        return None

    @property
    def is_closed(self) -> bool:
        return self.closed


class AsyncioNetworkBackend(NetworkBackend):
    """Network backend that opens TCP connections on the asyncio loop."""

    async def connect_tcp(
        self, host: str, port: int, timeout: Optional[float] = None
    ) -> AsyncioNetworkStream:
        port = validate_port(port)
        if timeout is not None:
            return await asyncio.wait_for(self._connect(host, port), timeout)
        return await self._connect(host, port)

    async def _connect(self, host: str, port: int) -> AsyncioNetworkStream:
        loop = asyncio.get_running_loop()
        infos = await loop.getaddrinfo(host, port, type=socket.SOCK_STREAM)
        last_error: Optional[OSError] = None
        for family, type_, proto, _, address in infos:
            sock = create_socket(family, type_, proto)
            sock.setblocking(False)
            try:
                await loop.sock_connect(sock, address)
            except OSError as e:
                sock.close()
                last_error = e
                continue
            except BaseException:
                sock.close()
                raise
            logger.debug(f"Connected to {host}:{port} via {address}")
            return AsyncioNetworkStream(sock)
        raise last_error or OSError(f"Could not resolve {host}:{port}")
