"""
HTTP/1.1 transaction implementation for http_engine.

This module implements the HTTP11Transaction class that drives one
request/response exchange over its own connection.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from .exceptions import HTTPClientError, ProtocolError, TimeoutError, TransportError
from .framing import (
    BLOCK_SIZE,
    TransferMode,
    body_sink,
    body_source,
    content_length,
    request_mode,
    response_mode,
)
from .headers import HeaderMap
from .http_primitives import ConnectFunction
from .network.backend import NetworkBackend
from .streams import NullSink, Sink, Source, StepFunction, pump_all
from .transport import Transport
from . import wire

logger = logging.getLogger(__name__)


class TransactionState(Enum):
    """States of an HTTP/1.1 transaction, in the only order they occur."""
    OPEN = 0              # Connected, nothing sent
    REQUEST_LINE_SENT = 1
    HEADERS_SENT = 2
    BODY_SENT = 3
    STATUS_RECEIVED = 4
    HEADERS_RECEIVED = 5
    BODY_RECEIVED = 6
    CLOSED = 7            # Connection released


class HTTP11Transaction:
    """
    HTTP/1.1 request/response driver.

    A transaction owns a single Transport from ``open`` to ``close``.
    Steps must be called in order; a failure in any step closes the
    transport before the error propagates. Use it as an async context
    manager so the connection is released on every path::

        async with await HTTP11Transaction.open("example.com", 80) as tx:
            await tx.send_request_line("GET", "/")
            ...
    """

    DEFAULT_TIMEOUT = 60.0

    def __init__(self, transport: Transport, block_size: int = BLOCK_SIZE) -> None:
        """
        Initialize the transaction.

        Args:
            transport: The connected transport this transaction owns
            block_size: Largest read for length or close delimited bodies
        """
        self._transport = transport
        self._block_size = block_size
        self._state = TransactionState.OPEN
        self._started = time.time()
        self._status_code: Optional[int] = None

    @classmethod
    async def open(
        cls,
        host: str,
        port: int,
        connect: Optional[ConnectFunction] = None,
        backend: Optional[NetworkBackend] = None,
        timeout: Optional[float] = None,
        block_size: int = BLOCK_SIZE,
    ) -> "HTTP11Transaction":
        """
        Connect to ``host:port`` and start a transaction.

        Args:
            host: Host to connect to (origin or proxy)
            port: Port to connect to
            connect: Connect override used instead of the backend
            backend: Backend used when no override is given
            timeout: Per-operation timeout in seconds

        Raises:
            TransportError: If the connection cannot be established
        """
        timeout = timeout or cls.DEFAULT_TIMEOUT
        if connect is None and backend is None:
            from .network.tcp import AsyncioNetworkBackend
            backend = AsyncioNetworkBackend()

        try:
            if connect is not None:
                stream = await asyncio.wait_for(connect(host, port), timeout)
            else:
                stream = await backend.connect_tcp(host, port, timeout)
        except asyncio.TimeoutError:
            logger.error(f"Connection to {host}:{port} timed out")
            raise TimeoutError(f"connect to {host}:{port} timed out", timeout=timeout)
        except OSError as e:
            logger.error(f"Connection to {host}:{port} failed: {e}")
            raise TransportError(f"connect to {host}:{port} failed: {e}", cause=e) from e

        logger.debug(f"Transaction opened to {host}:{port}")
        return cls(Transport(stream, timeout=timeout), block_size=block_size)

    async def __aenter__(self) -> "HTTP11Transaction":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _advance(self, new: TransactionState, *allowed: TransactionState) -> None:
        if self._state is TransactionState.CLOSED:
            raise ProtocolError("transaction is closed")
        if self._state not in allowed:
            raise ProtocolError(
                f"cannot move to {new.name} from {self._state.name}"
            )
        self._state = new

    async def _guard(self, step: str, operation: Any) -> Any:
        try:
            return await operation
        except BaseException as e:
            if isinstance(e, HTTPClientError):
                logger.error(f"Transaction failed during {step}: {e}")
            await self.close()
            raise

    async def send_request_line(self, method: Optional[str], uri: str) -> None:
        """Send ``<METHOD> <URI> HTTP/1.1``."""
        self._advance(TransactionState.REQUEST_LINE_SENT, TransactionState.OPEN)
        logger.debug(f"Sending request line: {method or 'GET'} {uri}")
        await self._guard("send-request-line", wire.send_request_line(self._transport, method, uri))

    async def send_headers(self, headers: Mapping[str, str]) -> None:
        """Send the header block."""
        self._advance(TransactionState.HEADERS_SENT, TransactionState.REQUEST_LINE_SENT)
        await self._guard("send-headers", wire.send_headers(self._transport, headers))

    async def send_body(
        self,
        headers: Mapping[str, str],
        source: Source,
        step: Optional[StepFunction] = None,
    ) -> None:
        """
        Stream the request body.

        With a content-length header the bytes are sent as they are;
        otherwise the body is sent with chunked transfer coding.
        """
        self._advance(TransactionState.BODY_SENT, TransactionState.HEADERS_SENT)
        mode = request_mode(headers)
        logger.debug(f"Sending request body ({mode.value})")
        sink = body_sink(mode, self._transport)
        await self._guard("send-body", pump_all(source, sink, step))

    async def receive_status_line(self) -> Tuple[int, str]:
        """
        Read the status line.

        Returns:
            The status code and the raw status line
        """
        self._advance(
            TransactionState.STATUS_RECEIVED,
            TransactionState.HEADERS_SENT,
            TransactionState.BODY_SENT,
        )
        code, status = await self._guard(
            "receive-status-line", wire.receive_status_line(self._transport)
        )
        self._status_code = code
        logger.debug(f"Received status: {status}")
        return code, status

    async def receive_headers(self) -> HeaderMap:
        """Read the response header block."""
        self._advance(TransactionState.HEADERS_RECEIVED, TransactionState.STATUS_RECEIVED)
        return await self._guard("receive-headers", wire.receive_headers(self._transport))

    async def receive_body(
        self,
        headers: Mapping[str, str],
        sink: Optional[Sink] = None,
        step: Optional[StepFunction] = None,
    ) -> TransferMode:
        """
        Stream the response body into ``sink`` (discarded if None).

        Returns:
            The framing that was used to read the body
        """
        self._advance(TransactionState.BODY_RECEIVED, TransactionState.HEADERS_RECEIVED)
        mode = response_mode(headers)
        logger.debug(f"Receiving response body ({mode.value})")
        source = body_source(
            mode,
            self._transport,
            length=content_length(headers),
            block_size=self._block_size,
        )
        await self._guard("receive-body", pump_all(source, sink or NullSink(), step))
        return mode

    async def close(self) -> None:
        """Close the transaction and release its connection."""
        if self._state is TransactionState.CLOSED:
            return
        self._state = TransactionState.CLOSED
        await self._transport.close()
        logger.debug(f"Transaction closed after {time.time() - self._started:.3f}s")

    @property
    def state(self) -> TransactionState:
        return self._state

    @property
    def is_closed(self) -> bool:
        """Check if the transaction is closed."""
        return self._state is TransactionState.CLOSED

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def metrics(self) -> Dict[str, Any]:
        """
        Get transaction metrics.

        Returns:
            Dictionary with transaction metrics
        """
        return {
            "bytes_sent": self._transport.bytes_sent,
            "bytes_received": self._transport.bytes_received,
            "status_code": self._status_code,
            "elapsed": time.time() - self._started,
            "state": self._state.name.lower(),
        }
