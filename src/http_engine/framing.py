"""
Body framing for http_engine.

An HTTP/1.1 body is delimited in one of a few ways. ``TransferMode``
names them, and ``body_source``/``body_sink`` build the Source or Sink
that implements each one over a Transport.
"""

from enum import Enum
from typing import Mapping, Optional

from .chunked import ChunkedSink, ChunkedSource
from .streams import Sink, Source
from .transport import Transport

BLOCK_SIZE = 2048


class TransferMode(Enum):
    """How a message body is delimited on the wire."""
    CHUNKED = "http-chunked"          # Chunked transfer coding
    BY_LENGTH = "by-length"           # Exactly content-length bytes
    CLOSE_DELIMITED = "default"       # Until the peer closes the connection
    KEEP_OPEN = "keep-open"           # Raw bytes, connection stays open


class LengthSource(Source):
    """Source reading exactly ``length`` bytes."""

    def __init__(self, transport: Transport, length: int, block_size: int = BLOCK_SIZE) -> None:
        self._transport = transport
        self._remaining = length
        self._block_size = block_size

    async def read(self) -> Optional[bytes]:
        if self._remaining <= 0:
            return None
        chunk = await self._transport.receive_exactly(min(self._remaining, self._block_size))
        self._remaining -= len(chunk)
        return chunk


class CloseDelimitedSource(Source):
    """Source reading until the peer closes the connection."""

    def __init__(self, transport: Transport, block_size: int = BLOCK_SIZE) -> None:
        self._transport = transport
        self._block_size = block_size
        self._done = False

    async def read(self) -> Optional[bytes]:
        if self._done:
            return None
        chunk = await self._transport.receive_some(self._block_size)
        if not chunk:
            self._done = True
            return None
        return chunk


class RawSink(Sink):
    """Sink passing bytes straight through; the end of data sends nothing."""

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    async def write(self, chunk: Optional[bytes]) -> None:
        if chunk:
            await self._transport.send(chunk)


def content_length(headers: Mapping[str, str]) -> Optional[int]:
    """
    Extract a usable content-length from headers.

    Returns:
        The length, or None if absent or not a non-negative integer
    """
    value = headers.get("content-length")
    if value is None:
        return None
    value = value.strip()
    if not (value.isascii() and value.isdigit()):
        return None
    return int(value)


def request_mode(headers: Mapping[str, str]) -> TransferMode:
    """Pick the framing for an outgoing request body."""
    if "content-length" in headers:
        return TransferMode.KEEP_OPEN
    return TransferMode.CHUNKED


def response_mode(headers: Mapping[str, str]) -> TransferMode:
    """Pick the framing for an incoming response body."""
    transfer_encoding = headers.get("transfer-encoding")
    if transfer_encoding and transfer_encoding.strip().lower() != "identity":
        return TransferMode.CHUNKED
    if content_length(headers) is not None:
        return TransferMode.BY_LENGTH
    return TransferMode.CLOSE_DELIMITED


def body_source(
    mode: TransferMode,
    transport: Transport,
    length: Optional[int] = None,
    block_size: int = BLOCK_SIZE,
) -> Source:
    """Build the Source that reads a body framed with ``mode``."""
    if mode is TransferMode.CHUNKED:
        return ChunkedSource(transport)
    if mode is TransferMode.BY_LENGTH:
        if length is None:
            raise ValueError("by-length framing requires a length")
        return LengthSource(transport, length, block_size)
    if mode is TransferMode.CLOSE_DELIMITED:
        return CloseDelimitedSource(transport, block_size)
    raise ValueError(f"{mode.value} framing cannot be read")


def body_sink(mode: TransferMode, transport: Transport) -> Sink:
    """Build the Sink that writes a body framed with ``mode``."""
    if mode is TransferMode.CHUNKED:
        return ChunkedSink(transport)
    if mode is TransferMode.KEEP_OPEN:
        return RawSink(transport)
    raise ValueError(f"{mode.value} framing cannot be written")
