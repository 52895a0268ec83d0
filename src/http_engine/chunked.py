"""
Chunked transfer coding for http_engine.

``ChunkedSink`` frames outgoing request bodies and ``ChunkedSource``
unframes incoming response bodies, both directly on a Transport:

    <HEX-SIZE>[;extension]\\r\\n<payload>\\r\\n ... 0\\r\\n[trailers]\\r\\n
"""

import re
from typing import Optional

from .exceptions import FramingError
from .streams import Sink, Source
from .transport import Transport

LAST_CHUNK = b"0\r\n\r\n"

_HEX_SIZE = re.compile(r"[0-9A-Fa-f]+")


def encode_chunk(data: bytes) -> bytes:
    """Frame ``data`` as a single chunk."""
    return b"%X\r\n%s\r\n" % (len(data), data)


def parse_chunk_size(line: str) -> int:
    """
    Parse a chunk-size line, ignoring any chunk extension.

    Raises:
        FramingError: If the size is not a hexadecimal number.
    """
    size = line.split(";", 1)[0].strip()
    if not _HEX_SIZE.fullmatch(size):
        raise FramingError(f"invalid chunk size {line!r}")
    return int(size, 16)


class ChunkedSource(Source):
    """Source that decodes a chunked body from the transport."""

    def __init__(self, transport: Transport) -> None:
        self._transport = transport
        self._done = False

    async def read(self) -> Optional[bytes]:
        if self._done:
            return None

        size = parse_chunk_size(await self._transport.receive_line())
        if size == 0:
            # Trailer fields are read and dropped
            while await self._transport.receive_line() != "":
                pass
            self._done = True
            return None

        chunk = await self._transport.receive_exactly(size)
        await self._transport.receive_line()
        return chunk


class ChunkedSink(Sink):
    """Sink that encodes a chunked body onto the transport."""

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    async def write(self, chunk: Optional[bytes]) -> None:
        if chunk is None:
            await self._transport.send(LAST_CHUNK)
            return
        # An empty chunk would read as the last chunk
        if chunk:
            await self._transport.send(encode_chunk(chunk))
