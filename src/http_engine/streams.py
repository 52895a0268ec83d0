"""
Streaming framework for http_engine.

This module provides the source/sink abstractions used to move request
and response bodies without holding them in memory. A source hands out
chunks until it returns None; a sink consumes chunks until it is given
None. ``pump_all`` moves one chunk per step, so the sink drives how fast
the source is read.
"""

from abc import ABC, abstractmethod
from typing import (
    Any,
    AsyncIterable,
    Awaitable,
    Callable,
    Iterable,
    List,
    Optional,
    Union,
)

from .exceptions import StreamError

DEFAULT_CHUNK_SIZE = 2048


class Source(ABC):
    """Producer of body chunks."""

    @abstractmethod
    async def read(self) -> Optional[bytes]:
        """Return the next chunk, or None once the source is exhausted."""
        pass


class Sink(ABC):
    """Consumer of body chunks."""

    @abstractmethod
    async def write(self, chunk: Optional[bytes]) -> None:
        """Consume ``chunk``; None signals that no more data will follow."""
        pass


StepFunction = Callable[[Source, Sink], Awaitable[bool]]
SourceInput = Union[Source, bytes, str, Iterable[bytes], AsyncIterable[bytes]]


class EmptySource(Source):
    """Source that is exhausted from the start."""

    async def read(self) -> Optional[bytes]:
        return None


class BytesSource(Source):
    """
    Source over an in-memory payload.

    The payload is handed out in pieces of at most ``chunk_size`` bytes.
    """

    def __init__(self, data: Union[bytes, str], chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        if isinstance(data, str):
            data = data.encode("utf-8")
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self._data = data
        self._chunk_size = chunk_size
        self._position = 0

    async def read(self) -> Optional[bytes]:
        if self._position >= len(self._data):
            return None
        chunk = self._data[self._position:self._position + self._chunk_size]
        self._position += len(chunk)
        return chunk

    def __len__(self) -> int:
        return len(self._data)


class IterableSource(Source):
    """Source over a synchronous or asynchronous iterable of bytes."""

    def __init__(self, data: Union[Iterable[bytes], AsyncIterable[bytes]]) -> None:
        self._data = data
        self._iterator: Optional[Any] = None
        self._done = False

    async def read(self) -> Optional[bytes]:
        if self._done:
            return None
        if self._iterator is None:
            if hasattr(self._data, "__aiter__"):
                self._iterator = self._data.__aiter__()
            else:
                self._iterator = iter(self._data)

        while True:
            try:
                if hasattr(self._iterator, "__anext__"):
                    chunk = await self._iterator.__anext__()
                else:
                    chunk = next(self._iterator)
            except (StopIteration, StopAsyncIteration):
                self._done = True
                return None
            if isinstance(chunk, str):
                chunk = chunk.encode("utf-8")
            if chunk:  # Skip empty chunks
                return chunk


class NullSink(Sink):
    """Sink that discards everything."""

    async def write(self, chunk: Optional[bytes]) -> None:
        return None


class BufferSink(Sink):
    """Sink that collects every chunk in memory."""

    def __init__(self) -> None:
        self._chunks: List[bytes] = []
        self._finished = False

    async def write(self, chunk: Optional[bytes]) -> None:
        if chunk is None:
            self._finished = True
            return
        if self._finished:
            raise StreamError("Cannot write to a finished sink")
        self._chunks.append(chunk)

    def getvalue(self) -> bytes:
        """Return everything written so far."""
        return b"".join(self._chunks)

    @property
    def finished(self) -> bool:
        return self._finished


class FileSink(Sink):
    """
    Sink writing into a file-like object.

    The file is left open when the body ends; its owner closes it.
    """

    def __init__(self, fileobj: Any) -> None:
        self._fileobj = fileobj

    async def write(self, chunk: Optional[bytes]) -> None:
        if chunk is None:
            flush = getattr(self._fileobj, "flush", None)
            if flush is not None:
                flush()
            return
        self._fileobj.write(chunk)


def as_source(data: Optional[SourceInput]) -> Optional[Source]:
    """
    Coerce request body data into a Source.

    Args:
        data: A Source, bytes, str, or a (sync or async) iterable of bytes

    Returns:
        A Source, or None when ``data`` is None
    """
    if data is None or isinstance(data, Source):
        return data
    if isinstance(data, (bytes, bytearray, str)):
        return BytesSource(bytes(data) if isinstance(data, bytearray) else data)
    if hasattr(data, "__aiter__") or hasattr(data, "__iter__"):
        return IterableSource(data)
    raise TypeError(f"Cannot use {type(data).__name__} as a body source")


def as_sink(target: Any) -> Sink:
    """
    Coerce a response body destination into a Sink.

    None discards the body; objects with a ``write`` method receive it.
    """
    if target is None:
        return NullSink()
    if isinstance(target, Sink):
        return target
    if hasattr(target, "write"):
        return FileSink(target)
    raise TypeError(f"Cannot use {type(target).__name__} as a body sink")


async def pump_step(source: Source, sink: Sink) -> bool:
    """
    Move a single chunk from ``source`` to ``sink``.

    Returns:
        True if more data may follow, False once the end was delivered
    """
    chunk = await source.read()
    await sink.write(chunk)
    return chunk is not None


async def pump_all(
    source: Source,
    sink: Sink,
    step: Optional[StepFunction] = None,
) -> None:
    """
    Move everything from ``source`` to ``sink``, one step at a time.

    Any exception raised by the source or sink stops the pump and
    propagates to the caller.
    """
    step = step or pump_step
    while await step(source, sink):
        pass

