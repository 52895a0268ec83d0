"""
http_engine - HTTP/1.1 client protocol engine

Drives request/response transactions over plain byte streams:
wire framing (status line, folded headers, chunked, length or
close delimited bodies), redirects, Basic authentication and proxies.
"""

from .version import __version__

__author__ = "Developer"
__email__ = "dev@example.com"

# Import main components for easy access
from .config import ClientConfig
from .headers import HeaderMap
from .http_primitives import Request, Response, TextResponse
from .http11 import HTTP11Transaction, TransactionState
from .client import HTTPClient, request, request_sync
from .normalizer import PreparedRequest, prepare_request
from .framing import TransferMode
from .transport import Transport
from .exceptions import (
    HTTPClientError,
    TransportError,
    TimeoutError,
    FramingError,
    ProtocolError,
    InvalidRequestError,
    StreamError,
)
from .streams import (
    Source,
    Sink,
    BytesSource,
    IterableSource,
    EmptySource,
    NullSink,
    BufferSink,
    FileSink,
    pump_step,
    pump_all,
)

__all__ = [
    "__version__",
    "ClientConfig",
    "HeaderMap",
    "Request",
    "Response",
    "TextResponse",
    "HTTP11Transaction",
    "TransactionState",
    "HTTPClient",
    "request",
    "request_sync",
    "PreparedRequest",
    "prepare_request",
    "TransferMode",
    "Transport",
    "HTTPClientError",
    "TransportError",
    "TimeoutError",
    "FramingError",
    "ProtocolError",
    "InvalidRequestError",
    "StreamError",
    "Source",
    "Sink",
    "BytesSource",
    "IterableSource",
    "EmptySource",
    "NullSink",
    "BufferSink",
    "FileSink",
    "pump_step",
    "pump_all",
]
