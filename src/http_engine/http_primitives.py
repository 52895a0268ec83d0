"""
HTTP primitives for http_engine.

This module defines the request descriptor callers hand to the client
and the result tuples it returns. Requests are immutable; every retry
derives a new Request instead of modifying the caller's.
"""

from dataclasses import dataclass, field, replace
from typing import (
    Any,
    Awaitable,
    Callable,
    Mapping,
    NamedTuple,
    Optional,
)

from .exceptions import InvalidRequestError
from .headers import HeaderMap
from .network.stream import NetworkStream
from .streams import StepFunction

ConnectFunction = Callable[[str, int], Awaitable[NetworkStream]]


@dataclass(frozen=True)
class Request:
    """
    Immutable description of one logical HTTP request.

    Either ``url`` or the split components (``host`` at least) must be
    given; explicit components win over the ones parsed from ``url``.

    Attributes:
        url: Absolute URL of the resource
        method: HTTP method; None is sent as GET
        scheme, host, port, path, query, fragment: URL components
        uri: Request-target to send verbatim instead of the computed one
        headers: Request headers, names are case-insensitive
        source: Request body (a Source, bytes, str or iterable of bytes)
        sink: Destination for the response body (a Sink or file-like)
        step: Pump step function used to move bodies
        user, password: Credentials for Basic authentication
        proxy: Proxy URL; requests go through it with an absolute target
        redirect: Whether 301/302 responses are followed
        connect: Replaces the backend's connect for this request
        nredirects: Number of redirects already followed
    """

    url: Optional[str] = None
    method: Optional[str] = None
    scheme: Optional[str] = None
    host: Optional[str] = None
    port: Optional[int] = None
    path: Optional[str] = None
    query: Optional[str] = None
    fragment: Optional[str] = None
    uri: Optional[str] = None
    headers: Mapping[str, Any] = field(default_factory=dict)
    source: Any = None
    sink: Any = None
    step: Optional[StepFunction] = None
    user: Optional[str] = None
    password: Optional[str] = None
    proxy: Optional[str] = None
    redirect: bool = True
    connect: Optional[ConnectFunction] = None
    nredirects: int = 0

    def __post_init__(self) -> None:
        """Validate request data after initialization."""
        if self.method is not None and not isinstance(self.method, str):
            raise InvalidRequestError("method must be a string")

        if self.url is None and self.host is None:
            raise InvalidRequestError("either url or host must be given")

        if self.nredirects < 0:
            raise InvalidRequestError("nredirects must be non-negative")

        if not isinstance(self.headers, Mapping):
            raise InvalidRequestError("headers must be a mapping")

    def add_header(self, name: str, value: str) -> "Request":
        """Create a new request with one header set."""
        headers = HeaderMap(self.headers)
        headers[name] = value
        return replace(self, headers=headers)

    @property
    def effective_method(self) -> str:
        return self.method or "GET"


class Response(NamedTuple):
    """Outcome of a request whose body went to the caller's sink."""
    ok: bool
    status_code: int
    headers: HeaderMap
    status_line: str


class TextResponse(NamedTuple):
    """Outcome of a request made with a bare URL."""
    body: str
    status_code: int
    headers: HeaderMap
    status_line: str
