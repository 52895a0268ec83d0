"""
Request normalization for http_engine.

``prepare_request`` turns a caller's Request into the canonical form a
transaction sends: resolved URL components, the request-target, the
address to connect to (origin or proxy) and the final header set.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple
from urllib.parse import SplitResult, unquote, urlsplit, urlunsplit

from .config import ClientConfig
from .exceptions import InvalidRequestError
from .headers import HeaderMap
from .http_primitives import ConnectFunction, Request
from .network.utils import format_host_header, validate_port
from .streams import Sink, Source, StepFunction, as_sink, as_source

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreparedRequest:
    """A Request with every default applied, ready to go on the wire."""

    method: str
    uri: str
    url: str
    host: str
    port: int
    connect_host: str
    connect_port: int
    headers: HeaderMap
    source: Optional[Source]
    sink: Sink
    step: Optional[StepFunction]
    connect: Optional[ConnectFunction]
    proxy: Optional[str]
    user: Optional[str]
    password: Optional[str]

    @property
    def via_proxy(self) -> bool:
        return self.proxy is not None


def _split(url: str) -> SplitResult:
    try:
        parts = urlsplit(url)
        parts.port  # Raises ValueError for a malformed port
    except ValueError as e:
        raise InvalidRequestError(f"invalid url {url!r}: {e}", cause=e) from e
    return parts


def _origin_form(path: str, query: Optional[str], fragment: Optional[str]) -> str:
    uri = path
    if query:
        uri += "?" + query
    if fragment:
        uri += "#" + fragment
    return uri


def resolve_proxy(proxy: str, config: ClientConfig) -> Tuple[str, int]:
    """
    Return the host and port to connect to for ``proxy``.

    A proxy without a port uses ``config.proxy_port`` (3128 by default).
    """
    if "//" not in proxy:
        proxy = "//" + proxy
    parts = _split(proxy)
    if not parts.hostname:
        raise InvalidRequestError(f"invalid proxy {proxy!r}")
    return parts.hostname, parts.port or config.proxy_port


def prepare_request(request: Request, config: Optional[ClientConfig] = None) -> PreparedRequest:
    """
    Normalize ``request`` against ``config``.

    Raises:
        InvalidRequestError: If no host can be determined.
    """
    config = config or ClientConfig()
    parsed = _split(request.url) if request.url else None

    scheme = request.scheme or (parsed.scheme if parsed else "") or "http"
    host = request.host or (parsed.hostname if parsed else None)
    if not host:
        raise InvalidRequestError(f"invalid host {host!r}")
    port = request.port or (parsed.port if parsed else None) or config.port
    try:
        port = validate_port(port)
    except ValueError as e:
        raise InvalidRequestError(str(e), cause=e) from e
    path = request.path or (parsed.path if parsed else "") or "/"
    query = request.query if request.query is not None else (parsed.query if parsed else None)
    fragment = (
        request.fragment if request.fragment is not None
        else (parsed.fragment if parsed else None)
    )

    proxy = request.proxy or config.proxy
    if proxy is None and scheme.lower() != "http":
        raise InvalidRequestError(f"unsupported scheme {scheme!r}")

    host_header = format_host_header(host, port, scheme.lower())
    url = urlunsplit((scheme, host_header, path, query or "", fragment or ""))

    if request.uri:
        uri = request.uri
    elif proxy is not None:
        uri = url
    else:
        uri = _origin_form(path, query, fragment)

    if proxy is not None:
        connect_host, connect_port = resolve_proxy(proxy, config)
    else:
        connect_host, connect_port = host, port

    source = as_source(request.source)

    headers = HeaderMap(request.headers)
    if "user-agent" not in headers:
        headers["user-agent"] = config.user_agent
    if "host" not in headers:
        headers["host"] = host_header
    if source is not None and "content-length" not in headers and "transfer-encoding" not in headers:
        headers["transfer-encoding"] = "chunked"

    user, password = request.user, request.password
    if user is None and parsed is not None and parsed.username is not None:
        user = unquote(parsed.username)
        password = unquote(parsed.password) if parsed.password is not None else None

    prepared = PreparedRequest(
        method=request.effective_method,
        uri=uri,
        url=url,
        host=host,
        port=port,
        connect_host=connect_host,
        connect_port=connect_port,
        headers=headers,
        source=source,
        sink=as_sink(request.sink),
        step=request.step,
        connect=request.connect,
        proxy=proxy,
        user=user,
        password=password,
    )
    logger.debug(
        f"Prepared {prepared.method} {prepared.uri} -> "
        f"{prepared.connect_host}:{prepared.connect_port}"
    )
    return prepared
