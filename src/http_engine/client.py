"""
HTTP client for http_engine.

``HTTPClient`` runs a request through as many transactions as it takes
to reach a final response: it follows 301/302 redirects for safe
methods and retries once with Basic credentials after a 401. Every
attempt opens its own connection.
"""

import asyncio
import base64
import logging
import re
from typing import Mapping, Optional, Union, overload
from urllib.parse import urljoin, urlsplit

from .config import ClientConfig
from .exceptions import HTTPClientError
from .http11 import HTTP11Transaction
from .http_primitives import Request, Response, TextResponse
from .network.backend import NetworkBackend
from .normalizer import PreparedRequest, prepare_request
from .streams import BufferSink

logger = logging.getLogger(__name__)

REDIRECT_CODES = (301, 302)
REDIRECT_METHODS = (None, "GET", "HEAD")

_CHARSET = re.compile(r"charset=\"?([\w.:-]+)", re.IGNORECASE)


def should_redirect(
    request: Request,
    prepared: PreparedRequest,
    code: int,
    headers: Mapping[str, str],
    max_redirects: int,
) -> bool:
    """
    Decide whether a response is a redirect that should be followed.

    A location the engine cannot reach (a non-http scheme without a
    proxy) is not followed, so the redirect becomes the final response.
    """
    location = (headers.get("location") or "").strip()
    if not location:
        return False
    if not (
        request.redirect is not False
        and code in REDIRECT_CODES
        and request.method in REDIRECT_METHODS
        and request.nredirects < max_redirects
    ):
        return False
    target = urlsplit(urljoin(prepared.url, location))
    return prepared.via_proxy or target.scheme.lower() == "http"


def should_authorize(prepared: PreparedRequest, code: int) -> bool:
    """Decide whether a 401 response should be retried with credentials."""
    # A request that already carried credentials was refused for good
    if "authorization" in prepared.headers:
        return False
    return code == 401 and bool(prepared.user) and prepared.password is not None


def should_receive_body(method: str, code: int) -> bool:
    """Decide whether a response carries a body that must be read."""
    if method == "HEAD":
        return False
    if code in (204, 304):
        return False
    if 100 <= code < 200:
        return False
    return True


def basic_credentials(user: str, password: str) -> str:
    """Build the value of a Basic authorization header."""
    token = base64.b64encode(f"{user}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


def redirect_request(request: Request, prepared: PreparedRequest, location: str) -> Request:
    """
    Derive the request for the next redirect hop.

    The body, sink, headers, proxy and connect override carry over;
    the method and credentials do not.
    """
    # Location should be absolute, relative values are resolved anyway
    return Request(
        url=urljoin(prepared.url, location.strip()),
        source=request.source,
        sink=request.sink,
        step=request.step,
        headers=request.headers,
        proxy=request.proxy,
        connect=request.connect,
        nredirects=request.nredirects + 1,
    )


def authorize_request(request: Request, prepared: PreparedRequest) -> Request:
    """Derive the request that retries with Basic credentials."""
    return request.add_header("authorization", basic_credentials(prepared.user, prepared.password))


def decode_text(body: bytes, headers: Mapping[str, str]) -> str:
    """Decode a body with the charset of its content-type, ISO-8859-1 otherwise."""
    match = _CHARSET.search(headers.get("content-type", ""))
    if match:
        try:
            return body.decode(match.group(1), errors="replace")
        except LookupError:
            pass
    return body.decode("iso-8859-1")


class HTTPClient:
    """
    HTTP/1.1 client.

    Example::

        client = HTTPClient()
        page = await client.request("http://example.com/")
        print(page.status_code, page.body)
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        backend: Optional[NetworkBackend] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            config: Defaults applied to every request
            backend: Network backend used to open connections
        """
        self._config = config or ClientConfig()
        if backend is None:
            from .network.tcp import AsyncioNetworkBackend
            backend = AsyncioNetworkBackend()
        self._backend = backend

    @property
    def config(self) -> ClientConfig:
        return self._config

    @overload
    async def request(self, target: str, body: Optional[Union[bytes, str]] = None) -> TextResponse: ...

    @overload
    async def request(self, target: Request) -> Response: ...

    async def request(self, target, body=None):
        """
        Perform a request.

        Args:
            target: A URL, or a Request describing the whole request
            body: With a URL only; sends it with POST instead of GET

        Returns:
            TextResponse with the decoded body for a URL,
            Response for a Request (the body went to its sink)

        Raises:
            HTTPClientError: If any transaction fails
        """
        if isinstance(target, str):
            return await self._simple_request(target, body)
        if body is not None:
            raise TypeError("body is only accepted together with a URL")
        return await self._request(target)

    async def _simple_request(self, url: str, body: Optional[Union[bytes, str]]) -> TextResponse:
        sink = BufferSink()
        if body is not None:
            payload = body.encode("utf-8") if isinstance(body, str) else body
            request = Request(
                url=url,
                method="POST",
                source=payload,
                headers={"content-length": str(len(payload))},
                sink=sink,
            )
        else:
            request = Request(url=url, sink=sink)

        response = await self._request(request)
        return TextResponse(
            decode_text(sink.getvalue(), response.headers),
            response.status_code,
            response.headers,
            response.status_line,
        )

    async def _request(self, request: Request) -> Response:
        # Each hop either follows a redirect (bounded by max_redirects)
        # or retries once with credentials, then the response is final.
        max_attempts = self._config.max_redirects + 2
        for attempt in range(1, max_attempts + 1):
            prepared = prepare_request(request, self._config)
            transaction = await HTTP11Transaction.open(
                prepared.connect_host,
                prepared.connect_port,
                connect=prepared.connect,
                backend=self._backend,
                timeout=self._config.timeout,
                block_size=self._config.block_size,
            )
            async with transaction:
                await transaction.send_request_line(prepared.method, prepared.uri)
                await transaction.send_headers(prepared.headers)
                if prepared.source is not None:
                    await transaction.send_body(prepared.headers, prepared.source, prepared.step)
                code, status = await transaction.receive_status_line()
                headers = await transaction.receive_headers()

                if should_redirect(request, prepared, code, headers, self._config.max_redirects):
                    logger.debug(f"Following {code} redirect to {headers['location']}")
                    request = redirect_request(request, prepared, headers["location"])
                    continue

                if should_authorize(prepared, code):
                    logger.debug(f"Retrying {prepared.url} with Basic credentials")
                    request = authorize_request(request, prepared)
                    continue

                if should_receive_body(prepared.method, code):
                    await transaction.receive_body(headers, prepared.sink, prepared.step)

            logger.debug(f"{prepared.method} {prepared.url} -> {code} after {attempt} attempt(s)")
            return Response(True, code, headers, status)

        raise HTTPClientError(f"no final response after {max_attempts} attempts")


_default_client: Optional[HTTPClient] = None


def _get_default_client() -> HTTPClient:
    global _default_client
    if _default_client is None:
        _default_client = HTTPClient(ClientConfig.from_env())
    return _default_client


async def request(target: Union[str, Request], body: Optional[Union[bytes, str]] = None):
    """
    Perform a request with a client configured from the environment.

    See ``HTTPClient.request``.
    """
    return await _get_default_client().request(target, body)


def request_sync(target: Union[str, Request], body: Optional[Union[bytes, str]] = None):
    """Blocking form of ``request`` for code that has no event loop."""
    return asyncio.run(request(target, body))
