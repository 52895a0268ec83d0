"""
HTTP/1.1 line and header wire codec for http_engine.

Writes request lines and header blocks, and reads status lines and
header blocks, including obsolete line folding (RFC 7230 section 3.2.4).
"""

import re
from typing import Mapping, Optional, Tuple

from .exceptions import FramingError, InvalidRequestError, ProtocolError
from .headers import HeaderMap
from .transport import Transport

WIRE_ENCODING = "iso-8859-1"

_STATUS_LINE = re.compile(r"HTTP/\d*\.\d* (\d\d\d)")
_HEADER_LINE = re.compile(r"([^:]*):\s*(.*)", re.DOTALL)


def _check_field(text: str, what: str) -> str:
    if "\r" in text or "\n" in text:
        raise InvalidRequestError(f"{what} contains a line break: {text!r}")
    return text


def format_request_line(method: Optional[str], uri: str) -> bytes:
    """Build ``"<METHOD> <URI> HTTP/1.1\\r\\n"``; method defaults to GET."""
    method = _check_field(method or "GET", "method")
    uri = _check_field(uri, "request target")
    return f"{method} {uri} HTTP/1.1\r\n".encode(WIRE_ENCODING)


def format_headers(headers: Mapping[str, str]) -> bytes:
    """Build a header block, terminating blank line included."""
    lines = []
    for name, value in headers.items():
        name = _check_field(str(name), "header name")
        value = _check_field(str(value), f"header {name!r}")
        lines.append(f"{name}: {value}\r\n")
    lines.append("\r\n")
    return "".join(lines).encode(WIRE_ENCODING)


def parse_status_line(line: str) -> int:
    """
    Extract the status code from a status line.

    Raises:
        ProtocolError: If the line carries no HTTP version and 3-digit code.
    """
    match = _STATUS_LINE.search(line)
    if match is None:
        raise ProtocolError(f"invalid status line {line!r}")
    return int(match.group(1))


def parse_header_line(line: str) -> Tuple[str, str]:
    """
    Split a header line into lower-cased name and trimmed value.

    Raises:
        FramingError: If the line is not ``name:value``.
    """
    match = _HEADER_LINE.match(line)
    if match is None or not match.group(1).strip():
        raise FramingError(f"malformed response headers: {line!r}")
    return match.group(1).strip().lower(), match.group(2).strip()


async def send_request_line(transport: Transport, method: Optional[str], uri: str) -> int:
    """Send the request line."""
    return await transport.send(format_request_line(method, uri))


async def send_headers(transport: Transport, headers: Mapping[str, str]) -> int:
    """Send every header in iteration order, then the blank line."""
    return await transport.send(format_headers(headers))


async def receive_status_line(transport: Transport) -> Tuple[int, str]:
    """
    Read the status line.

    Returns:
        The numeric status code and the raw line
    """
    line = await transport.receive_line()
    return parse_status_line(line), line


async def receive_headers(transport: Transport) -> HeaderMap:
    """
    Read a header block up to and including the blank line.

    A line starting with whitespace continues the previous header; its
    content is appended verbatim. Repeated names are joined with ``", "``.
    """
    headers = HeaderMap()
    line = await transport.receive_line()
    while line != "":
        name, value = parse_header_line(line)
        line = await transport.receive_line()
        while line[:1] in (" ", "\t"):
            value += line
            line = await transport.receive_line()
        headers.add(name, value)
    return headers
