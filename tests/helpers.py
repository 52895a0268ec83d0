"""Helpers for building and inspecting raw HTTP messages in tests."""

from typing import Dict, List, Optional, Tuple


def build_response(
    status: str = "200 OK",
    headers: Optional[List[Tuple[str, str]]] = None,
    body: bytes = b"",
    version: str = "HTTP/1.1",
) -> bytes:
    """Assemble raw response bytes as a server would send them."""
    lines = [f"{version} {status}\r\n"]
    for name, value in headers or []:
        lines.append(f"{name}: {value}\r\n")
    lines.append("\r\n")
    return "".join(lines).encode("iso-8859-1") + body


def split_request(raw: bytes) -> Tuple[str, Dict[str, str], bytes]:
    """Split raw request bytes into request line, headers and body."""
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("iso-8859-1").split("\r\n")
    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(": ")
        headers[name] = value
    return lines[0], headers, body
