"""
Network utilities for http_engine.

Small helpers shared by the socket backend and the request normalizer.
"""

import socket
from typing import Union

DEFAULT_PORTS = {"http": 80, "https": 443}


def create_socket(
    family: int = socket.AF_INET,
    type: int = socket.SOCK_STREAM,
    proto: int = 0
) -> socket.socket:
    """
    Create a client socket with low-latency settings.

    Args:
        family: Address family (default: AF_INET)
        type: Socket type (default: SOCK_STREAM)
        proto: Protocol (default: 0 for auto)

    Returns:
        Configured socket object

    Raises:
        OSError: If socket creation fails
    """
    sock = socket.socket(family, type, proto)

    # Request and headers go out as several small writes
    if family in (socket.AF_INET, socket.AF_INET6):
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

    return sock


def format_host_header(host: str, port: int, scheme: str = "http") -> str:
    """
    Format the host header for an origin.

    Args:
        host: Hostname
        port: Port number
        scheme: URL scheme

    Returns:
        ``host`` alone for the scheme's default port, ``host:port`` otherwise
    """
    if ":" in host and not host.startswith("["):
        host = f"[{host}]"
    if DEFAULT_PORTS.get(scheme) == port:
        return host
    return f"{host}:{port}"


def validate_port(port: Union[int, str]) -> int:
    """
    Validate and convert port to integer.

    Args:
        port: Port number (int or string)

    Returns:
        Port as integer

    Raises:
        ValueError: If port is invalid
    """
    try:
        port_int = int(port)
    except (ValueError, TypeError):
        raise ValueError(f"Invalid port: {port}")

    if not (1 <= port_int <= 65535):
        raise ValueError(f"Port must be between 1 and 65535, got {port_int}")

    return port_int
