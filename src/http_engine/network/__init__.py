"""
Network backend components for http_engine.

This module provides the low-level networking abstractions
a transaction runs over.
"""

from .backend import NetworkBackend
from .stream import NetworkStream
from .tcp import AsyncioNetworkBackend, AsyncioNetworkStream
from .mock import MockNetworkBackend, MockNetworkStream
from .utils import (
    create_socket,
    format_host_header,
    validate_port,
)

__all__ = [
    "NetworkBackend",
    "NetworkStream",
    "AsyncioNetworkBackend",
    "AsyncioNetworkStream",
    "MockNetworkBackend",
    "MockNetworkStream",
    "create_socket",
    "format_host_header",
    "validate_port",
]
