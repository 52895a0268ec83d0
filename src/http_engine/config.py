"""
Client configuration for http_engine.

Process-wide defaults live in an immutable ``ClientConfig`` that is
handed to the client and the request normalizer. Individual requests
override these values through their own fields.
"""

import os
from dataclasses import dataclass
from typing import Optional

from .version import __version__

DEFAULT_TIMEOUT = 60.0
DEFAULT_PORT = 80
DEFAULT_PROXY_PORT = 3128
DEFAULT_MAX_REDIRECTS = 5
DEFAULT_BLOCK_SIZE = 2048
DEFAULT_USER_AGENT = f"http_engine/{__version__}"


def _float_env(name: str, default: float) -> float:
    try:
        value = os.getenv(name)
        return float(value) if value is not None else default
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    try:
        value = os.getenv(name)
        return int(value) if value is not None else default
    except ValueError:
        return default


def _str_env(*names: str) -> Optional[str]:
    for name in names:
        value = os.getenv(name)
        if value and value.strip():
            return value.strip()
    return None


@dataclass(frozen=True)
class ClientConfig:
    """
    Immutable client defaults.

    Attributes:
        timeout: Seconds allowed for each connect, send and receive
        port: Origin port used when the URL does not name one
        proxy_port: Proxy port used when the proxy URL does not name one
        proxy: Proxy URL applied to every request without its own proxy
        user_agent: Value of the user-agent header when none is given
        max_redirects: Number of redirects followed before giving up
        block_size: Largest read issued for length or close delimited bodies
    """

    timeout: float = DEFAULT_TIMEOUT
    port: int = DEFAULT_PORT
    proxy_port: int = DEFAULT_PROXY_PORT
    proxy: Optional[str] = None
    user_agent: str = DEFAULT_USER_AGENT
    max_redirects: int = DEFAULT_MAX_REDIRECTS
    block_size: int = DEFAULT_BLOCK_SIZE

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if not (1 <= self.port <= 65535):
            raise ValueError(f"Port must be between 1 and 65535, got {self.port}")
        if not (1 <= self.proxy_port <= 65535):
            raise ValueError(f"Port must be between 1 and 65535, got {self.proxy_port}")
        if self.max_redirects < 0:
            raise ValueError("max_redirects must be non-negative")
        if self.block_size <= 0:
            raise ValueError("block_size must be positive")

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Build a configuration from ``HTTP_ENGINE_*`` environment variables."""
        return cls(
            timeout=_float_env("HTTP_ENGINE_TIMEOUT", DEFAULT_TIMEOUT),
            port=_int_env("HTTP_ENGINE_PORT", DEFAULT_PORT),
            proxy=_str_env("HTTP_ENGINE_PROXY", "http_proxy"),
            user_agent=_str_env("HTTP_ENGINE_USER_AGENT") or DEFAULT_USER_AGENT,
            max_redirects=_int_env("HTTP_ENGINE_MAX_REDIRECTS", DEFAULT_MAX_REDIRECTS),
        )
