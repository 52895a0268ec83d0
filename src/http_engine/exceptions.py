"""
Custom exceptions for http_engine.

This module defines the exception hierarchy used throughout
the library. Every failure aborts the current transaction and
propagates to the caller as one of these types.
"""

from typing import Optional


class HTTPClientError(Exception):
    """Base exception for all http_engine errors."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class TransportError(HTTPClientError):
    """Raised when connecting, sending or receiving fails."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(f"Transport error: {message}", cause)


class TimeoutError(TransportError):
    """Raised when a transport operation times out."""

    def __init__(self, message: str, timeout: Optional[float] = None) -> None:
        if timeout is not None:
            message = f"{message} (timeout: {timeout}s)"
        HTTPClientError.__init__(self, f"Timeout error: {message}")


class FramingError(HTTPClientError):
    """Raised when body or header framing on the wire is invalid."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(f"Framing error: {message}", cause)


class ProtocolError(HTTPClientError):
    """Raised when the peer does not speak the expected HTTP protocol."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(f"Protocol error: {message}", cause)


class InvalidRequestError(HTTPClientError):
    """Raised when a request cannot be normalized (e.g. missing host)."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(f"Invalid request: {message}", cause)


class StreamError(HTTPClientError):
    """Raised when a source or sink is misused."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(f"Stream error: {message}", cause)
