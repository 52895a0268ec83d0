"""
Pytest configuration for http_engine tests.

This file contains shared fixtures and configuration
for all tests in the project.
"""

import pytest
from typing import List, Optional

from http_engine.network.mock import MockNetworkBackend, MockNetworkStream
from http_engine.transport import Transport


@pytest.fixture
def make_stream():
    """Create a MockNetworkStream that hands out data in small pieces."""
    def _create(data: bytes = b"", read_size: Optional[int] = 7) -> MockNetworkStream:
        return MockNetworkStream(data, read_size=read_size)
    return _create


@pytest.fixture
def make_transport(make_stream):
    """Create a Transport over a MockNetworkStream loaded with ``data``."""
    def _create(data: bytes = b"", read_size: Optional[int] = 7) -> Transport:
        return Transport(make_stream(data, read_size), timeout=5.0)
    return _create


@pytest.fixture
def mock_backend():
    """Create a mock backend whose streams return data in small pieces."""
    return MockNetworkBackend(read_size=11)


@pytest.fixture
def sample_headers():
    """Sample request headers for testing."""
    return {
        "Content-Type": "application/json",
        "Authorization": "Bearer token123",
        "Accept": "*/*",
    }


@pytest.fixture
def sample_stream_data():
    """Sample stream data for testing."""
    return [
        b"Hello",
        b", ",
        b"World",
        b"!",
    ]


@pytest.fixture
def async_data_generator():
    """Create an async data generator for testing."""
    async def generator(data: List[bytes]):
        for chunk in data:
            yield chunk

    return generator
