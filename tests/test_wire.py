"""
Tests for the line and header wire codec.
"""

import h11
import pytest

from http_engine import wire
from http_engine.exceptions import FramingError, InvalidRequestError, ProtocolError, TransportError
from http_engine.headers import HeaderMap
from http_engine.network.mock import MockNetworkStream
from http_engine.transport import Transport


class TestRequestSerialization:
    """Test request line and header serialization."""

    def test_request_line(self) -> None:
        """Test the request line format."""
        assert wire.format_request_line("POST", "/submit?x=1") == b"POST /submit?x=1 HTTP/1.1\r\n"

    def test_request_line_default_method(self) -> None:
        """Test that a missing method is sent as GET."""
        assert wire.format_request_line(None, "/") == b"GET / HTTP/1.1\r\n"

    def test_headers_in_order(self) -> None:
        """Test that headers keep their order and end with a blank line."""
        headers = HeaderMap([("Host", "example.com"), ("Accept", "*/*")])
        assert wire.format_headers(headers) == (
            b"host: example.com\r\naccept: */*\r\n\r\n"
        )

    def test_empty_headers(self) -> None:
        """Test that an empty header block is just the blank line."""
        assert wire.format_headers({}) == b"\r\n"

    def test_line_break_injection(self) -> None:
        """Test that CR or LF inside a header value is refused."""
        with pytest.raises(InvalidRequestError):
            wire.format_headers({"x-evil": "a\r\nInjected: yes"})
        with pytest.raises(InvalidRequestError):
            wire.format_request_line("GET", "/ HTTP/1.1\r\nX: y")

    @pytest.mark.asyncio
    async def test_send_functions(self):
        """Test that the send helpers write to the transport."""
        stream = MockNetworkStream()
        transport = Transport(stream)
        await wire.send_request_line(transport, "HEAD", "/index.html")
        await wire.send_headers(transport, {"host": "example.com"})
        assert stream.written_data == (
            b"HEAD /index.html HTTP/1.1\r\nhost: example.com\r\n\r\n"
        )

    @pytest.mark.asyncio
    async def test_h11_accepts_request(self):
        """Test that h11 parses what the codec writes."""
        stream = MockNetworkStream()
        transport = Transport(stream)
        await wire.send_request_line(transport, "GET", "/path?q=1")
        await wire.send_headers(transport, HeaderMap({"Host": "example.com", "User-Agent": "t"}))

        server = h11.Connection(h11.SERVER)
        server.receive_data(stream.written_data)
        event = server.next_event()
        assert isinstance(event, h11.Request)
        assert event.method == b"GET"
        assert event.target == b"/path?q=1"
        assert (b"host", b"example.com") in list(event.headers)


class TestStatusLine:
    """Test status line parsing."""

    @pytest.mark.parametrize("line, code", [
        ("HTTP/1.1 200 OK", 200),
        ("HTTP/1.0 404 Not Found", 404),
        ("HTTP/1.1 301", 301),
        ("HTTP/2.0 503 Service Unavailable", 503),
    ])
    def test_valid(self, line, code) -> None:
        """Test extracting the status code."""
        assert wire.parse_status_line(line) == code

    @pytest.mark.parametrize("line", ["", "200 OK", "HTTP/1.1 20 OK", "HTTP/1.1 OK", "ICY 200 OK"])
    def test_invalid(self, line) -> None:
        """Test that malformed status lines raise ProtocolError."""
        with pytest.raises(ProtocolError):
            wire.parse_status_line(line)

    @pytest.mark.asyncio
    async def test_receive_returns_raw_line(self, make_transport):
        """Test that the raw line is returned with the code."""
        transport = make_transport(b"HTTP/1.1 418 I'm a teapot\r\n")
        code, line = await wire.receive_status_line(transport)
        assert code == 418
        assert line == "HTTP/1.1 418 I'm a teapot"


class TestHeaderParsing:
    """Test header block parsing."""

    @pytest.mark.asyncio
    async def test_simple_block(self, make_transport):
        """Test names are lower-cased and values trimmed."""
        transport = make_transport(b"Content-Type:  text/html  \r\nContent-Length:5\r\n\r\nhello")
        headers = await wire.receive_headers(transport)
        assert headers == {"content-type": "text/html", "content-length": "5"}
        assert await transport.receive_exactly(5) == b"hello"

    @pytest.mark.asyncio
    async def test_empty_block(self, make_transport):
        """Test a header block with no fields."""
        headers = await wire.receive_headers(make_transport(b"\r\n"))
        assert len(headers) == 0

    @pytest.mark.asyncio
    async def test_folded_value(self, make_transport):
        """Test that continuation lines are appended verbatim."""
        transport = make_transport(
            b"X-Long: first\r\n  second\r\n\tthird\r\nX-Next: n\r\n\r\n"
        )
        headers = await wire.receive_headers(transport)
        assert headers["x-long"] == "first  second\tthird"
        assert headers["x-next"] == "n"

    @pytest.mark.asyncio
    async def test_folded_matches_unfolded(self, make_transport):
        """Test folding yields the concatenated value of the unfolded form."""
        folded = await wire.receive_headers(make_transport(b"A: x\r\n y\r\n\r\n"))
        unfolded = await wire.receive_headers(make_transport(b"A: x y\r\n\r\n"))
        assert folded == unfolded

    @pytest.mark.asyncio
    async def test_duplicate_names_merge(self, make_transport):
        """Test merging names that differ only in case."""
        transport = make_transport(
            b"Set-Cookie: a=1\r\nset-cookie: b=2\r\nSET-COOKIE: c=3\r\n\r\n"
        )
        headers = await wire.receive_headers(transport)
        assert list(headers) == ["set-cookie"]
        assert headers["set-cookie"] == "a=1, b=2, c=3"

    @pytest.mark.asyncio
    async def test_folded_duplicate(self, make_transport):
        """Test that a folded value merges as one value."""
        transport = make_transport(b"Via: a\r\n b\r\nVia: c\r\n\r\n")
        headers = await wire.receive_headers(transport)
        assert headers["via"] == "a b, c"

    @pytest.mark.asyncio
    async def test_value_with_colon(self, make_transport):
        """Test that only the first colon separates name and value."""
        headers = await wire.receive_headers(make_transport(b"Location: http://x/y\r\n\r\n"))
        assert headers["location"] == "http://x/y"

    @pytest.mark.asyncio
    async def test_malformed_line(self, make_transport):
        """Test that a line without a colon is a framing error."""
        with pytest.raises(FramingError):
            await wire.receive_headers(make_transport(b"NoColonHere\r\n\r\n"))

    @pytest.mark.asyncio
    async def test_empty_name(self, make_transport):
        """Test that a line with an empty name is a framing error."""
        with pytest.raises(FramingError):
            await wire.receive_headers(make_transport(b": value\r\n\r\n"))

    @pytest.mark.asyncio
    async def test_truncated_block(self, make_transport):
        """Test that close before the blank line is a transport error."""
        with pytest.raises(TransportError):
            await wire.receive_headers(make_transport(b"A: b\r\n"))
