"""
Unit tests for Connection, over a local socket pair.
"""

import socket

import pytest

from bookserver.core.connection import Connection, ConnectionState, RequestTimeout
from bookserver.http.request import HTTPParseError


@pytest.fixture
def pair():
    server_side, client_side = socket.socketpair()
    yield server_side, client_side
    client_side.close()
    server_side.close()


def make_conn(sock, **kwargs):
    kwargs.setdefault("read_timeout", 1.0)
    kwargs.setdefault("keep_alive_timeout", 0.2)
    return Connection(socket=sock, address=("127.0.0.1", 1), **kwargs)


class TestReadRequest:

    def test_reads_headers_and_body(self, pair):
        server_side, client_side = pair
        raw = b"POST /books HTTP/1.1\r\nContent-Length: 5\r\n\r\nhello"
        client_side.sendall(raw)

        conn = make_conn(server_side)

        assert conn.read_request() == raw
        assert conn.requests_handled == 1
        assert conn.state is ConnectionState.PROCESSING

    def test_pipelined_requests_are_split(self, pair):
        server_side, client_side = pair
        first = b"GET /a HTTP/1.1\r\n\r\n"
        second = b"GET /b HTTP/1.1\r\n\r\n"
        client_side.sendall(first + second)

        conn = make_conn(server_side)

        assert conn.read_request() == first
        assert conn.read_request() == second

    def test_client_close_returns_none(self, pair):
        server_side, client_side = pair
        client_side.close()

        assert make_conn(server_side).read_request() is None

    def test_stalled_request_times_out(self, pair):
        server_side, client_side = pair
        client_side.sendall(b"GET / HTTP/1.1\r\nHost: x")

        conn = make_conn(server_side, read_timeout=0.2)

        with pytest.raises(RequestTimeout):
            conn.read_request()

    def test_idle_keep_alive_returns_none(self, pair):
        server_side, client_side = pair
        client_side.sendall(b"GET / HTTP/1.1\r\n\r\n")
        conn = make_conn(server_side)
        conn.read_request()

        assert conn.read_request() is None

    def test_oversized_headers(self, pair):
        server_side, client_side = pair
        client_side.sendall(b"GET / HTTP/1.1\r\nX-Big: " + b"a" * 4096 + b"\r\n\r\n")

        conn = make_conn(server_side, max_header_bytes=1024, buffer_size=512)

        with pytest.raises(HTTPParseError) as exc_info:
            conn.read_request()
        assert exc_info.value.status_code == 431

    def test_oversized_request(self, pair):
        server_side, client_side = pair
        client_side.sendall(b"POST / HTTP/1.1\r\nContent-Length: 999999\r\n\r\n")

        conn = make_conn(server_side, max_request_size=4096)

        with pytest.raises(HTTPParseError) as exc_info:
            conn.read_request()
        assert exc_info.value.status_code == 413


class TestSendAndClose:

    def test_send_response(self, pair):
        server_side, client_side = pair
        conn = make_conn(server_side)

        assert conn.send_response(b"HTTP/1.1 200 OK\r\n\r\n") is True
        assert client_side.recv(100) == b"HTTP/1.1 200 OK\r\n\r\n"

    def test_close_is_idempotent(self, pair):
        server_side, client_side = pair
        conn = make_conn(server_side)

        conn.close()
        conn.close()

        assert conn.state is ConnectionState.CLOSED

    def test_context_manager_closes(self, pair):
        server_side, client_side = pair

        with make_conn(server_side) as conn:
            pass

        assert conn.state is ConnectionState.CLOSED
