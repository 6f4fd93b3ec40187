"""
pytest configuration and fixtures.
"""

import json
import threading
from typing import Generator, Optional

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from bookserver import HTTPServer, ServerConfig, build_router
from bookserver.http import Dispatcher, HTTPRequest
from bookserver.resources import BooksController


def make_request(
    method: str,
    path: str,
    body: Optional[bytes] = None,
    json_body=None,
    headers: Optional[dict] = None,
) -> HTTPRequest:
    """Build an HTTPRequest without going through the parser."""
    if json_body is not None:
        body = json.dumps(json_body).encode("utf-8")
    return HTTPRequest(
        method=method,
        path=path,
        headers={k.lower(): v for k, v in (headers or {}).items()},
        body=body or b"",
        client_address=("127.0.0.1", 50000),
    )


def book(book_id: str = "1", title: str = "Dune", author: str = "Frank Herbert", price: str = "9.99") -> dict:
    return {"Id": book_id, "Title": title, "Author": author, "Price": price}


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /books?page=1&limit=10 HTTP/1.1\r\n"
        b"Host: localhost:9090\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: application/json\r\n"
        b"Connection: keep-alive\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request with a book as JSON body."""
    body = json.dumps(book()).encode("utf-8")
    return (
        b"POST /books HTTP/1.1\r\n"
        b"Host: localhost:9090\r\n"
        b"Content-Type: application/json\r\n"
        + f"Content-Length: {len(body)}\r\n".encode()
        + b"Connection: close\r\n"
        b"\r\n"
    ) + body


@pytest.fixture
def controller() -> BooksController:
    return BooksController()


@pytest.fixture
def dispatcher(controller: BooksController) -> Dispatcher:
    """Dispatcher over the full application route table."""
    return Dispatcher(build_router(controller))


@pytest.fixture
def config() -> ServerConfig:
    """Test server configuration on an OS-assigned port."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,
        min_workers=2,
        max_workers=4,
        read_timeout=2.0,
        write_timeout=2.0,
        keep_alive_timeout=1.0,
        log_level="WARNING",
    )


class BackgroundServer:
    """Runs an HTTPServer on a daemon thread for the length of a test."""

    __test__ = False

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()
        if not self.server.wait_until_ready(5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=10.0)


@pytest.fixture
def live_server(config: ServerConfig, controller: BooksController) -> Generator[BackgroundServer, None, None]:
    """The full application served over real sockets."""
    server = HTTPServer(build_router(controller), config, configure_logging=False)
    background = BackgroundServer(server)
    background.start()

    yield background

    background.stop()
