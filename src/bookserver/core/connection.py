"""
=============================================================================
CONNECTION HANDLING
=============================================================================

Wraps one accepted client socket: buffered reads of whole HTTP requests,
timed writes of responses, keep-alive bookkeeping and a clean close.

=============================================================================
TIMEOUTS AND LIMITS
=============================================================================

    read_timeout         deadline for reading ONE whole request, headers and
                         body together. A client trickling bytes can't keep
                         a worker forever. Expiry → 408.

    keep_alive_timeout   idle time allowed before the NEXT request on a
                         kept-alive connection starts. Expiry → silent close.

    write_timeout        deadline for sending one response.

    max_header_bytes     no "\\r\\n\\r\\n" within this many bytes → 431.
    max_request_size     headers + body beyond this → 413.

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    NEW ──► READING ──► PROCESSING ──► WRITING ──► KEEP_ALIVE ──► READING ...
              │                           │             │
              └───────────────────────────┴─────────────┴──► CLOSING ──► CLOSED

=============================================================================
"""

import logging
import socket
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..http.request import HTTPParseError
from ..http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    NEW = "new"
    READING = "reading"
    PROCESSING = "processing"
    WRITING = "writing"
    KEEP_ALIVE = "keep_alive"
    CLOSING = "closing"
    CLOSED = "closed"


class RequestTimeout(TimeoutError):
    """The client didn't finish sending a request within read_timeout."""


@dataclass
class Connection:
    """
    One client connection.

        with conn:
            data = conn.read_request()
            conn.send_response(response.to_bytes())

    Attributes:
        socket: The client socket.
        address: Client's (ip, port).
        id: Short identifier for log lines.
        state: Current ConnectionState.
        requests_handled: Requests read so far on this connection.
    """

    socket: socket.socket
    address: tuple[str, int]

    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    state: ConnectionState = ConnectionState.NEW
    last_activity: float = field(default_factory=time.monotonic)
    requests_handled: int = 0

    buffer_size: int = 8192
    read_timeout: Optional[float] = 10.0
    write_timeout: Optional[float] = 10.0
    keep_alive_timeout: float = 5.0
    max_header_bytes: int = 1 << 20
    max_request_size: int = 10 * 1024 * 1024

    _buffer: bytes = field(default=b"", repr=False)

    def __post_init__(self):
        self.socket.setblocking(True)

    # =========================================================================
    # READING
    # =========================================================================

    def read_request(self) -> Optional[bytes]:
        """
        Read exactly one HTTP request (headers plus Content-Length body).

        Bytes past the end of this request stay buffered for the next call.

        Returns:
            The request bytes, or None if the client closed the connection
            (or idled out between keep-alive requests).

        Raises:
            RequestTimeout: read_timeout expired mid-request.
            HTTPParseError: 431 for oversized headers, 413 for an oversized
                            request.
        """
        self.state = ConnectionState.READING
        deadline = None
        if self.read_timeout is not None:
            deadline = time.monotonic() + self.read_timeout

        # Between keep-alive requests only the idle timeout applies.
        waiting_for_next = self.requests_handled > 0 and not self._buffer

        try:
            while b"\r\n\r\n" not in self._buffer:
                if len(self._buffer) > self.max_header_bytes:
                    raise HTTPParseError(
                        f"Header block exceeds {self.max_header_bytes} bytes",
                        status_code=HTTPStatus.REQUEST_HEADER_FIELDS_TOO_LARGE,
                    )
                if waiting_for_next:
                    self.socket.settimeout(self.keep_alive_timeout)
                else:
                    self._arm(deadline)

                chunk = self._recv()
                if not chunk:
                    return None
                if waiting_for_next:
                    waiting_for_next = False
                    if self.read_timeout is not None:
                        deadline = time.monotonic() + self.read_timeout
                self._buffer += chunk

            header_end = self._buffer.find(b"\r\n\r\n")
            if header_end > self.max_header_bytes:
                raise HTTPParseError(
                    f"Header block exceeds {self.max_header_bytes} bytes",
                    status_code=HTTPStatus.REQUEST_HEADER_FIELDS_TOO_LARGE,
                )

            body_start = header_end + 4
            content_length = self._parse_content_length(self._buffer[:header_end])
            request_end = body_start + content_length
            if request_end > self.max_request_size:
                raise HTTPParseError(
                    f"Request too large: {request_end} bytes",
                    status_code=HTTPStatus.PAYLOAD_TOO_LARGE,
                )

            while len(self._buffer) < request_end:
                self._arm(deadline)
                chunk = self._recv()
                if not chunk:
                    break
                self._buffer += chunk

        except socket.timeout:
            if waiting_for_next:
                logger.debug(f"[{self.id}] Keep-alive timeout")
                return None
            raise RequestTimeout(f"Request not received within {self.read_timeout}s")

        request_data = self._buffer[:request_end]
        self._buffer = self._buffer[request_end:]
        self.requests_handled += 1
        self.state = ConnectionState.PROCESSING
        return request_data

    def _arm(self, deadline: Optional[float]) -> None:
        """Set the socket timeout to whatever is left before `deadline`."""
        if deadline is None:
            self.socket.settimeout(None)
            return
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise socket.timeout("read deadline passed")
        self.socket.settimeout(remaining)

    def _recv(self) -> bytes:
        try:
            data = self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return b""
        self.last_activity = time.monotonic()
        return data

    @staticmethod
    def _parse_content_length(headers: bytes) -> int:
        """
        Find Content-Length in raw headers, before full parsing.

        A missing or garbled value counts as 0 here; RequestParser rejects
        garbled values with 400 afterwards.
        """
        text = headers.decode("utf-8", errors="replace").lower()
        for line in text.split("\r\n"):
            if line.startswith("content-length:"):
                try:
                    return max(int(line.split(":", 1)[1].strip()), 0)
                except ValueError:
                    return 0
        return 0

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Send a whole response within write_timeout.

        Returns:
            False if the client went away or the write timed out.
        """
        self.state = ConnectionState.WRITING
        try:
            self.socket.settimeout(self.write_timeout)
            self.socket.sendall(data)
        except socket.timeout:
            logger.warning(f"[{self.id}] Write timed out after {self.write_timeout}s")
            return False
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False
        self.last_activity = time.monotonic()
        return True

    def set_keep_alive(self):
        self.state = ConnectionState.KEEP_ALIVE

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close gracefully: FIN to the client, drain briefly, release the fd.
        """
        if self.state == ConnectionState.CLOSED:
            return
        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            logger.debug(f"[{self.id}] Peer already disconnected")

        try:
            self.socket.settimeout(0.5)
            while self.socket.recv(1024):
                pass
        except OSError:
            pass

        self.socket.close()
        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.requests_handled} requests")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
