"""
=============================================================================
HTTP RESPONSE BUILDING
=============================================================================

Response objects and the helpers handlers use to produce them.

=============================================================================
RESPONSE SHAPES
=============================================================================

Handlers in this server answer in one of four shapes:

    ┌────────────────────┬──────────────────────────────────────────────────┐
    │ Shape              │ Example                                          │
    ├────────────────────┼──────────────────────────────────────────────────┤
    │ Status only        │ with_status(201)        → 201, empty body        │
    │ Status text        │ with_status_text(418)   → 418, "I'm a teapot"    │
    │ Plain body         │ ok("Welcome")           → 200, text/plain        │
    │ API envelope       │ api_data([...])         → 200, JSON envelope     │
    │                    │ api_error(404, "...")   → 404, JSON envelope     │
    └────────────────────┴──────────────────────────────────────────────────┘

The API envelope wraps structured payloads so that clients can always find
the status code and either the data or a list of error messages:

    {"status": 200, "data": [{"Id": "1", ...}]}
    {"status": 404, "errors": ["File not found"]}

=============================================================================
BUILDER PATTERN
=============================================================================

ResponseBuilder gives a fluent way to assemble anything the helpers don't
cover:

    response = (ResponseBuilder()
        .status(HTTPStatus.CREATED)
        .header("Location", "/books/1")
        .json({"Id": "1"})
        .build())

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Dict, Any, Union
import json

from .status_codes import HTTPStatus, status_text


JSON_CONTENT_TYPE = "application/json; charset=utf-8"
NO_BODY_STATUSES = frozenset({HTTPStatus.NO_CONTENT, HTTPStatus.NOT_MODIFIED})
TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"


@dataclass
class HTTPResponse:
    """
    An HTTP response ready to be serialized onto a socket.

    `status` is a plain int so that unregistered codes (e.g. 299 requested
    through /status-code/299) can still be written; HTTPStatus members work
    too since they are ints.

        Handler returns          to_bytes()              Socket sends
        HTTPResponse    ─────►   serializes    ─────►    raw bytes
    """

    status: int = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """
        Get the HTTP status line.

        Format: HTTP-VERSION SP STATUS-CODE SP REASON-PHRASE
        Example: "HTTP/1.1 200 OK"

        Unregistered codes keep the separating space and an empty phrase.
        """
        return f"{self.version} {int(self.status)} {status_text(int(self.status))}"

    @property
    def text(self) -> str:
        """Body decoded as UTF-8 (handy in logs and tests)."""
        return self.body.decode("utf-8", errors="replace")

    @property
    def json(self) -> Any:
        """Body parsed as JSON."""
        return json.loads(self.body.decode("utf-8"))

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Set a response header. Returns self for chaining."""
        self.headers[name] = value
        return self

    @property
    def allows_body(self) -> bool:
        """False for 1xx, 204 and 304, which never carry a body."""
        code = int(self.status)
        return not (100 <= code < 200 or code in NO_BODY_STATUSES)

    def has_header(self, name: str) -> bool:
        """Case-insensitive header presence check."""
        lowered = name.lower()
        return any(key.lower() == lowered for key in self.headers)

    def to_bytes(self, server_name: str = "bookserver/1.0", include_body: bool = True) -> bytes:
        """
        Serialize the response to bytes for sending over socket.

            HTTP/1.1 200 OK\r\n          ← Status line
            Content-Type: ...\r\n
            Content-Length: 27\r\n       ← Auto-calculated
            Date: Wed, 01 Jan 2026 ...\r\n  ← Auto-added
            Server: bookserver/1.0\r\n   ← Auto-added
            \r\n                         ← Empty line (separator)
            {"status": 200, ...}         ← Body bytes

        1xx, 204 and 304 responses go out without a body and without
        Content-Length, whatever the handler put in them.

        Args:
            server_name: Server identifier for Server header.
            include_body: False for HEAD requests: Content-Length still
                          describes the body, but the bytes are not sent.

        Returns:
            Complete HTTP response as bytes ready for socket.sendall()
        """
        response_headers = dict(self.headers)
        body = self.body if include_body else b""

        if not self.allows_body:
            body = b""
            response_headers.pop("Content-Length", None)
        elif "Content-Length" not in response_headers:
            response_headers["Content-Length"] = str(len(self.body))

        if "Date" not in response_headers:
            response_headers["Date"] = format_http_date(datetime.now(timezone.utc))

        if "Server" not in response_headers:
            response_headers["Server"] = server_name

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return header_bytes + body


class ResponseBuilder:
    """
    Fluent builder for constructing HTTP responses.

    Each method returns `self`, so calls chain until build():

        ResponseBuilder().status(404).json({"status": 404}).build()
    """

    def __init__(self):
        self._status: int = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""

    def status(self, status: int) -> "ResponseBuilder":
        """Set the HTTP status code."""
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        """Add a single response header."""
        self._headers[name] = value
        return self

    def headers(self, headers: Dict[str, str]) -> "ResponseBuilder":
        """Add multiple headers at once."""
        self._headers.update(headers)
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        """Set the Content-Type header."""
        return self.header("Content-Type", content_type)

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """Set a raw body; strings are encoded as UTF-8."""
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    def text(self, text: str, content_type: str = TEXT_CONTENT_TYPE) -> "ResponseBuilder":
        """Set a plain text body and its Content-Type."""
        self._body = text.encode("utf-8")
        self._headers["Content-Type"] = content_type
        return self

    def json(self, data: Any) -> "ResponseBuilder":
        """Set a JSON body from any JSON-serializable value."""
        self._body = json.dumps(data, ensure_ascii=False).encode("utf-8")
        self._headers["Content-Type"] = JSON_CONTENT_TYPE
        return self

    def close_connection(self) -> "ResponseBuilder":
        """Ask the client to close the connection after this response."""
        self._headers["Connection"] = "close"
        return self

    def build(self) -> HTTPResponse:
        """Build the HTTPResponse."""
        return HTTPResponse(
            status=self._status,
            headers=self._headers,
            body=self._body,
        )


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

_DAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231).

    Example: Wed, 01 Jan 2026 12:00:00 GMT

    Args:
        dt: Datetime to format (should be UTC).
    """
    return (
        f"{_DAYS[dt.weekday()]}, "
        f"{dt.day:02d} {_MONTHS[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================
#
# One-liners for the response shapes listed in the module docstring.
#
#     return ok("Welcome")
#     return with_status(HTTPStatus.CREATED)
#     return api_data(books)
#     return api_error(404, "File not found")
#
# =============================================================================

def ok(body: Union[str, bytes] = "", content_type: Optional[str] = None) -> HTTPResponse:
    """
    Create a 200 OK response with a text (or raw) body.

    Args:
        body: Response body.
        content_type: Override Content-Type.
    """
    builder = ResponseBuilder().status(HTTPStatus.OK)
    if isinstance(body, str):
        builder.text(body, content_type or TEXT_CONTENT_TYPE)
    else:
        builder.body(body)
        if content_type:
            builder.content_type(content_type)
    return builder.build()


def with_status(status: int) -> HTTPResponse:
    """
    Create a status-only response: the status line and no body.

    Used for outcomes where the code says everything, e.g. 201 after a
    create or 404 for a missing item.
    """
    return ResponseBuilder().status(status).build()


def with_status_text(status: int) -> HTTPResponse:
    """
    Create a response whose body is the reason phrase of its own status.

        with_status_text(404)  →  404, body "Not Found"
        with_status_text(299)  →  299, empty body
        with_status_text(204)  →  204, no body at all
    """
    response = with_status(status)
    if response.allows_body:
        response.body = status_text(int(status)).encode("utf-8")
        response.headers["Content-Type"] = TEXT_CONTENT_TYPE
    return response


def with_ok() -> HTTPResponse:
    """200 with the body "OK"."""
    return with_status_text(HTTPStatus.OK)


def created() -> HTTPResponse:
    """201 Created with no body."""
    return with_status(HTTPStatus.CREATED)


def api_data(data: Any, status: int = HTTPStatus.OK) -> HTTPResponse:
    """
    Wrap a payload in the API envelope.

    Args:
        data: JSON-serializable payload. An empty list stays [] (never null).
        status: Status code, 200 by default.

    Returns:
        HTTPResponse with body {"status": <status>, "data": <data>}
    """
    return (ResponseBuilder()
        .status(status)
        .json({"status": int(status), "data": data})
        .build())


def api_error(status: int, *errors: str) -> HTTPResponse:
    """
    Respond with an API error envelope.

    Args:
        status: Status code to send.
        *errors: One or more human-readable error messages.

    Returns:
        HTTPResponse with body {"status": <status>, "errors": [...]}
    """
    return (ResponseBuilder()
        .status(status)
        .json({"status": int(status), "errors": list(errors)})
        .build())


def not_found(message: str = "Not Found") -> HTTPResponse:
    """404 API error. Used when nothing, not even a catch-all, matched."""
    return api_error(HTTPStatus.NOT_FOUND, message)


def internal_error(message: str = "Internal Server Error") -> HTTPResponse:
    """
    500 with a plain-text body.

    This is what the central error handler sends for unexpected exceptions:
    the message is the exception text, nothing else.
    """
    return (ResponseBuilder()
        .status(HTTPStatus.INTERNAL_SERVER_ERROR)
        .text(message)
        .build())
