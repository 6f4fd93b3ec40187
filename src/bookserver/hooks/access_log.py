"""
=============================================================================
ACCESS LOG HOOK
=============================================================================

An after-hook that writes one line per request to the "bookserver.access"
logger. Registered globally, it runs last for every routed request, after
any error handler has produced its response, so failures are logged with
the status that was actually sent.

=============================================================================
LOG FORMATS
=============================================================================

    TEXT (default, Apache-like):
    ┌─────────────────────────────────────────────────────────────────────┐
    │ 127.0.0.1 - - [19/Oct/2026:10:55:36 +0000] "GET /books" 200 2 0.41ms│
    │ ─────────────────────────────────────────────────────────────────── │
    │ IP          Timestamp          Method/Path  Status Size Duration    │
    └─────────────────────────────────────────────────────────────────────┘

    JSON (for log aggregators):
    ┌─────────────────────────────────────────────────────────────────────┐
    │ {"request_id": "a1b2c3d4", "method": "GET", "path": "/books",       │
    │  "client_ip": "127.0.0.1", "status_code": 200, "duration_ms": 0.41} │
    └─────────────────────────────────────────────────────────────────────┘

Routing the output is ordinary logging configuration:

    logging.getLogger("bookserver.access").addHandler(file_handler)

=============================================================================
"""

import json
import logging
import time
import uuid
from dataclasses import dataclass, asdict
from typing import Iterable, Optional

from ..http.context import Context


logger = logging.getLogger("bookserver.access")


LOG_FORMATS = ("text", "json")


@dataclass
class RequestLog:
    """
    One access log entry.

    request_id:     Short random ID, also sent back as X-Request-ID
    method:         HTTP method
    path:           Request path
    query:          Raw query parameters, "" when there are none
    client_ip:      Peer address
    user_agent:     User-Agent header, "-" when absent
    status_code:    Status of the response that was sent
    content_length: Response body size in bytes
    duration_ms:    Time from dispatch start to this hook
    timestamp:      Local time, Apache style
    """

    request_id: str
    method: str
    path: str
    query: str
    client_ip: str
    user_agent: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["duration_ms"] = round(self.duration_ms, 2)
        return data

    def to_text(self) -> str:
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {self.path}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


class AccessLogHook:
    """
    Global after-hook logging each request.

        router.after(AccessLogHook(log_format="json", skip_paths=["/favicon.ico"]))
    """

    def __init__(
        self,
        log_format: str = "text",
        include_request_id: bool = True,
        log_level: int = logging.INFO,
        skip_paths: Optional[Iterable[str]] = None,
    ):
        """
        Args:
            log_format: "text" or "json".
            include_request_id: Send the entry's ID back as X-Request-ID.
            log_level: Level the entries are logged at.
            skip_paths: Exact paths that are never logged.

        Raises:
            ValueError: On an unknown log_format.
        """
        if log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {LOG_FORMATS}, got {log_format!r}")
        self.log_format = log_format
        self.include_request_id = include_request_id
        self.log_level = log_level
        self.skip_paths = set(skip_paths or ())

    def __call__(self, ctx: Context) -> None:
        response = ctx.response
        request = ctx.request
        request_id = uuid.uuid4().hex[:8]

        if self.include_request_id and response is not None:
            response.set_header("X-Request-ID", request_id)

        if request.path in self.skip_paths:
            return

        entry = RequestLog(
            request_id=request_id,
            method=request.method,
            path=request.path,
            query=str(request.query_params) if request.query_params else "",
            client_ip=request.client_address[0] or "-",
            user_agent=request.user_agent or "-",
            status_code=int(response.status) if response is not None else 0,
            content_length=len(response.body) if response is not None else 0,
            duration_ms=ctx.elapsed_ms,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

        if self.log_format == "json":
            logger.log(self.log_level, json.dumps(entry.to_dict()))
        else:
            logger.log(self.log_level, entry.to_text())
