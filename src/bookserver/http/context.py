"""
Per-request context handed to hooks and handlers.
"""

import time
from dataclasses import dataclass, field
from typing import Dict, Optional

from .request import HTTPRequest
from .response import HTTPResponse


@dataclass
class Context:
    """
    Everything a handler needs for one request.

    Attributes:
        request:          The parsed request.
        path_values:      Values bound by the matched route, e.g. {"id": "42"}
                          for /books/{id}, or named groups of a regex route.
        response_headers: Headers that hooks and handlers want on the
                          response, whatever the handler ends up returning.
                          The dispatcher merges them into the final response.
        started_at:       time.monotonic() when dispatch began.
        response:         The response so far; set by the dispatcher before
                          each after-hook runs, None until then.
    """

    request: HTTPRequest
    path_values: Dict[str, str] = field(default_factory=dict)
    response_headers: Dict[str, str] = field(default_factory=dict)
    started_at: float = field(default_factory=time.monotonic)
    response: Optional[HTTPResponse] = None

    def path_value(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get a named path value (None or `default` when absent)."""
        return self.path_values.get(name, default)

    def set_header(self, name: str, value: str) -> None:
        """Attach a header to whatever response this request produces."""
        self.response_headers[name] = value

    @property
    def method(self) -> str:
        return self.request.method

    @property
    def path(self) -> str:
        return self.request.path

    @property
    def elapsed_ms(self) -> float:
        return (time.monotonic() - self.started_at) * 1000
