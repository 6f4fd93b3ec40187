"""
Hooks that stamp headers onto responses.
"""

from typing import Dict

from ..http.context import Context


class SetHeaders:
    """
    Before-hook that attaches fixed headers to every response it runs for.

        router.before(SetHeaders({"X-Custom-Header": "Goweb"}))

    The headers go through ctx.response_headers, so a handler that sets the
    same header itself keeps its own value.
    """

    def __init__(self, headers: Dict[str, str]):
        self.headers = dict(headers)

    def __call__(self, ctx: Context) -> None:
        for name, value in self.headers.items():
            ctx.set_header(name, value)

    def __repr__(self) -> str:
        return f"SetHeaders({self.headers!r})"


# Global before-hook: every response carries X-Custom-Header: Goweb.
custom_header = SetHeaders({"X-Custom-Header": "Goweb"})
