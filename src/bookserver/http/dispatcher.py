"""
=============================================================================
DISPATCHER
=============================================================================

Runs one request through the hook pipeline and turns whatever the handler
produced into an HTTPResponse.

=============================================================================
PIPELINE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         DISPATCH FLOW                               │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   HTTPRequest                                                        │
    │        │                                                             │
    │        ▼                                                             │
    │   router.match() ──── None ───► default 404                          │
    │        │                                                             │
    │        ▼                                                             │
    │   global before-hooks  ─┐                                            │
    │   route before-hooks   ─┤── any raises → error handler, skip handler │
    │        │                                                             │
    │        ▼                                                             │
    │   handler(ctx) ─────────── raises → error handler                   │
    │        │                                                             │
    │        ▼                                                             │
    │   translate outcome                                                  │
    │        │                                                             │
    │        ▼                                                             │
    │   route after-hooks    ─┐                                            │
    │   global after-hooks   ─┴── ALWAYS run; a raise → error handler      │
    │        │                                                             │
    │        ▼                                                             │
    │   merge ctx.response_headers → HTTPResponse                          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
HANDLER OUTCOMES
=============================================================================

    Returned value        Response
    ──────────────        ────────────────────────────────────────────────
    HTTPResponse          sent as is
    dict / list           200 API envelope {"status": 200, "data": ...}
    int                   that status, no body
    str / bytes           200 with that body
    None                  200, no body
    (raises)              error handler → 500, exception text as body

Handlers that need a specific status plus structured errors return
api_error(...) themselves; the error handler is only for the unexpected.

=============================================================================
"""

import logging
from typing import Any, Callable, Iterable, Optional

from .context import Context
from .request import HTTPRequest
from .response import HTTPResponse, api_data, internal_error, not_found, ok, with_status
from .router import Hook, Route, Router


logger = logging.getLogger(__name__)


ErrorHandler = Callable[[Context, Exception], HTTPResponse]


def default_error_handler(ctx: Context, error: Exception) -> HTTPResponse:
    """
    Central error handler: log the failure, answer 500 with its message.

        raise RuntimeError("This is a test error!")
            → 500 Internal Server Error, body "This is a test error!"
    """
    logger.error(
        f"Unhandled error in {ctx.method} {ctx.path}: {type(error).__name__}: {error}",
        exc_info=error,
    )
    return internal_error(str(error))


class Dispatcher:
    """
    Dispatches requests through a Router.

        router = build_router(controller)
        dispatcher = Dispatcher(router)
        response = dispatcher.dispatch(request)

    The dispatcher never raises for handler or hook failures; every request
    yields a response.
    """

    def __init__(self, router: Router, error_handler: Optional[ErrorHandler] = None):
        """
        Args:
            router: The finished route table.
            error_handler: Replaces default_error_handler when given.
        """
        self.router = router
        self.error_handler = error_handler or default_error_handler

    def dispatch(self, request: HTTPRequest) -> HTTPResponse:
        """
        Handle one request.

        Returns:
            The response to send, with hook-set headers merged in.
        """
        match = self.router.match(request.method, request.path)
        if match is None:
            logger.debug(f"No route matches {request.method} {request.path}")
            return not_found()

        ctx = Context(request=request, path_values=dict(match.params))
        route = match.route

        response = self._run_before(ctx, route)
        if response is None:
            try:
                response = self.translate(route.handler(ctx))
            except Exception as e:
                response = self.error_handler(ctx, e)

        response = self._run_after(ctx, route, response)
        return self._merge_headers(ctx, response)

    # =========================================================================
    # HOOKS
    # =========================================================================

    def _run_before(self, ctx: Context, route: Route) -> Optional[HTTPResponse]:
        """
        Run global then route-scoped before-hooks.

        Returns:
            None if every hook passed, else the error handler's response.
        """
        for hook in _chain(self.router.before_hooks, route.before):
            try:
                hook(ctx)
            except Exception as e:
                return self.error_handler(ctx, e)
        return None

    def _run_after(self, ctx: Context, route: Route, response: HTTPResponse) -> HTTPResponse:
        """
        Run route-scoped then global after-hooks, whatever the outcome.

        Hooks read the response through ctx.response; a failing hook
        replaces it with the error handler's response and the rest still run.
        """
        for hook in _chain(route.after, self.router.after_hooks):
            ctx.response = response
            try:
                hook(ctx)
            except Exception as e:
                response = self.error_handler(ctx, e)
        ctx.response = response
        return response

    @staticmethod
    def _merge_headers(ctx: Context, response: HTTPResponse) -> HTTPResponse:
        """Hook headers fill in; headers the handler set explicitly win."""
        for name, value in ctx.response_headers.items():
            if not response.has_header(name):
                response.headers[name] = value
        return response

    # =========================================================================
    # OUTCOME TRANSLATION
    # =========================================================================

    @staticmethod
    def translate(outcome: Any) -> HTTPResponse:
        """
        Convert a handler's return value into an HTTPResponse.

        Raises:
            TypeError: For values with no HTTP meaning. Raised inside the
                       handler's try block, so it reaches the error handler.
        """
        if isinstance(outcome, HTTPResponse):
            return outcome
        if outcome is None:
            return with_status(200)
        # bool is an int subclass but never a status code
        if isinstance(outcome, bool):
            raise TypeError(f"Handler returned a bool: {outcome!r}")
        if isinstance(outcome, int):
            return with_status(outcome)
        if isinstance(outcome, (dict, list)):
            return api_data(outcome)
        if isinstance(outcome, (str, bytes)):
            return ok(outcome)
        raise TypeError(f"Handler returned unsupported type {type(outcome).__name__}")


def _chain(*hook_lists: Iterable[Hook]):
    for hooks in hook_lists:
        yield from hooks
