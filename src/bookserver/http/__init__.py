"""
=============================================================================
HTTP PACKAGE
=============================================================================

The protocol-facing half of the server:

    request.py       bytes → HTTPRequest
    response.py      HTTPResponse, ResponseBuilder, response helpers
    status_codes.py  HTTPStatus and reason phrases
    context.py       per-request Context handed to hooks and handlers
    router.py        ordered route table + hook lists
    dispatcher.py    hooks → handler → hooks, outcome → HTTPResponse

=============================================================================
"""

from .request import HTTPRequest, RequestParser, HTTPParseError, parse_request
from .response import (
    HTTPResponse,
    ResponseBuilder,
    ok,                 # 200 + text body
    created,            # 201, no body
    with_status,        # any status, no body
    with_status_text,   # any status, reason phrase as body
    with_ok,            # 200, "OK"
    api_data,           # JSON envelope with data
    api_error,          # JSON envelope with errors
    not_found,          # 404 envelope
    internal_error,     # 500 + text body
)
from .status_codes import HTTPStatus, status_text
from .context import Context
from .router import Router, Route, RouteKind, RouteMatch, ControllerRoutes
from .dispatcher import Dispatcher, default_error_handler

__all__ = [
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "parse_request",

    "HTTPResponse",
    "ResponseBuilder",
    "ok",
    "created",
    "with_status",
    "with_status_text",
    "with_ok",
    "api_data",
    "api_error",
    "not_found",
    "internal_error",

    "HTTPStatus",
    "status_text",

    "Context",
    "Router",
    "Route",
    "RouteKind",
    "RouteMatch",
    "ControllerRoutes",
    "Dispatcher",
    "default_error_handler",
]
