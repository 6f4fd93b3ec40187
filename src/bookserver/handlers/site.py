"""
Handlers for the routes that sit around the books resource.

    /                     welcome text
    /status-code/{code}   respond with any status code
    /errortest            always fails, to exercise the error handler
    ^[0-9]+$              numeric paths
    (catch-all)           404 for everything else
"""

import logging

from ..http.context import Context
from ..http.response import HTTPResponse, api_data, api_error, internal_error, ok, with_status_text
from ..http.status_codes import HTTPStatus, is_valid_status


logger = logging.getLogger(__name__)


WELCOME_MESSAGE = "Welcome to the Goweb example app - see the terminal for instructions."
STATUS_CODE_ERROR = "Failed to convert 'code' into a real status code number."
TEST_ERROR_MESSAGE = "This is a test error!"


class DeliberateError(Exception):
    """Raised on purpose by /errortest."""


def welcome(ctx: Context) -> HTTPResponse:
    return ok(WELCOME_MESSAGE)


def status_code(ctx: Context) -> HTTPResponse:
    """
    /status-code/{code}: answer with that status and its reason phrase.

        /status-code/404   →  404 "Not Found"
        /status-code/299   →  299 ""
        /status-code/abc   →  500 "Failed to convert 'code' ..."
    """
    raw = ctx.path_value("code", "")
    try:
        code = int(raw)
    except ValueError:
        code = None

    if code is None or not is_valid_status(code):
        logger.debug(f"Rejected status code {raw!r}")
        return internal_error(STATUS_CODE_ERROR)

    return with_status_text(code)


def error_test(ctx: Context) -> None:
    raise DeliberateError(TEST_ERROR_MESSAGE)


def just_a_number(ctx: Context) -> HTTPResponse:
    return api_data("Just a number!")


def file_not_found(ctx: Context) -> HTTPResponse:
    return api_error(HTTPStatus.NOT_FOUND, "File not found")
