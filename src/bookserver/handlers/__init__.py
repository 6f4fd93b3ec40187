"""
=============================================================================
HANDLERS MODULE
=============================================================================

Request handlers that aren't part of a resource controller.

A handler takes the request Context and returns something the dispatcher
can turn into a response (see http/dispatcher.py):

    def welcome(ctx):
        return ok("Welcome")

=============================================================================
"""

from .site import (
    welcome,
    status_code,
    error_test,
    just_a_number,
    file_not_found,
    DeliberateError,
    WELCOME_MESSAGE,
    STATUS_CODE_ERROR,
    TEST_ERROR_MESSAGE,
)

__all__ = [
    "welcome",
    "status_code",
    "error_test",
    "just_a_number",
    "file_not_found",
    "DeliberateError",
    "WELCOME_MESSAGE",
    "STATUS_CODE_ERROR",
    "TEST_ERROR_MESSAGE",
]
