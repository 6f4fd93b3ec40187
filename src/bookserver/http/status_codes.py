"""
=============================================================================
HTTP STATUS CODES
=============================================================================

Status codes the server emits, and the conventional reason phrase for every
code registered with IANA.

The reason phrase does double duty here:

    1. It is written on the status line:   HTTP/1.1 404 Not Found
    2. It is the BODY of /status-code/{code} responses, which answer with
       nothing but the phrase for the requested code.

Codes that are syntactically valid (three digits) but unregistered, such as
299 or 599, have an empty phrase. They are still legal on the wire:

    HTTP/1.1 299 \r\n

That is why status_text() takes a plain int and never raises, while the
HTTPStatus enum only lists registered codes.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    Registered HTTP status codes.

    IntEnum, so members compare equal to plain ints:

        >>> HTTPStatus.CREATED == 201
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    # 1xx informational
    CONTINUE = 100
    SWITCHING_PROTOCOLS = 101
    PROCESSING = 102
    EARLY_HINTS = 103

    # 2xx success
    OK = 200
    CREATED = 201
    ACCEPTED = 202
    NON_AUTHORITATIVE_INFORMATION = 203
    NO_CONTENT = 204
    RESET_CONTENT = 205
    PARTIAL_CONTENT = 206
    MULTI_STATUS = 207
    ALREADY_REPORTED = 208
    IM_USED = 226

    # 3xx redirection
    MULTIPLE_CHOICES = 300
    MOVED_PERMANENTLY = 301
    FOUND = 302
    SEE_OTHER = 303
    NOT_MODIFIED = 304
    USE_PROXY = 305
    TEMPORARY_REDIRECT = 307
    PERMANENT_REDIRECT = 308

    # 4xx client errors
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    PAYMENT_REQUIRED = 402
    FORBIDDEN = 403
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    NOT_ACCEPTABLE = 406
    PROXY_AUTHENTICATION_REQUIRED = 407
    REQUEST_TIMEOUT = 408
    CONFLICT = 409
    GONE = 410
    LENGTH_REQUIRED = 411
    PRECONDITION_FAILED = 412
    PAYLOAD_TOO_LARGE = 413
    URI_TOO_LONG = 414
    UNSUPPORTED_MEDIA_TYPE = 415
    RANGE_NOT_SATISFIABLE = 416
    EXPECTATION_FAILED = 417
    IM_A_TEAPOT = 418
    MISDIRECTED_REQUEST = 421
    UNPROCESSABLE_ENTITY = 422
    LOCKED = 423
    FAILED_DEPENDENCY = 424
    TOO_EARLY = 425
    UPGRADE_REQUIRED = 426
    PRECONDITION_REQUIRED = 428
    TOO_MANY_REQUESTS = 429
    REQUEST_HEADER_FIELDS_TOO_LARGE = 431
    UNAVAILABLE_FOR_LEGAL_REASONS = 451

    # 5xx server errors
    INTERNAL_SERVER_ERROR = 500
    NOT_IMPLEMENTED = 501
    BAD_GATEWAY = 502
    SERVICE_UNAVAILABLE = 503
    GATEWAY_TIMEOUT = 504
    HTTP_VERSION_NOT_SUPPORTED = 505
    VARIANT_ALSO_NEGOTIATES = 506
    INSUFFICIENT_STORAGE = 507
    LOOP_DETECTED = 508
    NOT_EXTENDED = 510
    NETWORK_AUTHENTICATION_REQUIRED = 511

    @property
    def phrase(self) -> str:
        """Reason phrase for the status line, e.g. 'Not Found'."""
        return _PHRASES[self.value]

    @property
    def is_error(self) -> bool:
        """True for 4xx and 5xx codes."""
        return self >= 400


# Phrases that don't follow the "title-cased enum name" rule.
_SPECIAL_PHRASES = {
    200: "OK",
    203: "Non-Authoritative Information",
    207: "Multi-Status",
    226: "IM Used",
    414: "URI Too Long",
    418: "I'm a teapot",
    505: "HTTP Version Not Supported",
}

_PHRASES = {
    status.value: _SPECIAL_PHRASES.get(
        status.value, status.name.replace("_", " ").title()
    )
    for status in HTTPStatus
}


def status_text(code: int) -> str:
    """
    Get the conventional reason phrase for any integer status code.

    Args:
        code: Status code, registered or not.

    Returns:
        The phrase ("OK", "Not Found", ...) or "" for unregistered codes.

    Example:
        status_text(200)  # "OK"
        status_text(299)  # ""
    """
    return _PHRASES.get(code, "")


def is_valid_status(code: int) -> bool:
    """Three-digit codes are the only ones that fit on a status line."""
    return 100 <= code <= 999
