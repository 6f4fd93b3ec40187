"""
Unit tests for status codes and reason phrases.
"""

import pytest

from bookserver.http.status_codes import HTTPStatus, status_text, is_valid_status


class TestHTTPStatus:

    def test_status_phrases(self):
        assert HTTPStatus.OK.phrase == "OK"
        assert HTTPStatus.NOT_FOUND.phrase == "Not Found"
        assert HTTPStatus.INTERNAL_SERVER_ERROR.phrase == "Internal Server Error"
        assert HTTPStatus.REQUEST_HEADER_FIELDS_TOO_LARGE.phrase == "Request Header Fields Too Large"

    def test_irregular_phrases(self):
        assert HTTPStatus.IM_A_TEAPOT.phrase == "I'm a teapot"
        assert HTTPStatus.URI_TOO_LONG.phrase == "URI Too Long"
        assert HTTPStatus.HTTP_VERSION_NOT_SUPPORTED.phrase == "HTTP Version Not Supported"

    def test_is_error(self):
        assert HTTPStatus.NOT_FOUND.is_error
        assert HTTPStatus.INTERNAL_SERVER_ERROR.is_error
        assert not HTTPStatus.OK.is_error

    def test_members_are_ints(self):
        assert HTTPStatus.CREATED == 201


class TestStatusText:

    @pytest.mark.parametrize("code, phrase", [
        (200, "OK"),
        (201, "Created"),
        (404, "Not Found"),
        (503, "Service Unavailable"),
    ])
    def test_registered(self, code, phrase):
        assert status_text(code) == phrase

    def test_unregistered_is_empty(self):
        assert status_text(299) == ""
        assert status_text(999) == ""


class TestIsValidStatus:

    @pytest.mark.parametrize("code", [100, 200, 299, 999])
    def test_valid(self, code):
        assert is_valid_status(code)

    @pytest.mark.parametrize("code", [-1, 0, 99, 1000])
    def test_invalid(self, code):
        assert not is_valid_status(code)
