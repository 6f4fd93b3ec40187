"""
End-to-end behaviour of the application route table, without sockets.
"""

import pytest

from bookserver.app import build_router
from bookserver.handlers import STATUS_CODE_ERROR, TEST_ERROR_MESSAGE, WELCOME_MESSAGE
from bookserver.http import Dispatcher, RouteKind
from bookserver.resources import BooksController

from conftest import book, make_request


@pytest.fixture
def call(dispatcher):
    def _call(method, path, **kwargs):
        return dispatcher.dispatch(make_request(method, path, **kwargs))
    return _call


class TestRouteTable:

    def test_registration_order(self):
        kinds = [route.kind for route in build_router().routes()]

        assert kinds[-2:] == [RouteKind.REGEX, RouteKind.CATCH_ALL]
        assert len(kinds) == 10

    def test_each_router_gets_its_own_controller(self):
        first = Dispatcher(build_router())
        second = Dispatcher(build_router())

        first.dispatch(make_request("POST", "/books", json_body=book()))

        assert second.dispatch(make_request("GET", "/books")).json["data"] == []


class TestBooksScenario:

    def test_create_read_delete(self, call):
        assert call("POST", "/books", json_body=book("1", "T", "A", "9.99")).status == 201

        listing = call("GET", "/books")
        assert listing.status == 200
        assert listing.json == {"status": 200, "data": [book("1", "T", "A", "9.99")]}

        single = call("GET", "/books/1")
        assert single.json == {"status": 200, "data": book("1", "T", "A", "9.99")}

        deleted = call("DELETE", "/books/1")
        assert deleted.status == 200
        assert deleted.text == "OK"

        assert call("GET", "/books/1").status == 404

    def test_empty_list(self, call):
        assert call("GET", "/books").json == {"status": 200, "data": []}

    def test_delete_all(self, call):
        call("POST", "/books", json_body=book("1"))
        call("POST", "/books", json_body=book("2"))

        assert call("DELETE", "/books").text == "OK"
        assert call("GET", "/books").json["data"] == []

    def test_delete_absent_id(self, call):
        response = call("DELETE", "/books/missing")

        assert response.status == 200
        assert response.text == "OK"

    def test_delete_removes_duplicates(self, call):
        call("POST", "/books", json_body=book("1", title="first"))
        call("POST", "/books", json_body=book("1", title="second"))
        call("POST", "/books", json_body=book("2"))

        call("DELETE", "/books/1")

        assert [b["Id"] for b in call("GET", "/books").json["data"]] == ["2"]

    def test_read_returns_first_duplicate(self, call):
        call("POST", "/books", json_body=book("1", title="first"))
        call("POST", "/books", json_body=book("1", title="second"))

        assert call("GET", "/books/1").json["data"]["Title"] == "first"

    def test_trailing_slash(self, call):
        call("POST", "/books/", json_body=book("1"))

        assert len(call("GET", "/books/").json["data"]) == 1

    def test_malformed_create(self, call):
        assert call("POST", "/books", body=b"not json").status == 500
        assert call("POST", "/books", json_body={"Id": 5}).status == 400
        assert call("GET", "/books").json["data"] == []

    def test_unsupported_method_falls_through_to_catch_all(self, call):
        response = call("PUT", "/books/1")

        assert response.status == 404
        assert response.json == {"status": 404, "errors": ["File not found"]}


class TestHeaders:

    @pytest.mark.parametrize("method, path", [
        ("GET", "/"),
        ("GET", "/books"),
        ("GET", "/errortest"),
        ("GET", "/123"),
        ("GET", "/nope"),
    ])
    def test_custom_header_everywhere(self, call, method, path):
        assert call(method, path).headers["X-Custom-Header"] == "Goweb"

    @pytest.mark.parametrize("method, path", [
        ("GET", "/books"),
        ("POST", "/books"),
        ("DELETE", "/books"),
        ("GET", "/books/1"),
        ("DELETE", "/books/1"),
    ])
    def test_books_controller_marker(self, call, method, path):
        assert call(method, path, json_body=book()).headers["X-Books-Controller"] == "true"

    @pytest.mark.parametrize("path", ["/", "/status-code/200", "/123", "/nope"])
    def test_marker_only_on_books_routes(self, call, path):
        assert "X-Books-Controller" not in call("GET", path).headers

    def test_request_id_header(self, call):
        assert len(call("GET", "/").headers["X-Request-ID"]) == 8


class TestAncillaryRoutes:

    @pytest.mark.parametrize("method", ["GET", "POST", "DELETE"])
    def test_welcome(self, call, method):
        response = call(method, "/")

        assert response.status == 200
        assert response.text == WELCOME_MESSAGE

    @pytest.mark.parametrize("code, phrase", [
        (200, "OK"),
        (404, "Not Found"),
        (418, "I'm a teapot"),
        (503, "Service Unavailable"),
        (299, ""),
    ])
    def test_status_code(self, call, code, phrase):
        response = call("GET", f"/status-code/{code}")

        assert response.status == code
        assert response.text == phrase

    @pytest.mark.parametrize("code", [101, 204, 304])
    def test_status_code_without_body(self, call, code):
        response = call("GET", f"/status-code/{code}")

        assert response.status == code
        assert response.body == b""
        assert b"Content-Length" not in response.to_bytes()

    @pytest.mark.parametrize("raw", ["abc", "12.5", "0", "1000", "-200"])
    def test_status_code_rejects(self, call, raw):
        response = call("GET", f"/status-code/{raw}")

        assert response.status == 500
        assert response.text == STATUS_CODE_ERROR

    def test_errortest(self, call):
        response = call("GET", "/errortest")

        assert response.status == 500
        assert response.text == TEST_ERROR_MESSAGE

    @pytest.mark.parametrize("path", ["/1", "/123", "/0042/"])
    def test_just_a_number(self, call, path):
        response = call("GET", path)

        assert response.status == 200
        assert response.json == {"status": 200, "data": "Just a number!"}

    @pytest.mark.parametrize("path", ["/nope", "/12a", "/1/2", "/books/1/extra"])
    def test_file_not_found(self, call, path):
        response = call("GET", path)

        assert response.status == 404
        assert response.json == {"status": 404, "errors": ["File not found"]}


def test_injected_controller_is_used():
    controller = BooksController()
    dispatcher = Dispatcher(build_router(controller))

    dispatcher.dispatch(make_request("POST", "/books", json_body=book("x")))

    assert controller.store.find("x") is not None
