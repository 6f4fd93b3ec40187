"""
Unit tests for the books resource.
"""

import json
import threading

import pytest

from bookserver.http.context import Context
from bookserver.resources.books import Book, BookDecodeError, BookStore, BooksController

from conftest import book, make_request


def ctx_for(method="GET", path="/books", body=None, json_body=None):
    return Context(request=make_request(method, path, body=body, json_body=json_body))


class TestBook:

    def test_from_mapping(self):
        parsed = Book.from_mapping(book("1", "Dune", "Frank Herbert", "9.99"))
        assert parsed == Book(Id="1", Title="Dune", Author="Frank Herbert", Price="9.99")

    def test_empty_strings_are_allowed(self):
        parsed = Book.from_mapping(book("", "", "", ""))
        assert parsed.Id == ""

    def test_extra_keys_are_ignored(self):
        data = dict(book(), Publisher="Chilton")
        assert Book.from_mapping(data).to_dict() == book()

    def test_to_dict_uses_wire_keys(self):
        assert list(Book("1", "T", "A", "P").to_dict()) == ["Id", "Title", "Author", "Price"]

    def test_not_an_object(self):
        with pytest.raises(BookDecodeError) as exc_info:
            Book.from_mapping(["Id", "1"])

        assert exc_info.value.problems == ["Request body must be a JSON object, got array"]
        assert exc_info.value.status_code == 400

    def test_every_problem_is_reported(self):
        with pytest.raises(BookDecodeError) as exc_info:
            Book.from_mapping({"Id": 1, "Title": "T", "Price": None})

        assert exc_info.value.problems == [
            "Field Id must be a string, got number",
            "Missing field: Author",
            "Field Price must be a string, got null",
        ]

    def test_bool_field_named_boolean(self):
        with pytest.raises(BookDecodeError) as exc_info:
            Book.from_mapping(dict(book(), Price=True))

        assert exc_info.value.problems == ["Field Price must be a string, got boolean"]


class TestBookStore:

    def test_starts_empty(self):
        assert BookStore().all() == []

    def test_add_keeps_insertion_order(self):
        store = BookStore()
        store.add(Book("2", "B", "", ""))
        store.add(Book("1", "A", "", ""))

        assert [b.Id for b in store.all()] == ["2", "1"]

    def test_find_returns_first_duplicate(self):
        store = BookStore()
        store.add(Book("1", "first", "", ""))
        store.add(Book("1", "second", "", ""))

        assert store.find("1").Title == "first"
        assert store.find("2") is None

    def test_remove_drops_all_duplicates(self):
        store = BookStore()
        store.add(Book("1", "a", "", ""))
        store.add(Book("2", "b", "", ""))
        store.add(Book("1", "c", "", ""))

        assert store.remove("1") == 2
        assert [b.Id for b in store.all()] == ["2"]

    def test_remove_absent_is_noop(self):
        store = BookStore()
        store.add(Book("1", "a", "", ""))

        assert store.remove("9") == 0
        assert len(store) == 1

    def test_clear(self):
        store = BookStore()
        store.add(Book("1", "a", "", ""))
        store.clear()

        assert store.all() == []

    def test_all_returns_a_copy(self):
        store = BookStore()
        store.add(Book("1", "a", "", ""))
        store.all().clear()

        assert len(store) == 1

    def test_concurrent_adds(self):
        store = BookStore()

        def add_many(prefix):
            for i in range(200):
                store.add(Book(f"{prefix}-{i}", "", "", ""))

        threads = [threading.Thread(target=add_many, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(store) == 8 * 200


class TestBooksController:

    def test_before_marks_response(self, controller):
        ctx = ctx_for()
        controller.before(ctx)
        assert ctx.response_headers == {"X-Books-Controller": "true"}

    def test_create(self, controller):
        response = controller.create(ctx_for("POST", json_body=book("1")))

        assert response.status == 201
        assert response.body == b""
        assert controller.store.find("1") is not None

    def test_create_invalid_json_is_500(self, controller):
        response = controller.create(ctx_for("POST", body=b"{not json"))

        assert response.status == 500
        assert response.json["status"] == 500
        assert response.json["errors"][0].startswith("Invalid JSON body")
        assert len(controller.store) == 0

    def test_create_empty_body_is_500(self, controller):
        response = controller.create(ctx_for("POST"))

        assert response.status == 500
        assert response.json == {"status": 500, "errors": ["Request body is empty"]}

    def test_create_wrong_shape_is_400(self, controller):
        response = controller.create(ctx_for("POST", json_body={"Id": "1"}))

        assert response.status == 400
        assert response.json == {
            "status": 400,
            "errors": ["Missing field: Title", "Missing field: Author", "Missing field: Price"],
        }
        assert len(controller.store) == 0

    def test_read_many_empty(self, controller):
        assert controller.read_many(ctx_for()).json == {"status": 200, "data": []}

    def test_read_many(self, controller):
        controller.create(ctx_for("POST", json_body=book("1")))
        controller.create(ctx_for("POST", json_body=book("2", title="Emma")))

        data = controller.read_many(ctx_for()).json["data"]

        assert [b["Title"] for b in data] == ["Dune", "Emma"]

    def test_read(self, controller):
        controller.create(ctx_for("POST", json_body=book("1")))

        response = controller.read("1", ctx_for(path="/books/1"))

        assert response.json == {"status": 200, "data": book("1")}

    def test_read_missing_is_bare_404(self, controller):
        response = controller.read("nope", ctx_for(path="/books/nope"))

        assert response.status == 404
        assert response.body == b""

    def test_delete_many(self, controller):
        controller.create(ctx_for("POST", json_body=book("1")))

        response = controller.delete_many(ctx_for("DELETE"))

        assert response.status == 200
        assert response.text == "OK"
        assert len(controller.store) == 0

    def test_delete(self, controller):
        controller.create(ctx_for("POST", json_body=book("1")))
        controller.create(ctx_for("POST", json_body=book("1", title="Again")))
        controller.create(ctx_for("POST", json_body=book("2")))

        response = controller.delete("1", ctx_for("DELETE", "/books/1"))

        assert response.text == "OK"
        assert [b.Id for b in controller.store.all()] == ["2"]

    def test_delete_absent_is_ok(self, controller):
        response = controller.delete("404", ctx_for("DELETE", "/books/404"))

        assert response.status == 200
        assert response.text == "OK"

    def test_controllers_do_not_share_stores(self):
        first, second = BooksController(), BooksController()
        first.create(ctx_for("POST", json_body=book("1")))

        assert len(second.store) == 0

    def test_book_json_round_trips_through_response(self, controller):
        payload = book("7", "Título", "Autor", "€5")
        controller.create(ctx_for("POST", body=json.dumps(payload).encode("utf-8")))

        assert controller.read("7", ctx_for()).json["data"] == payload
