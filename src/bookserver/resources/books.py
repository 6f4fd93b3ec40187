"""
=============================================================================
BOOKS RESOURCE
=============================================================================

The one collection this server exposes.

    ┌─────────────────────────────────────────────────────────────────────┐
    │  Book            plain record: Id, Title, Author, Price (strings)   │
    │  BookStore       ordered in-memory list of Books                    │
    │  BooksController REST operations over one BookStore                 │
    └─────────────────────────────────────────────────────────────────────┘

    ┌────────┬──────────────┬──────────────┬────────────────────────────────┐
    │ Method │ Path         │ Operation    │ Response                       │
    ├────────┼──────────────┼──────────────┼────────────────────────────────┤
    │ POST   │ /books       │ create       │ 201 / 400 bad fields / 500 bad │
    │        │              │              │ JSON                           │
    │ GET    │ /books       │ read_many    │ 200 {"data": [...]}            │
    │ DELETE │ /books       │ delete_many  │ 200 "OK"                       │
    │ GET    │ /books/{id}  │ read         │ 200 {"data": {...}} / 404      │
    │ DELETE │ /books/{id}  │ delete       │ 200 "OK" (even if absent)      │
    └────────┴──────────────┴──────────────┴────────────────────────────────┘

Nothing here survives a restart. Ids are whatever the client sends and are
not checked for uniqueness: two books may share an Id, read returns the
first one inserted and delete removes all of them.

=============================================================================
"""

import logging
import threading
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

from ..http.context import Context
from ..http.request import HTTPParseError
from ..http.response import HTTPResponse, api_data, api_error, created, with_ok, with_status
from ..http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)


BOOK_FIELDS = ("Id", "Title", "Author", "Price")


class BookDecodeError(Exception):
    """
    Raised when a create payload isn't a flat mapping of the four string
    fields.

    Attributes:
        problems: One message per offending field (or one for the whole body).
        status_code: Always 400; the client sent something unusable.
    """

    status_code = HTTPStatus.BAD_REQUEST

    def __init__(self, problems: List[str]):
        super().__init__("; ".join(problems))
        self.problems = problems


@dataclass(frozen=True)
class Book:
    """
    A book. All fields are strings and may be empty.

    Frozen: the store never edits a book in place.
    """

    Id: str
    Title: str
    Author: str
    Price: str

    @classmethod
    def from_mapping(cls, data: Any) -> "Book":
        """
        Build a Book from decoded request data.

        Every field must be present and a string. Extra keys are ignored.

        Raises:
            BookDecodeError: Listing every problem found, not just the first.
        """
        if not isinstance(data, dict):
            raise BookDecodeError([
                f"Request body must be a JSON object, got {_json_type(data)}"
            ])

        problems = []
        for name in BOOK_FIELDS:
            if name not in data:
                problems.append(f"Missing field: {name}")
            elif not isinstance(data[name], str):
                problems.append(f"Field {name} must be a string, got {_json_type(data[name])}")

        if problems:
            raise BookDecodeError(problems)

        return cls(**{name: data[name] for name in BOOK_FIELDS})

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


def _json_type(value: Any) -> str:
    """Name a decoded JSON value the way a client would."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


class BookStore:
    """
    Insertion-ordered, in-memory list of books.

    Each mutation replaces the list under a lock, so a reader always sees
    either the old list or the new one.
    """

    def __init__(self):
        self._books: Optional[List[Book]] = None
        self._lock = threading.Lock()

    def all(self) -> List[Book]:
        """Every book in insertion order; [] for a store never written to."""
        with self._lock:
            if self._books is None:
                self._books = []
            return list(self._books)

    def find(self, book_id: str) -> Optional[Book]:
        """First book with this Id (linear scan), or None."""
        for book in self.all():
            if book.Id == book_id:
                return book
        return None

    def add(self, book: Book) -> None:
        with self._lock:
            self._books = (self._books or []) + [book]

    def remove(self, book_id: str) -> int:
        """
        Drop every book with this Id.

        Returns:
            How many books were removed (0 is fine).
        """
        with self._lock:
            current = self._books or []
            kept = [book for book in current if book.Id != book_id]
            self._books = kept
            return len(current) - len(kept)

    def clear(self) -> None:
        with self._lock:
            self._books = []

    def __len__(self) -> int:
        return len(self.all())


class BooksController:
    """
    REST controller for /books.

    Routes are declared in app.build_router(); `before` is registered as the
    controller-scoped before-hook there.
    """

    MARKER_HEADER = "X-Books-Controller"

    def __init__(self, store: Optional[BookStore] = None):
        self.store = store or BookStore()

    def before(self, ctx: Context) -> None:
        """Mark every response this controller serves."""
        ctx.set_header(self.MARKER_HEADER, "true")

    def create(self, ctx: Context) -> HTTPResponse:
        """
        POST /books with {"Id": ..., "Title": ..., "Author": ..., "Price": ...}.

        Returns:
            201 on success, 500 when the body isn't JSON at all, 400 when it is
            JSON but not a valid book.
        """
        if not ctx.request.body:
            return api_error(HTTPStatus.INTERNAL_SERVER_ERROR, "Request body is empty")

        try:
            data = ctx.request.json
        except HTTPParseError as e:
            return api_error(HTTPStatus.INTERNAL_SERVER_ERROR, str(e))

        try:
            book = Book.from_mapping(data)
        except BookDecodeError as e:
            logger.info(f"Rejected book payload: {e}")
            return api_error(e.status_code, *e.problems)

        self.store.add(book)
        logger.debug(f"Created book {book.Id!r}")
        return created()

    def read_many(self, ctx: Context) -> HTTPResponse:
        """GET /books: every book, [] when there are none."""
        return api_data([book.to_dict() for book in self.store.all()])

    def read(self, book_id: str, ctx: Context) -> HTTPResponse:
        """GET /books/{id}: the first matching book, or a bare 404."""
        book = self.store.find(book_id)
        if book is None:
            return with_status(HTTPStatus.NOT_FOUND)
        return api_data(book.to_dict())

    def delete_many(self, ctx: Context) -> HTTPResponse:
        """DELETE /books: empty the store."""
        self.store.clear()
        return with_ok()

    def delete(self, book_id: str, ctx: Context) -> HTTPResponse:
        """DELETE /books/{id}: remove every book with that Id."""
        removed = self.store.remove(book_id)
        logger.debug(f"Deleted {removed} book(s) with Id {book_id!r}")
        return with_ok()
