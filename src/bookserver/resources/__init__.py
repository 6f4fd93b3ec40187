"""
Resources served by the application.
"""

from .books import Book, BookStore, BooksController, BookDecodeError, BOOK_FIELDS

__all__ = [
    "Book",
    "BookStore",
    "BooksController",
    "BookDecodeError",
    "BOOK_FIELDS",
]
