"""
=============================================================================
BOOKSERVER - In-memory REST server for a collection of books
=============================================================================

A threaded HTTP/1.1 server built on raw sockets, serving one resource
("books") through an ordered route table with before/after hooks.

    bookserver/
    ├── __init__.py          package exports
    ├── __main__.py          CLI (python -m bookserver)
    ├── app.py               build_router(): the route table
    ├── server.py            HTTPServer: transport → dispatcher
    ├── config.py            ServerConfig
    ├── core/                sockets, connections, thread pool
    ├── http/                request, response, router, dispatcher
    ├── hooks/               header and access-log hooks
    ├── handlers/            welcome, status codes, catch-all
    └── resources/           Book, BookStore, BooksController

=============================================================================
QUICK START
=============================================================================

    from bookserver import ServerConfig, create_server

    server = create_server(ServerConfig(port=9090))
    server.run()

    $ curl -X POST localhost:9090/books \\
          -d '{"Id":"1","Title":"Dune","Author":"Herbert","Price":"9.99"}'
    $ curl localhost:9090/books
    {"status": 200, "data": [{"Id": "1", "Title": "Dune", ...}]}

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .server import HTTPServer
from .app import build_router, create_server
from .resources import Book, BookStore, BooksController

__all__ = [
    "__version__",
    "ServerConfig",
    "HTTPServer",
    "build_router",
    "create_server",
    "Book",
    "BookStore",
    "BooksController",
]
