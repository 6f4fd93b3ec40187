"""
=============================================================================
APPLICATION
=============================================================================

Builds the route table for the book server. Registration order is match
priority, so the order below is the routing policy:

    ┌────┬────────────┬────────┬──────────────────────┬─────────────────────┐
    │ #  │ Kind       │ Method │ Pattern              │ Handler             │
    ├────┼────────────┼────────┼──────────────────────┼─────────────────────┤
    │  - │ before     │        │ (global)             │ X-Custom-Header     │
    │  - │ after      │        │ (global)             │ access log          │
    │  1 │ LITERAL    │ ANY    │ /                    │ welcome             │
    │  2 │ TEMPLATE   │ ANY    │ /status-code/{code}  │ status_code         │
    │  3 │ LITERAL    │ ANY    │ /errortest           │ error_test          │
    │  4 │ LITERAL    │ GET    │ /books               │ read_many           │
    │  5 │ LITERAL    │ POST   │ /books               │ create              │
    │  6 │ LITERAL    │ DELETE │ /books               │ delete_many         │
    │  7 │ TEMPLATE   │ GET    │ /books/{id}          │ read                │
    │  8 │ TEMPLATE   │ DELETE │ /books/{id}          │ delete              │
    │  9 │ REGEX      │ ANY    │ ^[0-9]+$             │ just_a_number       │
    │ 10 │ CATCH_ALL  │ ANY    │ (anything)           │ file_not_found      │
    └────┴────────────┴────────┴──────────────────────┴─────────────────────┘

A method the books routes don't cover (PUT /books/1) falls through to the
catch-all and gets 404, never 405.

=============================================================================
"""

from typing import Optional

from .config import ServerConfig
from .handlers import error_test, file_not_found, just_a_number, status_code, welcome
from .hooks import AccessLogHook, custom_header
from .http import Router
from .resources import BooksController
from .server import HTTPServer


def build_router(
    controller: Optional[BooksController] = None,
    access_log: Optional[AccessLogHook] = None,
) -> Router:
    """
    Build the complete, ordered route table.

    Args:
        controller: Books controller to route to; a fresh one (with an empty
                    store) when omitted. Pass one in to inspect its store.
        access_log: Access log after-hook; a text-format one when omitted.
    """
    controller = controller or BooksController()
    router = Router()

    router.before(custom_header)
    router.after(access_log or AccessLogHook())

    router.map("/", welcome)
    router.map("/status-code/{code}", status_code)
    router.map("/errortest", error_test)

    books = router.controller("/books", before=[controller.before])
    books.list(controller.read_many)
    books.create(controller.create)
    books.delete_all(controller.delete_many)
    books.read(controller.read)
    books.delete(controller.delete)

    router.map_regex(r"^[0-9]+$", just_a_number)
    router.map_catch_all(file_not_found)

    return router


def create_server(
    config: Optional[ServerConfig] = None,
    controller: Optional[BooksController] = None,
    configure_logging: bool = True,
) -> HTTPServer:
    """
    Build the router and wrap it in a ready-to-run HTTPServer.

        server = create_server(ServerConfig.from_env())
        server.run()
    """
    config = config or ServerConfig()
    config.validate()
    router = build_router(controller, AccessLogHook(log_format=config.log_format))
    return HTTPServer(router, config, configure_logging=configure_logging)
