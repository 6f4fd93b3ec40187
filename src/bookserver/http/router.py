"""
=============================================================================
URL ROUTER
=============================================================================

An ordered route table plus the global hook lists.

Four kinds of route, all kept in ONE list in registration order:

    LITERAL     /errortest              exact path match
    TEMPLATE    /books/{id}             {name} binds one segment,
                /files/{path...}        {name...} binds the rest of the path
    REGEX       ^[0-9]+$                tested against the path without its
                                        surrounding slashes ("123")
    CATCH_ALL   (no pattern)            matches every method and path

=============================================================================
MATCH PRIORITY
=============================================================================

First registered, first matched. There is no "most specific wins" rule, so
the order routes are mapped in IS the routing policy:

    ┌─────────────────────────────────────────────────────────────────────┐
    │  #  Kind        Method  Pattern                 GET /123 ?           │
    ├─────────────────────────────────────────────────────────────────────┤
    │  1  LITERAL     *       /                       no                   │
    │  2  TEMPLATE    *       /status-code/{code}     no                   │
    │  3  TEMPLATE    GET     /books/{id}             no                   │
    │  4  REGEX       *       ^[0-9]+$                MATCH ← wins         │
    │  5  CATCH_ALL   *       (anything)              (never reached)      │
    └─────────────────────────────────────────────────────────────────────┘

A catch-all registered before other routes shadows everything after it.

=============================================================================
CONTROLLER ROUTES
=============================================================================

A controller's operations are declared explicitly with a small builder
instead of being discovered from method names:

    books = router.controller("/books", before=[controller.before])
    books.list(controller.read_many)      # GET    /books
    books.create(controller.create)       # POST   /books
    books.delete_all(controller.delete_many)  # DELETE /books
    books.read(controller.read)           # GET    /books/{id}
    books.delete(controller.delete)       # DELETE /books/{id}

Collection handlers take (ctx); item handlers take (id, ctx). The builder's
hooks run only around the routes it registered.

=============================================================================
INTERVIEW QUESTIONS ABOUT ROUTING
=============================================================================

Q: "How do you handle route conflicts?"
A: "First-match wins. More specific routes should be registered first.
   A regex or catch-all route placed early hides every route after it."

Q: "What's the time complexity of route matching?"
A: "O(R × P): R routes, each tested in O(P) for path length P. Fine for
   tables of a few dozen routes; radix trees get it to O(P)."

=============================================================================
"""

from dataclasses import dataclass, field
from enum import Enum
from functools import wraps
from typing import Any, Callable, Dict, List, Optional, Sequence
import re

from .context import Context


# Handler: takes the request context, returns an outcome the dispatcher
# knows how to translate (see dispatcher.py).
Handler = Callable[[Context], Any]

# Hook: runs before or after a handler. Raising is the only way to fail.
Hook = Callable[[Context], None]

# Item handler: the controller-style signature for /resource/{id} routes.
ItemHandler = Callable[[str, Context], Any]


class RouteKind(Enum):
    LITERAL = "literal"
    TEMPLATE = "template"
    REGEX = "regex"
    CATCH_ALL = "catch-all"


_PARAM = re.compile(r"^\{([A-Za-z_][A-Za-z0-9_]*)(\.\.\.)?\}$")


@dataclass
class Route:
    """
    One entry of the route table.

        Route(
            kind=RouteKind.TEMPLATE,
            pattern="/books/{id}",
            handler=<read>,
            method="GET",
            before=[<BooksController.before>],
        )
    """

    kind: RouteKind
    pattern: Optional[str]
    handler: Handler
    method: Optional[str] = None
    name: Optional[str] = None
    before: List[Hook] = field(default_factory=list)
    after: List[Hook] = field(default_factory=list)

    _regex: Optional[re.Pattern] = field(default=None, repr=False)

    def match(self, method: str, path: str) -> Optional[Dict[str, str]]:
        """
        Test this route against a normalized path.

        Returns:
            Bound path values (possibly empty) on a match, None otherwise.
        """
        if self.method and self.method != method.upper():
            return None

        if self.kind is RouteKind.CATCH_ALL:
            return {}

        if self.kind is RouteKind.LITERAL:
            return {} if path == self.pattern else None

        if self.kind is RouteKind.REGEX:
            found = self._regex.search(path.strip("/"))
            return found.groupdict() if found else None

        found = self._regex.match(path)
        return found.groupdict() if found else None

    @property
    def label(self) -> str:
        """Handler name for route listings."""
        return self.name or getattr(self.handler, "__qualname__", repr(self.handler))


@dataclass
class RouteMatch:
    """A matched route and the path values it bound."""
    route: Route
    params: Dict[str, str]


def normalize_path(path: str) -> str:
    """Ensure one leading slash and drop trailing ones: "books/" → "/books"."""
    return "/" + path.strip("/")


def compile_template(path: str) -> re.Pattern:
    """
    Compile a templated path into an anchored regex.

        /books/{id}              →  ^/books/(?P<id>[^/]+)$
        /files/{path...}         →  ^/files/(?P<path>.+)$

    A {name...} segment must be the last one.

    Raises:
        ValueError: On a {name...} segment that isn't last.
    """
    segments = [s for s in path.split("/") if s]
    parts = ["^"]

    for i, segment in enumerate(segments):
        parts.append("/")
        param = _PARAM.match(segment)
        if not param:
            parts.append(re.escape(segment))
            continue

        name, rest = param.groups()
        if rest:
            if i != len(segments) - 1:
                raise ValueError(f"{{{name}...}} must be the last segment in {path}")
            parts.append(f"(?P<{name}>.+)")
        else:
            parts.append(f"(?P<{name}>[^/]+)")

    if len(parts) == 1:
        parts.append("/")
    parts.append("$")
    return re.compile("".join(parts))


class Router:
    """
    Route table and hook lists, built once at startup.

        router = Router()
        router.before(add_custom_header)

        @router.route("/")
        def index(ctx):
            return ok("Welcome")

        router.map_regex(r"^[0-9]+$", just_a_number)
        router.map_catch_all(file_not_found)

    The finished router is handed to the Dispatcher (and through it to the
    HTTPServer); nothing registers routes after that.
    """

    def __init__(self):
        self._routes: List[Route] = []
        self._before: List[Hook] = []
        self._after: List[Hook] = []

    # =========================================================================
    # ROUTE REGISTRATION
    # =========================================================================

    def map(
        self,
        path: str,
        handler: Handler,
        method: Optional[str] = None,
        name: Optional[str] = None,
        before: Sequence[Hook] = (),
        after: Sequence[Hook] = (),
    ) -> Route:
        """
        Register a literal or templated path.

        The kind is inferred: any {param} segment makes it a TEMPLATE.

        Args:
            path: "/books" or "/books/{id}".
            handler: Called with the request Context.
            method: HTTP method, or None for any method.
            name: Label for route listings (defaults to the handler name).
            before: Hooks run before this route's handler only.
            after: Hooks run after this route's handler only.
        """
        full_path = normalize_path(path)
        if "{" in full_path:
            return self._add(Route(
                kind=RouteKind.TEMPLATE,
                pattern=full_path,
                handler=handler,
                method=method.upper() if method else None,
                name=name,
                before=list(before),
                after=list(after),
                _regex=compile_template(full_path),
            ))
        return self._add(Route(
            kind=RouteKind.LITERAL,
            pattern=full_path,
            handler=handler,
            method=method.upper() if method else None,
            name=name,
            before=list(before),
            after=list(after),
        ))

    def map_regex(
        self,
        pattern: str,
        handler: Handler,
        method: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Route:
        """
        Register a regex route for paths templates can't express.

        The regex is searched in the path with its leading and trailing
        slashes removed, so ^[0-9]+$ matches "/123". Named groups become
        path values.
        """
        return self._add(Route(
            kind=RouteKind.REGEX,
            pattern=pattern,
            handler=handler,
            method=method.upper() if method else None,
            name=name,
            _regex=re.compile(pattern),
        ))

    def map_catch_all(self, handler: Handler, name: Optional[str] = None) -> Route:
        """Register a route that matches any method and any path."""
        return self._add(Route(
            kind=RouteKind.CATCH_ALL,
            pattern=None,
            handler=handler,
            name=name,
        ))

    def _add(self, route: Route) -> Route:
        self._routes.append(route)
        return route

    # Decorator forms --------------------------------------------------------

    def route(self, path: str, method: Optional[str] = None, **kwargs: Any) -> Callable[[Handler], Handler]:
        """
        Decorator form of map().

            @router.route("/errortest")
            def error_test(ctx):
                ...
        """
        def decorator(handler: Handler) -> Handler:
            self.map(path, handler, method, **kwargs)
            return handler
        return decorator

    def get(self, path: str, **kwargs: Any) -> Callable[[Handler], Handler]:
        return self.route(path, "GET", **kwargs)

    def delete(self, path: str, **kwargs: Any) -> Callable[[Handler], Handler]:
        return self.route(path, "DELETE", **kwargs)

    # =========================================================================
    # HOOKS
    # =========================================================================

    def before(self, hook: Hook) -> Hook:
        """Append a global before-hook. Usable as a decorator."""
        self._before.append(hook)
        return hook

    def after(self, hook: Hook) -> Hook:
        """Append a global after-hook. Usable as a decorator."""
        self._after.append(hook)
        return hook

    @property
    def before_hooks(self) -> tuple[Hook, ...]:
        return tuple(self._before)

    @property
    def after_hooks(self) -> tuple[Hook, ...]:
        return tuple(self._after)

    # =========================================================================
    # CONTROLLERS
    # =========================================================================

    def controller(
        self,
        prefix: str,
        before: Sequence[Hook] = (),
        after: Sequence[Hook] = (),
    ) -> "ControllerRoutes":
        """Start declaring a controller's routes under `prefix`."""
        return ControllerRoutes(self, prefix, before, after)

    # =========================================================================
    # MATCHING
    # =========================================================================

    def match(self, method: str, path: str) -> Optional[RouteMatch]:
        """
        Find the first route (in registration order) matching method and path.

        Returns:
            RouteMatch, or None if nothing matched (no catch-all registered).
        """
        path = normalize_path(path)
        for route in self._routes:
            params = route.match(method, path)
            if params is not None:
                return RouteMatch(route=route, params=params)
        return None

    def routes(self) -> List[Route]:
        """All routes in match order."""
        return list(self._routes)

    def describe(self) -> List[str]:
        """
        One line per route, for the startup log:

              GET      /books/{id}              BooksController.read
              ANY      ^[0-9]+$                 just_a_number
        """
        lines = []
        for route in self._routes:
            method = route.method or "ANY"
            pattern = route.pattern if route.pattern is not None else "(catch-all)"
            lines.append(f"  {method:8} {pattern:30} {route.label}")
        return lines


class ControllerRoutes:
    """
    Declarative route registration for one resource controller.

    Every route registered here shares the controller's hook lists.

        ┌──────────────┬────────┬──────────────────┬───────────────────────┐
        │ Builder call │ Method │ Path             │ Handler signature     │
        ├──────────────┼────────┼──────────────────┼───────────────────────┤
        │ list         │ GET    │ /books           │ handler(ctx)          │
        │ create       │ POST   │ /books           │ handler(ctx)          │
        │ delete_all   │ DELETE │ /books           │ handler(ctx)          │
        │ read         │ GET    │ /books/{id}      │ handler(id, ctx)      │
        │ delete       │ DELETE │ /books/{id}      │ handler(id, ctx)      │
        └──────────────┴────────┴──────────────────┴───────────────────────┘
    """

    ID_PARAM = "id"

    def __init__(
        self,
        router: Router,
        prefix: str,
        before: Sequence[Hook] = (),
        after: Sequence[Hook] = (),
    ):
        self.router = router
        self.prefix = normalize_path(prefix)
        self.before = list(before)
        self.after = list(after)

    @property
    def item_path(self) -> str:
        return f"{self.prefix}/{{{self.ID_PARAM}}}"

    def collection(self, method: str, handler: Handler) -> "ControllerRoutes":
        """Map `handler(ctx)` to METHOD /prefix."""
        self.router.map(
            self.prefix, handler, method,
            before=self.before, after=self.after,
        )
        return self

    def item(self, method: str, handler: ItemHandler) -> "ControllerRoutes":
        """Map `handler(id, ctx)` to METHOD /prefix/{id}."""
        id_param = self.ID_PARAM

        @wraps(handler)
        def bound(ctx: Context) -> Any:
            return handler(ctx.path_value(id_param), ctx)

        self.router.map(
            self.item_path, bound, method,
            before=self.before, after=self.after,
        )
        return self

    def list(self, handler: Handler) -> "ControllerRoutes":
        return self.collection("GET", handler)

    def create(self, handler: Handler) -> "ControllerRoutes":
        return self.collection("POST", handler)

    def delete_all(self, handler: Handler) -> "ControllerRoutes":
        return self.collection("DELETE", handler)

    def read(self, handler: ItemHandler) -> "ControllerRoutes":
        return self.item("GET", handler)

    def delete(self, handler: ItemHandler) -> "ControllerRoutes":
        return self.item("DELETE", handler)
