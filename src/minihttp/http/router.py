"""
=============================================================================
URL ROUTER
=============================================================================

Maps (method, path) to a handler using an ORDERED route table.

=============================================================================
FIRST MATCH WINS
=============================================================================

Routes are tried in registration order and the first one whose method and
pattern both match handles the request. Precedence is therefore explicit
in the order routes are added, and each route can be tested on its own:

    router.add_route("/echo/*value", echo)                  # 1
    router.add_route("/user-agent", user_agent, prefix=True) # 2
    router.add_route("/files/*name", read_file, method="GET")  # 3
    router.add_route("/files/*name", write_file, method="POST")
    router.add_route("/", index)                            # 4
    # anything else → 404                                   # 5

=============================================================================
PATTERN SYNTAX
=============================================================================

    /users          STATIC     exact segment match
    /echo/*value    WILDCARD   captures the REST of the path verbatim,
                               slashes included: /echo/a/b → "a/b"
    prefix=True     PREFIX     pattern only has to match the start of
                               the path: /user-agent matches /user-agentX

Paths are matched exactly as received. There is no trailing-slash or
double-slash normalization, because /echo/ must echo its remainder
byte for byte.
"""

from dataclasses import dataclass, field, replace
from typing import Callable, Optional, Dict, List
import logging
import re
from enum import Enum

from .request import HTTPRequest
from .response import HTTPResponse, not_found


logger = logging.getLogger(__name__)


# =============================================================================
# TYPE ALIASES
# =============================================================================

# Handler: A function that takes a request and returns a response
Handler = Callable[[HTTPRequest], HTTPResponse]


class RouteType(Enum):
    """How a route's pattern is anchored against the path."""
    EXACT = "exact"         # The whole path must match
    PREFIX = "prefix"       # Only the start of the path must match


@dataclass
class Route:
    """
    Represents a registered route.

        Route(
            path="/files/*name",     # URL pattern
            method="GET",            # HTTP method filter (None = any)
            handler=read_file,       # Handler function
            route_type=EXACT,
            _pattern=<compiled>,     # ^/files/(?P<name>.*)$
        )
    """

    path: str
    method: Optional[str]
    handler: Handler
    route_type: RouteType = RouteType.EXACT

    # Internal: compiled regex pattern for matching
    _pattern: Optional[re.Pattern] = field(default=None, repr=False)

    def matches(self, method: str, path: str) -> Optional[Dict[str, str]]:
        """
        Return captured params if this route accepts the request.

        The request method is compared verbatim: "post" is not "POST".
        """
        if self.method and self.method != method:
            return None

        match = self._pattern.match(path)
        if match is None:
            return None
        return match.groupdict()


@dataclass
class RouteMatch:
    """
    Result of a successful route match.

    Example:
        Pattern: /echo/*value
        Path:    /echo/abc/def
        Result:  RouteMatch(route=<Route>, params={"value": "abc/def"})
    """
    route: Route
    params: Dict[str, str]


class Router:
    """
    HTTP request router with an ordered route table.

    Decorator-based API:

        router = Router()

        @router.route("/echo/*value")
        def echo(request):
            return ok(request.path_params["value"])

        @router.get("/files/*name")
        def read_file(request):
            ...
    """

    def __init__(self):
        self._routes: List[Route] = []

    # =========================================================================
    # ROUTE REGISTRATION
    # =========================================================================

    def add_route(
        self,
        path: str,
        handler: Handler,
        method: Optional[str] = None,
        prefix: bool = False,
    ) -> Route:
        """
        Register a route at the END of the route table.

        Args:
            path: URL pattern (e.g. /files/*name)
            handler: Handler function that takes request, returns response
            method: HTTP method, upper-cased here (None for any method)
            prefix: Match the pattern as a path prefix instead of exactly

        Returns:
            The registered Route object
        """
        route_type = RouteType.PREFIX if prefix else RouteType.EXACT

        route = Route(
            path=path,
            method=method.upper() if method else None,
            handler=handler,
            route_type=route_type,
            _pattern=self._compile_pattern(path, route_type),
        )

        self._routes.append(route)
        logger.debug(f"Registered route {route.method or '*'} {path} ({route_type.value})")
        return route

    def _compile_pattern(self, path: str, route_type: RouteType) -> re.Pattern:
        """
        Compile a path pattern into a regex.

        =====================================================================
        PATTERN COMPILATION
        =====================================================================

            "/"               → ^/$
            "/user-agent"     → ^/user\\-agent          (PREFIX: no $)
            "/echo/*value"    → ^/echo/(?P<value>.*)$

        Static text is escaped literally, so the pattern keeps every slash
        it was written with ("/echo/" stays distinct from "/echo").

        =====================================================================
        """
        wildcard = path.find("*")

        if wildcard == -1:
            regex = "^" + re.escape(path)
        else:
            # ---------------------------------------------------------
            # WILDCARD: *value
            # ---------------------------------------------------------
            # Everything after the static part, slashes included.
            # The wildcard must be the last thing in the pattern.
            #
            param_name = path[wildcard + 1:] or "wildcard"
            if not param_name.isidentifier():
                raise ValueError(f"Invalid wildcard name in route: {path}")
            regex = "^" + re.escape(path[:wildcard]) + f"(?P<{param_name}>.*)"

        if route_type is RouteType.EXACT:
            regex += "$"

        return re.compile(regex, re.DOTALL)

    # =========================================================================
    # ROUTE MATCHING
    # =========================================================================

    def match(self, method: str, path: str) -> Optional[RouteMatch]:
        """
        Find the first route accepting (method, path).

        Returns:
            RouteMatch if found, None otherwise
        """
        for route in self._routes:
            params = route.matches(method, path)
            if params is not None:
                return RouteMatch(route=route, params=params)

        return None

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Route a request to the appropriate handler.

        1. Find the first matching route
        2. Give the handler a copy of the request carrying the params
        3. Return the handler's response, or 404 when nothing matched
        """
        match = self.match(request.method, request.path)

        if match is None:
            return not_found()

        routed = replace(request, path_params=match.params)
        return match.route.handler(routed)

    @property
    def routes(self) -> List[Route]:
        """The route table, in precedence order."""
        return list(self._routes)

    # =========================================================================
    # DECORATOR-STYLE ROUTE REGISTRATION
    # =========================================================================
    #
    #     @router.get("/files/*name")
    #     def read_file(request): ...
    #
    # is equivalent to:
    #
    #     router.add_route("/files/*name", read_file, method="GET")
    #
    # =========================================================================

    def route(
        self,
        path: str,
        method: Optional[str] = None,
        prefix: bool = False,
    ) -> Callable[[Handler], Handler]:
        """Decorator for registering routes."""
        def decorator(handler: Handler) -> Handler:
            self.add_route(path, handler, method, prefix)
            return handler
        return decorator

    def get(self, path: str, prefix: bool = False) -> Callable[[Handler], Handler]:
        """Register a GET route."""
        return self.route(path, "GET", prefix)

    def post(self, path: str, prefix: bool = False) -> Callable[[Handler], Handler]:
        """Register a POST route."""
        return self.route(path, "POST", prefix)
