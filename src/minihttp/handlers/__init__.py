"""
=============================================================================
HANDLERS MODULE
=============================================================================

Request handlers and the default route table.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    REQUEST → HANDLER → RESPONSE                     │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   A handler receives an HTTPRequest (with path_params filled in by  │
    │   the router) and returns an HTTPResponse. It never touches the     │
    │   socket and never serializes anything itself.                      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
DEFAULT ROUTE TABLE (first match wins)
=============================================================================

    1. /echo/*value          any method   → echo
    2. /user-agent (prefix)  any method   → user_agent
    3. /files/*name          POST         → FileHandler.write
       /files/*name          GET          → FileHandler.read
    4. /                     any method   → index
    5. (no match)                         → 404

=============================================================================
"""

from ..http.router import Router
from ..storage import FileStore
from .basic import echo, user_agent, index, WELCOME_MESSAGE
from .files import FileHandler


def register_routes(router: Router, store: FileStore) -> Router:
    """
    Install the default route table on a router, in precedence order.

    Args:
        router: Router to register on (routes are appended).
        store: File store backing /files/<name>.

    Returns:
        The same router, for chaining.
    """
    files = FileHandler(store)

    router.add_route("/echo/*value", echo)
    router.add_route("/user-agent", user_agent, prefix=True)
    router.add_route("/files/*name", files.write, method="POST")
    router.add_route("/files/*name", files.read, method="GET")
    router.add_route("/", index)

    return router


__all__ = [
    "register_routes",
    "FileHandler",
    "echo",
    "user_agent",
    "index",
    "WELCOME_MESSAGE",
]
