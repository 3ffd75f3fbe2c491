"""
=============================================================================
RESPONSE KINDS
=============================================================================

The server produces exactly four status codes. The set is closed: routing
and handlers can only pick one of these.

    ┌──────────────┬──────┬─────────────────────────────┐
    │ Kind         │ Code │ Status line                 │
    ├──────────────┼──────┼─────────────────────────────┤
    │ OK           │ 200  │ HTTP/1.1 200 OK             │
    │ CREATED      │ 201  │ HTTP/1.1 201 Created        │
    │ NOT_FOUND    │ 404  │ HTTP/1.1 404 Not Found      │
    │ ERROR        │ 500  │ HTTP/1.1 500 Internal ...   │
    └──────────────┴──────┴─────────────────────────────┘
"""

from enum import IntEnum


class ResponseKind(IntEnum):
    """
    Closed set of response status codes.

    Extends IntEnum, so kinds compare equal to their codes:

        >>> ResponseKind.OK == 200
        True
        >>> ResponseKind.NOT_FOUND.phrase
        'Not Found'
    """

    OK = 200            # Request served
    CREATED = 201       # File written via POST /files/<name>
    NOT_FOUND = 404     # No route, or missing file
    ERROR = 500         # Required request data was missing

    @property
    def phrase(self) -> str:
        """Reason phrase used in the status line."""
        return _PHRASES[self]

    @property
    def is_error(self) -> bool:
        """Check if this is a 4xx or 5xx kind."""
        return self >= 400


_PHRASES = {
    ResponseKind.OK: "OK",
    ResponseKind.CREATED: "Created",
    ResponseKind.NOT_FOUND: "Not Found",
    ResponseKind.ERROR: "Internal Server Error",
}
