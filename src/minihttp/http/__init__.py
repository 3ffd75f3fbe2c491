"""
=============================================================================
HTTP PROTOCOL COMPONENTS
=============================================================================

    request.py       - Raw bytes → HTTPRequest
    router.py        - HTTPRequest → handler → HTTPResponse
    response.py      - HTTPResponse → bytes (with content negotiation)
    status_codes.py  - ResponseKind (200, 201, 404, 500)

These modules never touch a socket. Everything here is a synchronous
transformation over bytes that were already read.
"""

from .request import HTTPRequest, RequestParser, parse_request
from .response import (
    HTTPResponse,
    ResponseBuilder,
    negotiate_encodings,
    ok,
    created,
    not_found,
    internal_error,
)
from .router import Router, Route, RouteMatch, RouteType
from .status_codes import ResponseKind

__all__ = [
    # Request
    "HTTPRequest",
    "RequestParser",
    "parse_request",

    # Response
    "HTTPResponse",
    "ResponseBuilder",
    "ResponseKind",
    "negotiate_encodings",
    "ok",
    "created",
    "not_found",
    "internal_error",

    # Routing
    "Router",
    "Route",
    "RouteMatch",
    "RouteType",
]
