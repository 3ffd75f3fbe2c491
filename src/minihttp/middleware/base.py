"""
=============================================================================
MIDDLEWARE BASE
=============================================================================

A middleware sits between the connection flow and the router. It gets the
parsed request plus a callable for "the rest of the chain":

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   process_connection                                                 │
    │        │ HTTPRequest                                                 │
    │        ▼                                                             │
    │   LoggingMiddleware ──► <server.use(...)> ──► Router.handle          │
    │        ▲                                            │                │
    │        └──────────────── HTTPResponse ◄─────────────┘                │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The chain is assembled once, when the server starts, and is read-only from
then on, so connection threads can share it. Middleware only ever sees
HTTPResponse objects. Serialization (framing, Content-Encoding) happens
after the chain returns.
"""

from abc import ABC, abstractmethod
from functools import partial
from typing import Callable, Iterator, List
import logging

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)


# The remainder of the chain, as seen from inside one middleware
NextHandler = Callable[[HTTPRequest], HTTPResponse]


class Middleware(ABC):
    """
    One layer of the request chain.

        class Timing(Middleware):
            def __call__(self, request, next):
                started = time.perf_counter()
                response = next(request)
                ...
                return response

    Raising propagates to process_connection, which drops the connection
    without a response. Returning without calling next() short-circuits the
    router.
    """

    @abstractmethod
    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        ...

    @property
    def name(self) -> str:
        return type(self).__name__


class MiddlewarePipeline:
    """
    Ordered list of middleware, folded around a final handler.

        pipeline = MiddlewarePipeline()
        pipeline.add(LoggingMiddleware()).add(Timing())
        handler = pipeline.wrap(router.handle)

    Registration order is call order: the first middleware added sees the
    request first and the response last.
    """

    def __init__(self):
        self._layers: List[Middleware] = []

    def add(self, middleware: Middleware) -> "MiddlewarePipeline":
        """Append a layer inside the ones already registered. Returns self."""
        self._layers.append(middleware)
        logger.debug(f"Middleware #{len(self._layers)}: {middleware.name}")
        return self

    def wrap(self, handler: NextHandler) -> NextHandler:
        """
        Build the callable chain ending in `handler`.

        The innermost layer is bound first, so the fold walks the list
        from the end: [outer, inner] → outer(req, inner(req, handler)).
        """
        chain = handler
        for layer in self._layers[::-1]:
            chain = partial(layer, next=chain)
        return chain

    def __len__(self) -> int:
        return len(self._layers)

    def __iter__(self) -> Iterator[Middleware]:
        return iter(self._layers)
