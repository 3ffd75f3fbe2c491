"""
=============================================================================
FILE HANDLER
=============================================================================

Serves GET and POST for /files/<name> from a FileStore.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   POST /files/<name>   body → store.write(name, body)  → 201         │
    │                        no body section → HandlerPrecondition         │
    │                                                                      │
    │   GET  /files/<name>   exists → 200 + contents                       │
    │                                 Content-Type: application/octet-...  │
    │                        missing → 404                                 │
    │                                                                      │
    │   other methods        not routed here → router falls through → 404  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Store failures (FileIOError) are NOT turned into a 500. They propagate and
abort the connection without a response.
"""

import logging

from ..errors import HandlerPrecondition
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ResponseBuilder, created, not_found
from ..http.status_codes import ResponseKind
from ..storage import FileStore


logger = logging.getLogger(__name__)


OCTET_STREAM = "application/octet-stream"


class FileHandler:
    """
    Handler pair for /files/<name>.

    Usage:
        files = FileHandler(FileStore(config.directory))
        router.add_route("/files/*name", files.write, method="POST")
        router.add_route("/files/*name", files.read, method="GET")
    """

    def __init__(self, store: FileStore, param: str = "name"):
        """
        Args:
            store: File store to read from and write to.
            param: Name of the route wildcard that holds the file name.
        """
        self.store = store
        self.param = param

    def _name(self, request: HTTPRequest) -> str:
        return request.path_params.get(self.param, "")

    def read(self, request: HTTPRequest) -> HTTPResponse:
        """GET: return the file contents, or 404 if the file is missing."""
        name = self._name(request)

        if not self.store.exists(name):
            logger.info(f"File not found: {name!r}")
            return not_found()

        contents = self.store.read(name)
        return (ResponseBuilder()
            .status(ResponseKind.OK)
            .content_type(OCTET_STREAM)
            .text(contents)
            .build())

    def write(self, request: HTTPRequest) -> HTTPResponse:
        """
        POST: store the request body under the file name.

        Raises:
            HandlerPrecondition: If the request carried no body section.
        """
        name = self._name(request)

        if request.body is None:
            raise HandlerPrecondition(f"POST /files/{name} without a body")

        self.store.write(name, request.body)
        return created()
