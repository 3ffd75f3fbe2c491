"""
=============================================================================
SERVER ERRORS
=============================================================================

Every failure in minihttp is local to ONE connection. Nothing here is ever
turned into a retry, and none of these errors reaches the accept loop.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                       ERROR → OUTCOME                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   ConnectionClosed     peer hung up before sending   silent close    │
    │   ReadError            recv() failed / deadline      log + close     │
    │   MalformedRequest     bad request line or header    log + close     │
    │     ├─ MalformedHeader   header without ": "                         │
    │     └─ RequestTooLarge   buffer exceeded max size                    │
    │   HandlerPrecondition  e.g. POST /files with no body log + close     │
    │   FileIOError          file store read/write failed  log + close     │
    │   WriteError           sendall() failed / deadline   log + close     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

None of these produce an HTTP response. The only error status the server
ever sends is the 500 for a missing User-Agent, and that is a normal
handler result, not an exception.
"""


class ServerError(Exception):
    """Base exception for all connection-local server errors."""

    pass


class ConnectionClosed(ServerError):
    """The peer closed the connection before sending any bytes."""

    pass


class ReadError(ServerError):
    """Reading from the socket failed or the read deadline expired."""

    pass


class MalformedRequest(ServerError):
    """The request bytes could not be parsed into a request."""

    pass


class MalformedHeader(MalformedRequest):
    """A header line did not contain the ": " separator."""

    def __init__(self, line: str):
        super().__init__(f"Malformed header line: {line!r}")
        self.line = line


class RequestTooLarge(MalformedRequest):
    """The buffered request grew past the configured maximum size."""

    def __init__(self, size: int, limit: int):
        super().__init__(f"Request too large: {size} bytes (max: {limit})")
        self.size = size
        self.limit = limit


class HandlerPrecondition(ServerError):
    """A route handler was called with a request it cannot serve."""

    pass


class FileIOError(ServerError):
    """The file store could not read or write a file."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path


class WriteError(ServerError):
    """Sending the response failed or the write deadline expired."""

    pass
