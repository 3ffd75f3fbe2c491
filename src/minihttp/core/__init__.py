"""
=============================================================================
CORE NETWORKING COMPONENTS
=============================================================================

    socket_server.py   - Listening socket and accept loop
    connection.py      - One client socket: read loop, write, close

The HTTP layer sits on top of these; nothing here parses HTTP beyond the
header terminator and Content-Length needed to know when a request is
complete.
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState

__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionState",
]
