"""
=============================================================================
MINIHTTP - A Minimal HTTP/1.1 Server on Raw Sockets
=============================================================================

Accepts TCP connections, parses one request per connection, routes it,
and writes back a response. Built on the standard library only.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    minihttp/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m minihttp)
    ├── server.py            # HTTPServer: dispatch + per-connection flow
    ├── config.py            # ServerConfig dataclass
    ├── errors.py            # Connection-local error taxonomy
    ├── storage.py           # FileStore behind /files/<name>
    ├── core/                # Networking
    │   ├── socket_server.py # Listening socket, accept loop
    │   └── connection.py    # Read loop, deadline, write, close
    ├── http/                # Protocol (no sockets)
    │   ├── request.py       # Bytes → HTTPRequest
    │   ├── response.py      # HTTPResponse → bytes, content negotiation
    │   ├── router.py        # Ordered route table
    │   └── status_codes.py  # ResponseKind
    ├── middleware/          # Around the router
    │   ├── base.py          # Middleware, MiddlewarePipeline
    │   └── logging.py       # Access log
    └── handlers/            # Route handlers + default route table
        ├── basic.py         # /, /echo, /user-agent
        └── files.py         # /files/<name>

=============================================================================
QUICK START
=============================================================================

    $ python -m minihttp --directory /tmp/
    $ curl -i http://localhost:4221/echo/hello

    from minihttp import HTTPServer, ServerConfig
    HTTPServer(ServerConfig(port=4221, directory="/tmp/")).run()

=============================================================================
"""

__version__ = "1.0.0"

from .server import HTTPServer, create_app
from .config import ServerConfig

__all__ = ["HTTPServer", "ServerConfig", "create_app", "__version__"]
