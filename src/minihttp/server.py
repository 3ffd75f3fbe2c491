"""
=============================================================================
HTTP SERVER
=============================================================================

Ties the components together:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   SocketServer (accept loop, main thread)                            │
    │        │ Connection                                                  │
    │        ▼                                                             │
    │   _handle_connection ──► new thread per connection                   │
    │                               │                                      │
    │                               ▼                                      │
    │   process_connection:   read ─► parse ─► middleware + router         │
    │                               ─► HTTPResponse.to_bytes ─► write      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
CONCURRENCY MODEL
=============================================================================

One thread per accepted connection. The thread owns its Connection for
its whole life; no other thread ever touches it. Threads share only:

    - the ServerConfig (read-only after startup)
    - the Router and middleware chain (built once, then read-only)
    - the FileStore (the filesystem: same-name writes race, last wins)

The only blocking points inside a connection thread are the socket reads
and the write. Parsing, routing and serialization are plain function calls.

=============================================================================
FAILURE POLICY
=============================================================================

Every failure aborts ONE connection, without sending a response:

    ConnectionClosed                   → DEBUG, close
    ReadError / MalformedRequest       → WARNING, close
    HandlerPrecondition / FileIOError  → ERROR, close
    WriteError                         → WARNING, close
    anything unexpected                → logged with traceback, close

The accept loop never sees any of these.
"""

import logging
import threading
from typing import Optional, Callable, Set

from .config import ServerConfig
from .core import SocketServer, Connection, ConnectionState
from .errors import (
    ConnectionClosed, ReadError, MalformedRequest,
    HandlerPrecondition, FileIOError, WriteError,
)
from .handlers import register_routes
from .http import HTTPRequest, HTTPResponse, RequestParser, Router
from .middleware import MiddlewarePipeline, Middleware, LoggingMiddleware
from .storage import FileStore


logger = logging.getLogger(__name__)


class HTTPServer:
    """
    Minimal HTTP/1.1 server.

    Usage:
        server = HTTPServer(ServerConfig(directory="/tmp/"))
        server.run()   # blocks until Ctrl+C / SIGTERM / shutdown()

    The default routes (/, /echo, /user-agent, /files) are installed at
    construction. Extra routes registered on server.router go AFTER them
    in precedence order.
    """

    # How long shutdown waits for in-flight connection threads
    SHUTDOWN_JOIN_TIMEOUT = 5.0

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        store: Optional[FileStore] = None,
    ):
        """
        Initialize the HTTP server.

        Args:
            config: Server configuration. Uses defaults if not provided.
            store: File store for /files. Defaults to one rooted at
                   config.directory.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        # ─────────────────────────────────────────────────────────────────
        # CORE COMPONENTS
        # ─────────────────────────────────────────────────────────────────
        self._socket_server = SocketServer(self.config)
        self._parser = RequestParser()

        # ─────────────────────────────────────────────────────────────────
        # APPLICATION COMPONENTS
        # ─────────────────────────────────────────────────────────────────
        self.store = store or FileStore(self.config.directory)
        self._router = register_routes(Router(), self.store)

        self._middleware = MiddlewarePipeline()
        self._middleware.add(LoggingMiddleware())

        # Built in run(): middleware.wrap(router.handle)
        self._handler: Optional[Callable[[HTTPRequest], HTTPResponse]] = None

        # ─────────────────────────────────────────────────────────────────
        # RUNTIME STATE
        # ─────────────────────────────────────────────────────────────────
        self._threads: Set[threading.Thread] = set()
        self._threads_lock = threading.Lock()

    # =========================================================================
    # CONFIGURATION
    # =========================================================================

    def use(self, middleware: Middleware) -> "HTTPServer":
        """Add middleware (inside the access logger). Returns self."""
        self._middleware.add(middleware)
        return self

    @property
    def router(self) -> Router:
        """The router, for registering extra routes."""
        return self._router

    @property
    def address(self):
        """The (host, port) the server is bound to."""
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._socket_server.is_running

    def build_handler(self) -> Callable[[HTTPRequest], HTTPResponse]:
        """The full request pipeline: middleware wrapped around the router."""
        return self._middleware.wrap(self._router.handle)

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    def run(self, setup_logging: bool = True):
        """
        Start the server (blocking).

        Args:
            setup_logging: Configure the root logger from config.log_level.
                           Embedders with their own logging pass False.
        """
        if setup_logging:
            self._setup_logging()

        self._handler = self.build_handler()

        logger.info(
            f"Starting HTTP server on {self.config.host}:{self.config.port} "
            f"(files from {self.config.directory or '.'!r})"
        )

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the listening socket is up (for tests/embedding)."""
        return self._socket_server.wait_until_ready(timeout)

    def shutdown(self):
        """Ask the accept loop to stop. run() returns shortly after."""
        self._socket_server.shutdown()

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("minihttp").setLevel(level)

    def _shutdown(self):
        """Wait (bounded) for in-flight connection threads, then stop."""
        logger.info("Shutting down server...")

        with self._threads_lock:
            threads = list(self._threads)

        for thread in threads:
            thread.join(timeout=self.SHUTDOWN_JOIN_TIMEOUT)
            if thread.is_alive():
                logger.warning(f"{thread.name} still running at shutdown")

        logger.info("Server stopped")

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """
        Launch one thread for a newly accepted connection.

        Called by SocketServer on the accept thread; returns immediately.
        """
        thread = threading.Thread(
            target=self._run_connection_thread,
            args=(conn,),
            name=f"conn-{conn.id}",
            daemon=True,
        )
        with self._threads_lock:
            self._threads.add(thread)
        thread.start()

    def _run_connection_thread(self, conn: Connection):
        try:
            self.process_connection(conn)
        finally:
            with self._threads_lock:
                self._threads.discard(threading.current_thread())

    def process_connection(self, conn: Connection):
        """
        Serve exactly one request on a connection (runs in its own thread).

        =====================================================================
        STATE MACHINE
        =====================================================================

            READING ─► PARSED ─► ROUTED ─► WRITING ─► CLOSED

        Any failure jumps straight to CLOSED. No error response is ever
        sent for a failure: the connection is simply dropped.

        =====================================================================
        """
        handler = self._handler or self.build_handler()

        with conn:  # Context manager ensures connection is closed
            try:
                # ─────────────────────────────────────────────────────
                # READING
                # ─────────────────────────────────────────────────────
                try:
                    raw_request = conn.read_request()
                except ConnectionClosed:
                    logger.debug(f"[{conn.id}] Connection closed by peer")
                    return
                except (ReadError, MalformedRequest) as e:
                    logger.warning(f"[{conn.id}] Read failed: {e}")
                    return

                # ─────────────────────────────────────────────────────
                # PARSED
                # ─────────────────────────────────────────────────────
                try:
                    request = self._parser.parse(raw_request, conn.address)
                except MalformedRequest as e:
                    logger.warning(f"[{conn.id}] Malformed request: {e}")
                    return
                conn.state = ConnectionState.PARSED

                # ─────────────────────────────────────────────────────
                # ROUTED
                # ─────────────────────────────────────────────────────
                try:
                    response = handler(request)
                except (HandlerPrecondition, FileIOError) as e:
                    logger.error(f"[{conn.id}] {request.method} {request.path} failed: {e}")
                    return
                conn.state = ConnectionState.ROUTED

                # ─────────────────────────────────────────────────────
                # WRITING
                # ─────────────────────────────────────────────────────
                try:
                    conn.send_response(response.to_bytes(request))
                except WriteError as e:
                    logger.warning(f"[{conn.id}] {e}")
                    return

            except Exception as e:
                logger.exception(f"[{conn.id}] Connection error: {e}")


def create_app(
    config: Optional[ServerConfig] = None,
    store: Optional[FileStore] = None,
) -> HTTPServer:
    """
    Create an HTTP server application.

    Example:
        app = create_app(ServerConfig(port=4221, directory="/tmp/"))
        app.run()
    """
    return HTTPServer(config, store)
