"""
=============================================================================
LISTENING SOCKET AND ACCEPT LOOP
=============================================================================

Owns the listening socket and runs the accept loop. It knows nothing
about HTTP: every accepted client socket is wrapped in a Connection and
handed to a callback, which is where the HTTP server takes over.

=============================================================================
ACCEPT → DISPATCH
=============================================================================

    start()
      bind(host, port) ─► listen(backlog) ─► ready event set
                                               │
      ┌────────────────────────────────────────┘
      ▼
    accept() ── 1 s timeout ──► running? ── no ──► close listener, return
      │                            │
      │ client socket             yes: accept() again
      ▼
    Connection(sock, addr, buffer_size, timeout, max_request_size)
      │
      ▼
    connection_handler(conn)  ─► HTTPServer starts conn-<id> thread

The 1 s accept timeout is how shutdown() (a flag, safe from any thread
or a signal handler) gets noticed without closing the socket under a
blocked accept().

=============================================================================
FAILURE POLICY
=============================================================================

A failed accept() is logged and the loop carries on. Nothing that happens
to an individual connection can stop the loop: connection work runs in
its own thread, outside this module.
"""

import socket
import signal
import logging
import threading
from typing import Optional, Callable, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


class SocketServer:
    """
    Accept loop over one listening TCP socket.

    Usage:
        def handle_connection(conn: Connection):
            ...

        server = SocketServer(config)
        server.start(handle_connection)  # Blocks until shutdown()
    """

    # accept() wakes up this often to notice shutdown()
    ACCEPT_POLL_INTERVAL = 1.0

    def __init__(self, config: ServerConfig):
        """Store the config. The listening socket is created by start()."""
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._running = False

        # Set while the socket is listening
        self._ready_event = threading.Event()

        # Original signal handlers, restored on cleanup
        self._original_handlers: dict = {}

        self._bound_address: Optional[Tuple[str, int]] = None

    @property
    def is_running(self) -> bool:
        """True between a successful bind and shutdown()."""
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """
        The server's (IP, port).

        After start() this is the real bound address, so port=0 in the
        config resolves to the port the OS picked.
        """
        return self._bound_address or (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        """Create and configure the server socket."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # SO_REUSEADDR: restart without "Address already in use" while the
        # previous socket sits in TIME_WAIT
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        # TCP_NODELAY: send small responses immediately (no Nagle delay)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        # Periodic accept() timeout so the loop can check _running
        sock.settimeout(self.ACCEPT_POLL_INTERVAL)

        return sock

    def _setup_signals(self):
        """
        Install SIGTERM/SIGINT handlers for graceful shutdown.

        Python only allows this on the main thread. When the server runs
        in a background thread (tests, embedding) signals are left alone.
        """
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on main thread, skipping signal handlers")
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"{signal_name} received, stopping accept loop")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        """Restore original signal handlers."""
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Bind, listen and run the accept loop.

        This method BLOCKS until shutdown() is called.

        Args:
            connection_handler: Called with each new Connection. It must
                               return quickly (hand the work to a thread).

        Raises:
            OSError: If the address cannot be bound.
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self._socket.listen(self.config.backlog)
        self._bound_address = self._socket.getsockname()[:2]

        self._running = True
        self._setup_signals()

        host, port = self._bound_address
        logger.info(f"Server listening on {host}:{port}")
        self._ready_event.set()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        """
        Main loop for accepting connections.

            while running:
                accept()            (1 s timeout, then re-check running)
                Connection(...)     wrap the client socket
                handler(conn)       hand off, never wait for the request
        """
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                # Normal: lets us re-check self._running
                continue
            except OSError as e:
                if not self._running:
                    break  # Listening socket closed by shutdown
                logger.error(f"Accept error: {e}")
                continue

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
                max_request_size=self.config.max_request_size,
            )

            try:
                connection_handler(conn)
            except Exception:
                # Dispatch itself failed; drop this client, keep accepting
                logger.exception(f"[{conn.id}] Failed to dispatch connection")
                conn.close()

    def shutdown(self):
        """
        Initiate graceful shutdown.

        Safe to call multiple times and from any thread.
        """
        if self._running:
            logger.info("Stopping accept loop")
        self._running = False

    def _cleanup(self):
        """Clean up resources on shutdown."""
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        self._ready_event.clear()
        logger.info("Listening socket closed")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until the socket is listening.

        Returns:
            True if the server is ready, False on timeout.
        """
        return self._ready_event.wait(timeout)
