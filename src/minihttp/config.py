"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the server.

The configuration is built ONCE at startup (normally from the command line
in __main__.py) and then shared, read-only, by the accept loop and every
connection thread. Nothing re-parses arguments per connection.

=============================================================================
CONFIGURATION GROUPS
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   NETWORK        host, port, backlog                                 │
    │   READING        buffer_size, max_request_size, timeout              │
    │   FILES          directory                                           │
    │   LOGGING        log_level                                           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Usage:

    config = ServerConfig(port=4221, directory="/tmp/")
    config.validate()
    server = HTTPServer(config)
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class ServerConfig:
    """
    Configuration for the HTTP server.

    Development:
        ServerConfig(log_level="DEBUG")

    Serving files from a directory:
        ServerConfig(directory="/srv/files/")
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """
    The IP address to bind to.
    - "127.0.0.1" - Localhost only
    - "0.0.0.0" - All network interfaces
    """

    port: int = 4221
    """
    The port number to listen on. 0 lets the OS pick a free port.
    """

    backlog: int = 128
    """
    Maximum number of queued connections waiting for accept().
    """

    # ─────────────────────────────────────────────────────────────────────
    # READING
    # ─────────────────────────────────────────────────────────────────────

    buffer_size: int = 4096
    """
    Bytes requested per recv() call. The read loop keeps calling recv()
    until the request is complete, so this is a chunk size, not a limit.
    """

    max_request_size: int = 1024 * 1024  # 1 MB
    """
    Upper bound on the buffered request (headers + body).
    """

    timeout: Optional[float] = 30.0
    """
    Per-connection deadline in seconds, covering the whole read and the
    write. None = no deadline (a silent peer holds its thread forever).
    """

    # ─────────────────────────────────────────────────────────────────────
    # FILES
    # ─────────────────────────────────────────────────────────────────────

    directory: str = ""
    """
    Base directory for /files/<name>. Empty string = relative to the
    process working directory.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """
    Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """

    def validate(self) -> None:
        """
        Validate configuration values.

        Fail fast: a bad value is reported at startup, not on the first
        connection.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")

        if self.max_request_size < self.buffer_size:
            raise ValueError("max_request_size must be >= buffer_size")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")
