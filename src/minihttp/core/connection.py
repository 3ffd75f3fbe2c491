"""
=============================================================================
CONNECTION HANDLING
=============================================================================

Wraps one accepted client socket for the lifetime of one request.

=============================================================================
CONNECTION LIFECYCLE
=============================================================================

Every connection carries exactly one request and one response. There is
no keep-alive: after the response is written the connection is closed.

    ┌──────────┐   read_request()   ┌────────┐  route   ┌────────┐
    │ READING  │ ─────────────────► │ PARSED │ ───────► │ ROUTED │
    └────┬─────┘                    └───┬────┘          └───┬────┘
         │ peer closed / error          │ malformed         │ send_response()
         │                              │                   ▼
         │                              │              ┌─────────┐
         │                              │              │ WRITING │
         │                              │              └────┬────┘
         ▼                              ▼                   ▼
    ┌────────────────────────────────────────────────────────────┐
    │                         CLOSED                             │
    └────────────────────────────────────────────────────────────┘

=============================================================================
READING A COMPLETE REQUEST
=============================================================================

TCP is a byte STREAM. One recv() may return half a header, or headers plus
part of the body. So we keep a growable buffer and keep reading until:

    1. the header terminator \r\n\r\n has arrived, and
    2. if a Content-Length header is present, that many body bytes follow.

    recv() ──► buffer ──► "\r\n\r\n" yet? ──no──► recv() again
                                │
                               yes
                                ▼
                    Content-Length satisfied? ──no──► recv() again
                                │
                               yes ──► return buffer[:header_end + 4 + length]

If the peer closes early we hand back whatever was buffered and let the
parser decide. If it closes before sending anything, that is
ConnectionClosed and nothing is logged above DEBUG.

=============================================================================
DEADLINE
=============================================================================

A single deadline (config.timeout seconds from accept) bounds the whole
connection. Each recv() and the final sendall() get only the time that is
LEFT, so a peer trickling one byte per second cannot reset the clock.
"""

import socket
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional
import uuid

from ..errors import ConnectionClosed, ReadError, RequestTooLarge, WriteError


logger = logging.getLogger(__name__)


HEADER_TERMINATOR = b"\r\n\r\n"

# Upper bounds on discarding unread client bytes in close()
DRAIN_TIMEOUT = 0.5
DRAIN_LIMIT = 64 * 1024


class ConnectionState(Enum):
    """
    Connection lifecycle states.

    Used for logging and to make close() idempotent.
    """
    READING = "reading"      # Reading request bytes
    PARSED = "parsed"        # Request parsed into an HTTPRequest
    ROUTED = "routed"        # Router produced a response
    WRITING = "writing"      # Sending response bytes
    CLOSED = "closed"        # Socket released


@dataclass
class Connection:
    """
    Represents a client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short unique connection identifier (for logging).
        state: Current connection state.
        created_at: Timestamp when connection was accepted.
    """

    # Required parameters
    socket: socket.socket
    address: tuple[str, int]

    # Generated/default parameters
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.READING
    created_at: float = field(default_factory=time.time)

    # Configuration (passed from ServerConfig)
    buffer_size: int = 4096                    # How much to read at once
    timeout: Optional[float] = 30.0            # Whole-connection deadline
    max_request_size: int = 1024 * 1024        # 1 MB max request

    # Internal state (not shown in repr for cleaner logs)
    _buffer: bytearray = field(default_factory=bytearray, repr=False)
    _deadline: Optional[float] = field(default=None, repr=False)

    def __post_init__(self):
        """Start the deadline clock and put the socket in blocking mode."""
        self.socket.setblocking(True)
        if self.timeout is not None:
            self._deadline = time.monotonic() + self.timeout

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def age(self) -> float:
        """Get connection age in seconds."""
        return time.time() - self.created_at

    def _remaining(self) -> Optional[float]:
        """Seconds left before the deadline (None = no deadline)."""
        if self._deadline is None:
            return None
        return self._deadline - time.monotonic()

    def _arm_timeout(self, operation: str) -> None:
        """Apply the remaining time to the socket before blocking on it."""
        remaining = self._remaining()
        if remaining is None:
            self.socket.settimeout(None)
            return
        if remaining <= 0:
            raise TimeoutError(f"Deadline expired before {operation}")
        self.socket.settimeout(remaining)

    # =========================================================================
    # READING
    # =========================================================================

    def read_request(self) -> bytes:
        """
        Read one complete HTTP request from the socket.

        Returns:
            The request bytes: headers, terminator and Content-Length body
            bytes. Extra bytes after that are dropped (no pipelining).

        Raises:
            ConnectionClosed: Peer closed before sending any bytes.
            ReadError: recv() failed or the deadline expired.
            RequestTooLarge: Buffer exceeded max_request_size.
        """
        self.state = ConnectionState.READING

        try:
            # ─────────────────────────────────────────────────────────────
            # STEP 1: Read until we have complete headers
            # ─────────────────────────────────────────────────────────────
            while HEADER_TERMINATOR not in self._buffer:
                if not self._recv_into_buffer():
                    if not self._buffer:
                        raise ConnectionClosed(f"[{self.id}] Peer closed before sending data")
                    # Partial request: no terminator, so the parser will
                    # see a request without a body section
                    return bytes(self._buffer)

            # ─────────────────────────────────────────────────────────────
            # STEP 2: Find the header/body boundary
            # ─────────────────────────────────────────────────────────────
            header_end = self._buffer.find(HEADER_TERMINATOR)
            body_start = header_end + len(HEADER_TERMINATOR)

            # ─────────────────────────────────────────────────────────────
            # STEP 3: Read the body promised by Content-Length
            # ─────────────────────────────────────────────────────────────
            content_length = self._parse_content_length(bytes(self._buffer[:header_end]))
            if content_length is None:
                # No framing information: keep whatever already arrived
                return bytes(self._buffer)

            while len(self._buffer) - body_start < content_length:
                if not self._recv_into_buffer():
                    logger.debug(f"[{self.id}] Peer closed mid-body")
                    break

            return bytes(self._buffer[:body_start + content_length])

        except (socket.timeout, TimeoutError) as e:
            raise ReadError(f"[{self.id}] Read timed out: {e}") from e
        except OSError as e:
            raise ReadError(f"[{self.id}] Read failed: {e}") from e

    def _recv_into_buffer(self) -> bool:
        """
        One recv() call into the buffer.

        Returns:
            False if the peer closed the connection, True otherwise.
        """
        self._arm_timeout("recv")
        chunk = self.socket.recv(self.buffer_size)
        if not chunk:
            return False

        self._buffer += chunk

        # Safety check: don't let the buffer grow forever
        if len(self._buffer) > self.max_request_size:
            raise RequestTooLarge(len(self._buffer), self.max_request_size)

        return True

    def _parse_content_length(self, headers: bytes) -> Optional[int]:
        """
        Parse Content-Length from raw header bytes.

        A simple scan rather than a full parse: we need this BEFORE we
        can parse the request.

        Returns:
            The length, 0 for an invalid value, None if the header is absent.
        """
        header_str = headers.decode("utf-8", errors="replace").lower()
        for line in header_str.split("\r\n")[1:]:
            if line.startswith("content-length:"):
                try:
                    return max(0, int(line.split(":", 1)[1].strip()))
                except ValueError:
                    return 0
        return None

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> None:
        """
        Send response data to the client.

        Uses sendall() so ALL bytes go out (send() may write only part).

        Raises:
            WriteError: If the peer is gone or the deadline expired.
        """
        self.state = ConnectionState.WRITING

        try:
            self._arm_timeout("send")
            self.socket.sendall(data)
        except (socket.timeout, TimeoutError) as e:
            raise WriteError(f"[{self.id}] Write timed out: {e}") from e
        except OSError as e:
            raise WriteError(f"[{self.id}] Write failed: {e}") from e

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection gracefully.

        1. shutdown(SHUT_WR): send FIN so the client sees end-of-response
        2. drain briefly: discard anything the client still sends
        3. close(): release the file descriptor
        """
        if self.state == ConnectionState.CLOSED:
            return

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Already disconnected

        try:
            self._drain()
        except OSError:
            pass  # socket.timeout is an OSError too

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def _drain(self) -> None:
        """
        Discard unread client bytes before close().

        The whole drain gets at most DRAIN_TIMEOUT seconds and DRAIN_LIMIT
        bytes, and never runs past the connection deadline.
        """
        window = DRAIN_TIMEOUT
        remaining = self._remaining()
        if remaining is not None:
            window = min(window, remaining)
        if window <= 0:
            return

        stop_at = time.monotonic() + window
        drained = 0
        while drained < DRAIN_LIMIT:
            left = stop_at - time.monotonic()
            if left <= 0:
                break
            self.socket.settimeout(left)
            chunk = self.socket.recv(min(self.buffer_size, DRAIN_LIMIT - drained))
            if not chunk:
                break
            drained += len(chunk)

    # =========================================================================
    # CONTEXT MANAGER
    # =========================================================================

    def __enter__(self):
        """
        Allows using Connection with 'with' for automatic cleanup:

            with conn:
                data = conn.read_request()
                conn.send_response(response)
            # Connection automatically closed here
        """
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - ensure connection is closed."""
        self.close()
        return False  # Don't suppress exceptions
