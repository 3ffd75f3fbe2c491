"""
pytest configuration and fixtures.
"""

import socket
import threading
from pathlib import Path
from typing import Callable, Generator, Optional, Tuple
import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from minihttp import HTTPServer, ServerConfig


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /echo/hello HTTP/1.1\r\n"
        b"Host: localhost:4221\r\n"
        b"User-Agent: curl/7.83.1\r\n"
        b"Accept: */*\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request with a body."""
    body = b"hello"
    head = (
        b"POST /files/test.txt HTTP/1.1\r\n"
        b"Host: localhost:4221\r\n"
        b"Content-Length: %d\r\n"
        b"Content-Type: application/octet-stream\r\n"
        b"\r\n"
    )
    return head % len(body) + body


@pytest.fixture
def config(tmp_path: Path) -> ServerConfig:
    """Default test server configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        directory=str(tmp_path),
        timeout=5.0,
        log_level="WARNING",
    )


@pytest.fixture
def socket_pair() -> Generator[Tuple[socket.socket, socket.socket], None, None]:
    """A connected (server side, client side) socket pair."""
    server_side, client_side = socket.socketpair()
    yield server_side, client_side
    for sock in (server_side, client_side):
        try:
            sock.close()
        except OSError:
            pass


class TestServer:
    """Test server helper that runs in a background thread."""

    __test__ = False  # not a test class

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        """Start server in background thread and wait until it listens."""
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"setup_logging": False},
            daemon=True,
        )
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        """Stop the server."""
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def request(self, raw: bytes, timeout: float = 5.0) -> bytes:
        """Send raw request bytes and read the response until EOF."""
        with socket.create_connection(("127.0.0.1", self.port), timeout=timeout) as sock:
            sock.sendall(raw)
            chunks = []
            while True:
                chunk = sock.recv(4096)
                if not chunk:
                    break
                chunks.append(chunk)
        return b"".join(chunks)


@pytest.fixture
def test_server(config: ServerConfig) -> Generator[TestServer, None, None]:
    """A running server serving files from a temporary directory."""
    test_srv = TestServer(HTTPServer(config))
    test_srv.start()

    yield test_srv

    test_srv.stop()


@pytest.fixture
def server_factory() -> Generator[Callable[[HTTPServer], TestServer], None, None]:
    """Start extra servers (custom config, routes or middleware) for one test."""
    started = []

    def start(server: HTTPServer) -> TestServer:
        test_srv = TestServer(server)
        test_srv.start()
        started.append(test_srv)
        return test_srv

    yield start

    for test_srv in started:
        test_srv.stop()
