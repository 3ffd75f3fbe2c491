"""
Unit tests for HTTPServer's per-connection flow, without a listening socket.
"""

import logging
import socket

import pytest

from minihttp import HTTPServer, ServerConfig, create_app
from minihttp.core import Connection, ConnectionState
from minihttp.storage import FileStore


@pytest.fixture
def server(config) -> HTTPServer:
    return HTTPServer(config)


def serve_one(server: HTTPServer, sock_pair, raw: bytes) -> bytes:
    """Run process_connection on one end of a socket pair."""
    server_side, client_side = sock_pair
    conn = Connection(socket=server_side, address=("127.0.0.1", 40000), timeout=2.0)

    client_side.sendall(raw)
    client_side.shutdown(socket.SHUT_WR)
    server.process_connection(conn)

    assert conn.state == ConnectionState.CLOSED

    chunks = []
    while True:
        chunk = client_side.recv(4096)
        if not chunk:
            break
        chunks.append(chunk)
    return b"".join(chunks)


class TestProcessConnection:
    """Tests for HTTPServer.process_connection."""

    def test_serves_one_request(self, server, socket_pair):
        response = serve_one(server, socket_pair, b"GET /echo/hi HTTP/1.1\r\n\r\n")

        assert response == (
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Type: text/plain\r\n"
            b"Content-Length: 2\r\n"
            b"\r\n"
            b"hi"
        )

    def test_peer_closed_is_silent(self, server, socket_pair, caplog):
        """Test an empty connection logs nothing above DEBUG."""
        with caplog.at_level(logging.DEBUG, logger="minihttp"):
            assert serve_one(server, socket_pair, b"") == b""

        assert not [r for r in caplog.records if r.levelno > logging.DEBUG]

    def test_malformed_request_is_warned(self, server, socket_pair, caplog):
        with caplog.at_level(logging.WARNING, logger="minihttp"):
            assert serve_one(server, socket_pair, b"GET / HTTP/1.1\r\nbroken\r\n\r\n") == b""

        assert any("Malformed" in r.getMessage() for r in caplog.records)

    def test_missing_body_is_an_error(self, server, socket_pair, caplog):
        """Test HandlerPrecondition is logged at ERROR and nothing is sent."""
        with caplog.at_level(logging.ERROR, logger="minihttp"):
            response = serve_one(server, socket_pair, b"POST /files/x HTTP/1.1\r\nHost: a")

        assert response == b""
        assert [r.levelno for r in caplog.records] == [logging.ERROR]

    def test_unreadable_file_is_an_error(self, server, socket_pair, tmp_path):
        """Test FileIOError drops the connection."""
        (tmp_path / "blob").write_bytes(b"\xff\xfe")

        assert serve_one(server, socket_pair, b"GET /files/blob HTTP/1.1\r\n\r\n") == b""


class TestHTTPServer:
    """Tests for HTTPServer construction."""

    def test_invalid_config_fails_fast(self):
        with pytest.raises(ValueError):
            HTTPServer(ServerConfig(port=-1))

    def test_store_defaults_to_config_directory(self, tmp_path):
        server = HTTPServer(ServerConfig(directory=str(tmp_path)))

        assert server.store.directory == str(tmp_path)

    def test_custom_store(self, tmp_path):
        store = FileStore(str(tmp_path))

        assert create_app(ServerConfig(), store).store is store

    def test_not_running_before_run(self, server):
        assert not server.is_running
        assert server.address == ("127.0.0.1", 0)
