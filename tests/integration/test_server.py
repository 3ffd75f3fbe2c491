"""
Integration tests: a real server on a real TCP socket.
"""

import socket
import threading

import pytest

from minihttp import HTTPServer, ServerConfig
from minihttp.http import ok
from minihttp.middleware import Middleware


class TestRoutes:
    """End-to-end tests for the default routes."""

    def test_echo(self, test_server):
        response = test_server.request(b"GET /echo/abc123 HTTP/1.1\r\nHost: localhost\r\n\r\n")

        assert response == (
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Type: text/plain\r\n"
            b"Content-Length: 6\r\n"
            b"\r\n"
            b"abc123"
        )

    def test_echo_keeps_slashes(self, test_server):
        response = test_server.request(b"GET /echo/a/b/c HTTP/1.1\r\n\r\n")

        assert response.endswith(b"\r\n\r\na/b/c")

    def test_echo_multibyte_length(self, test_server):
        """Test Content-Length counts UTF-8 bytes."""
        response = test_server.request("GET /echo/☃ HTTP/1.1\r\n\r\n".encode("utf-8"))

        assert b"Content-Length: 3\r\n" in response
        assert response.endswith("☃".encode("utf-8"))

    def test_root(self, test_server):
        response = test_server.request(b"GET / HTTP/1.1\r\n\r\n")

        assert response == (
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Type: text/plain\r\n"
            b"Content-Length: 25\r\n"
            b"\r\n"
            b"Welcome to the home page!"
        )

    def test_not_found(self, test_server):
        response = test_server.request(b"GET /does-not-exist HTTP/1.1\r\n\r\n")

        assert response == b"HTTP/1.1 404 Not Found\r\n\r\n"

    def test_user_agent(self, test_server):
        response = test_server.request(
            b"GET /user-agent HTTP/1.1\r\nHost: localhost\r\nUser-Agent: curl/7.83.1\r\n\r\n"
        )

        assert response == (
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Type: text/plain\r\n"
            b"Content-Length: 11\r\n"
            b"\r\n"
            b"curl/7.83.1"
        )

    def test_user_agent_missing(self, test_server):
        response = test_server.request(b"GET /user-agent HTTP/1.1\r\nHost: localhost\r\n\r\n")

        assert response == b"HTTP/1.1 500 Internal Server Error\r\n\r\n"

    def test_gzip_negotiation(self, test_server):
        """Test Content-Encoding lines follow the status line."""
        response = test_server.request(
            b"GET /echo/abc HTTP/1.1\r\nAccept-Encoding: deflate, gzip, zstd\r\n\r\n"
        )

        assert response == (
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Encoding: deflate\r\n"
            b"Content-Encoding: gzip\r\n"
            b"Content-Type: text/plain\r\n"
            b"Content-Length: 3\r\n"
            b"\r\n"
            b"abc"
        )

    def test_gzip_in_second_accept_encoding(self, test_server):
        response = test_server.request(
            b"GET /echo/abc HTTP/1.1\r\n"
            b"Accept-Encoding: br\r\n"
            b"Accept-Encoding: gzip\r\n"
            b"\r\n"
        )

        assert response.startswith(b"HTTP/1.1 200 OK\r\nContent-Encoding: gzip\r\nContent-Type")

    def test_no_gzip_no_encoding(self, test_server):
        response = test_server.request(
            b"GET /echo/abc HTTP/1.1\r\nAccept-Encoding: invalid-encoding\r\n\r\n"
        )

        assert b"Content-Encoding" not in response

    def test_repeated_gets_are_identical(self, test_server):
        raw = b"GET /echo/same HTTP/1.1\r\n\r\n"

        assert test_server.request(raw) == test_server.request(raw)


class TestFiles:
    """End-to-end tests for /files/<name>."""

    def test_post_then_get(self, test_server, sample_post_request, tmp_path):
        """Test a written file can be read back."""
        created = test_server.request(sample_post_request)
        fetched = test_server.request(b"GET /files/test.txt HTTP/1.1\r\n\r\n")

        assert created == b"HTTP/1.1 201 Created\r\n\r\n"
        assert (tmp_path / "test.txt").read_text() == "hello"
        assert fetched == (
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Type: application/octet-stream\r\n"
            b"Content-Length: 5\r\n"
            b"\r\n"
            b"hello"
        )

    def test_get_existing_file(self, test_server, tmp_path):
        (tmp_path / "foo").write_text("Hello, World!")

        response = test_server.request(b"GET /files/foo HTTP/1.1\r\n\r\n")

        assert response.startswith(b"HTTP/1.1 200 OK\r\n")
        assert response.endswith(b"Content-Length: 13\r\n\r\nHello, World!")

    def test_get_missing_file(self, test_server):
        response = test_server.request(b"GET /files/non_existent HTTP/1.1\r\n\r\n")

        assert response == b"HTTP/1.1 404 Not Found\r\n\r\n"

    def test_lowercase_post_is_not_found(self, test_server, tmp_path):
        response = test_server.request(b"post /files/x HTTP/1.1\r\nContent-Length: 1\r\n\r\nx")

        assert response == b"HTTP/1.1 404 Not Found\r\n\r\n"
        assert not (tmp_path / "x").exists()

    def test_body_split_across_packets(self, test_server, tmp_path):
        """Test the body is read to Content-Length across several sends."""
        with socket.create_connection(("127.0.0.1", test_server.port), timeout=5) as sock:
            sock.sendall(b"POST /files/split HTTP/1.1\r\nContent-Length: 10\r\n\r\n")
            sock.sendall(b"01234")
            sock.sendall(b"56789")
            response = sock.recv(4096)

        assert response == b"HTTP/1.1 201 Created\r\n\r\n"
        assert (tmp_path / "split").read_text() == "0123456789"

    def test_post_without_body_gets_no_response(self, test_server, tmp_path):
        """Test a POST cut off before the blank line is dropped."""
        with socket.create_connection(("127.0.0.1", test_server.port), timeout=5) as sock:
            sock.sendall(b"POST /files/nobody HTTP/1.1\r\nHost: x")
            sock.shutdown(socket.SHUT_WR)
            response = sock.recv(4096)

        assert response == b""
        assert not (tmp_path / "nobody").exists()


class TestConnectionFailures:
    """Tests for requests the server drops without answering."""

    def test_malformed_header(self, test_server):
        response = test_server.request(b"GET / HTTP/1.1\r\nno-separator\r\n\r\n")

        assert response == b""

    def test_malformed_request_line(self, test_server):
        response = test_server.request(b"GARBAGE\r\n\r\n")

        assert response == b""

    def test_connect_and_close(self, test_server):
        """Test a client that sends nothing does not disturb the server."""
        socket.create_connection(("127.0.0.1", test_server.port), timeout=5).close()

        response = test_server.request(b"GET / HTTP/1.1\r\n\r\n")
        assert response.startswith(b"HTTP/1.1 200 OK")

    def test_server_survives_failures(self, test_server):
        """Test the accept loop keeps serving after dropped connections."""
        for _ in range(3):
            assert test_server.request(b"BAD\r\n\r\n") == b""

        assert test_server.request(b"GET /echo/ok HTTP/1.1\r\n\r\n").endswith(b"ok")


class TestConcurrency:
    """Tests for thread-per-connection handling."""

    def test_idle_client_does_not_block_others(self, test_server):
        """Test a silent connection does not hold up other clients."""
        idle = socket.create_connection(("127.0.0.1", test_server.port), timeout=5)
        try:
            response = test_server.request(b"GET /echo/through HTTP/1.1\r\n\r\n", timeout=3)
            assert response.endswith(b"through")
        finally:
            idle.close()

    def test_parallel_clients(self, test_server):
        """Test many simultaneous requests all get their own answer."""
        results = {}

        def client(index):
            raw = f"GET /echo/{index} HTTP/1.1\r\n\r\n".encode()
            results[index] = test_server.request(raw)

        threads = [threading.Thread(target=client, args=(i,)) for i in range(20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert len(results) == 20
        for index, response in results.items():
            assert response.endswith(f"\r\n\r\n{index}".encode())


class TestDeadline:
    """Tests for the per-connection deadline."""

    def test_silent_client_is_disconnected(self, server_factory, tmp_path):
        config = ServerConfig(port=0, directory=str(tmp_path), timeout=0.3)
        test_srv = server_factory(HTTPServer(config))

        with socket.create_connection(("127.0.0.1", test_srv.port), timeout=5) as sock:
            sock.sendall(b"GET / HTTP/1.1\r\n")  # never finishes the headers
            assert sock.recv(4096) == b""


class TestExtension:
    """Tests for extra routes and middleware on a running server."""

    @pytest.fixture
    def extended_server(self, config, server_factory):
        calls = []

        class Recorder(Middleware):
            def __call__(self, request, next):
                calls.append(request.path)
                return next(request)

        server = HTTPServer(config).use(Recorder())

        @server.router.get("/boom")
        def boom(request):
            raise RuntimeError("handler bug")

        @server.router.get("/extra")
        def extra(request):
            return ok("extra")

        return server_factory(server), calls

    def test_default_routes_take_precedence(self, extended_server):
        """Test routes added later cannot shadow the defaults."""
        test_srv, _ = extended_server

        assert test_srv.request(b"GET /extra HTTP/1.1\r\n\r\n").endswith(b"extra")
        assert test_srv.request(b"GET / HTTP/1.1\r\n\r\n").endswith(b"home page!")

    def test_middleware_sees_requests(self, extended_server):
        test_srv, calls = extended_server

        test_srv.request(b"GET /echo/x HTTP/1.1\r\n\r\n")

        assert calls == ["/echo/x"]

    def test_handler_crash_is_contained(self, extended_server):
        """Test an unexpected handler error drops only that connection."""
        test_srv, _ = extended_server

        assert test_srv.request(b"GET /boom HTTP/1.1\r\n\r\n") == b""
        assert test_srv.request(b"GET /extra HTTP/1.1\r\n\r\n").endswith(b"extra")
