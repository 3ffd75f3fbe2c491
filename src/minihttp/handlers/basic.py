"""
Request handlers that need nothing but the request itself.
"""

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ok, internal_error


WELCOME_MESSAGE = "Welcome to the home page!"


def index(request: HTTPRequest) -> HTTPResponse:
    """GET / → fixed welcome text."""
    return ok(WELCOME_MESSAGE)


def echo(request: HTTPRequest) -> HTTPResponse:
    """
    /echo/<value> → <value>, verbatim.

    The value is everything after "/echo/", including further slashes:
    /echo/a/b/c echoes "a/b/c".
    """
    return ok(request.path_params.get("value", ""))


def user_agent(request: HTTPRequest) -> HTTPResponse:
    """
    /user-agent → the client's User-Agent header.

    A missing User-Agent is answered with an empty 500, the one error
    status this server sends.
    """
    agent = request.user_agent
    if agent is None:
        return internal_error()
    return ok(agent)
