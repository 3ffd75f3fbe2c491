"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Builds HTTP/1.1 responses and serializes them to bytes.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP RESPONSE STRUCTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   HTTP/1.1 200 OK\r\n                  ← status line                 │
    │   Content-Encoding: gzip\r\n           ← negotiated (0..n lines)     │
    │   X-Extra: value\r\n                   ← extra headers, caller order │
    │   Content-Type: text/plain\r\n         ┐                             │
    │   Content-Length: 6\r\n                ┘ body framing (body only)    │
    │   \r\n                                 ← blank line                  │
    │   abc123                               ← body                        │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Without a body the framing headers are omitted entirely:

    HTTP/1.1 404 Not Found\r\n
    \r\n

=============================================================================
CONTENT NEGOTIATION
=============================================================================

The client advertises encodings in Accept-Encoding. When "gzip" is one of
the listed tokens, every RECOGNIZED token (gzip, deflate, br) is echoed as
its own Content-Encoding line, in the client's order:

    Accept-Encoding: deflate, gzip, zstd, br
        → Content-Encoding: deflate
          Content-Encoding: gzip
          Content-Encoding: br

    Accept-Encoding: deflate, br          (no gzip)
        → nothing

The body bytes are NOT compressed. The header is advertised only, so
clients that really decode it will see garbage. Existing clients of this
server rely on the exact header lines, which is why it is kept.
"""

from dataclasses import dataclass, field
from typing import Optional, List, Tuple, Iterable

from .request import HTTPRequest
from .status_codes import ResponseKind


HTTP_VERSION = "HTTP/1.1"
DEFAULT_CONTENT_TYPE = "text/plain"

# Encodings we are willing to announce, and the one that must be present
RECOGNIZED_ENCODINGS = ("gzip", "deflate", "br")
REQUIRED_ENCODING = "gzip"


def negotiate_encodings(request: Optional[HTTPRequest]) -> List[str]:
    """
    Pick the Content-Encoding values to announce for a request.

    Args:
        request: The originating request (None = no negotiation).

    When Accept-Encoding appears more than once, the first header whose
    tokens include gzip is the one negotiated on:

        Accept-Encoding: br
        Accept-Encoding: gzip, deflate    → gzip, deflate

    Returns:
        Recognized encodings in request order, or [] when no
        Accept-Encoding header lists gzip.
    """
    if request is None:
        return []

    for accept_encoding in request.get_all_headers("accept-encoding"):
        tokens = [token.strip().lower() for token in accept_encoding.split(",")]
        if REQUIRED_ENCODING in tokens:
            return [token for token in tokens if token in RECOGNIZED_ENCODINGS]

    return []


@dataclass
class HTTPResponse:
    """
    Represents an HTTP response to be sent to the client.

    This is what handlers return. It holds no framing headers:
    Content-Type/Content-Length are derived from the body at
    serialization time, and Content-Encoding from the request.

    =========================================================================
    RESPONSE LIFECYCLE
    =========================================================================

        Handler returns         to_bytes(request)        Socket sends
        HTTPResponse    ─────►  serializes      ─────►   raw bytes
        HTTPResponse(           b"HTTP/1.1 200 OK\r\n    conn.send_response(
          kind=OK,                Content-Type: ...\r\n     response_bytes
          body="abc123",          ...                     )
          headers=[],             abc123"
        )

    =========================================================================
    """

    kind: ResponseKind = ResponseKind.OK
    body: Optional[str] = None
    headers: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def status_line(self) -> str:
        """
        Get the HTTP status line.

        Example: "HTTP/1.1 404 Not Found"
        """
        return f"{HTTP_VERSION} {int(self.kind)} {self.kind.phrase}"

    @property
    def body_bytes(self) -> bytes:
        """The body encoded as UTF-8 (empty when there is no body)."""
        return self.body.encode("utf-8") if self.body is not None else b""

    def get_header(self, name: str) -> Optional[str]:
        """First explicit header with this name (case-insensitive)."""
        name = name.lower()
        for key, value in self.headers:
            if key.lower() == name:
                return value
        return None

    def add_header(self, name: str, value: str) -> "HTTPResponse":
        """
        Append an explicit header.

        Returns self for method chaining.
        """
        self.headers.append((name, value))
        return self

    def to_bytes(self, request: Optional[HTTPRequest] = None) -> bytes:
        """
        Serialize the response to bytes for sending over the socket.

        =====================================================================
        SERIALIZATION ORDER
        =====================================================================

            1. Status line
            2. Content-Encoding lines (negotiated from the request)
            3. Explicit headers, verbatim, in caller order
            4. If body: Content-Type (unless explicit), Content-Length
            5. Blank line
            6. Body bytes

        =====================================================================

        Args:
            request: The originating request, used for content negotiation.

        Returns:
            Complete HTTP response as bytes ready for socket.sendall()
        """
        lines = [self.status_line]

        for encoding in negotiate_encodings(request):
            lines.append(f"Content-Encoding: {encoding}")

        lines.extend(_format_headers(self.headers))

        if self.body is None:
            # A single blank line closes the header block
            return ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8")

        body = self.body_bytes

        # An explicit Content-Type wins; two Content-Type lines is not HTTP
        if self.get_header("Content-Type") is None:
            lines.append(f"Content-Type: {DEFAULT_CONTENT_TYPE}")

        # Content-Length counts BYTES, not characters
        lines.append(f"Content-Length: {len(body)}")

        header_bytes = ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8")
        return header_bytes + body


def _format_headers(headers: Iterable[Tuple[str, str]]) -> List[str]:
    return [f"{name}: {value}" for name, value in headers]


class ResponseBuilder:
    """
    Fluent builder for constructing HTTP responses.

    ==========================================================================
    USAGE EXAMPLES
    ==========================================================================

    # Plain text
    response = ResponseBuilder().text("abc123").build()

    # File contents with an explicit content type
    response = (ResponseBuilder()
        .status(ResponseKind.OK)
        .text(contents)
        .content_type("application/octet-stream")
        .build())

    # Empty 201
    response = ResponseBuilder().status(ResponseKind.CREATED).build()

    Each method returns `self` except build().

    ==========================================================================
    """

    def __init__(self):
        self._kind = ResponseKind.OK
        self._headers: List[Tuple[str, str]] = []
        self._body: Optional[str] = None

    def status(self, kind: ResponseKind) -> "ResponseBuilder":
        """Set the response kind."""
        self._kind = kind
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        """Append a single explicit header."""
        self._headers.append((name, value))
        return self

    def headers(self, headers: Iterable[Tuple[str, str]]) -> "ResponseBuilder":
        """Append several explicit headers, keeping their order."""
        self._headers.extend(headers)
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        """Set an explicit Content-Type, replacing the text/plain default."""
        return self.header("Content-Type", content_type)

    def text(self, text: str) -> "ResponseBuilder":
        """Set the response body."""
        self._body = text
        return self

    def build(self) -> HTTPResponse:
        """Build the HTTPResponse object."""
        return HTTPResponse(
            kind=self._kind,
            body=self._body,
            headers=list(self._headers),
        )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================
#
# One function per ResponseKind.
#
#     return ok("Hello")          # 200 with body
#     return created()            # 201, no body
#     return not_found()          # 404, no body
#     return internal_error()     # 500, no body
#
# =============================================================================

def ok(
    body: Optional[str] = None,
    headers: Optional[Iterable[Tuple[str, str]]] = None
) -> HTTPResponse:
    """Create a 200 OK response."""
    builder = ResponseBuilder().status(ResponseKind.OK)
    if body is not None:
        builder.text(body)
    if headers:
        builder.headers(headers)
    return builder.build()


def created() -> HTTPResponse:
    """Create a 201 Created response with no body."""
    return HTTPResponse(kind=ResponseKind.CREATED)


def not_found() -> HTTPResponse:
    """Create a 404 Not Found response with no body."""
    return HTTPResponse(kind=ResponseKind.NOT_FOUND)


def internal_error() -> HTTPResponse:
    """Create a 500 Internal Server Error response with no body."""
    return HTTPResponse(kind=ResponseKind.ERROR)
