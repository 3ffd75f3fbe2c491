"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Parses raw HTTP/1.1 request bytes into immutable HTTPRequest objects.

=============================================================================
HTTP REQUEST ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP REQUEST STRUCTURE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  ┌─ REQUEST LINE ─────────────────────────────────────────────────┐ │
    │  │    POST /files/notes.txt HTTP/1.1\r\n                          │ │
    │  │    ─┬──  ───────┬──────── ───┬────                             │ │
    │  │   Method       Path       Version (read, not stored)           │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ HEADERS ──────────────────────────────────────────────────────┐ │
    │  │    Host: localhost:4221\r\n                                    │ │
    │  │    User-Agent: curl/7.83.1\r\n                                 │ │
    │  │    Content-Length: 5\r\n                                       │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ BLANK LINE ───────────────────────────────────────────────────┐ │
    │  │    \r\n                                                        │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ BODY ─────────────────────────────────────────────────────────┐ │
    │  │    hello                                                       │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
BODY PRESENCE
=============================================================================

The body is present if and only if a blank line was found:

    b"GET / HTTP/1.1\r\n\r\n"          → body == ""     (present, empty)
    b"GET / HTTP/1.1\r\n"              → body is None   (no body section)
    b"POST /x HTTP/1.1\r\n\r\nhello"   → body == "hello"

This matters for POST /files/<name>, which refuses a request whose body
section was never sent.
"""

from dataclasses import dataclass, field
from typing import Optional, Mapping, Tuple
import re

from ..errors import MalformedRequest, MalformedHeader


# A header is stored as a (lower-cased name, exact value) pair
Header = Tuple[str, str]


@dataclass(frozen=True)
class HTTPRequest:
    """
    Represents a parsed HTTP request.

    Frozen: a request is built once per connection and never modified.
    The router hands handlers a copy with path_params filled in
    (dataclasses.replace), it does not mutate the parsed request.

    =========================================================================
    WHY A TUPLE OF PAIRS FOR HEADERS?
    =========================================================================

    A dict would lose two things the server needs:
    - ORDER: headers are kept in the order the client sent them
    - DUPLICATES: "Accept-Encoding" may legally appear twice; lookups
      use first-match semantics, so the first one wins

    Names are lower-cased at parse time so every lookup is
    case-insensitive without calling .lower() everywhere.

    =========================================================================
    """

    method: str                                   # GET, POST, ...
    path: str                                     # Request path, verbatim
    headers: Tuple[Header, ...] = ()              # (name, value) in order
    body: Optional[str] = None                    # None = no body section

    # Router-injected parameters (e.g. {"value": "abc"} for /echo/*value)
    path_params: Mapping[str, str] = field(default_factory=dict)

    # Metadata, used for logging only
    client_address: Tuple[str, int] = ("", 0)

    # =========================================================================
    # ACCESSORS
    # =========================================================================

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """
        Get the FIRST value of a header (case-insensitive lookup).

        Example:
            request.get_header("User-Agent")   # "curl/7.83.1"
            request.get_header("X-Missing")    # None
        """
        name = name.lower()
        for key, value in self.headers:
            if key == name:
                return value
        return default

    def get_all_headers(self, name: str) -> list[str]:
        """Get every value of a header, in the order received."""
        name = name.lower()
        return [value for key, value in self.headers if key == name]

    @property
    def user_agent(self) -> Optional[str]:
        """The User-Agent header, or None if the client did not send one."""
        return self.get_header("user-agent")


class RequestParser:
    """
    Parses raw HTTP request bytes into HTTPRequest objects.

    ==========================================================================
    PARSER ARCHITECTURE
    ==========================================================================

        Raw Request Bytes
              │
              ▼
        ┌───────────────────────────────────────────────────────────────────┐
        │  1. Decode UTF-8 ─────────── fails? → MalformedRequest            │
        │  2. Strip NUL padding, split on \r\n                              │
        │  3. Request line ─────────── < 2 tokens? → MalformedRequest       │
        │  4. Header lines ─────────── no ": "? → MalformedHeader           │
        │  5. First blank line → everything after it is the body           │
        │  6. Build HTTPRequest                                             │
        └───────────────────────────────────────────────────────────────────┘
              │
              ▼
        HTTPRequest dataclass

    The parser is a pure function over the bytes it is given. It does not
    look at Content-Length: the connection's read loop already used it to
    decide how many bytes to buffer.

    ==========================================================================
    """

    LINE_TERMINATOR = "\r\n"
    HEADER_SEPARATOR = ": "

    # Request line tokens are separated by any run of whitespace
    REQUEST_LINE_SPLIT = re.compile(r"\s+")

    def parse(
        self,
        data: bytes,
        client_address: Tuple[str, int] = ("", 0)
    ) -> HTTPRequest:
        """
        Parse raw HTTP request data into an HTTPRequest object.

        Args:
            data: Raw request bytes (may carry trailing NUL padding).
            client_address: Client's (ip, port) tuple for logging.

        Returns:
            Parsed HTTPRequest object.

        Raises:
            MalformedRequest: If the request line is unusable or the bytes
                are not valid UTF-8.
            MalformedHeader: If a header line lacks the ": " separator.
        """
        # =====================================================================
        # STEP 1: Decode
        # =====================================================================
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedRequest(f"Request is not valid UTF-8: {e}") from e

        # =====================================================================
        # STEP 2: Strip padding and split into lines
        # =====================================================================
        # A fixed-size buffer that was only partially filled ends in NULs.
        #
        lines = text.rstrip("\x00").split(self.LINE_TERMINATOR)

        # =====================================================================
        # STEP 3: Request line
        # =====================================================================
        method, path = self._parse_request_line(lines[0])

        # =====================================================================
        # STEP 4 + 5: Headers, then body after the first blank line
        # =====================================================================
        headers, body = self._parse_headers_and_body(lines[1:])

        return HTTPRequest(
            method=method,
            path=path,
            headers=headers,
            body=body,
            client_address=client_address,
        )

    def _parse_request_line(self, line: str) -> Tuple[str, str]:
        """
        Parse the HTTP request line.

            METHOD SP PATH SP HTTP-VERSION

        The version token is tolerated but neither validated nor kept.

        Raises:
            MalformedRequest: If method or path is missing.
        """
        parts = self.REQUEST_LINE_SPLIT.split(line.strip())
        if len(parts) < 2 or not parts[0]:
            raise MalformedRequest(f"Invalid request line: {line!r}")

        return parts[0], parts[1]

    def _parse_headers_and_body(
        self,
        lines: list[str]
    ) -> Tuple[Tuple[Header, ...], Optional[str]]:
        """
        Fold the lines after the request line into (headers, body).

        Lines up to the first empty line are headers. The remaining lines,
        rejoined with the line terminator, are the body. When no empty line
        exists the body is None.

        Raises:
            MalformedHeader: If a header line lacks the ": " separator.
        """
        headers: list[Header] = []

        for index, line in enumerate(lines):
            if not line:
                body = self.LINE_TERMINATOR.join(lines[index + 1:])
                return tuple(headers), body

            name, sep, value = line.partition(self.HEADER_SEPARATOR)
            if not sep:
                raise MalformedHeader(line)

            # Names are case-insensitive, values are kept exactly
            headers.append((name.lower(), value))

        return tuple(headers), None


# =============================================================================
# CONVENIENCE FUNCTION
# =============================================================================

def parse_request(
    data: bytes,
    client_address: Tuple[str, int] = ("", 0)
) -> HTTPRequest:
    """
    Convenience function to parse an HTTP request in one call.

    Args:
        data: Raw HTTP request bytes.
        client_address: Client's (ip, port) tuple.

    Returns:
        Parsed HTTPRequest object.
    """
    return RequestParser().parse(data, client_address)
