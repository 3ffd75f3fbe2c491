"""
=============================================================================
COMMAND-LINE ENTRY POINT
=============================================================================

    python -m minihttp                         # 127.0.0.1:4221, files from CWD
    python -m minihttp --directory /tmp/       # serve /files from /tmp/
    python -m minihttp --port 8080 -l DEBUG

The file directory is the second argument in the common invocation
`minihttp --directory /tmp/`. It is read once here and stored in the
ServerConfig that every connection shares.
"""

import argparse
import sys
from typing import Optional, Sequence

from . import __version__
from .server import HTTPServer
from .config import ServerConfig


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="minihttp",
        description="Minimal HTTP/1.1 server on raw sockets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m minihttp                          # Run with defaults
  python -m minihttp --directory /tmp/        # Serve /files/<name> from /tmp/
  python -m minihttp --port 8080              # Custom port
  python -m minihttp --timeout 5              # 5 second per-connection deadline
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # FILES
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--directory", "-d",
        default="",
        help="Base directory for /files/<name> (default: current directory)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=4221,
        help="Port to listen on (default: 4221)"
    )

    parser.add_argument(
        "--timeout", "-t",
        type=float,
        default=30.0,
        help="Per-connection deadline in seconds (default: 30)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING / META
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"minihttp {__version__}"
    )

    return parser


def config_from_args(argv: Optional[Sequence[str]] = None) -> ServerConfig:
    """Parse command-line arguments into a validated ServerConfig."""
    args = build_parser().parse_args(argv)

    config = ServerConfig(
        host=args.host,
        port=args.port,
        directory=args.directory,
        timeout=args.timeout,
        log_level=args.log_level,
    )
    config.validate()
    return config


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main CLI entry point."""
    try:
        config = config_from_args(argv)
        HTTPServer(config).run()
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
