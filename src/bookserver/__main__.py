"""
=============================================================================
BOOKSERVER CLI ENTRY POINT
=============================================================================

    # Defaults (0.0.0.0:9090), overridable through BOOKSERVER_* variables
    python -m bookserver

    # Command-line flags win over the environment
    python -m bookserver --port 3000 --log-level DEBUG

    # JSON access log for a log aggregator
    python -m bookserver --log-format json

Installed with pip, the same entry point is the `bookserver` command.

=============================================================================
"""

import argparse
import logging
import sys
from typing import Optional, Sequence

from . import __version__
from .app import create_server
from .config import LOG_FORMATS, LOG_LEVELS, ServerConfig


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bookserver",
        description="In-memory REST server for a collection of books",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  bookserver                         # 0.0.0.0:9090
  bookserver --port 3000             # Custom port
  bookserver --host 127.0.0.1        # Localhost only
  bookserver --workers 8             # 8-16 worker threads
  BOOKSERVER_PORT=3000 bookserver    # Port from the environment
        """,
    )

    # Defaults are None so that unset flags fall back to the environment.
    parser.add_argument("--host", "-H", help="Host to bind to (default: 0.0.0.0)")
    parser.add_argument("--port", "-p", type=int, help="Port to listen on (default: 9090)")
    parser.add_argument(
        "--workers", "-w",
        type=int,
        help="Minimum worker threads; the maximum is twice this (default: 4-16)",
    )
    parser.add_argument("--read-timeout", type=float, help="Seconds to read a request (default: 10)")
    parser.add_argument("--write-timeout", type=float, help="Seconds to write a response (default: 10)")
    parser.add_argument("--log-level", "-l", choices=LOG_LEVELS, help="Logging level (default: INFO)")
    parser.add_argument("--log-format", choices=LOG_FORMATS, help="Access log format (default: text)")
    parser.add_argument("--version", "-v", action="version", version=f"bookserver {__version__}")
    return parser


def config_from_args(args: argparse.Namespace, base: Optional[ServerConfig] = None) -> ServerConfig:
    """
    Layer command-line flags over `base` (the environment by default).

    Raises:
        ValueError: If an environment variable or the result is invalid.
    """
    config = base or ServerConfig.from_env()

    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.workers is not None:
        config.min_workers = args.workers
        config.max_workers = args.workers * 2
    if args.read_timeout is not None:
        config.read_timeout = args.read_timeout
    if args.write_timeout is not None:
        config.write_timeout = args.write_timeout
    if args.log_level is not None:
        config.log_level = args.log_level
    if args.log_format is not None:
        config.log_format = args.log_format

    config.validate()
    return config


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = config_from_args(args)
    except ValueError as e:
        parser.error(str(e))

    server = create_server(config)
    try:
        server.run()
    except OSError as e:
        print(f"Could not listen: {e}", file=sys.stderr)
        return 1
    logger.info("Finished - bye bye.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
