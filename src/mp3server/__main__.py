"""
=============================================================================
MP3 SERVER CLI ENTRY POINT
=============================================================================

    # Run with defaults (0.0.0.0:3000, ./record.txt, ./songDatabase)
    python -m mp3server

    # Custom port and storage locations
    python -m mp3server --port 4000 --catalog /srv/record.txt --songs-dir /srv/songs

    # Environment variables work too (CLI flags win)
    MP3_PORT=4000 MP3_LOG_LEVEL=DEBUG python -m mp3server

Exit status:
    0  server stopped normally (Ctrl+C / SIGTERM)
    1  listener failed (could not bind, accept() failed)
    2  invalid configuration (e.g. negative port); nothing was started

=============================================================================
"""

import argparse
import logging
import sys
from typing import Optional, Sequence

from . import __version__
from .config import ServerConfig
from .errors import ConfigurationError, TransportError
from .server import MP3Server


logger = logging.getLogger("mp3server")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mp3server",
        description="Serve MP3 files and a catalog listing over a framed TCP protocol",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m mp3server                         # Run with defaults
  python -m mp3server --port 4000             # Custom port
  python -m mp3server --songs-dir ./songs     # Custom media directory
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: 0.0.0.0)"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: 3000)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # STORAGE ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--catalog", "-c",
        default=None,
        help="Catalog file, one '<Artist> - <Song>.mp3' per line (default: record.txt)"
    )

    parser.add_argument(
        "--songs-dir", "-s",
        default=None,
        help="Directory holding the MP3 files (default: songDatabase)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # META ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"mp3server {__version__}"
    )

    return parser


def build_config(args: argparse.Namespace) -> ServerConfig:
    """Environment first, then CLI flags on top."""
    config = ServerConfig.from_env()

    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.catalog is not None:
        config.catalog_path = args.catalog
    if args.songs_dir is not None:
        config.songs_dir = args.songs_dir
    if args.log_level is not None:
        config.log_level = args.log_level

    return config


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        server = MP3Server(build_config(args))
        server.serve_forever()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except TransportError as e:
        logger.critical(f"Server stopped: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt")

    return 0


if __name__ == "__main__":
    sys.exit(main())
