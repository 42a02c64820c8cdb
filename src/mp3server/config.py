"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the MP3 server.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m mp3server --port 4000                           │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── MP3_PORT=4000 python -m mp3server                         │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Configuration is validated eagerly at startup. An invalid value raises
ConfigurationError before any socket is created.

=============================================================================
"""

import os
from dataclasses import dataclass

from .errors import ConfigurationError


DEFAULT_PORT = 3000
CHUNK_SIZE = 1000


@dataclass
class ServerConfig:
    """
    Configuration for the MP3 server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, buffer_size

    PROTOCOL SETTINGS
    - chunk_size, max_request_size

    STORAGE
    - catalog_path, songs_dir

    LOGGING
    - log_level

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """The IP address to bind to."""

    port: int = DEFAULT_PORT
    """
    The port number to listen on.
    0 asks the OS for any free port (handy in tests).
    """

    backlog: int = 128
    """Maximum number of queued, not yet accepted connections."""

    buffer_size: int = 8192
    """Largest single recv() issued while reading a frame."""

    # ─────────────────────────────────────────────────────────────────────
    # PROTOCOL SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    chunk_size: int = CHUNK_SIZE
    """
    Maximum number of file bytes carried by one DATA_CHUNK message.
    Can be lowered, never raised above CHUNK_SIZE.
    """

    max_request_size: int = 64 * 1024
    """
    Largest request payload the server will accept, in bytes.
    A frame announcing more than this is a decode error.
    """

    # ─────────────────────────────────────────────────────────────────────
    # STORAGE
    # ─────────────────────────────────────────────────────────────────────

    catalog_path: str = "record.txt"
    """Flat text catalog, one "<Artist> - <Song>.mp3" per line."""

    songs_dir: str = "songDatabase"
    """Directory holding the media files named in the catalog."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

            MP3_HOST        Server host (default: 0.0.0.0)
            MP3_PORT        Server port (default: 3000)
            MP3_CATALOG     Catalog file (default: record.txt)
            MP3_SONGS_DIR   Media directory (default: songDatabase)
            MP3_LOG_LEVEL   Logging level (default: INFO)
        """
        raw_port = os.getenv("MP3_PORT", str(DEFAULT_PORT))
        try:
            port = int(raw_port)
        except ValueError:
            raise ConfigurationError(f"MP3_PORT must be an integer, got {raw_port!r}")

        return cls(
            host=os.getenv("MP3_HOST", "0.0.0.0"),
            port=port,
            catalog_path=os.getenv("MP3_CATALOG", "record.txt"),
            songs_dir=os.getenv("MP3_SONGS_DIR", "songDatabase"),
            log_level=os.getenv("MP3_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """
        Validate configuration values (fail-fast).

        Raises:
            ConfigurationError: On the first invalid value found.
        """
        validate_port(self.port)

        if self.backlog < 1:
            raise ConfigurationError("backlog must be >= 1")

        if self.buffer_size < 1024:
            raise ConfigurationError("buffer_size must be >= 1024")

        if not 1 <= self.chunk_size <= CHUNK_SIZE:
            raise ConfigurationError(f"chunk_size must be between 1 and {CHUNK_SIZE}")

        if self.max_request_size < 16:
            raise ConfigurationError("max_request_size must be >= 16")


def validate_port(port) -> int:
    """
    Check that ``port`` is a usable TCP port number.

    Returns the port unchanged so it can be used inline.

    Raises:
        ConfigurationError: If the port is not an int, is negative,
                            or is above 65535.
    """
    if isinstance(port, bool) or not isinstance(port, int):
        raise ConfigurationError(f"Invalid port: {port!r}. Must be an integer.")
    if port < 0:
        raise ConfigurationError(f"Invalid port: {port}. Port must not be negative.")
    if port > 65535:
        raise ConfigurationError(f"Invalid port: {port}. Must be 0-65535.")
    return port


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. Type-safe configuration with dataclass
# 2. Environment variable support
# 3. Validation at startup (fail-fast, ConfigurationError)
# =============================================================================
