"""
=============================================================================
MP3SERVER - Chunked MP3 File Server Over Raw TCP Sockets
=============================================================================

Clients connect over TCP, ask either for the catalog listing or for one
song, and get back a stream of length-framed messages.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    mp3server/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m mp3server)
    ├── server.py            # MP3Server orchestrator
    ├── client.py            # Blocking protocol client
    ├── config.py            # ServerConfig dataclass
    ├── errors.py            # Exception taxonomy
    ├── core/                # Networking plumbing
    │   ├── socket_server.py # Listener: bind + accept loop
    │   └── connection.py    # Owned per-client socket
    ├── protocol/            # Wire format
    │   ├── framing.py       # Versioned length-prefixed frames
    │   ├── messages.py      # Request / response values
    │   └── chunking.py      # File → 1000-byte chunks
    ├── storage/             # Read-only collaborators
    │   ├── catalog.py       # record.txt
    │   └── media.py         # songDatabase/
    └── handlers/
        └── client_handler.py  # Per-connection request loop

=============================================================================
QUICK START
=============================================================================

    from mp3server import MP3Server, ServerConfig

    server = MP3Server(ServerConfig(
        catalog_path="record.txt",
        songs_dir="songDatabase",
    ))
    server.serve_forever(port=3000)

=============================================================================
"""

__version__ = "1.0.0"

from .server import MP3Server
from .config import ServerConfig
from .client import MP3Client, DownloadResult
from .errors import (
    MP3ServerError,
    ConfigurationError,
    TransportError,
    ProtocolDecodeError,
    StorageReadError,
    TransportWriteError,
)

__all__ = [
    "MP3Server",
    "ServerConfig",
    "MP3Client",
    "DownloadResult",
    "MP3ServerError",
    "ConfigurationError",
    "TransportError",
    "ProtocolDecodeError",
    "StorageReadError",
    "TransportWriteError",
    "__version__",
]
