"""
=============================================================================
MAIN MP3 SERVER
=============================================================================

The orchestrator that ties the listener, the storage collaborators and the
per-connection handlers together.

=============================================================================
ARCHITECTURE OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │                        ┌─────────────────┐                          │
    │                        │    MP3Server    │                          │
    │                        │  (Orchestrator) │                          │
    │                        └────────┬────────┘                          │
    │                                 │                                    │
    │            ┌────────────────────┼────────────────────┐              │
    │            ▼                    ▼                    ▼              │
    │    ┌──────────────┐    ┌──────────────┐    ┌──────────────┐        │
    │    │ SocketServer │    │   Catalog    │    │  MediaStore  │        │
    │    │  (Listener)  │    │ (record.txt) │    │(songDatabase)│        │
    │    └──────┬───────┘    └──────────────┘    └──────────────┘        │
    │           │ accept()           ▲                    ▲              │
    │           ▼                    │  read-only, shared │              │
    │    ┌──────────────┐    ┌───────┴────────────────────┴──┐           │
    │    │  Connection  │───►│ ClientHandler (one thread each)│           │
    │    └──────────────┘    └────────────────────────────────┘           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
CONCURRENCY MODEL
=============================================================================

One thread per connection, started and forgotten. The listener never
joins a handler thread and keeps no list of them. Handler threads are
daemons, so a stuck client can't keep the process alive after the
listener stops.

A handler that dies from an unexpected exception is logged with its
traceback; the exception never reaches the listener or other handlers.

=============================================================================
"""

import logging
import threading
from typing import Optional, Tuple

from .config import ServerConfig
from .core import SocketServer, Connection
from .handlers import ClientHandler
from .storage import Catalog, MediaStore


logger = logging.getLogger(__name__)


class MP3Server:
    """
    Network MP3 file server.

    Usage:
        server = MP3Server(ServerConfig(catalog_path="record.txt",
                                        songs_dir="songDatabase"))
        server.start(3000)   # bind; raises ConfigurationError / TransportError
        server.run()         # accept loop, blocks

        # or both at once:
        server.serve_forever()
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Args:
            config: Server configuration. Uses defaults if not provided.

        Raises:
            ConfigurationError: If the configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()  # Fail-fast on invalid config

        self._socket_server = SocketServer(self.config)
        self.catalog = Catalog(self.config.catalog_path)
        self.media = MediaStore(self.config.songs_dir)

    @property
    def address(self) -> Tuple[str, int]:
        """The bound (IP, port); the real port once bound to port 0."""
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._socket_server.is_running

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    def start(self, port: Optional[int] = None) -> Tuple[str, int]:
        """
        Bind the listening socket.

        Raises:
            ConfigurationError: If ``port`` is negative.
            TransportError: If binding fails.
        """
        return self._socket_server.start(port)

    def run(self) -> None:
        """
        Accept connections until shutdown() (blocking).

        Raises:
            TransportError: If accept() fails; the listening socket is
                            closed before this propagates.
        """
        logger.info("Starting the server")
        try:
            self._socket_server.run(self._spawn_handler)
        finally:
            logger.info("Stopping the server")

    def serve_forever(self, port: Optional[int] = None) -> None:
        """Set up logging, bind, and run the accept loop."""
        self._setup_logging()
        self.start(port)
        self.run()

    def shutdown(self) -> None:
        """Stop accepting connections. Running handlers finish on their own."""
        self._socket_server.shutdown()

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_for_shutdown(timeout)

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("mp3server").setLevel(level)

    # =========================================================================
    # CONNECTION HANDLING
    # =========================================================================

    def _spawn_handler(self, conn: Connection) -> None:
        """Start a handler thread for ``conn`` and return immediately."""
        thread = threading.Thread(
            target=self._run_handler,
            args=(conn,),
            name=f"mp3-handler-{conn.id}",
            daemon=True,
        )
        thread.start()

    def _run_handler(self, conn: Connection) -> None:
        """Thread body: serve one connection, log anything unexpected."""
        handler = ClientHandler(
            conn,
            catalog=self.catalog,
            media=self.media,
            chunk_size=self.config.chunk_size,
        )
        try:
            handler.run()
        except Exception:
            logger.exception(f"[{conn.id}] Client handler crashed")
            conn.close()


def create_server(config: Optional[ServerConfig] = None) -> MP3Server:
    """Factory for MP3Server instances."""
    return MP3Server(config)


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. Component Initialization: config, listener, catalog, media store
# 2. Request Flow: accept → spawn thread → ClientHandler loop
# 3. Failure isolation: handler crashes logged per thread
# =============================================================================
