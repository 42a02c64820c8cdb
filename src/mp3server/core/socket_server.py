"""
=============================================================================
LOW-LEVEL TCP SOCKET SERVER (THE LISTENER)
=============================================================================

This module owns the listening socket. It binds a port, accepts inbound
connections, and hands each one off. It never reads or writes client data
itself.

SOCKET LIFECYCLE (Server Side):
────────────────────────────────

    1. socket()    Create a socket file descriptor
    2. bind()      Associate the socket with IP:PORT      ┐
    3. listen()    Start queueing incoming connections    ┘ start(port)
    4. accept()    Wait for a connection, get a NEW socket  ┐
                   for that client; repeat                  ┘ run(callback)
    5. close()     Release the listening socket

                    ┌───────────────────────┐
                    │   Listening Socket    │ ◄── Created once in start()
                    │   bound to 0.0.0.0:N  │     Never sends/receives data
                    └───────────┬───────────┘
                                │ accept()
        ┌───────────────────────┼───────────────────────┐
        ▼                       ▼                       ▼
    ┌───────────┐         ┌───────────┐         ┌───────────┐
    │Connection │         │Connection │         │Connection │
    │ thread 1  │         │ thread 2  │         │ thread 3  │
    └───────────┘         └───────────┘         └───────────┘

The accept loop is single-threaded and sequential. Handing a connection
to the callback is fire-and-forget: the listener never waits for, joins,
or tracks a handler.

=============================================================================
FAILURE MODES
=============================================================================

    start(-1)              → ConfigurationError  (nothing is created)
    bind() fails           → TransportError      (port in use, no permission)
    accept() fails         → logged as fatal, listening socket closed,
                             TransportError raised out of run()
    shutdown() requested   → run() returns normally

=============================================================================
SIGNAL HANDLING
=============================================================================

SIGINT (Ctrl+C) and SIGTERM (docker stop, kill) call shutdown(). Python
only allows installing signal handlers from the main thread, so when
run() is called from any other thread (as the tests do) the handlers are
simply not installed.

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Optional, Callable, Tuple

from ..config import ServerConfig, validate_port
from ..errors import TransportError
from .connection import Connection


logger = logging.getLogger(__name__)


# How often accept() wakes up to check whether shutdown() was requested
ACCEPT_POLL_INTERVAL = 0.5


class SocketServer:
    """
    Low-level TCP listener.

    Usage:
        def on_connection(conn: Connection):
            threading.Thread(target=handle, args=(conn,)).start()

        server = SocketServer(config)
        server.start(3000)          # bind + listen
        server.run(on_connection)   # blocks until shutdown or fatal error
    """

    def __init__(self, config: ServerConfig):
        """
        Initialize the listener.

        Args:
            config: Server configuration (host, port, backlog, buffer sizes).

        Note: This does NOT create the socket. That happens in start().
        """
        self.config = config

        # The listening socket (created in start())
        self._socket: Optional[socket.socket] = None

        # Requested port; the OS-assigned one once bound to port 0
        self._port = config.port

        # Server state
        self._running = False

        # Set when the accept loop has fully stopped
        self._shutdown_event = threading.Event()

        # Original signal handlers, restored on cleanup
        self._original_handlers: dict = {}

    @property
    def is_running(self) -> bool:
        """Check if the accept loop is running."""
        return self._running

    @property
    def is_bound(self) -> bool:
        return self._socket is not None

    @property
    def address(self) -> Tuple[str, int]:
        """
        The bound (IP, port).

        After binding to port 0 this reports the port the OS picked.
        """
        if self._socket is not None:
            host, port = self._socket.getsockname()[:2]
            return (host, port)
        return (self.config.host, self._port)

    def _create_socket(self) -> socket.socket:
        """Create and configure the listening socket."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # Avoid "Address already in use" while old sockets sit in TIME_WAIT
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        # Chunks are small; send each one as soon as it's written
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        # Bounded accept() so the loop can notice shutdown()
        sock.settimeout(ACCEPT_POLL_INTERVAL)

        return sock

    # =========================================================================
    # STARTUP
    # =========================================================================

    def start(self, port: Optional[int] = None) -> Tuple[str, int]:
        """
        Bind and listen. After this returns the server is ready to accept.

        Args:
            port: Port to listen on. Defaults to config.port.

        Returns:
            The bound (IP, port).

        Raises:
            ConfigurationError: If the port is negative or otherwise invalid.
            TransportError: If the socket cannot be bound.
        """
        if port is None:
            port = self.config.port
        validate_port(port)

        if self._socket is not None:
            raise TransportError("Listener already started")

        self._socket = self._create_socket()

        try:
            # bind(): "deliver packets for this IP:PORT to this socket"
            self._socket.bind((self.config.host, port))
            self._port = self._socket.getsockname()[1]

            # listen(): start queueing connections (backlog = queue size)
            self._socket.listen(self.config.backlog)
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{port}: {e}")
            self._close_socket()
            raise TransportError(f"Cannot listen on {self.config.host}:{port}: {e}") from e

        self._shutdown_event.clear()
        logger.info(f"Server listening on {self.address[0]}:{self.address[1]}")
        return self.address

    # =========================================================================
    # ACCEPT LOOP
    # =========================================================================

    def run(self, connection_handler: Callable[[Connection], None]):
        """
        Accept connections until shutdown() or a fatal accept error.

        Each accepted socket is wrapped in a Connection and passed to
        ``connection_handler``, which must return promptly (spawn a thread,
        don't do the work inline).

        Raises:
            TransportError: If start() was not called, or accept() fails.
        """
        if self._socket is None:
            raise TransportError("run() called before start()")

        self._running = True
        self._setup_signals()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                # Normal: poll interval elapsed, re-check self._running
                continue
            except OSError as e:
                if not self._running:
                    break  # Socket closed by shutdown()
                logger.critical(f"Accept failed, stopping the server: {e}")
                raise TransportError(f"accept() failed: {e}") from e

            conn = Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
                max_payload=self.config.max_request_size,
            )

            logger.info(f"[{conn.id}] Connected to a client at {conn.client_ip}:{conn.client_port}")

            try:
                connection_handler(conn)
            except Exception:
                # The callback only spawns work; if even that fails, drop
                # this client and keep serving the others
                logger.exception(f"[{conn.id}] Failed to hand off connection")
                conn.close()

    # =========================================================================
    # SHUTDOWN
    # =========================================================================

    def shutdown(self):
        """
        Ask the accept loop to stop.

        Callable from signal handlers and other threads; idempotent.
        """
        if self._running:
            logger.info("Shutting down listener...")
        self._running = False

    def _setup_signals(self):
        """Install SIGTERM/SIGINT handlers (main thread only)."""
        if threading.current_thread() is not threading.main_thread():
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def _close_socket(self):
        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass  # Already closed
            self._socket = None

    def _cleanup(self):
        """Restore signals, close the listening socket, wake waiters."""
        self._running = False
        self._restore_signals()
        self._close_socket()
        self._shutdown_event.set()
        logger.info("Listener stopped")

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the accept loop to finish.

        Returns:
            True if the loop stopped, False on timeout.
        """
        return self._shutdown_event.wait(timeout)
