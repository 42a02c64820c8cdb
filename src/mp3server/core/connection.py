"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

This module wraps one accepted client socket together with everything
that belongs to it: framing state, lifecycle state, and counters for
logging. It is the single owned resource of a handler thread.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL!
=============================================================================

    Client sends:
        send(request_frame)

    Server might receive:
        recv() → first 3 bytes of the header
        recv() → rest of the header + half the payload
        recv() → rest of the payload

Connection.read_frame() hides this: it reads the fixed 6-byte header,
then exactly `length` payload bytes, and hands back one whole Frame.

=============================================================================
CONNECTION LIFECYCLE
=============================================================================

    ┌─────────┐  read_frame()  ┌─────────┐   send()   ┌─────────┐
    │   NEW   │───────────────►│ READING │───────────►│ WRITING │
    └─────────┘                └────▲────┘            └────┬────┘
                                    │                      │
                                    └──────────────────────┘
                                      next request (loop)

         peer closed / decode error / write error / handler done
                                    │
                                    ▼
                              ┌──────────┐       ┌────────┐
                              │ CLOSING  │──────►│ CLOSED │
                              └──────────┘       └────────┘

Using the connection as a context manager guarantees the CLOSED state is
reached on every exit path:

    with conn:
        ...          # any exception, any return
    # socket released here

=============================================================================
NO READ TIMEOUT
=============================================================================

The socket is left fully blocking. A peer that connects and then goes
silent parks its handler thread on recv() until the peer disconnects.
Other connections are unaffected since each has its own thread.

=============================================================================
"""

import socket
import struct
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional
import uuid

from ..errors import TransportWriteError
from ..protocol import Frame, Message, read_frame


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection lifecycle states."""
    NEW = "new"              # Just accepted, nothing read yet
    READING = "reading"      # Waiting for / reading a request frame
    WRITING = "writing"      # Sending response frames
    CLOSING = "closing"      # Shutdown sequence in progress
    CLOSED = "closed"        # Socket released


@dataclass
class Connection:
    """
    Represents a client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short unique identifier, used as a log prefix.
        state: Current connection state.
        created_at: Timestamp when the connection was accepted.
        last_activity: Timestamp of the last successful read or write.
        frames_received: Frames read so far.
        frames_sent: Frames written so far.
    """

    # Required parameters
    socket: socket.socket
    address: tuple[str, int]

    # Generated/default parameters
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)
    last_activity: float = field(default_factory=time.time)
    frames_received: int = 0
    frames_sent: int = 0

    # Configuration (passed from ServerConfig)
    buffer_size: int = 8192
    max_payload: int = 64 * 1024

    # Set once a write fails in a way that leaves the socket unusable
    _broken: bool = field(default=False, repr=False)

    def __post_init__(self):
        # Blocking, no timeout: a stalled peer blocks only its own handler
        self.socket.setblocking(True)
        self.socket.settimeout(None)

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def client_port(self) -> int:
        return self.address[1]

    @property
    def age(self) -> float:
        """Connection age in seconds."""
        return time.time() - self.created_at

    @property
    def is_usable(self) -> bool:
        """False once the connection is closed or a write has broken it."""
        return not self._broken and self.state not in (ConnectionState.CLOSING, ConnectionState.CLOSED)

    # =========================================================================
    # READING
    # =========================================================================

    def read_frame(self) -> Optional[Frame]:
        """
        Block until one complete frame arrives from the client.

        Returns:
            The frame, or None if the client closed the connection
            cleanly between frames.

        Raises:
            ProtocolDecodeError: Malformed or truncated frame.
            OSError: The socket failed (reset by peer, etc.).
        """
        self.state = ConnectionState.READING

        frame = read_frame(self.socket, max_payload=self.max_payload, buffer_size=self.buffer_size)
        if frame is None:
            logger.debug(f"[{self.id}] Peer closed the connection")
            return None

        self.frames_received += 1
        self.last_activity = time.time()
        return frame

    # =========================================================================
    # WRITING
    # =========================================================================

    def send(self, message: Message) -> None:
        """
        Send one message as a single frame.

        sendall() is used so a frame is never split by a partial send. If
        sendall() fails, an unknown prefix of the frame may already be on
        the wire and the peer can no longer find frame boundaries, so any
        socket error marks the connection broken.

        Raises:
            TransportWriteError: If the write fails. ``connection_lost`` is
                                 False only when the message could not be
                                 encoded and nothing was written.
        """
        if not self.is_usable:
            raise TransportWriteError(f"[{self.id}] Connection is not usable", connection_lost=True)

        try:
            data = message.to_bytes()
        except (ValueError, struct.error) as e:
            raise TransportWriteError(f"[{self.id}] Cannot encode {type(message).__name__}: {e}",
                                      connection_lost=False) from e

        self.state = ConnectionState.WRITING

        try:
            self.socket.sendall(data)
        except OSError as e:
            self._broken = True
            raise TransportWriteError(f"[{self.id}] Send failed: {e}", connection_lost=True) from e

        self.frames_sent += 1
        self.last_activity = time.time()

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection gracefully.

        1. shutdown(SHUT_WR): send FIN, the client sees end-of-stream
        2. close(): release the file descriptor

        Safe to call more than once.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Already disconnected

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(
            f"[{self.id}] Connection closed after {self.frames_received} requests, "
            f"{self.frames_sent} frames sent"
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - ensure the socket is released."""
        self.close()
        return False  # Don't suppress exceptions
