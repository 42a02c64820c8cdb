"""
=============================================================================
ERROR TAXONOMY
=============================================================================

Every failure the server knows about has its own exception class. Each one
has a fixed BLAST RADIUS - how much of the system it is allowed to take down:

    ┌─────────────────────────┬──────────────────────┬───────────────────────┐
    │ Exception               │ Raised by            │ Blast radius          │
    ├─────────────────────────┼──────────────────────┼───────────────────────┤
    │ ConfigurationError      │ ServerConfig, start()│ Process never starts  │
    │ TransportError          │ SocketServer         │ Listener shuts down   │
    │ ProtocolDecodeError     │ framing / messages   │ One connection closes │
    │ StorageReadError        │ Catalog, MediaStore  │ One response degrades │
    │ TransportWriteError     │ Connection.send()    │ One response aborted  │
    └─────────────────────────┴──────────────────────┴───────────────────────┘

Nothing is retried, and nothing crosses from one connection to another.

=============================================================================
"""


class MP3ServerError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(MP3ServerError, ValueError):
    """
    Raised for invalid startup parameters (e.g. a negative port).

    Subclasses ValueError so callers that validate arguments generically
    still catch it.
    """


class TransportError(MP3ServerError):
    """Raised when the listening socket cannot bind or accept."""


class ProtocolDecodeError(MP3ServerError):
    """
    Raised when bytes from the peer cannot be decoded into a message.

    Covers bad versions, unknown message types, oversized or truncated
    frames and malformed payloads. The connection that produced it is
    abandoned; no partial recovery is attempted.
    """


class StorageReadError(MP3ServerError):
    """
    Raised when the catalog or a media file cannot be read.

    Attributes:
        path: The path that failed to read (if known).
    """

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path


class TransportWriteError(MP3ServerError):
    """
    Raised when sending a message to the peer fails.

    Attributes:
        connection_lost: True if the socket is unusable afterwards. Any
                         socket error counts, since part of a frame may
                         already have been written. False only when the
                         message failed to encode and nothing was sent.
    """

    def __init__(self, message: str, connection_lost: bool = True):
        super().__init__(message)
        self.connection_lost = connection_lost
