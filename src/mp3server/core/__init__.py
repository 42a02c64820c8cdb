"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The networking plumbing underneath the MP3 protocol.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         SOCKET SERVER                                │
    │  ─────────────────────────────────────────────────────────────────  │
    │  • Creates, binds and listens on the TCP socket                     │
    │  • Runs the accept() loop on the calling thread                     │
    │  • Hands each new Connection to a callback, fire-and-forget         │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ One thread per connection
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                          CONNECTION                                  │
    │  ─────────────────────────────────────────────────────────────────  │
    │  • Owns one client socket for its whole life                        │
    │  • Reads whole frames (TCP is a stream, not messages!)              │
    │  • Sends one message per frame, reports write failures              │
    │  • Context manager: always closed on exit                           │
    └─────────────────────────────────────────────────────────────────────┘

Handlers share nothing mutable, so no locks are needed anywhere.

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState

__all__ = [
    "SocketServer",     # Listening socket + accept loop
    "Connection",       # Owned per-client socket with framing
    "ConnectionState",  # Connection lifecycle states
]
