"""
Request handlers.

    from mp3server.handlers import ClientHandler

    handler = ClientHandler(conn, catalog, media)
    handler.run()   # blocks until the client goes away
"""

from .client_handler import ClientHandler, HandlerState

__all__ = [
    "ClientHandler",
    "HandlerState",
]
