"""
=============================================================================
CLIENT HANDLER
=============================================================================

One ClientHandler owns one Connection from accept to close. It runs on its
own thread and loops: read a request, answer it, read the next one.

=============================================================================
STATE MACHINE
=============================================================================

        ┌──────────────────┐   request decoded   ┌──────────────────┐
        │ AWAITING_REQUEST │────────────────────►│   DISPATCHING    │
        │                  │◄────────────────────│ list | download  │
        └────────┬─────────┘   response sent     └────────┬─────────┘
                 │             (or write aborted,         │
                 │              connection still usable)  │
                 │                                        │
                 │ peer closed / decode error /           │ write error,
                 │ socket error                           │ connection lost
                 ▼                                        ▼
        ┌─────────────────────────────────────────────────────────────┐
        │                        TERMINATED                           │
        │     connection closed; client must reconnect to continue    │
        └─────────────────────────────────────────────────────────────┘

=============================================================================
FAILURE HANDLING PER REQUEST
=============================================================================

    ProtocolDecodeError   Bad frame from the client. Log, close this
                          connection. No retry, no resync attempt.

    StorageReadError      Download: answered as "not found".
                          Listing: logged, listing truncated, the end
                          marker is still sent so the client doesn't hang.

    TransportWriteError   Remaining frames of this response are dropped.
                          If the socket survived, wait for the next request.

=============================================================================
"""

import logging
from enum import Enum
from typing import Optional

from ..config import CHUNK_SIZE
from ..core import Connection
from ..errors import ProtocolDecodeError, StorageReadError, TransportWriteError
from ..protocol import (
    CatalogHeader,
    DataChunk,
    DownloadSong,
    EndOfListing,
    FileHeader,
    ListingEntry,
    Request,
    decode_request,
    iter_chunks,
)
from ..storage import Catalog, MediaStore, format_file_name


logger = logging.getLogger(__name__)


class HandlerState(Enum):
    """Per-connection handler states."""
    AWAITING_REQUEST = "awaiting_request"
    DISPATCHING = "dispatching"
    TERMINATED = "terminated"


class ClientHandler:
    """
    Serves every request arriving on one connection.

    Usage:
        handler = ClientHandler(conn, Catalog("record.txt"), MediaStore("songDatabase"))
        threading.Thread(target=handler.run, daemon=True).start()
    """

    def __init__(
        self,
        conn: Connection,
        catalog: Catalog,
        media: MediaStore,
        chunk_size: int = CHUNK_SIZE,
    ):
        self.conn = conn
        self.catalog = catalog
        self.media = media
        self.chunk_size = chunk_size

        self.state = HandlerState.AWAITING_REQUEST
        self.requests_handled = 0

    # =========================================================================
    # MAIN LOOP
    # =========================================================================

    def run(self) -> None:
        """
        Handle requests until the connection can no longer be used.

        The connection is closed on every exit path.
        """
        with self.conn:
            while self.conn.is_usable:
                self.state = HandlerState.AWAITING_REQUEST

                try:
                    request = self.receive_request()
                except ProtocolDecodeError as e:
                    logger.warning(f"[{self.conn.id}] Malformed request, closing connection: {e}")
                    break
                except OSError as e:
                    logger.info(f"[{self.conn.id}] Connection lost while reading: {e}")
                    break

                if request is None:
                    break  # Client disconnected

                self.state = HandlerState.DISPATCHING

                try:
                    self.dispatch(request)
                except TransportWriteError as e:
                    logger.warning(f"[{self.conn.id}] Response aborted: {e}")
                    if e.connection_lost:
                        break

                self.requests_handled += 1

        self.state = HandlerState.TERMINATED
        logger.info(f"[{self.conn.id}] Client handler finished after {self.requests_handled} requests")

    def receive_request(self) -> Optional[Request]:
        """
        Block until one fully framed request arrives.

        Returns:
            The decoded request, or None if the client closed cleanly.

        Raises:
            ProtocolDecodeError: Malformed or truncated input.
            OSError: The socket failed mid-read.
        """
        frame = self.conn.read_frame()
        if frame is None:
            return None
        return decode_request(frame)

    def dispatch(self, request: Request) -> None:
        if isinstance(request, DownloadSong):
            logger.info(f"[{self.conn.id}] Download request: {request.artist!r} - {request.song!r}")
            self.handle_download(request.artist, request.song)
        else:
            logger.info(f"[{self.conn.id}] Catalog listing request")
            self.handle_list_catalog()

    # =========================================================================
    # LISTING
    # =========================================================================

    def handle_list_catalog(self) -> int:
        """
        Send CatalogHeader, one ListingEntry per catalog entry, EndOfListing.

        Returns:
            Number of listing entries sent.

        Raises:
            TransportWriteError: If any frame fails to send.
        """
        self.conn.send(CatalogHeader())

        sent = 0
        try:
            for entry in self.catalog.entries():
                self.conn.send(ListingEntry(entry.listing))
                sent += 1
        except StorageReadError as e:
            logger.error(f"[{self.conn.id}] Catalog read failed, listing truncated after {sent} entries: {e}")

        self.conn.send(EndOfListing())
        return sent

    # =========================================================================
    # DOWNLOAD
    # =========================================================================

    def handle_download(self, artist: str, song: str) -> int:
        """
        Send a FileHeader and, if the song is available, its chunks.

        Returns:
            Number of data chunks sent.

        Raises:
            TransportWriteError: If any frame fails to send. Chunks after
                                 the failing one are never sent.
        """
        file_name = format_file_name(artist, song)
        data = self._load_song(file_name)

        if data is None:
            self.conn.send(FileHeader.not_found())
            return 0

        self.conn.send(FileHeader(found=True, artist=artist, song=song, size=len(data)))

        sent = 0
        for chunk in iter_chunks(data, self.chunk_size):
            self.conn.send(DataChunk(chunk))
            sent += 1

        logger.info(f"[{self.conn.id}] Sent {file_name!r}: {len(data)} bytes in {sent} chunks")
        return sent

    def _load_song(self, file_name: str) -> Optional[bytes]:
        """Return the song bytes, or None if it's unlisted or unreadable."""
        try:
            if not self.catalog.contains(file_name):
                logger.info(f"[{self.conn.id}] Not in catalog: {file_name!r}")
                return None
            return self.media.read(file_name)
        except StorageReadError as e:
            logger.warning(f"[{self.conn.id}] Treating {file_name!r} as not found: {e}")
            return None
