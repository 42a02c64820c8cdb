"""
=============================================================================
BLOCKING PROTOCOL CLIENT
=============================================================================

A small client for the MP3 server protocol. One MP3Client holds one TCP
connection and can issue any number of requests over it, one at a time.

    with MP3Client("127.0.0.1", 3000) as client:
        for line in client.list_catalog():
            print(line)

        result = client.download("Queen", "Bohemian Rhapsody")
        if result.found:
            Path("song.mp3").write_bytes(result.data)

=============================================================================
"""

import socket
from dataclasses import dataclass, field
from typing import Optional

from .errors import ProtocolDecodeError
from .protocol import (
    MAX_FRAME_PAYLOAD,
    CatalogHeader,
    DataChunk,
    DownloadSong,
    EndOfListing,
    FileHeader,
    ListCatalog,
    ListingEntry,
    Message,
    Response,
    decode_response,
    read_frame,
)


@dataclass
class DownloadResult:
    """Header plus every chunk received for one download."""

    header: FileHeader
    chunks: list[bytes] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.header.found

    @property
    def data(self) -> bytes:
        return b"".join(self.chunks)


class MP3Client:
    """
    Blocking client for one server connection.

    Raises ProtocolDecodeError if the server sends something that doesn't
    fit the conversation (wrong header type, missing chunks, etc.) and
    ConnectionError if the server closes mid-response.
    """

    def __init__(self, host: str = "127.0.0.1", port: int = 3000, timeout: Optional[float] = None):
        self.host = host
        self.port = port
        self.timeout = timeout
        self._socket: Optional[socket.socket] = None

    def connect(self) -> "MP3Client":
        if self._socket is None:
            self._socket = socket.create_connection((self.host, self.port), timeout=self.timeout)
        return self

    def close(self) -> None:
        if self._socket is not None:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

    def __enter__(self) -> "MP3Client":
        return self.connect()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    # =========================================================================
    # LOW LEVEL
    # =========================================================================

    def send(self, message: Message) -> None:
        self.connect()
        self._socket.sendall(message.to_bytes())

    def receive(self) -> Response:
        """Read and decode the next response frame."""
        self.connect()
        frame = read_frame(self._socket, max_payload=MAX_FRAME_PAYLOAD)
        if frame is None:
            raise ConnectionError("Server closed the connection")
        return decode_response(frame)

    # =========================================================================
    # REQUESTS
    # =========================================================================

    def list_catalog(self) -> list[str]:
        """Request the catalog and return the formatted listing lines."""
        self.send(ListCatalog())

        header = self.receive()
        if not isinstance(header, CatalogHeader):
            raise ProtocolDecodeError(f"Expected CatalogHeader, got {type(header).__name__}")

        lines = []
        while True:
            message = self.receive()
            if isinstance(message, EndOfListing):
                return lines
            if not isinstance(message, ListingEntry):
                raise ProtocolDecodeError(f"Unexpected {type(message).__name__} inside a listing")
            lines.append(message.text)

    def download(self, artist: str, song: str) -> DownloadResult:
        """Request one song; reads chunks until header.size bytes arrived."""
        self.send(DownloadSong(artist=artist, song=song))

        header = self.receive()
        if not isinstance(header, FileHeader):
            raise ProtocolDecodeError(f"Expected FileHeader, got {type(header).__name__}")

        result = DownloadResult(header=header)
        if not header.found:
            return result

        received = 0
        while received < header.size:
            message = self.receive()
            if not isinstance(message, DataChunk):
                raise ProtocolDecodeError(f"Unexpected {type(message).__name__} inside a download")
            result.chunks.append(message.data)
            received += len(message.data)

        if received != header.size:
            raise ProtocolDecodeError(f"Received {received} bytes, header announced {header.size}")

        return result
