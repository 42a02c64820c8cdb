"""
=============================================================================
PROTOCOL MESSAGES
=============================================================================

Typed values for everything that crosses the wire. Each message knows how
to turn itself into a frame (``to_bytes``) and how to rebuild itself from
a frame payload (``from_payload``).

=============================================================================
CONVERSATIONS
=============================================================================

    LISTING                               DOWNLOAD (found)
    ───────                               ────────────────
    C → S  ListCatalog                    C → S  DownloadSong(artist, song)
    S → C  CatalogHeader                  S → C  FileHeader(True, a, s, 2500)
    S → C  ListingEntry('* "..." by: ..') S → C  DataChunk(1000 bytes)
    S → C  ListingEntry(...)              S → C  DataChunk(1000 bytes)
    S → C  EndOfListing                   S → C  DataChunk(500 bytes)

    DOWNLOAD (not found)
    ────────────────────
    C → S  DownloadSong(artist, song)
    S → C  FileHeader(False, "", "", -1)          (no chunks follow)

Both request kinds share one wire type (REQUEST) with an ``is_download``
flag; when the flag is clear the artist and song fields are ignored.

EndOfListing is its own message type, so it can never be confused with a
listing string, even an empty one.

=============================================================================
"""

from dataclasses import dataclass
from typing import ClassVar, Union

from ..errors import ProtocolDecodeError
from .framing import (
    Frame,
    MessageType,
    PayloadReader,
    encode_frame,
    pack_bool,
    pack_i64,
    pack_str,
)


class Message:
    """Base class: subclasses set MESSAGE_TYPE and implement to_payload()."""

    MESSAGE_TYPE: ClassVar[MessageType]

    def to_payload(self) -> bytes:
        return b""

    def to_bytes(self) -> bytes:
        """Serialize as one complete frame."""
        return encode_frame(self.MESSAGE_TYPE, self.to_payload())


# =============================================================================
# REQUESTS (client → server)
# =============================================================================

@dataclass(frozen=True)
class ListCatalog(Message):
    """Ask for the catalog listing."""

    MESSAGE_TYPE: ClassVar[MessageType] = MessageType.REQUEST

    def to_payload(self) -> bytes:
        return pack_bool(False) + pack_str("") + pack_str("")


@dataclass(frozen=True)
class DownloadSong(Message):
    """Ask for one song's bytes."""

    MESSAGE_TYPE: ClassVar[MessageType] = MessageType.REQUEST

    artist: str
    song: str

    def to_payload(self) -> bytes:
        return pack_bool(True) + pack_str(self.artist) + pack_str(self.song)


Request = Union[ListCatalog, DownloadSong]


def decode_request_payload(payload: bytes) -> Request:
    """Decode a REQUEST payload into ListCatalog or DownloadSong."""
    reader = PayloadReader(payload)
    is_download = reader.read_bool()
    artist = reader.read_str()
    song = reader.read_str()
    reader.finish()

    if is_download:
        return DownloadSong(artist=artist, song=song)
    return ListCatalog()


# =============================================================================
# RESPONSES (server → client)
# =============================================================================

@dataclass(frozen=True)
class CatalogHeader(Message):
    """Announces that a listing follows."""

    MESSAGE_TYPE: ClassVar[MessageType] = MessageType.CATALOG_HEADER

    @classmethod
    def from_payload(cls, payload: bytes) -> "CatalogHeader":
        PayloadReader(payload).finish()
        return cls()


@dataclass(frozen=True)
class FileHeader(Message):
    """
    Outcome of a download request.

    found=False always travels as ("", "", -1). found=True carries the
    real artist/song and the exact byte count that the chunks will add up to.
    """

    MESSAGE_TYPE: ClassVar[MessageType] = MessageType.FILE_HEADER

    found: bool
    artist: str = ""
    song: str = ""
    size: int = -1

    @classmethod
    def not_found(cls) -> "FileHeader":
        return cls(found=False, artist="", song="", size=-1)

    def to_payload(self) -> bytes:
        return (
            pack_bool(self.found)
            + pack_str(self.artist)
            + pack_str(self.song)
            + pack_i64(self.size)
        )

    @classmethod
    def from_payload(cls, payload: bytes) -> "FileHeader":
        reader = PayloadReader(payload)
        found = reader.read_bool()
        artist = reader.read_str()
        song = reader.read_str()
        size = reader.read_i64()
        reader.finish()

        if found and size < 0:
            raise ProtocolDecodeError(f"Found file header with negative size: {size}")
        if not found and (size != -1 or artist or song):
            raise ProtocolDecodeError("Not-found file header must be ('', '', -1)")

        return cls(found=found, artist=artist, song=song, size=size)


@dataclass(frozen=True)
class DataChunk(Message):
    """One slice of file content, in file order."""

    MESSAGE_TYPE: ClassVar[MessageType] = MessageType.DATA_CHUNK

    data: bytes

    def to_payload(self) -> bytes:
        return self.data

    @classmethod
    def from_payload(cls, payload: bytes) -> "DataChunk":
        return cls(data=payload)


@dataclass(frozen=True)
class ListingEntry(Message):
    """One formatted catalog line: * "<song>" by: <artist>"""

    MESSAGE_TYPE: ClassVar[MessageType] = MessageType.LISTING_ENTRY

    text: str

    def to_payload(self) -> bytes:
        return self.text.encode("utf-8")

    @classmethod
    def from_payload(cls, payload: bytes) -> "ListingEntry":
        try:
            return cls(text=payload.decode("utf-8"))
        except UnicodeDecodeError as e:
            raise ProtocolDecodeError(f"Invalid UTF-8 in listing entry: {e}") from e


@dataclass(frozen=True)
class EndOfListing(Message):
    """Terminates a listing stream."""

    MESSAGE_TYPE: ClassVar[MessageType] = MessageType.END_OF_LISTING

    @classmethod
    def from_payload(cls, payload: bytes) -> "EndOfListing":
        PayloadReader(payload).finish()
        return cls()


Response = Union[CatalogHeader, FileHeader, DataChunk, ListingEntry, EndOfListing]


# =============================================================================
# DISPATCH
# =============================================================================

_RESPONSE_DECODERS = {
    MessageType.CATALOG_HEADER: CatalogHeader.from_payload,
    MessageType.FILE_HEADER: FileHeader.from_payload,
    MessageType.DATA_CHUNK: DataChunk.from_payload,
    MessageType.LISTING_ENTRY: ListingEntry.from_payload,
    MessageType.END_OF_LISTING: EndOfListing.from_payload,
}


def decode_request(frame: Frame) -> Request:
    """
    Decode a frame the server received.

    Raises:
        ProtocolDecodeError: If the frame is not a well-formed REQUEST.
    """
    if frame.type != MessageType.REQUEST:
        raise ProtocolDecodeError(f"Expected a request frame, got {frame.type.name}")
    return decode_request_payload(frame.payload)


def decode_response(frame: Frame) -> Response:
    """
    Decode a frame the client received.

    Raises:
        ProtocolDecodeError: If the frame is a request or malformed.
    """
    decoder = _RESPONSE_DECODERS.get(frame.type)
    if decoder is None:
        raise ProtocolDecodeError(f"Expected a response frame, got {frame.type.name}")
    return decoder(frame.payload)
