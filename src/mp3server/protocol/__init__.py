"""
=============================================================================
WIRE PROTOCOL
=============================================================================

Everything needed to talk to the server, independent of sockets and
threads:

    ┌─────────────────────────────────────────────────────────────────────┐
    │  framing.py   Frame layout, versioning, recv_exact / read_frame     │
    │  messages.py  Request and response values, encode/decode            │
    │  chunking.py  Splitting file bytes into DATA_CHUNK slices           │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .framing import (
    PROTOCOL_VERSION,
    MAX_FRAME_PAYLOAD,
    Frame,
    MessageType,
    encode_frame,
    parse_frame_header,
    read_frame,
    recv_exact,
)
from .messages import (
    Message,
    Request,
    Response,
    ListCatalog,
    DownloadSong,
    CatalogHeader,
    FileHeader,
    DataChunk,
    ListingEntry,
    EndOfListing,
    decode_request,
    decode_response,
)
from .chunking import iter_chunks, chunk_count

__all__ = [
    # Framing
    "PROTOCOL_VERSION",
    "MAX_FRAME_PAYLOAD",
    "Frame",
    "MessageType",
    "encode_frame",
    "parse_frame_header",
    "read_frame",
    "recv_exact",

    # Messages
    "Message",
    "Request",
    "Response",
    "ListCatalog",
    "DownloadSong",
    "CatalogHeader",
    "FileHeader",
    "DataChunk",
    "ListingEntry",
    "EndOfListing",
    "decode_request",
    "decode_response",

    # Transfer
    "iter_chunks",
    "chunk_count",
]
