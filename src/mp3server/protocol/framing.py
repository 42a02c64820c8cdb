"""
=============================================================================
BINARY FRAMING
=============================================================================

TCP is a byte stream, not a message protocol. It does not preserve
message boundaries:

    Server sends:                 Client might receive:
        send(header)                  recv() → header + half a chunk
        send(chunk)                   recv() → rest of the chunk
        send(chunk)                   recv() → next chunk

So every message is wrapped in a FRAME that says exactly how long it is.
The receiver reads the fixed-size header first, then exactly `length`
more bytes, and never has to guess where a message ends.

=============================================================================
FRAME LAYOUT (network byte order)
=============================================================================

    ┌─────────┬─────────┬───────────────────┬──────────────────────────┐
    │ version │  type   │      length       │         payload          │
    │  uint8  │  uint8  │  uint32 (4 bytes) │      `length` bytes      │
    └─────────┴─────────┴───────────────────┴──────────────────────────┘
     0         1         2                   6

    version  Always PROTOCOL_VERSION. Anything else is rejected, so a
             future format can coexist with this one.
    type     One of MessageType.
    length   Payload size. Capped by the receiver (max_payload) so a
             hostile peer can't make us allocate gigabytes.

Strings inside payloads are encoded as:

    ┌───────────────────┬───────────────────────┐
    │ uint16 byte count │ UTF-8 bytes           │
    └───────────────────┴───────────────────────┘

=============================================================================
"""

import socket
import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

from ..errors import ProtocolDecodeError


PROTOCOL_VERSION = 1

FRAME_HEADER = struct.Struct("!BBI")

# Upper bound for frames read by clients. Servers use the much smaller
# ServerConfig.max_request_size.
MAX_FRAME_PAYLOAD = 1024 * 1024

_U8 = struct.Struct("!B")
_U16 = struct.Struct("!H")
_I64 = struct.Struct("!q")


class MessageType(IntEnum):
    """Message type tags carried in every frame header."""

    # Client → Server
    REQUEST = 0x01

    # Server → Client
    CATALOG_HEADER = 0x10
    FILE_HEADER = 0x11
    DATA_CHUNK = 0x12
    LISTING_ENTRY = 0x13
    END_OF_LISTING = 0x14


@dataclass(frozen=True)
class Frame:
    """One decoded frame: its type tag and raw payload bytes."""

    type: MessageType
    payload: bytes = b""


# =============================================================================
# ENCODING
# =============================================================================

def encode_frame(msg_type: MessageType, payload: bytes = b"") -> bytes:
    """Prefix ``payload`` with a version/type/length header."""
    if len(payload) > 0xFFFFFFFF:
        raise ValueError(f"Payload too large for one frame: {len(payload)} bytes")
    return FRAME_HEADER.pack(PROTOCOL_VERSION, int(msg_type), len(payload)) + payload


def pack_str(value: str) -> bytes:
    """Encode a string as uint16 length + UTF-8 bytes."""
    data = value.encode("utf-8")
    if len(data) > 0xFFFF:
        raise ValueError(f"String too long for protocol field: {len(data)} bytes")
    return _U16.pack(len(data)) + data


def pack_bool(value: bool) -> bytes:
    return _U8.pack(1 if value else 0)


def pack_i64(value: int) -> bytes:
    return _I64.pack(value)


# =============================================================================
# DECODING
# =============================================================================

def parse_frame_header(header: bytes, max_payload: int = MAX_FRAME_PAYLOAD) -> tuple[MessageType, int]:
    """
    Validate a raw frame header.

    Returns:
        (message type, payload length)

    Raises:
        ProtocolDecodeError: On a short header, unknown version, unknown
                             type, or a payload longer than ``max_payload``.
    """
    if len(header) != FRAME_HEADER.size:
        raise ProtocolDecodeError(
            f"Truncated frame header: expected {FRAME_HEADER.size} bytes, got {len(header)}"
        )

    version, raw_type, length = FRAME_HEADER.unpack(header)

    if version != PROTOCOL_VERSION:
        raise ProtocolDecodeError(f"Unsupported protocol version: {version}")

    try:
        msg_type = MessageType(raw_type)
    except ValueError:
        raise ProtocolDecodeError(f"Unknown message type: 0x{raw_type:02x}")

    if length > max_payload:
        raise ProtocolDecodeError(f"Frame payload too large: {length} bytes (limit {max_payload})")

    return msg_type, length


class PayloadReader:
    """
    Cursor over a payload's bytes.

    Every read checks bounds, so a payload that lies about its own field
    lengths fails with ProtocolDecodeError instead of struct.error or
    IndexError.
    """

    def __init__(self, payload: bytes):
        self._payload = payload
        self._offset = 0

    @property
    def remaining(self) -> int:
        return len(self._payload) - self._offset

    def _take(self, size: int) -> bytes:
        if size > self.remaining:
            raise ProtocolDecodeError(
                f"Truncated payload: needed {size} bytes at offset {self._offset}, "
                f"only {self.remaining} left"
            )
        data = self._payload[self._offset:self._offset + size]
        self._offset += size
        return data

    def read_bool(self) -> bool:
        value = _U8.unpack(self._take(_U8.size))[0]
        if value not in (0, 1):
            raise ProtocolDecodeError(f"Invalid boolean byte: {value}")
        return value == 1

    def read_i64(self) -> int:
        return _I64.unpack(self._take(_I64.size))[0]

    def read_str(self) -> str:
        size = _U16.unpack(self._take(_U16.size))[0]
        raw = self._take(size)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ProtocolDecodeError(f"Invalid UTF-8 in string field: {e}")

    def finish(self) -> None:
        """Ensure the whole payload was consumed."""
        if self.remaining:
            raise ProtocolDecodeError(f"Unexpected {self.remaining} trailing bytes in payload")


# =============================================================================
# READING FRAMES FROM A SOCKET
# =============================================================================

def recv_exact(sock: socket.socket, size: int, buffer_size: int = 8192,
               allow_eof: bool = False) -> bytes:
    """
    Read exactly ``size`` bytes from ``sock``.

    If ``allow_eof`` is True and the peer closes before sending a single
    byte, returns b"" (a clean close between frames). A close after some
    bytes have arrived is always a truncation error.

    Raises:
        ProtocolDecodeError: If the stream ends mid-read.
        OSError: If the socket itself fails (reset, etc.).
    """
    chunks = []
    received = 0
    while received < size:
        chunk = sock.recv(min(buffer_size, size - received))
        if not chunk:
            if received == 0 and allow_eof:
                return b""
            raise ProtocolDecodeError(
                f"Connection closed mid-frame: expected {size} bytes, got {received}"
            )
        chunks.append(chunk)
        received += len(chunk)
    return b"".join(chunks)


def read_frame(sock: socket.socket, max_payload: int = MAX_FRAME_PAYLOAD,
               buffer_size: int = 8192) -> Optional[Frame]:
    """
    Block until one complete frame arrives.

    Returns:
        The frame, or None if the peer closed the connection cleanly
        before the next frame started.
    """
    header = recv_exact(sock, FRAME_HEADER.size, buffer_size, allow_eof=True)
    if not header:
        return None

    msg_type, length = parse_frame_header(header, max_payload)
    payload = recv_exact(sock, length, buffer_size) if length else b""
    return Frame(msg_type, payload)
