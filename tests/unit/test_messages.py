"""
Unit tests for protocol message encoding and decoding.
"""

import struct

import pytest

from mp3server.errors import ProtocolDecodeError
from mp3server.protocol import (
    CatalogHeader,
    DataChunk,
    DownloadSong,
    EndOfListing,
    FileHeader,
    Frame,
    ListCatalog,
    ListingEntry,
    MessageType,
    decode_request,
    decode_response,
    encode_frame,
)
from mp3server.protocol.framing import pack_bool, pack_i64, pack_str


def to_frame(data: bytes) -> Frame:
    """Split encoded bytes back into a Frame (header already validated elsewhere)."""
    return Frame(MessageType(data[1]), data[6:])


class TestRequests:
    """Tests for client → server messages."""

    def test_download_request(self):
        """Test a download request keeps artist and song."""
        frame = to_frame(DownloadSong("Queen", "Bohemian Rhapsody").to_bytes())

        assert frame.type == MessageType.REQUEST
        assert decode_request(frame) == DownloadSong("Queen", "Bohemian Rhapsody")

    def test_list_request(self):
        """Test a listing request ignores the name fields."""
        assert decode_request(to_frame(ListCatalog().to_bytes())) == ListCatalog()

    def test_list_request_ignores_artist_and_song(self):
        """is_download=False means a listing, whatever the other fields say."""
        payload = pack_bool(False) + pack_str("Queen") + pack_str("Bohemian Rhapsody")

        assert decode_request(Frame(MessageType.REQUEST, payload)) == ListCatalog()

    def test_non_ascii_names(self):
        """Test artist and song names outside ASCII."""
        request = DownloadSong("Sigur Rós", "Hoppípolla")
        assert decode_request(to_frame(request.to_bytes())) == request

    def test_response_frame_is_not_a_request(self):
        """Test the server refuses response-type frames."""
        with pytest.raises(ProtocolDecodeError):
            decode_request(to_frame(CatalogHeader().to_bytes()))

    def test_truncated_request_payload(self):
        """Test a request payload cut short."""
        payload = pack_bool(True) + pack_str("Queen")  # song missing

        with pytest.raises(ProtocolDecodeError):
            decode_request(Frame(MessageType.REQUEST, payload))

    def test_empty_request_payload(self):
        """Test a request frame with no payload at all."""
        with pytest.raises(ProtocolDecodeError):
            decode_request(Frame(MessageType.REQUEST, b""))


class TestFileHeader:
    """Tests for FileHeader encoding and its invariants."""

    def test_found_header(self):
        """Test a found header carries names and size."""
        header = FileHeader(found=True, artist="Queen", song="Bohemian Rhapsody", size=2500)
        assert decode_response(to_frame(header.to_bytes())) == header

    def test_not_found_header(self):
        """Test the not-found header is ("", "", -1)."""
        header = FileHeader.not_found()

        assert header == FileHeader(False, "", "", -1)
        assert decode_response(to_frame(header.to_bytes())) == header

    def test_zero_size_is_valid(self):
        """Test an empty file is still found."""
        header = FileHeader(found=True, artist="Silence", song="Empty", size=0)
        assert decode_response(to_frame(header.to_bytes())).size == 0

    def test_found_with_negative_size_rejected(self):
        """Test found=True with a negative size."""
        payload = pack_bool(True) + pack_str("A") + pack_str("B") + pack_i64(-1)

        with pytest.raises(ProtocolDecodeError):
            decode_response(Frame(MessageType.FILE_HEADER, payload))

    def test_not_found_with_names_rejected(self):
        """Test found=False must not carry names."""
        payload = pack_bool(False) + pack_str("A") + pack_str("B") + pack_i64(-1)

        with pytest.raises(ProtocolDecodeError):
            decode_response(Frame(MessageType.FILE_HEADER, payload))


class TestOtherResponses:
    """Tests for headers, chunks and listing messages."""

    def test_catalog_header_is_empty(self):
        """Test the catalog header has no payload."""
        assert CatalogHeader().to_bytes() == encode_frame(MessageType.CATALOG_HEADER)

    def test_data_chunk_payload_is_raw(self):
        """Test chunk payload is the file bytes unchanged."""
        data = bytes(range(256)) * 3
        encoded = DataChunk(data).to_bytes()

        assert encoded[6:] == data
        assert decode_response(to_frame(encoded)) == DataChunk(data)

    def test_listing_entry(self):
        """Test a listing entry carries its text."""
        entry = ListingEntry('* "Bohemian Rhapsody" by: Queen')
        assert decode_response(to_frame(entry.to_bytes())) == entry

    def test_end_marker_distinct_from_empty_entry(self):
        """An empty listing string and the end marker are different messages."""
        empty = decode_response(to_frame(ListingEntry("").to_bytes()))
        end = decode_response(to_frame(EndOfListing().to_bytes()))

        assert isinstance(empty, ListingEntry)
        assert isinstance(end, EndOfListing)

    def test_end_marker_with_payload_rejected(self):
        """Test the end marker must be empty."""
        with pytest.raises(ProtocolDecodeError):
            decode_response(Frame(MessageType.END_OF_LISTING, b"x"))

    def test_request_is_not_a_response(self):
        """Test the client refuses request-type frames."""
        with pytest.raises(ProtocolDecodeError):
            decode_response(to_frame(ListCatalog().to_bytes()))

    def test_frame_length_matches_payload(self):
        """Test the header length field equals the payload size."""
        encoded = FileHeader(True, "Queen", "Bohemian Rhapsody", 2500).to_bytes()
        (length,) = struct.unpack("!I", encoded[2:6])

        assert length == len(encoded) - 6
