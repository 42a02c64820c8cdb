"""
Unit tests for the catalog and the media store.
"""

from pathlib import Path

import pytest

from mp3server.errors import StorageReadError
from mp3server.storage import (
    Catalog,
    CatalogEntry,
    MediaStore,
    format_file_name,
    format_listing_entry,
    parse_catalog_line,
)


class TestCatalogLineFormat:
    """Tests for parsing and formatting catalog lines."""

    def test_parse(self):
        """Test splitting a catalog line into artist and song."""
        assert parse_catalog_line("Queen - Bohemian Rhapsody.mp3") == ("Queen", "Bohemian Rhapsody")

    def test_parse_strips_newline(self):
        """Test line endings are ignored."""
        assert parse_catalog_line("Queen - Bohemian Rhapsody.mp3\r\n") == ("Queen", "Bohemian Rhapsody")

    def test_hyphenated_artist(self):
        """A bare hyphen is not the separator; only ' - ' is."""
        assert parse_catalog_line("Jay-Z - Empire State of Mind.mp3") == ("Jay-Z", "Empire State of Mind")

    def test_format_file_name(self):
        """Test building a media file name."""
        assert format_file_name("Queen", "Bohemian Rhapsody") == "Queen - Bohemian Rhapsody.mp3"

    def test_format_listing_entry(self):
        """Test building a listing line."""
        assert format_listing_entry("Queen", "Bohemian Rhapsody") == '* "Bohemian Rhapsody" by: Queen'

    @pytest.mark.parametrize("artist,song", [
        ("Queen", "Bohemian Rhapsody"),
        ("Jay-Z", "99 Problems"),
        ("AC/DC", "Back In Black"),
        ("Sigur Rós", "Hoppípolla"),
        ("Artist", "Song - Remix"),  # " - " in the song survives
    ])
    def test_round_trip(self, artist, song):
        """Test format then parse gives back the same names."""
        assert parse_catalog_line(format_file_name(artist, song)) == (artist, song)

    def test_known_ambiguity_separator_in_artist(self):
        """
        Known limitation: an artist containing ' - ' is split at the first
        separator, so part of the artist ends up in the song.
        """
        line = format_file_name("Sly - The Family", "Stand")

        assert line == "Sly - The Family - Stand.mp3"
        assert parse_catalog_line(line) == ("Sly", "The Family - Stand")

    def test_missing_separator(self):
        """Test a line without " - " is malformed."""
        with pytest.raises(ValueError):
            parse_catalog_line("JustATitle.mp3")

    def test_missing_suffix(self):
        """Test a line without .mp3 is malformed."""
        with pytest.raises(ValueError):
            parse_catalog_line("Queen - Bohemian Rhapsody.wav")


class TestCatalog:
    """Tests for reading the catalog file."""

    def test_entries_in_file_order(self, media_root: Path):
        """Test entries come back in file order."""
        catalog = Catalog(media_root / "record.txt")

        assert [e.file_name for e in catalog.entries()] == [
            "Queen - Bohemian Rhapsody.mp3",
            "Daft Punk - One More Time.mp3",
            "Silence - Empty.mp3",
            "Ghost - Missing.mp3",
        ]

    def test_entry_listing(self):
        """Test CatalogEntry.listing formatting."""
        entry = CatalogEntry(artist="Queen", song="Bohemian Rhapsody")
        assert entry.listing == '* "Bohemian Rhapsody" by: Queen'

    def test_contains_exact_line(self, media_root: Path):
        """Test lookups match whole lines, case-sensitively."""
        catalog = Catalog(media_root / "record.txt")

        assert catalog.contains("Queen - Bohemian Rhapsody.mp3")
        assert not catalog.contains("queen - bohemian rhapsody.mp3")
        assert not catalog.contains("Hidden - Track.mp3")

    def test_find(self, media_root: Path):
        """Test finding an entry by artist and song."""
        catalog = Catalog(media_root / "record.txt")

        assert catalog.find("Queen", "Bohemian Rhapsody") == CatalogEntry("Queen", "Bohemian Rhapsody")
        assert catalog.find("Unknown", "Nobody") is None

    def test_blank_and_malformed_lines_skipped(self, tmp_path: Path):
        """Test blank and malformed lines are skipped."""
        path = tmp_path / "record.txt"
        path.write_text("\nQueen - Bohemian Rhapsody.mp3\nnot a song line\n\n", encoding="utf-8")

        entries = list(Catalog(path).entries())

        assert entries == [CatalogEntry("Queen", "Bohemian Rhapsody")]

    def test_crlf_line_endings(self, tmp_path: Path):
        """Test CRLF catalogs match like LF ones."""
        path = tmp_path / "record.txt"
        path.write_bytes(b"Queen - Bohemian Rhapsody.mp3\r\n")

        assert Catalog(path).contains("Queen - Bohemian Rhapsody.mp3")

    def test_missing_file_raises_storage_error(self, tmp_path: Path):
        """Test a missing catalog raises with its path."""
        catalog = Catalog(tmp_path / "nope.txt")

        with pytest.raises(StorageReadError) as exc_info:
            list(catalog.entries())

        assert exc_info.value.path.endswith("nope.txt")

    def test_reflects_edits_between_calls(self, tmp_path: Path):
        """Test catalog edits show up on the next read."""
        path = tmp_path / "record.txt"
        path.write_text("Queen - Bohemian Rhapsody.mp3\n", encoding="utf-8")
        catalog = Catalog(path)
        assert len(list(catalog.entries())) == 1

        path.write_text("Queen - Bohemian Rhapsody.mp3\nABBA - Waterloo.mp3\n", encoding="utf-8")

        assert len(list(catalog.entries())) == 2


class TestMediaStore:
    """Tests for reading media files."""

    def test_read(self, media_root: Path):
        """Test reading a media file."""
        store = MediaStore(media_root / "songDatabase")
        assert store.read("Hidden - Track.mp3") == b"secret"

    def test_read_empty_file(self, media_root: Path):
        """Test reading an empty media file."""
        store = MediaStore(media_root / "songDatabase")
        assert store.read("Silence - Empty.mp3") == b""

    def test_missing_file(self, media_root: Path):
        """Test a missing media file is a storage error."""
        store = MediaStore(media_root / "songDatabase")

        with pytest.raises(StorageReadError):
            store.read("Ghost - Missing.mp3")

    def test_directory_is_not_readable(self, media_root: Path):
        """Test a directory named like a song is not readable."""
        (media_root / "songDatabase" / "Dir - Name.mp3").mkdir()
        store = MediaStore(media_root / "songDatabase")

        with pytest.raises(StorageReadError):
            store.read("Dir - Name.mp3")

    def test_path_traversal_blocked(self, media_root: Path):
        """Test names escaping the media root are refused."""
        store = MediaStore(media_root / "songDatabase")

        with pytest.raises(StorageReadError) as exc_info:
            store.read("../record.txt")

        assert "escapes" in str(exc_info.value)
