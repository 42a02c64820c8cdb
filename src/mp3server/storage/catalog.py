"""
=============================================================================
SONG CATALOG
=============================================================================

The catalog is a flat text file, one media file name per line:

    Queen - Bohemian Rhapsody.mp3
    Daft Punk - One More Time.mp3
    Jay-Z - Empire State of Mind.mp3

It is the single source of truth for what the server offers. A song whose
file sits in the media directory but is NOT listed here is treated as
missing.

=============================================================================
PARSING A LINE
=============================================================================

    "Queen - Bohemian Rhapsody.mp3"
     ──┬──   ────────┬────────  ─┬─
       │             │           └── suffix, stripped
       │             └── song:   everything after the FIRST " - "
       └── artist: everything before the first " - "

Splitting on the first " - " (space, hyphen, space) keeps hyphenated
names like "Jay-Z" intact. It is still ambiguous: an artist whose own name
contains " - " is cut short and the rest leaks into the song:

    format_file_name("A - B", "C")  →  "A - B - C.mp3"
    parse_catalog_line("A - B - C.mp3")  →  ("A", "B - C")

This mis-parse is a known limitation of the line format and is left as is.

=============================================================================
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Union

from ..errors import StorageReadError


logger = logging.getLogger(__name__)


SEPARATOR = " - "
SUFFIX = ".mp3"


@dataclass(frozen=True)
class CatalogEntry:
    """One parsed catalog line."""

    artist: str
    song: str

    @property
    def file_name(self) -> str:
        return format_file_name(self.artist, self.song)

    @property
    def listing(self) -> str:
        return format_listing_entry(self.artist, self.song)


def format_file_name(artist: str, song: str) -> str:
    """Build the catalog / media file name: "<artist> - <song>.mp3"."""
    return f"{artist}{SEPARATOR}{song}{SUFFIX}"


def format_listing_entry(artist: str, song: str) -> str:
    """Build the human-readable listing line: * "<song>" by: <artist>"""
    return f'* "{song}" by: {artist}'


def parse_catalog_line(line: str) -> tuple[str, str]:
    """
    Split a catalog line into (artist, song).

    Raises:
        ValueError: If the line lacks the " - " separator or the .mp3 suffix.
    """
    line = line.rstrip("\r\n")
    if not line.endswith(SUFFIX):
        raise ValueError(f"Catalog line does not end with {SUFFIX!r}: {line!r}")

    stem = line[:-len(SUFFIX)]
    artist, sep, song = stem.partition(SEPARATOR)
    if not sep:
        raise ValueError(f"Catalog line has no {SEPARATOR!r} separator: {line!r}")

    return artist, song


class Catalog:
    """
    Read-only view of the catalog file.

    Every call opens the file, reads it front to back, and closes it again.
    Nothing is cached, so edits to the file show up on the next request.
    Safe to share between handler threads because it holds no mutable state.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def lines(self) -> Iterator[str]:
        """
        Yield non-blank catalog lines in file order.

        Raises:
            StorageReadError: If the file cannot be opened or read. Lines
                              already yielded stay valid.
        """
        try:
            with self.path.open("r", encoding="utf-8") as f:
                for raw in f:
                    line = raw.rstrip("\r\n")
                    if line.strip():
                        yield line
        except (OSError, UnicodeDecodeError) as e:
            raise StorageReadError(f"Cannot read catalog {self.path}: {e}", path=str(self.path)) from e

    def entries(self) -> Iterator[CatalogEntry]:
        """
        Yield parsed entries in file order.

        Malformed lines are logged and skipped.
        """
        for line in self.lines():
            try:
                artist, song = parse_catalog_line(line)
            except ValueError as e:
                logger.warning(f"Skipping malformed catalog line: {e}")
                continue
            yield CatalogEntry(artist=artist, song=song)

    def contains(self, file_name: str) -> bool:
        """
        True if ``file_name`` appears as an exact line of the catalog.

        Raises:
            StorageReadError: If the catalog cannot be read.
        """
        return any(line == file_name for line in self.lines())

    def find(self, artist: str, song: str) -> Optional[CatalogEntry]:
        """Look up an entry by artist and song; None if absent."""
        if self.contains(format_file_name(artist, song)):
            return CatalogEntry(artist=artist, song=song)
        return None
