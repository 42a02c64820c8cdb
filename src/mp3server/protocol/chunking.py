"""
Splitting file content into DATA_CHUNK-sized slices.

    2500 bytes, chunk_size=1000:

    ┌──────────────┬──────────────┬────────┐
    │  0 .. 999    │ 1000 .. 1999 │ 2000.. │
    │  1000 bytes  │  1000 bytes  │  500   │
    └──────────────┴──────────────┴────────┘

Exact multiples end on a full chunk (2000 bytes → 2 chunks, never a
trailing empty one). An empty file yields no chunks at all; the receiver
already knows from FileHeader.size == 0 that nothing follows.
"""

from typing import Iterator

from ..config import CHUNK_SIZE


def iter_chunks(data: bytes, chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
    """Yield consecutive slices of ``data``, each at most ``chunk_size`` bytes."""
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")

    view = memoryview(data)
    for start in range(0, len(data), chunk_size):
        yield bytes(view[start:start + chunk_size])


def chunk_count(size: int, chunk_size: int = CHUNK_SIZE) -> int:
    """Number of chunks iter_chunks() produces for ``size`` bytes (ceil division)."""
    return -(-size // chunk_size)
