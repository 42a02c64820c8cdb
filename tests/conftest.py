"""
pytest configuration and fixtures.
"""

import socket
import threading
import time
from pathlib import Path
from typing import Generator
import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from mp3server import MP3Server, ServerConfig, MP3Client
from mp3server.core import Connection


QUEEN_SIZE = 2500
DAFT_PUNK_SIZE = 2000


def song_bytes(size: int, seed: int = 0) -> bytes:
    """Deterministic, non-repeating-per-chunk content so reordering would show."""
    return bytes((i * 7 + seed + i // 1000) % 256 for i in range(size))


@pytest.fixture
def media_root(tmp_path: Path) -> Path:
    """
    A catalog plus songs directory:

        Queen - Bohemian Rhapsody.mp3    2500 bytes
        Daft Punk - One More Time.mp3    2000 bytes (exact multiple)
        Silence - Empty.mp3                 0 bytes
        Ghost - Missing.mp3              listed, but no file on disk

    plus "Hidden - Track.mp3" on disk but NOT in the catalog.
    """
    songs = tmp_path / "songDatabase"
    songs.mkdir()

    (songs / "Queen - Bohemian Rhapsody.mp3").write_bytes(song_bytes(QUEEN_SIZE, seed=1))
    (songs / "Daft Punk - One More Time.mp3").write_bytes(song_bytes(DAFT_PUNK_SIZE, seed=2))
    (songs / "Silence - Empty.mp3").write_bytes(b"")
    (songs / "Hidden - Track.mp3").write_bytes(b"secret")

    (tmp_path / "record.txt").write_text(
        "Queen - Bohemian Rhapsody.mp3\n"
        "Daft Punk - One More Time.mp3\n"
        "Silence - Empty.mp3\n"
        "Ghost - Missing.mp3\n",
        encoding="utf-8",
    )
    return tmp_path


@pytest.fixture
def config(media_root: Path) -> ServerConfig:
    """Test server configuration pointing at media_root."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        catalog_path=str(media_root / "record.txt"),
        songs_dir=str(media_root / "songDatabase"),
        log_level="WARNING",
    )


@pytest.fixture
def socket_pair() -> Generator[tuple[Connection, socket.socket], None, None]:
    """
    A server-side Connection wired to a plain client socket, no listener.

    Useful for driving a ClientHandler directly.
    """
    server_sock, client_sock = socket.socketpair()
    conn = Connection(socket=server_sock, address=("127.0.0.1", 0))
    yield conn, client_sock
    conn.close()
    client_sock.close()


class TestServer:
    """Test server helper that runs the accept loop in a background thread."""

    __test__ = False  # not a test class

    def __init__(self, server: MP3Server):
        self.server = server
        self.port: int = 0
        self._thread: threading.Thread = None
        self.error: BaseException = None

    def start(self):
        """Bind, then run the accept loop in a background thread."""
        _, self.port = self.server.start(0)

        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

        # Wait for the accept loop to be live
        for _ in range(50):  # 5 seconds max
            if self.server.is_running:
                return
            time.sleep(0.1)

        raise RuntimeError("Server failed to start")

    def _run(self):
        try:
            self.server.run()
        except BaseException as e:
            self.error = e

    def client(self) -> MP3Client:
        return MP3Client("127.0.0.1", self.port, timeout=5.0)

    def stop(self):
        """Stop the server."""
        self.server.shutdown()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)


@pytest.fixture
def test_server(config: ServerConfig) -> Generator[TestServer, None, None]:
    """A running server on a free port."""
    test_srv = TestServer(MP3Server(config))
    test_srv.start()

    yield test_srv

    test_srv.stop()
