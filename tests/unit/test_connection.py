"""
Unit tests for the per-client Connection wrapper.
"""

import pytest

from mp3server.core import ConnectionState
from mp3server.errors import TransportWriteError
from mp3server.protocol import FileHeader, ListingEntry, read_frame


class FailingSocket:
    """Stands in for a socket whose sendall() fails after a partial write."""

    def __init__(self, error: OSError):
        self.error = error
        self.closed = False

    def sendall(self, data):
        raise self.error

    def shutdown(self, how):
        pass

    def close(self):
        self.closed = True


class TestConnectionSend:
    """Tests for Connection.send error handling."""

    def test_send_writes_one_frame(self, socket_pair):
        """Test a sent message arrives as exactly one frame."""
        conn, client = socket_pair

        conn.send(ListingEntry("hello"))

        frame = read_frame(client)
        assert frame.payload == b"hello"
        assert conn.frames_sent == 1

    def test_peer_closed_marks_broken(self, socket_pair):
        """Test a broken pipe makes the connection unusable."""
        conn, client = socket_pair
        client.close()

        with pytest.raises(TransportWriteError) as exc_info:
            conn.send(ListingEntry("x" * 100_000))

        assert exc_info.value.connection_lost
        assert not conn.is_usable

    @pytest.mark.parametrize("error", [
        TimeoutError("timed out"),
        OSError(113, "No route to host"),
    ])
    def test_any_socket_error_marks_broken(self, socket_pair, error):
        """Test non-reset write errors also end the connection."""
        conn, _ = socket_pair
        real_socket = conn.socket
        conn.socket = FailingSocket(error)
        try:
            with pytest.raises(TransportWriteError) as exc_info:
                conn.send(ListingEntry("partial"))
        finally:
            conn.socket = real_socket

        assert exc_info.value.connection_lost
        assert not conn.is_usable

    def test_unencodable_message_keeps_connection(self, socket_pair):
        """Test an encode failure writes nothing and leaves the socket usable."""
        conn, client = socket_pair

        with pytest.raises(TransportWriteError) as exc_info:
            conn.send(FileHeader(True, "a" * 70_000, "song", 1))

        assert not exc_info.value.connection_lost
        assert conn.is_usable

        conn.send(ListingEntry("after"))
        assert read_frame(client).payload == b"after"

    def test_send_after_close(self, socket_pair):
        """Test sending on a closed connection fails as lost."""
        conn, _ = socket_pair
        conn.close()

        with pytest.raises(TransportWriteError) as exc_info:
            conn.send(ListingEntry("late"))

        assert exc_info.value.connection_lost


class TestConnectionClose:
    """Tests for closing a connection."""

    def test_close_is_idempotent(self, socket_pair):
        """Test close() can be called twice."""
        conn, _ = socket_pair

        conn.close()
        conn.close()

        assert conn.state == ConnectionState.CLOSED

    def test_peer_sees_end_of_stream(self, socket_pair):
        """Test the client reads EOF after close()."""
        conn, client = socket_pair

        with conn:
            conn.send(ListingEntry("bye"))

        assert read_frame(client).payload == b"bye"
        assert read_frame(client) is None
