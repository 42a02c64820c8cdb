"""
Media directory access.

Files are addressed by their exact catalog name ("<Artist> - <Song>.mp3")
and always read whole. Names that would resolve outside the media root
(e.g. "../../etc/passwd") are refused the same way a missing file is.
"""

import logging
from pathlib import Path
from typing import Union

from ..errors import StorageReadError


logger = logging.getLogger(__name__)


class MediaStore:
    """Read-only access to the songs directory."""

    def __init__(self, root_dir: Union[str, Path]):
        # Resolve once so the traversal check compares absolute paths
        self.root_dir = Path(root_dir).resolve()

    def path_for(self, file_name: str) -> Path:
        """
        Resolve ``file_name`` inside the media root.

        Raises:
            StorageReadError: If the name escapes the root directory.
        """
        full_path = (self.root_dir / file_name).resolve()
        try:
            full_path.relative_to(self.root_dir)
        except ValueError:
            logger.warning(f"Path traversal attempt: {file_name!r}")
            raise StorageReadError(f"File name escapes media root: {file_name!r}", path=str(full_path))
        return full_path

    def read(self, file_name: str) -> bytes:
        """
        Return the full content of ``file_name``.

        Raises:
            StorageReadError: If the file is missing, unreadable, a
                              directory, or outside the media root.
        """
        path = self.path_for(file_name)
        try:
            return path.read_bytes()
        except OSError as e:
            raise StorageReadError(f"Cannot read media file {path}: {e}", path=str(path)) from e
