"""
=============================================================================
FILE STORE
=============================================================================

A byte-addressable read/write store keyed by path, backing /files/<name>.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         FileStore                                    │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   exists("notes.txt")          → <directory>/notes.txt is a file?   │
    │   read("notes.txt")            → full contents as text              │
    │   write("notes.txt", "hello")  → create or overwrite                 │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Known gaps, deliberately not handled here:

- NO TRAVERSAL CHECK: "../secret" is joined as-is and may leave the
  directory. Only a leading "/" is dropped so a name cannot replace the
  directory outright.
- NO LOCKING: two connections writing the same name race, last write wins.
- NO ATOMICITY: a failed write may leave a partial file behind.

Contents are read and written as raw bytes and converted with UTF-8, so
line endings survive unchanged in both directions.
"""

import logging
import os
from pathlib import Path

from .errors import FileIOError


logger = logging.getLogger(__name__)


class FileStore:
    """
    Filesystem-backed store rooted at a base directory.

    Usage:
        store = FileStore("/tmp/")
        store.write("hello.txt", "hi")
        if store.exists("hello.txt"):
            text = store.read("hello.txt")
    """

    ENCODING = "utf-8"

    def __init__(self, directory: str = ""):
        """
        Args:
            directory: Base directory. Empty string = relative to the
                       process working directory.
        """
        self.directory = directory

    def path_for(self, name: str) -> Path:
        """Map a store key to its filesystem path: <directory>/<name>."""
        return Path(os.path.join(self.directory, name.lstrip("/")))

    def exists(self, name: str) -> bool:
        """True if <directory>/<name> exists and is a regular file."""
        return self.path_for(name).is_file()

    def read(self, name: str) -> str:
        """
        Read the full contents of a file as text.

        Raises:
            FileIOError: If the file cannot be read or is not UTF-8.
        """
        path = self.path_for(name)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise FileIOError(f"Failed to read {path}: {e}", str(path)) from e

        try:
            text = data.decode(self.ENCODING)
        except UnicodeDecodeError as e:
            raise FileIOError(f"File is not valid UTF-8: {path}", str(path)) from e

        logger.debug(f"Read {len(data)} bytes from {path}")
        return text

    def write(self, name: str, contents: str) -> None:
        """
        Create or overwrite a file.

        Raises:
            FileIOError: If the file cannot be written.
        """
        path = self.path_for(name)
        data = contents.encode(self.ENCODING)
        try:
            path.write_bytes(data)
        except OSError as e:
            raise FileIOError(f"Failed to write {path}: {e}", str(path)) from e

        logger.debug(f"Wrote {len(data)} bytes to {path}")
