"""Filesystem helpers scoped to the local repository directory.

All paths handed to :class:`LocalFileSystem` are repository-relative and use
forward slashes, matching what ``git status`` reports.
"""

from __future__ import annotations

import logging
import posixpath
from pathlib import Path

from lockkeeper.exceptions import PathOutsideRepositoryError

logger = logging.getLogger(__name__)


class LocalFileSystem:
    """Read/write access to files inside one checked-out repository."""

    def __init__(self, local_dir: str | Path, cache_dir: str | Path | None = None) -> None:
        self.local_dir = Path(local_dir).resolve()
        self.cache_dir = Path(cache_dir) if cache_dir is not None else None

    @staticmethod
    def get_sibling_file_name(file_name: str, sibling_name: str) -> str:
        """Replace the last path segment of *file_name* with *sibling_name*.

        Examples:
            composer.json        -> vendor
            app/composer.json    -> app/vendor
        """
        return posixpath.join(posixpath.dirname(file_name), sibling_name)

    def resolve(self, file_name: str) -> Path:
        """Map a repository-relative path to an absolute path inside the repo."""
        candidate = (self.local_dir / file_name).resolve()
        if candidate != self.local_dir and self.local_dir not in candidate.parents:
            raise PathOutsideRepositoryError(file_name)
        return candidate

    def read_local_file(self, file_name: str) -> str | None:
        """Return the file's text, or None if it does not exist."""
        data = self.read_local_file_bytes(file_name)
        return data.decode("utf-8") if data is not None else None

    def read_local_file_bytes(self, file_name: str) -> bytes | None:
        """Return the file's raw bytes, or None if it does not exist."""
        path = self.resolve(file_name)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            logger.debug("File not found: %s", file_name)
            return None

    def write_local_file(self, file_name: str, content: str) -> None:
        path = self.resolve(file_name)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content.encode("utf-8"))

    def local_path_exists(self, file_name: str) -> bool:
        return self.resolve(file_name).exists()

    def ensure_local_dir(self, dir_name: str) -> str:
        path = self.resolve(dir_name)
        path.mkdir(parents=True, exist_ok=True)
        return str(path)

    def ensure_cache_dir(self, name: str) -> str:
        """Create (if needed) and return a per-tool cache directory."""
        if self.cache_dir is None:
            raise ValueError("no cache directory configured")
        path = self.cache_dir / "others" / name
        path.mkdir(parents=True, exist_ok=True)
        return str(path)
