"""
Resolve cached library entries back to playable files under the music root.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union

from music_radio.config import Config
from music_radio.models import LibraryEntry


logger = logging.getLogger(__name__)


def verify_permission(path: Union[str, Path]) -> bool:
    """Check that a directory exists and can be listed and read."""
    return os.path.isdir(path) and os.access(path, os.R_OK | os.X_OK)


def try_use_cached_folder(config: Config) -> Optional[Path]:
    """Return the configured music root if it is still usable.

    A lapsed or missing folder gives None so the caller can ask the user
    to pick a folder again.
    """
    root = config.music_root
    if not root or not verify_permission(root):
        logger.warning(f"Music folder is not accessible: {root}")
        return None
    return Path(root)


def find_file_recursive(root: Path, file_name: str) -> Optional[Path]:
    """Depth-first search for a file by name below ``root``."""
    direct = root / file_name
    if direct.is_file():
        return direct

    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        if file_name in filenames:
            return Path(dirpath) / file_name
    return None


class FileLoader:
    """Maps library entries to files on disk."""

    def __init__(self, root: Union[str, Path, None] = None, config: Optional[Config] = None):
        """Initialize file loader.

        Args:
            root: Music root. If None, the configured root is used when it
                passes the permission check.
            config: Configuration object.
        """
        self.config = config or Config()
        self._root = Path(root) if root is not None else None

    @property
    def root(self) -> Optional[Path]:
        if self._root is not None:
            return self._root if verify_permission(self._root) else None
        return try_use_cached_folder(self.config)

    def resolve(self, entry: LibraryEntry) -> Optional[Path]:
        """Find the file behind an entry.

        Tries the stored relative path first, then searches the tree for a
        file with the same name (the file may have moved).

        Args:
            entry: Library entry to resolve.

        Returns:
            Path to the file, or None if it cannot be found or read.
        """
        if not entry or not entry.file_path:
            logger.error("Cannot load audio file: entry or file path is missing")
            return None

        root = self.root
        if root is None:
            logger.error("No usable music folder available")
            return None

        candidate = root / entry.file_path
        if candidate.is_file():
            return candidate

        found = find_file_recursive(root, entry.file_name or Path(entry.file_path).name)
        if found is None:
            logger.error(f"File not found: {entry.file_path}")
        return found
