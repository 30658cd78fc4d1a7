"""
Scanner module for finding audio files and computing stable track IDs.
"""

import logging
import os
from pathlib import Path
from typing import Iterator, List, Optional

from music_radio.config import Config
from music_radio.models import ScannedFile


logger = logging.getLogger(__name__)


def generate_id(text: str) -> str:
    """Compute a deterministic 32-bit string hash of ``text``.

    Polynomial base-31 hash over UTF-16 code units with signed 32-bit
    wrap-around, stringified. Not a uniqueness guarantee: colliding paths
    overwrite each other.

    Args:
        text: Input string (usually a relative file path or station name).

    Returns:
        Decimal string, possibly negative.
    """
    h = 0
    encoded = text.encode("utf-16-le")
    for i in range(0, len(encoded), 2):
        code_unit = encoded[i] | (encoded[i + 1] << 8)
        h = (h * 31 + code_unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return str(h)


class Scanner:
    """Scanner for finding and inventorying audio files."""

    def __init__(self, config: Optional[Config] = None):
        """Initialize scanner.

        Args:
            config: Configuration object.
        """
        self.config = config or Config()
        self.supported_formats = self.config.supported_formats
        self.music_root = self.config.music_root
        self.unreadable_dirs: List[Path] = []

    def is_audio_file(self, filename: str) -> bool:
        """Check a file name against the extension allowlist (case-insensitive)."""
        lower = filename.lower()
        return any(lower.endswith("." + ext) for ext in self.supported_formats)

    def find_audio_files(self, root_dir: Optional[str] = None) -> Iterator[Path]:
        """Recursively find all audio files in directory.

        Subdirectories that cannot be listed are logged, recorded in
        ``unreadable_dirs`` and skipped; the rest of the walk continues.

        Args:
            root_dir: Root directory to search. Uses config music_root if None.

        Yields:
            Path objects for each audio file found.
        """
        root = root_dir or self.music_root

        if not os.path.isdir(root):
            logger.warning(f"Music directory does not exist: {root}")
            return

        logger.info(f"Scanning for audio files in: {root}")

        def on_error(error: OSError) -> None:
            logger.error(f"Error traversing directory {error.filename}: {error}")
            if error.filename:
                self.unreadable_dirs.append(Path(error.filename))

        for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
            dirnames.sort()
            for filename in sorted(filenames):
                if self.is_audio_file(filename):
                    yield Path(dirpath) / filename

    def compute_track_id(self, relative_path: str) -> str:
        """Compute stable track ID from the path relative to the music root.

        Args:
            relative_path: POSIX-style path relative to the music root.

        Returns:
            Stringified 32-bit hash.
        """
        return generate_id(relative_path)

    def scan(self, root_dir: Optional[str] = None) -> List[ScannedFile]:
        """Scan directory and build file inventory.

        Args:
            root_dir: Root directory to scan. Uses config if None.

        Returns:
            List of scanned files, in depth-first order.
        """
        root = Path(root_dir or self.music_root)
        files = []
        self.unreadable_dirs = []

        logger.info(f"Starting scan of: {root}")

        for audio_path in self.find_audio_files(str(root)):
            try:
                stat = os.stat(audio_path)
                files.append(ScannedFile(
                    path=audio_path,
                    relative_path=audio_path.relative_to(root).as_posix(),
                    file_name=audio_path.name,
                    modified_time=stat.st_mtime,
                ))
            except OSError as e:
                logger.error(f"Error scanning {audio_path}: {e}")

        logger.info(f"Scan complete. Found {len(files)} audio files.")

        return files

    def get_file_count(self, root_dir: Optional[str] = None) -> int:
        """Get count of audio files in directory.

        Args:
            root_dir: Root directory to count. Uses config if None.

        Returns:
            Number of audio files.
        """
        return sum(1 for _ in self.find_audio_files(root_dir))
