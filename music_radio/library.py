"""
Library cache: incremental sync of the persistent store against a live
directory scan, plus read-only queries over the cached entries.
"""

import logging
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from music_radio.discovery import StationDiscovery
from music_radio.file_loader import verify_permission
from music_radio.metadata import MetadataExtractor
from music_radio.models import (
    AlbumArtEntry,
    LibraryEntry,
    ScannedFile,
    SyncProgress,
    SyncReport,
)
from music_radio.scanner import Scanner, generate_id
from music_radio.storage import LibraryStore


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[SyncProgress], None]


def _relative_dirs(root: str, dirs: Sequence[Path]) -> List[str]:
    """POSIX paths of ``dirs`` relative to ``root`` ('' for the root itself)."""
    relative = []
    for d in dirs:
        try:
            rel = Path(d).relative_to(root).as_posix()
        except ValueError:
            continue
        relative.append("" if rel == "." else rel)
    return relative


def _is_below(file_path: str, dirs: Sequence[str]) -> bool:
    return any(d == "" or file_path.startswith(d + "/") for d in dirs)


class LibraryCache:
    """Durable cache of library entries and linked album art.

    Two sync passes must not run at the same time on one store; callers
    serialize them.
    """

    def __init__(
        self,
        store: LibraryStore,
        scanner: Optional[Scanner] = None,
        extractor: Optional[MetadataExtractor] = None,
        discovery: Optional[StationDiscovery] = None,
    ):
        """Initialize library cache.

        Args:
            store: Opened library store.
            scanner: Directory scanner.
            extractor: Metadata extractor (anything with ``extract`` and
                ``extract_album_art``).
            discovery: Station discovery run after the library changes.
        """
        self.store = store
        self.scanner = scanner or Scanner()
        self.extractor = extractor or MetadataExtractor()
        self.discovery = discovery

    def sync(
        self,
        root_dir: Optional[str] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> Optional[SyncReport]:
        """Bring the cache in line with the files under ``root_dir``.

        Entries whose file disappeared are deleted first. Each new file is
        then extracted and persisted before the next one is read. Progress
        runs over the new files only and ends with a (0, 0) event.

        A root that is missing or cannot be read leaves the cache untouched.
        Entries below a subdirectory that could not be listed are kept.

        Args:
            root_dir: Music root to scan. Uses the scanner's configured root
                if None.
            progress: Per-call progress observer.

        Returns:
            Summary of the pass, or None if there is no usable music folder.
        """
        def report(current: int, total: int) -> None:
            if progress is not None:
                progress(SyncProgress(current, total))

        root = root_dir or self.scanner.music_root
        if not root or not verify_permission(root):
            logger.error(f"No usable music folder, cache left unchanged: {root}")
            return None

        cached = self.store.get_all_entries()
        scanned = self.scanner.scan(root)

        live_paths = {f.relative_path for f in scanned}
        cached_paths = {entry.file_path for entry in cached}
        unreadable = _relative_dirs(root, self.scanner.unreadable_dirs)

        deleted_ids = [
            entry.id for entry in cached
            if entry.file_path not in live_paths and not _is_below(entry.file_path, unreadable)
        ]
        result = SyncReport()
        if deleted_ids:
            logger.info(f"Deleting {len(deleted_ids)} entries")
            result.removed = self.store.delete_entries(deleted_ids)

        new_files = [f for f in scanned if f.relative_path not in cached_paths]
        total = len(new_files)
        report(0, total)

        for i, scanned_file in enumerate(new_files, start=1):
            if self._add_file(scanned_file):
                result.added += 1
            else:
                result.skipped += 1
            report(i, total)

        report(0, 0)

        if result.added:
            logger.info(f"Added {result.added} new entries")
        if result.skipped:
            logger.warning(f"Skipped {result.skipped} files that could not be read")

        if (result.removed or new_files) and self.discovery is not None:
            created = self.discovery.run(self.store.get_all_entries())
            result.stations_created = len(created)

        logger.info("Cache update completed")
        return result

    def _add_file(self, scanned_file: ScannedFile) -> bool:
        """Extract and persist one new file. Returns False if it was skipped."""
        try:
            metadata = self.extractor.extract(scanned_file.path)
        except Exception as e:
            logger.error(f"Error extracting metadata from {scanned_file.relative_path}: {e}")
            return False

        if metadata is None:
            logger.error(f"Could not read metadata from {scanned_file.relative_path}")
            return False

        entry_id = generate_id(scanned_file.relative_path)
        entry = LibraryEntry(
            id=entry_id,
            file_path=scanned_file.relative_path,
            file_name=scanned_file.file_name,
            modified_time=scanned_file.modified_time or time.time(),
            title=metadata.title or "Unknown Title",
            artist=metadata.artist or "Unknown Artist",
            album=metadata.album or "Unknown Album",
            genre=", ".join(metadata.genre or []),
            year=metadata.year or 0,
            mood=metadata.mood or "",
            duration=metadata.duration or 0,
        )
        self.store.put_entry(entry)
        logger.debug(f"Cached {entry.file_path} as {entry.id}")

        try:
            art = self.extractor.extract_album_art(scanned_file.path)
            if art is not None and art.data:
                self.store.put_album_art(AlbumArtEntry(
                    id=entry_id,
                    data=art.data,
                    mime_type=art.mime_type,
                    file_path=scanned_file.relative_path,
                ))
        except Exception as e:
            logger.error(f"Error storing album art for {scanned_file.relative_path}: {e}")

        return True

    def get_all_entries(self) -> List[LibraryEntry]:
        return self.store.get_all_entries()

    def get_entry(self, entry_id: str) -> Optional[LibraryEntry]:
        return self.store.get_entry(entry_id)

    def get_album_art(self, entry_id: str) -> Optional[AlbumArtEntry]:
        return self.store.get_album_art(entry_id)

    def get_artists_by_name(self, query: str) -> Dict[str, List[LibraryEntry]]:
        """Entries whose artist contains ``query``, grouped by lowercased artist."""
        needle = query.lower()
        artists: Dict[str, List[LibraryEntry]] = {}
        for entry in self.store.get_all_entries():
            if needle in entry.artist.lower():
                artists.setdefault(entry.artist.lower(), []).append(entry)
        return artists

    def get_albums_by_name(self, query: str) -> Dict[str, List[LibraryEntry]]:
        """Entries whose album contains ``query``, grouped by ``artist|album``."""
        needle = query.lower()
        albums: Dict[str, List[LibraryEntry]] = {}
        for entry in self.store.get_all_entries():
            if needle in entry.album.lower():
                key = f"{entry.artist.lower()}|{entry.album.lower()}"
                albums.setdefault(key, []).append(entry)
        return albums

    def get_all_artists(self) -> Dict[str, int]:
        """Track count per lowercased artist."""
        counts: Dict[str, int] = {}
        for entry in self.store.get_all_entries():
            key = entry.artist.lower()
            counts[key] = counts.get(key, 0) + 1
        return counts

    def get_all_albums(self) -> List[Tuple[str, str, int]]:
        """(album, artist, track count) per distinct artist/album pair."""
        albums: Dict[str, List[LibraryEntry]] = {}
        for entry in self.store.get_all_entries():
            key = f"{entry.artist.lower()}|{entry.album.lower()}"
            albums.setdefault(key, []).append(entry)
        return [(tracks[0].album, tracks[0].artist, len(tracks)) for tracks in albums.values()]
