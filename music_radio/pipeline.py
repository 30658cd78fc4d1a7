"""
Pipeline module that wires the library components together.
"""

import logging
from typing import Any, Dict, Optional

from music_radio.config import Config
from music_radio.discovery import StationDiscovery
from music_radio.file_loader import FileLoader
from music_radio.library import LibraryCache, ProgressCallback
from music_radio.metadata import MetadataExtractor
from music_radio.models import SyncReport
from music_radio.playback import PlaybackSession
from music_radio.recommender import Recommender
from music_radio.scanner import Scanner
from music_radio.search import SearchService
from music_radio.stations import StationService
from music_radio.storage import LibraryStore


logger = logging.getLogger(__name__)


class Pipeline:
    """Builds and owns one set of library components over a single store."""

    def __init__(
        self,
        config: Optional[Config] = None,
        store: Optional[LibraryStore] = None,
        extractor: Optional[MetadataExtractor] = None,
    ):
        """Initialize pipeline.

        Args:
            config: Configuration object.
            store: Library store; built from ``library.db_path`` if None.
            extractor: Metadata extractor; a mutagen one if None.
        """
        self.config = config or Config()

        self.store = store or LibraryStore(self.config.db_path)
        self.scanner = Scanner(self.config)
        self.metadata_extractor = extractor or MetadataExtractor(self.config)
        self.recommender = Recommender(self.config)
        self.stations = StationService(self.store, self.recommender)
        self.discovery = StationDiscovery(self.stations, self.config)
        self.library = LibraryCache(
            self.store,
            scanner=self.scanner,
            extractor=self.metadata_extractor,
            discovery=self.discovery,
        )
        self.search = SearchService(
            self.library,
            self.stations,
            max_results=int(self.config.get("search.max_results", 20)),
        )
        self.file_loader = FileLoader(config=self.config)

    def open(self) -> "Pipeline":
        """Open the store and drop temporary stations left by earlier runs."""
        self.store.open()
        self.stations.clear_temporary_stations()
        return self

    def close(self) -> None:
        self.store.close()

    def __enter__(self) -> "Pipeline":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def new_session(self) -> PlaybackSession:
        return PlaybackSession(self.stations, self.file_loader)

    def run_sync(
        self,
        root_dir: Optional[str] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> Optional[SyncReport]:
        """Sync the cache with the music folder.

        Args:
            root_dir: Music root; the configured root if None. It becomes the
                configured root once a sync against it succeeds.
            progress: Per-call progress observer.

        Returns:
            Summary of the pass, or None if the folder is missing or not
            readable (the cache is left as it was).
        """
        logger.info("Running library sync")
        report = self.library.sync(root_dir or self.config.music_root, progress=progress)
        if report is None:
            logger.warning("Sync skipped: no usable music folder")
            return None

        if root_dir:
            self.config.set("library.music_root", root_dir)

        logger.info(
            f"Sync complete: {report.added} added, {report.removed} removed, "
            f"{report.skipped} skipped, {report.stations_created} stations created"
        )
        return report

    def get_statistics(self) -> Dict[str, Any]:
        """Get library statistics."""
        return self.store.library_statistics()
