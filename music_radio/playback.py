"""
Headless playback session: keeps play history and drives next-track
selection for the active station. Audio output is left to the host.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from music_radio.file_loader import FileLoader
from music_radio.models import LibraryEntry, RadioStation, TrackScore
from music_radio.stations import StationService


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueuedTrack:
    """A track chosen for playback and the file it resolved to."""

    track: LibraryEntry
    score: float
    path: Optional[Path]


class PlaybackSession:
    """Tracks what has been played on a station and picks what plays next."""

    def __init__(self, stations: StationService, file_loader: Optional[FileLoader] = None):
        self.stations = stations
        self.file_loader = file_loader
        self.station: Optional[RadioStation] = None
        self._history: List[str] = []

    @property
    def history(self) -> List[str]:
        """Played track ids, oldest first."""
        return list(self._history)

    def play_station(self, station: RadioStation) -> Optional[QueuedTrack]:
        """Switch to a station and return its first track."""
        self.station = self.stations.mark_played(station.id)
        logger.info(f"Playing station '{station.name}'")
        return self.next_track()

    def play_track(self, entry: LibraryEntry) -> QueuedTrack:
        """Play an arbitrary track; a temporary station continues from it."""
        self.station = self.stations.create_temporary_station(entry)
        score = self._score_of(entry)
        return self._enqueue(TrackScore(track=entry, score=score))

    def next_track(self) -> Optional[QueuedTrack]:
        """Select, record and return the next track of the current station."""
        if self.station is None:
            logger.warning("No station is playing")
            return None

        selected = self.stations.select_next_track(self.station, self._history)
        if selected is None:
            logger.info("Library is empty; nothing to play")
            return None
        return self._enqueue(selected)

    def _score_of(self, entry: LibraryEntry) -> float:
        for track_score in self.stations.score_tracks_for_station(self.station):
            if track_score.track.id == entry.id:
                return track_score.score
        return 0.0

    def _enqueue(self, selected: TrackScore) -> QueuedTrack:
        self._history.append(selected.track.id)
        path = self.file_loader.resolve(selected.track) if self.file_loader else None
        return QueuedTrack(track=selected.track, score=selected.score, path=path)

    def stop(self) -> None:
        self.station = None
        self._history.clear()
