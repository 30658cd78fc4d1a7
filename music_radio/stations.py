"""
Radio station service: CRUD over station records plus scoring and
next-track selection against the cached library.
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from music_radio.exceptions import StationExistsError, StationNotFoundError
from music_radio.models import Criterion, LibraryEntry, RadioStation, TrackScore
from music_radio.recommender import Recommender, derive_criteria
from music_radio.scanner import generate_id
from music_radio.storage import LibraryStore


logger = logging.getLogger(__name__)

# Fields a caller may patch through update_station
UPDATABLE_FIELDS = {
    "name",
    "description",
    "criteria",
    "is_auto_generated",
    "is_temporary",
    "image_path",
    "last_played",
    "is_favorite",
    "is_custom",
    "is_all_music",
}

# Seed-derived stations lean on artist and genre rather than album or era
DEFAULT_SEED_WEIGHTS = {"album": 0.5, "decade": 0.1}


def station_id_for(name: str) -> str:
    """Station ids are a stable hash of the station name."""
    return f"station_{generate_id(name)}"


class StationService:
    """Persists radio stations and ranks library tracks for them."""

    def __init__(self, store: LibraryStore, recommender: Optional[Recommender] = None):
        """Initialize station service.

        Args:
            store: Opened library store.
            recommender: Scorer; a default one is created if None.
        """
        self.store = store
        self.recommender = recommender or Recommender()

    def create_station(
        self,
        name: str,
        criteria: Sequence[Criterion] = (),
        description: Optional[str] = None,
        is_auto_generated: bool = False,
        is_temporary: bool = False,
        is_custom: bool = False,
        is_all_music: bool = False,
        image_path: Optional[str] = None,
    ) -> RadioStation:
        """Create and persist a new radio station.

        Raises:
            StationExistsError: If a station with the same name (and so the
                same id) is already stored.
        """
        station_id = station_id_for(name)
        if self.get_station_by_id(station_id) is not None:
            raise StationExistsError(station_id, name)

        now = datetime.now()
        station = RadioStation(
            id=station_id,
            name=name,
            description=description,
            criteria=list(criteria),
            created_at=now,
            updated_at=now,
            is_auto_generated=is_auto_generated,
            is_temporary=is_temporary,
            is_custom=is_custom,
            is_all_music=is_all_music,
            image_path=image_path,
        )
        self.store.put_station(station)
        logger.info(f"Created station '{name}' ({station.id})")
        return station

    def update_station(self, station_id: str, **updates: Any) -> RadioStation:
        """Merge a partial patch onto an existing station.

        Args:
            station_id: Station to update.
            **updates: Fields to change (see UPDATABLE_FIELDS).

        Returns:
            The updated station.

        Raises:
            StationNotFoundError: If the station does not exist.
            ValueError: If a patch names an unknown or read-only field.
        """
        unknown = set(updates) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update station fields: {sorted(unknown)}")

        existing = self.get_station_by_id(station_id)
        if existing is None:
            raise StationNotFoundError(station_id)

        if "criteria" in updates:
            updates["criteria"] = list(updates["criteria"])

        updated = replace(existing, **updates, updated_at=datetime.now())
        self.store.put_station(updated)
        return updated

    def delete_station(self, station_id: str) -> bool:
        """Delete a station. Returns False if it did not exist."""
        deleted = self.store.delete_station(station_id)
        if deleted:
            logger.info(f"Deleted station {station_id}")
        return deleted

    def get_station_by_id(self, station_id: str) -> Optional[RadioStation]:
        return self.store.get_station(station_id)

    def get_all_stations(self) -> List[RadioStation]:
        return self.store.get_all_stations()

    def exists_by_name(self, name: str) -> bool:
        return bool(self.store.get_stations_by_name(name))

    def _require(self, station_id: str) -> RadioStation:
        station = self.get_station_by_id(station_id)
        if station is None:
            raise StationNotFoundError(station_id)
        return station

    def score_tracks_for_station(
        self,
        station: RadioStation,
        limit: Optional[int] = None,
    ) -> List[TrackScore]:
        """Rank the whole library against a station's criteria."""
        tracks = self.store.get_all_entries()
        return self.recommender.score_tracks(tracks, station.criteria, limit=limit)

    def select_next_track(
        self,
        station: RadioStation,
        history: Sequence[str] = (),
    ) -> Optional[TrackScore]:
        """Pick the next track for a station given the play history."""
        tracks = self.store.get_all_entries()
        return self.recommender.select_next(tracks, station.criteria, history)

    def update_station_from_tracks(
        self,
        station_id: str,
        tracks: Sequence[LibraryEntry],
        base_weights: Optional[Dict[str, float]] = None,
    ) -> RadioStation:
        """Rebuild a station's criteria from example tracks.

        The station also stops being temporary. With no tracks the
        existing criteria are kept.

        Raises:
            StationNotFoundError: If the station does not exist.
        """
        existing = self._require(station_id)
        criteria = derive_criteria(tracks, base_weights) if tracks else existing.criteria
        return self.update_station(station_id, criteria=criteria, is_temporary=False)

    def create_temporary_station(self, track: LibraryEntry) -> RadioStation:
        """Create an ephemeral station seeded from a single track.

        A stored station of the same name is reused as it is, so a seed
        station the user has kept is never reset.
        """
        name = f"{track.title} Radio"
        existing = self.get_station_by_id(station_id_for(name))
        if existing is not None:
            return existing

        criteria = derive_criteria([track], DEFAULT_SEED_WEIGHTS)
        return self.create_station(
            name,
            criteria,
            description=f"Tracks like {track.title} by {track.artist}",
            is_temporary=True,
            is_custom=True,
        )

    def mark_played(self, station_id: str) -> RadioStation:
        return self.update_station(station_id, last_played=datetime.now())

    def toggle_favorite(self, station_id: str) -> RadioStation:
        station = self._require(station_id)
        return self.update_station(station_id, is_favorite=not station.is_favorite)

    def clear_temporary_stations(self) -> int:
        """Delete every station still marked temporary."""
        removed = self.store.delete_temporary_stations()
        if removed:
            logger.info(f"Removed {removed} temporary stations")
        return removed
