"""
Station auto-discovery.

After a library change, groups the cached tracks by genre, mood, decade and
genre x decade, and creates a station for every group that is large enough.
"""

import logging
from collections import defaultdict
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from music_radio.config import Config
from music_radio.models import Attribute, Criterion, LibraryEntry, RadioStation


logger = logging.getLogger(__name__)


GENRE = "genre"
MOOD = "mood"
DECADE = "decade"
GENRE_DECADE = "genre+decade"

GROUPINGS = (GENRE, MOOD, DECADE, GENRE_DECADE)

DEFAULT_GENRE_IMAGES: Dict[str, List[str]] = {
    "blues": ["/assets/blues/1.jpg", "/assets/blues/2.jpg"],
    "classic rock": [f"/assets/classic rock/{i}.jpg" for i in range(1, 6)],
    "country": [f"/assets/country/{i}.jpg" for i in range(1, 6)],
    "dance": [f"/assets/dance/{i}.jpg" for i in range(1, 4)],
    "disco": ["/assets/disco/1.jpg"],
    "electronic": ["/assets/electronic/1.jpg", "/assets/electronic/2.jpg"],
    "grunge": ["/assets/grunge/1.jpg", "/assets/grunge/2.jpg"],
    "hip-hop": ["/assets/hip-hop/1.jpg", "/assets/hip-hop/2.jpg"],
    "jazz": [f"/assets/jazz/{i}.jpg" for i in range(1, 5)],
    "metal": [f"/assets/metal/{i}.jpg" for i in range(1, 7)],
    "new age": ["/assets/new age/1.jpg", "/assets/new age/2.jpg"],
    "oldies": ["/assets/oldies/1.jpg"],
    "rap": ["/assets/rap/1.jpg"],
}


class StationRepository(Protocol):
    """The slice of the station service that discovery needs."""

    def get_all_stations(self) -> List[RadioStation]:
        ...

    def create_station(
        self,
        name: str,
        criteria: Sequence[Criterion] = (),
        description: Optional[str] = None,
        is_auto_generated: bool = False,
        is_temporary: bool = False,
    ) -> RadioStation:
        ...

    def update_station(self, station_id: str, **updates: Any) -> RadioStation:
        ...


def group_tracks(entries: Sequence[LibraryEntry]) -> Dict[str, Dict[str, List[LibraryEntry]]]:
    """Group tracks by genre, mood, decade and genre x decade.

    A track lands in one genre group per genre token. Tracks without a mood
    are left out of the mood grouping. Unknown years group under decade 0.

    Returns:
        grouping kind -> group key -> member tracks (insertion ordered).
    """
    groups: Dict[str, Dict[str, List[LibraryEntry]]] = {
        kind: defaultdict(list) for kind in GROUPINGS
    }

    for track in entries:
        genres = [g.lower() for g in track.genres]
        decade_key = str(track.decade)

        for genre in genres:
            groups[GENRE][genre].append(track)
            groups[GENRE_DECADE][f"{genre}|{decade_key}"].append(track)

        mood = track.mood.lower()
        if mood:
            groups[MOOD][mood].append(track)

        groups[DECADE][decade_key].append(track)

    return groups


def station_name(kind: str, key: str) -> str:
    """Human-readable name for a generated station."""
    if kind == GENRE:
        return f"Genre: {key}"
    if kind == MOOD:
        return f"Mood: {key}"
    if kind == DECADE:
        return f"Decade: {key}'s"
    if kind == GENRE_DECADE:
        genre, decade = key.split("|", 1)
        return f"{genre} ({decade}'s)"
    raise ValueError(f"Unknown grouping: {kind}")


def criteria_for_group(kind: str, key: str, hybrid_weight: float = 0.7) -> List[Criterion]:
    """Criteria for a generated station.

    Single-attribute groups get one criterion of weight 1.0; genre x decade
    groups get both criteria at ``hybrid_weight``.
    """
    if kind == GENRE:
        return [Criterion(Attribute.GENRE, key, 1.0)]
    if kind == MOOD:
        return [Criterion(Attribute.MOOD, key, 1.0)]
    if kind == DECADE:
        return [Criterion(Attribute.DECADE, key, 1.0)]
    if kind == GENRE_DECADE:
        genre, decade = key.split("|", 1)
        return [
            Criterion(Attribute.GENRE, genre, hybrid_weight),
            Criterion(Attribute.DECADE, decade, hybrid_weight),
        ]
    raise ValueError(f"Unknown grouping: {kind}")


class StationDiscovery:
    """Creates auto-generated stations from large groups of similar tracks."""

    def __init__(self, repository: StationRepository, config: Optional[Config] = None):
        """Initialize discovery.

        Args:
            repository: Where stations are listed, created and updated.
            config: Configuration object.
        """
        self.repository = repository
        self.config = config or Config()
        self.min_library_size = int(self.config.get("discovery.min_library_size", 20))
        self.min_group_size = int(self.config.get("discovery.min_group_size", 20))
        self.hybrid_weight = float(self.config.get("discovery.hybrid_weight", 0.7))
        self.genre_images = self.config.get("discovery.genre_images") or DEFAULT_GENRE_IMAGES

    def run(self, entries: Sequence[LibraryEntry]) -> List[RadioStation]:
        """Run a discovery pass over the full library.

        Args:
            entries: Every cached library entry.

        Returns:
            Stations created in this pass.
        """
        if len(entries) < self.min_library_size:
            logger.info("Not enough tracks to create radio stations")
            return []

        groups = group_tracks(entries)
        existing_names = {s.name for s in self.repository.get_all_stations()}
        created: List[Tuple[RadioStation, int]] = []

        for kind in GROUPINGS:
            for key, tracks in groups[kind].items():
                if len(tracks) <= self.min_group_size:
                    continue

                name = station_name(kind, key)
                if name in existing_names:
                    continue

                try:
                    station = self.repository.create_station(
                        name,
                        criteria_for_group(kind, key, self.hybrid_weight),
                        description=name,
                        is_auto_generated=True,
                        is_temporary=False,
                    )
                except Exception as e:
                    logger.error(f"Error creating radio station for {key}: {e}")
                    continue

                existing_names.add(name)
                created.append((station, len(tracks)))

        created.sort(key=lambda pair: pair[1])
        stations = []
        for station, _ in created:
            stations.append(self.assign_image(station))

        if stations:
            logger.info(f"Created {len(stations)} new radio stations")
        else:
            logger.info("No groups with enough tracks to create radio stations")

        return stations

    def assign_image(self, station: RadioStation) -> RadioStation:
        """Give a station the first unused image for its genre, if any.

        Images already held by another auto-generated, non-all-music station
        are skipped.
        """
        genre_criterion = next(
            (c for c in station.criteria if c.attribute is Attribute.GENRE), None
        )
        if genre_criterion is None:
            return station

        images = self.genre_images.get(genre_criterion.value.lower())
        if not images:
            return station

        assigned = {
            s.image_path
            for s in self.repository.get_all_stations()
            if s.is_auto_generated and not s.is_all_music and s.image_path and s.id != station.id
        }

        for image_path in images:
            if image_path not in assigned:
                try:
                    return self.repository.update_station(station.id, image_path=image_path)
                except Exception as e:
                    logger.error(f"Error assigning image to station {station.name}: {e}")
                    return station

        return station
