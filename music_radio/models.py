"""
Data model for library entries, album art, radio stations and search results.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Union


def split_genres(genre: str) -> List[str]:
    """Split a comma-joined genre field into trimmed, non-empty tokens."""
    if not genre:
        return []
    return [g.strip() for g in genre.split(",") if g.strip()]


def decade_of(year: int) -> int:
    """Return the decade for a year; unknown years (0) map to decade 0."""
    if not year or year <= 0:
        return 0
    return (year // 10) * 10


class Attribute(str, Enum):
    """Track attributes a station criterion can match on."""

    ARTIST = "artist"
    ALBUM = "album"
    GENRE = "genre"
    MOOD = "mood"
    DECADE = "decade"


@dataclass(frozen=True)
class LibraryEntry:
    """One physical audio file in the library cache.

    Entries are replaced, never mutated; ``id`` depends only on ``file_path``.
    """

    id: str
    file_path: str
    file_name: str
    modified_time: float
    title: str = "Unknown Title"
    artist: str = "Unknown Artist"
    album: str = "Unknown Album"
    genre: str = ""
    year: int = 0
    mood: str = ""
    duration: float = 0.0

    @property
    def genres(self) -> List[str]:
        return split_genres(self.genre)

    @property
    def decade(self) -> int:
        return decade_of(self.year)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "file_path": self.file_path,
            "file_name": self.file_name,
            "modified_time": self.modified_time,
            "title": self.title,
            "artist": self.artist,
            "album": self.album,
            "genre": self.genre,
            "year": self.year,
            "mood": self.mood,
            "duration": self.duration,
        }


@dataclass(frozen=True)
class AlbumArtEntry:
    """Embedded artwork linked 1:1 to a LibraryEntry by id."""

    id: str
    data: bytes
    mime_type: str
    file_path: str


@dataclass
class Criterion:
    """One weighted matching rule of a station."""

    attribute: Attribute
    value: str
    weight: float = 1.0

    def __post_init__(self):
        self.attribute = Attribute(self.attribute)
        self.value = str(self.value)
        self.weight = float(self.weight)
        if self.weight < 0:
            raise ValueError(f"Criterion weight must be non-negative: {self.weight}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attribute": self.attribute.value,
            "value": self.value,
            "weight": self.weight,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Criterion":
        return cls(
            attribute=data["attribute"],
            value=data["value"],
            weight=data.get("weight", 1.0),
        )


@dataclass
class RadioStation:
    """A named, persisted set of weighted criteria."""

    id: str
    name: str
    criteria: List[Criterion] = field(default_factory=list)
    description: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)
    is_auto_generated: bool = False
    is_temporary: bool = False
    image_path: Optional[str] = None
    last_played: Optional[datetime] = None
    is_favorite: bool = False
    is_custom: bool = False
    is_all_music: bool = False


@dataclass(frozen=True)
class TrackScore:
    """A track paired with its score against a station's criteria."""

    track: LibraryEntry
    score: float


@dataclass(frozen=True)
class ScannedFile:
    """An audio file found by the directory scanner."""

    path: Path
    relative_path: str
    file_name: str
    modified_time: float


@dataclass(frozen=True)
class SyncProgress:
    """Progress over the new-files set of one sync pass."""

    current: int
    total: int

    @property
    def done(self) -> bool:
        return self.current == 0 and self.total == 0


@dataclass
class SyncReport:
    """Outcome of a sync pass."""

    added: int = 0
    removed: int = 0
    skipped: int = 0
    stations_created: int = 0

    @property
    def changed(self) -> bool:
        return self.added > 0 or self.removed > 0


@dataclass(frozen=True)
class TrackResult:
    entry: LibraryEntry
    album_art: Optional[AlbumArtEntry] = None
    kind: Literal["track"] = "track"


@dataclass(frozen=True)
class ArtistResult:
    artist_name: str
    tracks: List[LibraryEntry]
    kind: Literal["artist"] = "artist"

    @property
    def track_count(self) -> int:
        return len(self.tracks)


@dataclass(frozen=True)
class AlbumResult:
    album_name: str
    artist_name: str
    tracks: List[LibraryEntry]
    album_art: Optional[AlbumArtEntry] = None
    kind: Literal["album"] = "album"

    @property
    def track_count(self) -> int:
        return len(self.tracks)


@dataclass(frozen=True)
class StationResult:
    station_id: str
    station_name: str
    description: str = ""
    image_path: Optional[str] = None
    kind: Literal["station"] = "station"


SearchResult = Union[TrackResult, ArtistResult, AlbumResult, StationResult]
