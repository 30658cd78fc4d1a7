"""
Metadata extraction module for audio files.
"""

import base64
import logging
import re
import unicodedata
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Union

import mutagen
from mutagen.flac import Picture
from mutagen.mp4 import MP4Cover

from music_radio.config import Config


logger = logging.getLogger(__name__)


# Tag keys per container family, in lookup order: ID3 frames, Vorbis
# comments (FLAC/Ogg), MP4 atoms.
TAG_KEYS = {
    "title": ["TIT2", "title", "\xa9nam"],
    "artist": ["TPE1", "artist", "\xa9ART", "TPE2", "albumartist", "aART"],
    "album": ["TALB", "album", "\xa9alb"],
    "genre": ["TCON", "genre", "\xa9gen"],
    "year": ["TDRC", "TYER", "date", "year", "\xa9day"],
    "mood": ["TMOO", "TXXX:MOOD", "mood", "----:com.apple.iTunes:MOOD"],
}

MP4_COVER_MIME = {
    MP4Cover.FORMAT_JPEG: "image/jpeg",
    MP4Cover.FORMAT_PNG: "image/png",
}


@dataclass
class AudioMetadata:
    """Tag fields read from one audio file. Missing fields are None."""

    title: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    genre: List[str] = field(default_factory=list)
    year: Optional[int] = None
    mood: Optional[str] = None
    duration: Optional[float] = None


@dataclass
class AlbumArt:
    """Embedded artwork payload."""

    data: bytes
    mime_type: str


class MetadataExtractor:
    """Extractor for audio file metadata using mutagen."""

    def __init__(self, config: Optional[Config] = None):
        """Initialize metadata extractor.

        Args:
            config: Configuration object.
        """
        self.config = config or Config()
        self.normalize_strings = self.config.get("metadata.normalize_strings", True)

    def normalize_string(self, s: Any) -> Optional[str]:
        """Normalize string for consistency.

        Args:
            s: String to normalize.

        Returns:
            Normalized string or None.
        """
        if s is None:
            return None

        if isinstance(s, bytes):
            s = s.decode("utf-8", errors="replace")
        s = str(s)

        if self.normalize_strings:
            s = unicodedata.normalize('NFC', s)
            s = s.strip()
            s = re.sub(r'\s+', ' ', s)

        return s if s else None

    def _open(self, file_path: Union[str, Path]):
        """Open a file with mutagen; None for unsupported or unreadable files."""
        try:
            return mutagen.File(str(file_path))
        except Exception as e:
            logger.error(f"Error reading {file_path}: {e}")
            return None

    def extract(self, file_path: Union[str, Path]) -> Optional[AudioMetadata]:
        """Extract metadata from audio file.

        Args:
            file_path: Path to audio file.

        Returns:
            Metadata, or None if the file could not be parsed.
        """
        audio = self._open(file_path)
        if audio is None:
            return None

        try:
            metadata = AudioMetadata()
            info = getattr(audio, "info", None)
            length = getattr(info, "length", None)
            metadata.duration = float(length) if length else None

            tags = audio.tags
            if tags:
                metadata.title = self._first(tags, TAG_KEYS["title"])
                metadata.artist = self._first(tags, TAG_KEYS["artist"])
                metadata.album = self._first(tags, TAG_KEYS["album"])
                metadata.mood = self._first(tags, TAG_KEYS["mood"])
                metadata.genre = self._genres(tags)
                metadata.year = parse_year(self._first(tags, TAG_KEYS["year"]))

            return metadata
        except Exception as e:
            logger.error(f"Error extracting metadata from {file_path}: {e}")
            return None

    def extract_album_art(self, file_path: Union[str, Path]) -> Optional[AlbumArt]:
        """Extract the first embedded picture from an audio file.

        Args:
            file_path: Path to audio file.

        Returns:
            Artwork payload, or None if there is none or parsing failed.
        """
        audio = self._open(file_path)
        if audio is None:
            return None

        try:
            # FLAC keeps pictures outside the tag block
            pictures = getattr(audio, "pictures", None)
            if pictures:
                return AlbumArt(data=bytes(pictures[0].data), mime_type=pictures[0].mime)

            tags = audio.tags
            if not tags:
                return None

            if hasattr(tags, "getall"):
                frames = tags.getall("APIC")
                if frames:
                    return AlbumArt(data=bytes(frames[0].data), mime_type=frames[0].mime)
                return None

            covers = self._lookup(tags, "covr")
            if covers:
                cover = covers[0]
                mime = MP4_COVER_MIME.get(getattr(cover, "imageformat", None), "image/jpeg")
                return AlbumArt(data=bytes(cover), mime_type=mime)

            encoded = self._lookup(tags, "metadata_block_picture")
            if encoded:
                picture = Picture(base64.b64decode(encoded[0]))
                return AlbumArt(data=bytes(picture.data), mime_type=picture.mime)

            return None
        except Exception as e:
            logger.error(f"Error extracting album art from {file_path}: {e}")
            return None

    @staticmethod
    def _lookup(tags, key: str) -> Optional[Any]:
        try:
            return tags[key]
        except (KeyError, ValueError, TypeError):
            return None

    def _values(self, tags, keys: List[str]) -> List[str]:
        """Return the text values of the first key present in ``tags``."""
        for key in keys:
            value = self._lookup(tags, key)
            if value is None:
                continue
            values = [v for v in (self.normalize_string(t) for t in _as_text_list(value)) if v]
            if values:
                return values
        return []

    def _first(self, tags, keys: List[str]) -> Optional[str]:
        values = self._values(tags, keys)
        return values[0] if values else None

    def _genres(self, tags) -> List[str]:
        genres = []
        for value in self._values(tags, TAG_KEYS["genre"]):
            # Vorbis and MP4 files often pack several genres into one string
            for part in re.split(r'[;/,]', value):
                part = part.strip()
                if part and part not in genres:
                    genres.append(part)
        return genres

    def extract_batch(
        self,
        file_paths: list,
        show_progress: bool = True
    ) -> dict:
        """Extract metadata from multiple files.

        Args:
            file_paths: List of file paths.
            show_progress: Whether to show a tqdm progress bar.

        Returns:
            Dictionary mapping file paths to metadata (None on failure).
        """
        iterator = file_paths
        if show_progress:
            from tqdm import tqdm
            iterator = tqdm(file_paths, desc="Extracting metadata")

        return {file_path: self.extract(file_path) for file_path in iterator}


def _as_text_list(value: Any) -> List[Any]:
    """Flatten a mutagen tag value into a list of raw text items."""
    if hasattr(value, "genres"):
        return list(value.genres)
    if hasattr(value, "text"):
        return [str(t) for t in value.text]
    if isinstance(value, (list, tuple)):
        return [bytes(v) if isinstance(v, bytes) else v for v in value]
    return [value]


def parse_year(value: Optional[str]) -> Optional[int]:
    """Extract a four-digit year from a tag value like ``2001-05-03``.

    Args:
        value: Raw date/year tag text.

    Returns:
        Year as int, or None.
    """
    if not value:
        return None
    match = re.search(r'\d{4}', str(value))
    return int(match.group()) if match else None


def get_duration_formatted(seconds: Optional[float]) -> Optional[str]:
    """Format duration in seconds to MM:SS format.

    Args:
        seconds: Duration in seconds.

    Returns:
        Formatted string or None.
    """
    if seconds is None:
        return None

    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes}:{secs:02d}"
