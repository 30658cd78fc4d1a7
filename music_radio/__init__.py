"""
Music Radio - a personal music library cache with radio stations.

This package provides tools for:
- Scanning local music folders and caching track metadata
- Scoring tracks against weighted station criteria
- Discovering stations from groups of similar tracks
- Searching the cached library
"""

__version__ = "0.1.0"
__author__ = "Music Radio Team"
__license__ = "MIT"

from music_radio.config import Config
from music_radio.discovery import StationDiscovery
from music_radio.genres import genre_similarity
from music_radio.library import LibraryCache
from music_radio.metadata import MetadataExtractor
from music_radio.pipeline import Pipeline
from music_radio.recommender import Recommender
from music_radio.scanner import Scanner, generate_id
from music_radio.search import SearchService
from music_radio.stations import StationService
from music_radio.storage import LibraryStore

__all__ = [
    "Config",
    "LibraryCache",
    "LibraryStore",
    "MetadataExtractor",
    "Pipeline",
    "Recommender",
    "Scanner",
    "SearchService",
    "StationDiscovery",
    "StationService",
    "generate_id",
    "genre_similarity",
]
