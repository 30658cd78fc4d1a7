"""
Library search returning tagged result variants.

Overlapping searches are guarded with cancellation tokens: starting a new
search cancels the previous one's token, and a search only publishes its
results while its token is still valid.
"""

import asyncio
import logging
from typing import Callable, List, Optional

from music_radio.exceptions import SearchCancelledError
from music_radio.library import LibraryCache
from music_radio.metadata import get_duration_formatted
from music_radio.models import (
    AlbumResult,
    ArtistResult,
    SearchResult,
    StationResult,
    TrackResult,
)
from music_radio.stations import StationService


logger = logging.getLogger(__name__)


class CancellationToken:
    """Flag shared between a search and whoever may supersede it."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise SearchCancelledError()


class SearchService:
    """Searches stations, artists, albums and tracks."""

    def __init__(
        self,
        library: LibraryCache,
        stations: StationService,
        max_results: int = 20,
    ):
        self.library = library
        self.stations = stations
        self.max_results = max_results
        self._current: Optional[CancellationToken] = None

    def find_results(
        self,
        query: str,
        token: Optional[CancellationToken] = None,
    ) -> List[SearchResult]:
        """Collect every result for ``query``.

        Order: matching stations (temporary ones hidden), artist groups,
        album groups, then tracks not already covered by an artist or album.

        Raises:
            SearchCancelledError: If ``token`` is cancelled part way.
        """
        token = token or CancellationToken()
        needle = query.strip().lower()
        if not needle:
            return []

        results: List[SearchResult] = []

        for station in self.stations.get_all_stations():
            if station.is_temporary:
                continue
            description = station.description or ""
            if needle in station.name.lower() or needle in description.lower():
                results.append(StationResult(
                    station_id=station.id,
                    station_name=station.name,
                    description=description,
                    image_path=station.image_path,
                ))
        token.raise_if_cancelled()

        covered = set()
        for tracks in self.library.get_artists_by_name(needle).values():
            covered.update(t.id for t in tracks)
            results.append(ArtistResult(artist_name=tracks[0].artist, tracks=tracks))
        token.raise_if_cancelled()

        for tracks in self.library.get_albums_by_name(needle).values():
            first = tracks[0]
            covered.update(t.id for t in tracks)
            results.append(AlbumResult(
                album_name=first.album,
                artist_name=first.artist,
                tracks=tracks,
                album_art=self.library.get_album_art(first.id),
            ))
        token.raise_if_cancelled()

        for entry in self.library.get_all_entries():
            if entry.id in covered:
                continue
            if (needle in entry.title.lower()
                    or needle in entry.artist.lower()
                    or needle in entry.album.lower()):
                results.append(TrackResult(
                    entry=entry,
                    album_art=self.library.get_album_art(entry.id),
                ))

        return results

    async def gather(self, query: str, token: CancellationToken) -> List[SearchResult]:
        """Run the search for one invocation; yields to the loop first."""
        await asyncio.sleep(0)
        token.raise_if_cancelled()
        return self.find_results(query, token)

    async def search(
        self,
        query: str,
        on_results: Callable[[List[SearchResult]], None],
        on_searching: Optional[Callable[[bool], None]] = None,
    ) -> bool:
        """Search and publish results unless a newer search started meanwhile.

        Args:
            query: Search text.
            on_results: Receives at most ``max_results`` results.
            on_searching: Receives True when the search starts and False
                when it publishes or fails.

        Returns:
            True if results were published.
        """
        if self._current is not None:
            self._current.cancel()
        token = CancellationToken()
        self._current = token

        if on_searching is not None:
            on_searching(True)

        try:
            results = await self.gather(query, token)
        except SearchCancelledError:
            logger.debug(f"Search for '{query}' superseded")
            return False
        except Exception as e:
            logger.error(f"Search error: {e}")
            if on_searching is not None and not token.cancelled:
                on_searching(False)
            return False

        if token.cancelled:
            logger.debug(f"Discarding stale results for '{query}'")
            return False

        on_results(results[:self.max_results])
        if on_searching is not None:
            on_searching(False)
        return True


def describe_result(result: SearchResult) -> str:
    """One-line description of a search result."""
    match result:
        case TrackResult(entry=entry):
            duration = get_duration_formatted(entry.duration) if entry.duration else "-"
            return f"[track]   {entry.title} - {entry.artist} ({entry.album}) {duration}  id={entry.id}"
        case ArtistResult(artist_name=name):
            return f"[artist]  {name} ({result.track_count} tracks)"
        case AlbumResult(album_name=album, artist_name=artist):
            return f"[album]   {album} - {artist} ({result.track_count} tracks)"
        case StationResult(station_name=name, station_id=station_id):
            return f"[station] {name}  id={station_id}"
        case _:
            raise TypeError(f"Unknown search result: {result!r}")
