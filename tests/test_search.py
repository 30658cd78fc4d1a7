"""
Tests for the search module.
"""

import asyncio

import pytest

from music_radio.exceptions import SearchCancelledError
from music_radio.library import LibraryCache
from music_radio.models import AlbumArtEntry, AlbumResult, ArtistResult, StationResult, TrackResult
from music_radio.search import CancellationToken, SearchService, describe_result
from music_radio.stations import StationService

from tests.helpers import make_entry


class DelayedSearchService(SearchService):
    """Search whose per-query work takes a configurable time."""

    delays = {"alpha": 0.05}

    async def gather(self, query, token):
        await asyncio.sleep(self.delays.get(query, 0))
        return self.find_results(query, token)


@pytest.fixture
def populated(store):
    store.put_entry(make_entry("1.mp3", title="Karma Police", artist="Radiohead", album="OK Computer"))
    store.put_entry(make_entry("2.mp3", title="Radio Ga Ga", artist="Queen", album="The Works"))
    store.put_entry(make_entry("3.mp3", title="Video Killed the Radio Star", artist="The Buggles",
                               album="The Age of Plastic"))
    store.put_album_art(AlbumArtEntry(
        id=make_entry("1.mp3").id, data=b"art", mime_type="image/jpeg", file_path="1.mp3"
    ))
    return store


@pytest.fixture
def stations(populated):
    service = StationService(populated)
    service.create_station("Radio Classics", description="Songs about radio")
    service.create_station("Karma Police Radio", is_temporary=True)
    return service


class TestCancellationToken:
    """Tests for CancellationToken."""

    def test_cancel(self):
        token = CancellationToken()
        assert not token.cancelled
        token.raise_if_cancelled()

        token.cancel()

        assert token.cancelled
        with pytest.raises(SearchCancelledError):
            token.raise_if_cancelled()


class TestFindResults:
    """Tests for synchronous result collection."""

    @pytest.fixture
    def service(self, populated, stations):
        return SearchService(LibraryCache(populated), stations)

    def test_result_order_and_kinds(self, service):
        results = service.find_results("radio")

        assert [r.kind for r in results] == ["station", "artist", "track", "track"]
        assert results[0].station_name == "Radio Classics"
        assert results[1].artist_name == "Radiohead"
        assert [r.entry.title for r in results[2:]] == [
            "Radio Ga Ga",
            "Video Killed the Radio Star",
        ]

    def test_temporary_stations_are_hidden(self, service):
        results = service.find_results("karma")

        assert all(not isinstance(r, StationResult) for r in results)
        assert [r.entry.title for r in results] == ["Karma Police"]

    def test_album_result_carries_art(self, service):
        results = service.find_results("computer")

        assert len(results) == 1
        album = results[0]
        assert isinstance(album, AlbumResult)
        assert album.album_name == "OK Computer"
        assert album.track_count == 1
        assert album.album_art.data == b"art"

    def test_track_result_carries_art(self, service):
        results = service.find_results("police")

        assert isinstance(results[0], TrackResult)
        assert results[0].album_art is not None

    def test_station_description_matches(self, service):
        results = service.find_results("songs about")

        assert [r.kind for r in results] == ["station"]

    def test_blank_query(self, service):
        assert service.find_results("   ") == []

    def test_cancelled_token_aborts(self, service):
        token = CancellationToken()
        token.cancel()

        with pytest.raises(SearchCancelledError):
            service.find_results("radio", token)


class TestAsyncSearch:
    """Tests for the async search entry point."""

    def test_publishes_results(self, populated, stations):
        service = SearchService(LibraryCache(populated), stations)
        published = []
        searching = []

        ok = asyncio.run(service.search("radio", published.append, searching.append))

        assert ok is True
        assert len(published) == 1
        assert len(published[0]) == 4
        assert searching == [True, False]

    def test_results_are_capped(self, populated, stations):
        service = SearchService(LibraryCache(populated), stations, max_results=2)
        published = []

        asyncio.run(service.search("radio", published.append))

        assert len(published[0]) == 2

    def test_newer_search_wins(self, store, stations):
        store.put_entry(make_entry("a.mp3", title="Alpha Waves", artist="Xeno", album="Spectra"))
        store.put_entry(make_entry("b.mp3", title="Beta Blues", artist="Yara", album="Fields"))
        service = DelayedSearchService(LibraryCache(store), stations)
        published = []

        async def scenario():
            alpha = asyncio.create_task(
                service.search("alpha", lambda r: published.append(("alpha", r)))
            )
            await asyncio.sleep(0)
            beta = asyncio.create_task(
                service.search("beta", lambda r: published.append(("beta", r)))
            )
            return await alpha, await beta

        alpha_ok, beta_ok = asyncio.run(scenario())

        assert alpha_ok is False
        assert beta_ok is True
        assert len(published) == 1
        query, results = published[0]
        assert query == "beta"
        assert [r.entry.title for r in results] == ["Beta Blues"]

    def test_sequential_searches_both_publish(self, populated, stations):
        service = SearchService(LibraryCache(populated), stations)
        published = []

        async def scenario():
            await service.search("queen", published.append)
            await service.search("buggles", published.append)

        asyncio.run(scenario())

        assert [r[0].artist_name for r in published] == ["Queen", "The Buggles"]


class TestDescribeResult:
    """Tests for describe_result."""

    def test_each_kind(self):
        entry = make_entry("x.mp3", title="Song", artist="Band", album="Record", duration=125.0)

        assert describe_result(TrackResult(entry=entry)).startswith("[track]   Song - Band (Record) 2:05")
        assert describe_result(ArtistResult("Band", [entry])) == "[artist]  Band (1 tracks)"
        assert describe_result(AlbumResult("Record", "Band", [entry])) == "[album]   Record - Band (1 tracks)"
        assert describe_result(StationResult("station_1", "Mix")) == "[station] Mix  id=station_1"

    def test_unknown_result(self):
        with pytest.raises(TypeError):
            describe_result("not a result")
