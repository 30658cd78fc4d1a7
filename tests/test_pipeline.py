"""
Integration tests for the full pipeline.
"""

import asyncio
import os
import tempfile

import pytest

from music_radio.config import Config
from music_radio.pipeline import Pipeline
from music_radio.storage import LibraryStore

from tests.helpers import FakeExtractor, touch


class TestPipeline:
    """Sync, discover, play and search through one composed pipeline."""

    @pytest.fixture
    def music_dir(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            for i in range(22):
                touch(tmpdir, f"Band/Band - Song {i:02d}.mp3")
            touch(tmpdir, "Solo - Ballad.mp3")
            yield tmpdir

    @pytest.fixture
    def pipeline(self, music_dir):
        config = Config()
        config.set("library.music_root", music_dir)
        with Pipeline(config, store=LibraryStore(":memory:"), extractor=FakeExtractor()) as opened:
            yield opened

    def test_sync_discovers_stations(self, pipeline):
        events = []

        report = pipeline.run_sync(progress=events.append)

        assert report.added == 23
        assert report.stations_created > 0
        assert events[0].total == 23
        assert events[-1].done
        names = {s.name for s in pipeline.stations.get_all_stations()}
        assert "Genre: rock" in names

    def test_sync_other_root(self, pipeline):
        with tempfile.TemporaryDirectory() as other:
            touch(other, "Other - Track.mp3")

            report = pipeline.run_sync(other)

            assert report.added == 1
            assert pipeline.config.music_root == other

    def test_play_discovered_station(self, pipeline, music_dir):
        pipeline.run_sync()
        station = pipeline.stations.get_all_stations()[0]
        session = pipeline.new_session()

        first = session.play_station(station)
        second = session.next_track()

        assert first.track.id != second.track.id
        assert first.path is not None
        assert os.path.commonpath([str(first.path), music_dir]) == music_dir

    def test_search_after_sync(self, pipeline):
        pipeline.run_sync()
        published = []

        asyncio.run(pipeline.search.search("ballad", published.append))

        assert [r.kind for r in published[0]] == ["track"]
        assert published[0][0].entry.artist == "Solo"

    def test_statistics(self, pipeline):
        pipeline.run_sync()

        stats = pipeline.get_statistics()

        assert stats["total_tracks"] == 23
        assert stats["top_artists"]["Band"] == 22
        assert stats["total_stations"] == len(pipeline.stations.get_all_stations())

    def test_sync_missing_root_changes_nothing(self, pipeline, music_dir):
        pipeline.run_sync()
        before = pipeline.store.get_all_entries()

        report = pipeline.run_sync(os.path.join(music_dir, "unplugged"))

        assert report is None
        assert pipeline.config.music_root == music_dir
        assert pipeline.store.get_all_entries() == before


class TestPipelineOpen:
    """Opening a pipeline drops temporary stations from the last run."""

    def test_open_clears_temporary_stations(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            db_path = os.path.join(tmpdir, "library.db")
            config = Config()
            config.set("library.music_root", tmpdir)

            with Pipeline(config, store=LibraryStore(db_path), extractor=FakeExtractor()) as first:
                first.stations.create_station("Saved")
                first.stations.create_station("Passing", is_temporary=True)

            with Pipeline(config, store=LibraryStore(db_path), extractor=FakeExtractor()) as second:
                names = [s.name for s in second.stations.get_all_stations()]

            assert names == ["Saved"]
