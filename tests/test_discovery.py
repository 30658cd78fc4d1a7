"""
Tests for the discovery module.
"""

import pytest

from music_radio.discovery import (
    DECADE,
    GENRE,
    GENRE_DECADE,
    MOOD,
    StationDiscovery,
    criteria_for_group,
    group_tracks,
    station_name,
)
from music_radio.models import Attribute, Criterion
from music_radio.stations import StationService

from tests.helpers import make_entry


def library(count, **fields):
    return [make_entry(f"track{i:03d}.mp3", **fields) for i in range(count)]


class FlakyRepository:
    """Station repository whose create fails for selected names."""

    def __init__(self, service, fail_on):
        self.service = service
        self.fail_on = fail_on

    def get_all_stations(self):
        return self.service.get_all_stations()

    def create_station(self, name, criteria=(), description=None,
                       is_auto_generated=False, is_temporary=False):
        if self.fail_on in name:
            raise RuntimeError("disk full")
        return self.service.create_station(
            name, criteria, description=description,
            is_auto_generated=is_auto_generated, is_temporary=is_temporary,
        )

    def update_station(self, station_id, **updates):
        return self.service.update_station(station_id, **updates)


class TestGrouping:
    """Tests for grouping helpers."""

    def test_group_tracks(self):
        entries = [
            make_entry("1.mp3", genre="Rock, Pop", mood="Happy", year=1984),
            make_entry("2.mp3", genre="rock", year=0),
        ]

        groups = group_tracks(entries)

        assert len(groups[GENRE]["rock"]) == 2
        assert len(groups[GENRE]["pop"]) == 1
        assert list(groups[MOOD]) == ["happy"]
        assert set(groups[DECADE]) == {"1980", "0"}
        assert set(groups[GENRE_DECADE]) == {"rock|1980", "pop|1980", "rock|0"}

    def test_station_names(self):
        assert station_name(GENRE, "rock") == "Genre: rock"
        assert station_name(MOOD, "chill") == "Mood: chill"
        assert station_name(DECADE, "1990") == "Decade: 1990's"
        assert station_name(GENRE_DECADE, "jazz|1960") == "jazz (1960's)"

    def test_criteria_for_group(self):
        assert criteria_for_group(GENRE, "rock") == [Criterion("genre", "rock", 1.0)]
        assert criteria_for_group(DECADE, "1990") == [Criterion("decade", "1990", 1.0)]
        assert criteria_for_group(GENRE_DECADE, "jazz|1960") == [
            Criterion("genre", "jazz", 0.7),
            Criterion("decade", "1960", 0.7),
        ]

    def test_unknown_grouping(self):
        with pytest.raises(ValueError):
            station_name("artist", "x")


class TestStationDiscovery:
    """Tests for StationDiscovery.run."""

    @pytest.fixture
    def service(self, store):
        return StationService(store)

    def test_rock_library_creates_one_genre_station(self, service, config):
        discovery = StationDiscovery(service, config)

        created = discovery.run(library(21, genre="Rock"))

        genre_stations = [s for s in created if s.name == "Genre: rock"]
        assert len(genre_stations) == 1
        station = genre_stations[0]
        assert station.criteria == [Criterion(Attribute.GENRE, "rock", 1.0)]
        assert station.is_auto_generated
        assert not station.is_temporary
        assert {s.name for s in created} == {"Genre: rock", "Decade: 0's", "rock (0's)"}

    def test_rerun_is_idempotent(self, service, config):
        discovery = StationDiscovery(service, config)
        entries = library(21, genre="Rock")

        first = discovery.run(entries)
        second = discovery.run(entries)

        assert len(first) == 3
        assert second == []
        assert len(service.get_all_stations()) == 3

    def test_small_library_is_noop(self, service, config):
        discovery = StationDiscovery(service, config)

        assert discovery.run(library(19, genre="Rock")) == []
        assert service.get_all_stations() == []

    def test_group_must_exceed_threshold(self, service, config):
        discovery = StationDiscovery(service, config)

        assert discovery.run(library(20, genre="Rock")) == []

    def test_mood_and_decade_groups(self, service, config):
        discovery = StationDiscovery(service, config)

        created = discovery.run(library(25, mood="Chill", year=1975))

        names = {s.name for s in created}
        assert "Mood: chill" in names
        assert "Decade: 1970's" in names

    def test_sorted_by_group_size(self, service, config):
        entries = library(30, genre="jazz", year=1965) + [
            make_entry(f"pop{i}.mp3", genre="pop", year=1965) for i in range(22)
        ]
        discovery = StationDiscovery(service, config)

        created = discovery.run(entries)
        names = [s.name for s in created]

        assert names.index("Genre: pop") < names.index("Genre: jazz")
        assert names[-1] == "Decade: 1960's"

    def test_assigns_unused_genre_images(self, service, config):
        discovery = StationDiscovery(service, config)

        created = {s.name: s for s in discovery.run(library(21, genre="Metal", year=1991))}

        assert created["Genre: metal"].image_path == "/assets/metal/1.jpg"
        assert created["metal (1990's)"].image_path == "/assets/metal/2.jpg"
        assert created["Decade: 1990's"].image_path is None
        assert service.get_station_by_id(created["Genre: metal"].id).image_path == "/assets/metal/1.jpg"

    def test_configured_images(self, service, config):
        config.set("discovery.genre_images", {"rock": ["/img/rock.jpg"]})
        discovery = StationDiscovery(service, config)

        created = {s.name: s for s in discovery.run(library(21, genre="rock"))}

        assert created["Genre: rock"].image_path == "/img/rock.jpg"
        # only one image for rock, and it is taken
        assert created["rock (0's)"].image_path is None

    def test_creation_failure_does_not_abort_pass(self, service, config):
        discovery = StationDiscovery(FlakyRepository(service, "Decade"), config)

        created = discovery.run(library(21, genre="Rock"))

        assert {s.name for s in created} == {"Genre: rock", "rock (0's)"}
