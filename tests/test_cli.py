"""
Tests for the command line interface.
"""

import os
import tempfile

import click
import pytest
import yaml
from click.testing import CliRunner

from music_radio.cli import cli, parse_criterion
from music_radio.models import Attribute
from music_radio.stations import station_id_for

from tests.helpers import write_silent_wav


class TestParseCriterion:
    """Tests for the criterion option parser."""

    def test_with_weight(self):
        criterion = parse_criterion("genre=jazz:0.5")

        assert criterion.attribute is Attribute.GENRE
        assert criterion.value == "jazz"
        assert criterion.weight == 0.5

    def test_default_weight(self):
        assert parse_criterion("Decade=1990").weight == 1.0

    def test_colon_in_value(self):
        criterion = parse_criterion("artist=AC:DC")

        assert criterion.value == "AC:DC"
        assert criterion.weight == 1.0

    @pytest.mark.parametrize("text", ["nonsense", "tempo=fast", "genre=rock:-1"])
    def test_invalid(self, text):
        with pytest.raises(click.BadParameter):
            parse_criterion(text)


class TestCli:
    """End-to-end runs of the CLI against a temporary library."""

    @pytest.fixture
    def workspace(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            music = os.path.join(tmpdir, "music")
            os.makedirs(os.path.join(music, "album"))
            write_silent_wav(os.path.join(music, "album", "first.wav"))
            write_silent_wav(os.path.join(music, "second.wav"), seconds=2.0)
            yield {
                "music": music,
                "db": os.path.join(tmpdir, "data", "library.db"),
                "export": os.path.join(tmpdir, "export", "library.parquet"),
            }

    @pytest.fixture
    def run(self, workspace):
        runner = CliRunner()

        def invoke(*args):
            return runner.invoke(cli, ["--db", workspace["db"], "-l", "WARNING", *args], obj={})

        return invoke

    def test_sync_and_stats(self, run, workspace):
        result = run("sync", "--root", workspace["music"])

        assert result.exit_code == 0, result.output
        assert "Added: 2" in result.output

        result = run("stats")
        assert result.exit_code == 0
        assert "Total tracks: 2" in result.output

    def test_resync_adds_nothing(self, run, workspace):
        run("sync", "--root", workspace["music"])

        result = run("sync", "--root", workspace["music"])

        assert "Added: 0" in result.output
        assert "Removed: 0" in result.output

    def test_station_lifecycle(self, run):
        result = run("create-station", "Chill", "-k", "mood=chill", "-k", "genre=jazz:0.5")
        assert result.exit_code == 0, result.output
        station_id = station_id_for("Chill")
        assert station_id in result.output

        result = run("stations")
        assert "Chill" in result.output
        assert "genre=jazz (weight 0.50)" in result.output

        result = run("favorite", station_id)
        assert "added to favorites" in result.output

        result = run("rename", station_id, "Mellow")
        assert "Renamed to Mellow" in result.output

        result = run("delete-station", station_id)
        assert result.exit_code == 0
        assert run("stations").output.strip().endswith("No stations")

    def test_missing_station(self, run):
        assert run("favorite", "station_missing").exit_code == 1
        assert run("rename", "station_missing", "x").exit_code == 1
        assert run("delete-station", "station_missing").exit_code == 1
        assert run("top", "station_missing").exit_code == 1

    def test_duplicate_station_name(self, run):
        run("create-station", "Chill", "-k", "mood=chill")
        run("favorite", station_id_for("Chill"))

        result = run("create-station", "Chill", "-k", "genre=metal")

        assert result.exit_code == 1
        assert "Station already exists: Chill" in result.output
        listing = run("stations").output
        assert "mood=chill" in listing
        assert "genre=metal" not in listing

    def test_sync_without_usable_folder(self, run, workspace):
        run("sync", "--root", workspace["music"])
        base = os.path.dirname(workspace["music"])
        config_path = os.path.join(base, "config.yaml")
        with open(config_path, "w") as f:
            yaml.safe_dump({"library": {"music_root": os.path.join(base, "unplugged")}}, f)

        result = CliRunner().invoke(
            cli, ["-c", config_path, "--db", workspace["db"], "sync"], obj={}
        )

        assert result.exit_code == 1
        assert "No usable music folder" in result.output
        assert "Total tracks: 2" in run("stats").output

    def test_bad_criterion(self, run):
        result = run("create-station", "Bad", "-k", "tempo=fast")

        assert result.exit_code == 2

    def test_top_and_play(self, run, workspace):
        run("sync", "--root", workspace["music"])
        run("create-station", "Everything", "-k", "artist=Unknown Artist")
        station_id = station_id_for("Everything")

        result = run("top", station_id, "-k", "5")
        assert result.exit_code == 0, result.output
        assert "Top 2 tracks for Everything" in result.output

        result = run("play", station_id, "--count", "3")
        assert result.exit_code == 0, result.output
        lines = [line for line in result.output.splitlines() if line[:2] in ("1.", "2.", "3.")]
        assert len(lines) == 3

    def test_search(self, run, workspace):
        run("sync", "--root", workspace["music"])

        result = run("search", "unknown")
        assert result.exit_code == 0
        assert "[artist]  Unknown Artist (2 tracks)" in result.output

        assert "No results" in run("search", "zzzz").output

    def test_export(self, run, workspace):
        run("sync", "--root", workspace["music"])

        result = run("export", "--output", workspace["export"])

        assert result.exit_code == 0
        assert "Manifest saved to:" in result.output
        assert os.path.exists(os.path.dirname(workspace["export"]))
