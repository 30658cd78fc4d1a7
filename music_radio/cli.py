"""
CLI module for music radio commands.
"""

import asyncio
import logging
import sys
from typing import Optional, Tuple

import click
from tqdm import tqdm

from music_radio.config import Config
from music_radio.exceptions import StationExistsError, StationNotFoundError
from music_radio.metadata import get_duration_formatted
from music_radio.models import Criterion, SyncProgress
from music_radio.pipeline import Pipeline
from music_radio.search import describe_result
from music_radio.stations import DEFAULT_SEED_WEIGHTS


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    fmt: str = LOG_FORMAT,
) -> None:
    """Setup logging configuration.

    Args:
        level: Logging level.
        log_file: Optional file to log to in addition to stderr.
        fmt: Log record format.
    """
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=fmt,
        handlers=handlers,
        force=True,
    )


def parse_criterion(text: str) -> Criterion:
    """Parse ``attribute=value[:weight]`` into a Criterion."""
    if "=" not in text:
        raise click.BadParameter(f"Expected attribute=value[:weight], got '{text}'")
    attribute, _, rest = text.partition("=")
    value, weight = rest, 1.0
    if ":" in rest:
        head, _, tail = rest.rpartition(":")
        try:
            weight = float(tail)
            value = head
        except ValueError:
            pass
    try:
        return Criterion(attribute=attribute.strip().lower(), value=value.strip(), weight=weight)
    except ValueError as e:
        raise click.BadParameter(str(e))


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    help="Path to configuration file"
)
@click.option(
    "--log-level",
    "-l",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Logging level (defaults to logging.level from the config)"
)
@click.option(
    "--db",
    type=click.Path(),
    help="Library database path"
)
@click.pass_context
def cli(ctx, config: str, log_level: str, db: str):
    """Music Radio - local library cache and radio stations."""
    cfg = Config(config) if config else Config()
    if db:
        cfg.set("library.db_path", db)

    setup_logging(
        log_level or cfg.get("logging.level", "INFO"),
        cfg.get("logging.file"),
        cfg.get("logging.format", LOG_FORMAT),
    )

    pipeline = Pipeline(cfg).open()
    ctx.call_on_close(pipeline.close)

    ctx.ensure_object(dict)
    ctx.obj["config"] = cfg
    ctx.obj["pipeline"] = pipeline


def _get_station_or_exit(pipeline: Pipeline, station_id: str):
    station = pipeline.stations.get_station_by_id(station_id)
    if station is None:
        click.echo(f"Station not found: {station_id}", err=True)
        sys.exit(1)
    return station


@cli.command()
@click.option(
    "--root",
    "-r",
    type=click.Path(exists=True, file_okay=False),
    help="Music root directory"
)
@click.pass_context
def sync(ctx, root: str):
    """Sync the library cache with the music folder."""
    pipeline: Pipeline = ctx.obj["pipeline"]
    bar = None

    def on_progress(event: SyncProgress) -> None:
        nonlocal bar
        if event.done:
            if bar is not None:
                bar.close()
                bar = None
            return
        if bar is None:
            bar = tqdm(total=event.total, desc="Reading new files", unit="file")
        bar.n = event.current
        bar.refresh()

    click.echo(f"Syncing: {root or pipeline.config.music_root}")
    report = pipeline.run_sync(root, progress=on_progress)
    if report is None:
        click.echo(f"No usable music folder: {root or pipeline.config.music_root}", err=True)
        sys.exit(1)

    click.echo(f"Added: {report.added}")
    click.echo(f"Removed: {report.removed}")
    if report.skipped:
        click.echo(f"Skipped (unreadable): {report.skipped}")
    click.echo(f"New stations: {report.stations_created}")


@cli.command()
@click.argument("query")
@click.pass_context
def search(ctx, query: str):
    """Search stations, artists, albums and tracks."""
    pipeline: Pipeline = ctx.obj["pipeline"]
    published = []

    asyncio.run(pipeline.search.search(query, published.extend))

    if not published:
        click.echo("No results")
        return
    for result in published:
        click.echo(describe_result(result))


@cli.command()
@click.option("--all", "show_all", is_flag=True, help="Include temporary stations")
@click.pass_context
def stations(ctx, show_all: bool):
    """List radio stations."""
    pipeline: Pipeline = ctx.obj["pipeline"]

    listed = [s for s in pipeline.stations.get_all_stations() if show_all or not s.is_temporary]
    if not listed:
        click.echo("No stations")
        return

    for station in listed:
        flags = []
        if station.is_favorite:
            flags.append("*")
        if station.is_auto_generated:
            flags.append("auto")
        if station.is_temporary:
            flags.append("temp")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        click.echo(f"{station.id}  {station.name}{suffix}")
        for criterion in station.criteria:
            click.echo(
                f"    {criterion.attribute.value}={criterion.value} "
                f"(weight {criterion.weight:.2f})"
            )


@cli.command("create-station")
@click.argument("name")
@click.option("--seed", "-s", multiple=True, help="Track ID to derive criteria from")
@click.option(
    "--criterion",
    "-k",
    "criteria",
    multiple=True,
    help="Criterion as attribute=value[:weight]"
)
@click.option("--description", "-d", help="Station description")
@click.pass_context
def create_station(ctx, name: str, seed: Tuple[str, ...], criteria: Tuple[str, ...], description: str):
    """Create a radio station from criteria and/or seed tracks."""
    pipeline: Pipeline = ctx.obj["pipeline"]

    parsed = [parse_criterion(c) for c in criteria]
    try:
        station = pipeline.stations.create_station(
            name, parsed, description=description, is_custom=True
        )
    except StationExistsError as e:
        click.echo(str(e), err=True)
        sys.exit(1)

    if seed:
        tracks = [pipeline.library.get_entry(track_id) for track_id in seed]
        missing = [track_id for track_id, t in zip(seed, tracks) if t is None]
        if missing:
            click.echo(f"Unknown track ids: {', '.join(missing)}", err=True)
        tracks = [t for t in tracks if t is not None]
        station = pipeline.stations.update_station_from_tracks(
            station.id, tracks, DEFAULT_SEED_WEIGHTS
        )
        if parsed:
            station = pipeline.stations.update_station(
                station.id, criteria=station.criteria + parsed
            )

    click.echo(f"Created station {station.id} with {len(station.criteria)} criteria")


@cli.command("delete-station")
@click.argument("station_id")
@click.pass_context
def delete_station(ctx, station_id: str):
    """Delete a radio station."""
    pipeline: Pipeline = ctx.obj["pipeline"]
    if not pipeline.stations.delete_station(station_id):
        click.echo(f"Station not found: {station_id}", err=True)
        sys.exit(1)
    click.echo(f"Deleted {station_id}")


@cli.command()
@click.argument("station_id")
@click.pass_context
def favorite(ctx, station_id: str):
    """Toggle a station's favorite flag."""
    pipeline: Pipeline = ctx.obj["pipeline"]
    try:
        station = pipeline.stations.toggle_favorite(station_id)
    except StationNotFoundError as e:
        click.echo(str(e), err=True)
        sys.exit(1)
    state = "added to" if station.is_favorite else "removed from"
    click.echo(f"{station.name} {state} favorites")


@cli.command()
@click.argument("station_id")
@click.argument("name")
@click.pass_context
def rename(ctx, station_id: str, name: str):
    """Rename a station."""
    pipeline: Pipeline = ctx.obj["pipeline"]
    try:
        station = pipeline.stations.update_station(station_id, name=name)
    except StationNotFoundError as e:
        click.echo(str(e), err=True)
        sys.exit(1)
    click.echo(f"Renamed to {station.name}")


@cli.command()
@click.argument("station_id")
@click.option("--k", "-k", type=int, help="Number of tracks to show")
@click.pass_context
def top(ctx, station_id: str, k: Optional[int]):
    """Show the best-scoring tracks for a station."""
    pipeline: Pipeline = ctx.obj["pipeline"]
    station = _get_station_or_exit(pipeline, station_id)
    limit = k or int(pipeline.config.get("radio.top_tracks", 100))

    ranked = pipeline.stations.score_tracks_for_station(station, limit=limit)
    if not ranked:
        click.echo("Library is empty")
        return

    click.echo(f"\nTop {len(ranked)} tracks for {station.name}:\n")
    for i, track_score in enumerate(ranked, 1):
        track = track_score.track
        click.echo(f"{i}. {track.title} - {track.artist}  ({track_score.score:.3f})")


@cli.command()
@click.argument("station_id")
@click.option("--count", "-n", type=int, default=10, help="Number of tracks to queue")
@click.pass_context
def play(ctx, station_id: str, count: int):
    """Print the play queue a station would produce."""
    pipeline: Pipeline = ctx.obj["pipeline"]
    station = _get_station_or_exit(pipeline, station_id)

    session = pipeline.new_session()
    queued = session.play_station(station)
    if queued is None:
        click.echo("Library is empty")
        return

    for i in range(1, count + 1):
        track = queued.track
        duration = get_duration_formatted(track.duration) if track.duration else "-"
        location = queued.path or "(file not found)"
        click.echo(f"{i}. {track.title} - {track.artist} [{duration}] {location}")
        if i < count:
            queued = session.next_track()
            if queued is None:
                break


@cli.command()
@click.pass_context
def stats(ctx):
    """Show library statistics."""
    pipeline: Pipeline = ctx.obj["pipeline"]
    summary = pipeline.get_statistics()

    click.echo(f"\nLibrary Statistics")
    click.echo(f"==================\n")
    click.echo(f"Total tracks: {summary['total_tracks']}")
    click.echo(f"Total stations: {summary['total_stations']}")

    if not summary["total_tracks"]:
        return

    click.echo(f"Unique artists: {summary['unique_artists']}")
    click.echo(f"Unique albums: {summary['unique_albums']}")

    if summary["top_genres"]:
        click.echo(f"\nTop genres:")
        for genre, count in summary["top_genres"].items():
            click.echo(f"  {genre}: {count}")

    click.echo(f"\nTop artists:")
    for artist, count in summary["top_artists"].items():
        click.echo(f"  {artist}: {count}")

    click.echo(f"\nDecades:")
    for decade, count in summary["decades"].items():
        label = f"{decade}s" if decade else "unknown"
        click.echo(f"  {label}: {count}")

    click.echo()


@cli.command()
@click.option("--output", "-o", type=click.Path(), help="Manifest output path")
@click.pass_context
def export(ctx, output: str):
    """Export the library cache as a manifest file."""
    pipeline: Pipeline = ctx.obj["pipeline"]
    path = pipeline.store.export_manifest(output or pipeline.config.manifest_path)
    click.echo(f"Manifest saved to: {path}")


def main():
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
