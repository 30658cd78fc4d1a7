"""
Storage module for the persistent library cache.

SQLite database with three logical tables:
- library_entries: one row per audio file (PK id, unique file_path)
- album_art: artwork linked to an entry by id (unique file_path)
- radio_stations: station definitions (non-unique name index)

The schema is versioned; opening an older database applies only the
missing migrations and leaves existing rows alone.
"""

import json
import logging
import os
import sqlite3
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from music_radio.exceptions import StoreNotInitializedError
from music_radio.models import AlbumArtEntry, Criterion, LibraryEntry, RadioStation


logger = logging.getLogger(__name__)

SCHEMA_VERSION = 3


def _migrate_to_v1(cursor):
    """v1: library entries."""
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS library_entries (
            id TEXT PRIMARY KEY,
            file_path TEXT NOT NULL,
            file_name TEXT NOT NULL,
            modified_time REAL NOT NULL,
            title TEXT NOT NULL,
            artist TEXT NOT NULL,
            album TEXT NOT NULL,
            genre TEXT NOT NULL DEFAULT '',
            year INTEGER NOT NULL DEFAULT 0,
            mood TEXT NOT NULL DEFAULT '',
            duration REAL NOT NULL DEFAULT 0
        )
    """)
    cursor.execute(
        "CREATE UNIQUE INDEX IF NOT EXISTS idx_library_entries_file_path "
        "ON library_entries(file_path)"
    )
    cursor.execute(
        "CREATE INDEX IF NOT EXISTS idx_library_entries_modified_time "
        "ON library_entries(modified_time)"
    )


def _migrate_to_v2(cursor):
    """v2: album art store."""
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS album_art (
            id TEXT PRIMARY KEY,
            data BLOB NOT NULL,
            mime_type TEXT NOT NULL,
            file_path TEXT NOT NULL
        )
    """)
    cursor.execute(
        "CREATE UNIQUE INDEX IF NOT EXISTS idx_album_art_file_path "
        "ON album_art(file_path)"
    )


def _migrate_to_v3(cursor):
    """v3: radio stations."""
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS radio_stations (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            description TEXT,
            criteria TEXT NOT NULL DEFAULT '[]',
            created_at TIMESTAMP NOT NULL,
            updated_at TIMESTAMP NOT NULL,
            is_auto_generated BOOLEAN DEFAULT 0,
            is_temporary BOOLEAN DEFAULT 0,
            image_path TEXT,
            last_played TIMESTAMP,
            is_favorite BOOLEAN DEFAULT 0,
            is_custom BOOLEAN DEFAULT 0,
            is_all_music BOOLEAN DEFAULT 0
        )
    """)
    cursor.execute(
        "CREATE INDEX IF NOT EXISTS idx_radio_stations_name ON radio_stations(name)"
    )


MIGRATIONS = [
    (1, _migrate_to_v1),
    (2, _migrate_to_v2),
    (3, _migrate_to_v3),
]


def _to_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _from_timestamp(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class LibraryStore:
    """Persistent store for library entries, album art and radio stations."""

    def __init__(self, db_path: str = ":memory:"):
        """Initialize store.

        Args:
            db_path: SQLite database path, or ":memory:".
        """
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None

    def open(self, target_version: int = SCHEMA_VERSION) -> "LibraryStore":
        """Open the database and upgrade its schema if needed.

        Args:
            target_version: Schema version to migrate up to.

        Returns:
            self, for chaining.
        """
        if self._conn is not None:
            return self

        if self.db_path != ":memory:":
            directory = os.path.dirname(os.path.abspath(self.db_path))
            os.makedirs(directory, exist_ok=True)

        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            self._upgrade(conn, target_version)
        except sqlite3.Error:
            conn.close()
            raise

        self._conn = conn
        logger.info(f"Library store opened: {self.db_path} (schema v{self.schema_version})")
        return self

    def _upgrade(self, conn: sqlite3.Connection, target_version: int) -> None:
        cursor = conn.cursor()
        cursor.execute("CREATE TABLE IF NOT EXISTS schema_version (version INTEGER NOT NULL)")
        cursor.execute("SELECT MAX(version) FROM schema_version")
        row = cursor.fetchone()
        current_version = row[0] or 0

        for version, migrate in MIGRATIONS:
            if current_version < version <= target_version:
                logger.info(f"Migrating library store to schema v{version}")
                migrate(cursor)
                cursor.execute("INSERT INTO schema_version (version) VALUES (?)", (version,))

        conn.commit()

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "LibraryStore":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @property
    def connection(self) -> sqlite3.Connection:
        """Get the open connection.

        Raises:
            StoreNotInitializedError: If the store has not been opened.
        """
        if self._conn is None:
            raise StoreNotInitializedError()
        return self._conn

    @property
    def schema_version(self) -> int:
        row = self.connection.execute("SELECT MAX(version) FROM schema_version").fetchone()
        return row[0] or 0

    def table_names(self) -> List[str]:
        rows = self.connection.execute(
            "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
        ).fetchall()
        return [row["name"] for row in rows]

    # Library entries

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> LibraryEntry:
        return LibraryEntry(
            id=row["id"],
            file_path=row["file_path"],
            file_name=row["file_name"],
            modified_time=row["modified_time"],
            title=row["title"],
            artist=row["artist"],
            album=row["album"],
            genre=row["genre"],
            year=row["year"],
            mood=row["mood"],
            duration=row["duration"],
        )

    def get_all_entries(self) -> List[LibraryEntry]:
        rows = self.connection.execute(
            "SELECT * FROM library_entries ORDER BY rowid"
        ).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def get_entry(self, entry_id: str) -> Optional[LibraryEntry]:
        row = self.connection.execute(
            "SELECT * FROM library_entries WHERE id = ?", (entry_id,)
        ).fetchone()
        return self._row_to_entry(row) if row else None

    def count_entries(self) -> int:
        return self.connection.execute("SELECT COUNT(*) FROM library_entries").fetchone()[0]

    def put_entry(self, entry: LibraryEntry) -> None:
        """Insert or replace a library entry."""
        conn = self.connection
        with conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO library_entries
                    (id, file_path, file_name, modified_time, title, artist,
                     album, genre, year, mood, duration)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.id, entry.file_path, entry.file_name, entry.modified_time,
                    entry.title, entry.artist, entry.album, entry.genre,
                    entry.year, entry.mood, entry.duration,
                ),
            )

    def delete_entries(self, entry_ids: Iterable[str]) -> int:
        """Delete entries and their linked album art.

        Returns:
            Number of library entries removed.
        """
        ids = [(entry_id,) for entry_id in entry_ids]
        if not ids:
            return 0

        conn = self.connection
        with conn:
            before = conn.total_changes
            conn.executemany("DELETE FROM library_entries WHERE id = ?", ids)
            removed = conn.total_changes - before
            conn.executemany("DELETE FROM album_art WHERE id = ?", ids)
        return removed

    # Album art

    def get_album_art(self, entry_id: str) -> Optional[AlbumArtEntry]:
        row = self.connection.execute(
            "SELECT * FROM album_art WHERE id = ?", (entry_id,)
        ).fetchone()
        if row is None:
            return None
        return AlbumArtEntry(
            id=row["id"],
            data=bytes(row["data"]),
            mime_type=row["mime_type"],
            file_path=row["file_path"],
        )

    def put_album_art(self, art: AlbumArtEntry) -> None:
        conn = self.connection
        with conn:
            conn.execute(
                "INSERT OR REPLACE INTO album_art (id, data, mime_type, file_path) "
                "VALUES (?, ?, ?, ?)",
                (art.id, sqlite3.Binary(art.data), art.mime_type, art.file_path),
            )

    # Radio stations

    @staticmethod
    def _row_to_station(row: sqlite3.Row) -> RadioStation:
        return RadioStation(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            criteria=[Criterion.from_dict(c) for c in json.loads(row["criteria"])],
            created_at=_from_timestamp(row["created_at"]),
            updated_at=_from_timestamp(row["updated_at"]),
            is_auto_generated=bool(row["is_auto_generated"]),
            is_temporary=bool(row["is_temporary"]),
            image_path=row["image_path"],
            last_played=_from_timestamp(row["last_played"]),
            is_favorite=bool(row["is_favorite"]),
            is_custom=bool(row["is_custom"]),
            is_all_music=bool(row["is_all_music"]),
        )

    def get_all_stations(self) -> List[RadioStation]:
        rows = self.connection.execute(
            "SELECT * FROM radio_stations ORDER BY rowid"
        ).fetchall()
        return [self._row_to_station(row) for row in rows]

    def get_station(self, station_id: str) -> Optional[RadioStation]:
        row = self.connection.execute(
            "SELECT * FROM radio_stations WHERE id = ?", (station_id,)
        ).fetchone()
        return self._row_to_station(row) if row else None

    def get_stations_by_name(self, name: str) -> List[RadioStation]:
        rows = self.connection.execute(
            "SELECT * FROM radio_stations WHERE name = ? ORDER BY rowid", (name,)
        ).fetchall()
        return [self._row_to_station(row) for row in rows]

    def put_station(self, station: RadioStation) -> None:
        """Insert or replace a station record."""
        conn = self.connection
        with conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO radio_stations
                    (id, name, description, criteria, created_at, updated_at,
                     is_auto_generated, is_temporary, image_path, last_played,
                     is_favorite, is_custom, is_all_music)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    station.id,
                    station.name,
                    station.description,
                    json.dumps([c.to_dict() for c in station.criteria]),
                    _to_timestamp(station.created_at),
                    _to_timestamp(station.updated_at),
                    int(station.is_auto_generated),
                    int(station.is_temporary),
                    station.image_path,
                    _to_timestamp(station.last_played),
                    int(station.is_favorite),
                    int(station.is_custom),
                    int(station.is_all_music),
                ),
            )

    def delete_station(self, station_id: str) -> bool:
        conn = self.connection
        with conn:
            cursor = conn.execute("DELETE FROM radio_stations WHERE id = ?", (station_id,))
        return cursor.rowcount > 0

    def delete_temporary_stations(self) -> int:
        conn = self.connection
        with conn:
            cursor = conn.execute("DELETE FROM radio_stations WHERE is_temporary = 1")
        return cursor.rowcount

    # Manifest export and statistics

    def entries_dataframe(self) -> pd.DataFrame:
        """Get all library entries as a DataFrame."""
        entries = self.get_all_entries()
        columns = list(LibraryEntry.__dataclass_fields__)
        return pd.DataFrame([e.to_dict() for e in entries], columns=columns)

    def export_manifest(self, path: str) -> str:
        """Save the library to a Parquet manifest (or CSV as fallback).

        Args:
            path: Target path.

        Returns:
            Path to saved file.
        """
        df = self.entries_dataframe()

        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        csv_path = path.replace('.parquet', '.csv') if path.endswith('.parquet') else path + '.csv'

        try:
            df.to_parquet(path, index=False)
            logger.info(f"Manifest saved to: {path}")
            return path
        except Exception as e:
            logger.warning(f"Could not save as Parquet, falling back to CSV: {e}")
            df.to_csv(csv_path, index=False)
            logger.info(f"Manifest saved to: {csv_path}")
            return csv_path

    def library_statistics(self, top: int = 10) -> Dict[str, Any]:
        """Summarize the library contents.

        Args:
            top: Number of entries in each top-N listing.

        Returns:
            Dictionary of statistics.
        """
        df = self.entries_dataframe()
        stats: Dict[str, Any] = {
            "total_tracks": len(df),
            "total_stations": len(self.get_all_stations()),
            "total_duration": float(df["duration"].sum()) if not df.empty else 0.0,
        }
        if df.empty:
            stats.update(unique_artists=0, unique_albums=0,
                         top_genres={}, top_artists={}, decades={})
            return stats

        genres = df["genre"].str.split(",").explode().str.strip()
        genres = genres[genres != ""].str.lower()
        decades = (df["year"] // 10 * 10).where(df["year"] > 0, 0)

        stats["unique_artists"] = int(df["artist"].str.lower().nunique())
        stats["unique_albums"] = int(
            (df["artist"].str.lower() + "|" + df["album"].str.lower()).nunique()
        )
        stats["top_genres"] = {k: int(v) for k, v in genres.value_counts().head(top).items()}
        stats["top_artists"] = {k: int(v) for k, v in df["artist"].value_counts().head(top).items()}
        stats["decades"] = {int(k): int(v) for k, v in decades.value_counts().sort_index().items()}
        return stats
