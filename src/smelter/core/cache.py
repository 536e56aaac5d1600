"""SQLite metadata cache for audio files.

Entries are keyed by file path and are only trusted while the file's
modification time (whole seconds) and size still match what was stored.
mtime + size is a cheap identity check, not a content hash: a rewrite within
the same second that keeps the size is not detected.
"""

from __future__ import annotations

import logging
import os
import sqlite3
import threading
import time
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from ..exceptions import StorageUnavailable
from ..models.audio_metadata import AudioMetadata

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _cache_key(path: PathLike) -> str:
    return str(Path(path))


def _file_identity(path: PathLike) -> Tuple[int, int]:
    """Return (mtime in whole seconds, size in bytes) of a live file."""
    stat = os.stat(path)
    return int(stat.st_mtime), stat.st_size


def _column_names(conn: sqlite3.Connection, table: str) -> List[str]:
    return [row[1] for row in conn.execute(f"PRAGMA table_info({table})")]


def _add_file_size_column(conn: sqlite3.Connection) -> None:
    # -1 never equals a real size, so rows written before this column existed
    # all turn into misses.
    if "file_size" not in _column_names(conn, "audio_metadata"):
        conn.execute(
            "ALTER TABLE audio_metadata ADD COLUMN file_size INTEGER NOT NULL DEFAULT -1"
        )


def _purge_for_mood_extraction(conn: sqlite3.Connection) -> None:
    conn.execute("DELETE FROM audio_metadata")


# Applied in order, each exactly once per database.
MIGRATIONS: List[Tuple[str, Callable[[sqlite3.Connection], None]]] = [
    ("0001_add_file_size", _add_file_size_column),
    ("0002_purge_for_mood_extraction", _purge_for_mood_extraction),
]


class MetadataStore:
    """Thread-safe SQLite cache for audio metadata.

    The store owns a single connection. Every read and write goes through
    ``self._lock``, so concurrent callers are serialized rather than
    interleaved.
    """

    def __init__(self, db_path: PathLike) -> None:
        self.db_path = Path(db_path)
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()

    def __enter__(self) -> "MetadataStore":
        self.initialize()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def initialize(self) -> None:
        """Create the database and schema and apply pending migrations.

        Safe to call any number of times.

        Raises:
            StorageUnavailable: If the database cannot be created or opened.
        """
        with self._lock:
            self._ensure_open()

    def _ensure_open(self) -> sqlite3.Connection:
        if self._conn is not None:
            return self._conn

        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageUnavailable(f"Failed to create cache directory {self.db_path.parent}: {e}")

        try:
            conn = sqlite3.connect(self.db_path, check_same_thread=False)
        except sqlite3.Error as e:
            raise StorageUnavailable(f"Failed to open database {self.db_path}: {e}")

        try:
            self._init_db(conn)
            self._apply_migrations(conn)
        except sqlite3.Error as e:
            conn.close()
            raise StorageUnavailable(f"Failed to prepare database {self.db_path}: {e}")

        self._conn = conn
        return conn

    def _init_db(self, conn: sqlite3.Connection) -> None:
        """Initialize SQLite database with schema."""
        with conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS audio_metadata (
                    id INTEGER PRIMARY KEY,
                    file_path TEXT UNIQUE NOT NULL,
                    file_modified INTEGER NOT NULL,
                    title TEXT,
                    artist TEXT,
                    genre TEXT,
                    mood TEXT,
                    energy TEXT,
                    bpm INTEGER,
                    duration_secs REAL,
                    created_at INTEGER NOT NULL,
                    updated_at INTEGER NOT NULL
                )
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_file_path
                ON audio_metadata(file_path)
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS schema_migrations (
                    name TEXT PRIMARY KEY,
                    applied_at INTEGER NOT NULL
                )
            """)

    def _apply_migrations(self, conn: sqlite3.Connection) -> None:
        applied = {row[0] for row in conn.execute("SELECT name FROM schema_migrations")}
        for name, migrate in MIGRATIONS:
            if name in applied:
                continue
            with conn:
                migrate(conn)
                conn.execute(
                    "INSERT INTO schema_migrations (name, applied_at) VALUES (?, ?)",
                    (name, int(time.time())),
                )
            logger.info(f"Applied cache migration {name}")

    def applied_migrations(self) -> List[str]:
        """Names of migrations recorded in the ledger, oldest first."""
        with self._lock:
            conn = self._ensure_open()
            try:
                rows = conn.execute(
                    "SELECT name FROM schema_migrations ORDER BY applied_at, name"
                ).fetchall()
            except sqlite3.Error as e:
                raise StorageUnavailable(f"Database error: {e}")
        return [row[0] for row in rows]

    def lookup(self, path: PathLike) -> Optional[AudioMetadata]:
        """Get cached metadata for a file if still valid.

        Returns None if:
        - the file cannot be stat'ed
        - the file is not in the cache
        - the file's mtime or size changed since it was cached

        Raises:
            StorageUnavailable: On a database error.
        """
        try:
            file_modified, file_size = _file_identity(path)
        except OSError:
            return None

        with self._lock:
            conn = self._ensure_open()
            try:
                row = conn.execute(
                    """
                    SELECT file_path, title, artist, genre, mood, energy, bpm,
                           duration_secs, file_modified, file_size
                    FROM audio_metadata WHERE file_path = ?
                    """,
                    (_cache_key(path),),
                ).fetchone()
            except sqlite3.Error as e:
                raise StorageUnavailable(f"Database error: {e}")

        if row is None:
            return None

        if row[8] != file_modified or row[9] != file_size:
            logger.debug(f"Stale cache entry for {path}")
            return None

        return AudioMetadata(
            path=Path(row[0]),
            title=row[1],
            artist=row[2],
            genre=row[3],
            mood=row[4],
            energy=row[5],
            bpm=row[6],
            duration_secs=row[7],
        )

    def put(self, metadata: AudioMetadata) -> None:
        """Cache metadata, replacing any existing entry for its path.

        Raises:
            StorageUnavailable: If the file cannot be stat'ed or the write fails.
        """
        try:
            file_modified, file_size = _file_identity(metadata.path)
        except OSError as e:
            raise StorageUnavailable(f"Cannot stat {metadata.path} for caching: {e}")

        now = int(time.time())

        with self._lock:
            conn = self._ensure_open()
            try:
                with conn:
                    conn.execute(
                        """
                        INSERT OR REPLACE INTO audio_metadata (
                            file_path, file_modified, file_size, title, artist,
                            genre, mood, energy, bpm, duration_secs,
                            created_at, updated_at
                        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                        """,
                        (
                            _cache_key(metadata.path),
                            file_modified,
                            file_size,
                            metadata.title,
                            metadata.artist,
                            metadata.genre,
                            metadata.mood,
                            metadata.energy,
                            metadata.bpm,
                            metadata.duration_secs,
                            now,
                            now,
                        ),
                    )
            except sqlite3.Error as e:
                raise StorageUnavailable(f"Failed to cache metadata for {metadata.path}: {e}")

    def invalidate(self, paths: Iterable[PathLike]) -> int:
        """Remove cache entries for the given paths.

        Returns:
            Number of entries removed
        """
        keys = [(_cache_key(p),) for p in paths]
        if not keys:
            return 0

        with self._lock:
            conn = self._ensure_open()
            try:
                with conn:
                    before = conn.total_changes
                    conn.executemany("DELETE FROM audio_metadata WHERE file_path = ?", keys)
                    removed = conn.total_changes - before
            except sqlite3.Error as e:
                raise StorageUnavailable(f"Failed to invalidate cache entries: {e}")

        logger.debug(f"Invalidated {removed} cache entries")
        return removed

    def clear(self) -> int:
        """Clear all cache entries.

        Returns:
            Number of entries that were cached
        """
        with self._lock:
            conn = self._ensure_open()
            try:
                with conn:
                    count = conn.execute("SELECT COUNT(*) FROM audio_metadata").fetchone()[0]
                    conn.execute("DELETE FROM audio_metadata")
            except sqlite3.Error as e:
                raise StorageUnavailable(f"Failed to clear cache: {e}")

        return count

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics.

        Returns:
            Dictionary with cache stats
        """
        with self._lock:
            conn = self._ensure_open()
            try:
                total = conn.execute("SELECT COUNT(*) FROM audio_metadata").fetchone()[0]
                size_row = conn.execute(
                    "SELECT page_count * page_size FROM pragma_page_count(), pragma_page_size()"
                ).fetchone()
            except sqlite3.Error as e:
                raise StorageUnavailable(f"Database error: {e}")

        size_bytes = size_row[0] if size_row else 0
        return {
            'total_entries': total,
            'size_bytes': size_bytes,
            'size_mb': size_bytes / (1024 * 1024),
            'db_path': str(self.db_path),
        }

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
