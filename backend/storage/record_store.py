"""
Durable record storage.

Provides a simple key/value interface for storing serialized records.
Currently uses a local SQLite file, the equivalent of a browser's
localStorage: one named record per key, the whole value replaced on
every write.
"""
import sqlite3
from pathlib import Path
from typing import Optional

from domain.errors import StorageError


class SQLiteRecordStore:
    """SQLite-backed record store keyed by record name.

    By default the DB is placed under the package-local `backend/data/`
    directory (not relative to the current working directory).
    """

    DEFAULT_DB = Path(__file__).resolve().parents[1] / "data" / "favorites.sqlite"

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = Path(db_path) if db_path else self.DEFAULT_DB
        self._initialized = False

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        """Initialize the database schema."""
        if self._initialized:
            return
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = self._get_connection()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS records (
                    key TEXT PRIMARY KEY,
                    payload TEXT NOT NULL
                )
                """
            )
            conn.commit()
        finally:
            conn.close()
        self._initialized = True

    def read(self, key: str) -> Optional[str]:
        """
        Return the raw payload stored under key, or None if there is none.

        Raises:
            StorageError: the database could not be opened or queried.
        """
        try:
            self._init_schema()
            conn = self._get_connection()
            try:
                row = conn.execute(
                    "SELECT payload FROM records WHERE key = ?", (key,)
                ).fetchone()
            finally:
                conn.close()
        except (sqlite3.Error, OSError) as exc:
            raise StorageError(f"could not read record {key!r}: {exc}") from exc
        return row["payload"] if row else None

    def write(self, key: str, payload: str) -> None:
        """
        Replace the record stored under key.

        Raises:
            StorageError: the database could not be opened or written.
        """
        try:
            self._init_schema()
            conn = self._get_connection()
            try:
                conn.execute(
                    "INSERT OR REPLACE INTO records (key, payload) VALUES (?, ?)",
                    (key, payload),
                )
                conn.commit()
            finally:
                conn.close()
        except (sqlite3.Error, OSError) as exc:
            raise StorageError(f"could not write record {key!r}: {exc}") from exc
