"""SQLite-backed hymn store.

Holds the hymn collection in a single ``hymns`` table. Tags are kept as a
JSON text column.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from .exceptions import StoreError
from .models import Hymn

logger = logging.getLogger(__name__)

CREATE_HYMNS_TABLE = """
CREATE TABLE IF NOT EXISTS hymns (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    lyrics TEXT,
    musical_key TEXT,
    copyright TEXT,
    author TEXT,
    tags TEXT,
    notes TEXT,
    song_number INTEGER,
    schema_version INTEGER NOT NULL
);
"""

CREATE_TITLE_INDEX = """
CREATE INDEX IF NOT EXISTS idx_hymns_title ON hymns(title COLLATE NOCASE);
"""

_COLUMNS = (
    "id",
    "title",
    "lyrics",
    "musical_key",
    "copyright",
    "author",
    "tags",
    "notes",
    "song_number",
    "schema_version",
)


def _to_row(hymn: Hymn) -> tuple:
    tags = json.dumps(hymn.tags, ensure_ascii=False) if hymn.tags is not None else None
    return (
        hymn.id,
        hymn.title,
        hymn.lyrics,
        hymn.musical_key,
        hymn.copyright,
        hymn.author,
        tags,
        hymn.notes,
        hymn.song_number,
        hymn.schema_version,
    )


def _from_row(row: sqlite3.Row) -> Hymn:
    return Hymn(
        id=row["id"],
        title=row["title"],
        lyrics=row["lyrics"],
        musical_key=row["musical_key"],
        copyright=row["copyright"],
        author=row["author"],
        tags=json.loads(row["tags"]) if row["tags"] else None,
        notes=row["notes"],
        song_number=row["song_number"],
        schema_version=row["schema_version"],
    )


class HymnStore:
    """CRUD access to persisted hymns.

    Attributes:
        db_path: Path to the SQLite database file, or ``":memory:"``
    """

    def __init__(self, db_path: Path | str):
        self.db_path = db_path
        self._connection: sqlite3.Connection | None = None

    @property
    def connection(self) -> sqlite3.Connection:
        if self._connection is None:
            if str(self.db_path) != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            try:
                self._connection = sqlite3.connect(str(self.db_path))
            except sqlite3.Error as exc:
                raise StoreError(f"Cannot open hymn database {self.db_path}: {exc}") from exc
            self._connection.row_factory = sqlite3.Row
        return self._connection

    def close(self) -> None:
        if self._connection:
            self._connection.close()
            self._connection = None

    def __enter__(self) -> "HymnStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """Commit on success, roll back and raise StoreError on sqlite failure."""
        conn = self.connection
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            logger.error("Hymn store transaction failed: %s", exc)
            raise StoreError(f"Failed to save hymns: {exc}") from exc
        except Exception:
            conn.rollback()
            raise

    def initialize_schema(self) -> None:
        with self.transaction() as conn:
            conn.execute(CREATE_HYMNS_TABLE)
            conn.execute(CREATE_TITLE_INDEX)

    # Writes

    def insert(self, hymn: Hymn) -> Hymn:
        with self.transaction() as conn:
            self.insert_row(conn, hymn)
        return hymn

    def save(self, hymn: Hymn) -> Hymn:
        """Persist the current field values of an already inserted hymn."""
        with self.transaction() as conn:
            self.update_row(conn, hymn)
        return hymn

    def delete(self, hymn: Hymn | str) -> bool:
        hymn_id = hymn.id if isinstance(hymn, Hymn) else hymn
        with self.transaction() as conn:
            cursor = conn.execute("DELETE FROM hymns WHERE id = ?", (hymn_id,))
        return cursor.rowcount > 0

    def insert_row(self, conn: sqlite3.Connection, hymn: Hymn) -> None:
        placeholders = ", ".join("?" for _ in _COLUMNS)
        conn.execute(
            f"INSERT INTO hymns ({', '.join(_COLUMNS)}) VALUES ({placeholders})",
            _to_row(hymn),
        )

    def update_row(self, conn: sqlite3.Connection, hymn: Hymn) -> None:
        assignments = ", ".join(f"{col} = ?" for col in _COLUMNS[1:])
        row = _to_row(hymn)
        cursor = conn.execute(
            f"UPDATE hymns SET {assignments} WHERE id = ?",
            (*row[1:], row[0]),
        )
        if cursor.rowcount == 0:
            raise StoreError(f"Hymn {hymn.id} is not in the store")

    # Reads

    def get(self, hymn_id: str) -> Hymn | None:
        row = self.connection.execute("SELECT * FROM hymns WHERE id = ?", (hymn_id,)).fetchone()
        return _from_row(row) if row else None

    def all(self) -> list[Hymn]:
        """All hymns sorted by title, ignoring case."""
        rows = self.connection.execute(
            "SELECT * FROM hymns ORDER BY title COLLATE NOCASE, id"
        ).fetchall()
        return [_from_row(row) for row in rows]

    def find_by_title(self, title: str) -> Hymn | None:
        """Case-insensitive exact title match."""
        wanted = title.strip().lower()
        for hymn in self.all():
            if hymn.title.lower() == wanted:
                return hymn
        return None

    def count(self) -> int:
        return self.connection.execute("SELECT COUNT(*) FROM hymns").fetchone()[0]
