"""SQLite snapshot store for books.

The generation core never touches storage; the CLI passes ``save_book`` as
(part of) the ``on_progress`` callback so every snapshot is persisted.
"""

import json
import logging
import sqlite3
from pathlib import Path
from typing import Optional

from models.book import Book

logger = logging.getLogger(__name__)

_CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS books (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL DEFAULT '',
    status TEXT NOT NULL DEFAULT 'draft',
    data TEXT NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""

# Indexes added via migration (idempotent)
_MIGRATION_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_books_status ON books(status)",
]


class Database:
    """SQLite database manager for book snapshots."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode = WAL")
        return conn

    def _init_db(self):
        with self._get_conn() as conn:
            conn.executescript(_CREATE_TABLES_SQL)
        self._migrate()

    def _migrate(self):
        """Apply idempotent schema migrations."""
        with self._get_conn() as conn:
            for sql in _MIGRATION_SQL:
                try:
                    conn.execute(sql)
                except sqlite3.OperationalError as e:
                    logger.debug("Migration skipped (already applied): %s", e)

    def backup_database(self, target_path: str | Path) -> Path:
        """Create a consistent backup copy of the database, WAL contents included."""
        target = Path(target_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        source = self._get_conn()
        dest = sqlite3.connect(str(target))
        try:
            source.backup(dest)
        finally:
            dest.close()
            source.close()
        logger.info("Database backed up to %s", target)
        return target

    # ---- Book CRUD ----

    def save_book(self, book: Book) -> None:
        """Insert or replace the stored snapshot for ``book.id``."""
        data = json.dumps(book.to_dict(), ensure_ascii=False)
        with self._get_conn() as conn:
            conn.execute(
                "INSERT INTO books (id, title, status, data) VALUES (?, ?, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET title=excluded.title, "
                "status=excluded.status, data=excluded.data, "
                "updated_at=CURRENT_TIMESTAMP",
                (book.id, book.title, book.status.value, data),
            )

    def get_book(self, book_id: str) -> Optional[Book]:
        with self._get_conn() as conn:
            row = conn.execute("SELECT data FROM books WHERE id = ?", (book_id,)).fetchone()
            if not row:
                return None
            return Book.from_dict(json.loads(row["data"]))

    def find_book(self, id_prefix: str) -> Optional[Book]:
        """Look a book up by a unique id prefix, as typed on the command line."""
        with self._get_conn() as conn:
            rows = conn.execute(
                "SELECT data FROM books WHERE id LIKE ? LIMIT 2",
                (f"{id_prefix}%",),
            ).fetchall()
            if len(rows) != 1:
                return None
            return Book.from_dict(json.loads(rows[0]["data"]))

    def list_books(self) -> list[Book]:
        with self._get_conn() as conn:
            rows = conn.execute("SELECT data FROM books ORDER BY created_at, id").fetchall()
            return [Book.from_dict(json.loads(r["data"])) for r in rows]

    def delete_book(self, book_id: str) -> None:
        with self._get_conn() as conn:
            conn.execute("DELETE FROM books WHERE id = ?", (book_id,))
        logger.info("Book %s deleted", book_id)
