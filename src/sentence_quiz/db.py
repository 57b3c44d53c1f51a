"""SQLite connection, DDL, and row-level CRUD for sentence-quiz."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Any

from sentence_quiz.exceptions import DatabaseError, StoreError
from sentence_quiz.models import Category, Sentence
from sentence_quiz.store import CATEGORY_FIELDS, SENTENCE_FIELDS, RemoteStore

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "1.0"

# Model attribute -> column name
_COLUMNS = {
    "name": "name",
    "color": "color",
    "source": "source_text",
    "target": "target_text",
    "rank": "sort_order",
}

# ---------------------------------------------------------------------------
# DDL statements
# ---------------------------------------------------------------------------

_DDL = """
CREATE TABLE IF NOT EXISTS meta (
    key TEXT NOT NULL,
    value TEXT,
    UNIQUE (key)
);

CREATE TABLE IF NOT EXISTS categories (
    id INTEGER PRIMARY KEY,
    owner TEXT NOT NULL,
    name TEXT NOT NULL,
    color TEXT NOT NULL DEFAULT '',
    sort_order INTEGER
);
CREATE INDEX IF NOT EXISTS category_owner_index ON categories (owner);

CREATE TABLE IF NOT EXISTS sentences (
    id INTEGER PRIMARY KEY,
    category_id INTEGER NOT NULL REFERENCES categories (id) ON DELETE CASCADE,
    owner TEXT NOT NULL,
    source_text TEXT NOT NULL,
    target_text TEXT NOT NULL,
    sort_order INTEGER
);
CREATE INDEX IF NOT EXISTS sentence_owner_index ON sentences (owner);
CREATE INDEX IF NOT EXISTS sentence_category_index ON sentences (category_id);
"""

# Unranked rows sort last, matching the in-memory ordering
_ORDER_BY = "ORDER BY sort_order IS NULL, sort_order, id"


def connect(db_path: str | Path = ":memory:") -> sqlite3.Connection:
    """Open a database connection with store PRAGMA settings."""
    db_path_str = str(db_path)
    try:
        conn = sqlite3.connect(db_path_str)
    except sqlite3.Error as e:
        raise DatabaseError(f"Cannot open database {db_path_str!r}: {e}") from e
    conn.execute("PRAGMA foreign_keys = ON")
    if db_path_str != ":memory:":
        conn.execute("PRAGMA journal_mode = WAL")
    conn.row_factory = sqlite3.Row
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    """Initialize all tables if they don't exist. Set schema version."""
    conn.executescript(_DDL)
    conn.execute(
        "INSERT OR IGNORE INTO meta (key, value) VALUES ('schema_version', ?)",
        (SCHEMA_VERSION,),
    )
    conn.execute(
        "INSERT OR IGNORE INTO meta (key, value) "
        "VALUES ('created_at', strftime('%Y-%m-%dT%H:%M:%f', 'now'))",
    )
    conn.commit()


def check_schema_version(conn: sqlite3.Connection) -> None:
    """Verify the database schema version is compatible."""
    try:
        row = conn.execute(
            "SELECT value FROM meta WHERE key = 'schema_version'"
        ).fetchone()
    except sqlite3.OperationalError:
        # meta table doesn't exist - uninitialized DB
        return
    if row is None:
        return
    version = row[0]
    if version != SCHEMA_VERSION:
        raise DatabaseError(
            f"Incompatible schema version: {version} "
            f"(expected {SCHEMA_VERSION})"
        )


def _row_to_category(row: sqlite3.Row) -> Category:
    return Category(
        id=row["id"],
        name=row["name"],
        color=row["color"],
        rank=row["sort_order"],
        owner=row["owner"],
    )


def _row_to_sentence(row: sqlite3.Row) -> Sentence:
    return Sentence(
        id=row["id"],
        category_id=row["category_id"],
        source=row["source_text"],
        target=row["target_text"],
        rank=row["sort_order"],
        owner=row["owner"],
    )


class SQLiteStore(RemoteStore):
    """A :class:`RemoteStore` backed by a local SQLite database."""

    def __init__(self, db_path: str | Path = ":memory:") -> None:
        self._db_path = str(db_path)
        self._conn = connect(db_path)
        check_schema_version(self._conn)
        init_db(self._conn)

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    def __enter__(self) -> SQLiteStore:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_categories(self, owner: str) -> list[Category]:
        rows = self._query(
            f"SELECT * FROM categories WHERE owner = ? {_ORDER_BY}", (owner,)
        )
        return [_row_to_category(r) for r in rows]

    def list_sentences(self, owner: str) -> list[Sentence]:
        rows = self._query(
            f"SELECT * FROM sentences WHERE owner = ? {_ORDER_BY}", (owner,)
        )
        return [_row_to_sentence(r) for r in rows]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert_category(self, category: Category) -> None:
        self._write(
            "INSERT INTO categories (id, owner, name, color, sort_order) "
            "VALUES (?, ?, ?, ?, ?)",
            (category.id, category.owner, category.name, category.color,
             category.rank),
        )

    def insert_sentence(self, sentence: Sentence) -> None:
        self._write(
            "INSERT INTO sentences "
            "(id, category_id, owner, source_text, target_text, sort_order) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (sentence.id, sentence.category_id, sentence.owner,
             sentence.source, sentence.target, sentence.rank),
        )

    def update_category(self, category_id: int, **fields: Any) -> None:
        self._update(
            "categories", "category", CATEGORY_FIELDS, category_id, fields,
        )

    def update_sentence(self, sentence_id: int, **fields: Any) -> None:
        self._update(
            "sentences", "sentence", SENTENCE_FIELDS, sentence_id, fields,
        )

    def delete_category(self, category_id: int) -> None:
        self._write_one(
            "DELETE FROM categories WHERE id = ?", (category_id,),
            "category", category_id,
        )

    def delete_sentence(self, sentence_id: int) -> None:
        self._write_one(
            "DELETE FROM sentences WHERE id = ?", (sentence_id,),
            "sentence", sentence_id,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _update(
        self,
        table: str,
        entity_type: str,
        allowed: frozenset[str],
        row_id: int,
        fields: dict[str, Any],
    ) -> None:
        unknown = set(fields) - allowed
        if unknown or not fields:
            raise StoreError(
                f"Cannot update {table} with fields {sorted(fields)!r}"
            )
        assignments = ", ".join(f"{_COLUMNS[f]} = ?" for f in fields)
        self._write_one(
            f"UPDATE {table} SET {assignments} WHERE id = ?",
            (*fields.values(), row_id),
            entity_type, row_id,
        )

    def _query(self, sql: str, params: tuple) -> list[sqlite3.Row]:
        try:
            return self._conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e

    def _write(self, sql: str, params: tuple) -> int:
        try:
            with self._conn:
                cur = self._conn.execute(sql, params)
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e
        logger.debug("%s -> %d row(s)", sql.split(" ", 1)[0], cur.rowcount)
        return cur.rowcount

    def _write_one(
        self, sql: str, params: tuple, entity_type: str, row_id: int
    ) -> None:
        if self._write(sql, params) == 0:
            raise StoreError(f"No {entity_type} row with id={row_id!r}")
