"""Catalog storage access for deduplication and merging (SQLite)."""
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Generator, Iterable

import structlog

from .records import EntityKind

logger = structlog.get_logger("concordia.storage")

DEFAULT_TIMEOUT = 30


# Minimum catalog shape the merge engine relies on
CATALOG_SCHEMA = """
CREATE TABLE IF NOT EXISTS people (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    normalized_key TEXT,
    confidence REAL NOT NULL DEFAULT 1.0 CHECK (confidence >= 0.0 AND confidence <= 1.0),
    verified INTEGER NOT NULL DEFAULT 0 CHECK (verified IN (0, 1))
);

CREATE TABLE IF NOT EXISTS publishers (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS series (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS tags (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE
);

CREATE TABLE IF NOT EXISTS roles (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE
);

CREATE TABLE IF NOT EXISTS books (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    publisher_id INTEGER REFERENCES publishers(id) ON DELETE SET NULL,
    series_id INTEGER REFERENCES series(id) ON DELETE SET NULL
);

CREATE TABLE IF NOT EXISTS contents (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS x_books_people_roles (
    book_id INTEGER NOT NULL REFERENCES books(id) ON DELETE CASCADE,
    person_id INTEGER NOT NULL REFERENCES people(id) ON DELETE CASCADE,
    role_id INTEGER NOT NULL REFERENCES roles(id) ON DELETE CASCADE,
    PRIMARY KEY (book_id, person_id, role_id)
);

CREATE TABLE IF NOT EXISTS x_contents_people_roles (
    content_id INTEGER NOT NULL REFERENCES contents(id) ON DELETE CASCADE,
    person_id INTEGER NOT NULL REFERENCES people(id) ON DELETE CASCADE,
    role_id INTEGER NOT NULL REFERENCES roles(id) ON DELETE CASCADE,
    PRIMARY KEY (content_id, person_id, role_id)
);

CREATE TABLE IF NOT EXISTS x_books_tags (
    book_id INTEGER NOT NULL REFERENCES books(id) ON DELETE CASCADE,
    tag_id INTEGER NOT NULL REFERENCES tags(id) ON DELETE CASCADE,
    PRIMARY KEY (book_id, tag_id)
);

CREATE TABLE IF NOT EXISTS x_contents_tags (
    content_id INTEGER NOT NULL REFERENCES contents(id) ON DELETE CASCADE,
    tag_id INTEGER NOT NULL REFERENCES tags(id) ON DELETE CASCADE,
    PRIMARY KEY (content_id, tag_id)
);
"""


@dataclass(frozen=True)
class Reference:
    """A column holding a foreign key to an entity table."""
    table: str
    column: str
    counts_as: str      # "books" or "contents"
    junction: bool      # composite-key association table

    @property
    def name(self) -> str:
        return f"{self.table}.{self.column}"


@dataclass(frozen=True)
class EntityTable:
    table: str
    label_column: str
    references: tuple[Reference, ...]


ENTITY_TABLES = {
    EntityKind.PERSON: EntityTable("people", "name", (
        Reference("x_books_people_roles", "person_id", "books", True),
        Reference("x_contents_people_roles", "person_id", "contents", True),
    )),
    EntityKind.PUBLISHER: EntityTable("publishers", "name", (
        Reference("books", "publisher_id", "books", False),
    )),
    EntityKind.SERIES: EntityTable("series", "name", (
        Reference("books", "series_id", "books", False),
    )),
    EntityKind.TAG: EntityTable("tags", "name", (
        Reference("x_books_tags", "tag_id", "books", True),
        Reference("x_contents_tags", "tag_id", "contents", True),
    )),
    EntityKind.ROLE: EntityTable("roles", "name", (
        Reference("x_books_people_roles", "role_id", "books", True),
        Reference("x_contents_people_roles", "role_id", "contents", True),
    )),
}


def connect(path: str | Path, timeout: int = DEFAULT_TIMEOUT) -> sqlite3.Connection:
    """Open a catalog connection.

    The connection runs in autocommit mode; multi-statement work goes through
    CatalogStorage.transaction(), which issues BEGIN/COMMIT/ROLLBACK itself.
    """
    conn = sqlite3.connect(str(path), timeout=timeout, isolation_level=None)
    conn.row_factory = sqlite3.Row
    conn.execute(f"PRAGMA busy_timeout = {timeout * 1000}")
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def create_schema(conn: sqlite3.Connection) -> None:
    """Create the catalog tables if they are missing."""
    conn.executescript(CATALOG_SCHEMA)


def _placeholders(values: list) -> str:
    return ",".join("?" for _ in values)


class CatalogStorage:
    """Read and transactional-write access to one catalog database."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    @classmethod
    def open(cls, path: str | Path, timeout: int = DEFAULT_TIMEOUT) -> "CatalogStorage":
        return cls(connect(path, timeout))

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> "CatalogStorage":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def load_labels(self, kind: EntityKind) -> list[tuple[int, str]]:
        """All (id, label) pairs of an entity kind, ordered by id."""
        table = ENTITY_TABLES[kind]
        rows = self.conn.execute(
            f"SELECT id, {table.label_column} FROM {table.table} ORDER BY id"
        ).fetchall()
        return [(row[0], row[1]) for row in rows]

    def missing_ids(self, kind: EntityKind, ids: Iterable[int]) -> list[int]:
        """Ids (in input order) that have no row in the entity table."""
        ids = list(ids)
        if not ids:
            return []
        table = ENTITY_TABLES[kind].table
        rows = self.conn.execute(
            f"SELECT id FROM {table} WHERE id IN ({_placeholders(ids)})", ids
        ).fetchall()
        found = {row[0] for row in rows}
        return [i for i in ids if i not in found]

    def count(self, table: str) -> int:
        return self.conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """All-or-nothing block: COMMIT on success, ROLLBACK and re-raise otherwise."""
        self.conn.execute("BEGIN IMMEDIATE")
        try:
            yield self.conn
        except BaseException:
            self.conn.execute("ROLLBACK")
            raise
        else:
            self.conn.execute("COMMIT")

    def rewrite_references(self, reference: Reference, primary_id: int, duplicate_ids: list[int]) -> int:
        """Point every row referencing a duplicate at the primary; returns rows rewritten.

        Association rows that already exist for the primary would collide on
        the composite key; those are left behind by UPDATE OR IGNORE and then
        deleted as redundant.
        """
        if not duplicate_ids:
            return 0

        marks = _placeholders(duplicate_ids)
        verb = "UPDATE OR IGNORE" if reference.junction else "UPDATE"
        cursor = self.conn.execute(
            f"{verb} {reference.table} SET {reference.column} = ? WHERE {reference.column} IN ({marks})",
            [primary_id, *duplicate_ids],
        )
        updated = cursor.rowcount

        if reference.junction:
            leftover = self.conn.execute(
                f"DELETE FROM {reference.table} WHERE {reference.column} IN ({marks})",
                duplicate_ids,
            ).rowcount
            if leftover:
                logger.debug(
                    "redundant_associations_removed",
                    reference=reference.name,
                    rows=leftover,
                )

        return updated

    def delete_entities(self, kind: EntityKind, ids: list[int]) -> int:
        """Delete entity rows by id; returns rows deleted."""
        if not ids:
            return 0
        table = ENTITY_TABLES[kind].table
        return self.conn.execute(
            f"DELETE FROM {table} WHERE id IN ({_placeholders(ids)})", ids
        ).rowcount
