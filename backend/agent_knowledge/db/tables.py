"""One SQLite table per knowledge bucket."""

from __future__ import annotations

import sqlite3
from typing import Sequence

from agent_knowledge.core.errors import StorageError
from agent_knowledge.db.sqlite import SQLiteDatabase
from agent_knowledge.ingest.embeddings import vector_from_bytes, vector_to_bytes
from agent_knowledge.retrieval.vector_index import (
    DocumentRecord,
    SearchHit,
    check_dimensions,
    rank_hits,
    validate_name,
)

TABLE_PREFIX = "kb_"
# Bucket names never contain "__", so no bucket maps onto a staging table.
STAGING_SUFFIX = "__staging"

_CREATE_SQL = """
CREATE TABLE {table} (
  id TEXT NOT NULL,
  text TEXT NOT NULL,
  source TEXT NOT NULL,
  chunk_index INTEGER NOT NULL,
  dim INTEGER NOT NULL,
  vector BLOB NOT NULL
)
"""


def table_name(name: str) -> str:
    return f"{TABLE_PREFIX}{validate_name(name)}"


class SQLiteIndexBackend:
    """Vector tables stored as float32 blobs and searched by a full scan.

    ``create`` writes the new rows into a staging table and renames it over the
    live one in the same transaction, so readers see either the old or the new
    table and a failed write leaves the old table untouched.
    """

    def __init__(self, db: SQLiteDatabase) -> None:
        self.db = db

    def create(self, name: str, records: Sequence[DocumentRecord]) -> None:
        table = table_name(name)
        staging = f"{table}{STAGING_SUFFIX}"
        check_dimensions(records)
        try:
            with self.db.transaction() as cursor:
                cursor.execute(f"DROP TABLE IF EXISTS {staging}")
                cursor.execute(_CREATE_SQL.format(table=staging))
                cursor.executemany(
                    f"INSERT INTO {staging} (id, text, source, chunk_index, dim, vector) VALUES (?, ?, ?, ?, ?, ?)",
                    [
                        (
                            record.id,
                            record.text,
                            record.source,
                            record.chunk_index,
                            len(record.vector),
                            vector_to_bytes(record.vector),
                        )
                        for record in records
                    ],
                )
                cursor.execute(f"DROP TABLE IF EXISTS {table}")
                cursor.execute(f"ALTER TABLE {staging} RENAME TO {table}")
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to write table '{name}': {exc}") from exc

    def drop(self, name: str) -> None:
        table = table_name(name)
        try:
            self.db.execute(f"DROP TABLE IF EXISTS {table}")
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to drop table '{name}': {exc}") from exc

    def open(self, name: str) -> bool:
        return table_name(name) in self._existing_tables()

    def search(self, name: str, vector: Sequence[float], top_k: int) -> list[SearchHit]:
        table = table_name(name)
        try:
            rows = self.db.query(f"SELECT text, source, vector FROM {table} ORDER BY rowid")
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to search table '{name}': {exc}") from exc
        return rank_hits(
            ((row["text"], row["source"], vector_from_bytes(row["vector"])) for row in rows),
            vector,
            top_k,
        )

    def list_names(self) -> list[str]:
        return sorted(
            table[len(TABLE_PREFIX) :]
            for table in self._existing_tables()
            if not table.endswith(STAGING_SUFFIX)
        )

    def count(self, name: str) -> int:
        table = table_name(name)
        try:
            row = self.db.query(f"SELECT COUNT(*) AS count FROM {table}")[0]
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to count table '{name}': {exc}") from exc
        return int(row["count"])

    def _existing_tables(self) -> set[str]:
        try:
            rows = self.db.query(
                "SELECT name FROM sqlite_master WHERE type = 'table' AND name LIKE ? ESCAPE '\\'",
                [TABLE_PREFIX.replace("_", "\\_") + "%"],
            )
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to list tables: {exc}") from exc
        return {row["name"] for row in rows}


__all__ = ["SQLiteIndexBackend", "table_name", "TABLE_PREFIX"]
