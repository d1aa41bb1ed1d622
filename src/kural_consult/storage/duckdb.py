"""
DuckDB storage backend for the precomputed embedding table.
"""

from __future__ import annotations

from pathlib import Path

import duckdb

from .base import EmbeddingRecord


class DuckDBStorage:
    """DuckDB-backed persistence for corpus-entry embeddings."""

    def __init__(
        self,
        db_path: str,
        *,
        read_only: bool = False,
        initialize: bool = True,
    ) -> None:
        self.db_path = str(Path(db_path).expanduser().resolve())
        self.read_only = read_only
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = duckdb.connect(self.db_path, read_only=read_only)
        if initialize and not read_only:
            self.initialize()

    def close(self) -> None:
        """Close the underlying DuckDB connection."""
        self._conn.close()

    def initialize(self) -> None:
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS entry_embeddings (
                entry_id INTEGER NOT NULL,
                model VARCHAR NOT NULL,
                text_sha256 VARCHAR NOT NULL,
                dim INTEGER NOT NULL,
                embedding DOUBLE[] NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                PRIMARY KEY (entry_id, model)
            );
            """
        )

    def has_table(self) -> bool:
        row = self._conn.execute(
            """
            SELECT COUNT(*)
            FROM information_schema.tables
            WHERE table_name = 'entry_embeddings'
            """
        ).fetchone()
        return bool(row and row[0])

    def upsert_embeddings(self, records: list[EmbeddingRecord]) -> int:
        if not records:
            return 0
        # Remove old rows first to avoid upsert limitations on list columns in DuckDB.
        self._conn.executemany(
            "DELETE FROM entry_embeddings WHERE entry_id = ? AND model = ?",
            [(record.entry_id, record.model) for record in records],
        )
        self._conn.executemany(
            """
            INSERT INTO entry_embeddings (entry_id, model, text_sha256, dim, embedding)
            VALUES (?, ?, ?, ?, ?)
            """,
            [
                (
                    record.entry_id,
                    record.model,
                    record.text_sha256,
                    len(record.embedding),
                    [float(value) for value in record.embedding],
                )
                for record in records
            ],
        )
        return len(records)

    def load_embeddings(self, *, model: str) -> dict[int, EmbeddingRecord]:
        if not self.has_table():
            return {}
        rows = self._conn.execute(
            """
            SELECT entry_id, model, text_sha256, embedding
            FROM entry_embeddings
            WHERE model = ?
            ORDER BY entry_id
            """,
            [model],
        ).fetchall()
        return {
            int(row[0]): EmbeddingRecord(
                entry_id=int(row[0]),
                model=str(row[1]),
                text_sha256=str(row[2]),
                embedding=[float(value) for value in row[3]],
            )
            for row in rows
        }

    def count_embeddings(self, *, model: str) -> int:
        if not self.has_table():
            return 0
        row = self._conn.execute(
            "SELECT COUNT(*) FROM entry_embeddings WHERE model = ?",
            [model],
        ).fetchone()
        return int(row[0]) if row else 0

    def delete_missing_entries(self, *, model: str, active_entry_ids: set[int]) -> int:
        cached = self._conn.execute(
            "SELECT entry_id FROM entry_embeddings WHERE model = ?",
            [model],
        ).fetchall()
        stale = [int(row[0]) for row in cached if int(row[0]) not in active_entry_ids]
        if not stale:
            return 0
        self._conn.executemany(
            "DELETE FROM entry_embeddings WHERE model = ? AND entry_id = ?",
            [(model, entry_id) for entry_id in stale],
        )
        return len(stale)
