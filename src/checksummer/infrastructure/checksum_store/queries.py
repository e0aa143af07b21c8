"""
Low-level SQL query executor for the checksum store.

Paths are bound as their filesystem bytes (os.fsencode) and cast to TEXT, so
names that are not valid UTF-8 are stored byte for byte. Rows are decoded
back with os.fsdecode by the connection's text factory.
"""

import os
import sqlite3
from typing import List, Optional, Sequence, Tuple

from checksummer.core.path_utils import LIKE_ESCAPE, subtree_like_pattern

_RECORD_COLUMNS = "file, checksum, checksum_time, modified_time, ok"

_PATH = "CAST(? AS TEXT)"

_SUBTREE_CLAUSE = f"(file = {_PATH} OR file LIKE {_PATH} ESCAPE '{LIKE_ESCAPE}')"

# (file, checksum, checksum_time, modified_time, ok)
RecordRow = Tuple[str, bytes, int, int, int]


def _path_param(path: str) -> bytes:
    return os.fsencode(path)


def _subtree_params(root_path: str) -> Tuple[bytes, bytes]:
    return _path_param(root_path), _path_param(subtree_like_pattern(root_path))


class ChecksumQueryExecutor:
    """
    Executes SQL queries for the checksum store.

    Single-row writes do not commit; the caller owns the transaction.
    """

    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn

    # ─────────────────────────────────────────────────────────────────
    # Reads
    # ─────────────────────────────────────────────────────────────────

    def get_record(self, file_path: str) -> Optional[sqlite3.Row]:
        """Get a single record by path."""
        cursor = self._conn.execute(
            f"SELECT {_RECORD_COLUMNS} FROM checksums WHERE file = {_PATH}",
            (_path_param(file_path),),
        )
        return cursor.fetchone()

    def get_records_under(self, root_path: str) -> List[sqlite3.Row]:
        """Get records for root_path itself and everything nested under it."""
        cursor = self._conn.execute(
            f"""
            SELECT {_RECORD_COLUMNS}
            FROM checksums
            WHERE {_SUBTREE_CLAUSE}
            """,
            _subtree_params(root_path),
        )
        return cursor.fetchall()

    def get_suspicious_records(self) -> List[sqlite3.Row]:
        """Get records whose last change was judged suspicious."""
        cursor = self._conn.execute(
            f"SELECT {_RECORD_COLUMNS} FROM checksums WHERE ok = 0 ORDER BY file"
        )
        return cursor.fetchall()

    def get_aggregate_stats(self) -> sqlite3.Row:
        """Get record counts."""
        cursor = self._conn.execute(
            """
            SELECT
                COUNT(*) AS total_files,
                COALESCE(SUM(CASE WHEN ok = 0 THEN 1 ELSE 0 END), 0) AS suspicious_files,
                MAX(checksum_time) AS last_checked
            FROM checksums
            """
        )
        return cursor.fetchone()

    # ─────────────────────────────────────────────────────────────────
    # Writes (no commit)
    # ─────────────────────────────────────────────────────────────────

    def insert_record(self, row: RecordRow) -> None:
        """Insert a new record. Raises IntegrityError if the path exists."""
        file_path, checksum, checksum_time, modified_time, ok = row
        self._conn.execute(
            f"INSERT INTO checksums ({_RECORD_COLUMNS}) VALUES ({_PATH}, ?, ?, ?, ?)",
            (_path_param(file_path), checksum, checksum_time, modified_time, ok),
        )

    def update_record(self, row: RecordRow) -> int:
        """Update the record for row's path, returns rowcount."""
        file_path, checksum, checksum_time, modified_time, ok = row
        cursor = self._conn.execute(
            f"""
            UPDATE checksums
            SET checksum = ?, checksum_time = ?, modified_time = ?, ok = ?
            WHERE file = {_PATH}
            """,
            (checksum, checksum_time, modified_time, ok, _path_param(file_path)),
        )
        return cursor.rowcount

    # ─────────────────────────────────────────────────────────────────
    # Pruning
    # ─────────────────────────────────────────────────────────────────

    def delete_older_than(self, cutoff_time: int, roots: Optional[Sequence[str]] = None) -> int:
        """
        Delete records with checksum_time before cutoff_time, returns rowcount.

        When roots is given only records under one of those roots are
        considered.
        """
        sql = "DELETE FROM checksums WHERE checksum_time < ?"
        params: list = [cutoff_time]

        if roots is not None:
            if not roots:
                return 0
            clauses = []
            for root in roots:
                clauses.append(_SUBTREE_CLAUSE)
                params.extend(_subtree_params(root))
            sql += " AND (" + " OR ".join(clauses) + ")"

        cursor = self._conn.execute(sql, params)
        self._conn.commit()
        return cursor.rowcount

    def clear_all(self) -> None:
        """Delete every record."""
        self._conn.execute("DELETE FROM checksums")
        self._conn.commit()
