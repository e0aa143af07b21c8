"""
Checksum Store implementation.

SQLite-based storage of the last known checksum state of every observed
file, with subtree reads, transactional batched writes and pruning.
"""

import logging
import sqlite3
from collections.abc import Collection, Iterable
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from checksummer.core.file_scanner import FileRecord

from .models import ChecksumStoreError, WriteStats
from .queries import ChecksumQueryExecutor, RecordRow
from .schema import configure_connection, initialize_schema, migrate_schema

logger = logging.getLogger(__name__)


def _row_to_record(row: sqlite3.Row) -> FileRecord:
    return FileRecord(
        path=row["file"],
        checksum=bytes(row["checksum"]),
        checksum_time=row["checksum_time"],
        modified_time=row["modified_time"],
        ok=bool(row["ok"]),
    )


def _record_to_row(record: FileRecord) -> RecordRow:
    return (
        record.path,
        record.checksum,
        record.checksum_time,
        record.modified_time,
        1 if record.ok else 0,
    )


class ChecksumStore:
    """
    SQLite-based checksum state storage.

    Tracks the checksum, checksum time, modification time and ok flag of
    every file seen under a configured root.
    """

    def __init__(self, db_path: Path | str):
        self._db_path = Path(db_path)
        self._conn: Optional[sqlite3.Connection] = None
        self._query: Optional[ChecksumQueryExecutor] = None
        self._initialized = False

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._conn is None:
            try:
                self._db_path.parent.mkdir(parents=True, exist_ok=True)
                self._conn = sqlite3.connect(str(self._db_path))
                self._conn.row_factory = sqlite3.Row
                configure_connection(self._conn)
            except (OSError, sqlite3.Error) as e:
                self._conn = None
                raise ChecksumStoreError(f"Failed to open database {self._db_path}: {e}") from e
            self._query = ChecksumQueryExecutor(self._conn)
        return self._conn

    def initialize(self) -> None:
        """Initialize the database schema."""
        if self._initialized:
            return
        conn = self._get_connection()
        try:
            initialize_schema(conn)
            migrate_schema(conn)
            self._initialized = True
            logger.debug(f"Initialized checksum store: {self._db_path}")
        except sqlite3.Error as e:
            raise ChecksumStoreError(f"Failed to initialize schema: {e}") from e

    def _ensure_query(self) -> ChecksumQueryExecutor:
        """Ensure query executor is available."""
        self.initialize()
        assert self._query is not None
        return self._query

    # ─────────────────────────────────────────────────────────────────
    # Reads
    # ─────────────────────────────────────────────────────────────────

    def get_record(self, file_path: str) -> Optional[FileRecord]:
        """Get the record for a single path."""
        try:
            row = self._ensure_query().get_record(file_path)
            return _row_to_record(row) if row is not None else None
        except (sqlite3.Error, UnicodeError) as e:
            raise ChecksumStoreError(f"Failed to get record: {e}") from e

    def get_records_under(self, root_path: str) -> Dict[str, FileRecord]:
        """
        Get every record at or below root_path, keyed by path.

        Matching is a case-sensitive prefix match on root_path + "/", with
        LIKE wildcards in root_path treated literally.
        """
        try:
            return {
                row["file"]: _row_to_record(row)
                for row in self._ensure_query().get_records_under(root_path)
            }
        except (sqlite3.Error, UnicodeError) as e:
            raise ChecksumStoreError(f"Failed to load records under {root_path}: {e}") from e

    def get_suspicious_records(self) -> List[FileRecord]:
        """Get records currently flagged as suspicious, ordered by path."""
        try:
            return [_row_to_record(row) for row in self._ensure_query().get_suspicious_records()]
        except (sqlite3.Error, UnicodeError) as e:
            raise ChecksumStoreError(f"Failed to get suspicious records: {e}") from e

    def get_stats(self) -> Dict:
        """Get store statistics."""
        try:
            row = self._ensure_query().get_aggregate_stats()
            return {
                "total_files": row["total_files"],
                "suspicious_files": row["suspicious_files"],
                "ok_files": row["total_files"] - row["suspicious_files"],
                "last_checked": row["last_checked"],
            }
        except sqlite3.Error as e:
            raise ChecksumStoreError(f"Failed to get stats: {e}") from e

    # ─────────────────────────────────────────────────────────────────
    # Writes
    # ─────────────────────────────────────────────────────────────────

    def write_records(
        self, records: Iterable[FileRecord], existing_paths: Collection[str]
    ) -> WriteStats:
        """
        Persist a scan's records in a single transaction.

        A record is inserted when its path is not in existing_paths (the
        slice read before the scan) and updated otherwise. Any failed write
        rolls back the whole batch.

        Raises:
            ChecksumStoreError: If any write fails. Nothing from the batch
                is persisted in that case.
        """
        query = self._ensure_query()
        conn = self._get_connection()
        stats = WriteStats()

        try:
            with conn:
                for record in records:
                    row = _record_to_row(record)
                    if record.path in existing_paths:
                        if query.update_record(row) != 1:
                            raise ChecksumStoreError(
                                f"Unable to update database for file {record.path}: no such record"
                            )
                        stats.updated += 1
                    else:
                        query.insert_record(row)
                        stats.inserted += 1
        except (sqlite3.Error, UnicodeError) as e:
            raise ChecksumStoreError(f"Failed to write records, batch rolled back: {e}") from e

        logger.debug(f"Wrote {stats.inserted} new and {stats.updated} updated records")
        return stats

    def prune(self, cutoff_time: int, roots: Optional[Sequence[str]] = None) -> int:
        """
        Delete records not refreshed since cutoff_time.

        cutoff_time must be captured before the scan whose results should
        survive started, so every record refreshed by that scan is kept.

        Args:
            cutoff_time: Records with checksum_time strictly before this go
            roots: Restrict deletion to records under these roots

        Returns:
            Number of records deleted
        """
        try:
            deleted = self._ensure_query().delete_older_than(cutoff_time, roots)
        except (sqlite3.Error, UnicodeError) as e:
            raise ChecksumStoreError(f"Failed to prune records: {e}") from e
        logger.debug(f"Pruned {deleted} records older than {cutoff_time}")
        return deleted

    # ─────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────

    def clear_all(self) -> None:
        """Clear all records from the store."""
        try:
            self._ensure_query().clear_all()
        except sqlite3.Error as e:
            raise ChecksumStoreError(f"Failed to clear data: {e}") from e

    def close(self) -> None:
        """Close the database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None
            self._query = None
            self._initialized = False

    def __enter__(self) -> "ChecksumStore":
        self.initialize()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def create_checksum_store(db_path: Path | str) -> ChecksumStore:
    """Factory function to create a checksum store."""
    return ChecksumStore(db_path)
