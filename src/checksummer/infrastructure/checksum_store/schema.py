"""
Checksum store schema definitions and migrations.
"""

import logging
import os
import sqlite3

logger = logging.getLogger(__name__)

SCHEMA = """
-- Last known state of every observed regular file
CREATE TABLE IF NOT EXISTS checksums (
    id INTEGER PRIMARY KEY,
    file TEXT NOT NULL,
    checksum BLOB NOT NULL,
    checksum_time INTEGER NOT NULL DEFAULT 0,
    modified_time INTEGER NOT NULL DEFAULT 0,
    ok INTEGER NOT NULL DEFAULT 1,
    UNIQUE(file)
);

-- Supports the prefix range read of a root's subtree
CREATE INDEX IF NOT EXISTS idx_checksums_file
    ON checksums(file);
"""

# Columns missing from the legacy (id, file, checksum) layout
_ADDED_COLUMNS = (
    ("checksum_time", "INTEGER NOT NULL DEFAULT 0"),
    ("modified_time", "INTEGER NOT NULL DEFAULT 0"),
    ("ok", "INTEGER NOT NULL DEFAULT 1"),
)


def initialize_schema(conn: sqlite3.Connection) -> None:
    """Initialize the database schema."""
    conn.executescript(SCHEMA)
    conn.commit()


def configure_connection(conn: sqlite3.Connection) -> None:
    """
    Apply per-connection settings.

    LIKE is case-insensitive by default in SQLite; paths are not. Paths
    are stored as filesystem bytes, so TEXT values are decoded the way
    os.listdir decodes names.
    """
    conn.text_factory = os.fsdecode
    conn.execute("PRAGMA case_sensitive_like = ON;")


def migrate_schema(conn: sqlite3.Connection) -> None:
    """
    Run schema migrations for existing databases.

    Databases created with only (id, file, checksum) get the time and ok
    columns. Migrated rows get checksum_time 0, so the next pruning scan
    removes them unless the file is seen again.
    """
    cursor = conn.execute("PRAGMA table_info(checksums)")
    columns = {row[1] for row in cursor.fetchall()}

    for name, definition in _ADDED_COLUMNS:
        if name not in columns:
            logger.info(f"Migrating database: adding {name} column to checksums")
            conn.execute(f"ALTER TABLE checksums ADD COLUMN {name} {definition}")

    conn.execute("CREATE INDEX IF NOT EXISTS idx_checksums_file ON checksums(file)")
    conn.commit()
