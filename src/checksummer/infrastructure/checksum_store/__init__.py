"""
Checksum Store module for Checksummer.

SQLite-based storage for the last known checksum state of each file.
"""

from .models import ChecksumStoreError, WriteStats
from .queries import ChecksumQueryExecutor
from .schema import initialize_schema, migrate_schema
from .store import ChecksumStore, create_checksum_store

__all__ = [
    # Main classes
    "ChecksumStore",
    "WriteStats",
    "ChecksumStoreError",
    # Query executor
    "ChecksumQueryExecutor",
    # Schema
    "initialize_schema",
    "migrate_schema",
    # Factory
    "create_checksum_store",
]
