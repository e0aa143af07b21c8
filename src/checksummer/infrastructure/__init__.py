"""
Infrastructure Layer - Checksum store and run lock implementations.
"""

from checksummer.infrastructure.checksum_store import (
    ChecksumStore,
    ChecksumStoreError,
    WriteStats,
    create_checksum_store,
)
from checksummer.infrastructure.run_lock import RunLock, RunLockError

__all__ = [
    # Checksum store
    "ChecksumStore",
    "ChecksumStoreError",
    "WriteStats",
    "create_checksum_store",
    # Run lock
    "RunLock",
    "RunLockError",
]
