"""
Data models for the checksum store.
"""

from dataclasses import dataclass


class ChecksumStoreError(Exception):
    """Base exception for checksum store errors."""
    pass


@dataclass
class WriteStats:
    """Outcome of a batched write."""
    inserted: int = 0
    updated: int = 0

    @property
    def total(self) -> int:
        return self.inserted + self.updated
