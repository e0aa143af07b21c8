"""
Data models for the file scanner module.
"""

from dataclasses import dataclass


class ScanError(Exception):
    """Raised when a subtree cannot be scanned completely."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        super().__init__(message)


@dataclass
class FileRecord:
    """
    Last known state of a regular file.

    Attributes:
        path: Absolute path of the file (unique key)
        checksum: Binary digest of the file content
        checksum_time: Unix time taken immediately before the checksum was computed
        modified_time: File modification time (Unix seconds) seen with that checksum
        ok: False when the last content change looked suspicious
    """

    path: str
    checksum: bytes
    checksum_time: int
    modified_time: int
    ok: bool = True
