"""
FileScanner module for Checksummer.

Provides recursive directory scanning with exclusion prefixes, symlink
skipping, content checksums and mismatch classification.
"""

from .classifier import classify_mismatch, format_timestamp
from .interfaces import FileScannerInterface
from .models import FileRecord, ScanError
from .scanner import FileScanner, unix_now

__all__ = [
    # Main classes
    "FileScanner",
    "FileScannerInterface",
    "FileRecord",
    # Errors
    "ScanError",
    # Helpers
    "classify_mismatch",
    "format_timestamp",
    "unix_now",
]
