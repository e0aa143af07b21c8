"""
Core Layer - Configuration, checksumming and file tree scanning components.
"""

from checksummer.core.checksum import (
    DEFAULT_CHUNK_SIZE,
    HashMethod,
    compute_checksum,
)
from checksummer.core.config import (
    ChecksumConfig,
    ChecksummerConfig,
    ConfigError,
    DatabaseConfig,
    LoggingConfig,
    ScanConfig,
    load_config,
)
from checksummer.core.file_scanner import (
    FileRecord,
    FileScanner,
    FileScannerInterface,
    ScanError,
    classify_mismatch,
    unix_now,
)
from checksummer.core.logging_utils import configure_logging

__all__ = [
    # Config
    "ChecksummerConfig",
    "ScanConfig",
    "ChecksumConfig",
    "DatabaseConfig",
    "LoggingConfig",
    "ConfigError",
    "load_config",
    # Logging
    "configure_logging",
    # Checksum
    "HashMethod",
    "compute_checksum",
    "DEFAULT_CHUNK_SIZE",
    # FileScanner
    "FileRecord",
    "FileScannerInterface",
    "FileScanner",
    "ScanError",
    "classify_mismatch",
    "unix_now",
]
