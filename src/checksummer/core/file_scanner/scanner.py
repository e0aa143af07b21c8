"""
FileScanner implementation for recursive checksum scanning.
"""

import logging
import os
import time
from collections.abc import Mapping
from typing import Callable

from checksummer.core.checksum import DEFAULT_CHUNK_SIZE, HashMethod, compute_checksum

from .classifier import classify_mismatch
from .interfaces import FileScannerInterface
from .models import FileRecord, ScanError


def unix_now() -> int:
    """Current wall-clock time in whole Unix seconds."""
    return int(time.time())


class FileScanner(FileScannerInterface):
    """
    Concrete implementation of FileScannerInterface.

    Walks a path depth-first and produces a FileRecord for every regular
    file:
    - Paths starting with an exclusion prefix are skipped
    - Symlinks are never followed or recorded
    - Unreadable paths are skipped with a warning
    - Directory listing, stat and checksum failures raise ScanError
    """

    def __init__(
        self,
        hash_method: HashMethod | str = HashMethod.SHA256,
        exclusions: list[str] | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        clock: Callable[[], int] | None = None,
        logger: logging.Logger | None = None,
    ):
        """
        Initialize the FileScanner.

        Args:
            hash_method: Digest algorithm used for every file.
            exclusions: Path prefix strings to skip. Matching is a plain
                       string prefix test, so "/data/foo" also excludes
                       "/data/foobar".
            chunk_size: Read size used while checksumming.
            clock: Returns the current Unix time in seconds. Used for
                  checksum_time.
            logger: Run logger. Defaults to this module's logger.
        """
        self._hash_method = HashMethod.parse(hash_method)
        self._exclusions: list[str] = list(exclusions or [])
        self._chunk_size = chunk_size
        self._clock = clock or unix_now
        self._logger = logger if logger is not None else logging.getLogger(__name__)

    @property
    def hash_method(self) -> HashMethod:
        return self._hash_method

    def set_exclusions(self, exclusions: list[str]) -> None:
        """Set path prefixes to skip."""
        self._exclusions = list(exclusions)

    def _is_excluded(self, path: str) -> bool:
        for exclusion in self._exclusions:
            if path.startswith(exclusion):
                self._logger.debug(f"Excluded: {path} (exclusion: {exclusion})")
                return True
        return False

    def scan(self, root_path: str, previous: Mapping[str, FileRecord]) -> list[FileRecord]:
        """
        Recursively scan a path and return fresh FileRecords.

        Args:
            root_path: Absolute path to start from
            previous: Records from the last run, keyed by path

        Returns:
            One FileRecord per regular file found
        """
        return self._scan_path(os.fspath(root_path), previous)

    def _scan_path(self, path: str, previous: Mapping[str, FileRecord]) -> list[FileRecord]:
        if self._is_excluded(path):
            return []

        if os.path.islink(path):
            self._logger.debug(f"Skipping symlink: {path}")
            return []

        if not os.access(path, os.R_OK):
            self._logger.warning(f"Cannot read, skipping: {path}")
            return []

        if os.path.isdir(path):
            return self._scan_directory(path, previous)

        if not os.path.isfile(path):
            self._logger.debug(f"Skipping non-regular file: {path}")
            return []

        return [self._scan_file(path, previous)]

    def _scan_directory(self, path: str, previous: Mapping[str, FileRecord]) -> list[FileRecord]:
        """
        Scan every entry of a directory.

        A partially listed directory could silently hide files, so any
        failure below this point aborts the whole subtree.
        """
        self._logger.debug(f"{path}...")
        try:
            names = sorted(os.listdir(path))
        except OSError as e:
            self._logger.error(f"Unable to read directory: {path} - {e}")
            raise ScanError(f"Unable to read directory: {path}: {e}", path=path) from e

        records: list[FileRecord] = []
        for name in names:
            child = os.path.join(path, name)
            try:
                records.extend(self._scan_path(child, previous))
            except ScanError:
                self._logger.error(f"Unable to checksum: {child}")
                raise
        return records

    def _scan_file(self, path: str, previous: Mapping[str, FileRecord]) -> FileRecord:
        checksum_time = self._clock()

        try:
            modified_time = int(os.stat(path).st_mtime)
        except OSError as e:
            self._logger.error(f"stat failure: {path} - {e}")
            raise ScanError(f"Unable to stat file: {path}: {e}", path=path) from e

        try:
            checksum = compute_checksum(path, self._hash_method, self._chunk_size)
        except OSError as e:
            self._logger.error(f"Failure building checksum for {path} - {e}")
            raise ScanError(f"Unable to checksum file: {path}: {e}", path=path) from e

        prior = previous.get(path)
        if prior is None:
            self._logger.debug(f"No checksum recorded for {path}, adding")
            ok = True
        elif checksum == prior.checksum:
            ok = True
        else:
            self._logger.debug(f"Checksum mismatch: {path}")
            ok = classify_mismatch(path, modified_time, prior, self._logger)

        return FileRecord(
            path=path,
            checksum=checksum,
            checksum_time=checksum_time,
            modified_time=modified_time,
            ok=ok,
        )
