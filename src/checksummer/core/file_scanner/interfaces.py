"""
Abstract interfaces for file scanning operations.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping

from .models import FileRecord


class FileScannerInterface(ABC):
    """
    Abstract interface for file scanning operations.

    Implementations walk a path recursively and produce the current
    FileRecord for every regular file found, classified against the
    previously recorded state.
    """

    @abstractmethod
    def scan(self, root_path: str, previous: Mapping[str, FileRecord]) -> list[FileRecord]:
        """
        Recursively scan a path and return fresh FileRecords.

        Args:
            root_path: Absolute path to start from (directory or file)
            previous: Records from the last run, keyed by path

        Returns:
            One FileRecord per regular file discovered

        Raises:
            ScanError: If a directory cannot be listed or a reached
                regular file cannot be stat'd or checksummed
        """
        pass

    @abstractmethod
    def set_exclusions(self, exclusions: list[str]) -> None:
        """
        Set path prefixes to skip.

        Args:
            exclusions: Absolute path prefix strings
        """
        pass
