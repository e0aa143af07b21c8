"""
Scan Service for Checksummer.

Coordinates a run: for each configured root, load the stored state of its
subtree, scan it, persist the results as one batch, and finally prune
records of files that were not seen again.
"""

import logging
import time
from typing import Callable, Optional, Sequence

from checksummer.core.file_scanner import FileScannerInterface, ScanError, unix_now
from checksummer.infrastructure.checksum_store import ChecksumStore, ChecksumStoreError
from checksummer.services.scan_models import ScanResult


class ScanService:
    """
    Service for running checksum scans.

    Each root's batch is committed independently, so a failure on a later
    root does not undo earlier ones. Pruning only happens once every root
    succeeded.
    """

    def __init__(
        self,
        checksum_store: ChecksumStore,
        file_scanner: FileScannerInterface,
        clock: Optional[Callable[[], int]] = None,
        logger: Optional[logging.Logger] = None,
        progress_callback: Optional[Callable[[int, int, str], None]] = None,
    ):
        """
        Initialize the ScanService.

        Args:
            checksum_store: Persisted state store
            file_scanner: Tree walker used for each root
            clock: Returns the current Unix time in seconds. Must agree with
                   the scanner's clock, since the prune cutoff is compared
                   with checksum_time.
            logger: Run logger
            progress_callback: Called with (current, total, message)
        """
        self._store = checksum_store
        self._scanner = file_scanner
        self._clock = clock or unix_now
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._progress_callback = progress_callback

    def _report_progress(self, current: int, total: int, message: str) -> None:
        """Report progress if callback is set."""
        if self._progress_callback:
            self._progress_callback(current, total, message)

    def run(self, paths: Sequence[str], prune: bool = False) -> ScanResult:
        """
        Scan every root in order and persist the results.

        Args:
            paths: Absolute root directories, scanned in this order
            prune: Delete records under these roots that were not seen

        Returns:
            ScanResult; check ScanResult.success
        """
        start_time = time.time()
        result = ScanResult()

        # Taken before any record is refreshed, so everything this run
        # touches has checksum_time >= cutoff.
        cutoff = self._clock()

        total = len(paths)
        for i, path in enumerate(paths):
            self._report_progress(i, total, f"Checking [{path}]...")
            self._logger.info(f"Checking [{path}]...")
            try:
                self._scan_root(path, result)
            except (ScanError, ChecksumStoreError) as e:
                self._logger.error(f"Problem checking path: {path} - {e}")
                result.failed_paths.append(path)
        self._report_progress(total, total, "Scan complete")

        if prune:
            if result.failed_paths:
                self._logger.error("Not pruning: at least one path failed")
            else:
                try:
                    result.pruned_files = self._store.prune(cutoff, roots=list(paths))
                    self._logger.info(f"Pruned {result.pruned_files} records for missing files")
                except ChecksumStoreError as e:
                    self._logger.error(f"Unable to prune: {e}")
                    result.prune_error = str(e)

        result.duration_seconds = time.time() - start_time

        if result.suspicious_files:
            self._logger.warning(
                f"{len(result.suspicious_files)} file(s) changed without a newer modification time"
            )

        self._logger.info(
            f"Checked {result.total_files} files: {result.new_files} new, "
            f"{result.changed_files} changed, {len(result.suspicious_files)} suspicious "
            f"in {result.duration_seconds:.2f}s"
        )
        return result

    def _scan_root(self, root_path: str, result: ScanResult) -> None:
        """Read the stored slice, scan, and write the batch for one root."""
        self._logger.debug(f"Loading checksums under {root_path}...")
        previous = self._store.get_records_under(root_path)

        records = self._scanner.scan(root_path, previous)

        stats = self._store.write_records(records, previous.keys())

        result.total_files += len(records)
        result.new_files += stats.inserted
        for record in records:
            prior = previous.get(record.path)
            if prior is not None and prior.checksum != record.checksum:
                result.changed_files += 1
            if not record.ok:
                result.suspicious_files.append(record.path)
