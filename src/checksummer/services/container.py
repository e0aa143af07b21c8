"""
Centralized services container module for Checksummer.

Builds the store, scanner and scan service for a run from configuration.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from checksummer.core.config import ChecksummerConfig
from checksummer.core.file_scanner import FileScanner, unix_now
from checksummer.infrastructure import ChecksumStore, create_checksum_store
from checksummer.services.scan_service import ScanService


@dataclass
class ServicesContainer:
    """
    Container holding all service instances for one run.

    Attributes:
        config: Application configuration
        checksum_store: SQLite store for file checksum state
        file_scanner: Tree walker for the configured roots
        scan_service: Run orchestrator
    """

    config: ChecksummerConfig
    checksum_store: ChecksumStore
    file_scanner: FileScanner
    scan_service: ScanService

    def close(self) -> None:
        """Release resources held by the services."""
        self.checksum_store.close()


def create_services(
    config: ChecksummerConfig,
    logger: Optional[logging.Logger] = None,
    clock: Optional[Callable[[], int]] = None,
    progress_callback: Optional[Callable[[int, int, str], None]] = None,
) -> ServicesContainer:
    """
    Create and initialize all services.

    The same clock is shared by the scanner and the service so the prune
    cutoff and checksum times are comparable.

    Args:
        config: Validated configuration
        logger: Run logger handed to every component
        clock: Unix-seconds clock. Defaults to wall-clock time.
        progress_callback: Forwarded to the ScanService

    Returns:
        ServicesContainer with all initialized services.

    Raises:
        ChecksumStoreError: If the database cannot be opened or initialized.
    """
    clock = clock or unix_now

    checksum_store = create_checksum_store(config.database.path)
    checksum_store.initialize()

    file_scanner = FileScanner(
        hash_method=config.checksum.hash_method,
        exclusions=config.scan.exclusions,
        chunk_size=config.checksum.chunk_size,
        clock=clock,
        logger=logger,
    )

    scan_service = ScanService(
        checksum_store=checksum_store,
        file_scanner=file_scanner,
        clock=clock,
        logger=logger,
        progress_callback=progress_callback,
    )

    return ServicesContainer(
        config=config,
        checksum_store=checksum_store,
        file_scanner=file_scanner,
        scan_service=scan_service,
    )
