"""
Mismatch classification for changed checksums.
"""

import logging
from datetime import datetime

from .models import FileRecord

logger = logging.getLogger(__name__)


def format_timestamp(timestamp: int) -> str:
    """Local time as "YYYY-MM-DD HH:MM:SS", or the raw seconds when out of range."""
    try:
        return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d %H:%M:%S")
    except (ValueError, OverflowError, OSError):
        return str(timestamp)


def classify_mismatch(
    path: str,
    current_modified_time: int,
    previous: FileRecord,
    log: logging.Logger | None = None,
) -> bool:
    """
    Decide whether a content change is expected.

    A modification time that moved forward since the last observation
    explains the change. A modification time that stayed put (or went
    backwards) does not, which is consistent with silent corruption. It is
    also what a modification that preserved the original timestamp looks
    like, so this is a heuristic.

    Args:
        path: File path, for the report
        current_modified_time: Modification time captured during this scan
        previous: Record from the last run
        log: Logger for the report (defaults to the module logger)

    Returns:
        True if the change looks legitimate, False if it is suspicious
    """
    if current_modified_time > previous.modified_time:
        return True

    (log or logger).warning(
        f"Checksum mismatch without a newer modification time: {path} "
        f"(modified: {format_timestamp(current_modified_time)}, "
        f"previously modified: {format_timestamp(previous.modified_time)}, "
        f"previously checked: {format_timestamp(previous.checksum_time)})"
    )
    return False
