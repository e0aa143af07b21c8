"""
Scan Service data models.

Contains dataclasses for run results.
"""

from dataclasses import dataclass, field


@dataclass
class ScanResult:
    """Result of a scan run over the configured roots."""

    total_files: int = 0
    new_files: int = 0
    changed_files: int = 0
    suspicious_files: list[str] = field(default_factory=list)
    pruned_files: int = 0
    failed_paths: list[str] = field(default_factory=list)
    prune_error: str | None = None
    duration_seconds: float = 0.0

    @property
    def success(self) -> bool:
        """True when every root was scanned and persisted (and pruned, if asked)."""
        return not self.failed_paths and self.prune_error is None
