"""
Path validation utilities for Checksummer.

Provides validation of configured scan roots and exclusion prefixes, and
the SQL LIKE prefix helpers used by the checksum store.
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class PathValidationResult:
    """Result of path validation.

    Attributes:
        valid: True if the path is acceptable.
        error_message: Human-readable error message if validation failed.
    """
    valid: bool
    error_message: Optional[str] = None


def normalize_root(path: str) -> str:
    """Strip trailing slashes from a root path, keeping "/" itself."""
    stripped = path.rstrip("/")
    return stripped or ("/" if path.startswith("/") else path)


def validate_scan_root(path: str) -> PathValidationResult:
    """
    Validate a configured scan root.

    A root must be a non-empty absolute path naming an existing, readable
    directory.
    """
    if not path:
        return PathValidationResult(valid=False, error_message="Empty path in configuration")

    if not path.startswith("/"):
        return PathValidationResult(valid=False, error_message=f"Path is not absolute: {path}")

    if not os.path.exists(path):
        return PathValidationResult(valid=False, error_message=f"Path does not exist: {path}")

    if not os.path.isdir(path):
        return PathValidationResult(valid=False, error_message=f"Path is not a directory: {path}")

    if not os.access(path, os.R_OK):
        return PathValidationResult(valid=False, error_message=f"Path is not readable: {path}")

    return PathValidationResult(valid=True)


def validate_exclusion(exclusion: str) -> PathValidationResult:
    """
    Validate an exclusion prefix.

    Exclusions must be non-empty and absolute. They do not need to exist.
    """
    if not exclusion:
        return PathValidationResult(valid=False, error_message="Empty exclusion in configuration")

    if not exclusion.startswith("/"):
        return PathValidationResult(
            valid=False, error_message=f"Exclusion is not absolute: {exclusion}"
        )

    return PathValidationResult(valid=True)


LIKE_ESCAPE = "\\"


def escape_like(value: str) -> str:
    """Escape SQL LIKE wildcards (and the escape character) in a literal."""
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def subtree_like_pattern(root_path: str) -> str:
    """
    Build a LIKE pattern matching every path nested under root_path.

    Pair with ESCAPE '\\' in the query.
    """
    prefix = root_path if root_path.endswith("/") else root_path + "/"
    return escape_like(prefix) + "%"


def display_path(text: str) -> str:
    """
    Make text safe to print.

    Undecodable bytes from file names (surrogate escapes) are shown as
    \\xNN escapes instead of failing on a UTF-8 stream.
    """
    try:
        return text.encode("utf-8", "surrogateescape").decode("utf-8", "backslashreplace")
    except UnicodeEncodeError:
        return text.encode("utf-8", "backslashreplace").decode("utf-8")
