"""
Checksum engine for Checksummer.

Streams file content through a selectable digest and returns the raw
(binary) digest bytes.
"""

import hashlib
from enum import Enum
from pathlib import Path

DEFAULT_CHUNK_SIZE = 1024 * 1024


class HashMethod(str, Enum):
    """Supported digest algorithms."""

    MD5 = "md5"
    SHA256 = "sha256"

    @classmethod
    def parse(cls, value: "str | HashMethod") -> "HashMethod":
        """
        Parse a hash method name (case-insensitive).

        Raises:
            ValueError: If the name is not a supported method
        """
        if isinstance(value, HashMethod):
            return value
        valid = ", ".join(m.value for m in cls)
        if not isinstance(value, str):
            raise ValueError(f"Unsupported hash method: {value!r} (valid: {valid})")
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"Unsupported hash method: {value!r} (valid: {valid})") from None

    def new_digest(self):
        """Return a fresh hashlib object for this method."""
        if self is HashMethod.SHA256:
            return hashlib.sha256()
        return hashlib.md5()


def compute_checksum(
    path: Path | str,
    method: HashMethod | str = HashMethod.SHA256,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> bytes:
    """
    Compute the binary digest of a file's full content.

    The file is read in chunks so large files are never held in memory.

    Args:
        path: File to checksum
        method: Digest algorithm
        chunk_size: Read size in bytes

    Returns:
        Raw digest bytes

    Raises:
        OSError: If the file cannot be opened or read
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    digest = HashMethod.parse(method).new_digest()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            digest.update(chunk)
    return digest.digest()
