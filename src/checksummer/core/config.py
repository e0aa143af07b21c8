"""
Configuration module for Checksummer.

Supports loading from YAML/JSON files or the classic line-oriented format,
with environment variable overrides. Default values are loaded from
defaults.yaml for maintainability.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from checksummer.core.checksum import HashMethod
from checksummer.core.path_utils import (
    normalize_root,
    validate_exclusion,
    validate_scan_root,
)

logger = logging.getLogger(__name__)

# Path to the default configuration file
_DEFAULTS_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"

# Cache for default values
_defaults_cache: dict[str, Any] | None = None


class ConfigError(ValueError):
    """Raised when a configuration file or value is invalid."""
    pass


def _load_defaults() -> dict[str, Any]:
    """Load default configuration values from defaults.yaml."""
    global _defaults_cache

    if _defaults_cache is not None:
        return _defaults_cache

    if not _DEFAULTS_CONFIG_PATH.exists():
        logger.warning(f"Defaults config not found: {_DEFAULTS_CONFIG_PATH}")
        _defaults_cache = {}
        return _defaults_cache

    try:
        content = _DEFAULTS_CONFIG_PATH.read_text(encoding="utf-8")
        _defaults_cache = yaml.safe_load(content) or {}
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse defaults config: {e}")
        _defaults_cache = {}

    return _defaults_cache


def _get_default(section: str, key: str, fallback: Any = None) -> Any:
    """Get a default value from the defaults config."""
    defaults = _load_defaults()
    section_defaults = defaults.get(section) or {}
    value = section_defaults.get(key, fallback)
    # Lists are copied so instances never share the cached default
    return list(value) if isinstance(value, list) else value


def _section(data: dict, name: str) -> dict:
    """Return a config section as a mapping; an empty section is {}."""
    value = data.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"Configuration section '{name}' must be a mapping, got {value!r}")
    return value


# (section, key, expected type) checked after loading a file
_FIELD_TYPES = (
    ("scan", "paths", list),
    ("scan", "exclusions", list),
    ("checksum", "hash_method", str),
    ("checksum", "chunk_size", int),
    ("database", "path", str),
    ("database", "lock_path", str),
    ("logging", "level", str),
    ("logging", "format", str),
)

_TYPE_NAMES = {list: "a list", str: "a string", int: "an integer"}


@dataclass
class ScanConfig:
    """Directories to scan and path prefixes to skip."""

    paths: list[str] = field(default_factory=lambda: _get_default("scan", "paths", []))
    exclusions: list[str] = field(
        default_factory=lambda: _get_default("scan", "exclusions", [])
    )


@dataclass
class ChecksumConfig:
    """Configuration for checksum computation."""

    hash_method: str = field(
        default_factory=lambda: _get_default("checksum", "hash_method", "sha256")
    )
    chunk_size: int = field(
        default_factory=lambda: _get_default("checksum", "chunk_size", 1024 * 1024)
    )


@dataclass
class DatabaseConfig:
    """Configuration for the checksum database."""

    path: str = field(default_factory=lambda: _get_default("database", "path", "checksums.db"))
    lock_path: str = field(default_factory=lambda: _get_default("database", "lock_path", ""))

    def resolved_lock_path(self) -> Path:
        """Lock file path, defaulting to "<database path>.lock"."""
        if self.lock_path:
            return Path(self.lock_path)
        return Path(f"{self.path}.lock")


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = field(default_factory=lambda: _get_default("logging", "level", "INFO"))
    format: str = field(
        default_factory=lambda: _get_default("logging", "format", "%(message)s")
    )


@dataclass
class ChecksummerConfig:
    """Main configuration class for Checksummer."""

    scan: ScanConfig = field(default_factory=ScanConfig)
    checksum: ChecksumConfig = field(default_factory=ChecksumConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, path: Path | str) -> "ChecksummerConfig":
        """
        Load configuration from a file.

        .yaml/.yml and .json files are structured configs. Any other file is
        read as the line format: one absolute root per line, "!"-prefixed
        lines are exclusions, blank lines and "#" comments are ignored.

        Args:
            path: Path to the configuration file

        Returns:
            ChecksummerConfig instance with loaded values

        Raises:
            FileNotFoundError: If the config file doesn't exist
            ConfigError: If the file content is invalid
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        content = path.read_text(encoding="utf-8")

        if path.suffix in (".yaml", ".yml"):
            try:
                data = yaml.safe_load(content) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        elif path.suffix == ".json":
            try:
                data = json.loads(content) if content.strip() else {}
            except json.JSONDecodeError as e:
                raise ConfigError(f"Invalid JSON in {path}: {e}") from e
        else:
            data = {"scan": parse_line_config(content)}

        if not isinstance(data, dict):
            raise ConfigError(f"Configuration root must be a mapping: {path}")

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict) -> "ChecksummerConfig":
        """Create ChecksummerConfig from a dictionary."""
        config = cls()

        try:
            if "scan" in data:
                config.scan = ScanConfig(**_section(data, "scan"))
            if "checksum" in data:
                config.checksum = ChecksumConfig(**_section(data, "checksum"))
            if "database" in data:
                config.database = DatabaseConfig(**_section(data, "database"))
            if "logging" in data:
                config.logging = LoggingConfig(**_section(data, "logging"))
        except TypeError as e:
            raise ConfigError(f"Invalid configuration section: {e}") from e

        for section, key, expected in _FIELD_TYPES:
            value = getattr(getattr(config, section), key)
            # bool is an int subclass but never a valid size
            if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
                raise ConfigError(
                    f"Invalid value for {section}.{key}: {value!r} "
                    f"(expected {_TYPE_NAMES[expected]})"
                )

        config.scan.paths = [normalize_root(str(p)) for p in config.scan.paths]
        config.scan.exclusions = [str(e) for e in config.scan.exclusions]
        return config

    def apply_env_overrides(self) -> "ChecksummerConfig":
        """
        Apply environment variable overrides to the configuration.

        Environment variables follow the pattern: CHECKSUMMER_<SECTION>_<KEY>
        Examples:
            - CHECKSUMMER_CHECKSUM_HASH_METHOD
            - CHECKSUMMER_DATABASE_PATH
            - CHECKSUMMER_LOGGING_LEVEL

        Returns:
            Self with environment overrides applied
        """
        env_mappings = {
            # Checksum config
            "CHECKSUMMER_CHECKSUM_HASH_METHOD": ("checksum", "hash_method", str),
            "CHECKSUMMER_CHECKSUM_CHUNK_SIZE": ("checksum", "chunk_size", int),
            # Database config
            "CHECKSUMMER_DATABASE_PATH": ("database", "path", str),
            "CHECKSUMMER_DATABASE_LOCK_PATH": ("database", "lock_path", str),
            # Logging config
            "CHECKSUMMER_LOGGING_LEVEL": ("logging", "level", str),
        }

        for env_var, (section, key, converter) in env_mappings.items():
            value = os.environ.get(env_var)
            if value is not None:
                section_obj = getattr(self, section)
                try:
                    setattr(section_obj, key, converter(value))
                except ValueError as e:
                    raise ConfigError(f"Invalid value for {env_var}: {value!r}") from e

        return self

    def validate(self) -> None:
        """
        Check the configuration as a whole.

        Every root must be an absolute, existing, readable directory, there
        must be at least one root, every exclusion must be absolute and the
        hash method must be supported.

        Raises:
            ConfigError: On the first problem found
        """
        if not self.scan.paths:
            raise ConfigError("No paths provided. You must provide at least one.")

        for path in self.scan.paths:
            result = validate_scan_root(path)
            if not result.valid:
                raise ConfigError(result.error_message)

        for exclusion in self.scan.exclusions:
            result = validate_exclusion(exclusion)
            if not result.valid:
                raise ConfigError(result.error_message)

        try:
            HashMethod.parse(self.checksum.hash_method)
        except ValueError as e:
            raise ConfigError(str(e)) from e

        chunk_size = self.checksum.chunk_size
        if not isinstance(chunk_size, int) or isinstance(chunk_size, bool) or chunk_size <= 0:
            raise ConfigError(f"chunk_size must be a positive integer: {chunk_size!r}")

    def to_dict(self) -> dict:
        """Convert configuration to a dictionary."""
        return asdict(self)

    def to_yaml(self) -> str:
        """Serialize configuration to YAML string."""
        return yaml.dump(self.to_dict(), default_flow_style=False, sort_keys=False)

    def to_json(self) -> str:
        """Serialize configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=2)

    def save(self, path: Path | str) -> None:
        """
        Save configuration to a file.

        Args:
            path: Path to save the configuration (.yaml, .yml, or .json)

        Raises:
            ValueError: If the file format is unsupported
        """
        path = Path(path)

        if path.suffix in (".yaml", ".yml"):
            content = self.to_yaml()
        elif path.suffix == ".json":
            content = self.to_json()
        else:
            raise ValueError(f"Unsupported config file format: {path.suffix}")

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


def parse_line_config(content: str) -> dict[str, list[str]]:
    """
    Parse the line-oriented configuration format.

    Returns:
        Dict with "paths" and "exclusions" lists, in file order

    Raises:
        ConfigError: On a line that is neither a root nor an exclusion
    """
    paths: list[str] = []
    exclusions: list[str] = []

    for lineno, line in enumerate(content.splitlines(), start=1):
        if line.startswith("#") or not line.strip():
            continue
        if line.startswith("/"):
            paths.append(line)
        elif line.startswith("!"):
            exclusions.append(line[1:])
        else:
            raise ConfigError(f"Unexpected config line {lineno}: {line}")

    return {"paths": paths, "exclusions": exclusions}


def load_config(config_path: Optional[Path | str] = None, apply_env: bool = True) -> ChecksummerConfig:
    """
    Load configuration with optional environment variable overrides.

    Args:
        config_path: Optional path to config file. If None, uses defaults.
        apply_env: Whether to apply environment variable overrides.

    Returns:
        ChecksummerConfig instance
    """
    if config_path:
        config = ChecksummerConfig.from_file(config_path)
    else:
        config = ChecksummerConfig()

    if apply_env:
        config.apply_env_overrides()

    return config
