"""
Logging setup for a Checksummer run.
"""

import logging
import sys

from checksummer.core.config import LoggingConfig
from checksummer.core.path_utils import display_path

ROOT_LOGGER_NAME = "checksummer"


class _BelowLevelFilter(logging.Filter):
    """Pass only records strictly below a level."""

    def __init__(self, level: int):
        super().__init__()
        self._level = level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self._level


class _PrintableFormatter(logging.Formatter):
    """Escape undecodable file name bytes in formatted records."""

    def format(self, record: logging.LogRecord) -> str:
        return display_path(super().format(record))


def configure_logging(config: LoggingConfig | None = None, verbose: bool = False) -> logging.Logger:
    """
    Configure the package logger once per run and return it.

    Records below ERROR go to stdout, ERROR and above to stderr. Debug
    output is only emitted when verbose is set.

    Args:
        config: Level and format settings. Defaults to LoggingConfig().
        verbose: Enable debug output.

    Returns:
        The configured "checksummer" logger, to be handed to components.
    """
    config = config or LoggingConfig()
    run_logger = logging.getLogger(ROOT_LOGGER_NAME)

    if verbose:
        level = logging.DEBUG
        fmt = "%(name)s: %(message)s"
    else:
        level = logging.getLevelName(config.level.upper())
        if not isinstance(level, int):
            level = logging.INFO
        fmt = config.format

    for handler in list(run_logger.handlers):
        run_logger.removeHandler(handler)
        handler.close()

    formatter = _PrintableFormatter(fmt)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(formatter)
    stdout_handler.addFilter(_BelowLevelFilter(logging.ERROR))

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.ERROR)
    stderr_handler.setFormatter(formatter)

    run_logger.addHandler(stdout_handler)
    run_logger.addHandler(stderr_handler)
    run_logger.setLevel(level)

    return run_logger
