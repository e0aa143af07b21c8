import logging

import pytest

from checksummer.core.logging_utils import ROOT_LOGGER_NAME


@pytest.fixture(autouse=True)
def reset_run_logger():
    """Drop handlers a CLI run attached, their streams do not outlive the test."""
    yield
    run_logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(run_logger.handlers):
        run_logger.removeHandler(handler)
        handler.close()
    run_logger.setLevel(logging.NOTSET)
