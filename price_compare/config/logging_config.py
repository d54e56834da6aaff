# price_compare/config/logging_config.py

"""Logging for one CLI run.

Every run writes ``logs/run_<YYYYMMDD_HHMMSS>.log`` holding the full
DEBUG trace of all ``price_compare.*`` loggers, including which worker
thread each adapter ran on.  Only warnings and errors reach stderr, so
JSON written to stdout stays machine-readable.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from price_compare.config.settings import Settings

ROOT_LOGGER = "price_compare"

_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | %(threadName)s | "
    "%(module)s:%(funcName)s:%(lineno)d | %(message)s"
)
_STDERR_FORMAT = "%(levelname)s %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _file_handler(path: Path) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_DATE_FORMAT))
    return handler


def _stderr_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.WARNING)
    handler.setFormatter(logging.Formatter(_STDERR_FORMAT))
    return handler


def setup_logging() -> Path:
    """Attach the run's handlers to the ``price_compare`` logger.

    Safe to call more than once; handlers are only added the first time.
    Returns the path of this run's log file.
    """
    Settings.LOGS_DIR.mkdir(parents=True, exist_ok=True)
    log_file = Settings.LOGS_DIR / f"run_{datetime.now():%Y%m%d_%H%M%S}.log"

    project = logging.getLogger(ROOT_LOGGER)
    project.setLevel(logging.DEBUG)
    if project.handlers:
        return log_file

    project.addHandler(_file_handler(log_file))
    project.addHandler(_stderr_handler())
    project.debug("Writing run log to %s", log_file)
    return log_file
