# MEDGRID REGISTRY GRID

# COMPONENT: CENTRALIZED LOGGING CONFIGURATION
# REQUIREMENTS SATISFIED: deterministic logging behavior, environment-controlled verbosity
"""
medgrid/utils/logging.py

Configures the shared "medgrid" logger used by the grid core, the registry
client and the HTTP layer. Behavior is controlled entirely by environment
variables.

Environment Variables:
    LOG_LEVEL:
        0 → Silent (no logs emitted)
        1 → INFO level logging
        2 → DEBUG level logging

    LOG_FILE:
        Optional path to a log file. If provided and valid, logs are written
        to this file. Otherwise, logs fall back to standard error (stderr).

    LOG_FORMAT:
        Optional ``logging`` format string. ``%(rid)s`` may be used in it:
        records logged while the request middleware handles a request carry
        that request's short id, all others show "-".

The logger is isolated from the root logger and its handlers are rebuilt on
every call, so calling ``setup_logger()`` again after changing the
environment is safe.
"""
import os
import sys
import logging
from contextvars import ContextVar

LOGGER_NAME = "medgrid"
DEFAULT_FORMAT = "%(asctime)s %(levelname)s [rid=%(rid)s] %(message)s"

# set by the request logging middleware for the duration of a request
request_id: ContextVar[str] = ContextVar("medgrid_request_id", default="-")


class RequestIdFilter(logging.Filter):
    """Stamps every record with the id of the request being served."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.rid = request_id.get()
        return True


def _level_from_env() -> int:
    try:
        return int(os.environ.get("LOG_LEVEL", "0"))
    except ValueError:
        return 0


def setup_logger():
    """
    Configures and returns the "medgrid" logger from LOG_FILE, LOG_LEVEL
    and LOG_FORMAT.
    """
    log_file = os.environ.get("LOG_FILE")
    log_level_env = _level_from_env()

    logger = logging.getLogger(LOGGER_NAME)
    logger.propagate = False

    if log_level_env == 1:
        logger.setLevel(logging.INFO)
    elif log_level_env >= 2:
        logger.setLevel(logging.DEBUG)
    else:
        # LOG_LEVEL=0: nothing passes
        logger.setLevel(logging.CRITICAL + 1)

    if logger.hasHandlers():
        logger.handlers.clear()

    if log_level_env <= 0:
        return logger

    handler = None
    if log_file:
        try:
            handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        except OSError:
            handler = logging.StreamHandler(sys.stderr)
    else:
        handler = logging.StreamHandler(sys.stderr)

    handler.addFilter(RequestIdFilter())
    handler.setFormatter(logging.Formatter(os.environ.get("LOG_FORMAT") or DEFAULT_FORMAT))
    logger.addHandler(handler)

    return logger


logger = setup_logger()
