"""
Logging set up for scripts that drive the sea level solver.

Every module logs through ``logging.getLogger(__name__)``, so all messages
fall under the ``pyslgia`` namespace. The solver reports each finished time
step and topography pass at INFO, non-convergence at WARNING, and the
convergence criterion of every inner iteration at DEBUG.
"""

import logging
import sys
from typing import Optional

PACKAGE_LOGGER = "pyslgia"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%H:%M:%S"


def setup_logging(
    level: int = logging.INFO, log_file: Optional[str] = None
) -> logging.Logger:
    """
    Send messages from the package to stdout and, optionally, to a file.

    Calling this again replaces the handlers installed by an earlier call.

    Args:
        level: Threshold for both the logger and its handlers. Use
            logging.DEBUG to follow the inner iterations.
        log_file: Path of a log file, overwritten on each call.

    Returns:
        The package logger.
    """
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="w", encoding="utf-8"))
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    logger.handlers[:] = handlers
    return logger
