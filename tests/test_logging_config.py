import logging

from pyslgia.logging_config import setup_logging


def test_setup_logging_console():
    """The package logger gets a single console handler at the given level."""
    setup_logging(logging.DEBUG)
    logger = setup_logging(logging.WARNING)
    assert logger is logging.getLogger("pyslgia")
    assert logger.level == logging.WARNING
    assert len(logger.handlers) == 1
    logger.handlers.clear()


def test_setup_logging_file(tmp_path):
    """Messages from submodules are written to the log file."""
    log_file = tmp_path / "run.log"
    setup_logging(logging.INFO, log_file=str(log_file))
    logging.getLogger("pyslgia.solver").info("time step finished")

    logger = logging.getLogger("pyslgia")
    for handler in logger.handlers:
        handler.flush()
        handler.close()
    logger.handlers.clear()

    text = log_file.read_text(encoding="utf-8")
    assert "pyslgia.solver - INFO - time step finished" in text
