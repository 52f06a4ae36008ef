import logging

import pytest

from tourney.core.logging import ProgressLogger, log_timing, setup_logging


@pytest.fixture
def restore_package_logger():
    logger = logging.getLogger("tourney")
    saved = (logger.handlers[:], logger.level, logger.propagate)
    yield logger
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])
    logger.propagate = saved[2]


def test_setup_logging_single_stdout_handler(restore_package_logger):
    setup_logging(level="debug", format_style="simple")
    logger = setup_logging(level="WARNING", format_style="unknown")

    assert logger is restore_package_logger
    assert logger.level == logging.WARNING
    assert logger.propagate is False
    assert len(logger.handlers) == 1
    assert "%(asctime)s" in logger.handlers[0].formatter._fmt


def test_progress_logger_reports_interval_and_total(caplog):
    logger = logging.getLogger("progress_test")
    caplog.set_level(logging.INFO, logger="progress_test")
    with ProgressLogger(logger, "normalizing", total=25, update_interval=10) as progress:
        for i in range(1, 26):
            progress.update(i)

    progress_lines = [m for m in caplog.messages if m.startswith("normalizing:")]
    assert [line.split(" ")[1] for line in progress_lines] == ["10/25", "20/25", "25/25"]
    assert caplog.messages[0] == "Starting normalizing (0/25)"
    assert caplog.messages[-1].startswith("Completed normalizing")


def test_log_timing_logs_success(caplog):
    logger = logging.getLogger("timing_test")
    caplog.set_level(logging.INFO, logger="timing_test")
    with log_timing(logger, "backfill"):
        pass
    assert caplog.messages[0] == "Starting backfill"
    assert caplog.messages[-1].startswith("Completed backfill in")


def test_log_timing_logs_failure(caplog):
    logger = logging.getLogger("timing_test")
    caplog.set_level(logging.INFO, logger="timing_test")
    with pytest.raises(ValueError):
        with log_timing(logger, "import"):
            raise ValueError("bad")
    assert caplog.messages[0] == "Starting import"
    assert caplog.messages[-1].startswith("Failed import after")
