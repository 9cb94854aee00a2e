"""Tests for logging setup."""

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from finance_tracker.utils.logging_config import LogContext, get_logger, setup_logging


@pytest.fixture(autouse=True)
def reset_package_logger() -> Iterator[None]:
    yield
    package_logger = logging.getLogger("finance_tracker")
    for handler in list(package_logger.handlers):
        handler.close()
    package_logger.handlers.clear()


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_repeated_setup_replaces_handlers(self, tmp_path: Path) -> None:
        """Test that a second call does not stack handlers."""
        setup_logging("INFO", str(tmp_path / "a.log"), console_output=True)
        package_logger = setup_logging("DEBUG", str(tmp_path / "b.log"), console_output=False)

        assert len(package_logger.handlers) == 1
        assert package_logger.level == logging.DEBUG

    def test_creates_log_directory(self, tmp_path: Path) -> None:
        """Test that the log file's directory is created."""
        log_file = tmp_path / "logs" / "nested" / "tracker.log"
        setup_logging("INFO", str(log_file), console_output=False)

        get_logger("finance_tracker.test").info("hello")

        assert "hello" in log_file.read_text(encoding="utf-8")

    def test_unknown_level_falls_back_to_info(self, tmp_path: Path) -> None:
        package_logger = setup_logging("chatty", str(tmp_path / "x.log"), console_output=False)
        assert package_logger.level == logging.INFO


class TestGetLogger:
    """Tests for get_logger."""

    def test_module_names_are_not_prefixed_twice(self) -> None:
        assert get_logger("finance_tracker.processing.ledger").name == "finance_tracker.processing.ledger"
        assert get_logger("finance_tracker").name == "finance_tracker"

    def test_foreign_names_are_nested(self) -> None:
        assert get_logger("helpers").name == "finance_tracker.helpers"


class TestLogContext:
    """Tests for LogContext."""

    def test_logs_start_and_finish_with_masked_context(self, caplog: pytest.LogCaptureFixture) -> None:
        logger = get_logger("finance_tracker.test")
        with caplog.at_level(logging.DEBUG, logger="finance_tracker"):
            with LogContext(logger, "import", storage="MemoryStorage", token="abc"):
                pass

        messages = [record.getMessage() for record in caplog.records]
        assert messages == ["import started (storage=MemoryStorage, token=***)", "import finished"]

    def test_failure_is_logged_and_propagates(self, caplog: pytest.LogCaptureFixture) -> None:
        logger = get_logger("finance_tracker.test")
        with caplog.at_level(logging.DEBUG, logger="finance_tracker"):
            with pytest.raises(ValueError):
                with LogContext(logger, "import"):
                    raise ValueError("bad row")

        assert caplog.records[-1].levelno == logging.ERROR
        assert "import failed: ValueError: bad row" in caplog.records[-1].getMessage()
