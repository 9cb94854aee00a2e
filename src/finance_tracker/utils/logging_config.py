"""Logging setup for the finance_tracker package logger."""

import logging
import sys
from pathlib import Path

PACKAGE_LOGGER = "finance_tracker"
DEFAULT_LOG_FILE = "finance_tracker.log"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Masked when passed as LogContext keyword arguments
SENSITIVE_FIELDS = {"password", "token", "secret", "api_key"}


def _sanitize_context(context: dict[str, object]) -> dict[str, object]:
    return {k: "***" if k.lower() in SENSITIVE_FIELDS else v for k, v in context.items()}


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    console_output: bool = True,
) -> logging.Logger:
    """Route package logs to a file and, optionally, stderr.

    Calling it again replaces the handlers installed by the previous call,
    so a process that runs several CLI invocations logs each line once.

    Args:
        level: Level name; unknown names fall back to INFO.
        log_file: Log file path (default finance_tracker.log). Its parent
            directory is created when missing.
        console_output: Also log to stderr.

    Returns:
        The package logger.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(numeric_level)

    for handler in list(package_logger.handlers):
        handler.close()
    package_logger.handlers.clear()

    log_path = Path(log_file or DEFAULT_LOG_FILE)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handlers: list[logging.Handler] = [logging.FileHandler(log_path, encoding="utf-8")]
    if console_output:
        handlers.append(logging.StreamHandler(sys.stderr))

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)

    return package_logger


def get_logger(name: str) -> logging.Logger:
    """Logger for a module, always nested under the package logger."""
    if name == PACKAGE_LOGGER or name.startswith(f"{PACKAGE_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")


class LogContext:
    """Brackets a ledger operation with debug lines; failures log at error.

    Usage:
        with LogContext(logger, "import", storage=storage.name):
            ...
    """

    def __init__(self, logger: logging.Logger, operation: str, **context: object):
        self.logger = logger
        self.operation = operation
        self.context = context

    def __enter__(self) -> "LogContext":
        details = ", ".join(f"{k}={v}" for k, v in _sanitize_context(self.context).items())
        self.logger.debug(f"{self.operation} started ({details})")
        return self

    def __exit__(
        self,
        exc_type: type | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> bool:
        if exc_type is None:
            self.logger.debug(f"{self.operation} finished")
        else:
            self.logger.error(f"{self.operation} failed: {exc_type.__name__}: {exc_val}", exc_info=True)
        return False
