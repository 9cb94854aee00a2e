"""Exception types raised by the finance tracker."""

from pathlib import Path
from typing import Optional


class FinanceTrackerError(Exception):
    """Base class for all finance tracker errors."""

    pass


class EmptyLedgerError(FinanceTrackerError):
    """Raised when exporting a ledger that holds no transactions."""

    def __init__(self, message: str = "No transactions to export"):
        super().__init__(message)


class DuplicateTransactionError(FinanceTrackerError):
    """Raised when adding a transaction whose id is already in the ledger."""

    def __init__(self, transaction_id: int):
        """Initialize DuplicateTransactionError.

        Args:
            transaction_id: The colliding transaction id.
        """
        self.transaction_id = transaction_id
        super().__init__(f"Transaction id {transaction_id} already exists")


class StorageError(FinanceTrackerError):
    """Raised when persisted state cannot be read or decoded."""

    pass


class ConfigError(FinanceTrackerError):
    """Exception raised for configuration errors."""

    pass


class NoAnalysisError(FinanceTrackerError):
    """Raised when a detailed report is requested before any analysis ran."""

    def __init__(self, message: str = "No data available"):
        super().__init__(message)


class ParseError(FinanceTrackerError):
    """Exception raised when an import file cannot be read at all."""

    def __init__(self, message: str, file_path: Optional[Path] = None):
        """Initialize ParseError.

        Args:
            message: Error message.
            file_path: Optional path to the file that failed to parse.
        """
        self.file_path = file_path
        super().__init__(message)
