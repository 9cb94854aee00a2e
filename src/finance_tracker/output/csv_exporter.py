"""CSV exporter for the ledger interchange format."""

from collections.abc import Iterable
from pathlib import Path

from finance_tracker.errors import EmptyLedgerError
from finance_tracker.models.transaction import Transaction, TransactionType
from finance_tracker.utils.date_utils import format_csv_datetime
from finance_tracker.utils.decimal_utils import format_plain
from finance_tracker.utils.logging_config import get_logger

logger = get_logger(__name__)

CSV_HEADER = "Date,Type,Amount,Description"

TYPE_CODES = {
    TransactionType.INCOME: "IN",
    TransactionType.EXPENSE: "OUT",
}


def quote_description(description: str) -> str:
    """Wrap a description in double quotes iff it contains a comma.

    Embedded double quotes are written as-is; such descriptions do not
    survive a round trip through parse_csv. Leading and trailing whitespace
    is not preserved either, because the parser trims every field.
    """
    if "," in description:
        return f'"{description}"'
    return description


def format_row(txn: Transaction) -> str:
    """Render one transaction as a CSV line (without newline)."""
    return ",".join(
        [
            format_csv_datetime(txn.timestamp),
            TYPE_CODES[txn.type],
            format_plain(txn.amount),
            quote_description(txn.description),
        ]
    )


class CSVExporter:
    """Serializes transactions as `Date,Type,Amount,Description` CSV."""

    def export_text(self, transactions: Iterable[Transaction]) -> str:
        """Serialize transactions to CSV text.

        Args:
            transactions: Transactions in the order they should be written.

        Returns:
            CSV text with header, one line per transaction, newline-terminated.

        Raises:
            EmptyLedgerError: If there is nothing to export.
        """
        rows = [format_row(txn) for txn in transactions]
        if not rows:
            raise EmptyLedgerError()

        logger.info(f"Exported {len(rows)} transactions to CSV")
        return "\n".join([CSV_HEADER, *rows]) + "\n"

    def export(self, output_path: Path, transactions: Iterable[Transaction]) -> Path:
        """Write transactions to a CSV file.

        Args:
            output_path: Destination file; parent directories are created.
            transactions: Transactions to write.

        Returns:
            The path written.

        Raises:
            EmptyLedgerError: If there is nothing to export.
        """
        content = self.export_text(transactions)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", newline="", encoding="utf-8") as f:
            f.write(content)
        logger.info(f"Wrote CSV export to {output_path}")
        return output_path


def export_transactions_csv(transactions: Iterable[Transaction]) -> str:
    """Convenience function to serialize transactions to CSV text."""
    return CSVExporter().export_text(transactions)
