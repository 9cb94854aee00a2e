"""Best-effort parser for the ledger's CSV interchange format.

Accepted layout (header optional, auto-detected):

    Date,Type,Amount,Description
    01/03/2024 10:00:00,IN,50000,Freelance
    2024-03-02T08:15:00,expense,25000,"Lunch, with friend"

Rows that cannot be understood are dropped rather than reported, so the
number of parsed transactions may be smaller than the number of data lines.
"""

from pathlib import Path
from typing import Optional

from finance_tracker.errors import ParseError
from finance_tracker.models.transaction import Transaction, TransactionType, mint_transaction_id
from finance_tracker.utils.date_utils import normalize_slash_datetime, parse_iso_datetime
from finance_tracker.utils.decimal_utils import parse_amount
from finance_tracker.utils.logging_config import get_logger

logger = get_logger(__name__)

# Maximum import file size to prevent memory exhaustion (10 MB)
MAX_CSV_FILE_SIZE = 10 * 1024 * 1024

# Minimum number of fields a data row needs: date, type, amount, description
MIN_FIELDS = 4

# Type column aliases
TYPE_ALIASES = {
    "in": TransactionType.INCOME,
    "out": TransactionType.EXPENSE,
    "income": TransactionType.INCOME,
    "expense": TransactionType.EXPENSE,
}


def split_csv_line(line: str) -> list[str]:
    """Split a line on commas, ignoring commas inside double quotes.

    Each quote character toggles the in-quotes state and is dropped; fields
    are whitespace-trimmed.

    Args:
        line: One line of CSV text.

    Returns:
        List of field values.
    """
    parts: list[str] = []
    current: list[str] = []
    in_quotes = False

    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(char)

    parts.append("".join(current).strip())
    return parts


def is_header_line(line: str) -> bool:
    """A first line mentioning "date" in any case is treated as a header."""
    return "date" in line.lower()


class CSVParser:
    """Parser for ledger CSV exports and compatible files."""

    def __init__(self, id_base: Optional[int] = None):
        """Initialize CSV parser.

        Args:
            id_base: Base value for synthesized ids. Defaults to the current
                clock reading at parse time; each row adds its line index.
        """
        self.id_base = id_base

    def parse_text(self, text: str) -> list[Transaction]:
        """Parse CSV text into transactions.

        Args:
            text: Whole CSV document.

        Returns:
            Successfully parsed transactions, in file order.
        """
        lines = [line for line in text.split("\n") if line.strip()]
        if not lines:
            logger.info("CSV import: no data lines")
            return []

        start_index = 1 if is_header_line(lines[0]) else 0
        id_base = self.id_base if self.id_base is not None else mint_transaction_id()

        transactions: list[Transaction] = []
        skipped = 0

        for index in range(start_index, len(lines)):
            line = lines[index].strip()
            if not line:
                continue

            txn = self._parse_row(line, id_base + index)
            if txn is None:
                skipped += 1
                logger.debug(f"Skipping unparseable CSV row {index + 1}: {line[:80]!r}")
                continue
            transactions.append(txn)

        logger.info(
            f"CSV import: parsed {len(transactions)} transactions, skipped {skipped} rows"
        )
        return transactions

    def parse_file(self, file_path: Path) -> list[Transaction]:
        """Read and parse a CSV file.

        Args:
            file_path: Path to the CSV file.

        Returns:
            Successfully parsed transactions.

        Raises:
            ParseError: If the file is missing, too large or not UTF-8 text.
        """
        try:
            size = file_path.stat().st_size
        except OSError as e:
            raise ParseError(f"Cannot read {file_path}: {e}", file_path) from e

        if size > MAX_CSV_FILE_SIZE:
            raise ParseError(
                f"File too large ({size} bytes, limit {MAX_CSV_FILE_SIZE})", file_path
            )

        try:
            with open(file_path, encoding="utf-8-sig", newline="") as f:
                text = f.read()
        except UnicodeDecodeError as e:
            raise ParseError(f"{file_path.name} is not UTF-8 text: {e}", file_path) from e
        except OSError as e:
            raise ParseError(f"Cannot read {file_path}: {e}", file_path) from e

        return self.parse_text(text.replace("\r\n", "\n").replace("\r", "\n"))

    def _parse_row(self, line: str, transaction_id: int) -> Optional[Transaction]:
        """Parse one data row, returning None when any field is unusable."""
        parts = split_csv_line(line)
        if len(parts) < MIN_FIELDS:
            return None

        date_str, type_str, amount_str, description = parts[:MIN_FIELDS]

        try:
            if "/" in date_str:
                timestamp = parse_iso_datetime(normalize_slash_datetime(date_str))
            elif "T" in date_str:
                timestamp = parse_iso_datetime(date_str)
            else:
                return None
        except ValueError:
            return None

        txn_type = TYPE_ALIASES.get(type_str.lower())
        if txn_type is None:
            return None

        try:
            amount = parse_amount(amount_str)
        except ValueError:
            return None

        if len(description) >= 2 and description.startswith('"') and description.endswith('"'):
            description = description[1:-1]

        return Transaction(
            id=transaction_id,
            type=txn_type,
            amount=amount,
            description=description,
            timestamp=timestamp,
        )


def parse_csv(text: str, id_base: Optional[int] = None) -> list[Transaction]:
    """Convenience function to parse CSV text.

    Args:
        text: CSV document.
        id_base: Optional fixed base for synthesized ids.

    Returns:
        Successfully parsed transactions.
    """
    return CSVParser(id_base=id_base).parse_text(text)
