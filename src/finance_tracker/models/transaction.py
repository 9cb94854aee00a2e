"""Transaction data models for the ledger."""

import time
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from finance_tracker.utils.date_utils import format_iso_datetime, parse_iso_datetime, to_naive
from finance_tracker.utils.decimal_utils import to_decimal

# Category used for expense aggregation when none was recorded
DEFAULT_CATEGORY = "other"


class TransactionType(Enum):
    """Direction of a transaction."""

    INCOME = "income"  # Money in
    EXPENSE = "expense"  # Money out

    @classmethod
    def parse(cls, value: "TransactionType | str") -> "TransactionType":
        """Coerce a stored or user-supplied value to a TransactionType.

        Raises:
            ValueError: If the value names no known type.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown transaction type: {value!r}") from None


def mint_transaction_id(offset: int = 0) -> int:
    """Mint an id from the current clock reading in milliseconds.

    Args:
        offset: Added to the clock value so ids minted in one batch stay distinct.

    Returns:
        Integer transaction id.
    """
    return time.time_ns() // 1_000_000 + offset


@dataclass
class Transaction:
    """A single income or expense record.

    Attributes:
        id: Unique identifier within the ledger.
        type: Whether money came in or went out.
        amount: Non-negative amount in the ledger's single currency.
        description: Free-text description (may contain commas).
        timestamp: When the transaction happened (naive datetime).
        category: Optional tag used for expense breakdowns.
    """

    id: int
    type: TransactionType
    amount: Decimal
    description: str
    timestamp: datetime
    category: str | None = None

    def __post_init__(self) -> None:
        self.type = TransactionType.parse(self.type)
        self.amount = to_decimal(self.amount)
        if isinstance(self.timestamp, str):
            self.timestamp = parse_iso_datetime(self.timestamp)
        elif isinstance(self.timestamp, datetime):
            self.timestamp = to_naive(self.timestamp)
        else:
            raise ValueError(f"Invalid timestamp: {self.timestamp!r}")
        if self.category is not None and not str(self.category).strip():
            self.category = None

    @property
    def is_income(self) -> bool:
        return self.type is TransactionType.INCOME

    @property
    def is_expense(self) -> bool:
        return self.type is TransactionType.EXPENSE

    @property
    def effective_category(self) -> str:
        """Category for aggregation, falling back to "other"."""
        return self.category or DEFAULT_CATEGORY

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the persisted record layout.

        The amount stays a Decimal; encode_records() writes it as an exact
        JSON number.
        """
        data: dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "amount": self.amount,
            "description": self.description,
            "datetime": format_iso_datetime(self.timestamp),
        }
        if self.category is not None:
            data["category"] = self.category
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Transaction":
        """Create from a persisted record.

        Args:
            data: Dictionary with id, type, amount, description, datetime
                and optional category.

        Returns:
            Transaction instance.

        Raises:
            ValueError: If a field is missing or malformed.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Transaction record must be an object, got {type(data).__name__}")

        missing = [key for key in ("id", "type", "amount", "datetime") if key not in data]
        if missing:
            raise ValueError(f"Transaction record missing fields: {', '.join(missing)}")

        raw_id = data["id"]
        if isinstance(raw_id, bool) or not isinstance(raw_id, (int, float, str)):
            raise ValueError(f"Invalid transaction id: {raw_id!r}")
        try:
            transaction_id = int(raw_id)
        except ValueError:
            raise ValueError(f"Invalid transaction id: {raw_id!r}") from None

        category = data.get("category")
        return cls(
            id=transaction_id,
            type=TransactionType.parse(data["type"]),
            amount=to_decimal(data["amount"]),
            description=str(data.get("description", "")),
            timestamp=parse_iso_datetime(str(data["datetime"])),
            category=str(category) if category is not None else None,
        )

    def __repr__(self) -> str:
        return (
            f"Transaction(id={self.id}, type={self.type.value}, "
            f"amount={self.amount}, "
            f"description={self.description[:30]!r}, "
            f"timestamp={format_iso_datetime(self.timestamp)})"
        )
