"""Transaction ledger: the single source of truth for recorded transactions."""

import dataclasses
import json
import math
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from finance_tracker.errors import DuplicateTransactionError, StorageError
from finance_tracker.models.analysis import Balance
from finance_tracker.models.transaction import Transaction, TransactionType, mint_transaction_id
from finance_tracker.output.csv_exporter import CSVExporter
from finance_tracker.parsers.csv_parser import CSVParser
from finance_tracker.processing.periods import Period, filter_by_period
from finance_tracker.storage.base import StorageAdapter
from finance_tracker.utils.decimal_utils import format_plain
from finance_tracker.utils.logging_config import LogContext, get_logger

logger = get_logger(__name__)

# Storage key holding the JSON array of transactions
TRANSACTIONS_KEY = "transactions"

DEFAULT_ITEMS_PER_PAGE = 5

# Fields update() may change; "datetime" is accepted as the persisted alias of "timestamp"
UPDATABLE_FIELDS = {"type", "amount", "description", "timestamp", "category"}
FIELD_ALIASES = {"datetime": "timestamp"}


class LedgerEvent(Enum):
    """Kind of mutation announced to ledger listeners."""

    ADDED = "added"
    UPDATED = "updated"
    DELETED = "deleted"
    CLEARED = "cleared"
    IMPORTED = "imported"


@dataclass(frozen=True)
class LedgerChange:
    """Notification sent after a successful, persisted mutation.

    Attributes:
        event: What happened.
        transaction_ids: Ids of the affected transactions (empty for CLEARED).
    """

    event: LedgerEvent
    transaction_ids: tuple[int, ...] = ()


LedgerListener = Callable[[LedgerChange], None]


def encode_records(records: Iterable[dict[str, Any]]) -> str:
    """Encode records as a JSON array, writing Decimal values as exact numbers.

    json.dumps has no hook for emitting a bare number from a Decimal, so
    each value is encoded separately and Decimals go through format_plain.
    """
    encoded = []
    for record in records:
        fields = []
        for key, value in record.items():
            if isinstance(value, Decimal):
                text = format_plain(value)
            else:
                text = json.dumps(value, ensure_ascii=False)
            fields.append(f"{json.dumps(key)}: {text}")
        encoded.append("{" + ", ".join(fields) + "}")
    return "[" + ", ".join(encoded) + "]"


class Ledger:
    """Owns the transaction collection and its pagination state.

    The collection is loaded eagerly from the storage adapter. Every
    mutation rewrites the whole collection to storage before returning, and
    each mutation plus its write runs under one lock. Listeners registered
    with subscribe() are notified after each successful mutation.
    """

    def __init__(
        self,
        storage: StorageAdapter,
        items_per_page: int = DEFAULT_ITEMS_PER_PAGE,
    ):
        """Initialize the ledger and load persisted transactions.

        Args:
            storage: Key-value store holding the "transactions" blob.
            items_per_page: Page size for paginated retrieval.

        Raises:
            ValueError: If items_per_page is not positive.
            StorageError: If the persisted blob cannot be decoded.
        """
        if items_per_page < 1:
            raise ValueError(f"items_per_page must be positive, got {items_per_page}")

        self.storage = storage
        self.items_per_page = items_per_page
        self.current_page = 1
        self._transactions: list[Transaction] = []
        self._listeners: list[LedgerListener] = []
        self._lock = threading.RLock()
        self._parser = CSVParser()
        self._exporter = CSVExporter()

        self._load()

    # Persistence

    def _load(self) -> None:
        raw = self.storage.get(TRANSACTIONS_KEY)
        if raw is None:
            logger.debug("No stored transactions; starting with an empty ledger")
            return

        try:
            records = json.loads(raw, parse_float=Decimal)
        except json.JSONDecodeError as e:
            raise StorageError(f"Stored transactions are not valid JSON: {e}") from e

        if not isinstance(records, list):
            raise StorageError(
                f"Stored transactions must be a JSON array, got {type(records).__name__}"
            )

        transactions: list[Transaction] = []
        seen: set[int] = set()
        for index, record in enumerate(records):
            try:
                txn = Transaction.from_dict(record)
            except ValueError as e:
                raise StorageError(f"Stored transaction #{index} is invalid: {e}") from e

            if txn.id in seen:
                new_id = self._next_free_id(seen)
                logger.warning(f"Stored transaction id {txn.id} is duplicated; reassigned to {new_id}")
                txn = dataclasses.replace(txn, id=new_id)
            seen.add(txn.id)
            transactions.append(txn)

        self._transactions = transactions
        logger.info(f"Loaded {len(transactions)} transactions from {self.storage.name}")

    def _save(self) -> None:
        payload = encode_records(t.to_dict() for t in self._transactions)
        self.storage.set(TRANSACTIONS_KEY, payload)

    # Observers

    def subscribe(self, listener: LedgerListener) -> Callable[[], None]:
        """Register a listener for change notifications.

        Args:
            listener: Called with a LedgerChange after each successful mutation.

        Returns:
            A callable that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, event: LedgerEvent, transaction_ids: Iterable[int] = ()) -> None:
        change = LedgerChange(event=event, transaction_ids=tuple(transaction_ids))
        for listener in list(self._listeners):
            listener(change)

    # Helpers

    def _index_of(self, transaction_id: int) -> Optional[int]:
        for index, txn in enumerate(self._transactions):
            if txn.id == transaction_id:
                return index
        return None

    @staticmethod
    def _next_free_id(taken: set[int]) -> int:
        candidate = mint_transaction_id()
        if taken:
            candidate = max(candidate, max(taken) + 1)
        while candidate in taken:
            candidate += 1
        return candidate

    def _page_count(self, size: int) -> int:
        return math.ceil(size / self.items_per_page)

    def _clamp_page(self) -> None:
        max_page = max(1, self._page_count(len(self._transactions)))
        self.current_page = min(max(1, self.current_page), max_page)

    def _view(self, period: Optional[Period], now: Optional[datetime]) -> list[Transaction]:
        if period is None:
            return list(self._transactions)
        return filter_by_period(self._transactions, period, now)

    # Mutations

    def add(self, transaction: Transaction) -> None:
        """Append a transaction and persist.

        Raises:
            DuplicateTransactionError: If a transaction with the same id exists.
        """
        with self._lock:
            if self._index_of(transaction.id) is not None:
                raise DuplicateTransactionError(transaction.id)
            self._transactions.append(transaction)
            self._save()

        logger.debug(f"Added transaction {transaction.id}")
        self._notify(LedgerEvent.ADDED, [transaction.id])

    def new_transaction(
        self,
        type: TransactionType | str,
        amount: Decimal | int | str,
        description: str,
        timestamp: Optional[datetime] = None,
        category: Optional[str] = None,
    ) -> Transaction:
        """Create a transaction with a freshly minted unique id and add it.

        Args:
            type: Income or expense.
            amount: Non-negative amount.
            description: Free-text description.
            timestamp: When it happened (defaults to now).
            category: Optional expense category.

        Returns:
            The stored transaction.
        """
        with self._lock:
            txn = Transaction(
                id=self._next_free_id({t.id for t in self._transactions}),
                type=type,  # type: ignore[arg-type]
                amount=amount,  # type: ignore[arg-type]
                description=description,
                timestamp=timestamp or datetime.now().replace(microsecond=0),
                category=category,
            )
            self._transactions.append(txn)
            self._save()

        logger.debug(f"Added transaction {txn.id}")
        self._notify(LedgerEvent.ADDED, [txn.id])
        return txn

    def update(self, transaction_id: int, **fields: Any) -> bool:
        """Merge fields over an existing transaction and persist.

        Unspecified fields keep their previous values.

        Args:
            transaction_id: Id of the transaction to change.
            **fields: New values for type, amount, description,
                timestamp (or datetime) and category.

        Returns:
            True if updated, False if no transaction has that id.

        Raises:
            ValueError: For unknown field names, an attempt to change the id,
                or values that cannot be coerced.
        """
        if "id" in fields:
            raise ValueError("Transaction id cannot be changed")

        changes: dict[str, Any] = {}
        for name, value in fields.items():
            name = FIELD_ALIASES.get(name, name)
            if name not in UPDATABLE_FIELDS:
                raise ValueError(f"Unknown transaction field: {name}")
            changes[name] = value

        with self._lock:
            index = self._index_of(transaction_id)
            if index is None:
                logger.debug(f"Update ignored: transaction {transaction_id} not found")
                return False

            self._transactions[index] = dataclasses.replace(self._transactions[index], **changes)
            self._save()

        logger.debug(f"Updated transaction {transaction_id}: {sorted(changes)}")
        self._notify(LedgerEvent.UPDATED, [transaction_id])
        return True

    def delete(self, transaction_id: int) -> bool:
        """Remove a transaction, persist and clamp the current page.

        Returns:
            True if deleted, False if no transaction has that id.
        """
        with self._lock:
            index = self._index_of(transaction_id)
            if index is None:
                logger.debug(f"Delete ignored: transaction {transaction_id} not found")
                return False

            del self._transactions[index]
            self._save()
            self._clamp_page()

        logger.debug(f"Deleted transaction {transaction_id}")
        self._notify(LedgerEvent.DELETED, [transaction_id])
        return True

    def clear_all(self) -> None:
        """Remove every transaction, reset to page 1 and persist."""
        with self._lock:
            count = len(self._transactions)
            self._transactions = []
            self.current_page = 1
            self._save()

        logger.info(f"Cleared {count} transactions")
        self._notify(LedgerEvent.CLEARED)

    def import_many(self, transactions: Iterable[Transaction]) -> int:
        """Append a batch of transactions with a single persistence write.

        Ids colliding with stored transactions (or earlier rows of the same
        batch) are replaced with fresh unique ids.

        Returns:
            Number of transactions imported.
        """
        with LogContext(logger, "import", storage=self.storage.name), self._lock:
            taken = {t.id for t in self._transactions}
            imported: list[Transaction] = []

            for txn in transactions:
                if txn.id in taken:
                    new_id = self._next_free_id(taken)
                    logger.debug(f"Import id {txn.id} already used; reassigned to {new_id}")
                    txn = dataclasses.replace(txn, id=new_id)
                taken.add(txn.id)
                imported.append(txn)

            self._transactions.extend(imported)
            self._save()

        logger.info(f"Imported {len(imported)} transactions")
        self._notify(LedgerEvent.IMPORTED, [t.id for t in imported])
        return len(imported)

    # Queries

    def get_all(self) -> list[Transaction]:
        """Return every transaction, unfiltered, in insertion order."""
        return list(self._transactions)

    def get(self, transaction_id: int) -> Optional[Transaction]:
        """Return the transaction with the given id, or None."""
        index = self._index_of(transaction_id)
        return self._transactions[index] if index is not None else None

    def __len__(self) -> int:
        return len(self._transactions)

    def total_pages(
        self,
        period: Optional[Period] = None,
        now: Optional[datetime] = None,
    ) -> int:
        """Number of pages in the (optionally period-filtered) view; 0 when empty."""
        return self._page_count(len(self._view(period, now)))

    def get_page(
        self,
        period: Optional[Period] = None,
        now: Optional[datetime] = None,
    ) -> list[Transaction]:
        """Return the current page of transactions, newest first.

        Args:
            period: Optional window applied before paginating.
            now: Reference time for the window.

        Returns:
            Up to items_per_page transactions.
        """
        ordered = sorted(self._view(period, now), key=lambda t: t.timestamp, reverse=True)
        start = (self.current_page - 1) * self.items_per_page
        end = min(start + self.items_per_page, len(ordered))
        return ordered[start:end]

    def go_to_page(
        self,
        page: int,
        period: Optional[Period] = None,
        now: Optional[datetime] = None,
    ) -> int:
        """Move to a page, clamped to the valid range. Returns the new page."""
        max_page = max(1, self.total_pages(period, now))
        self.current_page = min(max(1, page), max_page)
        return self.current_page

    def next_page(self, period: Optional[Period] = None, now: Optional[datetime] = None) -> int:
        return self.go_to_page(self.current_page + 1, period, now)

    def previous_page(self, period: Optional[Period] = None, now: Optional[datetime] = None) -> int:
        return self.go_to_page(self.current_page - 1, period, now)

    def balance(self) -> Balance:
        """Sum income and expense amounts in one pass."""
        income = Decimal("0")
        expense = Decimal("0")
        for txn in self._transactions:
            if txn.is_income:
                income += txn.amount
            else:
                expense += txn.amount
        return Balance(current=income - expense, income=income, expense=expense)

    # CSV interchange

    def export_csv(self) -> str:
        """Serialize every transaction to CSV.

        Raises:
            EmptyLedgerError: If the ledger holds no transactions.
        """
        return self._exporter.export_text(self._transactions)

    def parse_csv(self, text: str) -> list[Transaction]:
        """Parse CSV text into transactions without importing them."""
        return self._parser.parse_text(text)
