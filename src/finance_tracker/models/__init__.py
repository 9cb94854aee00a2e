"""Data models for transactions and derived analytics."""

from finance_tracker.models.analysis import (
    Analysis,
    Balance,
    CardKind,
    CategoryShare,
    DetailedReport,
    FinancialHealth,
    InsightCard,
    Metric,
    Overview,
    Priority,
    Recommendation,
)
from finance_tracker.models.transaction import (
    DEFAULT_CATEGORY,
    Transaction,
    TransactionType,
    mint_transaction_id,
)

__all__ = [
    "DEFAULT_CATEGORY",
    "Transaction",
    "TransactionType",
    "mint_transaction_id",
    "Analysis",
    "Balance",
    "CardKind",
    "CategoryShare",
    "DetailedReport",
    "FinancialHealth",
    "InsightCard",
    "Metric",
    "Overview",
    "Priority",
    "Recommendation",
]
