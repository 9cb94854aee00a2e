"""Derived analytics models: balances, analysis snapshots and insight cards."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from types import MappingProxyType

ZERO = Decimal("0")


@dataclass(frozen=True)
class Balance:
    """Ledger totals.

    Attributes:
        current: Income minus expense.
        income: Sum of all income amounts.
        expense: Sum of all expense amounts.
    """

    current: Decimal
    income: Decimal
    expense: Decimal


class FinancialHealth(Enum):
    """Coarse classification of savings behavior."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class Priority(Enum):
    """Insight card priority; lower rank sorts first."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}


class CardKind(Enum):
    """Visual tone of an insight card."""

    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"


@dataclass(frozen=True)
class Analysis:
    """Immutable aggregate computed from a transaction set at one point in time.

    Attributes:
        total_transactions: Number of transactions analyzed.
        total_income: Sum of income amounts.
        total_expense: Sum of expense amounts.
        average_transaction: (income + expense) / count.
        recent_transactions: Transactions within the trailing 30 days.
        weekly_transactions: Transactions within the trailing 7 days.
        categories: Expense sum per category, in first-seen order (read-only).
        daily_spending: Expense sum per calendar day (read-only).
        savings_rate: Percentage of income kept; 0 when there is no income.
        financial_health: Classification derived from the savings rate.
        monthly_expense_estimate: Weekly expense scaled to a month.
        weekly_expense: Expense sum within the trailing 7 days.
        generated_at: The reference "now" used for the windows.
    """

    total_transactions: int = 0
    total_income: Decimal = ZERO
    total_expense: Decimal = ZERO
    average_transaction: Decimal = ZERO
    recent_transactions: int = 0
    weekly_transactions: int = 0
    categories: Mapping[str, Decimal] = field(default_factory=lambda: MappingProxyType({}))
    daily_spending: Mapping[date, Decimal] = field(default_factory=lambda: MappingProxyType({}))
    savings_rate: Decimal = ZERO
    financial_health: FinancialHealth = FinancialHealth.POOR
    monthly_expense_estimate: Decimal = ZERO
    weekly_expense: Decimal = ZERO
    generated_at: datetime | None = None

    @property
    def net_balance(self) -> Decimal:
        """Total income minus total expense."""
        return self.total_income - self.total_expense

    @property
    def is_empty(self) -> bool:
        return self.total_transactions == 0


@dataclass(frozen=True)
class Metric:
    """A labelled figure shown on an insight card."""

    label: str
    value: str


@dataclass(frozen=True)
class InsightCard:
    """Short, ranked, human-readable summary derived from an Analysis."""

    kind: CardKind
    priority: Priority
    title: str
    content: str
    metrics: tuple[Metric, ...] = ()
    icon: str = ""


@dataclass(frozen=True)
class CategoryShare:
    """One category's share of total expense."""

    category: str
    label: str
    amount: Decimal
    percentage: Decimal


@dataclass(frozen=True)
class Recommendation:
    """Actionable advice line in a detailed report."""

    kind: CardKind
    message: str
    icon: str = ""


@dataclass(frozen=True)
class Overview:
    """Headline figures of a detailed report."""

    total_transactions: int
    total_income: Decimal
    total_expense: Decimal
    net_balance: Decimal
    savings_rate: Decimal


@dataclass(frozen=True)
class DetailedReport:
    """Structured breakdown behind the "show more detail" action."""

    overview: Overview
    top_categories: tuple[CategoryShare, ...]
    recommendations: tuple[Recommendation, ...]
    financial_health: FinancialHealth
    health_advice: str
