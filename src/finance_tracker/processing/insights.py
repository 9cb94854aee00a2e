"""Spending analytics: analysis snapshots, insight cards and detailed reports.

The module-level functions are pure; InsightsEngine wires them to a ledger
and keeps the most recent analysis so a detailed report can be produced
without recomputing.
"""

import threading
from collections.abc import Callable, Iterable
from datetime import date, datetime, timedelta
from decimal import Decimal
from types import MappingProxyType
from typing import Optional

from finance_tracker.config import Config, InsightsConfig, OutputConfig
from finance_tracker.errors import NoAnalysisError
from finance_tracker.models.analysis import (
    Analysis,
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
from finance_tracker.models.transaction import Transaction
from finance_tracker.processing.ledger import Ledger, LedgerChange
from finance_tracker.utils.decimal_utils import format_number, format_short, round_half_up
from finance_tracker.utils.logging_config import get_logger

logger = get_logger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")

# Average number of weeks in a month
WEEKS_PER_MONTH = Decimal("4.33")

RECENT_DAYS = 30
WEEKLY_DAYS = 7
MAX_INSIGHT_CARDS = 4
TOP_CATEGORY_COUNT = 3

# A single category above this share of total expense triggers a recommendation
DOMINANT_CATEGORY_SHARE = Decimal("0.4")

CATEGORY_LABELS = {
    "food": "Food",
    "transport": "Transport",
    "shopping": "Shopping",
    "bills": "Bills",
    "entertainment": "Entertainment",
    "health": "Health",
    "salary": "Salary",
    "other": "Other",
}

HEALTH_ADVICE = {
    FinancialHealth.EXCELLENT: "Keep up the great work!",
    FinancialHealth.GOOD: "You're on the right track.",
    FinancialHealth.FAIR: "Room for improvement.",
    FinancialHealth.POOR: "Immediate attention needed.",
}

HEALTH_CARD_KIND = {
    FinancialHealth.EXCELLENT: CardKind.SUCCESS,
    FinancialHealth.GOOD: CardKind.INFO,
}


def format_category_name(category: str) -> str:
    """Display name for a category; unknown categories are shown as-is."""
    return CATEGORY_LABELS.get(category, category)


def format_money(amount: Decimal, output: Optional[OutputConfig] = None) -> str:
    """Full localized figure with currency symbol, e.g. "Rp 1.250.000"."""
    output = output or OutputConfig()
    figure = format_number(amount, output.thousands_separator, output.decimal_separator)
    return f"{output.currency_symbol} {figure}" if output.currency_symbol else figure


def classify_health(savings_rate: Decimal) -> FinancialHealth:
    if savings_rate > 20:
        return FinancialHealth.EXCELLENT
    if savings_rate > 10:
        return FinancialHealth.GOOD
    if savings_rate > 0:
        return FinancialHealth.FAIR
    return FinancialHealth.POOR


def analyze(
    transactions: Iterable[Transaction],
    now: Optional[datetime] = None,
    recent_days: int = RECENT_DAYS,
    weekly_days: int = WEEKLY_DAYS,
) -> Analysis:
    """Compute an analysis snapshot for a set of transactions.

    Args:
        transactions: Transactions to analyze.
        now: Reference time for the trailing windows (defaults to now).
        recent_days: Length of the "recent" window.
        weekly_days: Length of the "weekly" window.

    Returns:
        Immutable Analysis. Empty input yields zero totals and POOR health.
    """
    now = now or datetime.now()
    txns = list(transactions)
    if not txns:
        return Analysis(generated_at=now)

    recent_start = now - timedelta(days=recent_days)
    weekly_start = now - timedelta(days=weekly_days)

    recent = [t for t in txns if t.timestamp >= recent_start]
    weekly = [t for t in txns if t.timestamp >= weekly_start]

    total_income = ZERO
    total_expense = ZERO
    categories: dict[str, Decimal] = {}
    daily_spending: dict[date, Decimal] = {}

    for txn in txns:
        if txn.is_income:
            total_income += txn.amount
            continue

        total_expense += txn.amount
        category = txn.effective_category
        categories[category] = categories.get(category, ZERO) + txn.amount
        day = txn.timestamp.date()
        daily_spending[day] = daily_spending.get(day, ZERO) + txn.amount

    savings_rate = ZERO
    if total_income > 0:
        savings_rate = (total_income - total_expense) / total_income * HUNDRED

    weekly_expense = sum((t.amount for t in weekly if t.is_expense), ZERO)

    return Analysis(
        total_transactions=len(txns),
        total_income=total_income,
        total_expense=total_expense,
        average_transaction=(total_income + total_expense) / len(txns),
        recent_transactions=len(recent),
        weekly_transactions=len(weekly),
        categories=MappingProxyType(categories),
        daily_spending=MappingProxyType(daily_spending),
        savings_rate=savings_rate,
        financial_health=classify_health(savings_rate),
        monthly_expense_estimate=weekly_expense * WEEKS_PER_MONTH,
        weekly_expense=weekly_expense,
        generated_at=now,
    )


def ranked_categories(analysis: Analysis) -> list[tuple[str, Decimal]]:
    """Expense categories by amount descending; ties go to the smaller name."""
    return sorted(analysis.categories.items(), key=lambda item: (-item[1], item[0]))


def category_percentage(amount: Decimal, analysis: Analysis) -> Decimal:
    """Integer percentage of total expense, 0 when there is no expense."""
    if analysis.total_expense <= 0:
        return ZERO
    return round_half_up(amount / analysis.total_expense * HUNDRED)


def health_score(analysis: Analysis, recent_days: int = RECENT_DAYS) -> int:
    """Composite 0-100 score.

    Up to 40 points for the savings rate, 20 for transaction frequency over
    the recent window, 20 for having any income and 20 for expense control.
    """
    score = 0

    if analysis.savings_rate > 20:
        score += 40
    elif analysis.savings_rate > 10:
        score += 30
    elif analysis.savings_rate > 0:
        score += 20

    avg_daily = Decimal(analysis.recent_transactions) / Decimal(recent_days)
    if 1 <= avg_daily <= 3:
        score += 20
    elif 0 < avg_daily <= 5:
        score += 15
    elif avg_daily > 0:
        score += 10

    if analysis.total_income > 0:
        score += 20

    if analysis.total_expense < analysis.total_income:
        score += 20
    elif analysis.total_expense < analysis.total_income * Decimal("1.1"):
        score += 10

    return score


def _savings_card(analysis: Analysis) -> InsightCard:
    rate = round_half_up(analysis.savings_rate)
    metrics = (Metric("Rate", f"{rate}%"),)

    if analysis.savings_rate < 0:
        return InsightCard(
            kind=CardKind.WARNING,
            priority=Priority.HIGH,
            title="Negative Savings",
            content=f"Spending {abs(rate)}% more than income",
            metrics=metrics,
            icon="exclamation-triangle",
        )
    if analysis.savings_rate < 10:
        return InsightCard(
            kind=CardKind.WARNING,
            priority=Priority.MEDIUM,
            title="Low Savings Rate",
            content=f"Only {rate}% of income saved",
            metrics=metrics,
            icon="exclamation-circle",
        )
    return InsightCard(
        kind=CardKind.SUCCESS,
        priority=Priority.LOW,
        title="Healthy Savings",
        content=f"Great job saving {rate}% of income",
        metrics=metrics,
        icon="check-circle",
    )


def build_insight_cards(
    analysis: Analysis,
    max_cards: int = MAX_INSIGHT_CARDS,
    output: Optional[OutputConfig] = None,
    recent_days: int = RECENT_DAYS,
) -> list[InsightCard]:
    """Derive ranked insight cards from an analysis.

    Cards are only emitted for data that exists (no weekly card without
    transactions in the weekly window, no category card without expenses),
    except the financial health card which is always present. The result is
    stably sorted high, medium, low and truncated to max_cards.
    """
    output = output or OutputConfig()
    cards: list[InsightCard] = []

    if analysis.total_transactions > 0:
        cards.append(_savings_card(analysis))

    if analysis.weekly_transactions > 0:
        cards.append(
            InsightCard(
                kind=CardKind.INFO,
                priority=Priority.MEDIUM,
                title="Weekly Spending",
                content=f"{format_money(analysis.weekly_expense, output)} this week",
                metrics=(
                    Metric(
                        "Amount",
                        format_short(
                            analysis.weekly_expense,
                            output.thousands_separator,
                            output.decimal_separator,
                        ),
                    ),
                ),
                icon="chart-line",
            )
        )

    if analysis.categories:
        category, amount = ranked_categories(analysis)[0]
        share = category_percentage(amount, analysis)
        cards.append(
            InsightCard(
                kind=CardKind.INFO,
                priority=Priority.LOW,
                title="Top Category",
                content=f"{format_category_name(category)}: {share}% of spending",
                metrics=(Metric("Share", f"{share}%"),),
                icon="tag",
            )
        )

    cards.append(
        InsightCard(
            kind=HEALTH_CARD_KIND.get(analysis.financial_health, CardKind.WARNING),
            priority=Priority.MEDIUM,
            title="Financial Health",
            content=f"Status: {analysis.financial_health.value}",
            metrics=(Metric("Score", f"{health_score(analysis, recent_days)}/100"),),
            icon="heart",
        )
    )

    cards.sort(key=lambda card: card.priority.rank)
    return cards[:max_cards]


def recommendations(analysis: Analysis) -> list[Recommendation]:
    """Advice lines for a detailed report; never empty."""
    result: list[Recommendation] = []

    if analysis.savings_rate < 0:
        result.append(
            Recommendation(
                CardKind.WARNING,
                "Urgent: Reduce expenses immediately",
                "exclamation-triangle",
            )
        )

    if analysis.savings_rate < 10:
        result.append(
            Recommendation(CardKind.INFO, "Aim to save at least 20% of income", "piggy-bank")
        )

    if analysis.categories and analysis.total_expense > 0:
        category, amount = ranked_categories(analysis)[0]
        if amount / analysis.total_expense > DOMINANT_CATEGORY_SHARE:
            result.append(
                Recommendation(
                    CardKind.INFO,
                    f"Reduce {format_category_name(category)} expenses",
                    "chart-pie",
                )
            )

    if not result:
        result.append(
            Recommendation(
                CardKind.SUCCESS,
                "Great job! Keep maintaining your financial discipline",
                "check-circle",
            )
        )

    return result


def detailed_report(analysis: Analysis) -> DetailedReport:
    """Overview, top three categories and recommendations for an analysis."""
    top = tuple(
        CategoryShare(
            category=category,
            label=format_category_name(category),
            amount=amount,
            percentage=category_percentage(amount, analysis),
        )
        for category, amount in ranked_categories(analysis)[:TOP_CATEGORY_COUNT]
    )

    return DetailedReport(
        overview=Overview(
            total_transactions=analysis.total_transactions,
            total_income=analysis.total_income,
            total_expense=analysis.total_expense,
            net_balance=analysis.net_balance,
            savings_rate=round_half_up(analysis.savings_rate, 1),
        ),
        top_categories=top,
        recommendations=tuple(recommendations(analysis)),
        financial_health=analysis.financial_health,
        health_advice=HEALTH_ADVICE[analysis.financial_health],
    )


class InsightsEngine:
    """Recomputes insights from a ledger on demand.

    Holds only the most recent analysis and its cards. Refreshes can run
    immediately (generate_insights) or after an artificial delay on a
    cancellable timer (schedule_refresh).
    """

    def __init__(
        self,
        ledger: Ledger,
        config: Optional[Config] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """Initialize the engine.

        Args:
            ledger: Source of transactions.
            config: Application configuration (insights and output sections).
            clock: Returns the reference "now" for each refresh.
        """
        config = config or Config()
        self.ledger = ledger
        self.settings: InsightsConfig = config.insights
        self.output: OutputConfig = config.output
        self.clock = clock
        self.insights: list[InsightCard] = []
        self.last_analysis: Optional[Analysis] = None
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()

    def generate_insights(self, now: Optional[datetime] = None) -> list[InsightCard]:
        """Analyze the ledger's current snapshot and rebuild the cards.

        Returns:
            The new insight cards.
        """
        now = now or self.clock()
        analysis = analyze(
            self.ledger.get_all(),
            now,
            recent_days=self.settings.recent_days,
            weekly_days=self.settings.weekly_days,
        )
        cards = build_insight_cards(
            analysis,
            max_cards=self.settings.max_cards,
            output=self.output,
            recent_days=self.settings.recent_days,
        )

        with self._lock:
            self.last_analysis = analysis
            self.insights = cards

        logger.debug(
            f"Generated {len(cards)} insight cards from {analysis.total_transactions} transactions"
        )
        return cards

    def schedule_refresh(
        self,
        callback: Optional[Callable[[list[InsightCard]], None]] = None,
        delay: Optional[float] = None,
    ) -> threading.Timer:
        """Recompute insights after a delay, replacing any pending refresh.

        Args:
            callback: Called with the new cards once computed.
            delay: Seconds to wait (defaults to refresh_delay_seconds).

        Returns:
            The started timer; cancel it (or call cancel_pending) to abort.
        """
        if delay is None:
            delay = self.settings.refresh_delay_seconds

        def run() -> None:
            cards = self.generate_insights()
            if callback is not None:
                callback(cards)

        timer = threading.Timer(delay, run)
        timer.daemon = True

        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = timer

        timer.start()
        return timer

    def cancel_pending(self) -> bool:
        """Cancel a scheduled refresh. Returns True if one was pending."""
        with self._lock:
            timer, self._timer = self._timer, None

        if timer is None or not timer.is_alive():
            return False
        timer.cancel()
        return True

    def attach(
        self,
        callback: Optional[Callable[[list[InsightCard]], None]] = None,
        delay: Optional[float] = None,
    ) -> Callable[[], None]:
        """Refresh automatically whenever the ledger changes.

        Returns:
            A callable that detaches the engine from the ledger.
        """

        def on_change(change: LedgerChange) -> None:
            logger.debug(f"Ledger {change.event.value}; scheduling insights refresh")
            self.schedule_refresh(callback, delay)

        return self.ledger.subscribe(on_change)

    def get_detailed_analysis(self) -> DetailedReport:
        """Detailed report for the cached analysis.

        Raises:
            NoAnalysisError: If no analysis has been generated yet.
        """
        with self._lock:
            analysis = self.last_analysis
        if analysis is None:
            raise NoAnalysisError()
        return detailed_report(analysis)
