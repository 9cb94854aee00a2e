"""Ledger, period filters and insights analytics."""

from finance_tracker.processing.insights import (
    InsightsEngine,
    analyze,
    build_insight_cards,
    detailed_report,
    health_score,
)
from finance_tracker.processing.ledger import Ledger, LedgerChange, LedgerEvent
from finance_tracker.processing.periods import Period, filter_by_period, period_range_label

__all__ = [
    "InsightsEngine",
    "analyze",
    "build_insight_cards",
    "detailed_report",
    "health_score",
    "Ledger",
    "LedgerChange",
    "LedgerEvent",
    "Period",
    "filter_by_period",
    "period_range_label",
]
