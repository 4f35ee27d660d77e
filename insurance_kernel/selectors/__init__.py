"""Selectors for the insurance kernel (read side)."""

from insurance_kernel.selectors.analytics_selector import (
    AnalyticsSelector,
    ClaimCost,
    MonthlyAmount,
    MonthlyCount,
)
from insurance_kernel.selectors.history_selector import HistoryEventInfo, HistorySelector

__all__ = [
    "AnalyticsSelector",
    "ClaimCost",
    "HistoryEventInfo",
    "HistorySelector",
    "MonthlyAmount",
    "MonthlyCount",
]
