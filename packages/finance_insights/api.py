"""Public API and orchestration for the ``finance_insights`` package.

Most functions here are re-exports of the component modules so callers have
one stable import path. :func:`analyze_transactions` and
:func:`analyze_income_vs_expenses` compose the components for the common
dashboard use: one call per transaction snapshot, no shared state between
calls.
"""

from __future__ import annotations

from collections.abc import Iterable

from .anomalies import detect_anomalies, detect_group_alerts, visible_alerts
from .correlation import analyze_correlation, analyze_monthly, monthly_points
from .logging_setup import get_logger
from .models import CorrelationResult, Transaction, TransactionAnalysis
from .recurrence import (
    classify_recurrence,
    detect_subscriptions,
    recurring_patterns,
    subscription_totals,
)
from .reimbursement import suggest_reimbursement
from .settings import AnalysisSettings
from .vendors import group_by_vendor, normalize_vendor
from .workflows import resolve_workflow

_logger = get_logger("finance_insights.api")


def analyze_transactions(
    transactions: Iterable[Transaction], settings: AnalysisSettings | None = None
) -> TransactionAnalysis:
    """Group a transaction snapshot once and run every vendor-level analysis on it."""

    groups = group_by_vendor(transactions)
    patterns = recurring_patterns(groups, settings)
    subscriptions = detect_subscriptions(groups, settings)
    alerts = detect_group_alerts(groups, settings)
    _logger.info(
        "Analyzed %d vendors: %d patterns, %d subscriptions, %d alerts",
        len(groups),
        len(patterns),
        len(subscriptions),
        len(alerts),
    )
    return TransactionAnalysis(
        groups=groups,
        patterns=tuple(patterns),
        subscriptions=tuple(subscriptions),
        subscription_totals=subscription_totals(subscriptions),
        alerts=tuple(alerts),
    )


def analyze_income_vs_expenses(
    income: Iterable[Transaction],
    expenses: Iterable[Transaction],
    settings: AnalysisSettings | None = None,
) -> CorrelationResult:
    """Aggregate both record lists by month and correlate them.

    Raises :class:`~finance_insights.models.InsufficientDataError` when fewer
    than two months hold any record.
    """

    return analyze_monthly(monthly_points(income, expenses), settings)


__all__ = [
    "analyze_correlation",
    "analyze_income_vs_expenses",
    "analyze_monthly",
    "analyze_transactions",
    "classify_recurrence",
    "detect_anomalies",
    "detect_subscriptions",
    "group_by_vendor",
    "monthly_points",
    "normalize_vendor",
    "resolve_workflow",
    "suggest_reimbursement",
    "visible_alerts",
]
