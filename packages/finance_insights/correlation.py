"""Income-vs-expense correlation, trend line and qualitative insights.

Income and expense records are bucketed into calendar months; the two
monthly series are then compared with Pearson's r and a least-squares line
(expenses as a function of income).

Fewer than two months cannot support a correlation. That case raises
:class:`~finance_insights.models.InsufficientDataError` instead of returning
``r = 0``, which would read as "no relationship".
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from decimal import Decimal

from .logging_setup import get_logger
from .models import (
    CorrelationResult,
    Insight,
    InsightKind,
    InsufficientDataError,
    MonthlyPoint,
    Transaction,
)
from .settings import AnalysisSettings

_DEFAULT_SETTINGS = AnalysisSettings()

_logger = get_logger("finance_insights.correlation")


def month_key(tx: Transaction) -> str:
    return tx.date.strftime("%Y-%m")


def monthly_points(
    income: Iterable[Transaction], expenses: Iterable[Transaction]
) -> list[MonthlyPoint]:
    """One point per calendar month holding at least one record, oldest first."""

    income_by_month: dict[str, Decimal] = {}
    expense_by_month: dict[str, Decimal] = {}
    for tx in income:
        k = month_key(tx)
        income_by_month[k] = income_by_month.get(k, Decimal(0)) + tx.amount
    for tx in expenses:
        k = month_key(tx)
        expense_by_month[k] = expense_by_month.get(k, Decimal(0)) + tx.amount

    keys = sorted(set(income_by_month) | set(expense_by_month))
    return [
        MonthlyPoint(
            month_key=k,
            income_sum=income_by_month.get(k, Decimal(0)),
            expense_sum=expense_by_month.get(k, Decimal(0)),
        )
        for k in keys
    ]


def correlation_strength(r: float, settings: AnalysisSettings | None = None) -> str:
    """Display label for ``|r|``: ``strong``, ``moderate`` or ``weak``."""

    s = settings or _DEFAULT_SETTINGS
    abs_r = abs(r)
    if abs_r >= s.strong_correlation:
        return "strong"
    if abs_r >= s.moderate_correlation:
        return "moderate"
    return "weak"


def _as_decimal(v: float | Decimal) -> Decimal:
    return v if isinstance(v, Decimal) else Decimal(str(v))


def _pearson_and_line(xs: Sequence[Decimal], ys: Sequence[Decimal]) -> tuple[float, float, float]:
    # Centered sums in Decimal: a constant series gives exactly zero spread.
    n = len(xs)
    mean_x = sum(xs, Decimal(0)) / n
    mean_y = sum(ys, Decimal(0)) / n
    dx = [x - mean_x for x in xs]
    dy = [y - mean_y for y in ys]
    sxy = sum((a * b for a, b in zip(dx, dy)), Decimal(0))
    sxx = sum((a * a for a in dx), Decimal(0))
    syy = sum((b * b for b in dy), Decimal(0))

    if sxx == 0 or syy == 0:
        r = 0.0
    else:
        r = float(sxy / (sxx * syy).sqrt())
        # Rounding can push |r| a hair past 1.
        r = max(-1.0, min(1.0, r))

    slope = sxy / sxx if sxx != 0 else Decimal(0)
    intercept = mean_y - slope * mean_x
    return r, float(slope), float(intercept)


def build_insights(
    r: float,
    slope: float,
    savings_rate: float | None = None,
    settings: AnalysisSettings | None = None,
) -> list[Insight]:
    """Threshold-driven commentary; each rule is evaluated independently."""

    s = settings or _DEFAULT_SETTINGS
    insights: list[Insight] = []

    if abs(r) >= s.strong_correlation:
        insights.append(
            Insight(
                InsightKind.NEUTRAL,
                "strong_correlation",
                "Your expenses increase proportionally with your income (strong correlation)",
            )
        )
    if abs(r) < s.weak_correlation:
        insights.append(
            Insight(
                InsightKind.POSITIVE,
                "stable_spending",
                "Your expenses are relatively stable regardless of your income",
            )
        )

    if savings_rate is not None:
        if savings_rate >= s.healthy_savings_rate:
            insights.append(
                Insight(
                    InsightKind.POSITIVE,
                    "healthy_savings_rate",
                    f"Excellent average savings rate: {savings_rate:.1f}%",
                )
            )
        elif savings_rate >= 0:
            insights.append(
                Insight(
                    InsightKind.NEUTRAL,
                    "modest_savings_rate",
                    f"Average savings rate: {savings_rate:.1f}%. Consider increasing it.",
                )
            )
        else:
            insights.append(
                Insight(
                    InsightKind.NEGATIVE,
                    "negative_savings_rate",
                    "You're spending more than you earn on average",
                )
            )

    if slope > s.slope_outpace:
        insights.append(
            Insight(
                InsightKind.NEGATIVE,
                "expenses_outpace_income",
                "For every $1 of additional income, your expenses increase by more than $1",
            )
        )
    elif 0 < slope < s.slope_control:
        insights.append(
            Insight(
                InsightKind.POSITIVE,
                "good_control",
                f"Good expense control: for every $1 of extra income, you only spend ${slope:.2f}",
            )
        )
    return insights


def analyze_correlation(
    incomes: Sequence[float | Decimal],
    expenses: Sequence[float | Decimal],
    *,
    savings_rate: float | None = None,
    settings: AnalysisSettings | None = None,
) -> CorrelationResult:
    """Correlate two aligned monthly series.

    Raises
    ------
    ValueError
        When the series lengths differ.
    InsufficientDataError
        When fewer than two points are supplied.
    """

    if len(incomes) != len(expenses):
        raise ValueError(
            f"series must be aligned: got {len(incomes)} income and {len(expenses)} expense points"
        )
    n = len(incomes)
    if n < 2:
        raise InsufficientDataError(f"need at least 2 monthly points, got {n}")

    xs = [_as_decimal(v) for v in incomes]
    ys = [_as_decimal(v) for v in expenses]
    r, slope, intercept = _pearson_and_line(xs, ys)
    s = settings or _DEFAULT_SETTINGS
    _logger.debug("Correlation over %d points: r=%.4f slope=%.4f", n, r, slope)
    return CorrelationResult(
        r=r,
        slope=slope,
        intercept=intercept,
        n=n,
        strength=correlation_strength(r, s),
        insights=tuple(build_insights(r, slope, savings_rate, s)),
    )


def analyze_monthly(
    points: Sequence[MonthlyPoint], settings: AnalysisSettings | None = None
) -> CorrelationResult:
    """Correlate monthly points, adding savings-rate commentary.

    The savings rate fed to the insights is the mean of the per-month rates.
    """

    if len(points) < 2:
        raise InsufficientDataError(f"need at least 2 monthly points, got {len(points)}")
    avg_rate = math.fsum(p.savings_rate for p in points) / len(points)
    return analyze_correlation(
        [p.income_sum for p in points],
        [p.expense_sum for p in points],
        savings_rate=avg_rate,
        settings=settings,
    )


__all__ = [
    "analyze_correlation",
    "analyze_monthly",
    "build_insights",
    "correlation_strength",
    "month_key",
    "monthly_points",
]
