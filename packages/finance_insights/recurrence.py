"""Recurring-payment classification.

Given a :class:`~finance_insights.models.VendorGroup`, infer its cadence from
the day gaps between consecutive charges and how stable its amounts are.

Confidence scheme
-----------------
``confidence = consistency * n / (n + 1)`` on a 0-100 scale, where ``n`` is
the number of occurrences and ``consistency`` is ``100 - 100 * pstdev(gaps) /
mean(gaps)`` floored at 0 (100 when there is a single gap). The score grows
with the number of occurrences and with how tightly the gaps cluster;
``irregular`` patterns always score 0.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal
from statistics import fmean, pstdev

from .logging_setup import get_logger
from .models import (
    Alert,
    AlertType,
    Cadence,
    RecurrencePattern,
    Severity,
    SubscriptionTotals,
    VendorGroup,
)
from .settings import AnalysisSettings

_DEFAULT_SETTINGS = AnalysisSettings()

_PERIODS_PER_YEAR: dict[Cadence, int] = {
    Cadence.WEEKLY: 52,
    Cadence.MONTHLY: 12,
    Cadence.QUARTERLY: 4,
    Cadence.YEARLY: 1,
    Cadence.IRREGULAR: 0,
}

_CENT = Decimal("0.01")

_logger = get_logger("finance_insights.recurrence")


def _cents(d: Decimal) -> Decimal:
    return d.quantize(_CENT, rounding=ROUND_HALF_UP)


def _mean(values: list[Decimal]) -> Decimal:
    return sum(values, Decimal(0)) / len(values)


def day_gaps(group: VendorGroup) -> list[int]:
    """Day gaps between consecutive occurrences (one gap for a pair)."""

    dates = group.dates
    return [(later - earlier).days for earlier, later in zip(dates, dates[1:])]


def classify_cadence(gap_days: float, settings: AnalysisSettings | None = None) -> Cadence:
    """Map a day gap onto a cadence band; anything outside every band is irregular."""

    s = settings or _DEFAULT_SETTINGS
    if s.weekly_band.contains(gap_days):
        return Cadence.WEEKLY
    if s.monthly_band.contains(gap_days):
        return Cadence.MONTHLY
    if s.quarterly_band.contains(gap_days):
        return Cadence.QUARTERLY
    if s.yearly_band.contains(gap_days):
        return Cadence.YEARLY
    return Cadence.IRREGULAR


def variance_ratio(previous: Decimal, latest: Decimal) -> float:
    """``|latest - previous| / max(latest, previous)``; 0 when both are zero."""

    top = max(previous, latest)
    if top <= 0:
        return 0.0
    return float(abs(latest - previous) / top)


def amounts_similar(
    previous: Decimal, latest: Decimal, settings: AnalysisSettings | None = None
) -> bool:
    s = settings or _DEFAULT_SETTINGS
    return variance_ratio(previous, latest) < s.similar_amount_ratio


def _consistency(gaps: list[int]) -> float:
    if len(gaps) < 2:
        return 100.0
    avg = fmean(gaps)
    if avg <= 0:
        return 0.0
    return max(0.0, 100.0 - pstdev(gaps) / avg * 100.0)


def detect_new_recurring(
    group: VendorGroup, settings: AnalysisSettings | None = None
) -> Alert | None:
    """Flag a vendor that has just started charging monthly.

    Fires only for exactly two occurrences spaced inside the monthly band with
    similar amounts. A third occurrence makes the group stop qualifying, so
    the alert is emitted at most once per vendor. Quarterly and yearly gaps
    never qualify.
    """

    s = settings or _DEFAULT_SETTINGS
    if len(group) != 2:
        return None
    first, second = group.occurrences
    gap = (second.date - first.date).days
    if not s.monthly_band.contains(gap):
        return None
    if not amounts_similar(first.amount, second.amount, s):
        return None
    return Alert(
        id=f"new-recurring-{group.key}",
        type=AlertType.NEW_RECURRING,
        severity=Severity.INFO,
        vendor_key=group.key,
        description=group.description,
        amount=second.amount,
        historical_avg=first.amount,
        date=second.date,
    )


def classify_recurrence(
    group: VendorGroup, settings: AnalysisSettings | None = None
) -> RecurrencePattern | None:
    """Infer the cadence and stability of a vendor; ``None`` below two occurrences."""

    s = settings or _DEFAULT_SETTINGS
    n = len(group)
    if n < 2:
        return None

    gaps = day_gaps(group)
    cadence = classify_cadence(fmean(gaps), s)
    if cadence is Cadence.IRREGULAR:
        confidence = 0.0
    else:
        confidence = round(_consistency(gaps) * n / (n + 1), 2)

    amounts = group.amounts
    average = _mean(amounts)
    return RecurrencePattern(
        vendor_key=group.key,
        description=group.description,
        cadence=cadence,
        average_amount=average,
        latest_amount=amounts[-1],
        variance_ratio=variance_ratio(amounts[-2], amounts[-1]),
        confidence=confidence,
        last_date=group.occurrences[-1].date,
        occurrences=n,
        total_spent=sum(amounts, Decimal(0)),
        annualized_cost=_cents(average * _PERIODS_PER_YEAR[cadence]),
    )


def recurring_patterns(
    groups: Mapping[str, VendorGroup], settings: AnalysisSettings | None = None
) -> list[RecurrencePattern]:
    """Patterns for every group with at least two occurrences, in group order."""

    out: list[RecurrencePattern] = []
    for group in groups.values():
        pattern = classify_recurrence(group, settings)
        if pattern is not None:
            out.append(pattern)
    return out


def detect_subscriptions(
    groups: Mapping[str, VendorGroup], settings: AnalysisSettings | None = None
) -> list[RecurrencePattern]:
    """Recurring patterns stable enough to be treated as subscriptions.

    A pattern qualifies when its cadence is not irregular, every amount lies
    within ``subscription_amount_tolerance`` of the group average and its gap
    consistency (before the occurrence-count weighting applied to
    ``confidence``) reaches ``subscription_min_confidence``. Results are
    ordered by annualized cost, highest first.
    """

    s = settings or _DEFAULT_SETTINGS
    tolerance = Decimal(str(s.subscription_amount_tolerance))
    detected: list[RecurrencePattern] = []
    for group in groups.values():
        pattern = classify_recurrence(group, s)
        if pattern is None or pattern.cadence is Cadence.IRREGULAR:
            continue
        avg = pattern.average_amount
        if avg <= 0:
            continue
        if any(abs(a - avg) / avg > tolerance for a in group.amounts):
            continue
        if _consistency(day_gaps(group)) < s.subscription_min_confidence:
            continue
        detected.append(pattern)

    detected.sort(key=lambda p: p.annualized_cost, reverse=True)
    _logger.debug("Detected %d subscriptions across %d vendors", len(detected), len(groups))
    return detected


def subscription_totals(patterns: Iterable[RecurrencePattern]) -> SubscriptionTotals:
    items = list(patterns)
    annual = sum((p.annualized_cost for p in items), Decimal(0))
    return SubscriptionTotals(annual=_cents(annual), monthly=_cents(annual / 12), count=len(items))


__all__ = [
    "amounts_similar",
    "classify_cadence",
    "classify_recurrence",
    "day_gaps",
    "detect_new_recurring",
    "detect_subscriptions",
    "recurring_patterns",
    "subscription_totals",
    "variance_ratio",
]
