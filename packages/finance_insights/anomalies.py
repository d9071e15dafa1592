"""Anomaly, spike and duplicate alerts over vendor groups.

The detector is stateless: every call regroups the given transactions and
returns a fresh, severity-sorted list of alerts. Dismissed alerts are a
presentation concern; :func:`visible_alerts` filters them at render time and
nothing here ever receives dismissal state.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import Decimal

from .logging_setup import get_logger
from .models import Alert, AlertType, Severity, Transaction, VendorGroup
from .recurrence import detect_new_recurring
from .settings import AnalysisSettings
from .vendors import group_by_vendor

_DEFAULT_SETTINGS = AnalysisSettings()

_logger = get_logger("finance_insights.anomalies")


def percent_change(historical_avg: Decimal, latest: Decimal) -> Decimal | None:
    """``(latest - avg) / avg * 100``; ``None`` when the average is not positive."""

    if historical_avg <= 0:
        return None
    return (latest - historical_avg) / historical_avg * 100


def detect_variance(group: VendorGroup, settings: AnalysisSettings | None = None) -> list[Alert]:
    """High-variance and spike alerts for the latest charge of a vendor.

    Needs at least three occurrences. The latest amount is compared with the
    mean of every earlier amount. Thresholds are strict: a change of exactly
    ``variance_warning_pct`` does not alert.
    """

    s = settings or _DEFAULT_SETTINGS
    if len(group) < 3:
        return []

    *history, latest = group.occurrences
    avg = sum((o.amount for o in history), Decimal(0)) / len(history)
    pct = percent_change(avg, latest.amount)
    if pct is None:
        return []

    alerts: list[Alert] = []
    if pct > s.variance_warning_pct:
        alerts.append(
            Alert(
                id=f"high-{group.key}",
                type=AlertType.HIGH_VARIANCE,
                severity=Severity.CRITICAL if pct > s.variance_critical_pct else Severity.WARNING,
                vendor_key=group.key,
                description=group.description,
                amount=latest.amount,
                historical_avg=avg,
                percent_change=float(pct),
                date=latest.date,
            )
        )
    if pct > s.spike_pct:
        alerts.append(
            Alert(
                id=f"spike-{group.key}",
                type=AlertType.SPIKE,
                severity=Severity.CRITICAL,
                vendor_key=group.key,
                description=group.description,
                amount=latest.amount,
                historical_avg=avg,
                percent_change=float(pct),
                date=latest.date,
            )
        )
    return alerts


def detect_duplicates(group: VendorGroup, settings: AnalysisSettings | None = None) -> list[Alert]:
    """One alert per adjacent pair of equal charges within the duplicate window.

    Scans the whole history of the vendor, not only the latest charge. Each
    qualifying pair yields its own alert, referencing the later occurrence;
    overlapping pairs are not merged.
    """

    s = settings or _DEFAULT_SETTINGS
    alerts: list[Alert] = []
    occs = group.occurrences
    for i in range(1, len(occs)):
        prev, cur = occs[i - 1], occs[i]
        if abs((cur.date - prev.date).days) > s.duplicate_window_days:
            continue
        if cur.amount != prev.amount:
            continue
        alerts.append(
            Alert(
                id=f"duplicate-{group.key}-{i}",
                type=AlertType.DUPLICATE,
                severity=Severity.WARNING,
                vendor_key=group.key,
                description=group.description,
                amount=cur.amount,
                date=cur.date,
            )
        )
    return alerts


def sort_alerts(alerts: Iterable[Alert]) -> list[Alert]:
    """Stable sort by severity rank (critical, warning, info)."""

    return sorted(alerts, key=lambda a: a.severity.rank)


def detect_group_alerts(
    groups: Mapping[str, VendorGroup], settings: AnalysisSettings | None = None
) -> list[Alert]:
    """All alerts for pre-built vendor groups, severity-sorted."""

    s = settings or _DEFAULT_SETTINGS
    found: list[Alert] = []
    for group in groups.values():
        if len(group) < 2:
            continue
        found.extend(detect_variance(group, s))
        new_recurring = detect_new_recurring(group, s)
        if new_recurring is not None:
            found.append(new_recurring)
        found.extend(detect_duplicates(group, s))

    _logger.debug("Detected %d alerts across %d vendors", len(found), len(groups))
    return sort_alerts(found)


def detect_anomalies(
    transactions: Iterable[Transaction], settings: AnalysisSettings | None = None
) -> list[Alert]:
    """Group ``transactions`` by vendor and return every alert, severity-sorted."""

    return detect_group_alerts(group_by_vendor(transactions), settings)


def visible_alerts(alerts: Iterable[Alert], dismissed_ids: Iterable[str] = ()) -> list[Alert]:
    """Drop alerts whose id the presentation layer has marked as dismissed."""

    dismissed = set(dismissed_ids)
    return [a for a in alerts if a.id not in dismissed]


__all__ = [
    "detect_anomalies",
    "detect_duplicates",
    "detect_group_alerts",
    "detect_variance",
    "percent_change",
    "sort_alerts",
    "visible_alerts",
]
