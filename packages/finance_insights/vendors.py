"""Vendor key normalization and grouping.

Descriptions are canonicalized into grouping keys by exact normalized-string
equality; there is no fuzzy matching at this stage. Groups are rebuilt on
every call and never cached.
"""

from __future__ import annotations

import unicodedata
from collections.abc import Iterable

from .logging_setup import get_logger
from .models import Occurrence, Transaction, VendorGroup

UNKNOWN_VENDOR = "unknown"
_UNKNOWN_DISPLAY = "Unknown"

_logger = get_logger("finance_insights.vendors")


def strip_diacritics(text: str) -> str:
    """Drop combining marks after NFD decomposition (``"Café"`` -> ``"Cafe"``)."""

    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_text(text: str | None) -> str:
    """Lower-case, diacritic-free, trimmed form of ``text`` (``""`` for ``None``)."""

    if text is None:
        return ""
    # Lower before stripping marks: lowering can itself emit combining marks ("İ").
    return strip_diacritics(str(text).lower()).strip()


def normalize_vendor(description: str | None) -> str:
    """Return the vendor key for a raw description.

    Blank or missing descriptions map to the reserved ``"unknown"`` key.
    Idempotent: ``normalize_vendor(normalize_vendor(x)) == normalize_vendor(x)``.
    """

    key = normalize_text(description)
    return key or UNKNOWN_VENDOR


def group_by_vendor(transactions: Iterable[Transaction]) -> dict[str, VendorGroup]:
    """Bucket transactions by vendor key.

    Keys appear in order of first occurrence. Within a group, occurrences are
    sorted ascending by date; the sort is stable so same-day charges keep
    their input order.
    """

    buckets: dict[str, list[Occurrence]] = {}
    display: dict[str, str] = {}
    for tx in transactions:
        key = normalize_vendor(tx.description)
        if key not in buckets:
            buckets[key] = []
            raw = (tx.description or "").strip()
            display[key] = raw or _UNKNOWN_DISPLAY
        buckets[key].append(Occurrence(date=tx.date, amount=tx.amount, transaction_id=tx.id))

    groups = {
        key: VendorGroup(
            key=key,
            occurrences=tuple(sorted(occs, key=lambda o: o.date)),
            description=display[key],
        )
        for key, occs in buckets.items()
    }
    _logger.debug("Grouped transactions into %d vendor groups", len(groups))
    return groups


__all__ = [
    "UNKNOWN_VENDOR",
    "group_by_vendor",
    "normalize_text",
    "normalize_vendor",
    "strip_diacritics",
]
