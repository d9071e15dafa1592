"""CSV/JSON loaders producing :class:`~finance_insights.models.Transaction`
and :class:`~finance_insights.models.ContractTerms` records.

Parsing follows RFC 4180 via the stdlib :mod:`csv` module. Headers are
matched case-insensitively against a small alias table so exports from the
expense store, the income store and bank downloads all load without a
mapping step. Malformed amounts or dates raise ``ValueError`` naming the
offending row.
"""

from __future__ import annotations

import csv
import json
from collections.abc import Iterator, Mapping, Sequence
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from io import StringIO
from typing import Any

from .logging_setup import get_logger
from .models import ContractTerms, Transaction

_logger = get_logger("finance_insights.normalizers")

# Canonical field -> accepted header spellings (compared lower-cased).
_HEADER_ALIASES: dict[str, tuple[str, ...]] = {
    "id": ("id", "transaction_id", "reference"),
    "date": ("date", "transaction_date", "posted_date", "post date", "transaction date"),
    "amount": ("amount", "total", "amount ($)"),
    "description": ("description", "vendor", "merchant", "payee"),
    "category": ("category",),
    "client_id": ("client_id", "client"),
}

_DATE_FORMATS: tuple[str, ...] = ("%Y-%m-%d", "%m/%d/%Y")


# ---------------------------------------------------------------------------
# Helpers (amount/date normalization, CSV loading)
# ---------------------------------------------------------------------------


def to_decimal(raw: str | int | float | Decimal | None) -> Decimal:
    """Parse an amount such as ``"$1,234.56"``, ``"(12.00)"`` or ``"-12"``."""

    if raw is None:
        raise ValueError("amount is required")
    if isinstance(raw, Decimal):
        return raw
    if isinstance(raw, int | float):
        return Decimal(str(raw))
    s = raw.strip()
    if not s:
        raise ValueError("amount is empty")

    negative = False
    # Strip leading sign, currency symbol and surrounding parentheses in any order.
    while True:
        changed = False
        if s.startswith("+"):
            s = s[1:].lstrip()
            changed = True
        elif s.startswith("-"):
            negative = True
            s = s[1:].lstrip()
            changed = True
        if s.startswith("$"):
            s = s[1:].lstrip()
            changed = True
        if s.startswith("(") and s.endswith(")") and len(s) >= 2:
            negative = True
            s = s[1:-1].strip()
            changed = True
        if not changed:
            break

    s = s.replace(",", "").strip()
    try:
        d = Decimal(s)
    except InvalidOperation as exc:
        raise ValueError(f"invalid amount: {raw!r}") from exc
    if not d.is_finite():
        raise ValueError(f"invalid amount: {raw!r}")
    return -abs(d) if negative else d


def to_date(raw: str | date | None) -> date:
    """Parse ``YYYY-MM-DD`` (optionally with a time part) or ``MM/DD/YYYY``."""

    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if raw is None or not raw.strip():
        raise ValueError("date is required")
    first = raw.strip().split()[0].split("T", 1)[0]
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(first, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"invalid date: {raw!r}")


def _blank_to_none(v: Any) -> str | None:
    if v is None:
        return None
    s = str(v).strip()
    return s or None


def _resolve_headers(fieldnames: Sequence[str]) -> dict[str, str]:
    lowered = {name.strip().lower(): name for name in fieldnames if name}
    resolved: dict[str, str] = {}
    for canonical, aliases in _HEADER_ALIASES.items():
        for alias in aliases:
            if alias in lowered:
                resolved[canonical] = lowered[alias]
                break
    return resolved


def transaction_from_mapping(row: Mapping[str, Any]) -> Transaction:
    """Build a :class:`Transaction` from a mapping keyed by canonical names."""

    return Transaction(
        id=_blank_to_none(row.get("id")),
        date=to_date(row.get("date")),
        amount=to_decimal(row.get("amount")),
        description=_blank_to_none(row.get("description")),
        category=_blank_to_none(row.get("category")),
        client_id=_blank_to_none(row.get("client_id")),
    )


def _iter_csv_transactions(csv_text: str) -> Iterator[Transaction]:
    with StringIO(csv_text) as f:
        reader = csv.DictReader(f)
        if reader.fieldnames is None:
            return
        headers = _resolve_headers(reader.fieldnames)
        missing = sorted({"date", "amount"} - headers.keys())
        if missing:
            raise ValueError("CSV is missing required columns: " + ", ".join(missing))

        for line_no, row in enumerate(reader, start=2):
            if all((v or "").strip() == "" for k, v in row.items() if k is not None):
                continue
            canonical = {field: row.get(header) for field, header in headers.items()}
            try:
                yield transaction_from_mapping(canonical)
            except ValueError as exc:
                raise ValueError(f"row {line_no}: {exc}") from exc


def load_transactions_csv(csv_text: str) -> list[Transaction]:
    """Parse CSV text into transactions, skipping blank rows."""

    items = list(_iter_csv_transactions(csv_text))
    _logger.info("Loaded %d transactions from CSV", len(items))
    return items


# ---------------------------------------------------------------------------
# Contracts
# ---------------------------------------------------------------------------


def contract_from_mapping(raw: Mapping[str, Any]) -> ContractTerms:
    """Build :class:`ContractTerms` from a contract-store record.

    Accepts both a flat shape (``reimbursable_categories`` at top level) and
    the extracted-terms shape nesting them under ``reimbursement_policy``.
    """

    policy = raw.get("reimbursement_policy")
    if not isinstance(policy, Mapping):
        extracted = raw.get("extracted_terms")
        policy = extracted.get("reimbursement_policy") if isinstance(extracted, Mapping) else None
    source: Mapping[str, Any] = policy if isinstance(policy, Mapping) else raw

    def _strings(key: str) -> list[str]:
        values = source.get(key) or []
        if isinstance(values, str):
            values = [values]
        return [s for s in (_blank_to_none(v) for v in values) if s]

    return ContractTerms.from_lists(
        contract_id=_blank_to_none(raw.get("id")),
        title=_blank_to_none(raw.get("title")) or _blank_to_none(raw.get("file_name")),
        reimbursable=_strings("reimbursable_categories"),
        non_reimbursable=_strings("non_reimbursable"),
        user_notes=_blank_to_none(raw.get("user_notes")),
    )


def load_contracts_json(json_text: str, *, client_id: str | None = None) -> list[ContractTerms]:
    """Parse a JSON array of contract records, optionally filtered by ``client_id``."""

    data = json.loads(json_text)
    if not isinstance(data, list):
        raise ValueError("contracts JSON must be an array of objects")
    out: list[ContractTerms] = []
    for i, item in enumerate(data):
        if not isinstance(item, Mapping):
            raise ValueError(f"contract #{i} is not an object")
        if client_id is not None and str(item.get("client_id") or "") != client_id:
            continue
        out.append(contract_from_mapping(item))
    return out


__all__ = [
    "contract_from_mapping",
    "load_contracts_json",
    "load_transactions_csv",
    "to_date",
    "to_decimal",
    "transaction_from_mapping",
]
