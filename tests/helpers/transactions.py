"""Transaction builders shared by the tests."""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

from finance_insights.models import Transaction


def tx(
    day: date | str,
    amount: str | int | float,
    description: str | None = "Netflix",
    *,
    id: str | None = None,
    category: str | None = None,
    client_id: str | None = None,
) -> Transaction:
    d = date.fromisoformat(day) if isinstance(day, str) else day
    return Transaction(
        id=id,
        date=d,
        amount=Decimal(str(amount)),
        description=description,
        category=category,
        client_id=client_id,
    )


def series(
    start: str, gap_days: int, amounts: list[str | int | float], description: str = "Netflix"
) -> list[Transaction]:
    """Charges every ``gap_days`` days starting at ``start``."""

    first = date.fromisoformat(start)
    return [
        tx(first + timedelta(days=gap_days * i), amount, description, id=f"{description}-{i}")
        for i, amount in enumerate(amounts)
    ]
