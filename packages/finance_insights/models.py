"""Data models and closed enums for ``finance_insights``.

Every result object produced by the analysis modules is a frozen ``dataclass``
so callers can share results across threads and compare them by value. Closed
variants (cadence, severity, alert type, suggestion confidence, step status)
are ``(str, Enum)`` enums: the member value is the stable wire value used in
JSON output and alert ids.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum

# ---------------------------------------------------------------------------
# Closed variants
# ---------------------------------------------------------------------------


class Cadence(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"
    IRREGULAR = "irregular"


class AlertType(str, Enum):
    HIGH_VARIANCE = "high_variance"
    SPIKE = "spike"
    NEW_RECURRING = "new_recurring"
    DUPLICATE = "duplicate"


class Severity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"

    @property
    def rank(self) -> int:
        """Display rank; lower sorts first."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK: dict[Severity, int] = {
    Severity.CRITICAL: 0,
    Severity.WARNING: 1,
    Severity.INFO: 2,
}


class SuggestionConfidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class StepStatus(str, Enum):
    COMPLETED = "completed"
    CURRENT = "current"
    PENDING = "pending"


class InsightKind(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class StatKind(str, Enum):
    COUNT = "count"
    CURRENCY = "currency"


# ---------------------------------------------------------------------------
# Transactions and vendor groups
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Transaction:
    """A single dated money movement as fetched from the transaction store.

    ``amount`` is stored as a positive magnitude; the sign carried by the
    source (outflow vs inflow) is dropped on construction because every
    comparison in this package is between magnitudes.
    """

    id: str | None
    date: date
    amount: Decimal
    description: str | None = None
    category: str | None = None
    client_id: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, "amount", Decimal(str(self.amount)))
        object.__setattr__(self, "amount", abs(self.amount))


@dataclass(frozen=True, slots=True)
class Occurrence:
    date: date
    amount: Decimal
    transaction_id: str | None = None


@dataclass(frozen=True, slots=True)
class VendorGroup:
    """All occurrences of one vendor key, sorted ascending by date."""

    key: str
    occurrences: tuple[Occurrence, ...]
    description: str

    @property
    def amounts(self) -> list[Decimal]:
        return [o.amount for o in self.occurrences]

    @property
    def dates(self) -> list[date]:
        return [o.date for o in self.occurrences]

    def __len__(self) -> int:
        return len(self.occurrences)


# ---------------------------------------------------------------------------
# Recurrence and alerts
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RecurrencePattern:
    """Inferred cadence and amount stability for one vendor.

    ``confidence`` is on a 0-100 scale. ``variance_ratio`` compares the two
    most recent amounts.
    """

    vendor_key: str
    description: str
    cadence: Cadence
    average_amount: Decimal
    latest_amount: Decimal
    variance_ratio: float
    confidence: float
    last_date: date
    occurrences: int
    total_spent: Decimal
    annualized_cost: Decimal


@dataclass(frozen=True, slots=True)
class Alert:
    id: str
    type: AlertType
    severity: Severity
    vendor_key: str
    description: str
    amount: Decimal
    historical_avg: Decimal | None = None
    percent_change: float | None = None
    date: date | None = None


@dataclass(frozen=True, slots=True)
class SubscriptionTotals:
    annual: Decimal
    monthly: Decimal
    count: int


@dataclass(frozen=True, slots=True)
class TransactionAnalysis:
    """Everything derived from one transaction snapshot in a single pass."""

    groups: dict[str, VendorGroup]
    patterns: tuple[RecurrencePattern, ...]
    subscriptions: tuple[RecurrencePattern, ...]
    subscription_totals: SubscriptionTotals
    alerts: tuple[Alert, ...]


# ---------------------------------------------------------------------------
# Correlation
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class MonthlyPoint:
    """Income and expense sums for one calendar month (``YYYY-MM``)."""

    month_key: str
    income_sum: Decimal
    expense_sum: Decimal

    @property
    def savings(self) -> Decimal:
        return self.income_sum - self.expense_sum

    @property
    def savings_rate(self) -> float:
        """Savings as a percentage of income; 0 when there is no income."""
        if self.income_sum <= 0:
            return 0.0
        return float(self.savings / self.income_sum * 100)


@dataclass(frozen=True, slots=True)
class Insight:
    kind: InsightKind
    code: str
    message: str


@dataclass(frozen=True, slots=True)
class CorrelationResult:
    r: float
    slope: float
    intercept: float
    n: int
    strength: str
    insights: tuple[Insight, ...] = ()


# ---------------------------------------------------------------------------
# Contracts and reimbursement
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ContractTerms:
    """Reimbursement terms extracted from one client contract.

    ``reimbursable_categories`` and ``non_reimbursable`` hold free-text
    category names as written in the contract; ``user_notes`` holds the
    user's own corrections and informal agreements.
    """

    contract_id: str | None = None
    title: str | None = None
    reimbursable_categories: frozenset[str] = field(default_factory=frozenset)
    non_reimbursable: frozenset[str] = field(default_factory=frozenset)
    user_notes: str = ""

    @classmethod
    def from_lists(
        cls,
        *,
        contract_id: str | None = None,
        title: str | None = None,
        reimbursable: Iterable[str] = (),
        non_reimbursable: Iterable[str] = (),
        user_notes: str | None = None,
    ) -> ContractTerms:
        return cls(
            contract_id=contract_id,
            title=title,
            reimbursable_categories=frozenset(s for s in reimbursable if s),
            non_reimbursable=frozenset(s for s in non_reimbursable if s),
            user_notes=user_notes or "",
        )

    @property
    def source_ref(self) -> str | None:
        return self.title or self.contract_id


@dataclass(frozen=True, slots=True)
class ReimbursementSuggestion:
    is_reimbursable: bool
    confidence: SuggestionConfidence
    matched_term: str | None = None
    source_ref: str | None = None
    deduction_percent: int | None = None


# ---------------------------------------------------------------------------
# Workflow progress
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class StepDetail:
    step_id: str
    status: StepStatus
    count: int | None = None


@dataclass(frozen=True, slots=True)
class WorkflowStat:
    label: str
    value: Decimal | int
    kind: StatKind = StatKind.COUNT


@dataclass(frozen=True, slots=True)
class WorkflowState:
    workflow_id: str
    current_step: int
    total_steps: int
    steps: tuple[StepDetail, ...] = ()
    stats: tuple[WorkflowStat, ...] = ()


class InsufficientDataError(ValueError):
    """Raised when a series is too short to support a statistic."""


__all__ = [
    "Alert",
    "AlertType",
    "Cadence",
    "ContractTerms",
    "CorrelationResult",
    "Insight",
    "InsightKind",
    "InsufficientDataError",
    "MonthlyPoint",
    "Occurrence",
    "RecurrencePattern",
    "ReimbursementSuggestion",
    "Severity",
    "StatKind",
    "StepDetail",
    "StepStatus",
    "SubscriptionTotals",
    "SuggestionConfidence",
    "Transaction",
    "TransactionAnalysis",
    "VendorGroup",
    "WorkflowStat",
    "WorkflowState",
]
