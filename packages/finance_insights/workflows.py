"""Deterministic progress for the guided business workflows.

Each workflow is five ordered steps. A step is "blocking" when the counts
show work still outstanding at that stage; the current step is the first
blocking one (or the last step when nothing blocks). Step statuses follow
from the current step alone, so the result depends only on the counts passed
in and can be recomputed on every poll.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import TypeAlias

from .logging_setup import get_logger
from .models import StatKind, StepDetail, StepStatus, WorkflowStat, WorkflowState

Counts: TypeAlias = Mapping[str, int | Decimal | float | None]

TOTAL_STEPS = 5

_logger = get_logger("finance_insights.workflows")


class WorkflowId(str, Enum):
    EXPENSE_CAPTURE = "expense-capture"
    CLIENT_BILLING = "client-billing"
    TAX_PREPARATION = "tax-preparation"
    BANK_RECONCILIATION = "bank-reconciliation"
    WEALTH_BUILDING = "wealth-building"


def _n(counts: Counts, key: str) -> int:
    return int(counts.get(key) or 0)


def _amount(counts: Counts, key: str) -> Decimal:
    raw = counts.get(key)
    return Decimal(str(raw)) if raw is not None else Decimal(0)


@dataclass(frozen=True, slots=True)
class _Step:
    step_id: str
    blocking: Callable[[Counts], bool]
    count_key: str | None = None


def _never(_: Counts) -> bool:
    return False


def _always(_: Counts) -> bool:
    return True


_STEPS: dict[WorkflowId, tuple[_Step, ...]] = {
    WorkflowId.EXPENSE_CAPTURE: (
        _Step(
            "capture",
            lambda c: _n(c, "total_expenses") == 0 and _n(c, "captured_documents") == 0,
            "total_expenses",
        ),
        _Step("extract", lambda c: _n(c, "pending_extraction") > 0, "pending_extraction"),
        _Step("review", lambda c: _n(c, "pending_review") > 0, "pending_review"),
        _Step("classify", lambda c: _n(c, "unclassified") > 0, "unclassified"),
        _Step("done", _never, "classified"),
    ),
    WorkflowId.CLIENT_BILLING: (
        _Step("client", lambda c: _n(c, "clients") == 0, "clients"),
        _Step("contract", lambda c: _n(c, "contracts") == 0, "contracts"),
        _Step("assign", lambda c: _n(c, "assigned_expenses") == 0, "assigned_expenses"),
        _Step("generate", lambda c: _n(c, "reimbursable_expenses") > 0, "reimbursable_expenses"),
        _Step("send", _never),
    ),
    # Optimization has no measurable completion signal; once deductible
    # expenses exist the workflow rests on that step.
    WorkflowId.TAX_PREPARATION: (
        _Step("categorize", lambda c: _n(c, "uncategorized") > 0, "uncategorized"),
        _Step("calculate", lambda c: _n(c, "deductible") == 0, "deductible"),
        _Step("optimize", _always),
        _Step("export", _never),
        _Step("file", _never),
    ),
    WorkflowId.BANK_RECONCILIATION: (
        _Step("import", lambda c: _n(c, "total") == 0, "total"),
        _Step("analyze", lambda c: _n(c, "pending") > 0 and _n(c, "matched") == 0),
        _Step("match", lambda c: _n(c, "pending") > 0, "pending"),
        _Step("review-unmatched", lambda c: _n(c, "discrepancies") > 0, "discrepancies"),
        _Step("reconciled", _never, "matched"),
    ),
    WorkflowId.WEALTH_BUILDING: (
        _Step("track", lambda c: _n(c, "income_records") == 0 and _n(c, "expense_records") == 0),
        _Step("save", lambda c: _n(c, "assets") == 0),
        _Step("invest", lambda c: _n(c, "goals") == 0),
        _Step("grow", lambda c: _n(c, "completed_goals") == 0),
        _Step("freedom", _never),
    ),
}


def _stats(workflow: WorkflowId, c: Counts) -> tuple[WorkflowStat, ...]:
    if workflow is WorkflowId.EXPENSE_CAPTURE:
        return (
            WorkflowStat("To review", _n(c, "pending_review")),
            WorkflowStat("Unclassified", _n(c, "unclassified")),
            WorkflowStat("Completed", _n(c, "classified")),
        )
    if workflow is WorkflowId.CLIENT_BILLING:
        return (
            WorkflowStat("Clients", _n(c, "clients")),
            WorkflowStat("Contracts", _n(c, "contracts")),
            WorkflowStat("Reimbursable", _n(c, "reimbursable_expenses")),
        )
    if workflow is WorkflowId.TAX_PREPARATION:
        return (
            WorkflowStat("Uncategorized", _n(c, "uncategorized")),
            WorkflowStat("Deductible", _n(c, "deductible")),
            WorkflowStat("Total deductible", _amount(c, "deductible_total"), StatKind.CURRENCY),
        )
    if workflow is WorkflowId.BANK_RECONCILIATION:
        return (
            WorkflowStat("Pending", _n(c, "pending")),
            WorkflowStat("Matched", _n(c, "matched")),
            WorkflowStat("Discrepancies", _n(c, "discrepancies")),
        )
    net_worth = _amount(c, "total_assets") - _amount(c, "total_liabilities")
    return (
        WorkflowStat("Net worth", net_worth, StatKind.CURRENCY),
        WorkflowStat("Assets", _n(c, "assets")),
        WorkflowStat("Active goals", _n(c, "goals")),
    )


def step_statuses(current_step: int, total_steps: int = TOTAL_STEPS) -> list[StepStatus]:
    """``completed`` before ``current_step``, ``current`` at it, ``pending`` after."""

    return [
        StepStatus.COMPLETED
        if i < current_step
        else StepStatus.CURRENT
        if i == current_step
        else StepStatus.PENDING
        for i in range(total_steps)
    ]


def resolve_workflow(workflow_id: str | WorkflowId, counts: Counts) -> WorkflowState:
    """Compute the progress of ``workflow_id`` from raw ``counts``.

    Missing counts are treated as zero. Unknown workflow ids resolve to step
    0 with no step details and no stats.
    """

    try:
        workflow = WorkflowId(workflow_id)
    except ValueError:
        _logger.warning("Unknown workflow id %r; returning empty progress", workflow_id)
        return WorkflowState(workflow_id=str(workflow_id), current_step=0, total_steps=TOTAL_STEPS)

    steps = _STEPS[workflow]
    current = next((i for i, step in enumerate(steps) if step.blocking(counts)), len(steps) - 1)
    statuses = step_statuses(current, len(steps))
    details = tuple(
        StepDetail(
            step_id=step.step_id,
            status=status,
            count=_n(counts, step.count_key) if step.count_key else None,
        )
        for step, status in zip(steps, statuses)
    )
    return WorkflowState(
        workflow_id=workflow.value,
        current_step=current,
        total_steps=len(steps),
        steps=details,
        stats=_stats(workflow, counts),
    )


__all__ = ["TOTAL_STEPS", "WorkflowId", "resolve_workflow", "step_statuses"]
