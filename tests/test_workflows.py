from decimal import Decimal

import pytest
from finance_insights.models import StatKind, StepStatus
from finance_insights.workflows import TOTAL_STEPS, WorkflowId, resolve_workflow, step_statuses


@pytest.mark.parametrize(
    ("counts", "expected"),
    [
        ({}, 0),
        ({"captured_documents": 2, "pending_extraction": 2}, 1),
        ({"total_expenses": 5, "pending_review": 1}, 2),
        ({"total_expenses": 5, "unclassified": 3}, 3),
        ({"total_expenses": 5, "classified": 5}, 4),
    ],
)
def test_expense_capture_steps(counts, expected):
    assert resolve_workflow("expense-capture", counts).current_step == expected


@pytest.mark.parametrize(
    ("counts", "expected"),
    [
        ({}, 0),
        ({"clients": 1}, 1),
        ({"clients": 1, "contracts": 2}, 2),
        ({"clients": 1, "contracts": 2, "assigned_expenses": 4, "reimbursable_expenses": 2}, 3),
        ({"clients": 1, "contracts": 2, "assigned_expenses": 4}, 4),
    ],
)
def test_client_billing_steps(counts, expected):
    assert resolve_workflow(WorkflowId.CLIENT_BILLING, counts).current_step == expected


@pytest.mark.parametrize(
    ("counts", "expected"),
    [
        ({"uncategorized": 3}, 0),
        ({}, 1),
        ({"deductible": 4}, 2),
    ],
)
def test_tax_preparation_rests_on_optimize(counts, expected):
    assert resolve_workflow("tax-preparation", counts).current_step == expected


@pytest.mark.parametrize(
    ("counts", "expected"),
    [
        ({}, 0),
        ({"total": 10, "pending": 10}, 1),
        ({"total": 10, "pending": 3, "matched": 7}, 2),
        ({"total": 10, "matched": 9, "discrepancies": 1}, 3),
        ({"total": 10, "matched": 10}, 4),
    ],
)
def test_bank_reconciliation_steps(counts, expected):
    assert resolve_workflow("bank-reconciliation", counts).current_step == expected


@pytest.mark.parametrize(
    ("counts", "expected"),
    [
        ({}, 0),
        ({"income_records": 3}, 1),
        ({"expense_records": 3, "assets": 1}, 2),
        ({"expense_records": 3, "assets": 1, "goals": 2}, 3),
        ({"expense_records": 3, "assets": 1, "goals": 2, "completed_goals": 1}, 4),
    ],
)
def test_wealth_building_steps(counts, expected):
    assert resolve_workflow("wealth-building", counts).current_step == expected


def test_step_statuses_follow_current_step():
    assert step_statuses(2) == [
        StepStatus.COMPLETED,
        StepStatus.COMPLETED,
        StepStatus.CURRENT,
        StepStatus.PENDING,
        StepStatus.PENDING,
    ]
    assert step_statuses(0, 3) == [StepStatus.CURRENT, StepStatus.PENDING, StepStatus.PENDING]


def test_resolved_state_carries_step_details():
    state = resolve_workflow("expense-capture", {"total_expenses": 5, "pending_review": 2, "classified": 1})

    assert state.workflow_id == "expense-capture"
    assert state.total_steps == TOTAL_STEPS
    assert [d.step_id for d in state.steps] == ["capture", "extract", "review", "classify", "done"]
    assert [d.status for d in state.steps][:3] == [
        StepStatus.COMPLETED,
        StepStatus.COMPLETED,
        StepStatus.CURRENT,
    ]
    assert state.steps[0].count == 5
    assert state.steps[2].count == 2
    assert [(s.label, s.value) for s in state.stats] == [
        ("To review", 2),
        ("Unclassified", 0),
        ("Completed", 1),
    ]


def test_exactly_one_current_step_for_every_workflow():
    for workflow in WorkflowId:
        state = resolve_workflow(workflow, {})
        assert [d.status for d in state.steps].count(StepStatus.CURRENT) == 1


def test_wealth_building_reports_net_worth():
    state = resolve_workflow(
        "wealth-building",
        {"assets": 2, "total_assets": Decimal("1000.50"), "total_liabilities": 200},
    )
    net_worth = state.stats[0]
    assert net_worth.kind is StatKind.CURRENCY
    assert net_worth.value == Decimal("800.50")


def test_resolution_is_idempotent():
    counts = {"total": 4, "pending": 1, "matched": 3}
    assert resolve_workflow("bank-reconciliation", counts) == resolve_workflow("bank-reconciliation", counts)


def test_unknown_workflow_resolves_to_empty_progress():
    state = resolve_workflow("retirement", {"clients": 3})

    assert state.current_step == 0
    assert state.steps == ()
    assert state.stats == ()
