import random
from decimal import Decimal

import pytest
from finance_insights.api import analyze_income_vs_expenses
from finance_insights.correlation import (
    analyze_correlation,
    build_insights,
    correlation_strength,
    monthly_points,
)
from finance_insights.models import InsightKind, InsufficientDataError

from tests.helpers.transactions import tx


def _codes(insights):
    return [i.code for i in insights]


def test_perfect_linear_relationship():
    incomes = [1000, 2000, 3000, 4000]
    result = analyze_correlation(incomes, [2 * x for x in incomes])

    assert result.r == pytest.approx(1.0)
    assert result.slope == pytest.approx(2.0)
    assert result.intercept == pytest.approx(0.0, abs=1e-9)
    assert result.n == 4
    assert result.strength == "strong"
    assert _codes(result.insights) == ["strong_correlation", "expenses_outpace_income"]


def test_inverse_relationship_reports_negative_r():
    result = analyze_correlation([1, 2, 3], [30, 20, 10])
    assert result.r == pytest.approx(-1.0)
    assert result.slope == pytest.approx(-10.0)
    assert result.strength == "strong"


def test_r_stays_within_bounds_on_random_series():
    rng = random.Random(42)
    for _ in range(200):
        n = rng.randint(2, 24)
        xs = [rng.uniform(0, 10_000) for _ in range(n)]
        ys = [rng.uniform(0, 10_000) for _ in range(n)]
        result = analyze_correlation(xs, ys)
        assert -1.0 <= result.r <= 1.0


def test_fewer_than_two_points_raises():
    with pytest.raises(InsufficientDataError):
        analyze_correlation([100], [50])
    with pytest.raises(InsufficientDataError):
        analyze_correlation([], [])


def test_misaligned_series_raise_value_error():
    with pytest.raises(ValueError, match="aligned"):
        analyze_correlation([1, 2, 3], [1, 2])


def test_constant_income_gives_zero_r_and_slope():
    result = analyze_correlation([3000, 3000, 3000], [1000, 1500, 2000])

    assert result.r == 0.0
    assert result.slope == 0.0
    assert result.intercept == pytest.approx(1500.0)
    assert _codes(result.insights) == ["stable_spending"]


@pytest.mark.parametrize("salary", ["1000.70", "2850.45", "4321.09"])
def test_constant_fractional_salary_gives_zero_slope(salary):
    incomes = [Decimal(salary)] * 6
    expenses = [Decimal(v) for v in ("2100", "2480", "1990", "2600", "2250", "2310")]
    result = analyze_correlation(incomes, expenses)

    assert result.r == 0.0
    assert result.slope == 0.0
    assert result.intercept == pytest.approx(2288.33, abs=0.01)
    assert "expenses_outpace_income" not in _codes(result.insights)


def test_constant_salary_over_monthly_points():
    income = [tx(f"2024-{m:02d}-01", "1000.70", "Salary") for m in range(1, 13)]
    expenses = [tx(f"2024-{m:02d}-15", 600 + 10 * m, "Spending") for m in range(1, 13)]
    result = analyze_income_vs_expenses(income, expenses)

    assert result.slope == 0.0
    assert result.r == 0.0


@pytest.mark.parametrize(
    ("r", "label"),
    [(0.7, "strong"), (-0.75, "strong"), (0.5, "moderate"), (-0.4, "moderate"), (0.39, "weak"), (0.0, "weak")],
)
def test_correlation_strength_labels(r, label):
    assert correlation_strength(r) == label


@pytest.mark.parametrize(
    ("rate", "code", "kind"),
    [
        (25.0, "healthy_savings_rate", InsightKind.POSITIVE),
        (20.0, "healthy_savings_rate", InsightKind.POSITIVE),
        (10.0, "modest_savings_rate", InsightKind.NEUTRAL),
        (0.0, "modest_savings_rate", InsightKind.NEUTRAL),
        (-5.0, "negative_savings_rate", InsightKind.NEGATIVE),
    ],
)
def test_savings_rate_insights(rate, code, kind):
    (insight,) = [i for i in build_insights(0.5, 0.0, rate) if "savings" in i.code]
    assert insight.code == code
    assert insight.kind is kind


def test_slope_insights():
    assert "good_control" in _codes(build_insights(0.5, 0.3))
    assert "expenses_outpace_income" in _codes(build_insights(0.5, 1.2))
    assert _codes(build_insights(0.5, 0.0)) == []
    assert _codes(build_insights(0.5, 0.8)) == []


def test_monthly_points_buckets_by_calendar_month():
    income = [tx("2024-01-05", "3000", "Salary"), tx("2024-01-20", "500", "Bonus"), tx("2024-02-05", "3000", "Salary")]
    expenses = [tx("2024-01-10", "2000", "Rent"), tx("2024-03-01", "100", "Gym")]
    points = monthly_points(income, expenses)

    assert [p.month_key for p in points] == ["2024-01", "2024-02", "2024-03"]
    assert points[0].income_sum == Decimal("3500")
    assert points[0].savings == Decimal("1500")
    assert points[1].expense_sum == Decimal(0)
    assert points[1].savings_rate == pytest.approx(100.0)
    assert points[2].savings_rate == 0.0


def test_analyze_income_vs_expenses_adds_savings_commentary():
    income = [tx(f"2024-{m:02d}-01", 4000 + 500 * m, "Salary") for m in range(1, 7)]
    expenses = [tx(f"2024-{m:02d}-15", 2000 + 100 * m, "Spending") for m in range(1, 7)]
    result = analyze_income_vs_expenses(income, expenses)

    assert result.n == 6
    assert result.r == pytest.approx(1.0)
    assert result.slope == pytest.approx(0.2)
    assert _codes(result.insights) == ["strong_correlation", "healthy_savings_rate", "good_control"]


def test_analyze_income_vs_expenses_single_month_raises():
    with pytest.raises(InsufficientDataError):
        analyze_income_vs_expenses([tx("2024-01-01", "10", "Salary")], [tx("2024-01-02", "5", "Food")])
