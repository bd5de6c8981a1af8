from datetime import date, datetime
from decimal import Decimal

import pytest

from voice_budget.domain import budget
from voice_budget.domain.periods import month_bounds, period_bounds, resolve_date_range
from voice_budget.models import Bucket, GoalRecord, GoalStatus, TransactionType

MAY = month_bounds(date(2024, 5, 15))


@pytest.mark.parametrize("income", ["3000", "1234.57", "0", "99999.99"])
def test_allowances_cover_income_exactly(income: str) -> None:
    allowed = budget.allowed_by_bucket(Decimal(income))
    assert set(allowed) == {Bucket.NEED, Bucket.WANT, Bucket.SAVING}
    assert sum(allowed.values()) == Decimal(income)


def test_bucket_totals_always_has_every_bucket() -> None:
    totals = budget.bucket_totals([], *MAY)
    assert totals == {Bucket.NEED: 0, Bucket.WANT: 0, Bucket.SAVING: 0}


def test_needs_spending_within_budget(make_tx) -> None:
    status = budget.summarize_buckets(3000, [make_tx(150, Bucket.NEED)], *MAY)

    need = status.bucket(Bucket.NEED)
    assert need.allowed == Decimal("1500")
    assert need.spent == Decimal("150")
    assert need.remaining == Decimal("1350")
    assert need.state == "ok"
    assert status.alerts == []
    assert status.suggestions == []


def test_wants_overspending_raises_alert(make_tx) -> None:
    status = budget.summarize_buckets(3000, [make_tx(950, Bucket.WANT, "Dining")], *MAY)

    want = status.bucket(Bucket.WANT)
    assert want.allowed == Decimal("900")
    assert want.remaining == Decimal("-50")
    assert want.state == "over"
    assert len(status.alerts) == 1
    assert "over budget by $50.00" in status.alerts[0]
    assert status.suggestions == ["Try to reduce your want spending next week."]


def test_near_limit_alert_is_exclusive_with_over(make_tx) -> None:
    status = budget.summarize_buckets(3000, [make_tx(850, Bucket.WANT)], *MAY)

    assert status.bucket(Bucket.WANT).state == "near"
    assert status.alerts == ["You are close to your WANT budget."]
    assert status.suggestions == []


def test_spending_exactly_at_limit_is_not_over(make_tx) -> None:
    status = budget.summarize_buckets(3000, [make_tx(900, Bucket.WANT)], *MAY)
    assert status.bucket(Bucket.WANT).state == "near"
    assert not any("over budget" in alert for alert in status.alerts)


def test_transactions_outside_period_are_ignored(make_tx) -> None:
    transactions = [
        make_tx(100, Bucket.NEED),
        make_tx(400, Bucket.NEED, when=datetime(2024, 4, 30, 23, 59)),
        make_tx(400, Bucket.NEED, when=datetime(2024, 6, 1, 0, 0)),
    ]
    status = budget.summarize_buckets(3000, transactions, *MAY)
    assert status.bucket(Bucket.NEED).spent == Decimal("100")


def test_category_breakdown_keeps_store_order_unless_top_given(make_tx) -> None:
    transactions = [
        make_tx(20, Bucket.WANT, "Dining"),
        make_tx(80, Bucket.NEED, "Rent"),
        make_tx(30, Bucket.WANT, "Dining"),
        make_tx(10, Bucket.WANT, "Entertainment"),
    ]

    rows = budget.category_breakdown(transactions, *MAY)
    assert [row.name for row in rows] == ["Dining", "Rent", "Entertainment"]
    assert rows[0].total == Decimal("50")

    top = budget.category_breakdown(transactions, *MAY, top=2)
    assert [row.name for row in top] == ["Rent", "Dining"]


def test_budget_report_totals(make_tx) -> None:
    transactions = [
        make_tx(100, Bucket.NEED),
        make_tx(50, Bucket.WANT, "Dining"),
        make_tx(200, Bucket.SAVING, "Savings"),
    ]
    report = budget.build_budget_report("month", 3000, transactions, *MAY)

    assert report.period == "month"
    assert report.total_spent == Decimal("350")
    assert report.total_saved == Decimal("200")
    assert len(report.summary) == 3
    assert {row.name for row in report.category_breakdown} == {"Groceries", "Dining", "Savings"}


def test_income_vs_expenses(make_tx) -> None:
    transactions = [
        make_tx(2500, Bucket.NEED, "Salary", TransactionType.INCOME),
        make_tx(100, Bucket.NEED),
        make_tx(40, Bucket.WANT, "Dining"),
    ]
    totals = budget.income_vs_expenses(transactions, *MAY)
    assert totals.income == Decimal("2500")
    assert totals.expenses == Decimal("140")
    assert totals.net == Decimal("2360")


def test_budget_impact_counts_expenses_only(make_tx) -> None:
    transactions = [
        make_tx(950, Bucket.WANT, "Dining"),
        make_tx(5000, Bucket.NEED, "Salary", TransactionType.INCOME),
    ]
    goal = GoalRecord(
        id=1,
        name="Trip",
        target_amount=Decimal("1000"),
        current_amount=Decimal("0"),
        deadline=None,
        status=GoalStatus.IN_PROGRESS,
    )

    impact = budget.budget_impact(3000, transactions, [goal], date(2024, 5, 15), *MAY)

    assert impact.bucket_spending[Bucket.NEED] == 0
    assert impact.overspending == {Bucket.WANT: Decimal("50")}
    assert "overspent your wants budget by $50.00" in impact.coaching_message
    assert impact.goals[0].monthly_required is None
    assert impact.coaching.severity == "warning"


def test_goal_monthly_requirement() -> None:
    goal = GoalRecord(
        id=1,
        name="Laptop",
        target_amount=Decimal("900"),
        current_amount=Decimal("300"),
        deadline=date(2024, 8, 13),
        status=GoalStatus.IN_PROGRESS,
    )
    # 90 days left -> 3 months
    assert budget.monthly_required(goal, date(2024, 5, 15)) == Decimal("200.00")
    assert budget.months_until(date(2024, 5, 1), date(2024, 5, 15)) == 1


def test_coaching_on_track() -> None:
    spent = {Bucket.NEED: Decimal("500"), Bucket.WANT: Decimal("200"), Bucket.SAVING: Decimal("700")}
    message = budget.coaching_message(3000, spent, [], [])
    assert message.severity == "success"
    assert message.main_message == "You're on track with your budget!"
    assert message.details


def test_coaching_needs_over_budget_is_danger() -> None:
    spent = {Bucket.NEED: Decimal("1600"), Bucket.WANT: Decimal("0"), Bucket.SAVING: Decimal("600")}
    message = budget.coaching_message(3000, spent, [], [])
    assert message.severity == "danger"
    assert message.main_message == "Your spending needs immediate attention!"


def test_spending_patterns_and_tips(make_tx) -> None:
    transactions = [make_tx(7.5, Bucket.WANT, "Dining", description="McDonald's #7") for _ in range(3)]
    patterns = budget.spending_patterns(transactions)
    assert any("fast food" in pattern for pattern in patterns)

    status = budget.summarize_buckets(3000, [], *MAY)
    tips = budget.financial_tips(status, [])
    assert tips == ["Move $600.00 into savings to hit your 20% target this month."]


def test_period_bounds() -> None:
    first, last = period_bounds("week", date(2024, 5, 15))
    assert first.date() == date(2024, 5, 12)
    assert last.date() == date(2024, 5, 18)

    first, last = period_bounds("quarter", date(2024, 2, 10))
    assert first == datetime(2024, 2, 1)
    assert last.date() == date(2024, 2, 29)


def test_resolve_date_range() -> None:
    start, end = resolve_date_range("2024-05-01", None)
    assert start == datetime(2024, 5, 1)
    assert end is None
    with pytest.raises(ValueError):
        resolve_date_range("yesterday", None)
