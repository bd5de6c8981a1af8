"""50/30/20 budget model.

Everything here is a pure function over records already loaded from the
store. Amounts are Decimal so the three bucket allowances always add up to
exactly the monthly income.
"""

import math
from collections.abc import Iterable, Sequence
from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

from voice_budget.models import (
    BUCKETS,
    Bucket,
    GoalRecord,
    GoalStatus,
    Money,
    TransactionRecord,
    TransactionType,
)

BUCKET_SHARES: dict[Bucket, Decimal] = {
    Bucket.NEED: Decimal("0.5"),
    Bucket.WANT: Decimal("0.3"),
    Bucket.SAVING: Decimal("0.2"),
}
NEAR_LIMIT_RATIO = Decimal("0.9")
ZERO = Decimal("0")

Severity = Literal["success", "warning", "danger"]
BucketState = Literal["ok", "near", "over"]


class BucketSummary(BaseModel):
    bucket: Bucket
    allowed: Money
    spent: Money
    remaining: Money
    state: BucketState = "ok"


class BudgetStatus(BaseModel):
    income: Money
    summary: list[BucketSummary]
    alerts: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)

    def bucket(self, bucket: Bucket) -> BucketSummary:
        return next(item for item in self.summary if item.bucket is bucket)


class CategorySpend(BaseModel):
    name: str
    total: Money
    bucket: Bucket | None = None
    budget: Money | None = None


class BudgetReport(BaseModel):
    period: str
    total_spent: Money
    total_saved: Money
    summary: list[BucketSummary]
    category_breakdown: list[CategorySpend]
    alerts: list[str]
    suggestions: list[str]


class IncomeVsExpenses(BaseModel):
    income: Money
    expenses: Money
    net: Money


class CoachingMessage(BaseModel):
    main_message: str
    details: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    severity: Severity = "success"


class GoalProgress(BaseModel):
    id: int
    name: str
    target_amount: Money
    current_amount: Money
    deadline: date | None
    monthly_required: Money | None


class BudgetImpact(BaseModel):
    bucket_spending: dict[Bucket, Money]
    category_spending: dict[str, Money]
    budget_limits: dict[Bucket, Money]
    overspending: dict[Bucket, Money]
    coaching_message: str
    coaching: CoachingMessage
    goals: list[GoalProgress]


def to_money(value: Decimal | float | int | str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _fmt(amount: Decimal) -> str:
    return f"${amount:.2f}"


def in_period(when: datetime, start: datetime | None, end: datetime | None) -> bool:
    if start is not None and when < start:
        return False
    if end is not None and when > end:
        return False
    return True


def _within(
    transactions: Iterable[TransactionRecord],
    start: datetime | None,
    end: datetime | None,
) -> list[TransactionRecord]:
    return [tx for tx in transactions if in_period(tx.date, start, end)]


def allowed_by_bucket(income: Decimal | float | int) -> dict[Bucket, Decimal]:
    income_value = to_money(income)
    return {bucket: income_value * BUCKET_SHARES[bucket] for bucket in BUCKETS}


def bucket_totals(
    transactions: Iterable[TransactionRecord],
    start: datetime | None = None,
    end: datetime | None = None,
    *,
    expenses_only: bool = False,
) -> dict[Bucket, Decimal]:
    totals = {bucket: ZERO for bucket in BUCKETS}
    for tx in _within(transactions, start, end):
        if expenses_only and tx.type is not TransactionType.EXPENSE:
            continue
        totals[tx.bucket] += to_money(tx.amount)
    return totals


def bucket_state(allowed: Decimal, spent: Decimal) -> BucketState:
    if spent > allowed:
        return "over"
    if spent > allowed * NEAR_LIMIT_RATIO:
        return "near"
    return "ok"


def summarize_buckets(
    income: Decimal | float | int,
    transactions: Iterable[TransactionRecord],
    start: datetime | None = None,
    end: datetime | None = None,
) -> BudgetStatus:
    allowed = allowed_by_bucket(income)
    spent = bucket_totals(transactions, start, end)
    alerts: list[str] = []
    suggestions: list[str] = []
    summary: list[BucketSummary] = []

    for bucket in BUCKETS:
        state = bucket_state(allowed[bucket], spent[bucket])
        if state == "over":
            alerts.append(
                f"Your {bucket.value} spending is over budget by {_fmt(spent[bucket] - allowed[bucket])}!"
            )
            suggestions.append(f"Try to reduce your {bucket.value.lower()} spending next week.")
        elif state == "near":
            alerts.append(f"You are close to your {bucket.value} budget.")
        summary.append(
            BucketSummary(
                bucket=bucket,
                allowed=allowed[bucket],
                spent=spent[bucket],
                remaining=allowed[bucket] - spent[bucket],
                state=state,
            )
        )

    return BudgetStatus(
        income=to_money(income),
        summary=summary,
        alerts=alerts,
        suggestions=suggestions,
    )


def category_breakdown(
    transactions: Iterable[TransactionRecord],
    start: datetime | None = None,
    end: datetime | None = None,
    top: int | None = None,
    budgets: dict[str, Decimal | None] | None = None,
) -> list[CategorySpend]:
    """Per-category totals in first-seen order, or the largest ``top`` ones."""
    totals: dict[str, Decimal] = {}
    buckets: dict[str, Bucket] = {}
    for tx in _within(transactions, start, end):
        name = tx.category_name
        if name not in totals:
            totals[name] = ZERO
            buckets[name] = tx.bucket
        totals[name] += to_money(tx.amount)

    budgets = budgets or {}
    rows = [
        CategorySpend(name=name, total=total, bucket=buckets[name], budget=budgets.get(name))
        for name, total in totals.items()
    ]
    if top is not None:
        rows = sorted(rows, key=lambda row: row.total, reverse=True)[: max(top, 0)]
    return rows


def build_budget_report(
    period: str,
    income: Decimal | float | int,
    transactions: Sequence[TransactionRecord],
    start: datetime | None = None,
    end: datetime | None = None,
) -> BudgetReport:
    status = summarize_buckets(income, transactions, start, end)
    total_spent = sum((item.spent for item in status.summary), ZERO)
    return BudgetReport(
        period=period,
        total_spent=total_spent,
        total_saved=status.bucket(Bucket.SAVING).spent,
        summary=status.summary,
        category_breakdown=category_breakdown(transactions, start, end),
        alerts=status.alerts,
        suggestions=status.suggestions,
    )


def income_vs_expenses(
    transactions: Iterable[TransactionRecord],
    start: datetime | None = None,
    end: datetime | None = None,
) -> IncomeVsExpenses:
    income = ZERO
    expenses = ZERO
    for tx in _within(transactions, start, end):
        if tx.type is TransactionType.INCOME:
            income += to_money(tx.amount)
        else:
            expenses += to_money(tx.amount)
    return IncomeVsExpenses(income=income, expenses=expenses, net=income - expenses)


def months_until(deadline: date | None, today: date) -> int | None:
    """Whole 30-day months left before the deadline, at least one."""
    if deadline is None:
        return None
    days = (deadline - today).days
    return max(1, math.ceil(days / 30))


def monthly_required(goal: GoalRecord, today: date) -> Decimal | None:
    months = months_until(goal.deadline, today)
    if months is None:
        return None
    remaining = max(to_money(goal.target_amount) - to_money(goal.current_amount), ZERO)
    return (remaining / months).quantize(Decimal("0.01"))


def goal_progress(goals: Iterable[GoalRecord], today: date) -> list[GoalProgress]:
    return [
        GoalProgress(
            id=goal.id,
            name=goal.name,
            target_amount=goal.target_amount,
            current_amount=goal.current_amount,
            deadline=goal.deadline,
            monthly_required=monthly_required(goal, today),
        )
        for goal in goals
    ]


def _percent(spent: Decimal, limit: Decimal) -> Decimal:
    if limit <= 0:
        return ZERO
    return spent / limit * 100


def _over_budget_categories(categories: Iterable[CategorySpend]) -> list[str]:
    return [
        f"{cat.name} ({_percent(to_money(cat.total), to_money(cat.budget)):.1f}% of budget)"
        for cat in categories
        if cat.budget and to_money(cat.total) > to_money(cat.budget)
    ]


def coaching_message(
    income: Decimal | float | int,
    spent: dict[Bucket, Decimal],
    categories: Sequence[CategorySpend],
    goals: Sequence[GoalProgress],
) -> CoachingMessage:
    limits = allowed_by_bucket(income)
    needs_pct = _percent(spent[Bucket.NEED], limits[Bucket.NEED])
    wants_pct = _percent(spent[Bucket.WANT], limits[Bucket.WANT])
    savings_pct = _percent(spent[Bucket.SAVING], limits[Bucket.SAVING])

    details: list[str] = []
    suggestions: list[str] = []
    severity: Severity = "success"
    over_categories = _over_budget_categories(categories)

    if needs_pct > 100:
        severity = "danger"
        details.append(f"You've exceeded your needs budget by {needs_pct - 100:.1f}%")
        if over_categories:
            details.append(f"Over budget in: {', '.join(over_categories)}")
        suggestions.append("Review your essential expenses to find areas where you can reduce spending")
        suggestions.append("Look for ways to reduce utility bills or find more affordable housing options")
    elif needs_pct > 80:
        severity = "warning"
        details.append(f"You're close to your needs budget limit ({needs_pct:.1f}% used)")
        suggestions.append("Start planning for next month's essential expenses")

    if wants_pct > 100:
        severity = "warning" if severity == "success" else "danger"
        details.append(f"You've exceeded your wants budget by {wants_pct - 100:.1f}%")
        if over_categories and needs_pct <= 100:
            details.append(f"Over budget in: {', '.join(over_categories)}")
        suggestions.append('Try a "cooling-off" period before making non-essential purchases')
        suggestions.append("Look for free or lower-cost alternatives for entertainment and dining out")
    elif wants_pct > 80:
        if severity == "success":
            severity = "warning"
        details.append(f"You're close to your wants budget limit ({wants_pct:.1f}% used)")
        suggestions.append("Plan your discretionary spending for the rest of the month")

    if savings_pct < 80:
        if severity == "success":
            severity = "warning"
        details.append(f"You're behind on your savings target ({savings_pct:.1f}% of target)")
        if goals:
            share = limits[Bucket.SAVING] / len(goals)
            at_risk = [
                goal.name
                for goal in goals
                if goal.monthly_required is not None and goal.monthly_required > share
            ]
            if at_risk:
                details.append(f"Your savings rate may affect these goals: {', '.join(at_risk)}")
        suggestions.append("Consider setting up automatic transfers to your savings account")
        suggestions.append("Look for ways to increase your income or reduce expenses to boost savings")

    if severity == "danger":
        main_message = "Your spending needs immediate attention!"
    elif severity == "warning":
        main_message = "Your budget needs some adjustments."
    else:
        main_message = "You're on track with your budget!"
        positives = []
        if needs_pct < 80:
            positives.append("managing essential expenses well")
        if wants_pct < 80:
            positives.append("keeping discretionary spending under control")
        if savings_pct >= 100:
            positives.append("exceeding your savings target")
        if positives:
            details.append(f"Great job {' and '.join(positives)}!")

    return CoachingMessage(
        main_message=main_message,
        details=details,
        suggestions=suggestions,
        severity=severity,
    )


def _impact_text(
    overspending: dict[Bucket, Decimal],
    category_spending: dict[str, Decimal],
    goals: Sequence[GoalProgress],
) -> str:
    if not overspending:
        return "You're staying within your budget! Keep it up and watch those goals get closer."

    lines = ["We need to talk about your spending habits."]
    if Bucket.WANT in overspending:
        lines.append(f"You've overspent your wants budget by {_fmt(overspending[Bucket.WANT])} this month.")
        top = sorted(
            ((name, amount) for name, amount in category_spending.items() if amount > 0),
            key=lambda item: item[1],
            reverse=True,
        )[:3]
        if top:
            lines.append("Your biggest splurges were:")
            lines.extend(f"- {name}: {_fmt(amount)}" for name, amount in top)
    if Bucket.NEED in overspending:
        lines.append(f"Your needs spending is {_fmt(overspending[Bucket.NEED])} over budget.")
        lines.append("These are your essential expenses, so this one matters most.")

    total_over = sum(overspending.values(), ZERO)
    for goal in goals:
        if goal.monthly_required and goal.monthly_required > 0 and total_over > goal.monthly_required:
            delay = math.ceil(total_over / goal.monthly_required)
            lines.append(f'This overspending is delaying your "{goal.name}" goal by {delay} months.')

    lines.append("Here's what to do next:")
    if Bucket.WANT in overspending:
        lines.append("- Review your last three spontaneous purchases. Were they worth it?")
        lines.append("- Wait 24 hours before any purchase over $50.")
    if Bucket.NEED in overspending:
        lines.append("- Audit your recurring expenses for anything you can cut.")
        lines.append("- Check whether any 'needs' are really 'wants'.")
    return "\n".join(lines)


def budget_impact(
    income: Decimal | float | int,
    transactions: Sequence[TransactionRecord],
    goals: Sequence[GoalRecord],
    today: date,
    start: datetime | None = None,
    end: datetime | None = None,
) -> BudgetImpact:
    """Expense-only view of the period and how overspending affects goals."""
    limits = allowed_by_bucket(income)
    spending = bucket_totals(transactions, start, end, expenses_only=True)

    category_spending: dict[str, Decimal] = {}
    for tx in _within(transactions, start, end):
        if tx.type is TransactionType.EXPENSE:
            category_spending[tx.category_name] = (
                category_spending.get(tx.category_name, ZERO) + to_money(tx.amount)
            )

    overspending = {
        bucket: spending[bucket] - limits[bucket]
        for bucket in BUCKETS
        if spending[bucket] > limits[bucket]
    }
    active_goals = [goal for goal in goals if goal.status is GoalStatus.IN_PROGRESS]
    progress = goal_progress(active_goals, today)
    categories = [
        CategorySpend(name=name, total=total) for name, total in category_spending.items()
    ]

    return BudgetImpact(
        bucket_spending=spending,
        category_spending=category_spending,
        budget_limits=limits,
        overspending=overspending,
        coaching_message=_impact_text(overspending, category_spending, progress),
        coaching=coaching_message(income, spending, categories, progress),
        goals=progress,
    )


def spending_patterns(transactions: Iterable[TransactionRecord]) -> list[str]:
    patterns: list[str] = []
    txs = list(transactions)

    fast_food = [
        tx
        for tx in txs
        if tx.category_name.lower() == "dining" and "mcdonalds" in tx.description.lower().replace("'", "")
    ]
    if len(fast_food) >= 3:
        patterns.append(
            f"You've had {len(fast_food)} fast food meals recently. Meal prepping could save you money!"
        )

    entertainment = sum(
        (to_money(tx.amount) for tx in txs if tx.category_name.lower() == "entertainment"),
        ZERO,
    )
    if entertainment > 100:
        patterns.append(f"Your entertainment spending is {_fmt(entertainment)} this month. That's higher than usual!")

    savings = sum((to_money(tx.amount) for tx in txs if tx.bucket is Bucket.SAVING), ZERO)
    if savings > 200:
        patterns.append(f"Great job saving {_fmt(savings)} this month! Keep it up!")

    return patterns


def financial_tips(status: BudgetStatus, patterns: Sequence[str]) -> list[str]:
    """Most pressing advice first; always returns at least one tip."""
    tips = list(status.suggestions)
    tips.extend(patterns)
    for item in status.summary:
        if item.state == "near":
            tips.append(
                f"You have {_fmt(to_money(item.remaining))} left for {item.bucket.value.lower()} this month. Spend it wisely."
            )
    if not tips:
        saving = status.bucket(Bucket.SAVING)
        if saving.remaining > 0:
            tips.append(
                f"Move {_fmt(to_money(saving.remaining))} into savings to hit your 20% target this month."
            )
        else:
            tips.append("You're right on your 50/30/20 plan. Keep logging every purchase to stay there.")
    return tips
