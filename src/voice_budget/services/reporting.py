import asyncio
from collections.abc import Callable
from datetime import date, datetime, timedelta
from decimal import Decimal

from pydantic import BaseModel

from voice_budget.core import settings
from voice_budget.database.store import FinanceStore
from voice_budget.domain import budget
from voice_budget.domain.periods import normalize_period, period_bounds
from voice_budget.logger import get_logger
from voice_budget.models import (
    BUCKETS,
    Bucket,
    Money,
    RecurringExpenseRecord,
    TransactionRecord,
    TransactionType,
)
from voice_budget.voice.arguments import require_positive

logger = get_logger(__name__)

SPONTANEOUS_TAG = "spontaneous"


class Forecast(BaseModel):
    forecast: dict[Bucket, Money]
    upcoming_expenses: list[RecurringExpenseRecord]
    period: str


class SpontaneousImpact(BaseModel):
    total_want_spent: Money
    want_budget: Money
    remaining_want_budget: Money
    category_breakdown: list[budget.CategorySpend]
    message: str


class SpontaneousPurchase(BaseModel):
    transaction: TransactionRecord
    impact: SpontaneousImpact


def upcoming_recurring(
    expenses: list[RecurringExpenseRecord],
    today: date,
    days: int,
) -> list[RecurringExpenseRecord]:
    horizon = today + timedelta(days=days)
    return [expense for expense in expenses if today <= expense.next_due_date <= horizon]


def build_forecast(expenses: list[RecurringExpenseRecord], today: date, days: int) -> Forecast:
    upcoming = upcoming_recurring(expenses, today, days)
    totals = {bucket: Decimal("0") for bucket in BUCKETS}
    for expense in upcoming:
        totals[expense.bucket] += expense.amount
    return Forecast(forecast=totals, upcoming_expenses=upcoming, period=f"{days} days")


class ReportingService:
    def __init__(self, store: FinanceStore, income: Callable[[], Decimal]) -> None:
        self.store = store
        self.income = income

    async def _month(self, period: str = "month") -> tuple[datetime, datetime, list[TransactionRecord], Decimal]:
        start, end = period_bounds(period)
        transactions, income = await asyncio.gather(
            asyncio.to_thread(self.store.list_transactions, start=start, end=end),
            asyncio.to_thread(self.income),
        )
        return start, end, transactions, income

    async def bucket_summary(self, period: str = "month") -> budget.BudgetStatus:
        start, end, transactions, income = await self._month(normalize_period(period))
        return budget.summarize_buckets(income, transactions, start, end)

    async def budget_report(self, period: str | None = None) -> budget.BudgetReport:
        period = normalize_period(period)
        start, end, transactions, income = await self._month(period)
        report = budget.build_budget_report(period, income, transactions, start, end)
        logger.debug(
            "[REPORT] %s report: spent %.2f over %d transactions.",
            period,
            report.total_spent,
            len(transactions),
        )
        return report

    async def recurring_expenses(self) -> list[RecurringExpenseRecord]:
        return await asyncio.to_thread(self.store.list_recurring_expenses)

    async def forecast(self, days: int = settings.FORECAST_WINDOW_DAYS, today: date | None = None) -> Forecast:
        expenses = await self.recurring_expenses()
        return build_forecast(expenses, today or date.today(), days)

    async def budget_impact(self) -> budget.BudgetImpact:
        start, end = period_bounds("month")
        transactions, goals, income = await asyncio.gather(
            asyncio.to_thread(self.store.list_transactions, start=start, end=end),
            asyncio.to_thread(self.store.list_goals),
            asyncio.to_thread(self.income),
        )
        return budget.budget_impact(income, transactions, goals, date.today(), start, end)

    async def spontaneous_purchase(
        self,
        amount: Decimal,
        description: str,
        category_id: int,
    ) -> SpontaneousPurchase:
        """Record an impulse buy in the WANT bucket and report what is left for wants."""
        require_positive("amount", amount)
        transaction = await asyncio.to_thread(
            self.store.add_transaction_to_category,
            category_id,
            amount=amount,
            description=description,
            transaction_type=TransactionType.EXPENSE,
            bucket=Bucket.WANT,
            tags=[SPONTANEOUS_TAG],
        )

        start, end = period_bounds("month")
        wants, income = await asyncio.gather(
            asyncio.to_thread(self.store.list_transactions, start=start, end=end, bucket=Bucket.WANT),
            asyncio.to_thread(self.income),
        )
        want_budget = budget.allowed_by_bucket(income)[Bucket.WANT]
        spent = budget.bucket_totals(wants, start, end)[Bucket.WANT]
        remaining = want_budget - spent
        if remaining < 0:
            message = f"This purchase puts you ${abs(remaining):.2f} over your wants budget!"
        else:
            message = f"You have ${remaining:.2f} left in your wants budget this month."

        logger.info("[SPONTANEOUS] %.2f for '%s'; wants remaining %.2f.", amount, description, remaining)
        return SpontaneousPurchase(
            transaction=transaction,
            impact=SpontaneousImpact(
                total_want_spent=spent,
                want_budget=want_budget,
                remaining_want_budget=remaining,
                category_breakdown=budget.category_breakdown(wants, start, end),
                message=message,
            ),
        )
