"""Route a resolved operation to the handler that performs it.

Handlers validate their arguments first and only then touch the store, so a
rejected command never leaves a partial write behind.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

from pydantic import BaseModel

from voice_budget.core import settings
from voice_budget.database.store import FinanceStore
from voice_budget.domain import budget
from voice_budget.domain.periods import period_bounds
from voice_budget.domain.prices import PriceCatalog
from voice_budget.errors import UnknownOperation
from voice_budget.logger import get_logger
from voice_budget.models import AiAnalysis, Bucket, CategoryType, GoalSuggestions, TransactionType
from voice_budget.voice import arguments as args_
from voice_budget.voice.registry import operation_names

logger = get_logger(__name__)

Handler = Callable[[Any, AiAnalysis | None], tuple[Any, str]]


class FinancialTips(BaseModel):
    tips: list[str]
    patterns: list[str]


@dataclass
class DispatchOutcome:
    operation: str
    result: Any
    message: str


def _money(amount: Decimal) -> str:
    return f"${amount:.2f}"


def _day_start(day: date | None) -> datetime | None:
    return datetime.combine(day, time.min) if day else None


def _day_end(day: date | None) -> datetime | None:
    return datetime.combine(day, time.max) if day else None


class CommandDispatcher:
    def __init__(
        self,
        store: FinanceStore,
        income_provider: Callable[[], Decimal],
        catalog: PriceCatalog | None = None,
        page_size: int | None = None,
    ):
        self.store = store
        self.income_provider = income_provider
        self.catalog = catalog or PriceCatalog()
        self.page_size = page_size or settings.LIST_PAGE_SIZE
        self._handlers: dict[str, tuple[type[args_.OperationArgs], Handler]] = {
            "addTransaction": (args_.AddTransactionArgs, self._add_transaction),
            "updateTransaction": (args_.UpdateTransactionArgs, self._update_transaction),
            "deleteTransaction": (args_.TransactionIdArgs, self._delete_transaction),
            "listTransactions": (args_.ListTransactionsArgs, self._list_transactions),
            "createGoal": (args_.CreateGoalArgs, self._create_goal),
            "updateGoal": (args_.UpdateGoalArgs, self._update_goal),
            "deleteGoal": (args_.GoalIdArgs, self._delete_goal),
            "listGoals": (args_.ListGoalsArgs, self._list_goals),
            "setCategoryBudget": (args_.SetCategoryBudgetArgs, self._set_category_budget),
            "getBudgetStatus": (args_.PeriodArgs, self._budget_status),
            "getFinancialTip": (args_.NoArgs, self._financial_tip),
            "showRecentActivity": (args_.RecentActivityArgs, self._recent_activity),
            "showTopSpendingCategories": (args_.TopCategoriesArgs, self._top_categories),
            "showIncomeVsExpenses": (args_.PeriodArgs, self._income_vs_expenses),
            "lookupPrice": (args_.LookupPriceArgs, self._lookup_price),
        }
        self.check_registry_coverage()

    def check_registry_coverage(self) -> None:
        declared = set(operation_names())
        handled = set(self._handlers)
        missing = sorted(declared - handled)
        extra = sorted(handled - declared)
        if missing or extra:
            raise RuntimeError(
                f"Operation registry and dispatcher disagree: missing handlers {missing}, undeclared handlers {extra}"
            )

    def handles(self, operation: str) -> bool:
        return operation in self._handlers

    def dispatch(
        self,
        operation: str,
        arguments: dict[str, Any] | None = None,
        analysis: AiAnalysis | None = None,
    ) -> DispatchOutcome:
        entry = self._handlers.get(operation)
        if entry is None:
            logger.warning("[DISPATCH] Unknown operation '%s'.", operation)
            raise UnknownOperation(operation)

        model, handler = entry
        parsed = args_.parse_arguments(model, arguments)
        result, message = handler(parsed, analysis)
        logger.info("[DISPATCH] %s completed.", operation)
        return DispatchOutcome(operation=operation, result=result, message=message)

    # Transactions

    def _default_bucket(self, description: str, category: str) -> Bucket:
        bucket = self.catalog.bucket_for(description)
        if bucket is not None:
            return bucket
        existing = self.store.get_category_by_name(category)
        if existing is not None and existing.type is CategoryType.SAVING:
            return Bucket.SAVING
        return Bucket.NEED

    def _bucket_alert(self, bucket: Bucket) -> str | None:
        start, end = period_bounds("month")
        transactions = self.store.list_transactions(start=start, end=end, bucket=bucket)
        status = budget.summarize_buckets(self.income_provider(), transactions, start, end)
        summary = status.bucket(bucket)
        if summary.state == "over":
            return f"Your {bucket.value} spending is over budget by {_money(-summary.remaining)}!"
        if summary.state == "near":
            return f"You are close to your {bucket.value} budget."
        return None

    def _add_transaction(self, args: args_.AddTransactionArgs, analysis: AiAnalysis | None) -> tuple[Any, str]:
        bucket = args.bucket or self._default_bucket(args.description, args.category)
        when = datetime.combine(args.date, datetime.now().time()) if args.date else None
        record = self.store.add_transaction(
            amount=args.amount,
            description=args.description,
            transaction_type=args.type,
            bucket=bucket,
            category_name=args.category,
            when=when,
            tags=args.tags,
            ai_analysis=analysis,
        )
        kind = "income" if record.type is TransactionType.INCOME else "expense"
        message = (
            f"Added {kind} of {_money(record.amount)} for {record.description} "
            f"in {record.category_name} ({record.bucket.value})."
        )
        if record.type is TransactionType.EXPENSE:
            alert = self._bucket_alert(record.bucket)
            if alert:
                message = f"{message} {alert}"
        return record, message

    def _update_transaction(self, args: args_.UpdateTransactionArgs, _: AiAnalysis | None) -> tuple[Any, str]:
        record = self.store.update_transaction(
            args.transaction_id,
            amount=args.amount,
            description=args.description,
            transaction_type=args.type,
            bucket=args.bucket,
            category_name=args.category,
        )
        return record, (
            f"Updated transaction {record.id}: {_money(record.amount)} for {record.description} "
            f"in {record.category_name} ({record.bucket.value})."
        )

    def _delete_transaction(self, args: args_.TransactionIdArgs, _: AiAnalysis | None) -> tuple[Any, str]:
        record = self.store.delete_transaction(args.transaction_id)
        return record, f"Deleted transaction {record.id} ({record.description}, {_money(record.amount)})."

    def _list_transactions(self, args: args_.ListTransactionsArgs, _: AiAnalysis | None) -> tuple[Any, str]:
        records = self.store.list_transactions(
            start=_day_start(args.start_date),
            end=_day_end(args.end_date),
            category=args.category,
            bucket=args.bucket,
            limit=self.page_size,
        )
        if not records:
            return records, "No transactions found."
        return records, f"Found {len(records)} transaction{'s' if len(records) != 1 else ''}."

    # Goals

    def _create_goal(self, args: args_.CreateGoalArgs, analysis: AiAnalysis | None) -> tuple[Any, str]:
        suggestions = None
        if analysis is not None and analysis.sentiment:
            suggestions = GoalSuggestions(strategy=analysis.sentiment, recommendations=analysis.suggestions)
        record = self.store.create_goal(
            name=args.name,
            target_amount=args.target_amount,
            deadline=args.deadline,
            category_name=args.category,
            ai_suggestions=suggestions,
        )
        message = f"Created goal '{record.name}' with a target of {_money(record.target_amount)}"
        if record.deadline:
            message += f" by {record.deadline.isoformat()}"
        return record, message + "."

    def _update_goal(self, args: args_.UpdateGoalArgs, _: AiAnalysis | None) -> tuple[Any, str]:
        record = self.store.update_goal(
            args.goal_id,
            name=args.name,
            target_amount=args.target_amount,
            status=args.status,
            add_amount=args.add_amount,
        )
        progress = f"{_money(record.current_amount)} of {_money(record.target_amount)} saved."
        if args.add_amount is not None:
            return record, f"Added {_money(args.add_amount)} to '{record.name}'. {progress}"
        return record, f"Updated goal '{record.name}': {progress}"

    def _delete_goal(self, args: args_.GoalIdArgs, _: AiAnalysis | None) -> tuple[Any, str]:
        record = self.store.delete_goal(args.goal_id)
        return record, f"Deleted goal '{record.name}'."

    def _list_goals(self, args: args_.ListGoalsArgs, _: AiAnalysis | None) -> tuple[Any, str]:
        records = self.store.list_goals(args.status)
        if not records:
            return records, "You don't have any goals yet."
        return records, f"You have {len(records)} goal{'s' if len(records) != 1 else ''}."

    def _set_category_budget(self, args: args_.SetCategoryBudgetArgs, _: AiAnalysis | None) -> tuple[Any, str]:
        record = self.store.set_category_budget(args.category, args.budget)
        return record, f"Set the {record.name} budget to {_money(args.budget)} a month."

    # Read-only views

    def _period_transactions(self, period: str) -> tuple[datetime, datetime, list[Any]]:
        start, end = period_bounds(period)
        return start, end, self.store.list_transactions(start=start, end=end)

    def _budget_status(self, args: args_.PeriodArgs, _: AiAnalysis | None) -> tuple[Any, str]:
        start, end, transactions = self._period_transactions(args.period)
        status = budget.summarize_buckets(self.income_provider(), transactions, start, end)
        parts = [
            f"{item.bucket.value} {_money(item.spent)} of {_money(item.allowed)}"
            for item in status.summary
        ]
        message = f"This {args.period}: " + ", ".join(parts) + "."
        if status.alerts:
            message += " " + " ".join(status.alerts)
        return status, message

    def _financial_tip(self, _args: args_.NoArgs, _: AiAnalysis | None) -> tuple[Any, str]:
        start, end, transactions = self._period_transactions("month")
        status = budget.summarize_buckets(self.income_provider(), transactions, start, end)
        patterns = budget.spending_patterns(transactions)
        tips = budget.financial_tips(status, patterns)
        return FinancialTips(tips=tips, patterns=patterns), tips[0]

    def _recent_activity(self, args: args_.RecentActivityArgs, _: AiAnalysis | None) -> tuple[Any, str]:
        records = self.store.list_transactions(limit=args.limit)
        if not records:
            return records, "No recent activity."
        latest = records[0]
        return records, (
            f"Your last {len(records)} transaction{'s' if len(records) != 1 else ''}; "
            f"the latest was {_money(latest.amount)} for {latest.description}."
        )

    def _top_categories(self, args: args_.TopCategoriesArgs, _: AiAnalysis | None) -> tuple[Any, str]:
        start, end = period_bounds(args.period)
        transactions = self.store.list_transactions(
            start=start, end=end, transaction_type=TransactionType.EXPENSE
        )
        budgets = {category.name: category.budget for category in self.store.list_categories()}
        rows = budget.category_breakdown(transactions, start, end, top=args.limit, budgets=budgets)
        if not rows:
            return rows, f"No spending recorded this {args.period}."
        listed = ", ".join(f"{row.name} ({_money(row.total)})" for row in rows)
        return rows, f"Top spending this {args.period}: {listed}."

    def _income_vs_expenses(self, args: args_.PeriodArgs, _: AiAnalysis | None) -> tuple[Any, str]:
        start, end, transactions = self._period_transactions(args.period)
        totals = budget.income_vs_expenses(transactions, start, end)
        verdict = "ahead" if totals.net >= 0 else "behind"
        return totals, (
            f"This {args.period} you earned {_money(totals.income)} and spent {_money(totals.expenses)}; "
            f"you are {_money(abs(totals.net))} {verdict}."
        )

    def _lookup_price(self, args: args_.LookupPriceArgs, _: AiAnalysis | None) -> tuple[Any, str]:
        estimate = self.catalog.lookup(args.item)
        if estimate is None:
            return None, f"I don't have a typical price for {args.item}."
        return estimate, (
            f"A {estimate.item} usually costs about {_money(estimate.price)} "
            f"({estimate.category}, {estimate.bucket.value})."
        )
