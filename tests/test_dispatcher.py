from datetime import date, timedelta
from decimal import Decimal

import pytest

from voice_budget.database.store import FinanceStore
from voice_budget.domain.budget import BudgetStatus, CategorySpend, IncomeVsExpenses
from voice_budget.errors import InvalidAmount, InvalidArguments, NotFound, UnknownOperation
from voice_budget.models import AiAnalysis, Bucket, CategoryType, GoalStatus, TransactionType
from voice_budget.voice.dispatcher import CommandDispatcher, FinancialTips


@pytest.fixture
def dispatcher(store: FinanceStore, income) -> CommandDispatcher:
    return CommandDispatcher(store, income, page_size=20)


def _add(dispatcher: CommandDispatcher, **arguments):
    payload = {"type": "EXPENSE", "description": "purchase", "category": "Groceries"}
    payload.update(arguments)
    return dispatcher.dispatch("addTransaction", payload)


def test_add_transaction_upserts_category_once(dispatcher: CommandDispatcher, store: FinanceStore) -> None:
    _add(dispatcher, amount=12, category="Food")
    outcome = _add(dispatcher, amount="8.50", category="food")

    assert outcome.operation == "addTransaction"
    assert outcome.result.amount == Decimal("8.50")
    assert len(store.list_categories()) == 1
    assert len(store.list_transactions()) == 2


def test_negative_amount_leaves_no_trace(dispatcher: CommandDispatcher, store: FinanceStore) -> None:
    with pytest.raises(InvalidAmount):
        _add(dispatcher, amount=-5, category="Impulse")

    assert store.list_transactions() == []
    assert store.list_categories() == []


@pytest.mark.parametrize("amount", ["abc", 0, 2_000_000])
def test_bad_amounts_are_rejected(dispatcher: CommandDispatcher, amount) -> None:
    with pytest.raises(InvalidArguments):
        _add(dispatcher, amount=amount)


def test_missing_required_argument(dispatcher: CommandDispatcher) -> None:
    with pytest.raises(InvalidArguments, match="category"):
        dispatcher.dispatch("addTransaction", {"amount": 5, "description": "coffee"})


def test_bucket_defaults(dispatcher: CommandDispatcher, store: FinanceStore) -> None:
    assert _add(dispatcher, amount=5, description="Starbucks grande", category="Coffee").result.bucket is Bucket.WANT

    store.ensure_category("Emergency Fund", CategoryType.SAVING)
    assert _add(dispatcher, amount=100, description="transfer", category="Emergency Fund").result.bucket is Bucket.SAVING

    assert _add(dispatcher, amount=900, description="rent", category="Housing").result.bucket is Bucket.NEED

    explicit = _add(dispatcher, amount=20, description="rent", category="Housing", bucket="want")
    assert explicit.result.bucket is Bucket.WANT


def test_add_transaction_reports_overspending(dispatcher: CommandDispatcher) -> None:
    outcome = _add(dispatcher, amount=950, description="new phone", category="Gadgets", bucket="WANT")
    assert "Gadgets" in outcome.message
    assert "over budget by $50.00" in outcome.message


def test_add_transaction_keeps_analysis(dispatcher: CommandDispatcher) -> None:
    analysis = AiAnalysis(sentiment="Pricey lunch.")
    outcome = dispatcher.dispatch(
        "addTransaction",
        {"amount": 30, "type": "expense", "description": "lunch", "category": "Dining", "tags": "work, team"},
        analysis,
    )
    assert outcome.result.ai_analysis == analysis
    assert outcome.result.tags == ["work", "team"]


def test_update_transaction(dispatcher: CommandDispatcher, store: FinanceStore) -> None:
    created = _add(dispatcher, amount=10, category="Misc").result

    outcome = dispatcher.dispatch("updateTransaction", {"transactionId": created.id, "category": "Transport"})
    assert outcome.result.category_name == "Transport"

    with pytest.raises(InvalidArguments):
        dispatcher.dispatch("updateTransaction", {"transactionId": created.id})
    with pytest.raises(NotFound):
        dispatcher.dispatch("updateTransaction", {"transactionId": 999, "amount": 5})


@pytest.mark.parametrize("field", ["category", "description"])
@pytest.mark.parametrize("blank", ["", "   "])
def test_update_transaction_rejects_blank_text(
    dispatcher: CommandDispatcher, store: FinanceStore, field: str, blank: str
) -> None:
    created = _add(dispatcher, amount=10, description="lunch", category="Food").result

    with pytest.raises(InvalidArguments, match=field):
        dispatcher.dispatch("updateTransaction", {"transactionId": created.id, field: blank})

    loaded = store.get_transaction(created.id)
    assert loaded.category_name == "Food"
    assert loaded.description == "lunch"
    assert [category.name for category in store.list_categories()] == ["Food"]


def test_goal_rejects_blank_text(dispatcher: CommandDispatcher, store: FinanceStore) -> None:
    goal = dispatcher.dispatch("createGoal", {"name": "Trip", "targetAmount": 500}).result

    with pytest.raises(InvalidArguments, match="name"):
        dispatcher.dispatch("updateGoal", {"goalId": goal.id, "name": "  "})
    with pytest.raises(InvalidArguments, match="category"):
        dispatcher.dispatch("createGoal", {"name": "Car", "targetAmount": 900, "category": " "})

    assert store.get_goal(goal.id).name == "Trip"
    assert store.list_categories() == []


def test_delete_transaction(dispatcher: CommandDispatcher, store: FinanceStore) -> None:
    created = _add(dispatcher, amount=10).result
    dispatcher.dispatch("deleteTransaction", {"transactionId": created.id})
    assert store.list_transactions() == []

    with pytest.raises(NotFound):
        dispatcher.dispatch("deleteTransaction", {"transactionId": created.id})


def test_list_transactions_filters_and_page_size(store: FinanceStore, income) -> None:
    dispatcher = CommandDispatcher(store, income, page_size=2)
    _add(dispatcher, amount=1, category="Dining", bucket="WANT")
    _add(dispatcher, amount=2, category="Groceries")
    _add(dispatcher, amount=3, category="Groceries")

    everything = dispatcher.dispatch("listTransactions", {})
    assert len(everything.result) == 2

    wants = dispatcher.dispatch("listTransactions", {"bucket": "WANT"})
    assert [tx.category_name for tx in wants.result] == ["Dining"]

    future = (date.today() + timedelta(days=1)).isoformat()
    none = dispatcher.dispatch("listTransactions", {"startDate": future})
    assert none.result == []
    assert none.message == "No transactions found."


def test_goal_lifecycle(dispatcher: CommandDispatcher) -> None:
    deadline = (date.today() + timedelta(days=90)).isoformat()
    goal = dispatcher.dispatch(
        "createGoal",
        {"name": "Trip", "targetAmount": 500, "deadline": deadline},
        AiAnalysis(sentiment="Put aside $50 a week."),
    ).result
    assert goal.status is GoalStatus.IN_PROGRESS
    assert goal.current_amount == 0
    assert goal.ai_suggestions is not None
    assert goal.ai_suggestions.strategy == "Put aside $50 a week."

    dispatcher.dispatch("updateGoal", {"goalId": goal.id, "addAmount": 50})
    outcome = dispatcher.dispatch("updateGoal", {"goalId": goal.id, "addAmount": "25"})
    assert outcome.result.current_amount == Decimal("75")
    assert outcome.message.startswith("Added $25.00 to 'Trip'.")

    completed = dispatcher.dispatch("updateGoal", {"goalId": goal.id, "status": "completed"})
    assert completed.result.status is GoalStatus.COMPLETED

    listed = dispatcher.dispatch("listGoals", {"status": "COMPLETED"})
    assert [item.id for item in listed.result] == [goal.id]

    dispatcher.dispatch("deleteGoal", {"goalId": goal.id})
    assert dispatcher.dispatch("listGoals", {}).result == []


def test_goal_validation(dispatcher: CommandDispatcher) -> None:
    with pytest.raises(InvalidArguments):
        dispatcher.dispatch("createGoal", {"name": "Trip", "targetAmount": 500, "deadline": "2000-01-01"})
    with pytest.raises(InvalidAmount):
        dispatcher.dispatch("updateGoal", {"goalId": 1, "addAmount": -10})
    with pytest.raises(NotFound):
        dispatcher.dispatch("deleteGoal", {"goalId": 12345})


def test_set_category_budget_requires_existing_category(dispatcher: CommandDispatcher, store: FinanceStore) -> None:
    with pytest.raises(NotFound):
        dispatcher.dispatch("setCategoryBudget", {"category": "Travel", "budget": 300})
    assert store.list_categories() == []

    _add(dispatcher, amount=40, category="Travel")
    outcome = dispatcher.dispatch("setCategoryBudget", {"category": "travel", "budget": 300})
    assert outcome.result.budget == Decimal("300")


def test_budget_status(dispatcher: CommandDispatcher) -> None:
    _add(dispatcher, amount=150, category="Groceries", bucket="NEED")
    outcome = dispatcher.dispatch("getBudgetStatus", {"period": "month"})

    assert isinstance(outcome.result, BudgetStatus)
    need = outcome.result.bucket(Bucket.NEED)
    assert need.allowed == Decimal("1500")
    assert need.remaining == Decimal("1350")
    assert "NEED $150.00 of $1500.00" in outcome.message


def test_read_only_views(dispatcher: CommandDispatcher) -> None:
    _add(dispatcher, amount=2500, type="INCOME", description="salary", category="Salary")
    _add(dispatcher, amount=60, category="Dining", bucket="WANT")
    _add(dispatcher, amount=200, category="Groceries")

    tip = dispatcher.dispatch("getFinancialTip", {})
    assert isinstance(tip.result, FinancialTips)
    assert tip.message == tip.result.tips[0]

    recent = dispatcher.dispatch("showRecentActivity", {"limit": 2})
    assert len(recent.result) == 2

    top = dispatcher.dispatch("showTopSpendingCategories", {"limit": 1})
    assert top.result == [CategorySpend(name="Groceries", total=Decimal("200"), bucket=Bucket.NEED, budget=None)]

    totals = dispatcher.dispatch("showIncomeVsExpenses", {})
    assert isinstance(totals.result, IncomeVsExpenses)
    assert totals.result.net == Decimal("2240")
    assert totals.result.income == Decimal("2500")


def test_lookup_price(dispatcher: CommandDispatcher) -> None:
    found = dispatcher.dispatch("lookupPrice", {"item": "Starbucks Grande"})
    assert found.result.price == Decimal("4.95")
    assert found.result.bucket is Bucket.WANT

    missing = dispatcher.dispatch("lookupPrice", {"item": "yacht"})
    assert missing.result is None


def test_unknown_operation(dispatcher: CommandDispatcher) -> None:
    with pytest.raises(UnknownOperation):
        dispatcher.dispatch("transferMoney", {"amount": 5})


def test_non_object_arguments(dispatcher: CommandDispatcher) -> None:
    with pytest.raises(InvalidArguments):
        dispatcher.dispatch("listGoals", ["COMPLETED"])  # type: ignore[arg-type]


def test_income_transaction_type(dispatcher: CommandDispatcher) -> None:
    outcome = _add(dispatcher, amount=100, type="income", description="refund", category="Refunds")
    assert outcome.result.type is TransactionType.INCOME
    assert outcome.message.startswith("Added income of $100.00")
