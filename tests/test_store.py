from datetime import date, datetime
from decimal import Decimal

import pytest

from voice_budget.database.store import FinanceStore
from voice_budget.errors import NotFound
from voice_budget.models import Bucket, CategoryType, Frequency, GoalStatus, TransactionType


def _add(store: FinanceStore, amount: str, category: str = "Groceries", **kwargs):
    return store.add_transaction(
        amount=Decimal(amount),
        description=kwargs.pop("description", "purchase"),
        transaction_type=kwargs.pop("transaction_type", TransactionType.EXPENSE),
        bucket=kwargs.pop("bucket", Bucket.NEED),
        category_name=category,
        **kwargs,
    )


def test_category_names_are_a_natural_key(store: FinanceStore) -> None:
    first = _add(store, "10", "Food")
    second = _add(store, "20", "food ")

    assert first.category_id == second.category_id
    assert [category.name for category in store.list_categories()] == ["Food"]


def test_saving_bucket_creates_saving_category(store: FinanceStore) -> None:
    _add(store, "100", "Emergency Fund", bucket=Bucket.SAVING)
    category = store.get_category_by_name("emergency fund")
    assert category is not None
    assert category.type is CategoryType.SAVING


def test_transaction_round_trip(store: FinanceStore) -> None:
    created = _add(store, "12.50", "Dining", bucket=Bucket.WANT, tags=["lunch", "work"])
    loaded = store.get_transaction(created.id)

    assert loaded.amount == Decimal("12.50")
    assert loaded.category_name == "Dining"
    assert loaded.tags == ["lunch", "work"]
    assert loaded.type is TransactionType.EXPENSE


def test_list_transactions_filters_and_order(store: FinanceStore) -> None:
    _add(store, "10", "Groceries", when=datetime(2024, 5, 1, 9, 0))
    _add(store, "20", "Dining", bucket=Bucket.WANT, when=datetime(2024, 5, 10, 9, 0))
    _add(store, "30", "Groceries", when=datetime(2024, 6, 2, 9, 0))

    newest_first = store.list_transactions()
    assert [tx.amount for tx in newest_first] == [Decimal("30"), Decimal("20"), Decimal("10")]

    may = store.list_transactions(start=datetime(2024, 5, 1), end=datetime(2024, 5, 31, 23, 59))
    assert len(may) == 2

    groceries_in_may = store.list_transactions(
        start=datetime(2024, 5, 1), end=datetime(2024, 5, 31, 23, 59), category="GROCERIES"
    )
    assert [tx.amount for tx in groceries_in_may] == [Decimal("10")]

    assert len(store.list_transactions(bucket=Bucket.WANT)) == 1
    assert len(store.list_transactions(limit=2)) == 2


def test_update_transaction_moves_category(store: FinanceStore) -> None:
    created = _add(store, "15", "Misc")
    updated = store.update_transaction(created.id, category_name="Transport", amount=Decimal("18"))

    assert updated.category_name == "Transport"
    assert updated.amount == Decimal("18")
    assert {category.name for category in store.list_categories()} == {"Misc", "Transport"}


def test_missing_rows_raise_not_found(store: FinanceStore) -> None:
    with pytest.raises(NotFound):
        store.get_transaction(999)
    with pytest.raises(NotFound):
        store.delete_transaction(999)
    with pytest.raises(NotFound):
        store.update_goal(999, name="x")
    with pytest.raises(NotFound):
        store.delete_goal(999)


def test_set_category_budget_does_not_create(store: FinanceStore) -> None:
    with pytest.raises(NotFound):
        store.set_category_budget("Travel", Decimal("200"))
    assert store.list_categories() == []

    _add(store, "50", "Travel")
    category = store.set_category_budget("travel", Decimal("200"))
    assert category.budget == Decimal("200")


def test_goal_progress_increments(store: FinanceStore) -> None:
    goal = store.create_goal(name="Trip", target_amount=Decimal("500"), deadline=date(2099, 1, 1))
    assert goal.status is GoalStatus.IN_PROGRESS
    assert goal.current_amount == Decimal("0")

    store.update_goal(goal.id, add_amount=Decimal("50"))
    updated = store.update_goal(goal.id, add_amount=Decimal("25.50"))

    assert updated.current_amount == Decimal("75.50")
    assert store.get_goal(goal.id).current_amount == Decimal("75.50")


def test_voice_command_lifecycle(store: FinanceStore) -> None:
    command = store.create_voice_command("show my goals")
    assert command.intent == "PROCESSING"
    assert command.success is False

    finished = store.finish_voice_command(
        command.id, intent="listGoals", parameters={}, success=True, processing_time_ms=42
    )
    assert finished.intent == "listGoals"
    assert finished.processing_time_ms == 42
    assert store.list_voice_commands(10)[0].id == command.id


def test_reset_budget_keeps_income(store: FinanceStore) -> None:
    _add(store, "80")
    goal = store.create_goal(name="Car", target_amount=Decimal("1000"))
    store.update_goal(goal.id, add_amount=Decimal("100"), status=GoalStatus.COMPLETED)
    store.set_config("monthly_income", "4000")
    store.set_config("theme", "dark")

    store.reset_budget()

    assert all(tx.amount == 0 for tx in store.list_transactions())
    reset_goal = store.get_goal(goal.id)
    assert reset_goal.current_amount == 0
    assert reset_goal.status is GoalStatus.IN_PROGRESS
    assert [entry.key for entry in store.list_config()] == ["monthly_income"]


def test_reset_all_deletes_rows(store: FinanceStore) -> None:
    _add(store, "80")
    store.create_goal(name="Car", target_amount=Decimal("1000"))
    store.add_recurring_expense(
        name="Rent",
        amount=Decimal("1200"),
        frequency=Frequency.MONTHLY,
        next_due_date=date(2099, 1, 1),
        bucket=Bucket.NEED,
        category_name="Housing",
    )
    store.create_voice_command("add rent")

    store.reset_all()

    assert store.list_transactions() == []
    assert store.list_goals() == []
    assert store.list_recurring_expenses() == []
    assert store.list_categories() == []
    assert store.list_voice_commands(10) == []
