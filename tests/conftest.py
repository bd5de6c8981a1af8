from collections.abc import Callable, Generator
from datetime import datetime
from decimal import Decimal
from itertools import count

import pytest

from voice_budget.database.store import FinanceStore
from voice_budget.models import Bucket, TransactionRecord, TransactionType


@pytest.fixture
def store() -> Generator[FinanceStore, None, None]:
    finance_store = FinanceStore("sqlite://")
    yield finance_store
    finance_store.close()


@pytest.fixture
def income() -> Callable[[], Decimal]:
    return lambda: Decimal("3000")


@pytest.fixture
def make_tx() -> Callable[..., TransactionRecord]:
    ids = count(1)

    def _make(
        amount: str | int | float,
        bucket: Bucket = Bucket.NEED,
        category: str = "Groceries",
        tx_type: TransactionType = TransactionType.EXPENSE,
        when: datetime | None = None,
        description: str = "purchase",
    ) -> TransactionRecord:
        tx_id = next(ids)
        return TransactionRecord(
            id=tx_id,
            amount=Decimal(str(amount)),
            description=description,
            type=tx_type,
            bucket=bucket,
            date=when or datetime(2024, 5, 15, 12, 0),
            category_id=abs(hash(category)) % 1000,
            category_name=category,
        )

    return _make


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"
