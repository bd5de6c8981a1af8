import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from voice_budget.api.dependencies import get_dispatcher, get_reporting, get_store
from voice_budget.api.schemas import SpontaneousRequest, TransactionCreate, TransactionUpdate
from voice_budget.core import settings
from voice_budget.database.store import FinanceStore
from voice_budget.domain.periods import resolve_date_range
from voice_budget.errors import InvalidArguments
from voice_budget.models import Bucket, TransactionRecord, TransactionType
from voice_budget.services.reporting import ReportingService, SpontaneousPurchase
from voice_budget.voice.dispatcher import CommandDispatcher

router = APIRouter()


@router.get("/api/transactions")
async def list_transactions(
    store: Annotated[FinanceStore, Depends(get_store)],
    start_date: str | None = None,
    end_date: str | None = None,
    category: str | None = None,
    bucket: Bucket | None = None,
    type: TransactionType | None = None,
    limit: Annotated[int | None, Query(ge=1)] = None,
) -> list[TransactionRecord]:
    try:
        start, end = resolve_date_range(start_date, end_date)
    except ValueError as exc:
        raise InvalidArguments(f"Dates must be ISO formatted: {exc}") from exc
    return await asyncio.to_thread(
        store.list_transactions,
        start=start,
        end=end,
        category=(category or "").strip() or None,
        bucket=bucket,
        transaction_type=type,
        limit=limit or settings.LIST_PAGE_SIZE,
    )


@router.post("/api/transactions")
async def create_transaction(
    req: TransactionCreate,
    dispatcher: Annotated[CommandDispatcher, Depends(get_dispatcher)],
) -> TransactionRecord:
    outcome = await asyncio.to_thread(dispatcher.dispatch, "addTransaction", req.as_arguments())
    return outcome.result


@router.post("/api/transactions/spontaneous")
async def spontaneous_purchase(
    req: SpontaneousRequest,
    reporting: Annotated[ReportingService, Depends(get_reporting)],
) -> SpontaneousPurchase:
    return await reporting.spontaneous_purchase(req.amount, req.description, req.category_id)


@router.get("/api/transactions/{transaction_id}")
async def get_transaction(
    transaction_id: int,
    store: Annotated[FinanceStore, Depends(get_store)],
) -> TransactionRecord:
    return await asyncio.to_thread(store.get_transaction, transaction_id)


@router.patch("/api/transactions/{transaction_id}")
async def update_transaction(
    transaction_id: int,
    req: TransactionUpdate,
    dispatcher: Annotated[CommandDispatcher, Depends(get_dispatcher)],
) -> TransactionRecord:
    arguments = {"transactionId": transaction_id, **req.as_arguments()}
    outcome = await asyncio.to_thread(dispatcher.dispatch, "updateTransaction", arguments)
    return outcome.result


@router.delete("/api/transactions/{transaction_id}")
async def delete_transaction(
    transaction_id: int,
    dispatcher: Annotated[CommandDispatcher, Depends(get_dispatcher)],
) -> TransactionRecord:
    outcome = await asyncio.to_thread(
        dispatcher.dispatch, "deleteTransaction", {"transactionId": transaction_id}
    )
    return outcome.result
