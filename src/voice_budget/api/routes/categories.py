import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends

from voice_budget.api.dependencies import get_dispatcher, get_store
from voice_budget.api.schemas import CategoryBudgetUpdate
from voice_budget.database.store import FinanceStore
from voice_budget.models import CategoryRecord
from voice_budget.voice.dispatcher import CommandDispatcher

router = APIRouter()


@router.get("/api/categories")
async def list_categories(
    store: Annotated[FinanceStore, Depends(get_store)],
) -> list[CategoryRecord]:
    return await asyncio.to_thread(store.list_categories)


@router.put("/api/categories/{name}/budget")
async def set_category_budget(
    name: str,
    req: CategoryBudgetUpdate,
    dispatcher: Annotated[CommandDispatcher, Depends(get_dispatcher)],
) -> CategoryRecord:
    arguments = {"category": name, **req.as_arguments()}
    outcome = await asyncio.to_thread(dispatcher.dispatch, "setCategoryBudget", arguments)
    return outcome.result
