import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends

from voice_budget.api.dependencies import get_store
from voice_budget.api.schemas import StatusResponse
from voice_budget.database.store import FinanceStore
from voice_budget.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.post("/api/budget/reset")
async def reset_budget(
    store: Annotated[FinanceStore, Depends(get_store)],
) -> StatusResponse:
    await asyncio.to_thread(store.reset_budget)
    logger.info("[ADMIN] Budget reset requested by user.")
    return StatusResponse(status="success", message="Budget data has been reset")


@router.post("/api/admin/reset")
async def reset_all(
    store: Annotated[FinanceStore, Depends(get_store)],
) -> StatusResponse:
    await asyncio.to_thread(store.reset_all)
    logger.warning("[ADMIN] All data deleted by user.")
    return StatusResponse(status="success", message="All data has been deleted")


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}
