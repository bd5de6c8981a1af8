import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends

from voice_budget.api.dependencies import get_store
from voice_budget.api.schemas import ConfigUpdate
from voice_budget.database.store import FinanceStore
from voice_budget.errors import NotFound
from voice_budget.models import ConfigEntry
from voice_budget.services.user_config import save_config

router = APIRouter()


@router.get("/api/config")
async def get_config(
    store: Annotated[FinanceStore, Depends(get_store)],
    key: str | None = None,
) -> ConfigEntry | list[ConfigEntry]:
    if key:
        entry = await asyncio.to_thread(store.get_config, key)
        if entry is None:
            raise NotFound(f"Configuration '{key}' not found")
        return entry
    return await asyncio.to_thread(store.list_config)


@router.post("/api/config")
async def update_config(
    req: ConfigUpdate,
    store: Annotated[FinanceStore, Depends(get_store)],
) -> ConfigEntry:
    return await asyncio.to_thread(save_config, store, req.key, req.value)
