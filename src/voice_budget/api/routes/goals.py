import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends

from voice_budget.api.dependencies import get_dispatcher, get_store
from voice_budget.api.schemas import GoalCreate, GoalUpdate
from voice_budget.database.store import FinanceStore
from voice_budget.models import GoalRecord, GoalStatus
from voice_budget.voice.dispatcher import CommandDispatcher

router = APIRouter()


@router.get("/api/goals")
async def list_goals(
    store: Annotated[FinanceStore, Depends(get_store)],
    status: GoalStatus | None = None,
) -> list[GoalRecord]:
    return await asyncio.to_thread(store.list_goals, status)


@router.post("/api/goals")
async def create_goal(
    req: GoalCreate,
    dispatcher: Annotated[CommandDispatcher, Depends(get_dispatcher)],
) -> GoalRecord:
    outcome = await asyncio.to_thread(dispatcher.dispatch, "createGoal", req.as_arguments())
    return outcome.result


@router.patch("/api/goals/{goal_id}")
async def update_goal(
    goal_id: int,
    req: GoalUpdate,
    dispatcher: Annotated[CommandDispatcher, Depends(get_dispatcher)],
) -> GoalRecord:
    arguments = {"goalId": goal_id, **req.as_arguments()}
    outcome = await asyncio.to_thread(dispatcher.dispatch, "updateGoal", arguments)
    return outcome.result


@router.delete("/api/goals/{goal_id}")
async def delete_goal(
    goal_id: int,
    dispatcher: Annotated[CommandDispatcher, Depends(get_dispatcher)],
) -> GoalRecord:
    outcome = await asyncio.to_thread(dispatcher.dispatch, "deleteGoal", {"goalId": goal_id})
    return outcome.result
