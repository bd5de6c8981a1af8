from typing import Annotated

from fastapi import APIRouter, Depends, Query

from voice_budget.api.dependencies import get_insights, get_reporting
from voice_budget.api.schemas import InsightResponse
from voice_budget.core import settings
from voice_budget.domain.budget import BudgetImpact, BudgetReport, BudgetStatus
from voice_budget.logger import get_logger
from voice_budget.models import RecurringExpenseRecord
from voice_budget.services.insights import InsightService
from voice_budget.services.reporting import Forecast, ReportingService

logger = get_logger(__name__)

router = APIRouter()


@router.get("/api/buckets/summary")
async def bucket_summary(
    reporting: Annotated[ReportingService, Depends(get_reporting)],
    period: str = "month",
) -> BudgetStatus:
    return await reporting.bucket_summary(period)


@router.get("/api/budget/report")
async def budget_report(
    reporting: Annotated[ReportingService, Depends(get_reporting)],
    period: str = "month",
) -> BudgetReport:
    return await reporting.budget_report(period)


@router.get("/api/budget/impact")
async def budget_impact(
    reporting: Annotated[ReportingService, Depends(get_reporting)],
) -> BudgetImpact:
    return await reporting.budget_impact()


@router.get("/api/forecast")
async def forecast(
    reporting: Annotated[ReportingService, Depends(get_reporting)],
    days: Annotated[int, Query(ge=1, le=366)] = settings.FORECAST_WINDOW_DAYS,
) -> Forecast:
    return await reporting.forecast(days)


@router.get("/api/recurring")
async def recurring_expenses(
    reporting: Annotated[ReportingService, Depends(get_reporting)],
) -> list[RecurringExpenseRecord]:
    return await reporting.recurring_expenses()


@router.get("/api/ai/insights")
async def ai_insights(
    insights: Annotated[InsightService, Depends(get_insights)],
) -> InsightResponse:
    insight = await insights.insight()
    logger.debug("[INSIGHTS] Insight generated (%d characters).", len(insight))
    return InsightResponse(insight=insight)
