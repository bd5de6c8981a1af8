from fastapi import HTTPException, Request

from voice_budget.database.store import FinanceStore
from voice_budget.services.insights import InsightService
from voice_budget.services.reporting import ReportingService
from voice_budget.services.voice import VoicePipeline
from voice_budget.voice.dispatcher import CommandDispatcher


def get_store(request: Request) -> FinanceStore:
    store = getattr(request.app.state, "store", None)
    if not store:
        raise HTTPException(status_code=500, detail="Store not initialized")
    return store


def get_dispatcher(request: Request) -> CommandDispatcher:
    dispatcher = getattr(request.app.state, "dispatcher", None)
    if not dispatcher:
        raise HTTPException(status_code=500, detail="Service not initialized")
    return dispatcher


def get_pipeline(request: Request) -> VoicePipeline:
    pipeline = getattr(request.app.state, "pipeline", None)
    if not pipeline:
        raise HTTPException(status_code=500, detail="Service not initialized")
    return pipeline


def get_reporting(request: Request) -> ReportingService:
    reporting = getattr(request.app.state, "reporting", None)
    if not reporting:
        raise HTTPException(status_code=500, detail="Service not initialized")
    return reporting


def get_insights(request: Request) -> InsightService:
    insights = getattr(request.app.state, "insights", None)
    if not insights:
        raise HTTPException(status_code=500, detail="Service not initialized")
    return insights
