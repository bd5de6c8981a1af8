import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from voice_budget.api.errors import register_error_handlers
from voice_budget.api.routes import admin, categories, config, goals, reports, transactions, voice
from voice_budget.core import settings
from voice_budget.database.store import FinanceStore
from voice_budget.logger import get_logger, setup_logging
from voice_budget.services.insights import InsightService
from voice_budget.services.reporting import ReportingService
from voice_budget.services.user_config import income_provider
from voice_budget.services.voice import VoicePipeline
from voice_budget.voice.dispatcher import CommandDispatcher
from voice_budget.voice.intent import IntentResolver
from voice_budget.voice.transcription import Transcriber

logger = get_logger(__name__)


def create_app() -> FastAPI:
    setup_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Initializing services...")
        settings.log_environment()

        if not os.getenv("OPENAI_API_KEY"):
            logger.warning("OPENAI_API_KEY not set. Voice commands and insights will fail until it is configured.")

        store = FinanceStore(settings.database_url())
        income = income_provider(store)
        dispatcher = CommandDispatcher(store=store, income_provider=income)
        pipeline = VoicePipeline(
            store=store,
            resolver=IntentResolver(),
            dispatcher=dispatcher,
            transcriber=Transcriber(),
        )

        app.state.store = store
        app.state.dispatcher = dispatcher
        app.state.pipeline = pipeline
        app.state.reporting = ReportingService(store=store, income=income)
        app.state.insights = InsightService(store=store)

        logger.info("Services initialized.")
        yield
        logger.info("Service shutting down.")
        store.close()

    app = FastAPI(title="Voice Budget", lifespan=lifespan)
    register_error_handlers(app)

    app.include_router(voice.router)
    app.include_router(transactions.router)
    app.include_router(goals.router)
    app.include_router(categories.router)
    app.include_router(config.router)
    app.include_router(reports.router)
    app.include_router(admin.router)

    return app


app = create_app()
