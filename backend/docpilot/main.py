"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from docpilot.api import assistant, chat, dashboard, health, repos, suggestions, webhooks
from docpilot.config import Settings, settings
from docpilot.core.logging import setup_logging
from docpilot.database.memory_store import MemoryStore
from docpilot.database.store import MongoStore
from docpilot.middleware.error_handlers import register_exception_handlers
from docpilot.repositories.interfaces import Store
from docpilot.services.analysis.engine import AnalysisEngine
from docpilot.services.analysis.llm_engine import LLMAnalysisEngine
from docpilot.services.chat_service import ChatService
from docpilot.services.change_source import ChangeSourceFactory
from docpilot.services.dashboard_service import DashboardService
from docpilot.services.github.client import create_change_source
from docpilot.services.ingestion_service import IngestionPipeline
from docpilot.services.insights_service import InsightsService
from docpilot.services.repository_service import RepositoryService
from docpilot.services.suggestion_service import SuggestionService
from docpilot.services.sync_scheduler import SyncScheduler

logger = logging.getLogger(__name__)


async def _open_store(app_settings: Settings) -> Store:
    backend = app_settings.STORAGE_BACKEND.lower()
    if backend == "memory":
        logger.warning("Using in-process storage; data is lost on restart")
        return MemoryStore()
    if backend != "mongo":
        raise ValueError(f"Unknown STORAGE_BACKEND: {app_settings.STORAGE_BACKEND}")
    return await MongoStore.connect(app_settings)


def create_app(
    store: Optional[Store] = None,
    change_source_factory: Optional[ChangeSourceFactory] = None,
    analysis_engine: Optional[AnalysisEngine] = None,
    app_settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Build the application.

    Collaborators left as None are created from settings during startup; a
    store passed in is owned by the caller and not closed on shutdown.
    """
    app_settings = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging()
        owned_store = store is None
        active_store = store or await _open_store(app_settings)
        factory = change_source_factory or create_change_source
        engine = analysis_engine or LLMAnalysisEngine()

        pipeline = IngestionPipeline(
            active_store,
            factory,
            engine,
            lookback_hours=app_settings.SYNC_LOOKBACK_HOURS,
            fetch_limit=app_settings.COMMIT_FETCH_LIMIT,
            call_timeout=app_settings.EXTERNAL_CALL_TIMEOUT_SECONDS,
            diff_max_chars=app_settings.DIFF_MAX_CHARS,
        )
        app.state.settings = app_settings
        app.state.store = active_store
        app.state.pipeline = pipeline
        app.state.repository_service = RepositoryService(
            active_store,
            factory,
            webhook_callback_url=app_settings.WEBHOOK_CALLBACK_URL,
            webhook_secret=app_settings.WEBHOOK_SECRET,
        )
        app.state.suggestion_service = SuggestionService(active_store)
        insights = InsightsService(active_store, engine)
        app.state.insights_service = insights
        app.state.dashboard_service = DashboardService(active_store)
        app.state.chat_service = ChatService(active_store, insights)

        scheduler = None
        if app_settings.SYNC_INTERVAL_MINUTES > 0:
            scheduler = SyncScheduler(
                active_store, pipeline, app_settings.SYNC_INTERVAL_MINUTES * 60
            )
            scheduler.start()

        logger.info("%s %s started", app_settings.APP_NAME, app_settings.APP_VERSION)
        try:
            yield
        finally:
            if scheduler is not None:
                await scheduler.stop()
            if owned_store:
                await active_store.close()

    app = FastAPI(
        title=app_settings.APP_NAME,
        description="Commit ingestion and documentation suggestions for Git repositories",
        version=app_settings.APP_VERSION,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(health.router, prefix="/api", tags=["Health"])
    app.include_router(repos.router, prefix="/api")
    app.include_router(suggestions.router, prefix="/api")
    app.include_router(dashboard.router, prefix="/api")
    app.include_router(assistant.router, prefix="/api")
    app.include_router(chat.router, prefix="/api")
    app.include_router(webhooks.router)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "message": app_settings.APP_NAME,
            "version": app_settings.APP_VERSION,
            "docs": "/api/docs",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("docpilot.main:app", host="0.0.0.0", port=8000, reload=True)
