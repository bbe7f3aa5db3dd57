"""FastAPI dependencies resolving the services built at startup."""

from fastapi import Request

from docpilot.config import Settings
from docpilot.repositories.interfaces import Store
from docpilot.services.chat_service import ChatService
from docpilot.services.dashboard_service import DashboardService
from docpilot.services.ingestion_service import IngestionPipeline
from docpilot.services.insights_service import InsightsService
from docpilot.services.repository_service import RepositoryService
from docpilot.services.suggestion_service import SuggestionService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> Store:
    return request.app.state.store


def get_pipeline(request: Request) -> IngestionPipeline:
    return request.app.state.pipeline


def get_repository_service(request: Request) -> RepositoryService:
    return request.app.state.repository_service


def get_suggestion_service(request: Request) -> SuggestionService:
    return request.app.state.suggestion_service


def get_insights_service(request: Request) -> InsightsService:
    return request.app.state.insights_service


def get_dashboard_service(request: Request) -> DashboardService:
    return request.app.state.dashboard_service


def get_chat_service(request: Request) -> ChatService:
    return request.app.state.chat_service
