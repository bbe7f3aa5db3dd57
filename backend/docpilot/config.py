"""
Application configuration
"""
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_NAME: str = "DocPilot"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = True
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Storage ("mongo" or "memory")
    STORAGE_BACKEND: str = "mongo"

    # Database (MongoDB)
    MONGODB_URI: str = "mongodb://localhost:27017/?replicaSet=rs0"
    MONGODB_DB_NAME: str = "docpilot"

    # GitHub
    GITHUB_API_URL: str = "https://api.github.com"
    WEBHOOK_SECRET: str = "change-me-webhook-secret"
    WEBHOOK_CALLBACK_URL: Optional[str] = None

    # LLM (any OpenAI-compatible chat completions endpoint)
    LLM_API_KEY: Optional[str] = None
    LLM_BASE_URL: Optional[str] = (
        "https://generativelanguage.googleapis.com/v1beta/openai/"
    )
    LLM_MODEL: str = "gemini-2.5-pro"
    LLM_CHAT_MODEL: str = "gemini-2.5-flash"

    # Ingestion
    SYNC_LOOKBACK_HOURS: int = 24
    SYNC_INTERVAL_MINUTES: int = 0  # 0 disables the scheduled sync
    COMMIT_FETCH_LIMIT: int = 50
    DIFF_MAX_CHARS: int = 5000
    PROMPT_DIFF_MAX_CHARS: int = 2000
    EXTERNAL_CALL_TIMEOUT_SECONDS: float = 60.0
    DETAIL_FETCH_CONCURRENCY: int = 5

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
