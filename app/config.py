"""Application settings loaded from environment variables."""
from typing import List
from pathlib import Path
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Absolute path to the .env file
ENV_FILE = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Deal-Discovery"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:8000"]
    # Database
    database_url: str = "sqlite+aiosqlite:///./deals.db"
    api_key: str = ""

    # Marketplace defaults
    default_page_limit: int = 25
    min_page_limit: int = 10
    search_debounce_ms: int = 300
    public_deal_statuses: List[str] = ["approved"]

    # Predicate tuning
    entry_cost_ratio: float = 0.2  # buyer entry cost fallback, share of asking price
    bathroom_epsilon: float = 0.01

    @field_validator('database_url')
    @classmethod
    def validate_database_url(cls, v):
        if not v.startswith(('postgresql+asyncpg://', 'sqlite+aiosqlite://')):
            raise ValueError('database_url must use async driver')
        return v

    @field_validator("cors_origins", "public_deal_statuses", mode="before")
    @classmethod
    def parse_list(cls, v):
        if isinstance(v, str):
            import json
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator("min_page_limit")
    @classmethod
    def validate_min_page_limit(cls, v: int) -> int:
        if v < 1:
            raise ValueError("min_page_limit must be at least 1")
        return v

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        if not v:
            import warnings
            warnings.warn(
                "API_KEY not configured, endpoints are unprotected.",
                stacklevel=2,
            )
        return v


settings = Settings()
