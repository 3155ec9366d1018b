"""Application configuration and settings management."""
from functools import lru_cache
from pathlib import Path
from typing import Annotated, List

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings loaded from environment variables or .env."""

    model_config = SettingsConfigDict(
        env_file=(Path(__file__).resolve().parent.parent / ".." / ".env"),
        env_file_encoding="utf-8",
        env_prefix="NEIGHBORWATCH_",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = "NeighborWatch"
    secret_key: str = "change-me"

    # Database
    database_url: str = "sqlite+aiosqlite:///./neighborwatch.db"
    database_echo: bool = False

    # Security
    access_token_expire_minutes: int = 60 * 24
    allowed_origins: Annotated[List[str], NoDecode] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    session_cookie_secure: bool = True
    max_failed_logins: int = 5
    lockout_minutes: int = 10

    # NYC Open Data (Socrata)
    open_data_base_url: str = "https://data.cityofnewyork.us/resource"
    open_data_dataset_id: str = "erm2-nwe9"
    open_data_app_token: str | None = None
    open_data_timeout_seconds: float = 30.0

    # Feed
    feed_page_size: int = 10

    # Scheduler
    scheduled_ingest_zips: Annotated[List[str], NoDecode] = []
    ingest_interval_seconds: int = 60 * 60

    @field_validator("allowed_origins", "scheduled_ingest_zips", mode="before")
    @classmethod
    def _split_csv(cls, value: List[str] | str) -> List[str]:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value


@lru_cache
def get_settings() -> Settings:
    """Return memoized settings instance."""

    return Settings()
