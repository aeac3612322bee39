"""Centralized configuration via pydantic-settings. Secrets from .env or PHOTON_* env vars."""

from __future__ import annotations

from pathlib import Path
from functools import lru_cache
from typing import TYPE_CHECKING

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

if TYPE_CHECKING:
    from photonscore.api.client import PhotonClient
    from photonscore.service import PhotonService


PROJECT_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=PROJECT_ROOT / ".env",
        env_file_encoding="utf-8",
        env_prefix="PHOTON_",
        extra="ignore",
    )

    # Remote scoring API
    api_url: str = "https://photonai.io/api"
    api_key: str = ""
    request_timeout: float = 30.0

    # Local state
    duckdb_path: Path = Field(default_factory=lambda: PROJECT_ROOT / "data" / "photonscore.duckdb")
    history_limit: int = Field(default=100, gt=0)

    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()


def build_client(settings: Settings | None = None, require_api_key: bool = True) -> PhotonClient:
    """Create an API client from settings. Raises if no API key is configured."""
    from photonscore.api.client import PhotonClient

    settings = settings or get_settings()
    if require_api_key and not settings.api_key:
        raise ValueError("PHOTON_API_KEY not set in .env")
    return PhotonClient(
        base_url=settings.api_url,
        api_key=settings.api_key,
        timeout=settings.request_timeout,
    )


def build_service(settings: Settings | None = None, require_api_key: bool = True) -> PhotonService:
    """Wire client, DuckDB-backed cache and history into a service facade.

    Pass require_api_key=False for commands that only touch local state.
    """
    from photonscore.service import PhotonService
    from photonscore.storage.cache import PersistentCache, get_connection

    settings = settings or get_settings()
    client = build_client(settings, require_api_key=require_api_key)
    cache = PersistentCache(get_connection(settings.duckdb_path))
    return PhotonService(
        client,
        cache,
        history_limit=settings.history_limit,
    )
