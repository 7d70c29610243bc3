from functools import lru_cache
from typing import List, Optional, Union
import json

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Database
    DATABASE_URL: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "site_content"
    DB_SERVER_SELECTION_TIMEOUT_MS: int = 5000

    # App
    APP_NAME: str = "Site Content API"
    APP_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"
    PORT: int = 8000

    # CORS - accepts JSON string, comma-separated, or list
    CORS_ORIGINS: Union[List[str], str] = ["*"]

    # Page cache; in-process memory when no redis URL is given
    PAGE_CACHE_URL: Optional[str] = None
    PAGE_CACHE_TTL: int = 300  # seconds

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            v = v.strip()
            if v.startswith("["):
                return json.loads(v)
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @property
    def cors_origins_list(self) -> List[str]:
        return list(self.CORS_ORIGINS)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
