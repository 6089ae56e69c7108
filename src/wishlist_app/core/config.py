"""Application settings loaded from the environment and .env."""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = Field("sqlite:///./wishlist.db", alias="DATABASE_URL")
    cron_secret: Optional[str] = Field(None, alias="CRON_SECRET")

    resend_api_key: Optional[str] = Field(None, alias="RESEND_API_KEY")
    resend_from_email: str = Field("onboarding@resend.dev", alias="RESEND_FROM_EMAIL")

    shopify_api_version: str = Field("2025-01", alias="SHOPIFY_API_VERSION")

    cors_origins: str = Field("http://localhost:3000", alias="CORS_ORIGINS")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
