from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DOMAIN: str = "http://localhost:8000"
    DATABASE_URL: str = "sqlite:///./bookings.db"
    LOG_LEVEL: str = "INFO"

    # Stripe payment links, one per tour
    CHECKOUT_URL_EVENING: str = "https://example.com/checkout/evening"
    CHECKOUT_URL_BRUNCH: str = "https://example.com/checkout/brunch"

    # Sanity content API, blog falls back to static posts without a project
    SANITY_PROJECT_ID: Optional[str] = None
    SANITY_DATASET: str = "production"
    SANITY_API_VERSION: str = "2024-01-01"
    CONTENT_API_TIMEOUT: float = 5.0

    MAIL_USERNAME: Optional[str] = None
    MAIL_PASSWORD: Optional[str] = None
    MAIL_FROM: Optional[str] = None
    MAIL_SERVER: str = "smtp.gmail.com"
    MAIL_PORT: int = 587

    ADMIN_USER: str = "admin"
    ADMIN_PASS: str = "admin123"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="allow"
    )

    @property
    def mail_enabled(self) -> bool:
        return bool(self.MAIL_USERNAME and self.MAIL_PASSWORD and self.MAIL_FROM)

    def missing_keys(self) -> list:
        """Optional settings that are unset, for the health report."""
        keys = ["SANITY_PROJECT_ID", "MAIL_USERNAME", "MAIL_PASSWORD", "MAIL_FROM"]
        return [key for key in keys if not getattr(self, key)]


@lru_cache
def get_settings() -> Settings:
    return Settings()
