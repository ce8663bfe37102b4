"""Client configuration using pydantic-settings."""
from enum import StrEnum
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Public web profile base URL, identical for both environments today
DEFAULT_WEB_PROFILE_URL = "https://web-profile-url.vercel.app/profile"


class Environment(StrEnum):
    """Deployment environment of the client."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    environment: Environment = Field(
        default=Environment.PRODUCTION,
        validation_alias="CARDSYNC_ENV",
    )

    # Remote card service
    api_url: str = Field(default="http://localhost:8000", validation_alias="CARDS_API_URL")
    api_timeout: float = Field(default=30.0, validation_alias="CARDS_API_TIMEOUT")

    # Persistent store - Redis when enabled, in-process otherwise
    redis_url: str = Field(default="redis://localhost:6379", validation_alias="REDIS_URL")
    redis_enabled: bool = Field(default=True, validation_alias="REDIS_ENABLED")
    redis_pool_size: int = Field(default=10, validation_alias="REDIS_POOL_SIZE")
    store_namespace: str = Field(default="cardsync:", validation_alias="STORE_NAMESPACE")

    # Overrides the per-environment profile URL when set
    web_profile_url_override: str = Field(default="", validation_alias="WEB_PROFILE_URL")

    # Stored as debugId in every onboarding completion record
    onboarding_flow_version: str = Field(
        default="onboarding-flow-v1",
        validation_alias="ONBOARDING_FLOW_VERSION",
    )

    # Card caches are kept after sign-out unless this is enabled
    evict_cache_on_sign_out: bool = Field(
        default=False,
        validation_alias="CARDSYNC_EVICT_CACHE_ON_SIGN_OUT",
    )

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    @property
    def is_development(self) -> bool:
        """Check if running in the development environment."""
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in the production environment."""
        return self.environment == Environment.PRODUCTION

    @property
    def web_profile_url(self) -> str:
        """Get the web profile base URL for the current environment."""
        if self.web_profile_url_override:
            return self.web_profile_url_override.rstrip("/")
        return _WEB_PROFILE_URLS.get(self.environment, DEFAULT_WEB_PROFILE_URL)


_WEB_PROFILE_URLS = {
    Environment.DEVELOPMENT: DEFAULT_WEB_PROFILE_URL,
    Environment.PRODUCTION: DEFAULT_WEB_PROFILE_URL,
}


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
