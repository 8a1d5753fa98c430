from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TAP_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    log_level: str = "INFO"
    default_environment: str = "DEV"

    # HTTP client
    http_timeout_seconds: float = 30.0
    user_agent: str = "tap-explorer/0.1"

    # Pagination
    default_page_size: int = 25

    @field_validator("default_page_size")
    @classmethod
    def validate_page_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError("TAP_DEFAULT_PAGE_SIZE must be a positive integer")
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
