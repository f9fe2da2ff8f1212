"""Application configuration."""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Market data proxy
    market_data_url: str = "http://localhost:54321/functions/v1/idx-proxy"
    market_data_api_key: str = ""
    request_timeout: float = 30.0

    # Chart defaults
    default_timeframe: str = "D"
    default_range: int = 300  # Bars requested from the proxy
    fallback_bar_count: int = 200  # Bars in a synthetic placeholder series

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
