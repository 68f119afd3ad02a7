"""
Configuration for the Expense Tracker API.

Values come from environment variables (or a local .env file).
JWT_SECRET has no default: the app refuses to start without it.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Auth
    jwt_secret: str = Field(..., min_length=1, description="HMAC key for signing tokens")
    jwt_algorithm: str = Field(default="HS256")
    token_expire_days: int = Field(default=30, ge=1)
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    # Storage
    database_url: str = Field(default="sqlite:///./expenses.db")

    # HTTP
    api_prefix: str = Field(default="/api/v1")
    cors_origins: str = Field(
        default="http://localhost:5173",
        description="Comma-separated list of allowed origins",
    )
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000)

    app_environment: str = Field(default="development")
    log_level: str = Field(default="INFO")

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Load settings once; call get_settings.cache_clear() to reload."""
    return Settings()
