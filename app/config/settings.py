from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    api_base_url: str = Field(
        default="http://localhost:4321/api",  # Default for local dev; MUST point at the deployed API in production
        validation_alias="PLANNER_API_URL",
        description="Base URL of the plans API",
    )
    api_token: str = Field(default="", validation_alias="PLANNER_API_TOKEN")
    api_timeout_seconds: float = Field(
        default=30.0,
        validation_alias="PLANNER_API_TIMEOUT",
        description="Per-request timeout for plans API calls (seconds)",
    )
    sync_max_concurrency: int | None = Field(
        default=None,
        validation_alias="FIXED_POINT_SYNC_MAX_CONCURRENCY",
        description="Cap on in-flight fixed point mutations during a sync (unbounded when unset)",
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="LOG_FILE")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate that log level is one of the standard logging levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            logger.warning(f"Invalid LOG_LEVEL '{value}'. Valid levels are: {', '.join(valid_levels)}. Defaulting to INFO.")
            return "INFO"
        return upper_value

    @field_validator("api_base_url")
    @classmethod
    def validate_api_base_url(cls, value: str) -> str:
        """Strip trailing slash and warn about non-HTTP URLs."""
        value = value.rstrip("/")
        if value and not value.startswith(("http://", "https://")):
            logger.warning(f"PLANNER_API_URL should be an http(s) URL, but got: {value}. Requests will likely fail.")
        return value

    @field_validator("api_timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("PLANNER_API_TIMEOUT must be positive")
        return value

    @field_validator("sync_max_concurrency")
    @classmethod
    def validate_max_concurrency(cls, value: int | None) -> int | None:
        if value is not None and value <= 0:
            raise ValueError("FIXED_POINT_SYNC_MAX_CONCURRENCY must be positive when set")
        return value

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()
