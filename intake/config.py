from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False  # True for production (structured JSON), False for dev (colored)
    LOGGER_NAME: str = "intake.validation"

    # Named data store used by model_id()
    MODEL_STORE: str = "sql"

    # Process-wide validation defaults, overridden per validator and per call
    VALIDATION_ALLOW_UNKNOWN: bool = True
    VALIDATION_STRIP_UNKNOWN: bool = True
    VALIDATION_ABORT_EARLY: bool = False
    VALIDATION_CONVERT: bool = True
    VALIDATION_NO_DEFAULTS: bool = False

    model_config = SettingsConfigDict(
        env_prefix="INTAKE_",
        env_file=".env",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
