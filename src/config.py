from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from transaction_processor import ProcessorKind


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PAYMENTS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Processor architecture: central indices or per-account indices
    processor: ProcessorKind = ProcessorKind.CENTRAL

    # Logging settings
    log_level: str = "WARNING"

    # Print processed/failed counters to stderr after the run
    report_stats: bool = False

    # Emit accounts ordered by client id instead of first-seen order
    sort_output: bool = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()
