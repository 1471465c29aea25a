"""
Configuration Management for fintrack

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Engine tunables (projection horizon, status tiers, category synonyms) and
the concurrency policy of the flows are read from the environment and
validated at startup.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Tunables for the derived-state engines."""

    model_config = SettingsConfigDict(
        env_prefix="FINTRACK_ENGINE_",
        extra="ignore"
    )

    max_payoff_months: int = Field(
        default=1200,
        ge=1,
        le=12000,
        description="Upper bound on simulated months in a payoff projection"
    )
    near_limit_percentage: int = Field(
        default=90,
        ge=1,
        le=100,
        description="Budget progress at which status becomes 'near limit'"
    )
    on_track_percentage: int = Field(
        default=75,
        ge=1,
        le=100,
        description="Budget progress at which status becomes 'on track'"
    )
    category_synonyms: dict[str, str] = Field(
        default_factory=dict,
        description=(
            "Extra category synonyms, e.g. "
            '{"dining out": "food"} (JSON when set from the environment)'
        )
    )

    @field_validator('category_synonyms')
    @classmethod
    def lowercase_synonyms(cls, v: dict[str, str]) -> dict[str, str]:
        """Synonym keys and targets are compared in lowercase."""
        return {key.lower(): value.lower() for key, value in v.items()}


class ConcurrencySettings(BaseSettings):
    """Retry policy for optimistic-concurrency conflicts."""

    model_config = SettingsConfigDict(
        env_prefix="FINTRACK_CONCURRENCY_",
        extra="ignore"
    )

    conflict_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=20,
        description="Attempts for a load-mutate-save cycle before giving up"
    )
    conflict_retry_wait_seconds: float = Field(
        default=0.05,
        ge=0.0,
        description="Multiplier of the exponential wait between attempts"
    )
    conflict_retry_max_wait_seconds: float = Field(
        default=1.0,
        ge=0.0,
        description="Upper bound on the wait between attempts"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum level for structured logs"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        level = v.strip().upper()
        if level not in allowed:
            raise ValueError(f"Unsupported log level: {v}. Allowed: {sorted(allowed)}")
        return level


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def engine(self) -> EngineSettings:
        return EngineSettings()

    @property
    def concurrency(self) -> ConcurrencySettings:
        return ConcurrencySettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings sections.

    Returns a dict of {section_name: is_valid} plus
    {section_name}_error entries for sections that failed.
    """
    results = {}
    settings = get_settings()

    for section in ("engine", "concurrency", "app"):
        try:
            getattr(settings, section)
            results[section] = True
        except ValueError as e:
            results[section] = False
            results[f"{section}_error"] = str(e)

    return results
