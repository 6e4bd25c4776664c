"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Service
    service_name: str = "envelope-planner"
    log_level: str = "INFO"

    # Loop guards
    max_recurrence_iterations: int = 1000
    max_coverage_cycles: int = 12

    # Allocation
    significance_threshold_cents: int = 1  # 0.01 currency units
    days_per_month: float = 30.44  # Average
    days_per_year: float = 365.25
    affordability_cushion_periods: int = 2

    # Projection
    unlinked_account_id: str = "__unlinked__"
    unlinked_account_name: str = "Unlinked Envelopes"
    default_account_name: str = "Main"


settings = Settings()
