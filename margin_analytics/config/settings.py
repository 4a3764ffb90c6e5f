"""
Superstore Margin Analytics
Centralized Configuration Management

Pipeline configuration using Pydantic settings with environment variable
support, validation, and type safety.
"""

from functools import lru_cache
from typing import Optional, List
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class IngestionSettings(BaseSettings):
    """Raw Sales File Configuration"""

    model_config = SettingsConfigDict(env_prefix="INGEST_")

    source_path: str = Field(default="./data/raw/superstore.csv", description="Raw sales CSV path")
    encoding: str = Field(default="utf8-lossy", description="CSV decoding: utf8 or utf8-lossy")
    date_format: str = Field(default="%d/%m/%Y", description="Day-month-year format of the date columns")
    delimiter: str = Field(default=",", description="Field delimiter")
    null_values: List[str] = Field(default=[""], description="Strings read as missing")

    @field_validator("encoding")
    @classmethod
    def validate_encoding(cls, v: str) -> str:
        """Only the encodings the CSV reader understands"""
        allowed = ["utf8", "utf8-lossy"]
        if v.lower() not in allowed:
            raise ValueError(f"Encoding must be one of: {allowed}")
        return v.lower()


class CleaningSettings(BaseSettings):
    """Record Cleaning Configuration"""

    model_config = SettingsConfigDict(env_prefix="CLEAN_")

    # Canonical (normalized) names, so raw and normalized labels both match
    drop_columns: List[str] = Field(
        default=["row_id", "customer_name", "country"],
        description="Fields not used downstream"
    )
    text_repair_columns: List[str] = Field(
        default=["product_name"],
        description="Free-text fields that receive mojibake repair"
    )
    corruption_pattern: str = Field(
        default="(?:\\x{FFFD}|ï¿½)+",
        description="Regex matching runs of encoding corruption markers"
    )


class AnalysisSettings(BaseSettings):
    """Aggregation and Cohort Configuration"""

    model_config = SettingsConfigDict(env_prefix="ANALYSIS_")

    cohort_field: str = Field(default="total_profit", description="Field compared against mean ± k·std")
    customer_cohort_k: float = Field(default=2.0, description="Std multiplier for customer cohorts")
    product_cohort_k: float = Field(default=1.5, description="Std multiplier for product cohorts")
    time_dimensions: List[str] = Field(
        default=["region", "segment", "category"],
        description="Categorical dimensions for monthly breakdowns"
    )

    @field_validator("customer_cohort_k", "product_cohort_k")
    @classmethod
    def validate_k(cls, v: float) -> float:
        """Multiplier must be non-negative"""
        if v < 0:
            raise ValueError("Cohort multiplier must be >= 0")
        return v


class MonitoringSettings(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", alias="LOG_FORMAT", description="Log format: json or text")
    log_file: Optional[str] = Field(default=None, alias="LOG_FILE", description="Log file path")


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing pipeline configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="margin-analytics", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")

    # Version
    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    ingestion: IngestionSettings = Field(default_factory=IngestionSettings)
    cleaning: CleaningSettings = Field(default_factory=CleaningSettings)
    analysis: AnalysisSettings = Field(default_factory=AnalysisSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.app_env == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
