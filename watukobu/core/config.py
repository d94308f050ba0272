"""Application configuration and settings."""

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Service Configuration
    service_name: str = Field(default="watukobu-collections", env="SERVICE_NAME")
    service_version: str = Field(default="1.0.0", env="SERVICE_VERSION")
    environment: str = Field(default="development", env="ENVIRONMENT")
    port: int = Field(default=8000, env="PORT")
    host: str = Field(default="0.0.0.0", env="HOST")
    debug: bool = Field(default=False, env="DEBUG")
    log_level: str = Field(default="INFO", env="LOG_LEVEL")

    # Database
    database_url: str = Field(default="sqlite:///./watukobu.db", env="DATABASE_URL")
    database_echo: bool = Field(default=False, env="DATABASE_ECHO")

    # Collection Business Rules
    max_cases_per_collector: int = Field(default=50, env="MAX_CASES_PER_COLLECTOR")
    photo_timestamp_tolerance_minutes: int = Field(default=30, env="PHOTO_TIMESTAMP_TOLERANCE_MINUTES")
    priority_arrears_threshold: float = Field(default=100_000_000, env="PRIORITY_ARREARS_THRESHOLD")
    monthly_collection_target: float = Field(default=150_000_000, env="MONTHLY_COLLECTION_TARGET")
    daily_visit_target: int = Field(default=10, env="DAILY_VISIT_TARGET")
    collection_rate_target: float = Field(default=75.0, env="COLLECTION_RATE_TARGET")
    assignment_due_days: int = Field(default=7, env="ASSIGNMENT_DUE_DAYS")
    slow_request_threshold_ms: float = Field(default=1000.0, env="SLOW_REQUEST_THRESHOLD_MS")

    # Letterhead
    company_name: str = Field(default="PT. WATU KOBU MULTINIAGA", env="COMPANY_NAME")
    company_city: str = Field(default="Jakarta", env="COMPANY_CITY")
    company_address: str = Field(
        default="Jl. Jend. Sudirman Kav. 52-53, Jakarta Selatan", env="COMPANY_ADDRESS"
    )
    letter_signatory: str = Field(default="Kepala Divisi Collection", env="LETTER_SIGNATORY")

    # Pagination
    default_page_size: int = Field(default=100, env="DEFAULT_PAGE_SIZE")
    max_page_size: int = Field(default=1000, env="MAX_PAGE_SIZE")

    # CORS
    enable_cors: bool = Field(default=True, env="ENABLE_CORS")
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173", env="CORS_ORIGINS"
    )

    @field_validator("max_cases_per_collector", "photo_timestamp_tolerance_minutes", "daily_visit_target")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Capacity, tolerance and targets must be positive")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def cors_origin_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    model_config = {
        "env_file": ".env",
        "case_sensitive": False,
        "extra": "ignore",
    }


# Create global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get application settings."""
    return settings
