# privacydesk/core/config.py - Service configuration
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import List


class Settings(BaseSettings):
    """
    Settings for the PrivacyDesk API.

    SLA values here are only the fallback for tenants without their own
    TenantSlaConfig row; the deadline engine itself never reads settings.
    """
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Database Settings
    DATABASE_URL: str = Field(
        "sqlite+aiosqlite:///./privacydesk.db",
        description="Async SQLAlchemy database URL (asyncpg in production)"
    )

    # Application Settings
    ENVIRONMENT: str = Field("development", description="Environment name")
    LOG_LEVEL: str = Field("INFO", description="Log level")

    # Logging Configuration
    ENABLE_JSON_LOGGING: bool = Field(False, description="Enable JSON structured logging")

    # CORS Settings
    CORS_ORIGINS: str = Field(
        "http://localhost:3000,http://127.0.0.1:3000",
        description="Comma-separated list of allowed CORS origins"
    )

    # Performance Settings
    DB_POOL_SIZE: int = Field(20, description="Database connection pool size")
    DB_MAX_OVERFLOW: int = Field(0, description="Database max overflow connections")

    # SLA defaults (GDPR Art. 12: one month, extendable by two)
    DEFAULT_SLA_DAYS: int = Field(30, ge=1, description="Base SLA in days for new cases")
    DEFAULT_DUE_SOON_DAYS: int = Field(7, ge=0, description="Days remaining at which a case turns YELLOW")
    DEFAULT_EXTENSION_MAX_DAYS: int = Field(60, ge=0, description="Maximum cumulative extension in days")
    DEFAULT_USE_BUSINESS_DAYS: bool = Field(False, description="Count SLA in business days")

    # Internal milestone offsets, days after receipt
    DEFAULT_MILESTONE_IDV_DAYS: int = Field(7, ge=0)
    DEFAULT_MILESTONE_COLLECTION_DAYS: int = Field(14, ge=0)
    DEFAULT_MILESTONE_DRAFT_DAYS: int = Field(21, ge=0)
    DEFAULT_MILESTONE_LEGAL_DAYS: int = Field(25, ge=0)

    @property
    def cors_origins_list(self) -> List[str]:
        """Convert CORS_ORIGINS string to list"""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def should_use_json_logging(self) -> bool:
        """Use JSON logging in production or when explicitly enabled"""
        return self.ENVIRONMENT == "production" or self.ENABLE_JSON_LOGGING

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


# Create settings instance
settings = Settings()
