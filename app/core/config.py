"""
Configuration management for the Leave Reconciliation Backend
"""
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from typing import Optional, List


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    DATABASE_URL: str = Field(
        default="sqlite:///./leave_reconciliation.db",
        description="SQLAlchemy database URL (PostgreSQL in deployment, SQLite locally)"
    )
    JWT_SECRET_KEY: str = Field(
        default="local-development-secret-change-me",
        description="JWT secret key for token signing"
    )

    JWT_ALGORITHM: str = Field(default="HS256", description="JWT algorithm")
    JWT_EXPIRE_MINUTES: int = Field(default=120, description="JWT token expiration in minutes")

    APP_ENV: str = Field(default="local", description="Application environment: local, staging, prod")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level: DEBUG, INFO, WARNING, ERROR")

    # CORS settings
    ALLOWED_ORIGINS: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins. Use '*' for local only."
    )

    VERSION: Optional[str] = Field(default=None, description="Application version (git SHA or semver)")

    # Reconciliation
    ACTUAL_AMOUNT_SOURCE: str = Field(
        default="billed",
        description="Where reconciliation reads parent-company actual amounts: billed (placeholder) or reported"
    )
    VARIANCE_REPORT_LIMIT: int = Field(
        default=12,
        description="Number of most recent reports folded into the variance dashboard"
    )

    # Variance alert content (no transport)
    FINANCE_NOTIFICATION_CC: str = Field(
        default="finance@contract-staff.gov.sg",
        description="CC address placed on billing variance alerts"
    )
    NOTIFICATION_FALLBACK_DOMAIN: str = Field(
        default="example.com",
        description="Domain used to address parent companies without a contact email"
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True

    @field_validator("APP_ENV")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        """Validate APP_ENV"""
        allowed = ["local", "staging", "prod"]
        if v not in allowed:
            raise ValueError(f"APP_ENV must be one of {allowed}")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate LOG_LEVEL"""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of {allowed}")
        return v.upper()

    @field_validator("ACTUAL_AMOUNT_SOURCE")
    @classmethod
    def validate_actual_amount_source(cls, v: str) -> str:
        allowed = ["billed", "reported"]
        if v.lower() not in allowed:
            raise ValueError(f"ACTUAL_AMOUNT_SOURCE must be one of {allowed}")
        return v.lower()

    def validate_production(self) -> None:
        """
        Validate settings for production environment

        Raises:
            ValueError: If production settings are invalid
        """
        if self.APP_ENV == "prod":
            if len(self.JWT_SECRET_KEY) < 32:
                raise ValueError(
                    "JWT_SECRET_KEY must be at least 32 characters in production environment"
                )

            if self.ALLOWED_ORIGINS == "*" or not self.ALLOWED_ORIGINS:
                raise ValueError(
                    "ALLOWED_ORIGINS must be explicitly set (not '*') in production environment"
                )

            # The billed placeholder always reports zero variance
            if self.ACTUAL_AMOUNT_SOURCE != "reported":
                raise ValueError(
                    "ACTUAL_AMOUNT_SOURCE must be 'reported' in production environment"
                )

    def get_allowed_origins_list(self) -> List[str]:
        """
        Get list of allowed CORS origins

        Returns:
            List of allowed origins (or ['*'] for local)
        """
        if self.ALLOWED_ORIGINS == "*":
            return ["*"]
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]


settings = Settings()

if settings.APP_ENV == "prod":
    settings.validate_production()
