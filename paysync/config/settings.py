"""
Configuration settings for paysync
Handles environment variables and application settings
"""
from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import field_validator


class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_NAME: str = "paysync"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "production"
    LOG_LEVEL: str = "INFO"

    # Database (commerce store)
    DATABASE_URL: str = "sqlite:///./paysync.db"

    # Razorpay webhook
    ENABLE_RAZORPAY_WEBHOOK: str = "off"  # "on" enables processing
    RAZORPAY_WEBHOOK_SECRET: Optional[str] = None

    # Order state id applied once a payment is accepted
    PS_OS_PAYMENT: int = 2

    # Razorpay API
    RAZORPAY_KEY_ID: Optional[str] = None
    RAZORPAY_KEY_SECRET: Optional[str] = None
    RAZORPAY_API_BASE: str = "https://api.razorpay.com"
    RAZORPAY_PAYMENT_METHOD_PREFIX: str = "razorpay"

    @field_validator("ENABLE_RAZORPAY_WEBHOOK")
    @classmethod
    def normalize_flag(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalize_level(cls, v):
        return v.upper() if isinstance(v, str) else v

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields from .env file


# Create settings instance
settings = Settings()


# Environment-specific overrides
if settings.ENVIRONMENT == "development":
    settings.DEBUG = True


def validate_settings(s: Settings = settings):
    """Validate critical settings"""
    issues = []

    if s.ENABLE_RAZORPAY_WEBHOOK == "on" and not s.RAZORPAY_WEBHOOK_SECRET:
        issues.append("RAZORPAY_WEBHOOK_SECRET must be set when the webhook is enabled")

    if s.ENVIRONMENT == "production":
        if not s.RAZORPAY_KEY_ID or not s.RAZORPAY_KEY_SECRET:
            issues.append("RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET must be set for payment updates")

    return issues
