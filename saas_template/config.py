"""
Configuration Management
Environment-based settings for auth, billing, credits and logging
"""

from functools import lru_cache
from typing import Optional, Dict, Any
import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

THIRTY_DAYS = 60 * 60 * 24 * 30


class Settings(BaseSettings):
    # App config
    app_name: str = "SaaS Template"
    app_url: str = "http://localhost:8000"
    environment: str = "development"
    version: str = "1.0.0"
    secret_key: str = "change-me-in-production"

    # Logging
    log_level: str = "INFO"
    log_format: str = "default"
    logging_config_path: Optional[str] = None

    # Supabase (identity provider)
    supabase_url: str = ""
    supabase_anon_key: str = ""

    # Stripe (payment provider)
    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""
    stripe_api_version: str = "2024-06-20"
    stripe_price_pro_monthly: str = ""
    stripe_price_pro_yearly: str = ""
    stripe_price_enterprise_monthly: str = ""
    stripe_price_enterprise_yearly: str = ""

    # Redis (credits ledger, webhook de-duplication)
    redis_url: str = "redis://localhost:6379/0"
    initial_credits: int = 100

    # Auth cookies
    cookie_max_age: int = THIRTY_DAYS

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator('app_url')
    @classmethod
    def strip_trailing_slash(cls, v):
        return v.rstrip('/')

    @field_validator('initial_credits')
    @classmethod
    def validate_initial_credits(cls, v):
        if v < 0:
            raise ValueError('Initial credits cannot be negative')
        return v

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    def cookie_options(self) -> Dict[str, Any]:
        """Options applied to every auth cookie"""
        return {
            'path': '/',
            'secure': self.is_production,
            'samesite': 'lax',
            'max_age': self.cookie_max_age,
        }

    def price_id_for(self, plan: str, billing_period: str) -> str:
        """Stripe price id for a plan tier and billing period, empty if unset"""
        return getattr(self, f"stripe_price_{plan}_{billing_period}", "") or ""

    def log_config(self):
        """Log configuration (without sensitive data)"""
        logger.info(f"Environment: {self.environment}")
        logger.info(f"App URL: {self.app_url}")
        logger.info(f"Supabase URL: {self.supabase_url or 'not configured'}")
        logger.info(f"Stripe: {'configured' if self.stripe_secret_key else 'not configured'}")
        logger.info(f"Redis: {self.redis_url.split('@')[-1]}")


@lru_cache()
def get_settings() -> Settings:
    """Get settings instance"""
    return Settings()
