"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from decimal import Decimal
from pydantic_settings import BaseSettings
from typing import List, Optional


class CreditModuleConfig(BaseSettings):
    """Credit module configuration"""

    # Storage configuration
    database_url: str = "sqlite:///credit_module.db"  # or memory:// for tests

    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Security configuration
    jwt_secret: str = "change-me-in-production"
    jwt_expiry_hours: int = 24
    jwt_algorithm: str = "HS256"
    auth_enabled: bool = True
    bootstrap_admin_username: str = ""  # Empty = no admin user created at start-up
    bootstrap_admin_password: str = ""

    # Logging configuration
    log_level: str = "INFO"
    log_file: Optional[str] = None  # If None, logs to stdout

    # Business rules configuration
    min_interest_rate: Decimal = Decimal("0.1")
    max_interest_rate: Decimal = Decimal("0.5")
    allowed_installments: List[int] = [6, 9, 12, 24]
    payable_window_months: int = 3
    daily_adjustment_rate: Decimal = Decimal("0.001")  # per day early/late
    currency_precision: int = 2

    class Config:
        env_prefix = "CREDIT_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = CreditModuleConfig()


def get_config() -> CreditModuleConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> CreditModuleConfig:
    """Reload configuration from environment"""
    global config
    config = CreditModuleConfig()
    return config
