"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerConfig(BaseSettings):
    """Bank ledger configuration"""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage configuration
    storage_backend: Literal["memory", "json", "sqlite"] = "memory"
    database_path: str = "ledger.db"
    json_path: str = "ledger.json"

    # Account id configuration
    account_id_prefix: str = "ACC"
    account_id_width: int = Field(default=6, ge=1)

    # Logging configuration
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Optional[str] = None  # If None, logs to stderr


# Global configuration instance
config = LedgerConfig()


def get_config() -> LedgerConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> LedgerConfig:
    """Reload configuration from environment"""
    global config
    config = LedgerConfig()
    return config
