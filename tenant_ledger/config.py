"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class LedgerConfig(BaseSettings):
    """Tenant ledger service configuration"""

    # Storage configuration
    storage_backend: str = "sqlite"  # sqlite or memory
    database_path: str = "tenant_ledger.db"

    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8080
    api_prefix: str = "/api"
    tenant_header: str = "X-Tenant-Id"

    # Statement executor configuration
    executor_core_workers: int = 2
    executor_max_workers: int = 5
    executor_queue_capacity: int = 100
    executor_thread_prefix: str = "async-statement-"
    executor_shutdown_timeout: float = 30.0
    capacity_retry_after_seconds: int = 5

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stdout

    # Statement rendering
    currency_symbol: str = "$"

    class Config:
        env_prefix = "LEDGER_"
        env_file = ".env"
        case_sensitive = False


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
