"""Configuration and environment settings for the cash-shift ledger."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings for the cash-shift ledger."""

    database_url: str = "sqlite:///cashdesk.db"
    device_cache_file: str = "device_cache.json"
    log_dir: str = "logs"
    log_file: str = "cashdesk.log"
    default_currency: str = "UZS"
    server_host: str = "127.0.0.1"
    server_port: int = 8000

    model_config = SettingsConfigDict(
        env_prefix="CASHDESK_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


def get_settings() -> "Settings":
    """Return an instance of the application settings."""
    return Settings()
