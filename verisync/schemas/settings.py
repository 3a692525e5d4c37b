# verisync/schemas/settings.py
"""
Centralized settings management using pydantic-settings.

Values are read from environment variables prefixed with ``VERISYNC_`` or
from a `.env` file at the project root.
"""
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Loads verisync environment variables into a structured Pydantic model.

    :ivar ssh_key: Default private key used for SSH sources without their own key.
    :vartype ssh_key: Optional[str]
    :ivar log_level: Root log level when config.yaml does not set one.
    :vartype log_level: str
    :ivar fetch_timeout: Default per-source fetch timeout in seconds.
    :vartype fetch_timeout: float
    """

    ssh_key: Optional[str] = None
    log_level: str = "info"
    fetch_timeout: float = 60.0

    model_config = SettingsConfigDict(
        env_prefix="VERISYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
