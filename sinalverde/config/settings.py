"""SinalVerde configuration via environment / .env file."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LEVEL_ALIASES = {"WARN": "WARNING"}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- HTTP ---
    HOST: str = "0.0.0.0"
    PORT: int = 3001

    # --- Auth ---
    API_KEY: str = "sinalverde-whatsapp-key-2026"

    # --- WhatsApp session ---
    AUTH_DIR: Path = Path("./auth_data")
    AUTO_CONNECT: bool = True
    BROWSER_NAME: str = "SinalVerde"

    # --- Observability ---
    LOG_LEVEL: str = "warn"

    @field_validator("API_KEY")
    @classmethod
    def _require_api_key(cls, v: str) -> str:
        if not v:
            raise ValueError("API_KEY must not be empty")
        return v

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def _check_log_level(cls, v: str) -> str:
        name = str(v).strip().upper()
        name = _LEVEL_ALIASES.get(name, name)
        if not isinstance(logging.getLevelName(name), int):
            raise ValueError(f"unknown log level: {v!r}")
        return name

    @property
    def log_level_value(self) -> int:
        """Numeric stdlib logging level for LOG_LEVEL."""
        return logging.getLevelName(self.LOG_LEVEL)


settings = Settings()
