# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration.

    - Loads .env automatically (non-fatal if missing).
    - Keys are case-insensitive; unknown keys are ignored.
    - Directories are created lazily by `ensure_dirs()`, never on import.
    """

    # Flask
    FLASK_HOST: str = "0.0.0.0"
    FLASK_PORT: int = 5000
    FLASK_DEBUG: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # Paths
    EXPORT_DIR: Path = Field(default_factory=lambda: Path.cwd() / "exports")

    # EPUB defaults (lowest precedence in metadata resolution)
    DEFAULT_EPUB_TEMPLATE: str = "generic_novel"
    EPUB_DEFAULT_AUTHOR: str = "Unknown Author"
    EPUB_DEFAULT_LANGUAGE: str = "en"
    EPUB_DEFAULT_PUBLISHER: str = "Storyforge"
    EPUB_DEFAULT_RIGHTS: str = "All rights reserved"

    # Progress tracking
    DAILY_WORD_TARGET: int = Field(default=500, ge=1, le=50_000)
    CHART_DAYS: int = Field(default=30, ge=1, le=366)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("EPUB_DEFAULT_LANGUAGE")
    @classmethod
    def _lang_not_empty(cls, v: str) -> str:
        v = (v or "").strip()
        return v or "en"

    def ensure_dirs(self) -> None:
        self.EXPORT_DIR.mkdir(parents=True, exist_ok=True)


settings = Settings()
