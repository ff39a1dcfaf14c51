"""Application configuration.

Configuration is loaded from environment variables. For local use, you can provide a
`.env` file and set `OUTLINER_ENV_FILE` to point to it.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Outliner settings.

    All fields are environment-configurable. Prefix is `OUTLINER_`.
    """

    model_config = SettingsConfigDict(
        env_prefix="OUTLINER_",
        env_file=None,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Core
    log_level: str = Field(default="INFO")

    # Storage
    data_dir: Path = Field(default=Path.home() / ".outliner")
    outline_file: str = Field(default="outline.json")
    events_file: str = Field(default="events.jsonl")
    record_events: bool = Field(default=True)

    # Suggestions
    suggestion_limit: int = Field(default=10, ge=1, le=100)

    # Recents sidebar
    recent_limit: int = Field(default=12, ge=1, le=200)

    # Journal
    daily_log_root_text: str = Field(default="Daily Log")

    @property
    def outline_path(self) -> Path:
        return self.data_dir / self.outline_file


def load_settings() -> Settings:
    """Load settings from env.

    Returns:
        Settings: Parsed settings.
    """

    env_file_override = os.getenv("OUTLINER_ENV_FILE")
    if env_file_override:
        env_path = Path(env_file_override)
        return Settings(_env_file=env_path)

    default_env = Path.cwd() / ".env"
    if default_env.exists():
        return Settings(_env_file=default_env)

    return Settings()
