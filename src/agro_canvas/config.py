"""Application configuration."""

import json

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Key/value substrate (SQLite by default)
    database_url: str = "sqlite:///./agro_canvas.db"

    # Storage layout
    storage_key_prefix: str = "agroecologia-"
    storage_quota_bytes: int = 5 * 1024 * 1024  # 5 MiB, informational only
    history_limit: int = 50

    # Auto-save
    auto_save_interval_minutes: float = 5.0

    # Validation bounds
    max_elements: int = 1000
    min_canvas_width: float = 1.0
    min_canvas_height: float = 1.0
    max_canvas_width: float = 200.0
    max_canvas_height: float = 200.0
    max_file_size: int = 10 * 1024 * 1024  # 10 MiB
    allowed_file_types: list[str] = ["image/png", "image/jpeg", "image/webp"]

    # Export
    export_dir: str = "exports"
    exported_by: str = "Agroecologia Desenhada v1.0"

    # Server
    host: str = "127.0.0.1"
    port: int = 8000

    # Logging
    log_level: str = "info"

    # CORS configuration
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:8080",
    ]

    @field_validator("cors_origins", "allowed_file_types", mode="before")
    @classmethod
    def parse_string_list(cls, v):
        """Parse a list setting from string (JSON or comma-separated) or list."""
        if isinstance(v, str):
            # Try JSON first
            try:
                parsed = json.loads(v)
                if isinstance(parsed, list):
                    return parsed
            except json.JSONDecodeError:
                pass
            # Fall back to comma-separated
            return [item.strip() for item in v.split(",") if item.strip()]
        return v


settings = Settings()
