"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="TDO_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Tour Dispatch Optimizer API"
    api_prefix: str = "/api"
    log_level: str = Field(default="INFO", description="Root logging level for the API process.")
    travel_times_file: Optional[Path] = Field(
        default=None,
        description="CSV of zone-to-zone travel times (from_zone_id,to_zone_id,estimated_minutes).",
    )
    default_travel_minutes: int = Field(
        default=20,
        ge=0,
        description="Travel time assumed when a zone pair has no data.",
    )
    max_travel_minutes: int = Field(
        default=120,
        ge=0,
        description="Upper bound applied to every travel time lookup.",
    )
    arrival_buffer_minutes: int = Field(
        default=15,
        ge=0,
        description="Minutes a guide must reach the meeting point before tour start.",
    )
    long_drive_threshold_minutes: int = Field(
        default=45,
        ge=0,
        description="Pickup drive times above this raise a long_drive_time warning.",
    )
    efficiency_baseline_minutes: int = Field(default=60, ge=1)
    max_alternative_guides: int = Field(default=3, ge=0)
    warn_on_capacity_overflow: bool = True
    algorithm_version: str = "1.0.0"
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("travel_times_file", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Optional[Path]:
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            # Try JSON first
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()


settings = Settings()
