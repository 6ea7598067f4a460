"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="CARELINE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "CareLine Medical Logistics API"
    api_prefix: str = "/api"
    data_root: Path = Field(default=Path("data"), description="Directory holding the JSON collections.")
    upload_dir: Path = Field(default=Path("uploads"), description="Directory for proof-of-delivery photos.")
    tracking_base_url: str = Field(
        default="https://careline.example.com",
        description="Public base URL used when building /track?stopId= links.",
    )
    average_speed_kmh: float = Field(
        default=40.0,
        gt=0.0,
        description="Assumed average driving speed for straight-line ETA estimates.",
    )
    status_policy: Literal["lenient", "strict"] = Field(
        default="lenient",
        description=(
            "lenient accepts any status label; strict only accepts the known lifecycle "
            "statuses and refuses to move a stop out of a terminal state."
        ),
    )
    notification_channel: Literal["log", "webhook"] = Field(
        default="log",
        description="Outbound channel used when a recorded notification is sent.",
    )
    notification_webhook_url: Optional[str] = Field(
        default=None,
        description="Endpoint receiving rendered notifications when the webhook channel is active.",
    )
    notification_timeout_seconds: float = Field(default=10.0, gt=0.0)
    notification_max_retries: int = Field(default=3, ge=0)
    notification_backoff_seconds: float = Field(default=1.0, ge=0.0)
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("data_root", "upload_dir", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("tracking_base_url", mode="after")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

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
