"""Application configuration and settings management."""

from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="RA_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Route Assigner API"
    api_prefix: str = "/api"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    osrm_base_url: Optional[str] = Field(
        default="https://router.project-osrm.org",
        description="Base URL for the OSRM routing service (e.g., http://localhost:5000).",
    )
    osrm_profile: Literal["driving", "driving-hgv"] = Field(
        default="driving",
        description="OSRM profile to use when computing routes.",
    )
    google_directions_url: str = Field(
        default="https://maps.googleapis.com/maps/api/directions/json",
        description="Google Directions API endpoint.",
    )
    google_maps_api_key: Optional[str] = Field(
        default=None,
        description="Google Maps API key. Without it only the plain OSRM provider is used.",
    )
    provider_timeout_seconds: float = Field(default=10.0, gt=0.0)
    provider_max_retries: int = Field(default=0, ge=0)
    provider_backoff_seconds: float = Field(default=0.5, ge=0.0)
    max_parallel_strategies: int = Field(default=4, ge=1)
    max_sessions: int = Field(
        default=500,
        ge=1,
        description="Preview sessions kept in memory; the least recently used is evicted beyond this.",
    )
    coordinate_match_tolerance_deg: float = Field(
        default=1e-6,
        ge=0.0,
        description="Two coordinates closer than this on both axes are the same stop.",
    )
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> tuple[str, ...]:
        """Accept a JSON array or a comma-separated string from the environment."""
        if isinstance(value, (list, tuple)):
            return tuple(str(item) for item in value)
        if not isinstance(value, str):
            return tuple()
        text = value.strip()
        if text.startswith("["):
            try:
                return tuple(str(item) for item in json.loads(text))
            except json.JSONDecodeError as exc:
                raise ValueError(f"Invalid JSON list for allowed origins: {exc}") from exc
        return tuple(item.strip() for item in text.split(",") if item.strip())

    @field_validator("osrm_base_url", mode="after")
    @classmethod
    def _strip_trailing_slash(cls, value: Optional[str]) -> Optional[str]:
        return value.rstrip("/") if value else value


settings = Settings()
