"""
Runtime configuration for RouteWise.

Settings are read from ``ROUTEWISE_*`` environment variables (or a local
``.env`` file) and validated by pydantic. Every component that consumes a
setting also accepts an explicit override, so tests never need to touch
the environment.

Example:

    ROUTEWISE_DEADLINE_SECONDS=10 routewise plan "Tokyo Station" "Tokyo Tower"
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .routing import DEFAULT_AVERAGE_SPEED_MPS


class RouteWiseSettings(BaseSettings):
    """Tunable parameters of the route planning pipeline."""

    model_config = SettingsConfigDict(
        env_prefix="ROUTEWISE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    request_delay_seconds: float = Field(
        default=0.5,
        ge=0.0,
        description="Pause between successful geocoding requests to respect rate limits.",
    )
    deadline_seconds: float = Field(
        default=30.0,
        gt=0.0,
        description="Overall time allowed for resolving every address of a request.",
    )
    average_speed_mps: float = Field(
        default=DEFAULT_AVERAGE_SPEED_MPS,
        gt=0.0,
        description="Average travel speed used for duration estimates.",
    )
    two_opt_max_passes: int = Field(default=100, ge=1)
    two_opt_soft_pass_limit: int = Field(default=20, ge=1)
    two_opt_soft_limit_min_stops: int = Field(
        default=8,
        ge=0,
        description="Routes with more points than this stop after the soft pass limit.",
    )
    geocoder_user_agent: str = Field(default="routewise_app")
    geocoder_timeout_seconds: float = Field(default=10.0, gt=0.0)
    log_level: str = Field(default="INFO")


@lru_cache()
def get_settings() -> RouteWiseSettings:
    """Return cached settings shared across modules."""

    return RouteWiseSettings()
