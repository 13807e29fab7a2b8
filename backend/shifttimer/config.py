from __future__ import annotations

import os
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)
    """Application runtime configuration."""

    app_name: str = "Shift Timer"
    environment: str = "development"
    host: str = os.getenv("ST_HOST", "127.0.0.1")
    port: int = int(os.getenv("ST_PORT", "8080"))
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            origin.strip()
            for origin in os.getenv("ST_CORS_ORIGINS", "http://127.0.0.1:5173,http://localhost:5173").split(",")
            if origin.strip()
        ]
    )
    log_level: str = os.getenv("ST_LOG_LEVEL", "INFO")

    poll_interval_ms: int = int(os.getenv("ST_POLL_INTERVAL_MS", "200"))

    # Progress arc drawing box; the arc's open ends sit at the offsets from the bottom corners.
    view_box_size: float = float(os.getenv("ST_VIEW_BOX_SIZE", "200"))
    arc_radius: float = float(os.getenv("ST_ARC_RADIUS", "90"))
    stroke_width: float = float(os.getenv("ST_STROKE_WIDTH", "15"))
    arc_x_offset: float = float(os.getenv("ST_ARC_X_OFFSET", "30"))
    arc_y_offset: float = float(os.getenv("ST_ARC_Y_OFFSET", "30"))

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: str | List[str]) -> List[str]:
        if isinstance(value, list):
            return value
        if not value:
            return []
        return [origin.strip() for origin in value.split(",") if origin.strip()]

    @field_validator("poll_interval_ms")
    @classmethod
    def _positive_interval(cls, value: int) -> int:
        return max(1, value)

    @property
    def poll_interval_seconds(self) -> float:
        return self.poll_interval_ms / 1000


settings = Settings()
