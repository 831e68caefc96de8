"""Centralized settings for the exif-picker service and CLI."""
from __future__ import annotations

from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "EXIF_PICKER_"}

    # Native bridge used by the HTTP service: "mock" / "unsupported"
    bridge: str = "mock"

    # Google default is 5; OSRM/Valhalla-style polylines use 6
    polyline_precision: int = 5

    log_level: str = "INFO"

    # Comma separated, "*" for any
    cors_origins: str = "*"

    @property
    def cors_origin_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


settings = Settings()
