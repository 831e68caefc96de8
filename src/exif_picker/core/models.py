from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class InitConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    locale: Optional[Literal["en", "de", "fr", "es"]] = None
    # Merged by the caller; forwarded to the native layer untouched
    custom_texts: Dict[str, str] = Field(default_factory=dict, alias="customTexts")
    request_permissions_upfront: bool = Field(default=False, alias="requestPermissionsUpfront")

    def to_bridge(self) -> dict:
        return {
            "locale": self.locale,
            "customTexts": dict(self.custom_texts),
            "requestPermissionsUpfront": self.request_permissions_upfront,
        }


class ImageExif(BaseModel):
    lat: Optional[float] = None
    lng: Optional[float] = None
    timestamp: Optional[datetime] = None


class ImageResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    uri: str
    exif: Optional[ImageExif] = None
    filtered_by: Literal["location", "time"] = Field(alias="filteredBy")


class PickResult(BaseModel):
    images: List[ImageResult] = []
    cancelled: bool = False
