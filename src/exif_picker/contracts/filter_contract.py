# path: exif-picker/src/exif_picker/contracts/filter_contract.py

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Tuple, Union


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lng: float

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


@dataclass(frozen=True)
class PathFilter:
    """Corridor: match within ``radius_m`` of any point on the path."""
    points: Tuple[Coordinate, ...]
    radius_m: Optional[float] = None  # None -> native default

    kind = "path"


@dataclass(frozen=True)
class PointSetFilter:
    """Match within ``radius_m`` of any one of the points."""
    points: Tuple[Coordinate, ...]
    radius_m: Optional[float] = None

    kind = "points"


LocationFilter = Union[PathFilter, PointSetFilter]


@dataclass(frozen=True)
class TimeRange:
    start: datetime  # tz-aware UTC
    end: datetime

    @property
    def start_ms(self) -> int:
        return int(round(self.start.timestamp() * 1000))

    @property
    def end_ms(self) -> int:
        return int(round(self.end.timestamp() * 1000))


@dataclass(frozen=True)
class FilterDescriptor:
    location: Optional[LocationFilter] = None
    time_range: Optional[TimeRange] = None

    def to_bridge(self) -> Dict[str, Any]:
        """Wire form consumed by the native layer (camelCase, epoch ms)."""
        out: Dict[str, Any] = {}
        if self.location is not None:
            key = "polyline" if isinstance(self.location, PathFilter) else "coordinates"
            loc: Dict[str, Any] = {key: [p.to_dict() for p in self.location.points]}
            if self.location.radius_m is not None:
                loc["radius"] = self.location.radius_m
            out["location"] = loc
        if self.time_range is not None:
            out["timeRange"] = {
                "start": self.time_range.start_ms,
                "end": self.time_range.end_ms,
            }
        return out


@dataclass(frozen=True)
class PickSettings:
    fallback_threshold: float = 5
    allow_manual_adjustment: bool = True
    distance_unit: str = "kilometers"  # "kilometers" / "miles"
    distance_step: float = 5

    def to_bridge(self) -> Dict[str, Any]:
        return {
            "fallbackThreshold": self.fallback_threshold,
            "allowManualAdjustment": self.allow_manual_adjustment,
            "distanceUnit": self.distance_unit,
            "distanceStep": self.distance_step,
        }
