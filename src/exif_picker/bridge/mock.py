from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from math import atan2, cos, radians, sin, sqrt
from typing import Any, Dict, List, Optional

from exif_picker.bridge.base import NativeBridge
from exif_picker.core.models import ImageExif, ImageResult, PickResult

log = logging.getLogger(__name__)

# Radius the native side falls back to when the filter gives none
DEFAULT_RADIUS_M = 1000.0


def _utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


SAMPLE_GALLERY: List[Dict[str, Any]] = [
    {"uri": "https://picsum.photos/800/600?random=1", "lat": 52.520008, "lng": 13.404954, "t": _utc(2024, 1, 15, 10, 30)},
    {"uri": "https://picsum.photos/800/600?random=2", "lat": 48.856613, "lng": 2.352222, "t": _utc(2024, 2, 20, 14, 45)},
    {"uri": "https://picsum.photos/800/600?random=3", "lat": 51.507351, "lng": -0.127758, "t": _utc(2024, 3, 10, 9, 15)},
    {"uri": "https://picsum.photos/800/600?random=4", "lat": 40.712776, "lng": -74.005974, "t": _utc(2024, 4, 5, 16, 20)},
]


def _haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in metres between two WGS-84 points."""
    R = 6_371_000.0  # Earth radius in metres
    lat1r, lon1r, lat2r, lon2r = map(radians, [lat1, lon1, lat2, lon2])
    dlat = lat2r - lat1r
    dlon = lon2r - lon1r
    a = sin(dlat / 2) ** 2 + cos(lat1r) * cos(lat2r) * sin(dlon / 2) ** 2
    return R * 2 * atan2(sqrt(a), sqrt(1 - a))


class MockBridge(NativeBridge):
    """
    Deterministic fake gallery so the pipeline runs end-to-end without a device.

    Keeps every sample image whose EXIF falls inside the (already validated)
    filter.  ``cancelled`` makes every pick report a user cancel, ``error``
    is raised from every call, and ``delay_s`` suspends inside ``pick()`` the
    way a real picker does while it is on screen.
    """

    def __init__(
        self,
        gallery: Optional[List[Dict[str, Any]]] = None,
        cancelled: bool = False,
        error: Optional[Exception] = None,
        delay_s: float = 0.0,
    ):
        self.gallery = SAMPLE_GALLERY if gallery is None else gallery
        self.cancelled = cancelled
        self.error = error
        self.delay_s = delay_s
        self.init_calls: List[Dict[str, Any]] = []
        self.pick_calls: List[Dict[str, Any]] = []

    async def initialize(self, payload: Dict[str, Any]) -> None:
        self.init_calls.append(payload)
        if self.error is not None:
            raise self.error

    async def pick(self, payload: Dict[str, Any]) -> PickResult:
        self.pick_calls.append(payload)
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        if self.error is not None:
            raise self.error
        if self.cancelled:
            return PickResult(images=[], cancelled=True)

        flt = payload.get("filter") or {}
        location = flt.get("location")
        time_range = flt.get("timeRange")
        filtered_by = "location" if location else "time"

        images: List[ImageResult] = []
        for item in self.gallery:
            if location and not self._near(item, location):
                continue
            if time_range and not self._within(item, time_range):
                continue
            images.append(
                ImageResult(
                    uri=item["uri"],
                    exif=ImageExif(lat=item.get("lat"), lng=item.get("lng"), timestamp=item.get("t")),
                    filteredBy=filtered_by,
                )
            )
        log.debug("Mock pick matched %d of %d images", len(images), len(self.gallery))
        return PickResult(images=images, cancelled=False)

    @staticmethod
    def _near(item: Dict[str, Any], location: Dict[str, Any]) -> bool:
        if item.get("lat") is None or item.get("lng") is None:
            return False
        radius = location.get("radius") or DEFAULT_RADIUS_M
        points = location.get("polyline") or location.get("coordinates") or []
        return any(
            _haversine_m(item["lat"], item["lng"], p["lat"], p["lng"]) <= radius
            for p in points
        )

    @staticmethod
    def _within(item: Dict[str, Any], time_range: Dict[str, Any]) -> bool:
        t = item.get("t")
        if t is None:
            return False
        ms = t.timestamp() * 1000
        return time_range["start"] <= ms <= time_range["end"]
