"""Filter validation and normalization.

Turns untrusted, loosely-typed filter input into a bounds-checked
:class:`FilterDescriptor`.  Checks run in a fixed order so the first
failure, and therefore the error message, is deterministic.

The caller's input is never modified: an encoded polyline is decoded into
the returned descriptor, not written back into the raw mapping.
"""
from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional

from exif_picker.contracts.filter_contract import (
    Coordinate,
    FilterDescriptor,
    LocationFilter,
    PathFilter,
    PickSettings,
    PointSetFilter,
    TimeRange,
)
from exif_picker.core.errors import FilterError
from exif_picker.core.polyline import DEFAULT_PRECISION, DecodeError, decode

log = logging.getLogger(__name__)

MAX_POLYLINE_BYTES = 51_200  # 50 KB, checked before decoding
MAX_POINTS = 1_000
MAX_RADIUS_M = 50_000

MAX_FALLBACK_THRESHOLD = 10_000
MIN_DISTANCE_STEP = 1
MAX_DISTANCE_STEP = 25
DISTANCE_UNITS = ("kilometers", "miles")

POLYLINE_FORMAT_HINT = (
    'Expected Google Encoded Polyline format (e.g., "_p~iF~ps|U_ulLnnqC"). '
    "See: https://developers.google.com/maps/documentation/utilities/polylinealgorithm"
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_finite_number(value: Any) -> bool:
    if not _is_number(value):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # int too large for a float
        return False


def _get(obj: Any, key: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(key)
    return getattr(obj, key, None)


def _type_name(value: Any) -> str:
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


def is_valid_lat_lng(obj: Any) -> bool:
    """True for a mapping/Coordinate with numeric lat in [-90, 90] and lng in [-180, 180]."""
    if obj is None:
        return False
    lat = _get(obj, "lat")
    lng = _get(obj, "lng")
    if not (_is_finite_number(lat) and _is_finite_number(lng)):
        return False
    return -90 <= lat <= 90 and -180 <= lng <= 180


def _to_coordinate(obj: Any) -> Coordinate:
    if isinstance(obj, Coordinate):
        return obj
    return Coordinate(lat=float(_get(obj, "lat")), lng=float(_get(obj, "lng")))


def _coordinates(items: List[Any], field: str) -> tuple:
    out = []
    for i, item in enumerate(items):
        if not is_valid_lat_lng(item):
            raise FilterError(f"{field}[{i}] is not a valid LatLng coordinate")
        out.append(_to_coordinate(item))
    return tuple(out)


def _is_array(value: Any) -> bool:
    return isinstance(value, (list, tuple))


# ---------------------------------------------------------------------------
# Location
# ---------------------------------------------------------------------------

def _resolve_polyline(polyline: Any, precision: int) -> List[Any]:
    if isinstance(polyline, str):
        trimmed = polyline.strip()
        if not trimmed:
            raise FilterError("encoded polyline string cannot be empty")
        if len(polyline.encode("utf-8", "surrogatepass")) > MAX_POLYLINE_BYTES:
            raise FilterError(
                "encoded polyline string exceeds 50KB limit. "
                "Use a simplified polyline or reduce precision."
            )
        try:
            return decode(trimmed, precision=precision)
        except DecodeError as exc:
            log.info("Rejected encoded polyline: %s", exc)
            raise FilterError(f"Invalid encoded polyline: {exc}. {POLYLINE_FORMAT_HINT}") from exc
    if _is_array(polyline):
        return list(polyline)
    raise FilterError(
        "polyline must be a string (encoded polyline) or array of LatLng coordinates. "
        f"Received: {_type_name(polyline)}"
    )


def _validate_radius(radius: Any) -> Optional[float]:
    if radius is None:
        return None
    if not _is_finite_number(radius):
        raise FilterError("radius must be a finite number")
    if radius <= 0:
        raise FilterError("radius must be greater than 0")
    if radius > MAX_RADIUS_M:
        raise FilterError("radius must not exceed 50,000 meters (50km)")
    return float(radius)


def validate_location_filter(
    location: Mapping[str, Any],
    precision: int = DEFAULT_PRECISION,
) -> LocationFilter:
    """Validate a raw location filter and return a path or point-set filter.

    Exactly one of ``polyline`` (encoded string or LatLng array) and
    ``coordinates`` must be given.  A path needs at least two points; a
    point set may hold a single point.
    """
    if not isinstance(location, Mapping):
        raise FilterError(f"location must be an object. Received: {_type_name(location)}")

    polyline = location.get("polyline")
    coordinates = location.get("coordinates")
    has_polyline = polyline is not None
    has_coordinates = coordinates is not None

    if not has_polyline and not has_coordinates:
        raise FilterError("LocationFilter must have either polyline or coordinates")
    if has_polyline and has_coordinates:
        raise FilterError("LocationFilter cannot have both polyline and coordinates")

    result: LocationFilter
    if has_polyline:
        raw_points = _resolve_polyline(polyline, precision)
        if len(raw_points) == 0:
            raise FilterError("decoded polyline is empty")
        if len(raw_points) < 2:
            raise FilterError("polyline must contain at least 2 coordinates to define a path")
        if len(raw_points) > MAX_POINTS:
            raise FilterError(
                f"polyline contains {len(raw_points)} points, maximum is 1,000. "
                "Use a simplified polyline or reduce precision."
            )
        points = _coordinates(raw_points, "polyline")
        radius = _validate_radius(location.get("radius"))
        result = PathFilter(points=points, radius_m=radius)
    else:
        if not _is_array(coordinates):
            raise FilterError("coordinates must be an array")
        if len(coordinates) == 0:
            raise FilterError("coordinates must contain at least one coordinate")
        if len(coordinates) > MAX_POINTS:
            raise FilterError("coordinates must not exceed 1,000 points")
        points = _coordinates(coordinates, "coordinates")
        radius = _validate_radius(location.get("radius"))
        result = PointSetFilter(points=points, radius_m=radius)

    log.debug("Location filter ok: %s, %d points, radius=%s", result.kind, len(points), radius)
    return result


# ---------------------------------------------------------------------------
# Time range
# ---------------------------------------------------------------------------

def _parse_timestamp(value: Any, field: str) -> datetime:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        try:
            return value.astimezone(timezone.utc)
        except (OverflowError, ValueError):
            # offset pushes the instant outside year 1..9999
            raise FilterError(f"{field} is an invalid timestamp") from None

    if isinstance(value, str):
        text = value.strip()
        # fromisoformat only learned the "Z" suffix in 3.11
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            return _parse_timestamp(datetime.fromisoformat(text), field)
        except ValueError:
            raise FilterError(f"{field} is an invalid timestamp") from None

    if _is_number(value):
        if not _is_finite_number(value):
            raise FilterError(f"{field} is an invalid timestamp")
        try:
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            raise FilterError(f"{field} is an invalid timestamp") from None

    raise FilterError(f"{field} must be a datetime, ISO-8601 string or epoch milliseconds")


def validate_time_range_filter(time_range: Mapping[str, Any]) -> TimeRange:
    """Both ends must be valid timestamps and ``start`` strictly before ``end``."""
    if not isinstance(time_range, Mapping):
        raise FilterError(f"timeRange must be an object. Received: {_type_name(time_range)}")
    start = _parse_timestamp(time_range.get("start"), "timeRange.start")
    end = _parse_timestamp(time_range.get("end"), "timeRange.end")
    if start >= end:
        raise FilterError("timeRange.start must be before timeRange.end")
    return TimeRange(start=start, end=end)


# ---------------------------------------------------------------------------
# Complete filter
# ---------------------------------------------------------------------------

def validate_filter_config(
    raw: Mapping[str, Any],
    precision: int = DEFAULT_PRECISION,
) -> FilterDescriptor:
    """Validate a complete filter (``location`` and/or ``timeRange``).

    Raises :class:`FilterError` on the first violated rule.  Returns a new
    descriptor; *raw* is left untouched.
    """
    if not isinstance(raw, Mapping):
        raise FilterError(f"filter must be an object. Received: {_type_name(raw)}")

    location = raw.get("location")
    time_range = raw.get("timeRange")
    if location is None and time_range is None:
        raise FilterError("Filter must have at least one of location or timeRange")

    loc = None
    if location is not None:
        loc = validate_location_filter(location, precision=precision)
    window = None
    if time_range is not None:
        window = validate_time_range_filter(time_range)
    return FilterDescriptor(location=loc, time_range=window)


# ---------------------------------------------------------------------------
# Pick settings (defaults applied, then range-checked)
# ---------------------------------------------------------------------------

def validate_pick_settings(options: Optional[Mapping[str, Any]] = None) -> PickSettings:
    options = options or {}
    defaults = PickSettings()

    threshold = options.get("fallbackThreshold")
    if threshold is None:
        threshold = defaults.fallback_threshold
    if not _is_finite_number(threshold):
        raise FilterError("fallbackThreshold must be a finite number")
    if threshold < 0:
        raise FilterError("fallbackThreshold must be greater than or equal to 0")
    if threshold > MAX_FALLBACK_THRESHOLD:
        raise FilterError("fallbackThreshold must not exceed 10,000")

    manual = options.get("allowManualAdjustment")
    if manual is None:
        manual = defaults.allow_manual_adjustment
    if not isinstance(manual, bool):
        raise FilterError("allowManualAdjustment must be a boolean")

    unit = options.get("distanceUnit")
    if unit is None:
        unit = defaults.distance_unit
    if unit not in DISTANCE_UNITS:
        raise FilterError(f"distanceUnit must be one of: {', '.join(DISTANCE_UNITS)}")

    step = options.get("distanceStep")
    if step is None:
        step = defaults.distance_step
    if not _is_finite_number(step):
        raise FilterError("distanceStep must be a finite number")
    if step < MIN_DISTANCE_STEP:
        raise FilterError("distanceStep must be at least 1 km")
    if step > MAX_DISTANCE_STEP:
        raise FilterError("distanceStep must not exceed 25 km")

    return PickSettings(
        fallback_threshold=threshold,
        allow_manual_adjustment=manual,
        distance_unit=unit,
        distance_step=step,
    )
