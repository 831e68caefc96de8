import copy
from datetime import datetime, timedelta, timezone

import pytest

from exif_picker.contracts.filter_contract import Coordinate, PathFilter, PointSetFilter
from exif_picker.core.errors import FilterError
from exif_picker.core.polyline import MalformedPolylineError, encode
from exif_picker.core.validator import (
    is_valid_lat_lng,
    validate_filter_config,
    validate_location_filter,
    validate_pick_settings,
    validate_time_range_filter,
)

PARIS = {"lat": 48.8566, "lng": 2.3522}
BERLIN = {"lat": 52.52, "lng": 13.405}


# ---- coordinates -----------------------------------------------------------

@pytest.mark.parametrize(
    "obj",
    [PARIS, {"lat": -90, "lng": 180}, {"lat": 90, "lng": -180}, Coordinate(lat=1.0, lng=2.0)],
)
def test_valid_lat_lng(obj) -> None:
    assert is_valid_lat_lng(obj)


@pytest.mark.parametrize(
    "obj",
    [
        None,
        {"lat": 91, "lng": 0},
        {"lat": 0, "lng": 180.0001},
        {"lat": 0},
        {"lat": float("nan"), "lng": 0},
        {"lat": "48.8", "lng": 2.3},
        {"lat": True, "lng": 0},
        [48.8, 2.3],
    ],
)
def test_invalid_lat_lng(obj) -> None:
    assert not is_valid_lat_lng(obj)


# ---- location shape --------------------------------------------------------

def test_location_requires_polyline_or_coordinates() -> None:
    with pytest.raises(FilterError, match="must have either polyline or coordinates"):
        validate_location_filter({"radius": 100})


def test_location_rejects_both_shapes() -> None:
    with pytest.raises(FilterError, match="cannot have both polyline and coordinates"):
        validate_location_filter({"polyline": [PARIS, BERLIN], "coordinates": [PARIS]})


def test_none_values_count_as_absent() -> None:
    result = validate_location_filter({"polyline": None, "coordinates": [PARIS]})
    assert isinstance(result, PointSetFilter)


def test_encoded_polyline_is_decoded_into_path() -> None:
    result = validate_location_filter({"polyline": "_p~iF~ps|U_ulLnnqC", "radius": 1000})
    assert isinstance(result, PathFilter)
    assert result.points == (
        Coordinate(lat=38.5, lng=-120.2),
        Coordinate(lat=40.7, lng=-120.95),
    )
    assert result.radius_m == 1000.0


def test_polyline_array_is_used_as_is() -> None:
    result = validate_location_filter({"polyline": [PARIS, BERLIN]})
    assert result.points == (Coordinate(**PARIS), Coordinate(**BERLIN))
    assert result.radius_m is None


def test_single_point_polyline_is_rejected() -> None:
    with pytest.raises(FilterError, match="at least 2 coordinates to define a path"):
        validate_location_filter({"polyline": encode([Coordinate(lat=1.0, lng=1.0)])})


def test_empty_polyline_array_is_rejected() -> None:
    with pytest.raises(FilterError, match="decoded polyline is empty"):
        validate_location_filter({"polyline": []})


def test_single_point_coordinates_are_accepted() -> None:
    result = validate_location_filter({"coordinates": [PARIS], "radius": 500})
    assert isinstance(result, PointSetFilter)
    assert len(result.points) == 1


@pytest.mark.parametrize("text", ["", "   "])
def test_blank_encoded_polyline_is_rejected(text: str) -> None:
    with pytest.raises(FilterError, match="encoded polyline string cannot be empty"):
        validate_location_filter({"polyline": text})


def test_oversized_encoded_polyline_is_rejected_before_decoding() -> None:
    # not a valid polyline either; the size check must win
    with pytest.raises(FilterError, match="exceeds 50KB limit"):
        validate_location_filter({"polyline": "_" * 51_201})


def test_malformed_encoded_polyline_is_wrapped() -> None:
    with pytest.raises(FilterError, match="Invalid encoded polyline") as exc:
        validate_location_filter({"polyline": "_p~iF~ps|U_"})
    assert isinstance(exc.value.__cause__, MalformedPolylineError)
    assert "polylinealgorithm" in exc.value.message


def test_polyline_of_wrong_type_names_received_type() -> None:
    with pytest.raises(FilterError, match="Received: int"):
        validate_location_filter({"polyline": 42})


def test_polyline_over_point_limit_names_count() -> None:
    points = [{"lat": 0.0, "lng": i * 0.001} for i in range(1001)]
    with pytest.raises(FilterError, match="polyline contains 1001 points, maximum is 1,000"):
        validate_location_filter({"polyline": points})


def test_decoded_polyline_over_point_limit() -> None:
    encoded = encode([Coordinate(lat=0.0, lng=i * 0.001) for i in range(1001)])
    with pytest.raises(FilterError, match="1001 points"):
        validate_location_filter({"polyline": encoded})


def test_invalid_polyline_point_is_named_by_index() -> None:
    with pytest.raises(FilterError, match=r"polyline\[1\] is not a valid LatLng"):
        validate_location_filter({"polyline": [PARIS, {"lat": 0, "lng": 200}]})


def test_decoded_out_of_range_point_is_rejected() -> None:
    encoded = encode([Coordinate(lat=95.0, lng=0.0), Coordinate(lat=0.0, lng=0.0)])
    with pytest.raises(FilterError, match=r"polyline\[0\]"):
        validate_location_filter({"polyline": encoded})


def test_coordinates_must_be_an_array() -> None:
    with pytest.raises(FilterError, match="coordinates must be an array"):
        validate_location_filter({"coordinates": "48.85,2.35"})


def test_empty_coordinates_are_rejected() -> None:
    with pytest.raises(FilterError, match="at least one coordinate"):
        validate_location_filter({"coordinates": []})


def test_coordinates_over_point_limit() -> None:
    with pytest.raises(FilterError, match="must not exceed 1,000 points"):
        validate_location_filter({"coordinates": [PARIS] * 1001})


def test_invalid_coordinate_is_named_by_index() -> None:
    with pytest.raises(FilterError, match=r"coordinates\[0\] is not a valid LatLng"):
        validate_filter_config({"location": {"coordinates": [{"lat": 91, "lng": 0}]}})


# ---- radius ----------------------------------------------------------------

@pytest.mark.parametrize(
    "radius,message",
    [
        (0, "greater than 0"),
        (-5, "greater than 0"),
        (50_001, "must not exceed 50,000 meters"),
        (float("inf"), "finite number"),
        (float("nan"), "finite number"),
        ("100", "finite number"),
        (True, "finite number"),
    ],
)
def test_bad_radius_is_rejected(radius, message: str) -> None:
    with pytest.raises(FilterError, match=message):
        validate_location_filter({"coordinates": [PARIS], "radius": radius})


def test_max_radius_is_accepted() -> None:
    result = validate_location_filter({"coordinates": [PARIS], "radius": 50_000})
    assert result.radius_m == 50_000.0


# ---- time range ------------------------------------------------------------

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_equal_timestamps_are_rejected() -> None:
    with pytest.raises(FilterError, match="timeRange.start must be before timeRange.end"):
        validate_time_range_filter({"start": T0, "end": T0})


def test_one_millisecond_window_is_accepted() -> None:
    result = validate_time_range_filter({"start": T0 - timedelta(milliseconds=1), "end": T0})
    assert result.end_ms - result.start_ms == 1


def test_reversed_range_is_rejected() -> None:
    with pytest.raises(FilterError, match="must be before"):
        validate_time_range_filter({"start": T0, "end": T0 - timedelta(days=1)})


def test_iso_strings_and_epoch_ms_are_accepted() -> None:
    result = validate_time_range_filter({"start": "2024-01-01T00:00:00Z", "end": 1_735_689_600_000})
    assert result.start == T0
    assert result.end == datetime(2025, 1, 1, tzinfo=timezone.utc)


def test_naive_datetime_is_taken_as_utc() -> None:
    result = validate_time_range_filter({"start": datetime(2024, 1, 1), "end": "2024-06-01"})
    assert result.start == T0


def test_missing_start_is_rejected() -> None:
    with pytest.raises(FilterError, match="timeRange.start must be a datetime"):
        validate_time_range_filter({"end": T0})


def test_unparsable_end_is_rejected() -> None:
    with pytest.raises(FilterError, match="timeRange.end is an invalid timestamp"):
        validate_time_range_filter({"start": T0, "end": "next tuesday"})


# ---- complete filter -------------------------------------------------------

def test_empty_filter_is_rejected() -> None:
    with pytest.raises(FilterError, match="at least one of location or timeRange"):
        validate_filter_config({})


def test_time_range_is_validated_after_valid_location() -> None:
    with pytest.raises(FilterError, match="timeRange"):
        validate_filter_config({"location": {"coordinates": [PARIS]}, "timeRange": {"start": T0, "end": T0}})


def test_empty_location_object_is_still_validated() -> None:
    with pytest.raises(FilterError, match="either polyline or coordinates"):
        validate_filter_config({"location": {}})


def test_combined_filter_descriptor() -> None:
    descriptor = validate_filter_config(
        {
            "location": {"polyline": "_p~iF~ps|U_ulLnnqC", "radius": 1000},
            "timeRange": {"start": T0, "end": T0 + timedelta(days=1)},
        }
    )
    assert descriptor.to_bridge() == {
        "location": {
            "polyline": [{"lat": 38.5, "lng": -120.2}, {"lat": 40.7, "lng": -120.95}],
            "radius": 1000.0,
        },
        "timeRange": {"start": 1_704_067_200_000, "end": 1_704_153_600_000},
    }


def test_caller_input_is_not_mutated() -> None:
    raw = {"location": {"polyline": "_p~iF~ps|U_ulLnnqC", "radius": 1000}}
    before = copy.deepcopy(raw)
    validate_filter_config(raw)
    assert raw == before


def test_caller_input_is_not_mutated_on_failure() -> None:
    raw = {"location": {"polyline": encode([Coordinate(lat=1.0, lng=1.0)])}}
    before = copy.deepcopy(raw)
    with pytest.raises(FilterError):
        validate_filter_config(raw)
    assert raw == before


# ---- pick settings ---------------------------------------------------------

def test_pick_settings_defaults() -> None:
    s = validate_pick_settings(None)
    assert s.fallback_threshold == 5
    assert s.allow_manual_adjustment is True
    assert s.distance_unit == "kilometers"
    assert s.distance_step == 5


def test_pick_settings_explicit_values() -> None:
    s = validate_pick_settings(
        {"fallbackThreshold": 0, "allowManualAdjustment": False, "distanceUnit": "miles", "distanceStep": 25}
    )
    assert s.to_bridge() == {
        "fallbackThreshold": 0,
        "allowManualAdjustment": False,
        "distanceUnit": "miles",
        "distanceStep": 25,
    }


@pytest.mark.parametrize(
    "options,message",
    [
        ({"fallbackThreshold": -1}, "greater than or equal to 0"),
        ({"fallbackThreshold": 10_001}, "must not exceed 10,000"),
        ({"fallbackThreshold": "5"}, "fallbackThreshold must be a finite number"),
        ({"allowManualAdjustment": "yes"}, "allowManualAdjustment must be a boolean"),
        ({"distanceUnit": "meters"}, "distanceUnit must be one of: kilometers, miles"),
        ({"distanceStep": 0}, "at least 1 km"),
        ({"distanceStep": 26}, "must not exceed 25 km"),
        ({"distanceStep": float("inf")}, "distanceStep must be a finite number"),
    ],
)
def test_pick_settings_out_of_range(options, message: str) -> None:
    with pytest.raises(FilterError, match=message):
        validate_pick_settings(options)


# ---- hostile numeric and text input ----------------------------------------

HUGE = 10 ** 400  # valid JSON integer, too large for a float


def test_huge_integer_radius_is_not_finite() -> None:
    with pytest.raises(FilterError, match="radius must be a finite number"):
        validate_location_filter({"coordinates": [PARIS], "radius": HUGE})


@pytest.mark.parametrize("point", [{"lat": HUGE, "lng": 0}, {"lat": 0, "lng": -HUGE}])
def test_huge_integer_coordinate_is_invalid(point) -> None:
    assert not is_valid_lat_lng(point)
    with pytest.raises(FilterError, match=r"coordinates\[0\] is not a valid LatLng"):
        validate_location_filter({"coordinates": [point]})


@pytest.mark.parametrize(
    "options,message",
    [
        ({"fallbackThreshold": HUGE}, "fallbackThreshold must be a finite number"),
        ({"distanceStep": HUGE}, "distanceStep must be a finite number"),
    ],
)
def test_huge_integer_pick_settings(options, message: str) -> None:
    with pytest.raises(FilterError, match=message):
        validate_pick_settings(options)


@pytest.mark.parametrize("field", ["start", "end"])
def test_huge_integer_epoch_is_invalid_timestamp(field: str) -> None:
    window = {"start": T0, "end": T0 + timedelta(days=1)}
    window[field] = HUGE
    with pytest.raises(FilterError, match=f"timeRange.{field} is an invalid timestamp"):
        validate_time_range_filter(window)


def test_iso_timestamp_before_year_one_in_utc_is_invalid() -> None:
    with pytest.raises(FilterError, match="timeRange.start is an invalid timestamp"):
        validate_time_range_filter({"start": "0001-01-01T00:00:00+01:00", "end": T0})


def test_aware_datetime_past_year_9999_in_utc_is_invalid() -> None:
    late = datetime(9999, 12, 31, 23, 0, tzinfo=timezone(timedelta(hours=-2)))
    with pytest.raises(FilterError, match="timeRange.end is an invalid timestamp"):
        validate_time_range_filter({"start": T0, "end": late})


def test_overlong_encoded_value_is_wrapped() -> None:
    with pytest.raises(FilterError, match="Invalid encoded polyline") as exc:
        validate_filter_config({"location": {"polyline": "~" * 300 + "???"}})
    assert isinstance(exc.value.__cause__, MalformedPolylineError)


def test_lone_surrogate_in_polyline_is_a_filter_error() -> None:
    with pytest.raises(FilterError, match="Invalid encoded polyline"):
        validate_location_filter({"polyline": "_p~iF\ud800"})


def test_polyline_of_exactly_50kb_passes_size_check() -> None:
    # rejected by the decoder, not by the size guard
    with pytest.raises(FilterError, match="Invalid encoded polyline"):
        validate_location_filter({"polyline": "_" * 51_200})
