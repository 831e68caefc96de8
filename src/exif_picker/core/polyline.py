"""Google Encoded Polyline codec.

Algorithm: https://developers.google.com/maps/documentation/utilities/polylinealgorithm

Each coordinate component is stored as a signed delta from the previous
point, scaled by ``10**precision``, zig-zag folded and written as 5-bit
groups offset by 63.  Precision 5 is the Google Maps default; higher
precision strings (e.g. OSRM/Valhalla precision 6) decode by passing
``precision=6``.

The codec is a pure format decoder.  Size and point-count limits belong to
the validator.
"""
from __future__ import annotations

import math
from typing import Iterable, List, Tuple

from exif_picker.contracts.filter_contract import Coordinate

DEFAULT_PRECISION = 5

_OFFSET = 63
_CONTINUATION = 0x20
_CHUNK_MASK = 0x1F
# 13 groups = 65 bits, far above any coordinate at precision <= 10
_MAX_SHIFT = 60


class DecodeError(ValueError):
    """The input is not a valid encoded polyline."""


class EmptyPolylineError(DecodeError):
    def __init__(self):
        super().__init__("encoded polyline is empty")


class MalformedPolylineError(DecodeError):
    def __init__(self, reason: str, offset: int):
        super().__init__(f"{reason} at offset {offset}")
        self.offset = offset


def _factor(precision: int) -> int:
    if precision < 0:
        raise ValueError("precision must be >= 0")
    return 10 ** precision


def _read_value(text: str, pos: int) -> Tuple[int, int]:
    """Read one varint starting at *pos*; return ``(delta, next_pos)``."""
    start = pos
    result = 0
    shift = 0
    while True:
        if pos >= len(text):
            raise MalformedPolylineError("unterminated value starting", start)
        byte = ord(text[pos]) - _OFFSET
        if byte < 0 or byte > 0x3F:
            raise MalformedPolylineError(f"invalid character {text[pos]!r}", pos)
        pos += 1
        if shift > _MAX_SHIFT:
            raise MalformedPolylineError("value too long starting", start)
        result |= (byte & _CHUNK_MASK) << shift
        shift += 5
        if not byte & _CONTINUATION:
            break
    if result & 1:
        return -((result + 1) >> 1), pos
    return result >> 1, pos


def decode(encoded: str, precision: int = DEFAULT_PRECISION) -> List[Coordinate]:
    """Decode *encoded* into an ordered list of coordinates.

    Raises ``EmptyPolylineError`` for a blank string and
    ``MalformedPolylineError`` (with the character offset) for truncated or
    out-of-alphabet input.  Never returns a partial sequence.
    """
    factor = _factor(precision)
    text = encoded.strip()
    if not text:
        raise EmptyPolylineError()

    points: List[Coordinate] = []
    lat = 0
    lng = 0
    pos = 0
    while pos < len(text):
        d_lat, pos = _read_value(text, pos)
        if pos >= len(text):
            raise MalformedPolylineError("missing longitude", pos)
        d_lng, pos = _read_value(text, pos)
        lat += d_lat
        lng += d_lng
        points.append(Coordinate(lat=lat / factor, lng=lng / factor))
    return points


def _round_half_up(value: float) -> int:
    # Math.round semantics, which every Google-format producer uses
    return int(math.floor(abs(value) + 0.5)) * (1 if value >= 0 else -1)


def _write_value(delta: int, out: List[str]) -> None:
    value = ~(delta << 1) if delta < 0 else delta << 1
    while value >= _CONTINUATION:
        out.append(chr((_CONTINUATION | (value & _CHUNK_MASK)) + _OFFSET))
        value >>= 5
    out.append(chr(value + _OFFSET))


def encode(coords: Iterable[Coordinate], precision: int = DEFAULT_PRECISION) -> str:
    factor = _factor(precision)
    out: List[str] = []
    prev_lat = 0
    prev_lng = 0
    for c in coords:
        lat = _round_half_up(c.lat * factor)
        lng = _round_half_up(c.lng * factor)
        _write_value(lat - prev_lat, out)
        _write_value(lng - prev_lng, out)
        prev_lat, prev_lng = lat, lng
    return "".join(out)
