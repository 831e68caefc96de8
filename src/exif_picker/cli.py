from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from exif_picker.config import settings
from exif_picker.contracts.filter_contract import Coordinate, FilterDescriptor
from exif_picker.core.errors import FilterError
from exif_picker.core.polyline import DecodeError, decode
from exif_picker.core.validator import validate_filter_config


def _read_filter(path: Path) -> dict:
    return json.loads(path.read_text(encoding="utf-8"))


def _points_table(title: str, points: List[Coordinate]) -> Table:
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("Lat")
    table.add_column("Lng")
    for i, p in enumerate(points):
        table.add_row(str(i), f"{p.lat:.6f}", f"{p.lng:.6f}")
    return table


def _print_descriptor(console: Console, descriptor: FilterDescriptor) -> None:
    if descriptor.location is not None:
        loc = descriptor.location
        radius = "default" if loc.radius_m is None else f"{loc.radius_m:g} m"
        console.print(_points_table(f"Location ({loc.kind}, radius {radius})", list(loc.points)))
    if descriptor.time_range is not None:
        tr = descriptor.time_range
        console.print(f"Time range: {tr.start.isoformat()} -> {tr.end.isoformat()}")
    console.print_json(json.dumps(descriptor.to_bridge()))


def _cmd_decode(args, console: Console) -> int:
    try:
        points = decode(args.polyline, precision=args.precision)
    except DecodeError as e:
        console.print(f"[red]Decode failed:[/red] {e}")
        return 1
    console.print(_points_table(f"Decoded polyline ({len(points)} points)", points))
    return 0


def _cmd_validate(args, console: Console) -> int:
    raw = _read_filter(Path(args.file))
    try:
        descriptor = validate_filter_config(raw, precision=args.precision)
    except FilterError as e:
        console.print(f"[red]Invalid filter:[/red] {e.message}")
        return 1
    _print_descriptor(console, descriptor)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(prog="exif-picker")
    ap.add_argument("--debug", action="store_true")
    sub = ap.add_subparsers(dest="command", required=True)

    p_decode = sub.add_parser("decode", help="Decode a Google encoded polyline")
    p_decode.add_argument("polyline")
    p_decode.add_argument("--precision", type=int, default=settings.polyline_precision)

    p_validate = sub.add_parser("validate", help="Validate a JSON filter file")
    p_validate.add_argument("file", help="Path to a filter JSON file")
    p_validate.add_argument("--precision", type=int, default=settings.polyline_precision)

    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else settings.log_level,
        format="%(asctime)s [cli] %(levelname)s %(message)s",
    )

    console = Console()
    if args.command == "decode":
        return _cmd_decode(args, console)
    return _cmd_validate(args, console)


if __name__ == "__main__":
    sys.exit(main())
