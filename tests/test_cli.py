import json

from exif_picker.cli import main


def test_decode_command() -> None:
    assert main(["decode", "_p~iF~ps|U_ulLnnqC"]) == 0


def test_decode_command_rejects_malformed() -> None:
    assert main(["decode", "_p~iF~ps|U_"]) == 1


def test_validate_command(tmp_path) -> None:
    path = tmp_path / "filter.json"
    path.write_text(json.dumps({"location": {"polyline": "_p~iF~ps|U_ulLnnqC", "radius": 1000}}), encoding="utf-8")
    assert main(["validate", str(path)]) == 0


def test_validate_command_reports_invalid_filter(tmp_path) -> None:
    path = tmp_path / "filter.json"
    path.write_text(json.dumps({"location": {"coordinates": [{"lat": 91, "lng": 0}]}}), encoding="utf-8")
    assert main(["validate", str(path)]) == 1
