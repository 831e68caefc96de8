from __future__ import annotations

from exif_picker.bridge.base import NativeBridge
from exif_picker.bridge.mock import MockBridge
from exif_picker.bridge.unsupported import UnsupportedBridge


def build_bridge(name: str) -> NativeBridge:
    """
    Build a bridge from a short name.

    Supported:
      - "mock"         deterministic sample gallery
      - "unsupported"  every call fails with NativeError
    """
    key = (name or "").strip().lower()
    if key == "mock":
        return MockBridge()
    if key in ("unsupported", "web", "none"):
        return UnsupportedBridge()
    raise ValueError(f"Unknown bridge: {name!r}")
