from __future__ import annotations

import logging
from typing import Any, Dict

from exif_picker.bridge.base import NativeBridge
from exif_picker.core.errors import NativeError
from exif_picker.core.models import PickResult

log = logging.getLogger(__name__)

UNSUPPORTED_MESSAGE = "ExifGallery plugin is not supported on this platform"


class UnsupportedBridge(NativeBridge):
    """Bridge for hosts with no native gallery.  Every call fails."""

    async def initialize(self, payload: Dict[str, Any]) -> None:
        log.info("initialize() called on unsupported platform: %s", payload)
        raise NativeError(UNSUPPORTED_MESSAGE)

    async def pick(self, payload: Dict[str, Any]) -> PickResult:
        log.info("pick() called on unsupported platform: %s", payload)
        raise NativeError(UNSUPPORTED_MESSAGE)
