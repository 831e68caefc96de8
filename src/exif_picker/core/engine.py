"""Orchestration: gate, validate, normalize, hand off to the native bridge."""
from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError

from exif_picker.bridge.base import NativeBridge
from exif_picker.core.errors import (
    ExifGalleryError,
    InitializationRequiredError,
    NativeError,
    NoPermissionError,
)
from exif_picker.core.models import InitConfig, PickResult
from exif_picker.core.polyline import DEFAULT_PRECISION
from exif_picker.core.session import PickerSession
from exif_picker.core.validator import validate_filter_config, validate_pick_settings

log = logging.getLogger(__name__)


def build_pick_payload(
    options: Optional[Mapping[str, Any]],
    precision: int = DEFAULT_PRECISION,
) -> Dict[str, Any]:
    """Validate raw pick options and return the payload the bridge consumes.

    Filter validation runs first, then the picker settings with defaults
    applied.  Raises ``FilterError`` before anything is sent anywhere.
    """
    options = options or {}
    raw_filter = options.get("filter")
    descriptor = None
    if raw_filter is not None:
        descriptor = validate_filter_config(raw_filter, precision=precision)

    payload: Dict[str, Any] = validate_pick_settings(options).to_bridge()
    payload["hasActiveFilters"] = descriptor is not None
    if descriptor is not None:
        payload["filter"] = descriptor.to_bridge()
    return payload


class GalleryPicker:
    def __init__(
        self,
        bridge: NativeBridge,
        session: Optional[PickerSession] = None,
        precision: int = DEFAULT_PRECISION,
    ):
        self.bridge = bridge
        self.session = session if session is not None else PickerSession()
        self.precision = precision

    async def initialize(self, config: Optional[InitConfig] = None) -> None:
        """Initialize the native layer.  The session is only marked after the bridge succeeds."""
        config = config or InitConfig()
        await self._call_bridge("initialize", config.to_bridge())
        self.session.mark_initialized(config.request_permissions_upfront)
        log.info("Picker initialized (locale=%s)", config.locale or "auto")

    async def pick(self, options: Optional[Mapping[str, Any]] = None) -> PickResult:
        if not self.session.initialized:
            raise InitializationRequiredError()

        with self.session.hold():
            payload = build_pick_payload(options, precision=self.precision)
            log.info("Opening picker (active filters: %s)", payload["hasActiveFilters"])
            raw = await self._call_bridge("pick", payload)

        try:
            result = raw if isinstance(raw, PickResult) else PickResult.model_validate(raw)
        except ValidationError as exc:
            raise NativeError(f"Native layer returned an invalid pick result: {exc}") from exc
        log.info("Picker closed: %d images, cancelled=%s", len(result.images), result.cancelled)
        return result

    async def _call_bridge(self, method: str, payload: Dict[str, Any]) -> Any:
        try:
            return await getattr(self.bridge, method)(payload)
        except NoPermissionError as exc:
            if exc.permission_type == "photo_library":
                self.session.mark_photo_permission_requested()
            log.warning("Bridge %s() denied: %s", method, exc.message)
            raise
        except ExifGalleryError as exc:
            log.warning("Bridge %s() failed: %s", method, exc.message)
            raise
        except Exception as exc:
            log.warning("Bridge %s() failed: %s", method, exc)
            raise NativeError(str(exc) or NativeError().message) from exc
