"""Error types raised by the picker.

Every picker error carries a stable ``code`` for programmatic handling plus a
human-readable ``message``.  Polyline codec errors live in
``exif_picker.core.polyline`` and stay outside this hierarchy; the validator
wraps them in :class:`FilterError`.
"""
from __future__ import annotations

import logging
import re
from typing import Optional

log = logging.getLogger(__name__)

_FILTER_PREFIX = re.compile(r"^filter_error:\s*")


class ExifGalleryError(Exception):
    """Base class for all picker errors."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class InitializationRequiredError(ExifGalleryError):
    def __init__(self, message: str = "Plugin must be initialized before calling pick()"):
        super().__init__("initialization_required", message)


class PickerInProgressError(ExifGalleryError):
    def __init__(self, message: str = "Cannot open picker while another picker is in progress"):
        super().__init__("picker_in_progress", message)


class NoPermissionError(ExifGalleryError):
    """Photo library or location access was denied on the device."""

    def __init__(self, permission_type: str = "photo_library", message: Optional[str] = None):
        default = (
            "Photo library permission denied"
            if permission_type == "photo_library"
            else "Location permission denied"
        )
        super().__init__("no_permission", message if message is not None else default)
        self.permission_type = permission_type


class FilterError(ExifGalleryError):
    """Invalid filter parameters.  The caller is expected to fix input and retry."""

    def __init__(self, message: str):
        if not isinstance(message, str):
            raise TypeError(f"FilterError requires a string message, got {type(message).__name__}")
        clean = _FILTER_PREFIX.sub("", message).strip()
        if not clean:
            log.warning("FilterError created with empty message. Original: %r", message)
            clean = "Invalid filter parameters"
        super().__init__("filter_error", clean)


class NativeError(ExifGalleryError):
    """Opaque failure reported by the native bridge."""

    def __init__(self, message: str = "Native platform operation failed"):
        super().__init__("native_error", message)
