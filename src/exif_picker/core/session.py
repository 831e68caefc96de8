"""Picker session state and the single-flight guard around ``pick()``.

One ``PickerSession`` is created at application start and handed to the
code that needs it; tests build as many independent sessions as they like.

``initialized`` and ``picker_in_progress`` are independent flags.  The
in-progress flag only goes false -> true through :meth:`try_acquire`, which
reads and sets it under a lock in one step, so two interleaved picks can
never both acquire.
"""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterator

from exif_picker.core.errors import PickerInProgressError

log = logging.getLogger(__name__)


class PickerSession:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._initialized = False
        self._picker_in_progress = False
        self._permissions_requested_upfront = False
        self._photo_permission_requested = False

    # ---- initialization --------------------------------------------------
    @property
    def initialized(self) -> bool:
        return self._initialized

    def mark_initialized(self, permissions_requested_upfront: bool = False) -> None:
        """Record a bridge-confirmed initialization."""
        with self._lock:
            self._permissions_requested_upfront = permissions_requested_upfront
            self._initialized = True

    @property
    def permissions_requested_upfront(self) -> bool:
        return self._permissions_requested_upfront

    @property
    def photo_permission_requested(self) -> bool:
        return self._photo_permission_requested

    def mark_photo_permission_requested(self) -> None:
        self._photo_permission_requested = True

    # ---- single-flight guard ---------------------------------------------
    @property
    def picker_in_progress(self) -> bool:
        return self._picker_in_progress

    def try_acquire(self) -> bool:
        """Set the in-progress flag if it is clear.  Returns False if already held."""
        with self._lock:
            if self._picker_in_progress:
                log.warning("Picker acquire refused: another pick is in progress")
                return False
            self._picker_in_progress = True
        log.debug("Picker acquired")
        return True

    def release(self) -> None:
        with self._lock:
            self._picker_in_progress = False
        log.debug("Picker released")

    @contextmanager
    def hold(self) -> Iterator["PickerSession"]:
        """Acquire for the duration of the block; release on every exit path.

        Raises ``PickerInProgressError`` without touching the flag when the
        session is already held.
        """
        if not self.try_acquire():
            raise PickerInProgressError()
        try:
            yield self
        finally:
            self.release()

    def reset(self) -> None:
        """Return every flag to its initial value (tests)."""
        with self._lock:
            self._initialized = False
            self._picker_in_progress = False
            self._permissions_requested_upfront = False
            self._photo_permission_requested = False
