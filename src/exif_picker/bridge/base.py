from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Union

from exif_picker.core.models import PickResult


class NativeBridge(ABC):
    """The platform gallery: shows the picker and runs the EXIF match."""

    @abstractmethod
    async def initialize(self, payload: Dict[str, Any]) -> None:
        raise NotImplementedError

    @abstractmethod
    async def pick(self, payload: Dict[str, Any]) -> Union[PickResult, Dict[str, Any]]:
        raise NotImplementedError
