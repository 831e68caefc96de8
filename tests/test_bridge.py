import pytest

from exif_picker.bridge.factory import build_bridge
from exif_picker.bridge.mock import MockBridge, _haversine_m
from exif_picker.bridge.unsupported import UnsupportedBridge
from exif_picker.core.errors import NativeError


def test_build_bridge_by_name() -> None:
    assert isinstance(build_bridge("mock"), MockBridge)
    assert isinstance(build_bridge(" Unsupported "), UnsupportedBridge)


def test_build_bridge_unknown_name() -> None:
    with pytest.raises(ValueError):
        build_bridge("ios")


@pytest.mark.asyncio
async def test_unsupported_bridge_always_fails() -> None:
    bridge = UnsupportedBridge()
    with pytest.raises(NativeError, match="not supported"):
        await bridge.initialize({})
    with pytest.raises(NativeError, match="not supported"):
        await bridge.pick({})


def test_haversine_paris_to_london() -> None:
    d = _haversine_m(48.856613, 2.352222, 51.507351, -0.127758)
    assert 340_000 < d < 350_000
