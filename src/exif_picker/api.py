"""FastAPI REST surface for the exif-picker filter engine."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import Body, Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from exif_picker.bridge.factory import build_bridge
from exif_picker.config import settings
from exif_picker.core.engine import GalleryPicker
from exif_picker.core.errors import (
    ExifGalleryError,
    FilterError,
    InitializationRequiredError,
    NativeError,
    NoPermissionError,
    PickerInProgressError,
)
from exif_picker.core.models import InitConfig, PickResult
from exif_picker.core.polyline import DecodeError, decode
from exif_picker.core.session import PickerSession
from exif_picker.core.validator import MAX_POLYLINE_BYTES, validate_filter_config

log = logging.getLogger(__name__)

app = FastAPI(title="EXIF Picker", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Process-wide picker: one session, built at startup
# ---------------------------------------------------------------------------
_picker: Optional[GalleryPicker] = None


def get_picker() -> GalleryPicker:
    global _picker
    if _picker is None:
        _picker = GalleryPicker(
            build_bridge(settings.bridge),
            session=PickerSession(),
            precision=settings.polyline_precision,
        )
        log.info("Picker built with %s bridge", settings.bridge)
    return _picker


_STATUS_BY_ERROR = [
    (FilterError, 400),
    (NoPermissionError, 403),
    (PickerInProgressError, 409),
    (InitializationRequiredError, 412),
    (NativeError, 502),
]


def _http_error(exc: ExifGalleryError) -> HTTPException:
    for cls, status in _STATUS_BY_ERROR:
        if isinstance(exc, cls):
            return HTTPException(status_code=status, detail=exc.to_dict())
    return HTTPException(status_code=500, detail=exc.to_dict())


# ---------------------------------------------------------------------------
# Request / Response models
# ---------------------------------------------------------------------------

class DecodeRequest(BaseModel):
    polyline: str
    precision: Optional[int] = Field(default=None, ge=0, le=10)


class LatLngOut(BaseModel):
    lat: float
    lng: float


class DecodeResponse(BaseModel):
    point_count: int
    points: List[LatLngOut]


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@app.get("/health")
def health(picker: GalleryPicker = Depends(get_picker)):
    return {
        "status": "ok",
        "initialized": picker.session.initialized,
        "picker_in_progress": picker.session.picker_in_progress,
    }


@app.post("/polyline/decode", response_model=DecodeResponse)
def decode_polyline(req: DecodeRequest):
    if len(req.polyline.encode("utf-8", "surrogatepass")) > MAX_POLYLINE_BYTES:
        raise HTTPException(
            status_code=413,
            detail={"code": "filter_error", "message": "encoded polyline string exceeds 50KB limit"},
        )
    precision = req.precision if req.precision is not None else settings.polyline_precision
    try:
        points = decode(req.polyline, precision=precision)
    except DecodeError as e:
        raise HTTPException(status_code=400, detail={"code": "decode_error", "message": str(e)})
    return DecodeResponse(
        point_count=len(points),
        points=[LatLngOut(lat=p.lat, lng=p.lng) for p in points],
    )


@app.post("/filters/validate")
def validate_filter(raw: Dict[str, Any] = Body(...)):
    try:
        descriptor = validate_filter_config(raw, precision=settings.polyline_precision)
    except FilterError as e:
        raise _http_error(e)
    return descriptor.to_bridge()


@app.post("/initialize")
async def initialize(
    config: Optional[InitConfig] = Body(default=None),
    picker: GalleryPicker = Depends(get_picker),
):
    try:
        await picker.initialize(config)
    except ExifGalleryError as e:
        raise _http_error(e)
    return {"initialized": True}


@app.post("/pick", response_model=PickResult)
async def pick(
    options: Optional[Dict[str, Any]] = Body(default=None),
    picker: GalleryPicker = Depends(get_picker),
):
    try:
        return await picker.pick(options)
    except ExifGalleryError as e:
        raise _http_error(e)


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [api] %(levelname)s %(message)s",
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
