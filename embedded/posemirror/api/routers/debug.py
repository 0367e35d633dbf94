"""Debug endpoints: pipeline counters and an MJPEG preview stream."""
from __future__ import annotations

import time
from typing import Iterator

from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from posemirror.api.routers.pose import session

router = APIRouter(prefix="/debug")


def mjpeg_frames(interval: float = 0.1) -> Iterator[bytes]:  # pragma: no cover - streaming
    import cv2  # type: ignore
    import numpy as np  # type: ignore

    placeholder = np.zeros((360, 640, 3), dtype=np.uint8)
    ok, buf = cv2.imencode(".jpg", placeholder)
    blank = buf.tobytes() if ok else b""
    while session.running:
        preview = session.preview_frame()
        jpg = blank
        if preview is not None:
            ok, buf = cv2.imencode(".jpg", preview)
            if ok:
                jpg = buf.tobytes()
        yield (b"--frame\r\n"
               b"Content-Type: image/jpeg\r\n\r\n" + jpg + b"\r\n")
        time.sleep(interval)


@router.get("/metrics")
async def debug_metrics() -> dict:
    return session.metrics()


@router.get("/stream")
async def debug_stream() -> StreamingResponse:  # pragma: no cover - streaming
    return StreamingResponse(mjpeg_frames(), media_type="multipart/x-mixed-replace; boundary=frame")
