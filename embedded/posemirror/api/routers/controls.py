"""Input triggers: skeleton visibility, static capture, mirror and dynamic recording."""
from __future__ import annotations

from fastapi import APIRouter
from loguru import logger

from posemirror.api.routers.pose import session
from posemirror.api.schemas import Envelope, ToggleOutput

router = APIRouter(prefix="/controls")


@router.post("/skeleton", response_model=Envelope)
async def toggle_skeleton() -> Envelope:
    visible = session.toggle_skeleton()
    return Envelope(success=True, data=ToggleOutput(control="skeleton", value=visible).model_dump())


@router.post("/capture", response_model=Envelope)
async def start_capture() -> Envelope:
    started = session.start_static_capture()
    if not started:
        logger.info("Capture request ignored (countdown in progress or session stopped)")
        return Envelope(success=False, data=session.capture.snapshot(), error="capture_in_progress")
    return Envelope(success=True, data=session.capture.snapshot())


@router.post("/mirror", response_model=Envelope)
async def toggle_mirror() -> Envelope:
    mirror = session.toggle_mirror()
    return Envelope(success=True, data=ToggleOutput(control="mirror", value=mirror).model_dump())


@router.post("/recording", response_model=Envelope)
async def toggle_recording() -> Envelope:
    recording = session.toggle_recording()
    return Envelope(success=True, data=ToggleOutput(control="recording", value=recording).model_dump())
