"""Pose state endpoints: score, overlay draw commands, preview frame and display state."""
from __future__ import annotations

from fastapi import APIRouter
from loguru import logger

from posemirror.api.schemas import Envelope, OverlayOutput, ScoreOutput
from posemirror.core.session import PoseSession

router = APIRouter()

session = PoseSession()


@router.get("/state", response_model=Envelope)
async def state_endpoint() -> Envelope:
    """Return what the display currently shows plus session flags."""
    return Envelope(success=True, data=session.snapshot())


@router.get("/score", response_model=Envelope)
async def score_endpoint() -> Envelope:
    score = session.state.last_score
    if score is None:
        return Envelope(success=True, data={"score": None})
    out = ScoreOutput.model_validate(score.to_dict())
    return Envelope(success=True, data={"score": out.model_dump()})


@router.get("/overlay", response_model=Envelope)
async def overlay_endpoint() -> Envelope:
    drawing = session.overlay_drawing()
    out = OverlayOutput.model_validate(drawing.to_dict())
    return Envelope(success=True, data=out.model_dump())


@router.get("/preview", response_model=Envelope)
async def preview_endpoint() -> Envelope:
    frame_b64 = session.preview_jpeg_b64()
    return Envelope(success=True, data={"frame_b64": frame_b64})


@router.delete("/baseline", response_model=Envelope)
async def clear_baseline() -> Envelope:
    session.clear_baseline()
    logger.info("Baseline cleared via API")
    return Envelope(success=True, data=session.capture.snapshot())
