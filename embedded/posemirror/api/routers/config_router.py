"""Config endpoint router for reading the effective runtime configuration."""
from __future__ import annotations

from fastapi import APIRouter

from posemirror.api.schemas import Envelope
from posemirror.core.config import get_settings

router = APIRouter()


@router.get("/config", response_model=Envelope)
async def get_config() -> Envelope:
    s = get_settings()
    return Envelope(success=True, data=s.model_dump())
