"""Pydantic schemas for request/response payloads.

All endpoints use a standardized JSON envelope: {"success": bool, "data": any, "error": str|None}
"""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class Envelope(BaseModel):
    success: bool = True
    data: Optional[dict] = None
    error: Optional[str] = None


class ScoreOutput(BaseModel):
    overall_grade: str
    overall_score: int = Field(ge=0, le=100)
    arm_grade: str
    leg_grade: str
    body_grade: str
    arm_score: int = 0
    leg_score: int = 0
    body_score: int = 0
    silhouette: float = 0.0
    joint_angle: float = 0.0


class DrawCommandOutput(BaseModel):
    kind: str
    style: str
    start: Optional[List[float]] = None
    end: Optional[List[float]] = None
    center: Optional[List[float]] = None
    index: Optional[int] = None


class OverlayOutput(BaseModel):
    mirrored: bool
    commands: List[DrawCommandOutput]


class ToggleOutput(BaseModel):
    control: str
    value: bool
