"""Vision package exports."""

from .evaluator import PoseScore, ScoringCalibration, evaluate
from .keypoints import EMPTY, LANDMARK_COUNT, KeypointSet, Point2D
from .pacing import AdmittedFrame, FramePacer

__all__ = [
    "PoseScore",
    "ScoringCalibration",
    "evaluate",
    "Point2D",
    "KeypointSet",
    "EMPTY",
    "LANDMARK_COUNT",
    "FramePacer",
    "AdmittedFrame",
]
