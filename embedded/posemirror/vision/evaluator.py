"""Pose comparison: grade a live keypoint set against a reference pose.

The overall score blends two similarities:

- silhouette: both sets are centered on their own centroid, and each
  landmark pair contributes ``max(0, 1 - distance / scale_px)``;
- joint angles: the elbow and knee angles of both sets are compared, each
  contributing ``max(0, 1 - |delta| / 180)``.

Everything here is a pure function of its inputs, so it can be called from any
thread without synchronization.
"""
from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from posemirror.vision.keypoints import (
    LEFT_ANKLE,
    LEFT_ELBOW,
    LEFT_HIP,
    LEFT_KNEE,
    LEFT_SHOULDER,
    LEFT_WRIST,
    RIGHT_ANKLE,
    RIGHT_ELBOW,
    RIGHT_HIP,
    RIGHT_KNEE,
    RIGHT_SHOULDER,
    RIGHT_WRIST,
    Point2D,
    is_complete,
)

WORST_GRADE = "E"

GRADE_THRESHOLDS: Tuple[Tuple[int, str], ...] = ((90, "A"), (80, "B"), (70, "C"), (60, "D"))

ARM_TRIPLETS: Tuple[Tuple[int, int, int], ...] = (
    (LEFT_SHOULDER, LEFT_ELBOW, LEFT_WRIST),
    (RIGHT_SHOULDER, RIGHT_ELBOW, RIGHT_WRIST),
)
LEG_TRIPLETS: Tuple[Tuple[int, int, int], ...] = (
    (LEFT_HIP, LEFT_KNEE, LEFT_ANKLE),
    (RIGHT_HIP, RIGHT_KNEE, RIGHT_ANKLE),
)

# Shoulders through hips, inclusive
TORSO_RANGE = (LEFT_SHOULDER, RIGHT_HIP + 1)


@dataclass(frozen=True)
class ScoringCalibration:
    """Tunable constants of the comparison.

    The defaults are the values the grading scale was calibrated with.
    """

    silhouette_weight: float = 0.7
    joint_angle_weight: float = 0.3
    silhouette_scale_px: float = 100.0

    @classmethod
    def from_settings(cls, settings) -> "ScoringCalibration":
        return cls(
            silhouette_weight=float(settings.silhouette_weight),
            joint_angle_weight=float(settings.joint_angle_weight),
            silhouette_scale_px=float(settings.silhouette_scale_px),
        )


DEFAULT_CALIBRATION = ScoringCalibration()


@dataclass(frozen=True)
class PoseScore:
    overall_grade: str
    overall_score: int
    arm_grade: str
    leg_grade: str
    body_grade: str
    arm_score: int = 0
    leg_score: int = 0
    body_score: int = 0
    silhouette: float = 0.0
    joint_angle: float = 0.0

    @classmethod
    def worst(cls) -> "PoseScore":
        return cls(WORST_GRADE, 0, WORST_GRADE, WORST_GRADE, WORST_GRADE)

    def to_dict(self) -> dict:
        return asdict(self)


def score_to_grade(score: float) -> str:
    for threshold, grade in GRADE_THRESHOLDS:
        if score >= threshold:
            return grade
    return WORST_GRADE


def round_score(value: float) -> int:
    """Round half-up and clamp to [0, 100]. Used for the overall score."""
    return max(0, min(100, int(math.floor(value + 0.5))))


def truncate_score(value: float) -> int:
    """Drop the fraction and clamp to [0, 100]. Used for the part scores."""
    return max(0, min(100, int(value)))


def _as_array(points: Sequence[Point2D]) -> np.ndarray:
    return np.array([(p.x, p.y) for p in points], dtype=float).reshape(-1, 2)


def centroid(points: Sequence[Point2D]) -> Point2D:
    if not points:
        return Point2D(0.0, 0.0)
    arr = _as_array(points)
    cx, cy = arr.mean(axis=0)
    return Point2D(float(cx), float(cy))


def silhouette_similarity(
    current: Sequence[Point2D],
    reference: Sequence[Point2D],
    scale_px: float = DEFAULT_CALIBRATION.silhouette_scale_px,
) -> float:
    """Return the centered shape similarity in [0, 100].

    Each set is translated by its own centroid, so only the shape matters, not
    where the person stands in the frame.
    """
    count = min(len(current), len(reference))
    if count == 0:
        return 0.0
    cur = _as_array(current)
    ref = _as_array(reference)
    cur_center, ref_center = centroid(current), centroid(reference)
    cur_centered = cur - (cur_center.x, cur_center.y)
    ref_centered = ref - (ref_center.x, ref_center.y)
    distances = np.linalg.norm(cur_centered[:count] - ref_centered[:count], axis=1)
    similarity = np.maximum(0.0, 1.0 - distances / float(scale_px))
    return float(similarity.mean()) * 100.0


def joint_angle(a: Point2D, b: Point2D, c: Point2D) -> float:
    """Angle at ``b`` (degrees, 0..180) between bones ``b->a`` and ``b->c``.

    A zero-length bone yields 0 instead of failing.
    """
    v1 = np.array((a.x - b.x, a.y - b.y), dtype=float)
    v2 = np.array((c.x - b.x, c.y - b.y), dtype=float)
    norm = np.linalg.norm(v1) * np.linalg.norm(v2)
    if norm == 0:
        return 0.0
    cos = np.clip(np.dot(v1, v2) / norm, -1.0, 1.0)
    return math.degrees(math.acos(float(cos)))


def triplet_similarity(
    current: Sequence[Point2D],
    reference: Sequence[Point2D],
    triplet: Tuple[int, int, int],
) -> Optional[float]:
    """Similarity in [0, 1] of the angle at the middle joint, None if out of range."""
    limit = min(len(current), len(reference))
    if any(i >= limit for i in triplet):
        return None
    p1, p2, p3 = triplet
    current_angle = joint_angle(current[p1], current[p2], current[p3])
    reference_angle = joint_angle(reference[p1], reference[p2], reference[p3])
    return max(0.0, 1.0 - abs(current_angle - reference_angle) / 180.0)


def _mean(values: List[Optional[float]]) -> float:
    valid = [v for v in values if v is not None]
    if not valid:
        return 0.0
    return float(sum(valid) / len(valid))


def joint_angle_similarity(current: Sequence[Point2D], reference: Sequence[Point2D]) -> float:
    """Mean similarity of the four limb angles, in [0, 100]."""
    scores = [triplet_similarity(current, reference, t) for t in ARM_TRIPLETS + LEG_TRIPLETS]
    return _mean(scores) * 100.0


def part_scores(current: Sequence[Point2D], reference: Sequence[Point2D], scale_px: float) -> Dict[str, int]:
    arm = _mean([triplet_similarity(current, reference, t) for t in ARM_TRIPLETS]) * 100.0
    leg = _mean([triplet_similarity(current, reference, t) for t in LEG_TRIPLETS]) * 100.0
    start, stop = TORSO_RANGE
    body = silhouette_similarity(current[start:stop], reference[start:stop], scale_px)
    return {"arm": truncate_score(arm), "leg": truncate_score(leg), "body": truncate_score(body)}


def evaluate(
    current: Sequence[Point2D],
    reference: Sequence[Point2D],
    calibration: ScoringCalibration = DEFAULT_CALIBRATION,
) -> PoseScore:
    """Grade ``current`` against ``reference``.

    Sets with fewer than 33 landmarks count as undetected and get the worst
    grade everywhere.
    """
    if not (is_complete(current) and is_complete(reference)):
        return PoseScore.worst()

    silhouette = silhouette_similarity(current, reference, calibration.silhouette_scale_px)
    angles = joint_angle_similarity(current, reference)
    overall = round_score(
        silhouette * calibration.silhouette_weight + angles * calibration.joint_angle_weight
    )
    parts = part_scores(current, reference, calibration.silhouette_scale_px)

    return PoseScore(
        overall_grade=score_to_grade(overall),
        overall_score=overall,
        arm_grade=score_to_grade(parts["arm"]),
        leg_grade=score_to_grade(parts["leg"]),
        body_grade=score_to_grade(parts["body"]),
        arm_score=parts["arm"],
        leg_score=parts["leg"],
        body_score=parts["body"],
        silhouette=round(silhouette, 2),
        joint_angle=round(angles, 2),
    )
