"""Keypoint data types shared by scoring, capture and drawing.

Coordinates are in pixel space of the source frame and are never mirrored:
mirroring is a presentation concern handled by the overlay and camera preview.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Sequence, Tuple

# MediaPipe BlazePose emits 33 landmarks per person
LANDMARK_COUNT = 33

LEFT_SHOULDER = 11
RIGHT_SHOULDER = 12
LEFT_ELBOW = 13
RIGHT_ELBOW = 14
LEFT_WRIST = 15
RIGHT_WRIST = 16
LEFT_HIP = 23
RIGHT_HIP = 24
LEFT_KNEE = 25
RIGHT_KNEE = 26
LEFT_ANKLE = 27
RIGHT_ANKLE = 28


@dataclass(frozen=True)
class Point2D:
    """A single 2D keypoint in pixel coordinates."""

    x: float
    y: float


# One frame's body geometry, index-addressed by the BlazePose schema.
KeypointSet = Tuple[Point2D, ...]

EMPTY: KeypointSet = ()


def as_keypoint_set(points: Iterable) -> KeypointSet:
    """Return an immutable snapshot of ``points``.

    Accepts ``Point2D`` instances or ``(x, y)`` pairs.
    """
    out: List[Point2D] = []
    for p in points:
        if isinstance(p, Point2D):
            out.append(p)
        else:
            x, y = p[0], p[1]
            out.append(Point2D(float(x), float(y)))
    return tuple(out)


def is_complete(points: Sequence[Point2D]) -> bool:
    return len(points) >= LANDMARK_COUNT


def to_pairs(points: Sequence[Point2D]) -> List[List[float]]:
    return [[p.x, p.y] for p in points]


def load_keypoints(path: Path) -> KeypointSet:
    """Load a keypoint set from JSON.

    Accepted layouts: a list of ``[x, y]`` pairs, a list of ``{"x", "y"}``
    objects, or an object with a ``"keypoints"`` key holding either.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("keypoints", [])
    pairs = []
    for item in data:
        if isinstance(item, dict):
            pairs.append((item["x"], item["y"]))
        else:
            pairs.append((item[0], item[1]))
    return as_keypoint_set(pairs)


def dump_keypoints(points: Sequence[Point2D], path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps({"keypoints": to_pairs(points)}, indent=2), encoding="utf-8")
    return path
