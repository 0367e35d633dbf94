"""Skeleton overlay: keypoints to draw commands, and OpenCV rasterization.

Draw commands always carry sensor-native coordinates. Mirroring is a property
of the whole drawing (a horizontal flip of the draw surface), applied only when
the drawing is painted.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
from loguru import logger

try:  # Optional dependency when running headless tests
    import cv2  # type: ignore
except Exception:  # pragma: no cover
    cv2 = None  # type: ignore

from posemirror.vision.keypoints import EMPTY, KeypointSet, Point2D, as_keypoint_set


@dataclass(frozen=True)
class SkeletonStyle:
    color: Tuple[int, int, int]  # BGR
    thickness: int


STYLES: Dict[str, SkeletonStyle] = {
    "face": SkeletonStyle((221, 160, 221), 2),
    "torso": SkeletonStyle((255, 255, 255), 4),
    "left_arm": SkeletonStyle((196, 205, 78), 4),
    "right_arm": SkeletonStyle((107, 107, 255), 4),
    "left_leg": SkeletonStyle((0, 200, 0), 4),
    "right_leg": SkeletonStyle((83, 142, 255), 4),
    "joint": SkeletonStyle((0, 215, 255), 6),
}

# (start, end, group) over BlazePose indices
CONNECTIONS: Tuple[Tuple[int, int, str], ...] = (
    (0, 1, "face"),
    (0, 4, "face"),
    (1, 2, "face"),
    (2, 3, "face"),
    (4, 5, "face"),
    (5, 6, "face"),
    (7, 8, "face"),
    (11, 12, "torso"),
    (11, 23, "torso"),
    (12, 24, "torso"),
    (23, 24, "torso"),
    (11, 13, "left_arm"),
    (13, 15, "left_arm"),
    (15, 17, "left_arm"),
    (15, 19, "left_arm"),
    (15, 21, "left_arm"),
    (17, 19, "left_arm"),
    (12, 14, "right_arm"),
    (14, 16, "right_arm"),
    (16, 18, "right_arm"),
    (16, 20, "right_arm"),
    (16, 22, "right_arm"),
    (18, 20, "right_arm"),
    (23, 25, "left_leg"),
    (25, 27, "left_leg"),
    (27, 29, "left_leg"),
    (27, 31, "left_leg"),
    (29, 31, "left_leg"),
    (24, 26, "right_leg"),
    (26, 28, "right_leg"),
    (28, 30, "right_leg"),
    (28, 32, "right_leg"),
    (30, 32, "right_leg"),
)


@dataclass(frozen=True)
class LineCommand:
    start: Point2D
    end: Point2D
    style: str
    kind: str = "line"


@dataclass(frozen=True)
class MarkerCommand:
    center: Point2D
    index: int
    style: str = "joint"
    kind: str = "marker"


DrawCommand = Union[LineCommand, MarkerCommand]


@dataclass(frozen=True)
class SkeletonDrawing:
    commands: Tuple[DrawCommand, ...] = ()
    mirrored: bool = False

    @property
    def lines(self) -> List[LineCommand]:
        return [c for c in self.commands if isinstance(c, LineCommand)]

    @property
    def markers(self) -> List[MarkerCommand]:
        return [c for c in self.commands if isinstance(c, MarkerCommand)]

    def to_dict(self) -> dict:
        out = []
        for cmd in self.commands:
            if isinstance(cmd, LineCommand):
                out.append({
                    "kind": cmd.kind,
                    "style": cmd.style,
                    "start": [cmd.start.x, cmd.start.y],
                    "end": [cmd.end.x, cmd.end.y],
                })
            else:
                out.append({
                    "kind": cmd.kind,
                    "style": cmd.style,
                    "index": cmd.index,
                    "center": [cmd.center.x, cmd.center.y],
                })
        return {"mirrored": self.mirrored, "commands": out}


def render_skeleton(keypoints: Sequence[Point2D], visible: bool, mirror: bool) -> SkeletonDrawing:
    """Map a keypoint set onto the anatomical graph.

    Connections referencing an index beyond the keypoint count are skipped.
    """
    if not visible or not keypoints:
        return SkeletonDrawing(commands=(), mirrored=mirror)
    count = len(keypoints)
    commands: List[DrawCommand] = []
    for start, end, group in CONNECTIONS:
        if start < count and end < count:
            commands.append(LineCommand(keypoints[start], keypoints[end], group))
    for index, point in enumerate(keypoints):
        commands.append(MarkerCommand(point, index))
    return SkeletonDrawing(commands=tuple(commands), mirrored=mirror)


class SkeletonOverlay:
    """Overlay collaborator: latest landmarks plus its own visibility/mirror flags.

    ``mirror`` is what the overlay currently applies; the mirror manager owns
    the authoritative value and pushes it here.
    """

    def __init__(self, *, visible: bool = False, mirror: bool = False) -> None:
        self.visible = bool(visible)
        self.mirror = bool(mirror)
        self.landmarks: KeypointSet = EMPTY
        self.redraws: int = 0

    def update_landmarks(self, landmarks: Sequence[Point2D]) -> None:
        self.landmarks = as_keypoint_set(landmarks)
        self.request_redraw()

    def set_visible(self, visible: bool) -> None:
        self.visible = bool(visible)
        self.request_redraw()

    def set_mirror(self, mirror: bool) -> None:
        self.mirror = bool(mirror)
        logger.debug("Overlay mirror transform set to {}", self.mirror)

    def request_redraw(self) -> None:
        """Mark the overlay dirty.

        Drawing is pull-based: consumers call ``commands()`` on every repaint,
        so this only counts invalidations for the debug metrics.
        """
        self.redraws += 1

    def commands(self) -> SkeletonDrawing:
        return render_skeleton(self.landmarks, self.visible, self.mirror)


def _to_pixel(p: Point2D) -> Tuple[int, int]:
    return int(round(p.x)), int(round(p.y))


def paint_skeleton(shape: Tuple[int, int], drawing: SkeletonDrawing) -> Tuple[np.ndarray, np.ndarray]:
    """Rasterize ``drawing`` on a transparent layer of ``shape`` (height, width).

    Returns ``(layer, mask)``; both are flipped horizontally when the drawing is
    mirrored.
    """
    height, width = int(shape[0]), int(shape[1])
    layer = np.zeros((height, width, 3), dtype=np.uint8)
    mask = np.zeros((height, width), dtype=np.uint8)
    if cv2 is None or not drawing.commands:
        return layer, mask
    for cmd in drawing.commands:
        style = STYLES.get(cmd.style, STYLES["torso"])
        if isinstance(cmd, LineCommand):
            a, b = _to_pixel(cmd.start), _to_pixel(cmd.end)
            cv2.line(layer, a, b, style.color, style.thickness, cv2.LINE_AA)
            cv2.line(mask, a, b, 255, style.thickness, cv2.LINE_AA)
        else:
            c = _to_pixel(cmd.center)
            cv2.circle(layer, c, style.thickness, style.color, thickness=-1, lineType=cv2.LINE_AA)
            cv2.circle(mask, c, style.thickness, 255, thickness=-1, lineType=cv2.LINE_AA)
    if drawing.mirrored:
        layer = cv2.flip(layer, 1)
        mask = cv2.flip(mask, 1)
    return layer, mask


def compose_preview(frame: Optional[np.ndarray], camera_mirrored: bool, drawing: SkeletonDrawing) -> Optional[np.ndarray]:
    """Camera preview with the skeleton layer on top.

    The camera transform and the overlay transform are applied independently,
    so a disagreement between them shows up as a misaligned skeleton.
    """
    if frame is None:
        return None
    preview = frame.copy()
    if camera_mirrored:
        preview = preview[:, ::-1].copy() if cv2 is None else cv2.flip(preview, 1)
    if not drawing.commands:
        return preview
    layer, mask = paint_skeleton(preview.shape[:2], drawing)
    selected = mask > 0
    preview[selected] = layer[selected]
    return preview
