"""Pose estimator adapter: MediaPipe Pose on a worker thread, with a mock mode.

``submit()`` never blocks: it overwrites a single pending slot, so when the
model is slower than the admitted frame rate only the newest frame is
processed. Results go to ``on_keypoints`` from the worker thread; an empty
tuple means nobody was detected.
"""
from __future__ import annotations

import math
import threading
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np
from loguru import logger

try:  # Optional dependencies when running on CI
    import cv2  # type: ignore
except Exception:  # pragma: no cover
    cv2 = None  # type: ignore

try:  # Optional when running in CI
    import mediapipe as mp  # type: ignore
except Exception:  # pragma: no cover
    mp = None  # type: ignore

from posemirror.core.config import Settings, get_settings
from posemirror.vision.keypoints import EMPTY, KeypointSet, Point2D

# Normalized standing pose used by the mock estimator (BlazePose order)
_MOCK_TEMPLATE: Tuple[Tuple[float, float], ...] = (
    (0.500, 0.180),
    (0.510, 0.165), (0.520, 0.165), (0.530, 0.165),
    (0.490, 0.165), (0.480, 0.165), (0.470, 0.165),
    (0.545, 0.175), (0.455, 0.175),
    (0.510, 0.200), (0.490, 0.200),
    (0.570, 0.300), (0.430, 0.300),
    (0.600, 0.420), (0.400, 0.420),
    (0.620, 0.530), (0.380, 0.530),
    (0.630, 0.560), (0.370, 0.560),
    (0.625, 0.565), (0.375, 0.565),
    (0.615, 0.550), (0.385, 0.550),
    (0.540, 0.580), (0.460, 0.580),
    (0.545, 0.740), (0.455, 0.740),
    (0.550, 0.900), (0.450, 0.900),
    (0.545, 0.920), (0.455, 0.920),
    (0.570, 0.930), (0.430, 0.930),
)
_LEFT_ARM = (13, 15, 17, 19, 21)
_RIGHT_ARM = (14, 16, 18, 20, 22)


def _rotate(px: float, py: float, cx: float, cy: float, angle: float) -> Tuple[float, float]:
    s, c = math.sin(angle), math.cos(angle)
    dx, dy = px - cx, py - cy
    return cx + dx * c - dy * s, cy + dx * s + dy * c


def mock_keypoints(width: float = 640.0, height: float = 480.0, phase: float = 0.0, swing: float = 0.6) -> KeypointSet:
    """Synthetic 33-landmark standing figure, arms swung by ``swing * sin(phase)`` radians."""
    pts: List[Tuple[float, float]] = [(x * width, y * height) for x, y in _MOCK_TEMPLATE]
    angle = swing * math.sin(phase)
    for arm, shoulder, sign in ((_LEFT_ARM, 11, -1.0), (_RIGHT_ARM, 12, 1.0)):
        cx, cy = pts[shoulder]
        for idx in arm:
            pts[idx] = _rotate(pts[idx][0], pts[idx][1], cx, cy, sign * angle)
    return tuple(Point2D(float(x), float(y)) for x, y in pts)


class PoseEstimator:
    """Pose estimation collaborator with MediaPipe and a synthetic fallback."""

    def __init__(
        self,
        on_keypoints: Callable[[KeypointSet], None],
        on_error: Optional[Callable[[str], None]] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.on_keypoints = on_keypoints
        self.on_error = on_error
        self._mock: bool = bool(self.settings.vision_mock)
        self._pose = None
        self._initialized: bool = False
        self._image_size: Optional[Tuple[float, float]] = None
        self._pending: Optional[Tuple[np.ndarray, int]] = None
        self._slot_lock = threading.Lock()
        self._wake = threading.Event()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.submitted: int = 0
        self.processed: int = 0
        self.detections: int = 0

    # --- Public API -----------------------------------------------------

    def initialize(self) -> bool:
        if self._initialized:
            return True
        if not self._mock:
            try:
                self._init_mediapipe()
            except Exception as exc:
                message = f"Failed to initialize pose detector: {exc}"
                logger.error(message)
                self._report(message)
                return False
        else:
            logger.info("PoseEstimator running in mock mode (VISION_MOCK=1)")
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="PoseEstimator", daemon=True)
        self._thread.start()
        self._initialized = True
        return True

    def is_ready(self) -> bool:
        return self._initialized and (self._mock or self._pose is not None)

    @property
    def mock(self) -> bool:
        return self._mock

    def update_image_size(self, width: float, height: float) -> None:
        """Override the frame size used to convert normalized landmarks to pixels."""
        self._image_size = (float(width), float(height))

    def submit(self, image: np.ndarray, timestamp_ms: int) -> bool:
        if not self.is_ready():
            return False
        with self._slot_lock:
            self._pending = (image, int(timestamp_ms))
        self.submitted += 1
        self._wake.set()
        return True

    def release(self, timeout: float = 2.0) -> None:
        self._stop.set()
        self._wake.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        self._thread = None
        if self._pose is not None and hasattr(self._pose, "close"):
            try:
                self._pose.close()
            except Exception as exc:  # pragma: no cover
                logger.warning("Error closing pose model: {}", exc)
        self._pose = None
        self._initialized = False
        with self._slot_lock:
            self._pending = None
        logger.info("PoseEstimator released")

    def stats(self) -> dict:
        return {
            "mock": self._mock,
            "ready": self.is_ready(),
            "submitted": self.submitted,
            "processed": self.processed,
            "detections": self.detections,
        }

    # --- Internal helpers -----------------------------------------------

    def _report(self, message: str) -> None:
        if self.on_error:
            self.on_error(message)

    def _init_mediapipe(self) -> None:  # pragma: no cover - hardware path
        if mp is None or cv2 is None:
            raise RuntimeError("mediapipe/opencv not installed")
        self._pose = mp.solutions.pose.Pose(
            static_image_mode=False,
            model_complexity=int(self.settings.model_complexity),
            enable_segmentation=False,
            smooth_landmarks=True,
            min_detection_confidence=float(self.settings.min_detection_confidence),
            min_tracking_confidence=float(self.settings.min_tracking_confidence),
        )

    def _run(self) -> None:
        while not self._stop.is_set():
            if not self._wake.wait(timeout=0.5):
                continue
            self._wake.clear()
            with self._slot_lock:
                item, self._pending = self._pending, None
            if item is None or self._stop.is_set():
                continue
            image, timestamp_ms = item
            try:
                points = self._detect(image, timestamp_ms)
            except Exception as exc:
                logger.warning("Pose detection error: {}", exc)
                self._report(f"Error during pose detection: {exc}")
                continue
            self.processed += 1
            if points:
                self.detections += 1
            if not self._stop.is_set():
                self.on_keypoints(points)

    def _frame_size(self, image: np.ndarray) -> Tuple[float, float]:
        if self._image_size is not None:
            return self._image_size
        h, w = image.shape[:2]
        return float(w), float(h)

    def _detect(self, image: np.ndarray, timestamp_ms: int) -> KeypointSet:
        width, height = self._frame_size(image)
        if self._mock:
            return mock_keypoints(width, height, phase=timestamp_ms / 1000.0)
        return self._detect_mediapipe(image, width, height)  # pragma: no cover

    def _detect_mediapipe(self, image: np.ndarray, width: float, height: float) -> KeypointSet:  # pragma: no cover
        assert cv2 is not None and self._pose is not None
        rgb = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
        results = self._pose.process(rgb)
        if not results or not results.pose_landmarks:
            return EMPTY
        return landmarks_to_points(results.pose_landmarks.landmark, width, height)


def landmarks_to_points(landmarks: Sequence, width: float, height: float) -> KeypointSet:
    """Convert normalized MediaPipe landmarks to pixel-space points."""
    return tuple(Point2D(float(lm.x) * width, float(lm.y) * height) for lm in landmarks)
