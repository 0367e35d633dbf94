"""Camera source: OpenCV capture thread with device fallback and a mock mode.

Frames are delivered raw (never mirrored) to ``on_frame(image, timestamp_ms)``.
The mirror flag only changes the preview transform reported by
``mirror_transform``; the preview composer applies it.
"""
from __future__ import annotations

import math
import threading
import time
from typing import Callable, List, Optional, Sequence

import numpy as np
from loguru import logger

try:  # Optional dependencies when running on CI
    import cv2  # type: ignore
except Exception:  # pragma: no cover
    cv2 = None  # type: ignore

from posemirror.core.config import Settings, get_settings


def monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


def select_camera_index(preferred: Optional[int], available: Sequence[int]) -> Optional[int]:
    """Pick the preferred device if present, else the first available one."""
    if not available:
        return None
    if preferred is not None and preferred in available:
        return preferred
    return available[0]


class CameraSource:
    """Delivers frames from a webcam (or synthetic frames) on a producer thread."""

    def __init__(
        self,
        on_frame: Callable[[np.ndarray, int], None],
        on_error: Optional[Callable[[str], None]] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.on_frame = on_frame
        self.on_error = on_error
        self._mirror: bool = False
        self._mock: bool = bool(self.settings.vision_mock or cv2 is None)
        self._cap = None
        self._device_index: Optional[int] = None
        self._thread: Optional[threading.Thread] = None
        self._stop = threading.Event()
        self._latest: Optional[np.ndarray] = None
        self._latest_lock = threading.Lock()
        self._mock_phase: float = 0.0
        self.frames: int = 0

    # --- Mirror transform ------------------------------------------------

    def set_mirror_transform(self, mirror: bool) -> None:
        self._mirror = bool(mirror)
        logger.debug("Camera preview transform scaleX={}", -1 if self._mirror else 1)

    @property
    def mirror_transform(self) -> bool:
        return self._mirror

    # --- Device selection -------------------------------------------------

    def list_devices(self) -> List[int]:  # pragma: no cover - hardware path
        if self._mock:
            return [0]
        found: List[int] = []
        for idx in range(max(1, int(self.settings.camera_probe_limit))):
            cap = cv2.VideoCapture(idx)
            try:
                if cap is not None and cap.isOpened():
                    found.append(idx)
            finally:
                if cap is not None:
                    cap.release()
        logger.info("Available cameras: {}", found)
        return found

    @property
    def device_index(self) -> Optional[int]:
        return self._device_index

    # --- Lifecycle -------------------------------------------------------

    def start(self) -> bool:
        if self._thread and self._thread.is_alive():
            return True
        if not self._mock:
            try:
                self._open_device()
            except Exception as exc:  # pragma: no cover - hardware path
                message = f"Failed to start camera: {exc}"
                logger.error(message)
                self._report(message)
                return False
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="CameraSource", daemon=True)
        self._thread.start()
        logger.info("Camera started (mock={} device={})", self._mock, self._device_index)
        return True

    def stop(self, timeout: float = 2.0) -> None:
        self._stop.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        self._thread = None
        if self._cap is not None:  # pragma: no cover - hardware path
            try:
                self._cap.release()
            except Exception as exc:
                logger.warning("Error releasing camera: {}", exc)
            self._cap = None
        logger.info("Camera stopped")

    def is_active(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def latest_frame(self) -> Optional[np.ndarray]:
        with self._latest_lock:
            return self._latest

    def _report(self, message: str) -> None:
        if self.on_error:
            self.on_error(message)

    def _open_device(self) -> None:  # pragma: no cover - hardware path
        assert cv2 is not None
        index = select_camera_index(self.settings.camera_index, self.list_devices())
        if index is None:
            raise RuntimeError("No available camera found")
        cap = cv2.VideoCapture(index)
        if not cap or not cap.isOpened():
            raise RuntimeError(f"Camera {index} could not be opened")
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, int(self.settings.camera_width))
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, int(self.settings.camera_height))
        cap.set(cv2.CAP_PROP_FPS, int(self.settings.camera_fps))
        # Keep only the latest frame in the driver buffer
        try:
            cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)
        except Exception:
            pass
        self._cap = cap
        self._device_index = index

    def _run(self) -> None:
        period = 1.0 / max(1, int(self.settings.camera_fps))
        while not self._stop.is_set():
            t0 = time.perf_counter()
            frame = self._read()
            if frame is not None:
                with self._latest_lock:
                    self._latest = frame
                self.frames += 1
                try:
                    self.on_frame(frame, monotonic_ms())
                except Exception as exc:
                    logger.warning("Frame handler failed: {}", exc)
            if self._mock:
                remain = period - (time.perf_counter() - t0)
                if remain > 0 and self._stop.wait(remain):
                    break

    def _read(self) -> Optional[np.ndarray]:
        if self._mock:
            return self._mock_frame()
        ok, frame = self._cap.read()  # pragma: no cover - hardware path
        if not ok:  # pragma: no cover
            logger.warning("Camera read failed")
            self._stop.wait(0.1)
            return None
        return frame  # pragma: no cover

    def _mock_frame(self) -> np.ndarray:
        self._mock_phase = (self._mock_phase + 0.05) % (2 * math.pi)
        height, width = int(self.settings.camera_height), int(self.settings.camera_width)
        frame = np.zeros((height, width, 3), dtype=np.uint8)
        shade = int(40 + 30 * (math.sin(self._mock_phase) + 1))
        frame[:, :] = (shade, 25, 25)
        # Left edge marker makes the preview orientation visible
        frame[:, : max(1, width // 40)] = (0, 0, 200)
        return frame
