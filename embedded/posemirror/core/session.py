"""PoseSession: owns the session state and serializes every mutation of it.

- Camera frames go through the frame pacer and, when admitted, to the estimator
- Estimator results arrive as messages on an event channel drained by one dispatcher thread
- Dispatcher, countdown ticker, mirror reconciliation and input triggers all take the session lock
- ``stop()`` tears everything down and joins every thread before returning
"""
from __future__ import annotations

import base64
import queue
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

import numpy as np
from loguru import logger

try:  # Optional dependency when running headless tests
    import cv2  # type: ignore
except Exception:  # pragma: no cover
    cv2 = None  # type: ignore

from posemirror.capture.countdown import ReferenceCapture
from posemirror.core.config import Settings, get_settings
from posemirror.core.scheduler import PeriodicTask
from posemirror.gui.display import CAPTURE_SAVED, DisplayState
from posemirror.gui.mirror_state import MirrorStateManager
from posemirror.gui.skeleton import SkeletonDrawing, SkeletonOverlay, compose_preview
from posemirror.vision.camera import CameraSource
from posemirror.vision.estimator import PoseEstimator
from posemirror.vision.evaluator import PoseScore, ScoringCalibration, evaluate
from posemirror.vision.keypoints import EMPTY, KeypointSet, Point2D, as_keypoint_set
from posemirror.vision.pacing import FramePacer

_STOP = object()


@dataclass
class SessionState:
    live_keypoints: KeypointSet = EMPTY
    skeleton_visible: bool = False
    recording: bool = False
    last_score: Optional[PoseScore] = None
    results: int = 0
    started: bool = False
    closed: bool = False


class PoseSession:
    """Coordinates camera, estimator, scoring, capture, mirror and overlay."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        display: Optional[DisplayState] = None,
        camera: Optional[CameraSource] = None,
        estimator: Optional[PoseEstimator] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._lock = threading.RLock()
        self._events: "queue.Queue[Any]" = queue.Queue()
        self._dispatcher: Optional[threading.Thread] = None
        self._countdown_task: Optional[PeriodicTask] = None

        self.state = SessionState(skeleton_visible=bool(self.settings.skeleton_visible_default))
        self.display = display or DisplayState(toast_seconds=self.settings.toast_seconds)
        self.calibration = ScoringCalibration.from_settings(self.settings)
        self.pacer = FramePacer(self.settings.target_fps)
        self.overlay = SkeletonOverlay(visible=self.state.skeleton_visible)
        self.camera = camera or CameraSource(self.on_frame, self.report_error, self.settings)
        self.estimator = estimator or PoseEstimator(self._on_estimator_result, self.report_error, self.settings)
        self.capture = ReferenceCapture(
            self.settings.countdown_seconds,
            on_countdown=self.display.show_countdown,
            on_captured=self._on_captured,
        )
        self.mirror = MirrorStateManager(
            self.camera,
            self.overlay,
            initial=bool(self.settings.mirror_default),
            reconcile_seconds=self.settings.mirror_reconcile_seconds,
            lock=self._lock,
        )
        self.display.show_skeleton_status(self.state.skeleton_visible)

    # --- Lifecycle ------------------------------------------------------

    def start(self) -> bool:
        with self._lock:
            if self.state.closed:
                logger.warning("Session already stopped; create a new one")
                return False
            if self.state.started:
                return True
            self.state.started = True
        self.estimator.initialize()
        self._dispatcher = threading.Thread(target=self._dispatch_loop, name="PoseSessionDispatcher", daemon=True)
        self._dispatcher.start()
        self.camera.start()
        self.mirror.start()
        logger.info("Pose session started (target_fps={} mock={})", self.settings.target_fps, self.settings.vision_mock)
        return True

    def stop(self, timeout: float = 2.0) -> None:
        with self._lock:
            if self.state.closed:
                return
            self.state.closed = True
            task, self._countdown_task = self._countdown_task, None
        self.pacer.close()
        self.camera.stop(timeout=timeout)
        if task:
            task.stop(timeout=timeout)
        self.mirror.stop()
        self.estimator.release(timeout=timeout)
        if self._dispatcher and self._dispatcher.is_alive():
            self._events.put(_STOP)
            self._dispatcher.join(timeout=timeout)
        self._dispatcher = None
        logger.info("Pose session stopped")

    @property
    def running(self) -> bool:
        return self.state.started and not self.state.closed

    # --- Frame path -----------------------------------------------------

    def on_frame(self, image: np.ndarray, timestamp_ms: int) -> None:
        """Camera callback; drops the frame unless the pacer admits it."""
        if self.state.closed:
            return
        admitted = self.pacer.admit(image, timestamp_ms)
        if admitted is None:
            return
        self.estimator.submit(admitted.frame, admitted.timestamp_ms)

    def _on_estimator_result(self, points: KeypointSet) -> None:
        if self.state.closed:
            return
        self._events.put(points)

    def _dispatch_loop(self) -> None:
        while True:
            item = self._events.get()
            if item is _STOP:
                break
            try:
                self.handle_keypoints(item)
            except Exception as exc:
                logger.warning("Keypoint handling failed: {}", exc)

    def drain_events(self) -> int:
        """Apply any queued estimator results on the calling thread."""
        handled = 0
        while True:
            try:
                item = self._events.get_nowait()
            except queue.Empty:
                return handled
            if item is _STOP:
                return handled
            self.handle_keypoints(item)
            handled += 1

    def handle_keypoints(self, points: Sequence[Point2D]) -> Optional[PoseScore]:
        """Apply one estimator result: live set, overlay, and score against the baseline."""
        with self._lock:
            if self.state.closed:
                return None
            live = as_keypoint_set(points)
            self.state.live_keypoints = live
            self.state.results += 1
            self.overlay.update_landmarks(live)
            self.overlay.set_visible(self.state.skeleton_visible)
            baseline = self.capture.baseline
            if not live or not baseline:
                return None
            score = evaluate(live, baseline, self.calibration)
            self.state.last_score = score
        self.display.show_score(score)
        logger.debug("score={} grade={}", score.overall_score, score.overall_grade)
        return score

    # --- Input triggers -------------------------------------------------

    def toggle_skeleton(self) -> bool:
        with self._lock:
            if self.state.closed:
                self._ignored("toggle_skeleton")
                return self.state.skeleton_visible
            self.state.skeleton_visible = not self.state.skeleton_visible
            self.overlay.set_visible(self.state.skeleton_visible)
            visible = self.state.skeleton_visible
        self.display.show_skeleton_status(visible)
        logger.info("Skeleton display {}", "on" if visible else "off")
        return visible

    def start_static_capture(self) -> bool:
        with self._lock:
            if self.state.closed:
                self._ignored("start_static_capture")
                return False
            if not self.capture.start_capture():
                return False
            self._countdown_task = PeriodicTask(
                "CaptureCountdown", self.settings.countdown_tick_seconds, self._countdown_tick
            )
            self._countdown_task.start()
            return True

    def _countdown_tick(self) -> None:
        with self._lock:
            task = self._countdown_task
            if self.state.closed:
                if task:
                    task.stop()
                return
            self.capture.tick(self.state.live_keypoints)
            if not self.capture.active and task:
                task.stop()
                self._countdown_task = None

    def toggle_mirror(self) -> bool:
        with self._lock:
            if self.state.closed:
                self._ignored("toggle_mirror")
                return self.mirror.flag
            return self.mirror.toggle()

    def toggle_recording(self) -> bool:
        """Dynamic capture placeholder: only flips the flag and the status text."""
        with self._lock:
            if self.state.closed:
                self._ignored("toggle_recording")
                return self.state.recording
            self.state.recording = not self.state.recording
            recording = self.state.recording
        self.display.show_recording(recording)
        logger.info("Dynamic recording {}", "started" if recording else "stopped")
        return recording

    def clear_baseline(self) -> None:
        with self._lock:
            self.capture.reset()
            self.state.last_score = None

    def _ignored(self, action: str) -> None:
        logger.debug("Session stopped; {} ignored", action)

    # --- Collaborator notifications -------------------------------------

    def report_error(self, message: str) -> None:
        """Surface a collaborator failure; core state is left untouched."""
        logger.warning("Collaborator error: {}", message)
        self.display.notify(message, level="error")

    def _on_captured(self, baseline: KeypointSet) -> None:
        self.display.notify(CAPTURE_SAVED, level="success")

    # --- Read side ------------------------------------------------------

    def overlay_drawing(self) -> SkeletonDrawing:
        with self._lock:
            return self.overlay.commands()

    def preview_frame(self) -> Optional[np.ndarray]:
        frame = self.camera.latest_frame()
        with self._lock:
            drawing = self.overlay.commands()
            camera_mirrored = self.camera.mirror_transform
        return compose_preview(frame, camera_mirrored, drawing)

    def preview_jpeg_b64(self) -> Optional[str]:
        preview = self.preview_frame()
        if preview is None or cv2 is None:
            return None
        quality = max(30, min(95, int(self.settings.hud_jpeg_quality)))
        success, buffer = cv2.imencode(".jpg", preview, [int(cv2.IMWRITE_JPEG_QUALITY), quality])
        if not success:
            return None
        return base64.b64encode(buffer).decode("ascii")

    def snapshot(self) -> Dict[str, Any]:
        data = self.display.snapshot()
        with self._lock:
            data.update(
                {
                    "skeleton_visible": self.state.skeleton_visible,
                    "recording_active": self.state.recording,
                    "mirror": self.mirror.flag,
                    "capture": self.capture.snapshot(),
                    "live_landmarks": len(self.state.live_keypoints),
                    "running": self.running,
                }
            )
        return data

    def metrics(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "pacing": self.pacer.stats(),
                "estimator": self.estimator.stats(),
                "camera": {"active": self.camera.is_active(), "frames": self.camera.frames},
                "results": self.state.results,
                "mirror": {
                    "flag": self.mirror.flag,
                    "reconciling": self.mirror.reconciling,
                    "corrections": self.mirror.corrections,
                },
                "overlay_redraws": self.overlay.redraws,
            }
