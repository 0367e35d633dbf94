"""In-memory display model written by the session and read by the API and HUD."""
from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Optional

from posemirror.vision.evaluator import PoseScore

SKELETON_ON = "Skeleton: ON"
SKELETON_OFF = "Skeleton: OFF"
RECORDING_TEXT = "Recording..."
CAPTURE_SAVED = "Reference pose saved"


@dataclass
class Toast:
    message: str
    level: str
    expires_at: float
    created_at: float = field(default_factory=time.time)


class DisplayState:
    """Text fields and toasts shown next to the camera preview."""

    def __init__(self, toast_seconds: float = 3.0, max_toasts: int = 5) -> None:
        self.toast_seconds = float(toast_seconds)
        self._lock = threading.Lock()
        self.grade: str = "--"
        self.score_text: str = ""
        self.arm_grade: str = "--"
        self.leg_grade: str = "--"
        self.body_grade: str = "--"
        self.last_score: Optional[PoseScore] = None
        self.countdown_text: str = ""
        self.recording_text: str = ""
        self.skeleton_text: str = SKELETON_OFF
        self._toasts: Deque[Toast] = deque(maxlen=max(1, max_toasts))

    def show_score(self, score: PoseScore) -> None:
        with self._lock:
            self.last_score = score
            self.grade = score.overall_grade
            self.score_text = f"({score.overall_score} pts)"
            self.arm_grade = score.arm_grade
            self.leg_grade = score.leg_grade
            self.body_grade = score.body_grade

    def show_countdown(self, remaining: Optional[int]) -> None:
        with self._lock:
            self.countdown_text = str(remaining) if remaining else ""

    def show_recording(self, recording: bool) -> None:
        with self._lock:
            self.recording_text = RECORDING_TEXT if recording else ""

    def show_skeleton_status(self, visible: bool) -> None:
        with self._lock:
            self.skeleton_text = SKELETON_ON if visible else SKELETON_OFF

    def notify(self, message: str, level: str = "info") -> None:
        now = time.time()
        with self._lock:
            self._toasts.append(Toast(message=message, level=level, expires_at=now + self.toast_seconds))

    def active_toasts(self, now: Optional[float] = None) -> List[Toast]:
        now = time.time() if now is None else now
        with self._lock:
            while self._toasts and self._toasts[0].expires_at < now:
                self._toasts.popleft()
            return [t for t in self._toasts if t.expires_at >= now]

    def snapshot(self) -> Dict[str, Any]:
        toasts = [{"message": t.message, "level": t.level} for t in self.active_toasts()]
        with self._lock:
            return {
                "grade": self.grade,
                "score_text": self.score_text,
                "overall_score": self.last_score.overall_score if self.last_score else None,
                "arm_grade": self.arm_grade,
                "leg_grade": self.leg_grade,
                "body_grade": self.body_grade,
                "countdown": self.countdown_text,
                "recording": self.recording_text,
                "skeleton": self.skeleton_text,
                "toasts": toasts,
            }
