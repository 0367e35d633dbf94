"""Frame pacing: throttle an uncontrolled frame source to the analysis cadence.

Frames arriving faster than the target rate are dropped, never queued, so the
producer does not block on the estimator.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

FrameT = TypeVar("FrameT")


@dataclass(frozen=True)
class AdmittedFrame(Generic[FrameT]):
    frame: FrameT
    timestamp_ms: int


class FramePacer:
    """Deterministic admission gate keyed on arrival timestamps (milliseconds)."""

    def __init__(self, target_fps: float = 10) -> None:
        if target_fps <= 0:
            raise ValueError("target_fps must be positive")
        self.target_fps = float(target_fps)
        self.frame_interval_ms: float = 1000.0 / self.target_fps
        self.last_admitted_ms: Optional[int] = None
        self.admitted: int = 0
        self.dropped: int = 0
        self._closed: bool = False

    def admit(self, frame: Any, arrival_ms: int) -> Optional[AdmittedFrame]:
        if self._closed:
            return None
        if self.last_admitted_ms is not None and arrival_ms - self.last_admitted_ms < self.frame_interval_ms:
            self.dropped += 1
            return None
        self.last_admitted_ms = int(arrival_ms)
        self.admitted += 1
        return AdmittedFrame(frame=frame, timestamp_ms=int(arrival_ms))

    def reset(self) -> None:
        self.last_admitted_ms = None
        self.admitted = 0
        self.dropped = 0
        self._closed = False

    def close(self) -> None:
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def stats(self) -> dict:
        return {
            "target_fps": self.target_fps,
            "frame_interval_ms": round(self.frame_interval_ms, 3),
            "admitted": self.admitted,
            "dropped": self.dropped,
            "last_admitted_ms": self.last_admitted_ms,
        }
