"""Reference pose capture: countdown, snapshot, baseline storage.

``start_capture()`` shows the first digit right away, then each tick shows the
next one. When the countdown runs out the current live keypoints become the
new baseline (if there are any), and the machine goes back to idle.

This class does no locking and owns no timer. The session drives ``tick()``
from its periodic task while holding the session lock.
"""
from __future__ import annotations

from enum import Enum
from typing import Callable, Optional, Sequence

from loguru import logger

from posemirror.vision.keypoints import EMPTY, KeypointSet, Point2D, as_keypoint_set


class CaptureState(str, Enum):
    IDLE = "idle"
    COUNTDOWN = "countdown"


class ReferenceCapture:
    """Countdown state machine that owns the reference baseline."""

    def __init__(
        self,
        countdown_seconds: int = 5,
        *,
        on_countdown: Optional[Callable[[Optional[int]], None]] = None,
        on_captured: Optional[Callable[[KeypointSet], None]] = None,
    ) -> None:
        self.countdown_seconds = max(1, int(countdown_seconds))
        self.on_countdown = on_countdown
        self.on_captured = on_captured
        self.state: CaptureState = CaptureState.IDLE
        self.remaining: int = 0
        self._baseline: KeypointSet = EMPTY
        self.captures: int = 0

    # --- Baseline -------------------------------------------------------

    @property
    def baseline(self) -> KeypointSet:
        """Last committed snapshot; replaced as a whole, never edited in place."""
        return self._baseline

    @property
    def has_baseline(self) -> bool:
        return bool(self._baseline)

    def reset(self) -> None:
        self._baseline = EMPTY
        logger.info("Reference baseline cleared")

    # --- Countdown ------------------------------------------------------

    @property
    def active(self) -> bool:
        return self.state is CaptureState.COUNTDOWN

    def start_capture(self) -> bool:
        if self.state is not CaptureState.IDLE:
            logger.debug("Capture already in progress (remaining={}); start ignored", self.remaining)
            return False
        self.state = CaptureState.COUNTDOWN
        self.remaining = self.countdown_seconds
        logger.info("Reference capture countdown started ({}s)", self.countdown_seconds)
        self._step()
        return True

    def tick(self, live: Sequence[Point2D]) -> bool:
        """Advance one tick; return True when a new baseline was committed."""
        if self.state is not CaptureState.COUNTDOWN:
            return False
        if self.remaining > 0:
            self._step()
            return False
        return self._finish(live)

    def _step(self) -> None:
        self._emit(self.remaining)
        self.remaining -= 1

    def _finish(self, live: Sequence[Point2D]) -> bool:
        self._emit(None)
        self.state = CaptureState.IDLE
        self.remaining = 0
        if not live:
            logger.info("Countdown finished without a detected pose; baseline unchanged")
            return False
        snapshot = as_keypoint_set(live)
        self._baseline = snapshot
        self.captures += 1
        logger.info("Reference pose captured ({} landmarks)", len(snapshot))
        if self.on_captured:
            self.on_captured(snapshot)
        return True

    def _emit(self, value: Optional[int]) -> None:
        if self.on_countdown:
            self.on_countdown(value)

    def snapshot(self) -> dict:
        return {
            "state": self.state.value,
            "remaining": self.remaining,
            "has_baseline": self.has_baseline,
            "captures": self.captures,
        }
