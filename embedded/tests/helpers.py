from __future__ import annotations

import time
from typing import Callable, List

from posemirror.vision.keypoints import LANDMARK_COUNT, Point2D


def blank_pose() -> List[Point2D]:
    return [Point2D(0.0, 0.0) for _ in range(LANDMARK_COUNT)]


def wait_until(predicate: Callable[[], bool], timeout: float = 3.0, interval: float = 0.01) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()
