"""Mirror flag ownership and propagation.

The manager holds the only authoritative mirror flag. Toggling pushes the new
value to the camera preview transform and to the overlay in one step; a
periodic reconciliation re-applies it when either collaborator has drifted.
"""
from __future__ import annotations

import threading
from typing import Optional, Protocol

from loguru import logger

from posemirror.core.scheduler import PeriodicTask


class MirrorTarget(Protocol):
    def set_mirror_transform(self, mirror: bool) -> None: ...

    @property
    def mirror_transform(self) -> bool: ...


class MirrorOverlay(Protocol):
    mirror: bool

    def set_mirror(self, mirror: bool) -> None: ...

    def request_redraw(self) -> None: ...


class MirrorStateManager:
    def __init__(
        self,
        camera: Optional[MirrorTarget],
        overlay: MirrorOverlay,
        *,
        initial: bool = False,
        reconcile_seconds: float = 1.0,
        lock: Optional[threading.RLock] = None,
    ) -> None:
        self.camera = camera
        self.overlay = overlay
        self.reconcile_seconds = float(reconcile_seconds)
        self._flag: bool = bool(initial)
        self._lock = lock or threading.RLock()
        self._task: Optional[PeriodicTask] = None
        self.corrections: int = 0
        self._apply()

    @property
    def flag(self) -> bool:
        return self._flag

    def toggle(self) -> bool:
        with self._lock:
            self._flag = not self._flag
            self._apply()
            logger.info("Mirror mode {}", "on" if self._flag else "off")
            return self._flag

    def set(self, mirror: bool) -> bool:
        with self._lock:
            self._flag = bool(mirror)
            self._apply()
            return self._flag

    def _apply(self) -> None:
        if self.camera is not None:
            self.camera.set_mirror_transform(self._flag)
        self.overlay.set_mirror(self._flag)
        self.overlay.request_redraw()

    def reconcile(self) -> bool:
        """Re-apply the authoritative flag if a collaborator reports another value."""
        with self._lock:
            overlay_drift = bool(self.overlay.mirror) != self._flag
            camera_drift = self.camera is not None and bool(self.camera.mirror_transform) != self._flag
            if not (overlay_drift or camera_drift):
                return False
            self.corrections += 1
            logger.warning(
                "Mirror drift detected (overlay={} camera={}); re-applying mirror={}",
                overlay_drift,
                camera_drift,
                self._flag,
            )
            self._apply()
            return True

    # --- background reconciliation -------------------------------------

    def start(self) -> None:
        if self._task and self._task.running:
            return
        self._task = PeriodicTask("MirrorReconciler", self.reconcile_seconds, self.reconcile)
        self._task.start()

    def stop(self) -> None:
        if self._task:
            self._task.stop()
            self._task = None

    @property
    def reconciling(self) -> bool:
        return bool(self._task and self._task.running)
