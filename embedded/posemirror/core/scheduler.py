"""PeriodicTask: a cancellable background ticker.

- Calls ``callback`` every ``interval`` seconds on a daemon thread
- ``stop()`` sets the cancellation event and joins the thread, so no tick runs after it returns
- ``stop()`` may be called from inside the callback to end the task after the current tick
"""
from __future__ import annotations

import threading
from typing import Any, Callable, Optional

from loguru import logger


class PeriodicTask:
    def __init__(
        self,
        name: str,
        interval: float,
        callback: Callable[[], Any],
        *,
        run_immediately: bool = False,
    ) -> None:
        self.name = name
        self.interval = max(0.01, float(interval))
        self.callback = callback
        self.run_immediately = run_immediately
        self.ticks: int = 0
        self._thread: Optional[threading.Thread] = None
        self._stop = threading.Event()

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()

    def _run(self) -> None:
        if not self.run_immediately and self._stop.wait(self.interval):
            return
        while not self._stop.is_set():
            self.ticks += 1
            try:
                self.callback()
            except Exception as exc:
                logger.warning("{} tick failed: {}", self.name, exc)
            if self._stop.wait(self.interval):
                break

    def stop(self, timeout: float = 2.0) -> None:
        self._stop.set()
        thread = self._thread
        if thread and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=timeout)

    @property
    def running(self) -> bool:
        return bool(self._thread and self._thread.is_alive() and not self._stop.is_set())
