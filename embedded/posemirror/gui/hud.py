"""HUD for the pose mirror (OpenCV window + CLI).

Window mode runs a session in-process and maps keys onto the input triggers:
``b`` skeleton, ``g`` static capture, ``m`` mirror, ``r`` recording, ``q``/``9`` quit.
CLI mode polls a running API server and prints the display state.
"""
from __future__ import annotations

import argparse
import asyncio
from typing import Any, Dict, Optional

import numpy as np

try:
    import cv2  # type: ignore
except Exception:  # pragma: no cover
    cv2 = None  # type: ignore

from posemirror.core.config import get_settings
from posemirror.core.logging_config import setup_logging
from posemirror.core.session import PoseSession


class HudStyle:
    """Centralised constants for layout and styling."""

    WINDOW = "Pose Mirror"
    FONT = 0  # cv2.FONT_HERSHEY_SIMPLEX
    GRADE_SCALE = 2.4
    TEXT_SCALE = 0.7
    COUNTDOWN_SCALE = 5.0
    TEXT = (255, 255, 255)
    ACCENT = (212, 188, 0)
    OK = (80, 175, 76)
    ERROR = (54, 67, 244)
    PANEL_ALPHA = 0.5
    FRAME_MS = 30

    KEYS = {
        ord("b"): "skeleton",
        ord("g"): "capture",
        ord("m"): "mirror",
        ord("r"): "recording",
    }
    QUIT_KEYS = (ord("q"), ord("9"), 27)


def format_state_line(state: Dict[str, Any]) -> str:
    countdown = state.get("countdown") or "-"
    recording = state.get("recording") or "-"
    return (
        f"[{state.get('grade', '--')}] {state.get('score_text', '')} "
        f"arm={state.get('arm_grade', '--')} leg={state.get('leg_grade', '--')} body={state.get('body_grade', '--')} | "
        f"countdown={countdown} rec={recording} | {state.get('skeleton', '')} mirror={state.get('mirror')}"
    )


def _panel(frame: np.ndarray, x: int, y: int, w: int, h: int) -> None:  # pragma: no cover - GUI only
    roi = frame[y:y + h, x:x + w]
    if roi.size == 0:
        return
    shade = np.zeros_like(roi)
    frame[y:y + h, x:x + w] = cv2.addWeighted(roi, 1.0 - HudStyle.PANEL_ALPHA, shade, HudStyle.PANEL_ALPHA, 0)


def draw_hud(frame: np.ndarray, state: Dict[str, Any]) -> np.ndarray:  # pragma: no cover - GUI only
    height, width = frame.shape[:2]
    _panel(frame, 10, 10, 260, 150)
    cv2.putText(frame, state.get("grade", "--"), (24, 80), HudStyle.FONT, HudStyle.GRADE_SCALE, HudStyle.ACCENT, 4, cv2.LINE_AA)
    cv2.putText(frame, state.get("score_text", ""), (120, 72), HudStyle.FONT, HudStyle.TEXT_SCALE, HudStyle.TEXT, 2, cv2.LINE_AA)
    parts = f"Arm {state.get('arm_grade', '--')}  Leg {state.get('leg_grade', '--')}  Body {state.get('body_grade', '--')}"
    cv2.putText(frame, parts, (24, 120), HudStyle.FONT, HudStyle.TEXT_SCALE, HudStyle.TEXT, 2, cv2.LINE_AA)
    cv2.putText(frame, state.get("skeleton", ""), (24, 148), HudStyle.FONT, 0.55, HudStyle.TEXT, 1, cv2.LINE_AA)

    countdown = state.get("countdown")
    if countdown:
        cv2.putText(frame, countdown, (width // 2 - 40, height // 2 + 40), HudStyle.FONT, HudStyle.COUNTDOWN_SCALE, HudStyle.TEXT, 8, cv2.LINE_AA)
    recording = state.get("recording")
    if recording:
        cv2.putText(frame, recording, (width - 220, 40), HudStyle.FONT, HudStyle.TEXT_SCALE, HudStyle.ERROR, 2, cv2.LINE_AA)

    y = height - 20
    for toast in reversed(state.get("toasts") or []):
        color = HudStyle.ERROR if toast.get("level") == "error" else HudStyle.OK
        cv2.putText(frame, toast.get("message", ""), (20, y), HudStyle.FONT, 0.6, color, 2, cv2.LINE_AA)
        y -= 28
    return frame


class MirrorApp:
    """Local window: in-process session plus keyboard triggers."""

    def __init__(self, session: Optional[PoseSession] = None) -> None:
        self.session = session or PoseSession()

    def handle_key(self, key: int) -> bool:
        """Dispatch one key code; return False when the app should quit."""
        if key in HudStyle.QUIT_KEYS:
            return False
        action = HudStyle.KEYS.get(key)
        if action == "skeleton":
            self.session.toggle_skeleton()
        elif action == "capture":
            self.session.start_static_capture()
        elif action == "mirror":
            self.session.toggle_mirror()
        elif action == "recording":
            self.session.toggle_recording()
        return True

    def run(self) -> None:  # pragma: no cover - GUI only
        if cv2 is None:
            print("OpenCV is not installed. Run in CLI mode with --cli.")
            return
        settings = self.session.settings
        self.session.start()
        try:
            while True:
                preview = self.session.preview_frame()
                if preview is None:
                    preview = np.zeros((settings.camera_height, settings.camera_width, 3), dtype=np.uint8)
                cv2.imshow(HudStyle.WINDOW, draw_hud(preview, self.session.snapshot()))
                key = cv2.waitKey(HudStyle.FRAME_MS) & 0xFF
                if key != 0xFF and not self.handle_key(key):
                    break
        finally:
            self.session.stop()
            cv2.destroyAllWindows()


async def cli_loop(base_url: str, interval: float = 0.5) -> None:  # pragma: no cover - network loop
    import httpx

    base = base_url.rstrip("/")
    async with httpx.AsyncClient(timeout=3) as client:
        while True:
            try:
                state = (await client.get(f"{base}/state")).json().get("data", {})
                print(format_state_line(state))
            except Exception as exc:
                print(f"HUD error: {exc}")
            await asyncio.sleep(interval)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Pose mirror HUD")
    parser.add_argument("--cli", action="store_true", help="Poll a running API server and print its state")
    parser.add_argument("--base-url", default="http://127.0.0.1:8000", help="API base URL")
    return parser


def main() -> None:
    args = build_parser().parse_args()
    setup_logging(get_settings().log_level)
    if args.cli:
        asyncio.run(cli_loop(args.base_url))
    else:
        MirrorApp().run()


if __name__ == "__main__":
    main()
