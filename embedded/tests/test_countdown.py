from __future__ import annotations

from posemirror.capture.countdown import CaptureState, ReferenceCapture
from posemirror.vision.estimator import mock_keypoints
from posemirror.vision.keypoints import EMPTY


def _capture():
    shown = []
    captured = []
    cap = ReferenceCapture(5, on_countdown=shown.append, on_captured=captured.append)
    return cap, shown, captured


def test_countdown_sequence_and_capture_on_fifth_tick():
    cap, shown, captured = _capture()
    live = mock_keypoints()
    assert cap.start_capture() is True
    assert shown == [5]
    for _ in range(4):
        assert cap.tick(live) is False
    assert cap.active
    assert cap.tick(live) is True
    assert shown == [5, 4, 3, 2, 1, None]
    assert cap.state is CaptureState.IDLE
    assert cap.baseline == live
    assert captured == [live]
    assert cap.captures == 1


def test_start_ignored_while_counting_down():
    cap, shown, _ = _capture()
    cap.start_capture()
    cap.tick(EMPTY)
    assert cap.start_capture() is False
    assert shown == [5, 4]
    assert cap.remaining == 3


def test_empty_live_set_keeps_previous_baseline():
    cap, shown, captured = _capture()
    first = mock_keypoints(phase=0.0)
    cap.start_capture()
    for _ in range(5):
        cap.tick(first)
    assert cap.baseline == first

    cap.start_capture()
    for _ in range(5):
        cap.tick(EMPTY)
    assert cap.baseline == first
    assert cap.captures == 1
    assert len(captured) == 1
    assert cap.state is CaptureState.IDLE
    assert shown[-1] is None


def test_baseline_is_a_snapshot():
    cap, _, _ = _capture()
    live = list(mock_keypoints())
    cap.start_capture()
    for _ in range(5):
        cap.tick(live)
    live.clear()
    assert len(cap.baseline) == 33


def test_tick_when_idle_is_noop_and_reset_clears():
    cap, shown, _ = _capture()
    assert cap.tick(mock_keypoints()) is False
    assert shown == []
    cap.start_capture()
    for _ in range(5):
        cap.tick(mock_keypoints())
    assert cap.has_baseline
    cap.reset()
    assert not cap.has_baseline
    assert cap.snapshot()["state"] == "idle"
