from __future__ import annotations

import pytest

from posemirror.vision.pacing import FramePacer


def test_first_frame_admitted_then_interval_enforced():
    pacer = FramePacer(target_fps=10)
    admitted = [t for t in (0, 50, 100, 150, 199, 200) if pacer.admit(f"frame-{t}", t) is not None]
    assert admitted == [0, 100, 200]
    assert pacer.admitted == 3
    assert pacer.dropped == 3
    assert pacer.last_admitted_ms == 200


def test_admitted_frame_carries_payload_and_timestamp():
    pacer = FramePacer(10)
    out = pacer.admit("payload", 1234)
    assert out is not None
    assert out.frame == "payload"
    assert out.timestamp_ms == 1234


def test_thirty_fps_source_throttled_to_target():
    pacer = FramePacer(10)
    for k in range(31):
        pacer.admit(k, k * 33)
    assert pacer.admitted <= 10
    assert pacer.admitted + pacer.dropped == 31


def test_closed_pacer_admits_nothing():
    pacer = FramePacer(10)
    pacer.close()
    assert pacer.closed
    assert pacer.admit("frame", 0) is None
    pacer.reset()
    assert pacer.admit("frame", 0) is not None


@pytest.mark.parametrize("fps", [0, -5])
def test_invalid_target_fps(fps):
    with pytest.raises(ValueError):
        FramePacer(fps)
