from __future__ import annotations

import numpy as np
import pytest

from posemirror.gui.skeleton import (
    CONNECTIONS,
    SkeletonOverlay,
    compose_preview,
    paint_skeleton,
    render_skeleton,
)
from posemirror.vision.estimator import mock_keypoints


def test_hidden_or_empty_draws_nothing():
    pose = mock_keypoints()
    assert render_skeleton(pose, visible=False, mirror=False).commands == ()
    assert render_skeleton((), visible=True, mirror=False).commands == ()


def test_full_pose_draws_every_connection_and_joint():
    drawing = render_skeleton(mock_keypoints(), visible=True, mirror=False)
    assert len(CONNECTIONS) == 33
    assert len(drawing.lines) == 33
    assert len(drawing.markers) == 33


def test_short_set_skips_out_of_range_connections():
    drawing = render_skeleton(mock_keypoints()[:13], visible=True, mirror=False)
    # 7 face segments plus the shoulder line
    assert len(drawing.lines) == 8
    assert len(drawing.markers) == 13


def test_mirror_flag_does_not_alter_coordinates():
    pose = mock_keypoints()
    plain = render_skeleton(pose, visible=True, mirror=False)
    mirrored = render_skeleton(pose, visible=True, mirror=True)
    assert mirrored.mirrored is True
    assert [c for c in mirrored.commands] == [c for c in plain.commands]
    assert mirrored.markers[0].center == pose[0]


def test_overlay_tracks_landmarks_and_visibility():
    overlay = SkeletonOverlay()
    overlay.update_landmarks(mock_keypoints())
    assert overlay.commands().commands == ()
    overlay.set_visible(True)
    payload = overlay.commands().to_dict()
    assert payload["mirrored"] is False
    assert {c["kind"] for c in payload["commands"]} == {"line", "marker"}


def test_compose_preview_without_frame():
    assert compose_preview(None, False, render_skeleton(mock_keypoints(), True, False)) is None


def test_painted_mirror_is_horizontal_flip():
    cv2 = pytest.importorskip("cv2")
    pose = mock_keypoints()
    plain, plain_mask = paint_skeleton((480, 640), render_skeleton(pose, True, False))
    mirrored, mirrored_mask = paint_skeleton((480, 640), render_skeleton(pose, True, True))
    assert plain_mask.any()
    assert np.array_equal(mirrored, cv2.flip(plain, 1))
    assert np.array_equal(mirrored_mask, cv2.flip(plain_mask, 1))


def test_compose_preview_flips_camera_frame():
    pytest.importorskip("cv2")
    frame = np.zeros((4, 6, 3), dtype=np.uint8)
    frame[:, 0] = (0, 0, 200)
    empty = render_skeleton((), True, False)
    assert compose_preview(frame, False, empty)[0, 0, 2] == 200
    flipped = compose_preview(frame, True, empty)
    assert flipped[0, -1, 2] == 200
    assert flipped[0, 0, 2] == 0


def test_request_redraw_only_counts_invalidations():
    overlay = SkeletonOverlay(visible=True)
    overlay.update_landmarks(mock_keypoints())
    before = overlay.commands()
    redraws = overlay.redraws
    overlay.request_redraw()
    assert overlay.redraws == redraws + 1
    assert overlay.commands() == before
