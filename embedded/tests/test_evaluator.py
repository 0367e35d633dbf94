from __future__ import annotations

import math

import pytest

from posemirror.vision.estimator import mock_keypoints
from posemirror.vision.evaluator import (
    PoseScore,
    ScoringCalibration,
    evaluate,
    DEFAULT_CALIBRATION,
    joint_angle,
    joint_angle_similarity,
    round_score,
    score_to_grade,
    silhouette_similarity,
    triplet_similarity,
    truncate_score,
)
from posemirror.vision.keypoints import Point2D

from helpers import blank_pose


def test_identical_poses_score_full_marks():
    pose = mock_keypoints()
    score = evaluate(pose, pose)
    assert score.overall_score == 100
    assert score.overall_grade == "A"
    assert (score.arm_grade, score.leg_grade, score.body_grade) == ("A", "A", "A")


def test_translation_does_not_change_score():
    pose = mock_keypoints()
    shifted = tuple(Point2D(p.x + 50, p.y + 30) for p in pose)
    assert evaluate(shifted, pose).overall_score == 100


@pytest.mark.parametrize("current_len,reference_len", [(32, 33), (33, 0), (0, 0)])
def test_incomplete_sets_get_worst_grade(current_len, reference_len):
    pose = mock_keypoints()
    score = evaluate(pose[:current_len], pose[:reference_len])
    assert score == PoseScore.worst()
    assert score.overall_score == 0
    assert score.overall_grade == "E"


@pytest.mark.parametrize(
    "value,grade",
    [(100, "A"), (90, "A"), (89, "B"), (80, "B"), (79, "C"), (70, "C"), (69, "D"), (60, "D"), (59, "E"), (0, "E")],
)
def test_grade_boundaries(value, grade):
    assert score_to_grade(value) == grade


def test_round_score_half_up_and_clamped():
    assert round_score(89.5) == 90
    assert round_score(89.49) == 89
    assert round_score(150.0) == 100
    assert round_score(-3.0) == 0


def test_joint_angle_basic_shapes():
    origin = Point2D(0, 0)
    assert joint_angle(Point2D(1, 0), origin, Point2D(0, 1)) == pytest.approx(90.0)
    assert joint_angle(Point2D(-1, 0), origin, Point2D(1, 0)) == pytest.approx(180.0)
    assert joint_angle(Point2D(1, 0), origin, Point2D(2, 0)) == pytest.approx(0.0)


def test_joint_angle_zero_length_bone_is_zero():
    assert joint_angle(Point2D(0, 0), Point2D(0, 0), Point2D(1, 1)) == 0.0


def test_joint_angle_is_symmetric():
    a, b, c = Point2D(3, 1), Point2D(0, 0), Point2D(-1, 4)
    assert joint_angle(a, b, c) == pytest.approx(joint_angle(c, b, a))


def test_silhouette_formula():
    reference = [Point2D(0, 0), Point2D(100, 0)]
    current = [Point2D(0, 0), Point2D(200, 0)]
    # centered: [-50, 50] vs [-100, 100] -> each point 50 px away -> 0.5
    assert silhouette_similarity(current, reference, 100.0) == pytest.approx(50.0)
    assert silhouette_similarity(current, reference, 25.0) == pytest.approx(0.0)


def test_triplet_similarity_right_angle_is_half():
    reference = blank_pose()
    current = blank_pose()
    reference[11], reference[13], reference[15] = Point2D(0, -10), Point2D(0, 0), Point2D(0, 10)
    current[11], current[13], current[15] = Point2D(0, -10), Point2D(0, 0), Point2D(10, 0)
    assert triplet_similarity(current, reference, (11, 13, 15)) == pytest.approx(0.5)


def test_triplet_out_of_range_is_skipped():
    pose = mock_keypoints()
    assert triplet_similarity(pose[:12], pose, (11, 13, 15)) is None


def _bent_left_arm(pose):
    current = list(pose)
    elbow = current[13]
    current[15] = Point2D(elbow.x + 60.0, elbow.y)
    return tuple(current)


def test_arm_change_only_affects_arm_and_body():
    reference = mock_keypoints()
    current = _bent_left_arm(reference)
    score = evaluate(current, reference)
    assert score.leg_score == 100
    assert score.leg_grade == "A"
    assert score.arm_score < 100
    assert score.body_score < 100
    assert score.overall_score < 100


def test_calibration_weights_are_applied():
    reference = mock_keypoints()
    current = _bent_left_arm(reference)
    only_silhouette = evaluate(current, reference, ScoringCalibration(1.0, 0.0, 100.0))
    only_angles = evaluate(current, reference, ScoringCalibration(0.0, 1.0, 100.0))
    assert only_silhouette.overall_score == round_score(only_silhouette.silhouette)
    assert only_angles.overall_score == round_score(only_angles.joint_angle)


def test_scores_stay_in_range_for_unrelated_poses():
    reference = mock_keypoints()
    current = tuple(Point2D(p.y * 3, p.x * 0.2) for p in reference)
    score = evaluate(current, reference)
    assert 0 <= score.overall_score <= 100
    for value in (score.arm_score, score.leg_score, score.body_score):
        assert 0 <= value <= 100


def test_truncate_score_drops_fraction():
    assert truncate_score(89.99) == 89
    assert truncate_score(90.0) == 90
    assert truncate_score(101.0) == 100
    assert truncate_score(-0.5) == 0


def test_part_scores_are_truncated_not_rounded():
    reference = blank_pose()
    current = blank_pose()
    reference[11], reference[13], reference[15] = Point2D(0, -10), Point2D(0, 0), Point2D(0, 10)
    # left elbow bent 37.08 degrees -> arm similarity (0.794 + 1.0) / 2 = 89.7
    theta = math.radians(37.08)
    current[11], current[13] = Point2D(0, -10), Point2D(0, 0)
    current[15] = Point2D(10 * math.sin(theta), 10 * math.cos(theta))
    score = evaluate(current, reference)
    assert score.arm_score == 89
    assert score.arm_grade == "B"
    assert score.leg_score == 100


def test_default_blend_of_silhouette_and_angles():
    reference = mock_keypoints()
    current = _bent_left_arm(reference)
    silhouette = silhouette_similarity(current, reference, DEFAULT_CALIBRATION.silhouette_scale_px)
    angles = joint_angle_similarity(current, reference)
    score = evaluate(current, reference)
    assert score.overall_score == round_score(0.7 * silhouette + 0.3 * angles)
    assert score.overall_grade == score_to_grade(score.overall_score)
