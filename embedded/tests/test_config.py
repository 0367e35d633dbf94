from __future__ import annotations

from posemirror.core.config import Settings, _env_flag, get_settings
from posemirror.vision.evaluator import ScoringCalibration


def test_settings_cached():
    assert get_settings() is get_settings()


def test_env_flag(monkeypatch):
    monkeypatch.setenv("POSE_FLAG", "yes")
    assert _env_flag("POSE_FLAG") is True
    monkeypatch.setenv("POSE_FLAG", "off")
    assert _env_flag("POSE_FLAG") is False
    monkeypatch.delenv("POSE_FLAG")
    assert _env_flag("POSE_FLAG") is False


def test_calibration_from_settings():
    calibration = ScoringCalibration.from_settings(
        Settings(silhouette_weight=0.5, joint_angle_weight=0.5, silhouette_scale_px=80)
    )
    assert calibration == ScoringCalibration(0.5, 0.5, 80.0)


def test_defaults():
    s = Settings()
    assert s.target_fps == 10
    assert s.countdown_seconds == 5
    assert s.vision_mock is True
