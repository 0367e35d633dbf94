"""Core configuration and constants.

Uses environment variables for configuration. Follows PEP8 and Google style docstrings.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal
import os

from pydantic import BaseModel


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """Application settings loaded from environment variables.

    Attributes:
        app_name: App display name.
        environment: Runtime environment.
        api_host: Host for FastAPI server.
        api_port: Port for FastAPI server.
        log_level: Logging level string.
        target_fps: Analysis cadence admitted by the frame pacer.
        countdown_seconds: Length of the reference capture countdown.
        mirror_reconcile_seconds: Period of the mirror reconciliation task.
        silhouette_weight: Weight of silhouette similarity in the overall score.
        joint_angle_weight: Weight of joint-angle similarity in the overall score.
        silhouette_scale_px: Distance (pixels) at which a point's similarity reaches zero.
    """

    app_name: str = "Pose Mirror"
    environment: Literal["dev", "prod", "test"] = "dev"

    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))

    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_dir: str | None = os.getenv("LOG_DIR")

    # Camera
    camera_index: int = int(os.getenv("CAMERA_INDEX", "0"))
    camera_width: int = int(os.getenv("CAMERA_WIDTH", "640"))
    camera_height: int = int(os.getenv("CAMERA_HEIGHT", "480"))
    camera_fps: int = int(os.getenv("CAMERA_FPS", "30"))
    camera_probe_limit: int = int(os.getenv("CAMERA_PROBE_LIMIT", "4"))
    vision_mock: bool = _env_flag("VISION_MOCK")

    # Pose estimation
    model_complexity: int = int(os.getenv("MODEL_COMPLEXITY", "0"))
    min_detection_confidence: float = float(os.getenv("MIN_DETECTION_CONFIDENCE", "0.5"))
    min_tracking_confidence: float = float(os.getenv("MIN_TRACKING_CONFIDENCE", "0.5"))

    # Frame pacing
    target_fps: int = int(os.getenv("TARGET_FPS", "10"))

    # Reference capture
    countdown_seconds: int = int(os.getenv("COUNTDOWN_SECONDS", "5"))
    countdown_tick_seconds: float = float(os.getenv("COUNTDOWN_TICK_SECONDS", "1.0"))

    # Mirror / overlay
    mirror_default: bool = _env_flag("MIRROR_DEFAULT")
    mirror_reconcile_seconds: float = float(os.getenv("MIRROR_RECONCILE_SECONDS", "1.0"))
    skeleton_visible_default: bool = _env_flag("SKELETON_VISIBLE_DEFAULT")
    hud_jpeg_quality: int = int(os.getenv("HUD_JPEG_QUALITY", "70"))
    toast_seconds: float = float(os.getenv("TOAST_SECONDS", "3.0"))

    # Scoring calibration
    silhouette_weight: float = float(os.getenv("SILHOUETTE_WEIGHT", "0.7"))
    joint_angle_weight: float = float(os.getenv("JOINT_ANGLE_WEIGHT", "0.3"))
    silhouette_scale_px: float = float(os.getenv("SILHOUETTE_SCALE_PX", "100.0"))


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()
