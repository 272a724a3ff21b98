"""Application configuration."""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Pushup Counter"
    debug: bool = False
    api_prefix: str = "/api"
    cors_origins: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Sessions
    max_sessions: int = 100

    # Rep Detection Thresholds
    elbow_up_threshold: float = 160.0  # Good lockout
    elbow_down_threshold: float = 125.0  # Deep enough without forcing chest-to-floor
    frames_required: int = 3  # Consecutive frames to confirm a posture
    min_rep_interval_ms: float = 600.0  # Prevents double counting

    # Form Checks
    min_body_alignment: float = 135.0  # Allows some sag / camera distortion
    max_arm_asymmetry: float = 45.0
    hand_tolerance_px: float = 100.0  # Wrists may sit this far above the shoulder line

    # Pose Input
    min_landmark_confidence: float = 0.5

    # Smoothing
    smoothing_window_size: int = 5
    trend_history_size: int = 15

    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
