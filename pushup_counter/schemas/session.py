"""Session schemas."""

from typing import Dict, Optional
from pydantic import BaseModel, Field, field_validator

from pushup_counter.cv.pose import FramePose, Joint, Landmark
from pushup_counter.cv.rep_state_machine import FeedbackSeverity, PushupPhase


class LandmarkIn(BaseModel):
    """A single joint position in frame-pixel space."""
    x: float = Field(..., allow_inf_nan=False)
    y: float = Field(..., allow_inf_nan=False)
    confidence: float = Field(..., ge=0.0, le=1.0)


class FrameRequest(BaseModel):
    """Schema for submitting one frame's pose."""
    timestamp: Optional[float] = Field(
        None, description="Monotonic timestamp in seconds; server clock if omitted"
    )
    landmarks: Dict[str, LandmarkIn] = Field(
        default_factory=dict,
        description="Joint name (e.g. left_shoulder) to position and confidence",
    )

    @field_validator("landmarks")
    @classmethod
    def validate_joint_names(cls, v: Dict[str, LandmarkIn]) -> Dict[str, LandmarkIn]:
        valid_names = [j.name.lower() for j in Joint]
        for name in v:
            if name.strip().lower() not in valid_names:
                raise ValueError(f"Unknown joint '{name}'. Must be one of: {valid_names}")
        return v

    def to_frame_pose(self) -> FramePose:
        return FramePose.from_landmarks(
            Landmark(joint=Joint.from_name(name), x=lm.x, y=lm.y, confidence=lm.confidence)
            for name, lm in self.landmarks.items()
        )


class SnapshotResponse(BaseModel):
    """Schema for the engine view after a tick."""
    rep_count: int
    phase: PushupPhase
    feedback_text: str
    feedback_severity: FeedbackSeverity
    elbow_angle_deg: float
    body_angle_deg: float
    arm_asymmetry_deg: float

    # Diagnostics
    frames_extended: int
    frames_flexed: int
    elbow_trend: Optional[float] = None
    elbow_range: Optional[float] = None
    rep_counted: bool = False

    class Config:
        from_attributes = True


class SessionResponse(BaseModel):
    """Schema for a newly created session."""
    session_id: str
    snapshot: SnapshotResponse
