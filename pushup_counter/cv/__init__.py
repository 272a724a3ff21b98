"""
Push-up repetition detection engine.

PIPELINE COMPONENTS:
1. LandmarkValidator: Per-frame gating of usable joints (strict upper body + hips, optional legs)
2. Geometry: Elbow angles, body alignment, hand position
3. AngleSmoother: Sliding-window mean over elbow and body angles
4. TrendTracker: Bounded elbow-angle history (trend/range diagnostics)
5. Form checks: Back / balance / hand warnings that never block counting
6. RepStateMachine: Debounced phase tracking and rep counting
7. PushupSession: Owns one engine per session, returns immutable snapshots

Usage:
    from pushup_counter.cv import PushupSession, FramePose

    session = PushupSession()
    for pose in poses:
        snapshot = session.ingest(pose)
        if snapshot:
            print(snapshot.rep_count, snapshot.phase.value, snapshot.feedback_text)
"""

from pushup_counter.cv.pose import Joint, Landmark, FramePose
from pushup_counter.cv.angle_smoother import AngleSmoother
from pushup_counter.cv.trend_tracker import TrendTracker
from pushup_counter.cv.landmark_validator import (
    LandmarkValidator, ValidationResult, ValidatedPose, RejectionReason
)
from pushup_counter.cv.geometry import (
    FeatureSet, angle_between, extract_features
)
from pushup_counter.cv.rep_state_machine import (
    RepStateMachine, PushupPhase, PushupThresholds, FeedbackSeverity, StepResult
)
from pushup_counter.cv.form_checks import FormWarning, first_form_warning
from pushup_counter.cv.session import (
    PushupSession, EngineSnapshot, SessionManager, SessionLimitError
)

__all__ = [
    # Pose input
    "Joint",
    "Landmark",
    "FramePose",

    # Signal utilities
    "AngleSmoother",
    "TrendTracker",

    # Validation
    "LandmarkValidator",
    "ValidationResult",
    "ValidatedPose",
    "RejectionReason",

    # Geometry
    "FeatureSet",
    "angle_between",
    "extract_features",

    # Rep detection
    "RepStateMachine",
    "PushupPhase",
    "PushupThresholds",
    "FeedbackSeverity",
    "StepResult",

    # Form checks
    "FormWarning",
    "first_form_warning",

    # Sessions
    "PushupSession",
    "EngineSnapshot",
    "SessionManager",
    "SessionLimitError",
]
