"""
Per-frame landmark gating.

Two tiers:
- MANDATORY: shoulders, elbows, wrists and hips. Push-up depth and body line
  cannot be judged without them, so any missing, low-confidence or
  non-finite joint rejects the frame.
- OPTIONAL: knees and ankles. Cropped legs are common with phone cameras;
  they are used when visible and silently skipped otherwise.

The validator is the single place that decides which joints downstream code
may read. A ValidatedPose guarantees every mandatory joint is present.
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional, Tuple
import logging
import math

from pushup_counter.cv.pose import FramePose, Joint, Landmark

logger = logging.getLogger(__name__)


UPPER_BODY_JOINTS: Tuple[Joint, ...] = (
    Joint.LEFT_SHOULDER,
    Joint.RIGHT_SHOULDER,
    Joint.LEFT_ELBOW,
    Joint.RIGHT_ELBOW,
    Joint.LEFT_WRIST,
    Joint.RIGHT_WRIST,
)

HIP_JOINTS: Tuple[Joint, ...] = (
    Joint.LEFT_HIP,
    Joint.RIGHT_HIP,
)

LEG_JOINTS: Tuple[Joint, ...] = (
    Joint.LEFT_KNEE,
    Joint.RIGHT_KNEE,
    Joint.LEFT_ANKLE,
    Joint.RIGHT_ANKLE,
)

MANDATORY_JOINTS: FrozenSet[Joint] = frozenset(UPPER_BODY_JOINTS + HIP_JOINTS)


class RejectionReason:
    """Human-readable reasons a frame is rejected."""
    BODY_NOT_DETECTED = "Body not detected"
    UPPER_BODY_NOT_VISIBLE = "Upper body not visible"
    HIPS_NOT_VISIBLE = "Hips not visible"


@dataclass(frozen=True)
class ValidatedPose:
    """Landmarks that passed validation plus the set of joints present."""
    landmarks: Dict[Joint, Landmark]
    present: FrozenSet[Joint]

    def __getitem__(self, joint: Joint) -> Landmark:
        return self.landmarks[joint]

    def has(self, joint: Joint) -> bool:
        return joint in self.present


@dataclass
class ValidationResult:
    """Outcome of validating one frame."""
    is_valid: bool
    message: str = ""
    pose: Optional[ValidatedPose] = None

    @classmethod
    def rejected(cls, message: str) -> "ValidationResult":
        return cls(is_valid=False, message=message)


class LandmarkValidator:
    """Strict on the upper body and hips, lenient on the legs."""

    def __init__(self, min_confidence: float = 0.5):
        if not 0.0 <= min_confidence <= 1.0:
            raise ValueError(f"min_confidence must be within [0, 1], got {min_confidence}")
        self.min_confidence = min_confidence

    def validate(self, frame_pose: Optional[FramePose]) -> ValidationResult:
        """Validate a frame's landmarks, returning accepted joints or a rejection."""
        if frame_pose is None or frame_pose.is_empty:
            return ValidationResult.rejected(RejectionReason.BODY_NOT_DETECTED)

        accepted: Dict[Joint, Landmark] = {}

        for joint in UPPER_BODY_JOINTS:
            lm = self._confident(frame_pose, joint)
            if lm is None:
                logger.debug(f"Rejecting frame: {joint.name} missing or below {self.min_confidence}")
                return ValidationResult.rejected(RejectionReason.UPPER_BODY_NOT_VISIBLE)
            accepted[joint] = lm

        for joint in HIP_JOINTS:
            lm = self._confident(frame_pose, joint)
            if lm is None:
                logger.debug(f"Rejecting frame: {joint.name} missing or below {self.min_confidence}")
                return ValidationResult.rejected(RejectionReason.HIPS_NOT_VISIBLE)
            accepted[joint] = lm

        for joint in LEG_JOINTS:
            lm = self._confident(frame_pose, joint)
            if lm is not None:
                accepted[joint] = lm

        return ValidationResult(
            is_valid=True,
            pose=ValidatedPose(landmarks=accepted, present=frozenset(accepted)),
        )

    def _confident(self, frame_pose: FramePose, joint: Joint) -> Optional[Landmark]:
        lm = frame_pose.get(joint)
        if lm is None or not lm.is_confident(self.min_confidence):
            return None
        # A non-finite coordinate is as good as a missing joint
        if not (math.isfinite(lm.x) and math.isfinite(lm.y)):
            return None
        return lm
