"""
Pose data passed from the pose source into the rep engine.

Joint identities use the MediaPipe / ML Kit 33-landmark indices so raw model
output can be mapped without a lookup table. Only the twelve joints the
push-up engine reads are enumerated here.

Coordinates are in frame-pixel space with y growing downward.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, Iterable, Mapping, Optional, Sequence


class Joint(IntEnum):
    """Skeletal joints used for push-up analysis (MediaPipe indices)."""
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12
    LEFT_ELBOW = 13
    RIGHT_ELBOW = 14
    LEFT_WRIST = 15
    RIGHT_WRIST = 16
    LEFT_HIP = 23
    RIGHT_HIP = 24
    LEFT_KNEE = 25
    RIGHT_KNEE = 26
    LEFT_ANKLE = 27
    RIGHT_ANKLE = 28

    @classmethod
    def from_name(cls, name: str) -> "Joint":
        """Look up a joint by snake_case name, e.g. ``left_shoulder``."""
        return cls[name.strip().upper()]


@dataclass(frozen=True)
class Landmark:
    """Single joint position with detection confidence."""
    joint: Joint
    x: float
    y: float
    confidence: float

    def is_confident(self, min_confidence: float) -> bool:
        return self.confidence >= min_confidence


@dataclass
class FramePose:
    """
    All landmarks detected in one frame.

    Any subset of joints may be present. A pose is consumed by a single
    engine tick and not retained.
    """
    landmarks: Dict[Joint, Landmark] = field(default_factory=dict)

    def get(self, joint: Joint) -> Optional[Landmark]:
        return self.landmarks.get(joint)

    @property
    def is_empty(self) -> bool:
        return not self.landmarks

    @classmethod
    def from_landmarks(cls, landmarks: Iterable[Landmark]) -> "FramePose":
        """Build a pose from landmarks; a later duplicate joint replaces an earlier one."""
        return cls(landmarks={lm.joint: lm for lm in landmarks})

    @classmethod
    def from_mapping(
        cls,
        points: Mapping[Joint, Sequence[float]],
    ) -> "FramePose":
        """Build a pose from ``{joint: (x, y, confidence)}``."""
        return cls(landmarks={
            joint: Landmark(joint=joint, x=float(x), y=float(y), confidence=float(conf))
            for joint, (x, y, conf) in points.items()
        })

    @classmethod
    def from_mediapipe(
        cls,
        pose_landmarks: Sequence,
        image_width: int,
        image_height: int,
    ) -> "FramePose":
        """
        Create a FramePose from MediaPipe / ML Kit pose landmarks.

        Args:
            pose_landmarks: Sequence of 33 landmarks, each with normalized
                ``x``/``y`` and a ``visibility`` score (ML Kit's ``likelihood``
                is accepted as well)
            image_width: Frame width in pixels
            image_height: Frame height in pixels

        Returns:
            FramePose with the tracked joints scaled to pixel space. Joints
            beyond the end of ``pose_landmarks`` are left out.
        """
        landmarks: Dict[Joint, Landmark] = {}

        for joint in Joint:
            if joint.value >= len(pose_landmarks):
                continue
            raw = pose_landmarks[joint.value]
            if hasattr(raw, "visibility"):
                conf = raw.visibility
            else:
                conf = getattr(raw, "likelihood", 0.0)
            landmarks[joint] = Landmark(
                joint=joint,
                x=float(raw.x) * image_width,
                y=float(raw.y) * image_height,
                confidence=float(conf),
            )

        return cls(landmarks=landmarks)
