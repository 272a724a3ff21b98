"""
Geometric feature extraction for push-up analysis.

All angles are unsigned interior angles in degrees within [0, 180], where
180 means the three points are in a straight line.
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from pushup_counter.cv.landmark_validator import ValidatedPose
from pushup_counter.cv.pose import Joint, Landmark


# Used when neither ankle nor knee is visible on a side
PERFECT_ALIGNMENT = 180.0

DEFAULT_HAND_TOLERANCE_PX = 100.0

_EPS = 1e-9


@dataclass(frozen=True)
class FeatureSet:
    """Raw (unsmoothed) per-frame features."""
    left_elbow_angle: float
    right_elbow_angle: float
    body_angle: float
    hands_under_shoulders: bool

    @property
    def elbow_angle(self) -> float:
        """Mean of both elbow angles."""
        return (self.left_elbow_angle + self.right_elbow_angle) / 2

    @property
    def arm_asymmetry(self) -> float:
        """Absolute left/right elbow angle difference."""
        return abs(self.left_elbow_angle - self.right_elbow_angle)


def angle_between(a: Landmark, mid: Landmark, b: Landmark) -> float:
    """
    Calculate the angle a-mid-b (at ``mid``) in degrees.

    Uses the difference of the two ray directions, folding reflex angles back
    into [0, 180]. Returns 0.0 when ``a`` or ``b`` coincides with ``mid``,
    since the ray direction is undefined.
    """
    ray_a = np.array([a.x - mid.x, a.y - mid.y], dtype=float)
    ray_b = np.array([b.x - mid.x, b.y - mid.y], dtype=float)

    if np.linalg.norm(ray_a) < _EPS or np.linalg.norm(ray_b) < _EPS:
        return 0.0

    radians = np.arctan2(ray_b[1], ray_b[0]) - np.arctan2(ray_a[1], ray_a[0])
    degrees = abs(float(np.degrees(radians)))
    if degrees > 180.0:
        degrees = 360.0 - degrees
    return degrees


def elbow_angles(pose: ValidatedPose) -> Tuple[float, float]:
    """Shoulder-elbow-wrist angle for the (left, right) arm."""
    left = angle_between(
        pose[Joint.LEFT_SHOULDER], pose[Joint.LEFT_ELBOW], pose[Joint.LEFT_WRIST]
    )
    right = angle_between(
        pose[Joint.RIGHT_SHOULDER], pose[Joint.RIGHT_ELBOW], pose[Joint.RIGHT_WRIST]
    )
    return left, right


def _side_alignment(
    pose: ValidatedPose,
    shoulder: Joint,
    hip: Joint,
    knee: Joint,
    ankle: Joint,
) -> float:
    # Prefer the full shoulder-hip-ankle line, fall back to the knee
    if pose.has(ankle):
        return angle_between(pose[shoulder], pose[hip], pose[ankle])
    if pose.has(knee):
        return angle_between(pose[shoulder], pose[hip], pose[knee])
    return PERFECT_ALIGNMENT


def body_alignment_angle(pose: ValidatedPose) -> float:
    """
    Average shoulder-hip-leg angle across both sides.

    180 is a straight plank; sagging or piking hips lower the value.
    """
    left = _side_alignment(
        pose, Joint.LEFT_SHOULDER, Joint.LEFT_HIP, Joint.LEFT_KNEE, Joint.LEFT_ANKLE
    )
    right = _side_alignment(
        pose, Joint.RIGHT_SHOULDER, Joint.RIGHT_HIP, Joint.RIGHT_KNEE, Joint.RIGHT_ANKLE
    )
    return (left + right) / 2


def hands_under_shoulders(
    pose: ValidatedPose,
    tolerance_px: float = DEFAULT_HAND_TOLERANCE_PX,
) -> bool:
    """
    Check the wrists are not raised well above the shoulder line.

    Image y grows downward, so the mean wrist y must stay greater than the
    mean shoulder y minus the tolerance.
    """
    shoulder_y = (pose[Joint.LEFT_SHOULDER].y + pose[Joint.RIGHT_SHOULDER].y) / 2
    wrist_y = (pose[Joint.LEFT_WRIST].y + pose[Joint.RIGHT_WRIST].y) / 2
    return wrist_y > shoulder_y - tolerance_px


def extract_features(
    pose: ValidatedPose,
    hand_tolerance_px: float = DEFAULT_HAND_TOLERANCE_PX,
) -> FeatureSet:
    """Compute every per-frame feature the rep engine consumes."""
    left, right = elbow_angles(pose)
    return FeatureSet(
        left_elbow_angle=left,
        right_elbow_angle=right,
        body_angle=body_alignment_angle(pose),
        hands_under_shoulders=hands_under_shoulders(pose, hand_tolerance_px),
    )
