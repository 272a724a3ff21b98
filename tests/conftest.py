"""Shared fixtures: synthetic push-up poses with exact joint angles."""

import math
from typing import Callable, Dict, Iterable, Optional

import pytest

from pushup_counter.cv.pose import FramePose, Joint, Landmark


SHOULDER_Y = 200.0
UPPER_ARM_PX = 100.0
FOREARM_PX = 100.0
TORSO_PX = 300.0
LEG_PX = 300.0


def _side(
    x0: float,
    elbow_angle: float,
    body_angle: float,
    legs: str,
    confidence: float,
    prefix: str,
) -> Dict[Joint, Landmark]:
    """Build one side of the body; the arm hangs straight down from the shoulder."""
    def lm(name: str, x: float, y: float) -> Landmark:
        joint = Joint[f"{prefix}_{name}"]
        return Landmark(joint=joint, x=x, y=y, confidence=confidence)

    theta = math.radians(elbow_angle)
    shoulder = (x0, SHOULDER_Y)
    elbow = (x0, SHOULDER_Y + UPPER_ARM_PX)
    wrist = (elbow[0] + FOREARM_PX * math.sin(theta), elbow[1] - FOREARM_PX * math.cos(theta))

    hip = (x0 + TORSO_PX, SHOULDER_Y)
    beta = math.radians(body_angle)
    ankle = (hip[0] - LEG_PX * math.cos(beta), hip[1] + LEG_PX * math.sin(beta))
    knee = ((hip[0] + ankle[0]) / 2, (hip[1] + ankle[1]) / 2)

    points = {
        "SHOULDER": shoulder,
        "ELBOW": elbow,
        "WRIST": wrist,
        "HIP": hip,
    }
    if legs in ("ankle", "both"):
        points["ANKLE"] = ankle
    if legs in ("knee", "both"):
        points["KNEE"] = knee

    landmarks = {}
    for name, (x, y) in points.items():
        point = lm(name, x, y)
        landmarks[point.joint] = point
    return landmarks


def build_pose(
    elbow_angle: float = 170.0,
    left_elbow: Optional[float] = None,
    right_elbow: Optional[float] = None,
    body_angle: float = 180.0,
    legs: str = "both",
    confidence: float = 0.9,
    drop: Iterable[Joint] = (),
    low_confidence: Iterable[Joint] = (),
) -> FramePose:
    """
    Synthetic side-on push-up pose.

    Args:
        elbow_angle: Shoulder-elbow-wrist angle applied to both arms
        left_elbow: Override for the left arm
        right_elbow: Override for the right arm
        body_angle: Shoulder-hip-leg angle (180 = straight plank)
        legs: "both", "ankle", "knee" or "none"
        confidence: Confidence for every joint
        drop: Joints to leave out
        low_confidence: Joints reported with confidence 0.1
    """
    landmarks = {}
    landmarks.update(_side(
        100.0, left_elbow if left_elbow is not None else elbow_angle,
        body_angle, legs, confidence, "LEFT",
    ))
    landmarks.update(_side(
        120.0, right_elbow if right_elbow is not None else elbow_angle,
        body_angle, legs, confidence, "RIGHT",
    ))

    for joint in drop:
        landmarks.pop(joint, None)
    for joint in low_confidence:
        lm = landmarks[joint]
        landmarks[joint] = Landmark(joint=joint, x=lm.x, y=lm.y, confidence=0.1)

    return FramePose(landmarks=landmarks)


@pytest.fixture
def make_pose() -> Callable[..., FramePose]:
    return build_pose


def pose_payload(pose: FramePose, timestamp: Optional[float] = None) -> dict:
    """Serialize a FramePose into the frames endpoint request body."""
    payload = {
        "landmarks": {
            joint.name.lower(): {"x": lm.x, "y": lm.y, "confidence": lm.confidence}
            for joint, lm in pose.landmarks.items()
        }
    }
    if timestamp is not None:
        payload["timestamp"] = timestamp
    return payload


@pytest.fixture
def make_payload() -> Callable[..., dict]:
    return pose_payload
