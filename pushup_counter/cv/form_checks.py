"""
Rule-based form checks run on every accepted frame.

A failed check produces a warning string that the state machine shows in
place of its phase feedback. Checks never reset progress: once the user is in
position, bad form degrades the feedback but reps still count.

Checks run in a fixed order and the first failure wins.
"""

from typing import List, Optional

from pushup_counter.cv.geometry import FeatureSet
from pushup_counter.cv.rep_state_machine import PushupThresholds


class FormWarning:
    """Warning messages for form issues."""
    STRAIGHTEN_BACK = "Straighten Back!"
    FIX_BALANCE = "Fix Balance!"
    HANDS_UNDER_SHOULDERS = "Hands Under Shoulders"


class FormCheck:
    """Base class for per-frame form checks."""

    name: str = "base_check"
    warning: str = ""

    def passes(
        self,
        features: FeatureSet,
        body_angle: float,
        thresholds: PushupThresholds,
    ) -> bool:
        """
        Perform the check.

        Args:
            features: Raw features for this frame
            body_angle: Smoothed body alignment angle
            thresholds: Active thresholds

        Returns:
            True if form is acceptable
        """
        raise NotImplementedError


class BodyAlignmentCheck(FormCheck):
    """Shoulder-hip-leg line should stay close to straight."""

    name = "body_alignment"
    warning = FormWarning.STRAIGHTEN_BACK

    def passes(self, features, body_angle, thresholds):
        # Smoothed angle: hips flicker too much frame to frame
        return body_angle >= thresholds.min_body_alignment


class ArmSymmetryCheck(FormCheck):
    """Both arms should bend together."""

    name = "arm_symmetry"
    warning = FormWarning.FIX_BALANCE

    def passes(self, features, body_angle, thresholds):
        return features.arm_asymmetry <= thresholds.max_arm_asymmetry


class HandPositionCheck(FormCheck):
    """Hands should be roughly under the shoulders."""

    name = "hand_position"
    warning = FormWarning.HANDS_UNDER_SHOULDERS

    def passes(self, features, body_angle, thresholds):
        return features.hands_under_shoulders


DEFAULT_CHECKS: List[FormCheck] = [
    BodyAlignmentCheck(),
    ArmSymmetryCheck(),
    HandPositionCheck(),
]


def first_form_warning(
    features: FeatureSet,
    body_angle: float,
    thresholds: PushupThresholds,
    checks: Optional[List[FormCheck]] = None,
) -> Optional[str]:
    """Return the warning of the first failing check, or None if form is fine."""
    for check in checks if checks is not None else DEFAULT_CHECKS:
        if not check.passes(features, body_angle, thresholds):
            return check.warning
    return None
