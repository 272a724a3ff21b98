"""
Push-up rep counting state machine.

Turns a stream of smoothed elbow angles into debounced rep events.

PHASES:
    NOT_IN_POSITION -> UP -> GOING_DOWN -> DOWN -> GOING_UP -> UP ...

DEBOUNCING:
- A posture (extended / flexed) is only acted on once it has held for
  ``frames_required`` consecutive frames.
- In the dead zone between thresholds both counters decay by one instead of
  resetting, so a single noisy frame does not erase accumulated confidence.

COUNTING:
A rep is counted on the return to UP only if the cycle reached the bottom
(confirmed flexion) AND at least ``min_rep_interval_ms`` has passed since the
previous counted rep. A timestamp earlier than the previous rep (the
caller changed clocks) does not hold the rep back.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional
import logging

logger = logging.getLogger(__name__)


class PushupPhase(Enum):
    """Motion phase of the current rep cycle."""
    NOT_IN_POSITION = "not_in_position"
    UP = "up"                  # Arms extended (top)
    GOING_DOWN = "going_down"  # Descending
    DOWN = "down"              # Arms bent (bottom)
    GOING_UP = "going_up"      # Ascending


class FeedbackSeverity(Enum):
    """How the presentation layer should style the feedback text."""
    NEUTRAL = "neutral"
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    DANGER = "danger"


class Feedback:
    """Feedback messages shown to the user."""
    DEFAULT = "Get into pushup position"
    START_POSITION = "Get into start position"
    STARTED_UP = "Good! Now go down"
    STARTED_DOWN = "Push up!"
    GOOD_DEPTH = "Good depth! Push up!"
    GOING_DOWN = "Going down..."
    REACHED_BOTTOM = "Great! Now push up!"
    GO_LOWER = "Go lower next time!"
    PUSHING_UP = "Push! Push!"
    FULL_EXTENSION = "Full extension up!"

    @staticmethod
    def rep_done(count: int, from_phase: PushupPhase) -> str:
        if from_phase == PushupPhase.DOWN:
            return f"✓ {count} - Go again!"
        return f"✓ {count} - Great form!"


@dataclass(frozen=True)
class PushupThresholds:
    """
    Thresholds for push-up detection and form checks.

    Elbow thresholds:
    - 160° is a good lockout
    - 125° is deep enough to count without forcing chest-to-floor
    Body alignment (shoulder-hip-ankle) of 135° allows for some sag and
    camera angle distortion.
    """
    elbow_up_threshold: float = 160.0
    elbow_down_threshold: float = 125.0
    min_body_alignment: float = 135.0
    max_arm_asymmetry: float = 45.0

    # Consecutive frames required to confirm a posture
    frames_required: int = 3

    # Minimum time between counted reps (prevents double counting)
    min_rep_interval_ms: float = 600.0

    def __post_init__(self):
        if self.elbow_down_threshold >= self.elbow_up_threshold:
            raise ValueError(
                f"elbow_down_threshold ({self.elbow_down_threshold}) must be below "
                f"elbow_up_threshold ({self.elbow_up_threshold})"
            )
        if self.frames_required < 1:
            raise ValueError(f"frames_required must be at least 1, got {self.frames_required}")
        if self.min_rep_interval_ms < 0:
            raise ValueError(
                f"min_rep_interval_ms must not be negative, got {self.min_rep_interval_ms}"
            )

    @classmethod
    def from_settings(cls, settings: Any) -> "PushupThresholds":
        """Create thresholds from application settings."""
        return cls(
            elbow_up_threshold=settings.elbow_up_threshold,
            elbow_down_threshold=settings.elbow_down_threshold,
            min_body_alignment=settings.min_body_alignment,
            max_arm_asymmetry=settings.max_arm_asymmetry,
            frames_required=settings.frames_required,
            min_rep_interval_ms=settings.min_rep_interval_ms,
        )


@dataclass(frozen=True)
class StepResult:
    """State machine output for one frame."""
    phase: PushupPhase
    rep_count: int
    feedback_text: str
    feedback_severity: FeedbackSeverity
    rep_counted: bool = False


class RepStateMachine:
    """
    Push-up phase tracker and rep counter.

    One instance per session. Not thread-safe; the owning session serializes
    calls.
    """

    def __init__(self, thresholds: Optional[PushupThresholds] = None):
        self.thresholds = thresholds or PushupThresholds()
        self.reset()

    def reset(self):
        """Return to the initial state, including the rep counter."""
        self.phase = PushupPhase.NOT_IN_POSITION
        self.rep_count = 0
        self.frames_extended = 0
        self.frames_flexed = 0
        self.reached_bottom = False
        self.last_rep_time: Optional[float] = None
        self.feedback_text = Feedback.DEFAULT
        self.feedback_severity = FeedbackSeverity.NEUTRAL

    def reject(self, message: str) -> StepResult:
        """
        Drop out of position after the frame failed validation.

        This is the only path that forces NOT_IN_POSITION; the rep counter is
        kept.
        """
        if self.phase != PushupPhase.NOT_IN_POSITION:
            logger.debug(f"{self.phase.value} -> not_in_position ({message})")

        self.phase = PushupPhase.NOT_IN_POSITION
        self.frames_extended = 0
        self.frames_flexed = 0
        self.reached_bottom = False
        self.feedback_text = message
        self.feedback_severity = FeedbackSeverity.DANGER
        return self._result()

    def update(
        self,
        elbow_angle: float,
        body_angle: float,
        arm_asymmetry: float,
        now: float,
        warning: Optional[str] = None,
    ) -> StepResult:
        """
        Advance the state machine by one accepted frame.

        Args:
            elbow_angle: Smoothed mean elbow angle (degrees)
            body_angle: Smoothed body alignment angle (degrees)
            arm_asymmetry: Left/right elbow difference (degrees)
            now: Monotonic timestamp in seconds
            warning: Form warning for this frame; shown instead of the phase
                feedback but never changes phase or count

        Returns:
            StepResult with the new phase, count and feedback
        """
        t = self.thresholds
        is_extended = elbow_angle >= t.elbow_up_threshold
        is_flexed = elbow_angle <= t.elbow_down_threshold

        if is_extended:
            self.frames_extended += 1
            self.frames_flexed = 0
        elif is_flexed:
            self.frames_flexed += 1
            self.frames_extended = 0
        else:
            # In transition - decay counters slowly
            self.frames_extended = max(0, self.frames_extended - 1)
            self.frames_flexed = max(0, self.frames_flexed - 1)

        extended_confirmed = is_extended and self.frames_extended >= t.frames_required
        flexed_confirmed = is_flexed and self.frames_flexed >= t.frames_required

        phase = self.phase
        text = self.feedback_text
        severity = self.feedback_severity
        rep_counted = False

        if phase == PushupPhase.NOT_IN_POSITION:
            if extended_confirmed:
                phase = PushupPhase.UP
                text, severity = Feedback.STARTED_UP, FeedbackSeverity.SUCCESS
                self.reached_bottom = False
            elif flexed_confirmed:
                phase = PushupPhase.DOWN
                text, severity = Feedback.STARTED_DOWN, FeedbackSeverity.WARNING
                self.reached_bottom = True
            else:
                text, severity = Feedback.START_POSITION, FeedbackSeverity.INFO

        elif phase == PushupPhase.UP:
            if flexed_confirmed:
                phase = PushupPhase.DOWN
                text, severity = Feedback.GOOD_DEPTH, FeedbackSeverity.WARNING
                self.reached_bottom = True
            elif not is_extended:
                phase = PushupPhase.GOING_DOWN
                text, severity = Feedback.GOING_DOWN, FeedbackSeverity.INFO

        elif phase == PushupPhase.GOING_DOWN:
            if flexed_confirmed:
                phase = PushupPhase.DOWN
                text, severity = Feedback.REACHED_BOTTOM, FeedbackSeverity.WARNING
                self.reached_bottom = True
            elif extended_confirmed:
                # Went back up without reaching the bottom
                phase = PushupPhase.UP
                text, severity = Feedback.GO_LOWER, FeedbackSeverity.SUCCESS

        elif phase == PushupPhase.DOWN:
            if extended_confirmed:
                rep_counted = self._complete_rep(now)
                phase = PushupPhase.UP
                text = Feedback.rep_done(self.rep_count, PushupPhase.DOWN)
                severity = FeedbackSeverity.SUCCESS
            elif not is_flexed:
                phase = PushupPhase.GOING_UP
                text, severity = Feedback.PUSHING_UP, FeedbackSeverity.INFO

        elif phase == PushupPhase.GOING_UP:
            if extended_confirmed:
                rep_counted = self._complete_rep(now)
                phase = PushupPhase.UP
                text = Feedback.rep_done(self.rep_count, PushupPhase.GOING_UP)
                severity = FeedbackSeverity.SUCCESS
            elif flexed_confirmed:
                phase = PushupPhase.DOWN
                text, severity = Feedback.FULL_EXTENSION, FeedbackSeverity.WARNING

        # Warnings replace the text but keep the phase
        if warning and phase != PushupPhase.NOT_IN_POSITION:
            text, severity = warning, FeedbackSeverity.WARNING

        if phase != self.phase:
            logger.debug(
                f"{self.phase.value} -> {phase.value} (elbow={elbow_angle:.1f}, "
                f"body={body_angle:.1f}, asym={arm_asymmetry:.1f})"
            )

        self.phase = phase
        self.feedback_text = text
        self.feedback_severity = severity
        return self._result(rep_counted)

    def _complete_rep(self, now: float) -> bool:
        """Close the current cycle, counting it if it qualifies."""
        counted = False
        if self.reached_bottom and self._can_count_rep(now):
            self.rep_count += 1
            self.last_rep_time = now
            counted = True
            logger.info(f"Rep #{self.rep_count} counted")
        elif self.reached_bottom:
            logger.debug("Rep ignored: too soon after previous rep")
        self.reached_bottom = False
        return counted

    def _can_count_rep(self, now: float) -> bool:
        if self.last_rep_time is None:
            return True
        elapsed_ms = (now - self.last_rep_time) * 1000.0
        if elapsed_ms < 0:
            logger.debug(f"Clock went backwards by {-elapsed_ms:.0f} ms; not holding the rep")
            return True
        return elapsed_ms >= self.thresholds.min_rep_interval_ms

    def _result(self, rep_counted: bool = False) -> StepResult:
        return StepResult(
            phase=self.phase,
            rep_count=self.rep_count,
            feedback_text=self.feedback_text,
            feedback_severity=self.feedback_severity,
            rep_counted=rep_counted,
        )
