"""
Push-up session controller.

Owns one rep engine per active session and runs the per-frame pipeline:

    FramePose -> LandmarkValidator -> extract_features -> AngleSmoother
              -> TrendTracker -> form checks -> RepStateMachine -> EngineSnapshot

The host never touches engine state directly; every call returns an
immutable EngineSnapshot.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional, Tuple
import logging
import threading
import time
import uuid

from pushup_counter.cv.angle_smoother import AngleSmoother
from pushup_counter.cv.form_checks import first_form_warning
from pushup_counter.cv.geometry import DEFAULT_HAND_TOLERANCE_PX, extract_features
from pushup_counter.cv.landmark_validator import LandmarkValidator
from pushup_counter.cv.pose import FramePose
from pushup_counter.cv.rep_state_machine import (
    FeedbackSeverity,
    PushupPhase,
    PushupThresholds,
    RepStateMachine,
)
from pushup_counter.cv.trend_tracker import TrendTracker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineSnapshot:
    """Read-only view of a session after a tick."""
    rep_count: int
    phase: PushupPhase
    feedback_text: str
    feedback_severity: FeedbackSeverity
    elbow_angle_deg: float
    body_angle_deg: float
    arm_asymmetry_deg: float

    # Diagnostics
    frames_extended: int = 0
    frames_flexed: int = 0
    elbow_trend: Optional[float] = None
    elbow_range: Optional[float] = None
    rep_counted: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        data = asdict(self)
        data["phase"] = self.phase.value
        data["feedback_severity"] = self.feedback_severity.value
        return data


class PushupSession:
    """
    Rep engine for one user session.

    ``ingest`` is non-reentrant: a frame arriving while another is still being
    processed is dropped rather than queued.
    """

    def __init__(
        self,
        thresholds: Optional[PushupThresholds] = None,
        window_size: int = 5,
        history_size: int = 15,
        min_confidence: float = 0.5,
        hand_tolerance_px: float = DEFAULT_HAND_TOLERANCE_PX,
    ):
        """
        Initialize session.

        Args:
            thresholds: Rep detection and form thresholds
            window_size: Samples averaged by the elbow and body smoothers
            history_size: Samples kept by the elbow trend tracker
            min_confidence: Minimum landmark confidence to accept a joint
            hand_tolerance_px: How far wrists may rise above the shoulder line
        """
        self.thresholds = thresholds or PushupThresholds()
        self.hand_tolerance_px = hand_tolerance_px

        self.validator = LandmarkValidator(min_confidence=min_confidence)
        self.state_machine = RepStateMachine(self.thresholds)
        self.elbow_smoother = AngleSmoother(window_size=window_size)
        self.body_smoother = AngleSmoother(window_size=window_size)
        self.elbow_tracker = TrendTracker(history_size=history_size)

        self._busy = threading.Lock()
        self._elbow_angle = 0.0
        self._body_angle = 0.0
        self._arm_asymmetry = 0.0
        self._last_snapshot = self._snapshot()

    @classmethod
    def from_settings(cls, settings: Any) -> "PushupSession":
        """Create a session configured from application settings."""
        return cls(
            thresholds=PushupThresholds.from_settings(settings),
            window_size=settings.smoothing_window_size,
            history_size=settings.trend_history_size,
            min_confidence=settings.min_landmark_confidence,
            hand_tolerance_px=settings.hand_tolerance_px,
        )

    def ingest(
        self,
        frame_pose: Optional[FramePose],
        now: Optional[float] = None,
    ) -> Optional[EngineSnapshot]:
        """
        Process one frame.

        Args:
            frame_pose: Landmarks for the frame (None or empty = no body found)
            now: Monotonic timestamp in seconds (defaults to time.monotonic())

        Returns:
            Updated snapshot, or None if the frame was dropped because a
            previous frame is still being processed
        """
        if not self._busy.acquire(blocking=False):
            logger.debug("Dropping frame: previous frame still in flight")
            return None

        try:
            if now is None:
                now = time.monotonic()
            self._last_snapshot = self._process(frame_pose, now)
            return self._last_snapshot
        finally:
            self._busy.release()

    def _process(self, frame_pose: Optional[FramePose], now: float) -> EngineSnapshot:
        validation = self.validator.validate(frame_pose)
        if not validation.is_valid:
            step = self.state_machine.reject(validation.message)
            return self._snapshot(step.rep_counted)

        features = extract_features(validation.pose, self.hand_tolerance_px)

        body_angle = self.body_smoother.add(features.body_angle)
        elbow_angle = self.elbow_smoother.add(features.elbow_angle)
        self.elbow_tracker.add(elbow_angle)
        arm_asymmetry = features.arm_asymmetry

        warning = first_form_warning(features, body_angle, self.thresholds)

        step = self.state_machine.update(
            elbow_angle, body_angle, arm_asymmetry, now, warning=warning
        )

        self._elbow_angle = elbow_angle
        self._body_angle = body_angle
        self._arm_asymmetry = arm_asymmetry
        return self._snapshot(step.rep_counted)

    def reset(self) -> EngineSnapshot:
        """Zero the counter and clear all history. Do not call during ingest."""
        self.state_machine.reset()
        self.elbow_smoother.reset()
        self.body_smoother.reset()
        self.elbow_tracker.reset()
        self._elbow_angle = 0.0
        self._body_angle = 0.0
        self._arm_asymmetry = 0.0
        self._last_snapshot = self._snapshot()
        return self._last_snapshot

    def snapshot(self) -> EngineSnapshot:
        """Most recent snapshot without processing a frame."""
        return self._last_snapshot

    def _snapshot(self, rep_counted: bool = False) -> EngineSnapshot:
        sm = self.state_machine
        return EngineSnapshot(
            rep_count=sm.rep_count,
            phase=sm.phase,
            feedback_text=sm.feedback_text,
            feedback_severity=sm.feedback_severity,
            elbow_angle_deg=self._elbow_angle,
            body_angle_deg=self._body_angle,
            arm_asymmetry_deg=self._arm_asymmetry,
            frames_extended=sm.frames_extended,
            frames_flexed=sm.frames_flexed,
            elbow_trend=self.elbow_tracker.trend,
            elbow_range=self.elbow_tracker.range,
            rep_counted=rep_counted,
        )


class SessionLimitError(Exception):
    """Raised when the manager already holds the maximum number of sessions."""


class SessionManager:
    """Registry of active push-up sessions for the host application."""

    def __init__(self, settings: Any, max_sessions: Optional[int] = None):
        self.settings = settings
        self.max_sessions = max_sessions if max_sessions is not None else settings.max_sessions
        self._sessions: Dict[str, PushupSession] = {}
        self._lock = threading.Lock()

    def create_session(self) -> Tuple[str, PushupSession]:
        """Create a new session and return ``(session_id, session)``."""
        with self._lock:
            if len(self._sessions) >= self.max_sessions:
                raise SessionLimitError(
                    f"Maximum of {self.max_sessions} active sessions reached"
                )
            session_id = str(uuid.uuid4())[:8]
            while session_id in self._sessions:
                session_id = str(uuid.uuid4())[:8]
            session = PushupSession.from_settings(self.settings)
            self._sessions[session_id] = session

        logger.info(f"Created session {session_id}")
        return session_id, session

    def get_session(self, session_id: str) -> PushupSession:
        """Get session by ID; raises KeyError if unknown."""
        with self._lock:
            return self._sessions[session_id]

    def remove_session(self, session_id: str):
        """Remove a session; raises KeyError if unknown."""
        with self._lock:
            del self._sessions[session_id]
        logger.info(f"Removed session {session_id}")

    def clear(self):
        with self._lock:
            self._sessions.clear()

    @property
    def active_count(self) -> int:
        return len(self._sessions)
