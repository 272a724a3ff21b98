from dataclasses import replace

import pytest

from pushup_counter.config import Settings
from pushup_counter.cv.form_checks import FormWarning
from pushup_counter.cv.landmark_validator import RejectionReason
from pushup_counter.cv.pose import FramePose, Joint
from pushup_counter.cv.rep_state_machine import Feedback, FeedbackSeverity, PushupPhase
from pushup_counter.cv.session import PushupSession, SessionLimitError, SessionManager


FRAME_DT = 0.033


class Feeder:
    """Drives a session with synthetic poses at a fixed cadence."""

    def __init__(self, session, make_pose, start=50.0):
        self.session = session
        self.make_pose = make_pose
        self.now = start

    def feed(self, frames=3, **pose_kwargs):
        snapshot = None
        for _ in range(frames):
            self.now += FRAME_DT
            snapshot = self.session.ingest(self.make_pose(**pose_kwargs), now=self.now)
        return snapshot

    def wait(self, seconds):
        self.now += seconds


@pytest.fixture
def unsmoothed(make_pose):
    return Feeder(PushupSession(window_size=1), make_pose)


@pytest.fixture
def smoothed(make_pose):
    return Feeder(PushupSession(), make_pose)


def test_initial_snapshot():
    snapshot = PushupSession().snapshot()

    assert snapshot.rep_count == 0
    assert snapshot.phase == PushupPhase.NOT_IN_POSITION
    assert snapshot.feedback_text == Feedback.DEFAULT
    assert snapshot.feedback_severity == FeedbackSeverity.NEUTRAL
    assert snapshot.elbow_trend is None


def test_end_to_end_without_smoothing(unsmoothed):
    f = unsmoothed

    snap = f.feed(elbow_angle=170.0)
    assert (snap.phase, snap.rep_count) == (PushupPhase.UP, 0)

    snap = f.feed(elbow_angle=110.0)
    assert (snap.phase, snap.rep_count) == (PushupPhase.DOWN, 0)
    assert f.session.state_machine.reached_bottom

    snap = f.feed(elbow_angle=170.0)
    assert (snap.phase, snap.rep_count) == (PushupPhase.UP, 1)
    assert snap.rep_counted

    f.feed(elbow_angle=110.0)
    snap = f.feed(elbow_angle=170.0)
    assert (snap.phase, snap.rep_count) == (PushupPhase.UP, 1)

    f.wait(0.7)
    f.feed(elbow_angle=110.0)
    snap = f.feed(elbow_angle=170.0)
    assert (snap.phase, snap.rep_count) == (PushupPhase.UP, 2)


def test_smoothed_cycle_counts_once(smoothed):
    f = smoothed

    snap = f.feed(frames=10, elbow_angle=170.0)
    assert snap.phase == PushupPhase.UP
    assert snap.elbow_angle_deg == pytest.approx(170.0)

    snap = f.feed(frames=10, elbow_angle=110.0)
    assert snap.phase == PushupPhase.DOWN
    assert snap.elbow_trend == pytest.approx(-60.0)
    assert snap.elbow_range == pytest.approx(60.0)

    snap = f.feed(frames=10, elbow_angle=170.0)
    assert snap.phase == PushupPhase.UP
    assert snap.rep_count == 1


def test_smoothing_delays_confirmation(smoothed):
    f = smoothed
    f.feed(frames=10, elbow_angle=170.0)

    # The window still holds extended readings after three flexed frames
    snap = f.feed(frames=3, elbow_angle=110.0)
    assert snap.phase == PushupPhase.GOING_DOWN
    assert snap.elbow_angle_deg == pytest.approx((170.0 * 2 + 110.0 * 3) / 5)


def test_rejected_frame_forces_not_in_position(unsmoothed, make_pose):
    f = unsmoothed
    f.feed(elbow_angle=170.0)
    before = f.feed(frames=4, elbow_angle=110.0)
    assert before.phase == PushupPhase.DOWN

    f.now += FRAME_DT
    snap = f.session.ingest(make_pose(drop=[Joint.LEFT_HIP]), now=f.now)

    assert snap.phase == PushupPhase.NOT_IN_POSITION
    assert snap.feedback_text == RejectionReason.HIPS_NOT_VISIBLE
    assert snap.feedback_severity == FeedbackSeverity.DANGER
    assert snap.frames_extended == 0
    assert snap.frames_flexed == 0
    # Angles keep their last accepted values
    assert snap.elbow_angle_deg == pytest.approx(before.elbow_angle_deg)


def test_empty_frame_is_rejected_not_raised():
    snap = PushupSession().ingest(FramePose(), now=1.0)

    assert snap.phase == PushupPhase.NOT_IN_POSITION
    assert snap.feedback_text == RejectionReason.BODY_NOT_DETECTED


def test_missing_legs_still_count(make_pose):
    f = Feeder(PushupSession(window_size=1), make_pose)

    f.feed(elbow_angle=170.0, legs="none")
    f.feed(elbow_angle=110.0, legs="none")
    snap = f.feed(elbow_angle=170.0, legs="none")

    assert snap.rep_count == 1
    assert snap.body_angle_deg == pytest.approx(180.0)


def test_bad_form_warns_but_still_counts(unsmoothed):
    f = unsmoothed

    f.feed(elbow_angle=170.0, body_angle=120.0)
    snap = f.feed(elbow_angle=110.0, body_angle=120.0)
    assert snap.phase == PushupPhase.DOWN
    assert snap.feedback_text == FormWarning.STRAIGHTEN_BACK
    assert snap.feedback_severity == FeedbackSeverity.WARNING

    snap = f.feed(elbow_angle=170.0, body_angle=120.0)
    assert snap.rep_count == 1
    assert snap.feedback_text == FormWarning.STRAIGHTEN_BACK


def test_asymmetric_arms_warn(unsmoothed):
    f = unsmoothed
    f.feed(elbow_angle=170.0)

    snap = f.feed(frames=1, left_elbow=170.0, right_elbow=110.0)

    assert snap.feedback_text == FormWarning.FIX_BALANCE
    assert snap.arm_asymmetry_deg == pytest.approx(60.0)
    assert snap.elbow_angle_deg == pytest.approx(140.0)


def test_reset_clears_everything(smoothed):
    f = smoothed
    f.feed(frames=10, elbow_angle=170.0)
    f.feed(frames=10, elbow_angle=110.0)
    f.feed(frames=10, elbow_angle=170.0)

    snap = f.session.reset()

    assert snap.rep_count == 0
    assert snap.phase == PushupPhase.NOT_IN_POSITION
    assert snap.feedback_text == Feedback.DEFAULT
    assert snap.feedback_severity == FeedbackSeverity.NEUTRAL
    assert snap.elbow_angle_deg == 0.0
    assert len(f.session.elbow_smoother) == 0
    assert len(f.session.body_smoother) == 0
    assert len(f.session.elbow_tracker) == 0
    assert f.session.snapshot() == snap


def test_frame_dropped_while_busy(make_pose):
    session = PushupSession()
    session._busy.acquire()
    try:
        assert session.ingest(make_pose(), now=1.0) is None
    finally:
        session._busy.release()

    assert session.ingest(make_pose(), now=2.0) is not None


def test_ingest_defaults_to_monotonic_clock(make_pose):
    session = PushupSession(window_size=1)
    for _ in range(3):
        snap = session.ingest(make_pose(elbow_angle=170.0))
    assert snap.phase == PushupPhase.UP


def test_snapshot_to_dict():
    data = PushupSession().snapshot().to_dict()

    assert data["phase"] == "not_in_position"
    assert data["feedback_severity"] == "neutral"
    assert data["rep_count"] == 0


def test_from_settings_applies_thresholds():
    settings = Settings(
        elbow_up_threshold=150.0,
        elbow_down_threshold=100.0,
        smoothing_window_size=2,
        min_landmark_confidence=0.8,
    )

    session = PushupSession.from_settings(settings)

    assert session.thresholds.elbow_up_threshold == 150.0
    assert session.elbow_smoother.window_size == 2
    assert session.validator.min_confidence == 0.8


def test_from_settings_rejects_inverted_thresholds():
    settings = Settings(elbow_up_threshold=100.0, elbow_down_threshold=150.0)
    with pytest.raises(ValueError):
        PushupSession.from_settings(settings)


def test_session_manager_lifecycle():
    manager = SessionManager(Settings(), max_sessions=2)

    first_id, first = manager.create_session()
    second_id, _ = manager.create_session()

    assert first_id != second_id
    assert manager.get_session(first_id) is first
    assert manager.active_count == 2

    with pytest.raises(SessionLimitError):
        manager.create_session()

    manager.remove_session(first_id)
    assert manager.active_count == 1
    with pytest.raises(KeyError):
        manager.get_session(first_id)
    with pytest.raises(KeyError):
        manager.remove_session(first_id)


def test_sessions_are_independent(make_pose):
    manager = SessionManager(Settings())
    _, a = manager.create_session()
    _, b = manager.create_session()

    for i in range(3):
        a.ingest(make_pose(elbow_angle=170.0), now=float(i))

    assert a.snapshot().phase == PushupPhase.UP
    assert b.snapshot().phase == PushupPhase.NOT_IN_POSITION


def test_non_finite_landmark_is_rejected_without_poisoning_angles(unsmoothed, make_pose):
    f = unsmoothed
    before = f.feed(elbow_angle=170.0)

    pose = make_pose(elbow_angle=170.0)
    wrist = pose.landmarks[Joint.LEFT_WRIST]
    pose.landmarks[Joint.LEFT_WRIST] = replace(wrist, x=float("nan"))
    f.now += FRAME_DT
    snap = f.session.ingest(pose, now=f.now)

    assert snap.phase == PushupPhase.NOT_IN_POSITION
    assert snap.feedback_text == RejectionReason.UPPER_BODY_NOT_VISIBLE
    assert snap.elbow_angle_deg == pytest.approx(before.elbow_angle_deg)
    assert snap.arm_asymmetry_deg == pytest.approx(before.arm_asymmetry_deg)
    assert len(f.session.elbow_smoother) == 1

    snap = f.feed(elbow_angle=170.0)
    assert snap.phase == PushupPhase.UP
    assert snap.elbow_angle_deg == pytest.approx(170.0)
