"""Push-up session API endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from pushup_counter.cv.session import PushupSession, SessionLimitError, SessionManager
from pushup_counter.schemas.session import FrameRequest, SessionResponse, SnapshotResponse

router = APIRouter()
logger = logging.getLogger(__name__)


def get_session_manager(request: Request) -> SessionManager:
    """Dependency returning the session registry created at startup."""
    return request.app.state.session_manager


def _get_session_or_404(manager: SessionManager, session_id: str) -> PushupSession:
    try:
        return manager.get_session(session_id)
    except KeyError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Session not found"
        )


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(manager: SessionManager = Depends(get_session_manager)):
    """Start a new push-up session with a zeroed counter."""
    try:
        session_id, session = manager.create_session()
    except SessionLimitError as e:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=str(e)
        )

    return SessionResponse(
        session_id=session_id,
        snapshot=SnapshotResponse.model_validate(session.snapshot())
    )


@router.get("/{session_id}", response_model=SnapshotResponse)
async def get_session(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager)
):
    """Get the latest snapshot of a session."""
    session = _get_session_or_404(manager, session_id)
    return SnapshotResponse.model_validate(session.snapshot())


@router.post("/{session_id}/frames", response_model=SnapshotResponse)
async def ingest_frame(
    session_id: str,
    frame: FrameRequest,
    manager: SessionManager = Depends(get_session_manager)
):
    """
    Feed one frame's pose into the session.

    A frame that fails landmark validation is not an error: the session drops
    to not_in_position and the reason is returned as feedback.
    """
    session = _get_session_or_404(manager, session_id)

    snapshot = session.ingest(frame.to_frame_pose(), now=frame.timestamp)
    if snapshot is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Frame dropped: previous frame still processing"
        )

    return SnapshotResponse.model_validate(snapshot)


@router.post("/{session_id}/reset", response_model=SnapshotResponse)
async def reset_session(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager)
):
    """Zero the rep counter and clear all smoothing history."""
    session = _get_session_or_404(manager, session_id)
    logger.info(f"Resetting session {session_id}")
    return SnapshotResponse.model_validate(session.reset())


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager)
):
    """End a session and discard its state."""
    try:
        manager.remove_session(session_id)
    except KeyError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Session not found"
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
