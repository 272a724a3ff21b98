"""Pydantic schemas for API request/response models."""

from pushup_counter.schemas.session import (
    LandmarkIn,
    FrameRequest,
    SnapshotResponse,
    SessionResponse,
)

__all__ = [
    "LandmarkIn",
    "FrameRequest",
    "SnapshotResponse",
    "SessionResponse",
]
