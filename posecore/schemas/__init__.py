"""Pydantic schemas for pose data crossing the library boundary."""

from posecore.schemas.pose import (
    KeypointPayload,
    FramePayload,
    PoseSeriesPayload,
    QualityResultResponse,
    ValidationResultResponse,
    SessionStatisticsResponse,
)

__all__ = [
    "KeypointPayload",
    "FramePayload",
    "PoseSeriesPayload",
    "QualityResultResponse",
    "ValidationResultResponse",
    "SessionStatisticsResponse",
]
