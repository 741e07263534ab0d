"""
Pose data schemas at the collaborator boundary.

Payload fields are typed `Any`: pydantic only gives the capture its shape and
every value reaches KeypointValidator untouched, so a bad field is reported
against its own frame.
"""

from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, Field

from posecore.analysis.pose_frame import Frame, JointKind, Keypoint, PoseSeries


class KeypointPayload(BaseModel):
    """Keypoint as sent by the session-ingestion layer."""
    name: Optional[Any] = None
    x: Optional[Any] = None
    y: Optional[Any] = None
    z: Optional[Any] = None
    confidence: Optional[Any] = None

    class Config:
        extra = "ignore"

    def to_domain(self) -> Keypoint:
        return Keypoint(name=self.name, x=self.x, y=self.y, confidence=self.confidence, z=self.z)


def _keypoint_to_domain(item: Any) -> Any:
    if isinstance(item, KeypointPayload):
        return item.to_domain()
    if isinstance(item, Mapping):
        return KeypointPayload.model_validate(item).to_domain()
    # Left as-is so validation reports "Keypoint must be an object"
    return item


def _present(values: Any) -> Dict[Any, Any]:
    """Drop null entries from a collaborator mapping; non-mappings yield nothing."""
    if not isinstance(values, Mapping):
        return {}
    return {key: value for key, value in values.items() if value is not None}


class FramePayload(BaseModel):
    """Schema for one pose frame, e.g. {"frame": 3, "timestamp": 0.1, ...}."""
    frame: Optional[Any] = None
    timestamp: Optional[Any] = None
    keypoints: Optional[Any] = Field(default_factory=list)
    angles: Optional[Any] = None
    distances: Optional[Any] = None

    class Config:
        extra = "ignore"

    def to_domain(self) -> Frame:
        """Convert to a Frame; unknown angle keys are kept for validation."""
        keypoints = self.keypoints if isinstance(self.keypoints, (list, tuple)) else ()
        return Frame(
            index=self.frame,
            timestamp_seconds=self.timestamp,
            keypoints=tuple(_keypoint_to_domain(kp) for kp in keypoints),
            angles=_present(self.angles),
            distances=_present(self.distances),
        )


def _frame_to_domain(item: Any) -> Any:
    if isinstance(item, FramePayload):
        return item.to_domain()
    if isinstance(item, Mapping):
        return FramePayload.model_validate(item).to_domain()
    # Left as-is so validation reports "Frame must be an object"
    return item


class PoseSeriesPayload(BaseModel):
    """Schema for a session's full capture ("keypoints" holds the frames)."""
    keypoints: Optional[Any] = Field(default_factory=list)
    fps: Optional[Any] = None
    total_frames: Optional[Any] = Field(default=None, alias="totalFrames")

    class Config:
        extra = "ignore"
        populate_by_name = True

    def to_domain(self) -> PoseSeries:
        frames = self.keypoints if isinstance(self.keypoints, (list, tuple)) else ()
        return PoseSeries(
            frames=tuple(_frame_to_domain(f) for f in frames),
            fps=self.fps,
            total_frames=self.total_frames,
        )



class QualityResultResponse(BaseModel):
    """Schema for per-frame quality."""
    average_confidence: float
    bucket: str
    meets_threshold: bool
    score: int

    class Config:
        from_attributes = True

    @classmethod
    def from_result(cls, result: Any) -> "QualityResultResponse":
        return cls(
            average_confidence=result.average_confidence,
            bucket=result.bucket.value,
            meets_threshold=result.meets_threshold,
            score=result.score,
        )


class ValidationResultResponse(BaseModel):
    """Schema for a validation outcome."""
    valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    invalid_frames: List[int] = Field(default_factory=list)

    class Config:
        from_attributes = True


class SessionStatisticsResponse(BaseModel):
    """Schema for session statistics, angles keyed as 'kneeAngle' etc."""
    total_frames: int
    average_angles: Dict[str, float] = Field(default_factory=dict)
    average_confidence: float
    average_quality: float
    min_timestamp: float
    max_timestamp: float
    duration_seconds: float

    @classmethod
    def from_statistics(cls, stats: Any) -> "SessionStatisticsResponse":
        return cls(
            total_frames=stats.total_frames,
            average_angles={JointKind(k).key: v for k, v in stats.average_angles_by_kind.items()},
            average_confidence=stats.average_confidence,
            average_quality=stats.average_quality,
            min_timestamp=stats.min_timestamp,
            max_timestamp=stats.max_timestamp,
            duration_seconds=stats.duration_seconds,
        )
