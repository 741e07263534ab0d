"""
Frame and series validation plus session-level statistics.

A bad frame never aborts a series: its errors are reported (prefixed with
its position) and every other frame is still validated and aggregated.
Out-of-order frame indices are a warning only; statistics are computed over
the full input regardless of order.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence
import logging

import numpy as np

from posecore.analysis.geometry import GeometryEngine
from posecore.analysis.keypoint_validator import KeypointValidator, ValidationResult
from posecore.analysis.pose_frame import Frame, JointKind, PoseSeries, is_number
from posecore.analysis.quality import QualityAssessor
from posecore.config import AnalysisSettings, get_settings

logger = logging.getLogger(__name__)


@dataclass
class SessionStatistics:
    """Descriptive statistics over a capture."""
    total_frames: int = 0
    average_angles_by_kind: Dict[JointKind, float] = field(default_factory=dict)

    # Mean over ALL keypoint confidences of all frames (keypoint-weighted)
    average_confidence: float = 0.0
    # Mean of per-frame mean confidences (frame-weighted)
    average_quality: float = 0.0

    min_timestamp: float = 0.0
    max_timestamp: float = 0.0
    duration_seconds: float = 0.0


class FrameAggregator:
    """
    Validates frames and series and rolls scored frames into statistics.

    Stateless: every method works only on its arguments.
    """

    def __init__(
        self,
        settings: Optional[AnalysisSettings] = None,
        validator: Optional[KeypointValidator] = None,
        geometry: Optional[GeometryEngine] = None,
        quality: Optional[QualityAssessor] = None,
    ):
        self.settings = settings or get_settings()
        self.validator = validator or KeypointValidator(self.settings)
        self.geometry = geometry or GeometryEngine(self.settings)
        self.quality = quality or QualityAssessor(self.settings)

    # =====================================================
    # Validation
    # =====================================================

    def validate_frame(self, frame: Any) -> ValidationResult:
        """Frame number, timestamp, keypoints and any carried angles."""
        if frame is None or not hasattr(frame, "keypoints"):
            return ValidationResult(valid=False, errors=["Frame must be an object"])

        result = ValidationResult()

        result.merge(self.validator.validate_frame_index(getattr(frame, "index", None)))
        result.merge(self.validator.validate_timestamp(getattr(frame, "timestamp_seconds", None)))

        keypoints_result = self.validator.validate_keypoints(frame.keypoints, min_count=1)
        result.merge(keypoints_result)
        result.stats = keypoints_result.stats

        angles = dict(getattr(frame, "angles", None) or {})
        angles.update(getattr(frame, "unknown_angles", None) or {})
        if angles:
            result.merge(self.validator.validate_angles(angles))

        return result

    def validate_series(self, frames: Any, fps: Any = None, total_frames: Any = None) -> ValidationResult:
        """
        Validate every frame plus series-level structure.

        Args:
            frames: Sequence of frames, or a PoseSeries (fps/total_frames taken from it)
            fps: Capture rate; must lie in [min_fps, max_fps] when given
            total_frames: Declared frame count; a mismatch is a warning

        Returns:
            ValidationResult; `invalid_frames` lists positions of bad frames
        """
        if isinstance(frames, PoseSeries):
            fps = frames.fps if fps is None else fps
            total_frames = frames.total_frames if total_frames is None else total_frames
            frames = frames.frames

        result = ValidationResult()

        if frames is None or isinstance(frames, (str, bytes)) or not isinstance(frames, Sequence):
            result.add_error("Pose data must have a frame sequence")
            frames = None
        elif len(frames) == 0:
            result.add_error("Pose data must have at least one frame")
        else:
            for position, frame in enumerate(frames):
                frame_result = self.validate_frame(frame)
                if not frame_result.valid:
                    result.add_error(f"Frame {position}: {', '.join(frame_result.errors)}")
                    result.invalid_frames.append(position)
                result.warnings.extend(f"Frame {position}: {w}" for w in frame_result.warnings)

            for warning in self._sequence_warnings(frames):
                result.add_warning(warning)

        if total_frames is not None:
            if not is_number(total_frames) or total_frames < 0:
                result.add_error("totalFrames must be a non-negative number")
            elif frames is not None and total_frames != len(frames):
                result.add_warning(
                    f"totalFrames ({total_frames}) does not match frame count ({len(frames)})"
                )

        if fps is not None:
            if not is_number(fps) or fps < self.settings.min_fps or fps > self.settings.max_fps:
                result.add_error(
                    f"fps must be a number between {self.settings.min_fps:g} and {self.settings.max_fps:g}"
                )

        if result.invalid_frames:
            logger.debug(f"Series has {len(result.invalid_frames)} invalid frame(s)")
        return result

    def _sequence_warnings(self, frames: Sequence[Any]) -> List[str]:
        """Out-of-order arrivals and duplicated indices; neither invalidates the series."""
        indices = [f.index for f in frames if is_number(getattr(f, "index", None))]
        warnings = []

        for prev, curr in zip(indices, indices[1:]):
            if curr < prev:
                warnings.append(
                    f"Frame sequence is not strictly increasing: frame {prev} followed by {curr}"
                )

        ordered = sorted(indices)
        for prev, curr in zip(ordered, ordered[1:]):
            if curr == prev:
                warnings.append(f"Duplicate frame index: {curr}")
        return warnings

    # =====================================================
    # Aggregation
    # =====================================================

    def average_angle(
        self,
        frames: Sequence[Frame],
        kind: Any,
        compute_missing: bool = False,
    ) -> Optional[float]:
        """
        Mean of one angle kind over the frames that carry it.

        Args:
            frames: Frames to aggregate
            kind: JointKind or a key such as 'kneeAngle'
            compute_missing: Derive the angle from keypoints for frames that
                do not carry it (instead of skipping them)

        Returns:
            Mean rounded to `angle_decimals`, or None if no frame has it
        """
        joint = JointKind.parse(kind)
        if joint is None:
            return None

        values = []
        for frame in frames:
            value = frame.angles.get(joint) if frame.angles else None
            if value is None and compute_missing:
                value = self.geometry.joint_angle(frame, joint)
            if is_number(value):
                values.append(value)

        if not values:
            return None
        return round(float(np.mean(values)), self.settings.angle_decimals)

    def average_angles(self, frames: Sequence[Frame], compute_missing: bool = False) -> Dict[JointKind, float]:
        """Sparse map of average_angle for every joint kind."""
        averages = {}
        for joint in JointKind:
            value = self.average_angle(frames, joint, compute_missing=compute_missing)
            if value is not None:
                averages[joint] = value
        return averages

    def session_statistics(self, frames: Sequence[Frame], compute_missing_angles: bool = True) -> SessionStatistics:
        """
        Descriptive statistics over a capture.

        average_confidence is computed over the flattened set of keypoint
        confidences, so frames with more keypoints weigh more. This differs
        from QualityAssessor.assess_series, which weighs frames equally;
        the frame-weighted figure is reported as average_quality.
        """
        if isinstance(frames, PoseSeries):
            frames = frames.frames
        if not frames:
            return SessionStatistics()

        timestamps = [
            f.timestamp_seconds for f in frames
            if is_number(getattr(f, "timestamp_seconds", None))
        ]
        min_ts = float(min(timestamps)) if timestamps else 0.0
        max_ts = float(max(timestamps)) if timestamps else 0.0
        duration = max_ts - min_ts if len(timestamps) >= 2 else 0.0

        all_confidences = [c for f in frames for c in f.confidences]
        average_confidence = float(np.mean(all_confidences)) if all_confidences else 0.0

        series_quality = self.quality.assess_series(frames)

        return SessionStatistics(
            total_frames=len(frames),
            average_angles_by_kind=self.average_angles(frames, compute_missing=compute_missing_angles),
            average_confidence=round(average_confidence, self.settings.confidence_decimals),
            average_quality=series_quality.average_confidence,
            min_timestamp=min_ts,
            max_timestamp=max_ts,
            duration_seconds=duration,
        )
