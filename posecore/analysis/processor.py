"""
Pose series processing pipeline.

PIPELINE STAGES:
1. Validation (KeypointValidator via FrameAggregator)
2. Geometry (angles when the frame carries none, distances always)
3. Quality scoring (QualityAssessor)
4. Session statistics (FrameAggregator)

Frames are processed independently; one bad frame is reported and skipped
for scoring, never fatal for the series.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence
import logging

from posecore.analysis.frame_aggregator import FrameAggregator, SessionStatistics
from posecore.analysis.geometry import GeometryEngine
from posecore.analysis.keypoint_validator import (
    KeypointValidator,
    PoseDataError,
    RequiredKeypointsResult,
    ValidationResult,
    check_required_keypoints,
)
from posecore.analysis.pose_frame import Frame, PoseSeries
from posecore.analysis.quality import QualityAssessor, QualityResult, SeriesQuality
from posecore.config import AnalysisSettings, get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessedFrame:
    """A frame enriched with measurements and its quality."""
    frame: Frame
    quality: Optional[QualityResult] = None

    @property
    def angles(self):
        return self.frame.angles

    @property
    def distances(self):
        return self.frame.distances


@dataclass
class FrameQuality:
    """Quality of one frame, keyed by its position in the series."""
    position: int
    quality: QualityResult


@dataclass
class PoseDataReport:
    """Full validation report for a series."""
    validation: ValidationResult
    quality: List[FrameQuality] = field(default_factory=list)
    required_keypoints: Optional[RequiredKeypointsResult] = None

    @property
    def valid(self) -> bool:
        return self.validation.valid

    @property
    def errors(self) -> List[str]:
        return self.validation.errors

    @property
    def warnings(self) -> List[str]:
        return self.validation.warnings


@dataclass
class ProcessingResult:
    """Result of processing a whole series."""
    frames: List[ProcessedFrame] = field(default_factory=list)
    validation: Optional[ValidationResult] = None
    series_quality: Optional[SeriesQuality] = None
    statistics: Optional[SessionStatistics] = None

    @property
    def valid_frames(self) -> List[ProcessedFrame]:
        """Frames that passed validation."""
        invalid = set(self.validation.invalid_frames) if self.validation else set()
        return [pf for i, pf in enumerate(self.frames) if i not in invalid]


class PoseProcessor:
    """
    Main pose processing pipeline.

    Usage:
        processor = PoseProcessor()
        result = processor.process_series(series)
        result.statistics.average_angles_by_kind
    """

    def __init__(self, settings: Optional[AnalysisSettings] = None):
        self.settings = settings or get_settings()
        self.validator = KeypointValidator(self.settings)
        self.geometry = GeometryEngine(self.settings)
        self.quality = QualityAssessor(self.settings)
        self.aggregator = FrameAggregator(
            self.settings,
            validator=self.validator,
            geometry=self.geometry,
            quality=self.quality,
        )

    def process_frame(
        self,
        frame: Frame,
        calculate_angles: bool = True,
        calculate_distances: bool = True,
        assess_quality: bool = True,
    ) -> ProcessedFrame:
        """
        Enrich one frame.

        Carried angles are kept as-is; angles are only computed for frames
        that carry none.
        """
        angles = None
        if calculate_angles and not frame.angles:
            angles = self.geometry.all_angles(frame)

        distances = self.geometry.all_distances(frame) if calculate_distances else None

        enriched = frame.with_measurements(angles=angles, distances=distances)
        quality = self.quality.assess_frame(frame) if assess_quality else None
        return ProcessedFrame(frame=enriched, quality=quality)

    def process_series(
        self,
        series: Any,
        calculate_angles: bool = True,
        calculate_distances: bool = True,
        assess_quality: bool = True,
    ) -> ProcessingResult:
        """
        Validate, enrich and aggregate a series.

        Args:
            series: PoseSeries or a sequence of Frames

        Returns:
            ProcessingResult. Invalid frames are still present in `frames`
            (the caller may want to store them), but are excluded from the
            series quality and statistics.
        """
        if not isinstance(series, PoseSeries):
            series = PoseSeries(frames=tuple(series or ()))

        validation = self.aggregator.validate_series(series)
        if not validation.valid:
            logger.warning(f"Pose series has {len(validation.errors)} validation error(s)")
        if validation.warnings:
            logger.warning(f"Pose series has {len(validation.warnings)} warning(s)")

        invalid = set(validation.invalid_frames)
        processed = []
        for position, frame in enumerate(series.frames):
            if position in invalid:
                processed.append(ProcessedFrame(frame=frame))
                continue
            processed.append(self.process_frame(
                frame,
                calculate_angles=calculate_angles,
                calculate_distances=calculate_distances,
                assess_quality=assess_quality,
            ))

        scored = [pf.frame for i, pf in enumerate(processed) if i not in invalid]
        result = ProcessingResult(
            frames=processed,
            validation=validation,
            series_quality=self.quality.assess_series(scored) if assess_quality else None,
            statistics=self.aggregator.session_statistics(scored),
        )

        logger.info(
            f"Processed {len(processed)} frames "
            f"({len(scored)} valid, {len(invalid)} invalid)"
        )
        return result

    def validate(
        self,
        series: Any,
        min_confidence: Optional[float] = None,
        required_keypoints: Sequence[str] = (),
        strict: bool = False,
    ) -> PoseDataReport:
        """
        Comprehensive validation of a series.

        Per-frame quality is reported for every frame. Required keypoints
        are checked on the first frame only, assuming a fixed topology.

        Raises:
            PoseDataError: only when `strict` is set and validation failed
        """
        if not isinstance(series, PoseSeries):
            series = PoseSeries(frames=tuple(series or ()))

        validation = self.aggregator.validate_series(series)

        quality = [
            FrameQuality(position=i, quality=self.quality.assess_frame(frame, min_confidence))
            for i, frame in enumerate(series.frames)
            if isinstance(frame, Frame)
        ]

        required = None
        if required_keypoints and series.frames:
            required = check_required_keypoints(
                getattr(series.frames[0], "keypoints", None),
                required_keypoints,
            )

        report = PoseDataReport(validation=validation, quality=quality, required_keypoints=required)

        if strict and not report.valid:
            raise PoseDataError(report.errors)
        return report

    def summarize(self, series: Any) -> Dict[str, Any]:
        """Angles, quality and statistics as plain values, for logging or export."""
        result = self.process_series(series)
        stats = result.statistics
        return {
            "valid": result.validation.valid,
            "total_frames": stats.total_frames,
            "duration_seconds": stats.duration_seconds,
            "average_confidence": stats.average_confidence,
            "quality": result.series_quality.bucket.value if result.series_quality else None,
            "average_angles": {k.key: v for k, v in stats.average_angles_by_kind.items()},
        }
