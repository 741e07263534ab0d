"""
Pose analysis core: keypoints in, validated measurements and quality out.

PIPELINE COMPONENTS:
1. KeypointValidator: Coordinate/confidence domain checks, collected not raised
2. GeometryEngine: Distances and joint angles (knee, hip, back, shoulder, ankle)
3. QualityAssessor: Confidence-based Good/Fair/Poor scoring per frame and series
4. FrameAggregator: Frame/series validation and session statistics
5. PoseProcessor: Orchestrates the stages over a whole capture

Usage:
    from posecore.analysis import PoseProcessor

    processor = PoseProcessor()
    result = processor.process_series(series)
    if not result.validation.valid:
        print(result.validation.errors)
"""

from posecore.analysis.pose_frame import (
    KeypointName, JointKind, SegmentKind, Keypoint, Frame, PoseSeries,
    MOVENET_KEYPOINTS, BLAZEPOSE_KEYPOINTS,
)
from posecore.analysis.keypoint_validator import (
    KeypointValidator, ValidationResult, KeypointStats, PoseDataError,
    RequiredKeypointsResult, check_required_keypoints,
    validate_keypoint, validate_keypoints,
)
from posecore.analysis.geometry import GeometryEngine, distance, angle_at_vertex
from posecore.analysis.quality import QualityAssessor, QualityResult, QualityBucket, SeriesQuality
from posecore.analysis.frame_aggregator import FrameAggregator, SessionStatistics
from posecore.analysis.processor import (
    PoseProcessor, ProcessedFrame, ProcessingResult, PoseDataReport, FrameQuality,
)

__all__ = [
    # Data model
    "KeypointName",
    "JointKind",
    "SegmentKind",
    "Keypoint",
    "Frame",
    "PoseSeries",
    "MOVENET_KEYPOINTS",
    "BLAZEPOSE_KEYPOINTS",

    # Validation
    "KeypointValidator",
    "ValidationResult",
    "KeypointStats",
    "PoseDataError",
    "RequiredKeypointsResult",
    "check_required_keypoints",
    "validate_keypoint",
    "validate_keypoints",

    # Geometry
    "GeometryEngine",
    "distance",
    "angle_at_vertex",

    # Quality
    "QualityAssessor",
    "QualityResult",
    "QualityBucket",
    "SeriesQuality",

    # Aggregation
    "FrameAggregator",
    "SessionStatistics",

    # Main pipeline
    "PoseProcessor",
    "ProcessedFrame",
    "ProcessingResult",
    "PoseDataReport",
    "FrameQuality",
]
