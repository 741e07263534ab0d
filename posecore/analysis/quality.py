"""
Confidence-based pose quality assessment.

A frame's quality is the mean confidence of its keypoints, bucketed as
Good / Fair / Poor with configurable inclusive lower bounds. A series'
quality is the mean of its per-frame means (each frame counts once,
regardless of how many keypoints it carries).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence
import logging

import numpy as np

from posecore.analysis.pose_frame import Frame
from posecore.config import AnalysisSettings, get_settings

logger = logging.getLogger(__name__)


class QualityBucket(Enum):
    """Discrete quality label."""
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"


@dataclass(frozen=True)
class QualityResult:
    """Per-frame quality; derived, never persisted by the core."""
    average_confidence: float
    bucket: QualityBucket
    meets_threshold: bool
    score: int = 0  # 3 good, 2 fair, 1 poor, 0 below the poor floor


@dataclass(frozen=True)
class SeriesQuality:
    """Quality of a whole capture."""
    average_confidence: float
    bucket: QualityBucket
    frame_count: int
    score: int = 0


class QualityAssessor:
    """
    Scores frames and series from keypoint confidence.

    Thresholds come from AnalysisSettings (quality_good, quality_fair,
    quality_poor) so they can be tuned without touching this logic.
    """

    def __init__(self, settings: Optional[AnalysisSettings] = None):
        self.settings = settings or get_settings()

    def classify(self, average_confidence: float) -> QualityBucket:
        """Bucket an average confidence, evaluated top-down."""
        if average_confidence >= self.settings.quality_good:
            return QualityBucket.GOOD
        if average_confidence >= self.settings.quality_fair:
            return QualityBucket.FAIR
        return QualityBucket.POOR

    def score(self, average_confidence: float) -> int:
        if average_confidence >= self.settings.quality_good:
            return 3
        if average_confidence >= self.settings.quality_fair:
            return 2
        if average_confidence >= self.settings.quality_poor:
            return 1
        return 0

    def frame_confidence(self, frame: Frame) -> float:
        """Mean keypoint confidence of a frame; 0.0 without keypoints."""
        confidences = frame.confidences
        if not confidences:
            return 0.0
        return float(np.mean(confidences))

    def assess_frame(self, frame: Frame, min_confidence: Optional[float] = None) -> QualityResult:
        """
        Assess one frame.

        Args:
            frame: Frame to score
            min_confidence: Gate for meets_threshold (default from settings)
        """
        if min_confidence is None:
            min_confidence = self.settings.min_confidence_threshold

        # Bucket on the exact mean; only the reported value is rounded
        average = self.frame_confidence(frame)
        return QualityResult(
            average_confidence=round(average, self.settings.confidence_decimals),
            bucket=self.classify(average),
            meets_threshold=average >= min_confidence,
            score=self.score(average),
        )

    def assess_series(self, frames: Sequence[Frame], min_confidence: Optional[float] = None) -> SeriesQuality:
        """Average the per-frame means and re-bucket the result."""
        if not frames:
            return SeriesQuality(
                average_confidence=0.0,
                bucket=QualityBucket.POOR,
                frame_count=0,
                score=0,
            )

        if min_confidence is None:
            min_confidence = self.settings.min_confidence_threshold

        frame_means = [self.frame_confidence(f) for f in frames]
        average = float(np.mean(frame_means))

        below = sum(1 for m in frame_means if m < min_confidence)
        if below:
            logger.debug(f"{below}/{len(frame_means)} frames below confidence threshold")

        return SeriesQuality(
            average_confidence=round(average, self.settings.confidence_decimals),
            bucket=self.classify(average),
            frame_count=len(frames),
            score=self.score(average),
        )
