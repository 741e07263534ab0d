"""Analysis configuration."""

import logging
from functools import lru_cache
from typing import Dict, Tuple

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings


DEFAULT_ANGLE_DOMAINS: Dict[str, Tuple[float, float]] = {
    "knee": (0.0, 180.0),
    "back": (-90.0, 90.0),
    "hip": (0.0, 180.0),
    "shoulder": (0.0, 180.0),
    "ankle": (0.0, 180.0),
}


class AnalysisSettings(BaseSettings):
    """Thresholds and geometric constants, loaded from environment variables."""

    # Logging
    debug: bool = False
    log_level: str = "INFO"

    # Keypoint confidence
    min_confidence_threshold: float = 0.5
    min_keypoint_count: int = 1

    # Quality buckets (inclusive lower bounds)
    quality_good: float = 0.7
    quality_fair: float = 0.5
    quality_poor: float = 0.3

    # Normalized coordinate space
    coordinate_min: float = 0.0
    coordinate_max: float = 1.0
    confidence_min: float = 0.0
    confidence_max: float = 1.0

    # Joint angle domains (degrees)
    angle_domains: Dict[str, Tuple[float, float]] = dict(DEFAULT_ANGLE_DOMAINS)

    # Synthetic reference points. Uncalibrated: the offset is in normalized
    # image units, so the resulting angles depend on frame aspect ratio.
    back_reference_offset: float = 0.1
    ankle_reference_offset: float = 0.1
    back_angle_offset_degrees: float = 90.0

    # Rounding
    angle_decimals: int = 2
    confidence_decimals: int = 3

    # Series limits
    min_fps: float = 1.0
    max_fps: float = 120.0
    max_timestamp_seconds: float = 36000.0  # 10 hours

    class Config:
        env_prefix = "POSECORE_"
        env_file = ".env"
        extra = "ignore"
        frozen = True

    @field_validator("angle_domains")
    @classmethod
    def validate_angle_domains(cls, v: Dict[str, Tuple[float, float]]) -> Dict[str, Tuple[float, float]]:
        domains = {}
        for kind, (low, high) in v.items():
            if low > high:
                raise ValueError(f"angle domain for {kind} is inverted: {low} > {high}")
            domains[kind.lower()] = (float(low), float(high))
        # Partial overrides keep the defaults for kinds they don't mention
        return {**DEFAULT_ANGLE_DOMAINS, **domains}

    @model_validator(mode="after")
    def validate_thresholds(self) -> "AnalysisSettings":
        if not (self.quality_good >= self.quality_fair >= self.quality_poor):
            raise ValueError(
                "quality thresholds must satisfy good >= fair >= poor, got "
                f"{self.quality_good}/{self.quality_fair}/{self.quality_poor}"
            )
        if self.min_fps > self.max_fps:
            raise ValueError(f"min_fps ({self.min_fps}) exceeds max_fps ({self.max_fps})")
        return self

    def angle_domain(self, kind: str) -> Tuple[float, float]:
        """Return the (min, max) domain for a joint kind name."""
        return self.angle_domains[kind.lower()]


@lru_cache
def get_settings() -> AnalysisSettings:
    """Get cached settings instance."""
    return AnalysisSettings()


def configure_logging(settings: AnalysisSettings = None) -> None:
    """Configure root logging for applications embedding the analysis core."""
    settings = settings or get_settings()
    level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
