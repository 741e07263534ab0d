"""Pose analysis core for exercise form tracking."""

from posecore.config import AnalysisSettings, get_settings, configure_logging

__version__ = "1.0.0"

__all__ = [
    "AnalysisSettings",
    "get_settings",
    "configure_logging",
]
