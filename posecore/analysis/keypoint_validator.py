"""
Keypoint validation against coordinate and confidence domain rules.

Violations are COLLECTED, never raised: a validator reports every problem it
finds so the caller can decide whether to drop a frame outright or keep it
with reduced trust. Low confidence is a warning, not an error.
"""

from dataclasses import dataclass, field
from numbers import Integral
from typing import Any, List, Mapping, Optional, Sequence
import logging

from posecore.analysis.pose_frame import JointKind, KeypointName, is_number
from posecore.config import AnalysisSettings, get_settings

logger = logging.getLogger(__name__)


class PoseDataError(ValueError):
    """Raised only by strict entry points when validation failed."""

    def __init__(self, errors: Sequence[str], message: str = "Pose data validation failed"):
        self.errors = list(errors)
        super().__init__(f"{message}: {', '.join(self.errors)}" if self.errors else message)


@dataclass
class KeypointStats:
    """Counts used to decide whether to discard a frame or proceed."""
    total: int = 0
    valid: int = 0
    low_confidence: int = 0


@dataclass
class ValidationResult:
    """
    Outcome of a validation pass.

    `errors` make the result invalid; `warnings` never do.
    """
    valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    stats: Optional[KeypointStats] = None

    # Indices (positions in the input) of frames that failed, series only
    invalid_frames: List[int] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        self.errors.append(message)
        self.valid = False

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)

    def merge(self, other: "ValidationResult", prefix: str = "") -> "ValidationResult":
        """Fold another result's errors and warnings into this one."""
        for error in other.errors:
            self.add_error(f"{prefix}{error}")
        self.warnings.extend(f"{prefix}{warning}" for warning in other.warnings)
        if not other.valid:
            self.valid = False
        return self

    def raise_for_errors(self) -> "ValidationResult":
        """Raise PoseDataError if invalid; return self otherwise."""
        if not self.valid:
            raise PoseDataError(self.errors)
        return self


@dataclass
class RequiredKeypointsResult:
    """Presence check of named keypoints."""
    valid: bool
    missing: List[str] = field(default_factory=list)
    present: List[str] = field(default_factory=list)


def _read(item: Any, name: str) -> Any:
    """Field access for Keypoint objects and raw mappings alike."""
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def _has(item: Any, name: str) -> bool:
    if isinstance(item, Mapping):
        return name in item and item[name] is not None
    return getattr(item, name, None) is not None


class KeypointValidator:
    """
    Validates single keypoints, keypoint sets and carried joint angles.

    Accepts Keypoint instances or raw mappings with the same field names, so
    untrusted collaborator input can be checked before it is trusted.
    """

    def __init__(self, settings: Optional[AnalysisSettings] = None):
        self.settings = settings or get_settings()

    def validate_keypoint(self, keypoint: Any) -> ValidationResult:
        """Check name, x, y, confidence and optional z of one keypoint."""
        result = ValidationResult()
        s = self.settings

        if keypoint is None or not (isinstance(keypoint, Mapping) or hasattr(keypoint, "x")):
            result.add_error("Keypoint must be an object")
            return result

        name = _read(keypoint, "name")
        if not isinstance(name, str) or not name.strip():
            result.add_error("Keypoint name is required and must be a string")

        self._check_range(result, _read(keypoint, "x"), "X coordinate", s.coordinate_min, s.coordinate_max)
        self._check_range(result, _read(keypoint, "y"), "Y coordinate", s.coordinate_min, s.coordinate_max)
        self._check_range(result, _read(keypoint, "confidence"), "Confidence", s.confidence_min, s.confidence_max)

        if _has(keypoint, "z") and not is_number(_read(keypoint, "z")):
            result.add_error("Z coordinate must be a number if provided")

        return result

    def validate_keypoints(
        self,
        keypoints: Any,
        min_count: Optional[int] = None,
        min_confidence: Optional[float] = None,
    ) -> ValidationResult:
        """
        Validate a keypoint set.

        Args:
            keypoints: Sequence of keypoints (objects or mappings)
            min_count: Minimum number of keypoints required (default from settings)
            min_confidence: Confidence below which a keypoint is flagged

        Returns:
            ValidationResult with stats (total, valid, low_confidence)
        """
        min_count = self.settings.min_keypoint_count if min_count is None else min_count
        min_confidence = self.settings.min_confidence_threshold if min_confidence is None else min_confidence

        if isinstance(keypoints, (str, bytes, Mapping)) or not isinstance(keypoints, Sequence):
            return ValidationResult(valid=False, errors=["Keypoints must be a sequence"], stats=KeypointStats())

        result = ValidationResult(stats=KeypointStats(total=len(keypoints)))

        if len(keypoints) < min_count:
            result.add_error(f"At least {min_count} keypoint(s) required, got {len(keypoints)}")

        for i, kp in enumerate(keypoints):
            kp_result = self.validate_keypoint(kp)
            if not kp_result.valid:
                result.add_error(f"Keypoint {i}: {', '.join(kp_result.errors)}")
                continue

            result.stats.valid += 1
            confidence = _read(kp, "confidence")
            if confidence < min_confidence:
                result.stats.low_confidence += 1
                result.add_warning(
                    f"Keypoint {i} ({_read(kp, 'name')}) has low confidence: {confidence}"
                )

        if result.stats.low_confidence > 0:
            result.add_warning(
                f"{result.stats.low_confidence} keypoint(s) have confidence below threshold ({min_confidence})"
            )

        if result.stats.valid < min_count:
            result.valid = False

        logger.debug(
            f"Validated {result.stats.total} keypoints: "
            f"{result.stats.valid} valid, {result.stats.low_confidence} low confidence"
        )
        return result

    def validate_angle(self, kind: Any, value: Any) -> ValidationResult:
        """Check one joint angle against its configured domain."""
        result = ValidationResult()
        joint = JointKind.parse(kind)
        label = joint.key if joint else str(kind)

        if not is_number(value):
            result.add_error(f"{label} must be a number")
            return result

        if joint is None or joint.value not in self.settings.angle_domains:
            result.add_error(f"Unknown angle type: {kind}")
            return result

        low, high = self.settings.angle_domain(joint.value)
        if value < low or value > high:
            result.add_error(f"{label} must be between {low:g}° and {high:g}° (got {value}°)")

        return result

    def validate_angles(self, angles: Any) -> ValidationResult:
        """Check every angle present in a sparse angle mapping."""
        if not isinstance(angles, Mapping):
            return ValidationResult(valid=False, errors=["Angles must be a mapping"])

        result = ValidationResult()
        for kind, value in angles.items():
            if value is None:
                continue
            angle_result = self.validate_angle(kind, value)
            for error in angle_result.errors:
                result.add_error(error)
        return result

    def validate_frame_index(self, index: Any) -> ValidationResult:
        result = ValidationResult()
        if not is_number(index):
            result.add_error("Frame number must be a number")
        elif index < 0:
            result.add_error("Frame number cannot be negative")
        elif not (isinstance(index, Integral) or float(index).is_integer()):
            result.add_error("Frame number must be an integer")
        return result

    def validate_timestamp(self, timestamp: Any) -> ValidationResult:
        """Timestamp in seconds: numeric, non-negative, not absurdly large."""
        result = ValidationResult()
        if not is_number(timestamp):
            result.add_error("Timestamp must be a number")
            return result
        if timestamp < 0:
            result.add_error("Timestamp cannot be negative")
        if timestamp > self.settings.max_timestamp_seconds:
            result.add_error(f"Timestamp seems unreasonably large: {timestamp} s")
        return result

    def _check_range(self, result: ValidationResult, value: Any, label: str, low: float, high: float) -> None:
        if not is_number(value):
            result.add_error(f"{label} is required and must be a number")
        elif value < low or value > high:
            result.add_error(f"{label} must be between {low:g} and {high:g}")


def check_required_keypoints(keypoints: Any, required: Sequence[str] = ()) -> RequiredKeypointsResult:
    """
    Check that every required name is present (case-insensitive).

    Unknown names are compared as plain lowercase strings, so custom
    topologies work as well as MoveNet/BlazePose ones.
    """
    required = list(required)
    if not keypoints or isinstance(keypoints, (str, bytes, Mapping)):
        return RequiredKeypointsResult(valid=False, missing=required, present=[])

    present = []
    for kp in keypoints:
        name = _read(kp, "name")
        if isinstance(name, str) and name:
            parsed = KeypointName.parse(name)
            present.append(parsed.value if parsed else name.strip().lower())

    present_set = set(present)
    missing = [name for name in required if name.strip().lower() not in present_set]
    return RequiredKeypointsResult(valid=not missing, missing=missing, present=present)


def validate_keypoint(keypoint: Any, settings: Optional[AnalysisSettings] = None) -> ValidationResult:
    """Convenience wrapper around KeypointValidator.validate_keypoint."""
    return KeypointValidator(settings).validate_keypoint(keypoint)


def validate_keypoints(
    keypoints: Any,
    min_count: Optional[int] = None,
    min_confidence: Optional[float] = None,
    settings: Optional[AnalysisSettings] = None,
) -> ValidationResult:
    """Convenience wrapper around KeypointValidator.validate_keypoints."""
    return KeypointValidator(settings).validate_keypoints(keypoints, min_count, min_confidence)
