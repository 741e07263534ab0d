"""
Joint angle and segment distance computation.

All functions degrade gracefully: a missing keypoint or a degenerate
(zero-length) vector yields None, never an exception. Partial detection is
the normal case for monocular pose estimation, not an error.

Angles are planar (x, y). Depth (z) is model-defined and not comparable
across detectors, so it is ignored here.
"""

from typing import Any, Dict, Mapping, Optional
import logging

import numpy as np

from posecore.analysis.pose_frame import (
    Frame,
    JointKind,
    KeypointName,
    SegmentKind,
    SIDES,
    is_number,
)
from posecore.config import AnalysisSettings, get_settings

logger = logging.getLogger(__name__)


def _xy(point: Any) -> Optional[np.ndarray]:
    """Planar position of a keypoint-like object or mapping, or None."""
    if point is None:
        return None
    if isinstance(point, Mapping):
        x, y = point.get("x"), point.get("y")
    else:
        x, y = getattr(point, "x", None), getattr(point, "y", None)
    if not (is_number(x) and is_number(y)):
        return None
    return np.array([x, y], dtype=float)


def distance(a: Any, b: Any) -> Optional[float]:
    """Euclidean distance in normalized-coordinate space."""
    pa, pb = _xy(a), _xy(b)
    if pa is None or pb is None:
        return None
    return float(np.linalg.norm(pb - pa))


def angle_at_vertex(p1: Any, vertex: Any, p2: Any, decimals: Optional[int] = 2) -> Optional[float]:
    """
    Angle in degrees at `vertex` between the rays to `p1` and `p2`.

    Uses the dot-product formula with the cosine clamped to [-1, 1] to absorb
    floating-point overshoot. Returns None if any point is missing or either
    ray has zero length.
    """
    a, v, b = _xy(p1), _xy(vertex), _xy(p2)
    if a is None or v is None or b is None:
        return None

    v1 = a - v
    v2 = b - v
    mag1 = np.linalg.norm(v1)
    mag2 = np.linalg.norm(v2)
    if mag1 == 0 or mag2 == 0:
        return None

    cos_angle = float(np.dot(v1, v2) / (mag1 * mag2))
    angle = float(np.degrees(np.arccos(np.clip(cos_angle, -1.0, 1.0))))
    if decimals is not None:
        angle = round(angle, decimals)
    return angle


def _midpoint(a: Any, b: Any) -> Optional[Dict[str, float]]:
    pa, pb = _xy(a), _xy(b)
    if pa is None or pb is None:
        return None
    mid = (pa + pb) / 2.0
    return {"x": float(mid[0]), "y": float(mid[1])}


class GeometryEngine:
    """
    Joint-specific angle helpers over a Frame's named keypoints.

    Topology per joint:
        knee:     hip - KNEE - ankle
        hip:      shoulder - HIP - knee
        back:     vertical ref - SHOULDER MID - hip mid, minus 90
        shoulder: shoulder - ELBOW - wrist
        ankle:    knee - ANKLE - point below the ankle
    """

    def __init__(self, settings: Optional[AnalysisSettings] = None):
        self.settings = settings or get_settings()

    def _angle(self, p1: Any, vertex: Any, p2: Any) -> Optional[float]:
        return angle_at_vertex(p1, vertex, p2, decimals=self.settings.angle_decimals)

    def _side_triplet(self, frame: Frame, side: str, first: str, vertex: str, last: str) -> Optional[float]:
        try:
            names = [KeypointName.for_side(side, part) for part in (first, vertex, last)]
        except ValueError:
            logger.debug(f"Unknown side '{side}'")
            return None
        p1, v, p2 = (frame.get(name) for name in names)
        if p1 is None or v is None or p2 is None:
            return None
        return self._angle(p1, v, p2)

    def knee_angle(self, frame: Frame, side: str = "left") -> Optional[float]:
        """Knee flexion: 180 = straight leg."""
        return self._side_triplet(frame, side, "hip", "knee", "ankle")

    def hip_angle(self, frame: Frame, side: str = "left") -> Optional[float]:
        """Hip angle between torso and thigh: 180 = standing tall."""
        return self._side_triplet(frame, side, "shoulder", "hip", "knee")

    def shoulder_angle(self, frame: Frame, side: str = "left") -> Optional[float]:
        """Arm angle measured at the elbow (shoulder-elbow-wrist)."""
        return self._side_triplet(frame, side, "shoulder", "elbow", "wrist")

    def ankle_angle(self, frame: Frame, side: str = "left") -> Optional[float]:
        """
        Approximate foot flexion without a toe keypoint.

        The second ray points to a synthetic point directly below the ankle.
        """
        try:
            knee = frame.get(KeypointName.for_side(side, "knee"))
            ankle = frame.get(KeypointName.for_side(side, "ankle"))
        except ValueError:
            return None
        ankle_xy = _xy(ankle)
        if knee is None or ankle_xy is None:
            return None
        below = {"x": float(ankle_xy[0]), "y": float(ankle_xy[1]) + self.settings.ankle_reference_offset}
        return self._angle(knee, ankle, below)

    def back_angle(self, frame: Frame) -> Optional[float]:
        """
        Torso lean from the shoulder and hip midpoints.

        The reference ray points to a synthetic point `back_reference_offset`
        above the shoulder midpoint (smaller y). The raw angle is shifted by
        `back_angle_offset_degrees` into [-90, 90]. The offset is in
        normalized image units and is not camera-calibrated.
        """
        shoulder_mid = _midpoint(frame.get(KeypointName.LEFT_SHOULDER), frame.get(KeypointName.RIGHT_SHOULDER))
        hip_mid = _midpoint(frame.get(KeypointName.LEFT_HIP), frame.get(KeypointName.RIGHT_HIP))
        if shoulder_mid is None or hip_mid is None:
            return None

        vertical_ref = {"x": shoulder_mid["x"], "y": shoulder_mid["y"] - self.settings.back_reference_offset}
        raw = angle_at_vertex(vertical_ref, shoulder_mid, hip_mid, decimals=None)
        if raw is None:
            return None
        return round(raw - self.settings.back_angle_offset_degrees, self.settings.angle_decimals)

    def joint_angle(self, frame: Frame, kind: JointKind, side: Optional[str] = None) -> Optional[float]:
        """
        Angle of one joint kind.

        For bilateral joints without an explicit side, both sides are
        averaged when available, otherwise the available side is used.
        """
        kind = JointKind(kind)
        if kind is JointKind.BACK:
            return self.back_angle(frame)

        helper = {
            JointKind.KNEE: self.knee_angle,
            JointKind.HIP: self.hip_angle,
            JointKind.SHOULDER: self.shoulder_angle,
            JointKind.ANKLE: self.ankle_angle,
        }[kind]

        if side is not None:
            return helper(frame, side)

        values = [v for v in (helper(frame, s) for s in SIDES) if v is not None]
        if not values:
            return None
        if len(values) == 1:
            return values[0]
        return round(float(np.mean(values)), self.settings.angle_decimals)

    def all_angles(self, frame: Frame) -> Dict[JointKind, float]:
        """Sparse map of every measurable joint angle; unmeasurable kinds are omitted."""
        angles = {}
        for kind in JointKind:
            value = self.joint_angle(frame, kind)
            if value is not None:
                angles[kind] = value
        return angles

    def all_distances(self, frame: Frame) -> Dict[SegmentKind, float]:
        """Sparse map of left/right widths (knees, ankles, shoulders, hips)."""
        distances = {}
        for segment in SegmentKind:
            left = frame.get(KeypointName.for_side("left", segment.part))
            right = frame.get(KeypointName.for_side("right", segment.part))
            value = distance(left, right)
            if value is not None:
                distances[segment] = value
        return distances
