"""
Pose data structures consumed by the analysis core.

Keypoints arrive already detected (MoveNet, BlazePose or any model using the
same snake_case landmark names). Names are parsed once, case-insensitively,
into KeypointName so the geometry code never matches strings itself.
"""

from dataclasses import dataclass, field
from enum import Enum
from numbers import Real
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence


class KeypointName(str, Enum):
    """Landmark names shared by the MoveNet and BlazePose topologies."""
    NOSE = "nose"
    LEFT_EYE_INNER = "left_eye_inner"
    LEFT_EYE = "left_eye"
    LEFT_EYE_OUTER = "left_eye_outer"
    RIGHT_EYE_INNER = "right_eye_inner"
    RIGHT_EYE = "right_eye"
    RIGHT_EYE_OUTER = "right_eye_outer"
    LEFT_EAR = "left_ear"
    RIGHT_EAR = "right_ear"
    MOUTH_LEFT = "mouth_left"
    MOUTH_RIGHT = "mouth_right"
    LEFT_SHOULDER = "left_shoulder"
    RIGHT_SHOULDER = "right_shoulder"
    LEFT_ELBOW = "left_elbow"
    RIGHT_ELBOW = "right_elbow"
    LEFT_WRIST = "left_wrist"
    RIGHT_WRIST = "right_wrist"
    LEFT_PINKY = "left_pinky"
    RIGHT_PINKY = "right_pinky"
    LEFT_INDEX = "left_index"
    RIGHT_INDEX = "right_index"
    LEFT_THUMB = "left_thumb"
    RIGHT_THUMB = "right_thumb"
    LEFT_HIP = "left_hip"
    RIGHT_HIP = "right_hip"
    LEFT_KNEE = "left_knee"
    RIGHT_KNEE = "right_knee"
    LEFT_ANKLE = "left_ankle"
    RIGHT_ANKLE = "right_ankle"
    LEFT_HEEL = "left_heel"
    RIGHT_HEEL = "right_heel"
    LEFT_FOOT_INDEX = "left_foot_index"
    RIGHT_FOOT_INDEX = "right_foot_index"

    @classmethod
    def parse(cls, name: Any) -> Optional["KeypointName"]:
        """Case-insensitive lookup; None for unknown or non-string names."""
        if not isinstance(name, str):
            return None
        try:
            return cls(name.strip().lower())
        except ValueError:
            return None

    @classmethod
    def for_side(cls, side: str, part: str) -> "KeypointName":
        """KeypointName.for_side("left", "knee") -> LEFT_KNEE."""
        return cls(f"{side.lower()}_{part}")


MOVENET_KEYPOINTS: List[str] = [
    "nose",
    "left_eye", "right_eye",
    "left_ear", "right_ear",
    "left_shoulder", "right_shoulder",
    "left_elbow", "right_elbow",
    "left_wrist", "right_wrist",
    "left_hip", "right_hip",
    "left_knee", "right_knee",
    "left_ankle", "right_ankle",
]

BLAZEPOSE_KEYPOINTS: List[str] = [name.value for name in KeypointName]

SIDES = ("left", "right")


class JointKind(str, Enum):
    """Joint angles the core measures."""
    KNEE = "knee"
    HIP = "hip"
    BACK = "back"
    SHOULDER = "shoulder"
    ANKLE = "ankle"

    @property
    def key(self) -> str:
        """Collaborator-facing key, e.g. 'kneeAngle'."""
        return f"{self.value}Angle"

    @property
    def is_bilateral(self) -> bool:
        return self is not JointKind.BACK

    @classmethod
    def parse(cls, key: Any) -> Optional["JointKind"]:
        """Accepts 'knee', 'KNEE' or 'kneeAngle'."""
        if isinstance(key, JointKind):
            return key
        if not isinstance(key, str):
            return None
        normalized = key.strip().lower()
        if normalized.endswith("angle"):
            normalized = normalized[:-len("angle")]
        try:
            return cls(normalized.rstrip("_"))
        except ValueError:
            return None


class SegmentKind(str, Enum):
    """Left/right widths measured between paired keypoints."""
    KNEE_WIDTH = "kneeWidth"
    FOOT_WIDTH = "footWidth"
    SHOULDER_WIDTH = "shoulderWidth"
    HIP_WIDTH = "hipWidth"

    @classmethod
    def parse(cls, key: Any) -> Optional["SegmentKind"]:
        """Accepts 'kneeWidth' in any case, or 'knee_width'."""
        if isinstance(key, SegmentKind):
            return key
        if not isinstance(key, str):
            return None
        normalized = key.strip().replace("_", "").lower()
        for segment in cls:
            if segment.value.lower() == normalized:
                return segment
        return None

    @property
    def part(self) -> str:
        return {
            SegmentKind.KNEE_WIDTH: "knee",
            SegmentKind.FOOT_WIDTH: "ankle",
            SegmentKind.SHOULDER_WIDTH: "shoulder",
            SegmentKind.HIP_WIDTH: "hip",
        }[self]


@dataclass(frozen=True)
class Keypoint:
    """Single keypoint in normalized image coordinates."""
    name: str
    x: float  # Normalized x coordinate (0-1)
    y: float  # Normalized y coordinate (0-1)
    confidence: float  # Detection confidence (0-1)
    z: Optional[float] = None  # Model-defined depth, unconstrained

    @property
    def keypoint_name(self) -> Optional[KeypointName]:
        return KeypointName.parse(self.name)

    @property
    def has_position(self) -> bool:
        return is_number(self.x) and is_number(self.y)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Keypoint":
        """
        Build a keypoint from a raw mapping without coercing values.

        Missing fields become None so KeypointValidator can report them.
        """
        return cls(
            name=data.get("name"),
            x=data.get("x"),
            y=data.get("y"),
            confidence=data.get("confidence"),
            z=data.get("z"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {"name": self.name, "x": self.x, "y": self.y, "confidence": self.confidence}
        if self.z is not None:
            data["z"] = self.z
        return data


@dataclass(frozen=True)
class Frame:
    """
    One timestamped snapshot of detected keypoints.

    `angles` and `distances` are sparse: a kind that could not be measured is
    absent, never stored as None or 0. Keys such as 'kneeAngle' or
    'kneeWidth' are normalized to JointKind / SegmentKind on construction.
    Angle keys that are not a JointKind move to `unknown_angles` so validation
    can report them; unrecognised distance keys are dropped.
    """
    index: int
    timestamp_seconds: float
    keypoints: Sequence[Keypoint] = field(default_factory=tuple)
    angles: Mapping[JointKind, float] = field(default_factory=dict)
    distances: Mapping[SegmentKind, float] = field(default_factory=dict)
    unknown_angles: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        lookup: Dict[KeypointName, Keypoint] = {}
        for kp in self.keypoints:
            parsed = KeypointName.parse(getattr(kp, "name", None))
            # First occurrence wins for duplicated names
            if parsed is not None and parsed not in lookup:
                lookup[parsed] = kp
        object.__setattr__(self, "_lookup", lookup)

        angles: Dict[JointKind, Any] = {}
        unknown = dict(self.unknown_angles or {})
        for key, value in (self.angles or {}).items():
            joint = JointKind.parse(key)
            if joint is None:
                unknown[key] = value
            elif joint not in angles:
                angles[joint] = value
        object.__setattr__(self, "angles", angles)
        object.__setattr__(self, "unknown_angles", unknown)

        distances: Dict[SegmentKind, Any] = {}
        for key, value in (self.distances or {}).items():
            segment = SegmentKind.parse(key)
            if segment is not None and segment not in distances:
                distances[segment] = value
        object.__setattr__(self, "distances", distances)

    def get(self, name: Any) -> Optional[Keypoint]:
        """Get a keypoint by KeypointName or case-insensitive string."""
        key = name if isinstance(name, KeypointName) else KeypointName.parse(name)
        if key is None:
            return None
        return self._lookup.get(key)

    def get_many(self, names: Iterable[Any]) -> Dict[str, Keypoint]:
        """Keypoints found for the requested names, keyed by requested name."""
        found = {}
        for name in names:
            kp = self.get(name)
            if kp is not None:
                label = name.value if isinstance(name, KeypointName) else name
                found[label] = kp
        return found

    @property
    def confidences(self) -> List[float]:
        """Numeric keypoint confidences, in keypoint order."""
        return [
            kp.confidence for kp in self.keypoints
            if is_number(getattr(kp, "confidence", None))
        ]

    def with_measurements(
        self,
        angles: Optional[Mapping[JointKind, float]] = None,
        distances: Optional[Mapping[SegmentKind, float]] = None,
    ) -> "Frame":
        """Copy of this frame with angles and/or distances replaced."""
        return Frame(
            index=self.index,
            timestamp_seconds=self.timestamp_seconds,
            keypoints=self.keypoints,
            angles=dict(self.angles if angles is None else angles),
            distances=dict(self.distances if distances is None else distances),
            unknown_angles=dict(self.unknown_angles),
        )


@dataclass(frozen=True)
class PoseSeries:
    """A session's full capture."""
    frames: Sequence[Frame] = field(default_factory=tuple)
    fps: Optional[float] = None
    total_frames: Optional[int] = None

    def __len__(self) -> int:
        return len(self.frames)

    @property
    def frame_count(self) -> int:
        return len(self.frames)


def is_number(value: Any) -> bool:
    """True for real numbers that are not NaN; bools are rejected."""
    if isinstance(value, bool) or not isinstance(value, Real):
        return False
    return value == value
