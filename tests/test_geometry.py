import unittest

from posecore.analysis.geometry import GeometryEngine, angle_at_vertex, distance
from posecore.analysis.pose_frame import Frame, JointKind, Keypoint, SegmentKind
from posecore.config import AnalysisSettings


def _frame(points, index=0, timestamp=0.0):
    keypoints = tuple(
        Keypoint(name=name, x=x, y=y, confidence=c) for name, (x, y, c) in points.items()
    )
    return Frame(index=index, timestamp_seconds=timestamp, keypoints=keypoints)


STRAIGHT_LEG = {
    "left_hip": (0.5, 0.5, 0.9),
    "left_knee": (0.5, 0.7, 0.9),
    "left_ankle": (0.5, 0.9, 0.9),
}


class DistanceTests(unittest.TestCase):
    def test_distance_is_symmetric(self) -> None:
        a = {"x": 0.1, "y": 0.2}
        b = {"x": 0.4, "y": 0.6}
        self.assertAlmostEqual(distance(a, b), 0.5, places=9)
        self.assertEqual(distance(a, b), distance(b, a))

    def test_distance_to_self_is_zero(self) -> None:
        kp = Keypoint(name="nose", x=0.3, y=0.4, confidence=0.9)
        self.assertEqual(distance(kp, kp), 0.0)

    def test_missing_coordinates_return_none(self) -> None:
        self.assertIsNone(distance({"x": None, "y": 0.1}, {"x": 0.2, "y": 0.2}))
        self.assertIsNone(distance(None, {"x": 0.2, "y": 0.2}))


class AngleAtVertexTests(unittest.TestCase):
    def test_right_angle(self) -> None:
        angle = angle_at_vertex({"x": 0.6, "y": 0.5}, {"x": 0.5, "y": 0.5}, {"x": 0.5, "y": 0.4})
        self.assertEqual(angle, 90.0)

    def test_symmetric_in_outer_points(self) -> None:
        p1 = {"x": 0.21, "y": 0.37}
        v = {"x": 0.44, "y": 0.52}
        p2 = {"x": 0.73, "y": 0.18}
        self.assertEqual(angle_at_vertex(p1, v, p2), angle_at_vertex(p2, v, p1))

    def test_result_within_zero_and_180(self) -> None:
        points = [
            ({"x": 0.1, "y": 0.1}, {"x": 0.5, "y": 0.5}, {"x": 0.9, "y": 0.9}),
            ({"x": 0.1, "y": 0.1}, {"x": 0.5, "y": 0.5}, {"x": 0.2, "y": 0.2}),
            ({"x": 0.0, "y": 1.0}, {"x": 0.3, "y": 0.6}, {"x": 1.0, "y": 0.0}),
        ]
        for p1, v, p2 in points:
            angle = angle_at_vertex(p1, v, p2)
            self.assertGreaterEqual(angle, 0.0)
            self.assertLessEqual(angle, 180.0)

    def test_degenerate_vector_returns_none(self) -> None:
        v = {"x": 0.5, "y": 0.5}
        self.assertIsNone(angle_at_vertex(v, v, {"x": 0.1, "y": 0.1}))
        self.assertIsNone(angle_at_vertex({"x": 0.1, "y": 0.1}, v, dict(v)))

    def test_missing_point_returns_none(self) -> None:
        self.assertIsNone(angle_at_vertex(None, {"x": 0.5, "y": 0.5}, {"x": 0.1, "y": 0.1}))
        self.assertIsNone(angle_at_vertex({"x": 0.1}, {"x": 0.5, "y": 0.5}, {"x": 0.1, "y": 0.1}))


class JointAngleTests(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = GeometryEngine(AnalysisSettings())

    def test_straight_leg_knee_is_180(self) -> None:
        self.assertEqual(self.engine.knee_angle(_frame(STRAIGHT_LEG), "left"), 180.0)

    def test_bent_knee_decreases_with_offset(self) -> None:
        previous = 180.0
        for offset in (0.05, 0.1, 0.15):
            points = dict(STRAIGHT_LEG)
            points["left_knee"] = (0.5 + offset, 0.7, 0.9)
            angle = self.engine.knee_angle(_frame(points), "left")
            self.assertGreater(angle, 0.0)
            self.assertLess(angle, previous)
            previous = angle

    def test_missing_keypoint_returns_none(self) -> None:
        points = dict(STRAIGHT_LEG)
        del points["left_ankle"]
        frame = _frame(points)
        self.assertIsNone(self.engine.knee_angle(frame, "left"))
        self.assertIsNone(self.engine.knee_angle(frame, "right"))
        self.assertIsNone(self.engine.hip_angle(frame, "left"))
        self.assertIsNone(self.engine.shoulder_angle(frame, "left"))
        self.assertIsNone(self.engine.ankle_angle(frame, "left"))
        self.assertIsNone(self.engine.back_angle(frame))

    def test_unknown_side_returns_none(self) -> None:
        self.assertIsNone(self.engine.knee_angle(_frame(STRAIGHT_LEG), "middle"))

    def test_names_are_case_insensitive(self) -> None:
        points = {name.upper(): value for name, value in STRAIGHT_LEG.items()}
        self.assertEqual(self.engine.knee_angle(_frame(points), "left"), 180.0)

    def test_shoulder_angle_measured_at_elbow(self) -> None:
        frame = _frame({
            "left_shoulder": (0.5, 0.3, 0.9),
            "left_elbow": (0.5, 0.5, 0.9),
            "left_wrist": (0.7, 0.5, 0.9),
        })
        self.assertEqual(self.engine.shoulder_angle(frame, "left"), 90.0)

    def test_ankle_angle_with_knee_above_ankle(self) -> None:
        frame = _frame({"left_knee": (0.5, 0.7, 0.9), "left_ankle": (0.5, 0.9, 0.9)})
        self.assertEqual(self.engine.ankle_angle(frame, "left"), 180.0)

    def test_back_angle_offsets_raw_angle_by_90(self) -> None:
        upright = _frame({
            "left_shoulder": (0.4, 0.3, 0.9),
            "right_shoulder": (0.6, 0.3, 0.9),
            "left_hip": (0.4, 0.6, 0.9),
            "right_hip": (0.6, 0.6, 0.9),
        })
        self.assertEqual(self.engine.back_angle(upright), 90.0)

        horizontal = _frame({
            "left_shoulder": (0.4, 0.3, 0.9),
            "right_shoulder": (0.6, 0.3, 0.9),
            "left_hip": (0.7, 0.3, 0.9),
            "right_hip": (0.9, 0.3, 0.9),
        })
        self.assertEqual(self.engine.back_angle(horizontal), 0.0)

    def test_back_angle_requires_all_four_points(self) -> None:
        frame = _frame({
            "left_shoulder": (0.4, 0.3, 0.9),
            "right_shoulder": (0.6, 0.3, 0.9),
            "left_hip": (0.4, 0.6, 0.9),
        })
        self.assertIsNone(self.engine.back_angle(frame))


class AllAnglesTests(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = GeometryEngine(AnalysisSettings())

    def test_bilateral_joints_are_averaged(self) -> None:
        points = dict(STRAIGHT_LEG)
        points.update({
            "right_hip": (0.3, 0.5, 0.9),
            "right_knee": (0.3, 0.7, 0.9),
            "right_ankle": (0.5, 0.7, 0.9),
        })
        angles = self.engine.all_angles(_frame(points))
        self.assertEqual(angles[JointKind.KNEE], 135.0)

    def test_single_side_used_when_other_missing(self) -> None:
        frame = _frame({
            "left_shoulder": (0.5, 0.3, 0.9),
            "left_hip": (0.5, 0.5, 0.9),
            "left_knee": (0.6, 0.7, 0.9),
            "right_shoulder": (0.6, 0.3, 0.9),
            "right_knee": (0.6, 0.7, 0.9),
        })
        angles = self.engine.all_angles(frame)
        self.assertEqual(angles[JointKind.HIP], self.engine.hip_angle(frame, "left"))

    def test_unmeasurable_kinds_are_omitted(self) -> None:
        angles = self.engine.all_angles(_frame(STRAIGHT_LEG))
        self.assertIn(JointKind.KNEE, angles)
        self.assertNotIn(JointKind.BACK, angles)
        self.assertNotIn(JointKind.SHOULDER, angles)
        self.assertNotIn(JointKind.HIP, angles)

    def test_all_angles_and_distances_are_idempotent(self) -> None:
        points = dict(STRAIGHT_LEG)
        points.update({"right_knee": (0.6, 0.7, 0.8), "right_ankle": (0.6, 0.9, 0.8)})
        frame = _frame(points)
        self.assertEqual(self.engine.all_angles(frame), self.engine.all_angles(frame))
        self.assertEqual(self.engine.all_distances(frame), self.engine.all_distances(frame))


class AllDistancesTests(unittest.TestCase):
    def test_widths_between_paired_keypoints(self) -> None:
        engine = GeometryEngine(AnalysisSettings())
        frame = _frame({
            "left_knee": (0.4, 0.7, 0.9),
            "right_knee": (0.6, 0.7, 0.9),
            "left_ankle": (0.4, 0.9, 0.9),
        })
        distances = engine.all_distances(frame)
        self.assertAlmostEqual(distances[SegmentKind.KNEE_WIDTH], 0.2, places=9)
        self.assertNotIn(SegmentKind.FOOT_WIDTH, distances)
        self.assertNotIn(SegmentKind.SHOULDER_WIDTH, distances)

    def test_carried_distance_keys_are_normalized(self) -> None:
        frame = Frame(index=0, timestamp_seconds=0.0, distances={"kneeWidth": 0.2, "armSpan": 0.5})
        self.assertEqual(frame.distances, {SegmentKind.KNEE_WIDTH: 0.2})
        self.assertEqual(SegmentKind.parse("foot_width"), SegmentKind.FOOT_WIDTH)


if __name__ == "__main__":
    unittest.main()
