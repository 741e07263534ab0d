import logging
import os
import unittest
from unittest import mock

from pydantic import ValidationError

from posecore.config import DEFAULT_ANGLE_DOMAINS, AnalysisSettings, configure_logging, get_settings


class AnalysisSettingsTests(unittest.TestCase):
    def test_defaults(self) -> None:
        settings = AnalysisSettings()
        self.assertEqual(settings.min_confidence_threshold, 0.5)
        self.assertEqual(
            (settings.quality_good, settings.quality_fair, settings.quality_poor),
            (0.7, 0.5, 0.3),
        )
        self.assertEqual(settings.angle_domains, DEFAULT_ANGLE_DOMAINS)

    def test_environment_override(self) -> None:
        with mock.patch.dict(os.environ, {"POSECORE_QUALITY_GOOD": "0.8", "POSECORE_MAX_FPS": "60"}):
            settings = AnalysisSettings()
        self.assertEqual(settings.quality_good, 0.8)
        self.assertEqual(settings.max_fps, 60.0)

    def test_partial_angle_domains_keep_defaults(self) -> None:
        settings = AnalysisSettings(angle_domains={"KNEE": (10, 170)})
        self.assertEqual(settings.angle_domain("knee"), (10.0, 170.0))
        self.assertEqual(settings.angle_domain("back"), (-90.0, 90.0))

    def test_inverted_angle_domain_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            AnalysisSettings(angle_domains={"hip": (170.0, 10.0)})

    def test_threshold_ordering_enforced(self) -> None:
        with self.assertRaises(ValidationError):
            AnalysisSettings(quality_good=0.4, quality_fair=0.5)
        with self.assertRaises(ValidationError):
            AnalysisSettings(min_fps=60, max_fps=30)

    def test_settings_are_frozen(self) -> None:
        settings = AnalysisSettings()
        with self.assertRaises(ValidationError):
            settings.quality_good = 0.9

    def test_get_settings_is_cached(self) -> None:
        self.assertIs(get_settings(), get_settings())


class ConfigureLoggingTests(unittest.TestCase):
    def test_debug_forces_debug_level(self) -> None:
        with mock.patch("logging.basicConfig") as basic_config:
            configure_logging(AnalysisSettings(debug=True))
        self.assertEqual(basic_config.call_args.kwargs["level"], logging.DEBUG)

    def test_log_level_from_settings(self) -> None:
        with mock.patch("logging.basicConfig") as basic_config:
            configure_logging(AnalysisSettings(log_level="warning"))
        self.assertEqual(basic_config.call_args.kwargs["level"], logging.WARNING)


if __name__ == "__main__":
    unittest.main()
