import os
import tempfile
import unittest
from unittest.mock import patch

import yaml

from src.gaslightchess.config import (
    ConfigError,
    Settings,
    ThresholdEntry,
    load_settings,
    parse_opening_script,
    parse_time_thresholds,
    save_settings,
    settings_from_mapping,
)


class ConfigFileTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.path = os.path.join(self.tmp.name, "settings.yml")

    def _write(self, text):
        with open(self.path, "w", encoding="utf-8") as f:
            f.write(text)

    def test_missing_file_gives_defaults(self):
        s = load_settings(os.path.join(self.tmp.name, "nope.yml"))
        self.assertEqual(s.max_score_loss, 200)
        self.assertEqual(s.score_floor, -700)
        self.assertEqual(s.opening_script[0], "e2e4")
        self.assertEqual(len(s.time_thresholds), 5)

    def test_values_from_yaml(self):
        self._write(
            "max_score_loss: 150\n"
            "gaslighting_enabled: false\n"
            "engine_options:\n  Threads: 4\n"
            "time_thresholds:\n"
            "  75: 2000\n"
            "  20: {movetime: 500, variance: 50}\n"
            "opening_script:\n  0: D2D4\n"
        )
        s = load_settings(self.path)
        self.assertEqual(s.max_score_loss, 150)
        self.assertFalse(s.gaslighting_enabled)
        self.assertEqual(s.engine_options, {"Threads": 4})
        self.assertIn(ThresholdEntry(75.0, 2000, 0), s.time_thresholds)
        self.assertIn(ThresholdEntry(20.0, 500, 50), s.time_thresholds)
        self.assertEqual(s.opening_script, {0: "d2d4"})

    def test_settings_path_from_environment(self):
        self._write("score_floor: -300\n")
        with patch.dict(os.environ, {"GASLIGHTCHESS_SETTINGS": self.path}):
            self.assertEqual(load_settings().score_floor, -300)

    def test_non_mapping_yaml_rejected(self):
        self._write("- a\n- b\n")
        with self.assertRaises(ConfigError):
            load_settings(self.path)

    def test_unparseable_yaml_rejected(self):
        self._write("max_score_loss: [1, 2\n")
        with self.assertRaises(ConfigError):
            load_settings(self.path)

    def test_save_then_load(self):
        save_settings({"max_score_loss": 120, "automove_enabled": False}, self.path)
        with open(self.path, encoding="utf-8") as f:
            self.assertEqual(yaml.safe_load(f), {"max_score_loss": 120, "automove_enabled": False})
        s = load_settings(self.path)
        self.assertEqual(s.max_score_loss, 120)
        self.assertFalse(s.automove_enabled)

    def test_save_rejects_invalid_values_without_writing(self):
        with self.assertRaises(ConfigError):
            save_settings({"port": "not-a-port"}, self.path)
        self.assertFalse(os.path.exists(self.path))
        with self.assertRaises(ConfigError):
            save_settings(["max_score_loss", 1], self.path)


class MappingTests(unittest.TestCase):
    def test_environment_fills_missing_keys(self):
        with patch.dict(os.environ, {"GASLIGHTCHESS_MAX_SCORE_LOSS": "333", "GASLIGHTCHESS_AUTOMOVE_ENABLED": "no"}):
            s = settings_from_mapping({})
            self.assertEqual(s.max_score_loss, 333)
            self.assertFalse(s.automove_enabled)
            # file value wins over the environment
            self.assertEqual(settings_from_mapping({"max_score_loss": 10}).max_score_loss, 10)

    def test_bool_strings(self):
        self.assertFalse(settings_from_mapping({"critical_time_enabled": "false"}).critical_time_enabled)
        self.assertTrue(settings_from_mapping({"critical_time_enabled": "On"}).critical_time_enabled)

    def test_log_level_upper_cased(self):
        self.assertEqual(settings_from_mapping({"log_level": "debug"}).log_level, "DEBUG")

    def test_bad_number_raises_config_error(self):
        with self.assertRaises(ConfigError):
            settings_from_mapping({"gaslight_lines": "many"})

    def test_as_dict_uses_plain_threshold_keys(self):
        d = Settings().as_dict()
        self.assertEqual(d["time_thresholds"][61], {"movetime": 1500, "variance": 300})
        self.assertEqual(d["max_score_loss"], 200)


class ThresholdParsingTests(unittest.TestCase):
    def test_plain_and_nested_forms(self):
        entries = parse_time_thresholds({"50": 3500, 30: {"movetime": 2500}})
        self.assertEqual(set(entries), {ThresholdEntry(50.0, 3500, 0), ThresholdEntry(30.0, 2500, 0)})

    def test_duplicate_floor_rejected(self):
        with self.assertRaises(ConfigError):
            parse_time_thresholds({"50": 100, 50: 200})

    def test_out_of_range_floor_rejected(self):
        with self.assertRaises(ConfigError):
            parse_time_thresholds({150: 100})
        with self.assertRaises(ConfigError):
            parse_time_thresholds({"half": 100})

    def test_negative_values_rejected(self):
        with self.assertRaises(ConfigError):
            parse_time_thresholds({50: -1})
        with self.assertRaises(ConfigError):
            parse_time_thresholds({50: {"movetime": 100, "variance": -5}})

    def test_not_a_mapping(self):
        with self.assertRaises(ConfigError):
            parse_time_thresholds([50, 100])
        self.assertEqual(parse_time_thresholds(None), ())

    def test_opening_script_keys_are_ints(self):
        self.assertEqual(parse_opening_script({"0": "E2E4 "}), {0: "e2e4"})
        with self.assertRaises(ConfigError):
            parse_opening_script({"first": "e2e4"})


if __name__ == "__main__":
    unittest.main()
