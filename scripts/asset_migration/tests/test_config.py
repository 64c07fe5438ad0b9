"""
Tests for configuration loading and validation.
"""

import json
import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from ..config import CATEGORY_NAMES, DEFAULT_EXPECTED_COUNTS, MigrationConfig


class TestMigrationConfig(unittest.TestCase):
    """Test configuration sources."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_defaults_are_valid(self):
        config = MigrationConfig()
        self.assertEqual(config.validate(), [])
        self.assertEqual(config.enabled_categories, CATEGORY_NAMES)
        self.assertEqual(config.frame_rate, 12.0)
        self.assertEqual(config.min_extraction_score, 0.0)

    def test_from_toml(self):
        path = self.temp_dir / "asset_migration.toml"
        path.write_text(
            '[paths]\n'
            'extraction_root = "Raw"\n'
            'output_root = "Out"\n'
            '\n'
            '[categories]\n'
            'Audio = false\n'
            '\n'
            '[slicing]\n'
            'naming_convention = "frame_first"\n'
            'custom_pivot = [0.25, 0.75]\n'
            '\n'
            '[animation]\n'
            'frame_rate = 24.0\n'
            'create_emote = true\n'
            '\n'
            '[validation.extraction.Audio]\n'
            'minimum = 20\n'
            '\n'
            '[report]\n'
            'expected_counts = { Maps = 10 }\n'
        )

        config = MigrationConfig.from_file(path)

        self.assertEqual(config.extraction_root, "Raw")
        self.assertEqual(config.output_root, "Out")
        self.assertNotIn("Audio", config.enabled_categories)
        self.assertIn("Characters", config.enabled_categories)
        self.assertEqual(config.naming_convention, "frame_first")
        self.assertEqual(config.custom_pivot, (0.25, 0.75))
        self.assertEqual(config.frame_rate, 24.0)
        self.assertTrue(config.create_emote)
        self.assertEqual(config.extraction_expectations["Audio"]["minimum"], 20)
        self.assertTrue(config.extraction_expectations["Audio"]["optional"])
        self.assertEqual(config.expected_counts["Maps"], 10)
        self.assertEqual(config.expected_counts["UI"], DEFAULT_EXPECTED_COUNTS["UI"])
        self.assertEqual(config.validate(), [])

    def test_from_json(self):
        path = self.temp_dir / "asset_migration.json"
        path.write_text(json.dumps({
            "categories": {"enabled": ["Characters", "Maps"]},
            "processing": {"workers": 2},
        }))

        config = MigrationConfig.from_file(path)

        self.assertEqual(config.enabled_categories, ["Characters", "Maps"])
        self.assertEqual(config.workers, 2)

    def test_unsupported_and_missing_files(self):
        with self.assertRaises(FileNotFoundError):
            MigrationConfig.from_file(self.temp_dir / "absent.toml")

        path = self.temp_dir / "config.yaml"
        path.write_text("paths: {}")
        with self.assertRaises(ValueError):
            MigrationConfig.from_file(path)

    def test_env_overrides(self):
        env = {
            "ASSET_MIGRATION_OUTPUT_ROOT": "EnvOut",
            "ASSET_MIGRATION_WORKERS": "8",
            "ASSET_MIGRATION_FRAME_RATE": "15",
            "ASSET_MIGRATION_STRICT_DIRECTIONS": "yes",
            "ASSET_MIGRATION_ENABLED_CATEGORIES": "Characters, UI",
        }
        with mock.patch.dict(os.environ, env):
            config = MigrationConfig.default()

        self.assertEqual(config.output_root, "EnvOut")
        self.assertEqual(config.workers, 8)
        self.assertEqual(config.frame_rate, 15.0)
        self.assertTrue(config.strict_directions)
        self.assertEqual(config.enabled_categories, ["Characters", "UI"])

    def test_validation_errors(self):
        config = MigrationConfig(
            enabled_categories=["Characters", "Videos"],
            naming_convention="random",
            frame_rate=0,
            workers=0,
            min_extraction_score=1.5,
        )

        errors = config.validate()

        self.assertIn("Unknown category in enabled_categories: Videos", errors)
        self.assertIn("frame_rate must be positive", errors)
        self.assertIn("workers must be positive", errors)
        self.assertIn("min_extraction_score must be between 0 and 1", errors)
        self.assertTrue(any(error.startswith("naming_convention") for error in errors))


if __name__ == '__main__':
    unittest.main()
