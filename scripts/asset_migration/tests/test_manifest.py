"""
Tests for the resource manifest and atomic file writes.
"""

import os
import shutil
import tempfile
import unittest
from pathlib import Path

import toml

from ..processing.manifest import (
    MANIFEST_PATH, CharacterEntry, ManifestError, MigrationManifest, load_manifest,
)
from ..utils.fileio import atomic_copy, atomic_write_json, atomic_write_toml, ensure_writable_directory


class TestMigrationManifest(unittest.TestCase):
    """Test manifest writing and reading."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _manifest(self):
        manifest = MigrationManifest(files_processed=10, files_failed=1, sheets_sliced=2)
        manifest.add_character(CharacterEntry(
            name="Feca",
            category="Characters",
            sprite_folder="Sprites/Characters/Feca",
            frame_count=64,
            clips=["Feca_walk_S", "Feca_idle_S"],
            controller="Animations/Characters/Feca/Feca.controller",
            mirrored_clips=["Feca_walk_W"],
        ))
        manifest.add_character(CharacterEntry("Bouftou", "Monsters", "Sprites/Monsters/Bouftou"))
        return manifest

    def test_write_and_load(self):
        path = self._manifest().write(self.temp_dir)

        self.assertEqual(path, self.temp_dir / MANIFEST_PATH)
        data = toml.load(str(path))
        self.assertEqual(data["manifest"]["character_count"], 2)
        self.assertEqual(data["manifest"]["clip_count"], 2)
        self.assertEqual(list(data["characters"]), ["Feca"])
        self.assertEqual(list(data["monsters"]), ["Bouftou"])
        self.assertEqual(data["characters"]["Feca"]["clips"], ["Feca_idle_S", "Feca_walk_S"])
        self.assertNotIn("controller", data["monsters"]["Bouftou"])

        loaded = load_manifest(path)
        self.assertEqual(loaded.files_processed, 10)
        self.assertEqual(loaded.sheets_sliced, 2)
        self.assertEqual(loaded.get("Characters", "Feca").mirrored_clips, ["Feca_walk_W"])
        self.assertEqual(loaded.get("Monsters", "Bouftou").controller, "")

    def test_same_name_in_two_categories(self):
        manifest = MigrationManifest()
        manifest.add_character(CharacterEntry("Larva", "Characters", "Sprites/Characters/Larva", clips=["a"]))
        manifest.add_character(CharacterEntry("Larva", "Monsters", "Sprites/Monsters/Larva", clips=["b", "c"]))

        loaded = load_manifest(manifest.write(self.temp_dir))

        self.assertEqual(len(loaded.characters), 2)
        self.assertEqual(loaded.clip_count, 3)
        self.assertEqual(loaded.get("Monsters", "Larva").sprite_folder, "Sprites/Monsters/Larva")

    def test_load_errors(self):
        with self.assertRaises(ManifestError):
            load_manifest(self.temp_dir / "absent.toml")

        bad = self.temp_dir / "bad.toml"
        bad.write_text("[manifest\nversion = ")
        with self.assertRaises(ManifestError):
            load_manifest(bad)

    def test_write_error(self):
        (self.temp_dir / "Data").write_text("not a folder")
        with self.assertRaises(ManifestError):
            self._manifest().write(self.temp_dir)


class TestAtomicWrites(unittest.TestCase):
    """Test atomic write helpers."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_writes_create_parents_and_leave_no_temp_files(self):
        json_path = atomic_write_json(self.temp_dir / "a" / "b.json", {"x": 1})
        toml_path = atomic_write_toml(self.temp_dir / "a" / "c.toml", {"section": {"y": 2}})

        self.assertEqual(json_path.read_text(), '{\n  "x": 1\n}\n')
        self.assertEqual(toml.load(str(toml_path)), {"section": {"y": 2}})
        self.assertEqual(sorted(os.listdir(self.temp_dir / "a")), ["b.json", "c.toml"])

    def test_copy_replaces_existing(self):
        source = self.temp_dir / "source.bin"
        source.write_bytes(b"new")
        destination = self.temp_dir / "out" / "dest.bin"
        destination.parent.mkdir()
        destination.write_bytes(b"old contents")

        atomic_copy(source, destination)

        self.assertEqual(destination.read_bytes(), b"new")
        self.assertEqual(os.listdir(destination.parent), ["dest.bin"])

    def test_failed_write_keeps_previous_file(self):
        path = self.temp_dir / "data.json"
        path.write_text("previous")

        with self.assertRaises(TypeError):
            atomic_write_json(path, {"bad": object()})

        self.assertEqual(path.read_text(), "previous")
        self.assertEqual(os.listdir(self.temp_dir), ["data.json"])

    def test_ensure_writable_directory(self):
        target = ensure_writable_directory(self.temp_dir / "new" / "dir")
        self.assertTrue(target.is_dir())
        self.assertEqual(os.listdir(target), [])


if __name__ == '__main__':
    unittest.main()
