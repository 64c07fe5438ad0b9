"""
Tests for animation clip assembly.
"""

import json
import shutil
import tempfile
import unittest
from pathlib import Path

from PIL import Image

from ..processing.animation import (
    AnimationAssembler, AnimationClip, FrameRef, LoopPolicy, collect_frames, load_clip, write_clip,
)
from ..processing.directions import ROW_DIRECTIONS
from ..processing.slicer import PIVOTS, SpriteAlignment, SpriteFrame


def make_ref(label, direction, index, native=False):
    name = f"{label}_{direction}_{index:02d}"
    frame = SpriteFrame(name, (0, 0, 64, 64), PIVOTS[SpriteAlignment.CENTER], SpriteAlignment.CENTER, column=index)
    return FrameRef(label, direction, index, f"Sprites/Characters/Feca/{name}.png", frame, native=native)


def make_frames(labels, directions, count=8, native=False):
    return [
        make_ref(label, direction, index, native)
        for label in labels for direction in directions for index in range(count)
    ]


class TestAssemble(unittest.TestCase):
    """Test single clip assembly."""

    def setUp(self):
        self.assembler = AnimationAssembler()

    def test_timing(self):
        clip = self.assembler.assemble(make_frames(["walk"], ["S"]), frame_rate=12)
        self.assertEqual(clip.frame_count, 8)
        self.assertAlmostEqual(clip.duration, 8 / 12)
        times = [time for time, _ in clip.keyframes()]
        self.assertEqual(len(times), 8)
        for index, time in enumerate(times):
            self.assertAlmostEqual(time, index / 12)
        self.assertEqual([ref.index for _, ref in clip.keyframes()], list(range(8)))

    def test_loop_policy(self):
        self.assertTrue(self.assembler.assemble(make_frames(["idle"], ["S"])).loop)
        self.assertTrue(self.assembler.assemble(make_frames(["run"], ["S"])).loop)
        self.assertFalse(self.assembler.assemble(make_frames(["attack"], ["S"])).loop)

        custom = self.assembler.assemble(make_frames(["attack"], ["S"]), loop_policy=LoopPolicy(["attack"]))
        self.assertTrue(custom.loop)

    def test_empty_input_gives_invalid_clip(self):
        clip = self.assembler.assemble([], name="Feca_idle_S")
        self.assertFalse(clip.valid)
        self.assertEqual(clip.frames, [])
        self.assertEqual(clip.duration, 0.0)

    def test_default_name(self):
        clip = self.assembler.assemble(make_frames(["idle"], ["NE"], count=2))
        self.assertEqual(clip.name, "idle_NE")


class TestBuildClips(unittest.TestCase):
    """Test per-character clip sets."""

    def setUp(self):
        self.assembler = AnimationAssembler(frame_rate=12)

    def test_compass_frames(self):
        clip_set = self.assembler.build_clips("Feca", make_frames(["idle", "walk"], ROW_DIRECTIONS))
        self.assertEqual(len(clip_set.clips), 16)
        self.assertEqual(clip_set.labels, ["idle", "walk"])
        clip = clip_set.get("walk", "NE")
        self.assertEqual(clip.name, "Feca_walk_NE")
        self.assertFalse(clip.mirror)
        self.assertEqual(clip_set.notes, [])

    def test_missing_directions_are_noted(self):
        clip_set = self.assembler.build_clips("Feca", make_frames(["idle"], ["S", "N"]))
        self.assertEqual(sorted(clip_set.for_label("idle")), ["N", "S"])
        self.assertEqual(len(clip_set.notes), 6)
        self.assertIn("Feca: no frames for idle SW", clip_set.notes)

    def test_native_frames_are_mapped_and_mirrored(self):
        frames = make_frames(["walk"], ["F", "B", "L", "R", "S"], count=4, native=True)
        clip_set = self.assembler.build_clips("Feca", frames)

        self.assertEqual(len(clip_set.clips), 8)
        east = clip_set.get("walk", "E")
        west = clip_set.get("walk", "W")
        self.assertEqual(east.direction, "E")
        self.assertFalse(east.mirror)
        self.assertTrue(west.mirror)
        self.assertEqual([ref.path for ref in east.frames], [ref.path for ref in west.frames])
        self.assertTrue(clip_set.get("walk", "NE").mirror)
        self.assertTrue(clip_set.get("walk", "SW").mirror)
        self.assertEqual(clip_set.get("walk", "S").frames[0].direction, "F")

    def test_native_side_does_not_collide_with_compass_south(self):
        frames = make_frames(["idle"], ROW_DIRECTIONS, count=2) + make_frames(["walk"], ["S"], count=2, native=True)
        clip_set = self.assembler.build_clips("Feca", frames)
        self.assertEqual(clip_set.get("idle", "S").frames[0].direction, "S")
        self.assertEqual(clip_set.get("walk", "E").frames[0].direction, "S")
        self.assertIsNone(clip_set.get("walk", "S"))


class TestClipFiles(unittest.TestCase):
    """Test clip serialisation and frame collection."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_write_and_load(self):
        clip = AnimationAssembler().assemble(make_frames(["walk"], ["S"], count=3), name="Feca_walk_S")
        path = write_clip(clip, self.temp_dir / "Feca_walk_S.anim")
        loaded = load_clip(path)
        self.assertEqual(loaded.name, "Feca_walk_S")
        self.assertEqual(loaded.frame_count, 3)
        self.assertEqual(loaded.frame_rate, 12.0)
        self.assertTrue(loaded.loop)
        self.assertAlmostEqual(loaded.duration, 0.25)

    def test_load_rejects_bad_files(self):
        bad = self.temp_dir / "bad.anim"
        bad.write_text("not json")
        with self.assertRaises(ValueError):
            load_clip(bad)

        missing_fields = self.temp_dir / "partial.anim"
        missing_fields.write_text(json.dumps({"frames": []}))
        with self.assertRaises(ValueError):
            load_clip(missing_fields)

        with self.assertRaises(ValueError):
            load_clip(self.temp_dir / "absent.anim")

    def test_from_dict_rejects_wrong_field_types(self):
        cases = [
            {"name": "a", "frame_rate": 12, "frames": [{"name": "a", "sprite": None}]},
            {"name": "a", "frame_rate": 12, "frames": [{"name": 7, "sprite": "a.png"}]},
            {"name": "a", "frame_rate": 12, "frames": ["a.png"]},
            {"name": None, "frame_rate": 12, "frames": []},
            {"name": "a", "frame_rate": "fast", "frames": []},
        ]
        for data in cases:
            with self.assertRaises(ValueError):
                AnimationClip.from_dict(data)

    def test_collect_frames(self):
        character_dir = self.temp_dir / "Sprites" / "Characters" / "Feca"
        character_dir.mkdir(parents=True)
        for name in ("idle_S_01", "idle_S_00", "walk_N_00", "portrait"):
            Image.new("RGBA", (32, 48), (255, 0, 0, 255)).save(character_dir / f"{name}.png")

        refs = collect_frames(character_dir, self.temp_dir)
        self.assertEqual([(r.label, r.direction, r.index) for r in refs],
                         [("idle", "S", 0), ("idle", "S", 1), ("walk", "N", 0)])
        self.assertEqual(refs[0].path, "Sprites/Characters/Feca/idle_S_00.png")
        self.assertEqual(refs[0].frame.rect, (0, 0, 32, 48))


if __name__ == '__main__':
    unittest.main()
