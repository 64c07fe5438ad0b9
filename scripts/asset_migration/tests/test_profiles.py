"""
Tests for import profile resolution.
"""

import unittest

from ..processing.classifier import AssetCategory
from ..processing.profiles import (
    DEFAULT_PROFILE, OPTIMIZED_OVERRIDE, resolve_audio_profile, resolve_profile,
)


class TestImportProfiles(unittest.TestCase):
    """Test the category profile table."""

    def test_character_profile(self):
        profile = resolve_profile(AssetCategory.CHARACTERS)
        self.assertEqual(profile.sprite_mode, "multiple")
        self.assertEqual(profile.pixels_per_unit, 100)
        self.assertEqual(profile.filter_mode, "point")
        self.assertEqual(profile.compression, "uncompressed")
        self.assertEqual(profile.max_size, 2048)
        self.assertFalse(profile.mipmaps)

    def test_monsters_share_character_profile(self):
        self.assertEqual(resolve_profile(AssetCategory.MONSTERS), resolve_profile(AssetCategory.CHARACTERS))

    def test_ui_maps_effects(self):
        ui = resolve_profile(AssetCategory.UI)
        self.assertEqual((ui.sprite_mode, ui.filter_mode, ui.max_size), ("single", "bilinear", 1024))

        maps = resolve_profile(AssetCategory.MAPS)
        self.assertEqual((maps.pixels_per_unit, maps.filter_mode, maps.max_size), (64, "point", 512))

        effects = resolve_profile(AssetCategory.EFFECTS)
        self.assertEqual(effects.max_size, 512)
        self.assertTrue(effects.alpha_is_transparency)

    def test_default_for_other_categories(self):
        self.assertEqual(resolve_profile(AssetCategory.DATA), DEFAULT_PROFILE)
        self.assertEqual(resolve_profile(AssetCategory.AUDIO), DEFAULT_PROFILE)

    def test_optimized_override(self):
        profile = resolve_profile(AssetCategory.UI, optimize=True)
        self.assertEqual(profile.platform_override, OPTIMIZED_OVERRIDE)
        self.assertIsNone(resolve_profile(AssetCategory.UI).platform_override)
        self.assertEqual(profile.to_dict()["platform_override"]["format"], "DXT5")
        self.assertNotIn("platform_override", resolve_profile(AssetCategory.UI).to_dict())

    def test_audio_profiles(self):
        music = resolve_audio_profile("Audio/Music/theme.ogg")
        self.assertEqual((music.load_type, music.compression_format, music.quality), ("streaming", "vorbis", 0.7))

        sfx = resolve_audio_profile("Audio/SFX/hit.wav")
        self.assertEqual((sfx.load_type, sfx.compression_format), ("decompress_on_load", "adpcm"))

        other = resolve_audio_profile("Audio/Ambient/wind.ogg")
        self.assertEqual((other.load_type, other.quality), ("compressed_in_memory", 0.5))


if __name__ == '__main__':
    unittest.main()
