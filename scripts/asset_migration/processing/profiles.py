"""
Import profiles attached to migrated files.
"""

from dataclasses import dataclass, asdict, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Optional, Union

from .classifier import AssetCategory


@dataclass(frozen=True)
class PlatformOverride:
    """Per-platform texture override."""
    platform: str
    max_size: int
    format: str
    compression_quality: int


@dataclass(frozen=True)
class ImportProfile:
    """Output texture configuration for a category."""
    sprite_mode: str
    pixels_per_unit: int
    filter_mode: str
    compression: str
    max_size: int
    mipmaps: bool = False
    alpha_is_transparency: bool = True
    alignment: str = "center"
    platform_override: Optional[PlatformOverride] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if self.platform_override is None:
            data.pop("platform_override")
        return data


@dataclass(frozen=True)
class AudioProfile:
    """Output audio configuration."""
    load_type: str
    compression_format: str
    quality: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


_SPRITE_SHEET = ImportProfile(
    sprite_mode="multiple",
    pixels_per_unit=100,
    filter_mode="point",
    compression="uncompressed",
    max_size=2048,
)

DEFAULT_PROFILE = ImportProfile(
    sprite_mode="single",
    pixels_per_unit=100,
    filter_mode="bilinear",
    compression="compressed",
    max_size=2048,
)

PROFILES = MappingProxyType({
    AssetCategory.CHARACTERS: _SPRITE_SHEET,
    AssetCategory.MONSTERS: _SPRITE_SHEET,
    AssetCategory.UI: ImportProfile(
        sprite_mode="single",
        pixels_per_unit=100,
        filter_mode="bilinear",
        compression="compressed",
        max_size=1024,
    ),
    AssetCategory.MAPS: ImportProfile(
        sprite_mode="single",
        pixels_per_unit=64,
        filter_mode="point",
        compression="compressed",
        max_size=512,
    ),
    AssetCategory.EFFECTS: ImportProfile(
        sprite_mode="single",
        pixels_per_unit=100,
        filter_mode="bilinear",
        compression="compressed",
        max_size=512,
        alpha_is_transparency=True,
    ),
})

OPTIMIZED_OVERRIDE = PlatformOverride(
    platform="standalone",
    max_size=2048,
    format="DXT5",
    compression_quality=50,
)

AUDIO_PROFILES = (
    (("music", "bgm"), AudioProfile("streaming", "vorbis", 0.7)),
    (("sfx", "sound"), AudioProfile("decompress_on_load", "adpcm", 1.0)),
)
DEFAULT_AUDIO_PROFILE = AudioProfile("compressed_in_memory", "vorbis", 0.5)


def resolve_profile(category: AssetCategory, optimize: bool = False) -> ImportProfile:
    """
    Resolve the texture import profile for a category.

    Args:
        category: Classified asset category
        optimize: Attach the standalone platform override

    Returns:
        Immutable import profile
    """
    profile = PROFILES.get(category, DEFAULT_PROFILE)
    if optimize:
        profile = replace(profile, platform_override=OPTIMIZED_OVERRIDE)
    return profile


def resolve_audio_profile(path: Union[str, Path]) -> AudioProfile:
    """Resolve the audio import profile from keywords in the file path."""
    lowered = str(path).replace("\\", "/").lower()
    for keywords, profile in AUDIO_PROFILES:
        if any(keyword in lowered for keyword in keywords):
            return profile
    return DEFAULT_AUDIO_PROFILE
