"""
Path classification and output layout for raw extracted assets.

Classification is a pure, total function over a path string: ordered keyword
rules are tried first, then the file extension decides between Audio and Data.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Tuple, Union


class AssetCategory(Enum):
    """Asset categories assigned by the classifier."""
    CHARACTERS = "Characters"
    MAPS = "Maps"
    UI = "UI"
    EFFECTS = "Effects"
    AUDIO = "Audio"
    MONSTERS = "Monsters"
    DATA = "Data"


# First match wins.
KEYWORD_RULES: Tuple[Tuple[AssetCategory, Tuple[str, ...]], ...] = (
    (AssetCategory.CHARACTERS, ("character", "sprite", "class")),
    (AssetCategory.MAPS, ("map", "tile", "background")),
    (AssetCategory.UI, ("ui", "interface", "button", "icon")),
    (AssetCategory.EFFECTS, ("effect", "particle", "spell")),
    (AssetCategory.MONSTERS, ("monster", "mob")),
)

IMAGE_EXTENSIONS = frozenset({".png", ".jpg", ".jpeg"})
AUDIO_EXTENSIONS = frozenset({".mp3", ".wav", ".ogg"})
DATA_EXTENSIONS = frozenset({".xml", ".json"})
FLASH_EXTENSIONS = frozenset({".swf"})
SUPPORTED_EXTENSIONS = IMAGE_EXTENSIONS | AUDIO_EXTENSIONS | DATA_EXTENSIONS | FLASH_EXTENSIONS

AUDIO_BUCKETS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Music", ("music", "bgm")),
    ("Ambient", ("ambient",)),
)
DEFAULT_AUDIO_BUCKET = "SFX"

# Canonical output folders created under the output root.
OUTPUT_FOLDERS = (
    "Sprites/Characters", "Sprites/Maps", "Sprites/UI", "Sprites/Effects", "Sprites/Monsters",
    "Audio/Music", "Audio/SFX", "Audio/Ambient",
    "Animations/Characters", "Animations/Monsters", "Animations/Effects",
    "Atlases", "Data", "Materials", "Prefabs",
)


@dataclass(frozen=True)
class ClassificationResult:
    """Classification of one source file."""
    source_path: Path
    category: AssetCategory
    output_relative_path: PurePosixPath

    @property
    def routed_category(self) -> AssetCategory:
        """Category of the output folder the file lands in."""
        head = self.output_relative_path.parts[0]
        if head == AssetCategory.AUDIO.value:
            return AssetCategory.AUDIO
        if head == AssetCategory.DATA.value:
            return AssetCategory.DATA
        return self.category


def _normalize(path: Union[str, Path]) -> str:
    return str(path).replace("\\", "/").lower()


def classify(path: Union[str, Path]) -> AssetCategory:
    """
    Map a path or file name to an asset category.

    Args:
        path: Path relative to the extraction root (any string is accepted)

    Returns:
        The first matching category, Audio for audio extensions, else Data
    """
    lowered = _normalize(path)

    for category, keywords in KEYWORD_RULES:
        if any(keyword in lowered for keyword in keywords):
            return category

    if PurePosixPath(lowered).suffix in AUDIO_EXTENSIONS:
        return AssetCategory.AUDIO

    return AssetCategory.DATA


def audio_bucket(path: Union[str, Path]) -> str:
    """Pick the Audio/ subfolder for an audio file."""
    lowered = _normalize(path)
    for bucket, keywords in AUDIO_BUCKETS:
        if any(keyword in lowered for keyword in keywords):
            return bucket
    return DEFAULT_AUDIO_BUCKET


def _strip_leading(parts: Tuple[str, ...], name: str) -> Tuple[str, ...]:
    if len(parts) > 1 and parts[0].lower() == name.lower():
        return parts[1:]
    return parts


def output_relative_path(relative_path: Union[str, Path], category: AssetCategory) -> PurePosixPath:
    """
    Compute the deterministic output location for a source file.

    Args:
        relative_path: Source path relative to the extraction root
        category: Category returned by :func:`classify`

    Returns:
        Path relative to the output root
    """
    posix = PurePosixPath(str(relative_path).replace("\\", "/"))
    parts = tuple(part for part in posix.parts if part not in ("", "."))
    suffix = posix.suffix.lower()

    if suffix in AUDIO_EXTENSIONS:
        bucket = audio_bucket(posix)
        parts = _strip_leading(parts, "Audio")
        parts = _strip_leading(parts, bucket)
        return PurePosixPath("Audio", bucket, *parts)

    if suffix in IMAGE_EXTENSIONS:
        if category in (AssetCategory.DATA, AssetCategory.AUDIO):
            return PurePosixPath("Sprites", *parts)
        parts = _strip_leading(parts, category.value)
        return PurePosixPath("Sprites", category.value, *parts)

    parts = _strip_leading(parts, "Data")
    return PurePosixPath("Data", *parts)


def classify_file(root: Union[str, Path], path: Union[str, Path]) -> ClassificationResult:
    """Classify ``path`` relative to ``root`` and resolve its output location."""
    root = Path(root)
    path = Path(path)
    try:
        relative = path.relative_to(root)
    except ValueError:
        relative = Path(path.name)

    category = classify(relative.as_posix())
    return ClassificationResult(
        source_path=path,
        category=category,
        output_relative_path=output_relative_path(relative.as_posix(), category),
    )


def is_supported(path: Union[str, Path]) -> bool:
    """Check whether the file extension is one the pipeline imports."""
    return Path(path).suffix.lower() in SUPPORTED_EXTENSIONS
