"""
TOML resource manifest listing the characters, clips and controllers a run produced.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import toml

from ..utils.fileio import atomic_write_toml


logger = logging.getLogger(__name__)

MANIFEST_PATH = "Data/migration_manifest.toml"
MANIFEST_VERSION = 1


class ManifestError(Exception):
    """Raised when a manifest cannot be read or written."""
    pass


@dataclass
class CharacterEntry:
    name: str
    category: str
    sprite_folder: str
    frame_count: int = 0
    clips: List[str] = field(default_factory=list)
    controller: str = ""
    mirrored_clips: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "category": self.category,
            "sprite_folder": self.sprite_folder,
            "frame_count": self.frame_count,
            "clips": sorted(self.clips),
        }
        if self.controller:
            data["controller"] = self.controller
        if self.mirrored_clips:
            data["mirrored_clips"] = sorted(self.mirrored_clips)
        return data


@dataclass
class MigrationManifest:
    """
    Index of generated resources, keyed by ``(category, name)``.

    Each category is written as its own table (``[characters.Feca]``,
    ``[monsters.Bouftou]``) so equal folder names never overwrite each other.
    """
    characters: Dict[Tuple[str, str], CharacterEntry] = field(default_factory=dict)
    files_processed: int = 0
    files_failed: int = 0
    sheets_sliced: int = 0

    def add_character(self, entry: CharacterEntry) -> None:
        self.characters[(entry.category, entry.name)] = entry

    def get(self, category: str, name: str) -> Optional[CharacterEntry]:
        return self.characters.get((category, name))

    @property
    def clip_count(self) -> int:
        return sum(len(entry.clips) for entry in self.characters.values())

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "manifest": {
                "version": MANIFEST_VERSION,
                "files_processed": self.files_processed,
                "files_failed": self.files_failed,
                "sheets_sliced": self.sheets_sliced,
                "character_count": len(self.characters),
                "clip_count": self.clip_count,
            },
        }
        for category, name in sorted(self.characters):
            section = data.setdefault(category.lower(), {})
            section[name] = self.characters[(category, name)].to_dict()
        return data

    def write(self, output_root: Union[str, Path]) -> Path:
        """Write the manifest under ``Data/`` of the output root."""
        path = Path(output_root) / MANIFEST_PATH
        try:
            atomic_write_toml(path, self.to_dict())
        except OSError as e:
            raise ManifestError(f"Failed to write manifest {path}: {e}")
        logger.info(f"Manifest written: {path} ({len(self.characters)} characters, {self.clip_count} clips)")
        return path


def load_manifest(path: Union[str, Path]) -> MigrationManifest:
    """
    Read a manifest written by ``MigrationManifest.write``.

    Raises:
        ManifestError: If the file is missing or malformed
    """
    try:
        data = toml.load(str(path))
    except (OSError, toml.TomlDecodeError) as e:
        raise ManifestError(f"Failed to read manifest {path}: {e}")

    header = data.get("manifest", {})
    manifest = MigrationManifest(
        files_processed=int(header.get("files_processed", 0)),
        files_failed=int(header.get("files_failed", 0)),
        sheets_sliced=int(header.get("sheets_sliced", 0)),
    )
    for section, entries in data.items():
        if section == "manifest" or not isinstance(entries, dict):
            continue
        for name, entry in entries.items():
            manifest.add_character(_load_entry(name, section, entry))
    return manifest


def _load_entry(name: str, section: str, entry: Dict[str, Any]) -> CharacterEntry:
    return CharacterEntry(
        name=name,
        category=entry.get("category", section.capitalize()),
        sprite_folder=entry.get("sprite_folder", ""),
        frame_count=int(entry.get("frame_count", 0)),
        clips=list(entry.get("clips", [])),
        controller=entry.get("controller", ""),
        mirrored_clips=list(entry.get("mirrored_clips", [])),
    )
