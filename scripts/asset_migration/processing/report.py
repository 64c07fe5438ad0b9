"""
Migration report: validation of the processed output tree.

The builder re-scans the output root, validates each resource with
type-specific rules, aggregates per-category progress and ranks findings
by severity.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

import soundfile as sf

from .animation import CLIP_EXTENSION, load_clip
from .classifier import AUDIO_EXTENSIONS, IMAGE_EXTENSIONS, AssetCategory
from ..config import DEFAULT_EXPECTED_COUNTS, ESSENTIAL_CHARACTERS
from ..utils.fileio import atomic_write_json
from ..utils.image import ImageUtils


logger = logging.getLogger(__name__)

DEFAULT_EXPECTED_COUNT = 100
LARGE_OUTPUT_BYTES = 500 * 1024 * 1024
BROKEN_REFERENCE_LIMIT = 10


class ReportExportError(Exception):
    """Raised when a report cannot be rendered or written."""
    pass


class Severity(IntEnum):
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    @property
    def label(self) -> str:
        return self.name.capitalize()


class AssetType(Enum):
    SPRITE = "sprite"
    ANIMATION = "animation"
    AUDIO = "audio"
    EFFECT = "effect"


FILE_NOT_FOUND = "File not found"
FAILED_SPRITE = "Failed to load sprite"
MISSING_TEXTURE = "Missing texture"
FAILED_ANIMATION = "Failed to load animation"
FAILED_FRAME_SPRITE = "Failed to load frame sprite"
EMPTY_CLIP = "Empty animation clip"
FAILED_AUDIO = "Failed to load audio"
FAILED_EFFECT = "Failed to load effect"
LOAD_FAILURE_PREFIX = "Failed to load"

# (issue prefix, severity); first match wins, anything else is Low.
SEVERITY_RULES: Tuple[Tuple[str, Severity], ...] = (
    (LOAD_FAILURE_PREFIX, Severity.CRITICAL),
    (FILE_NOT_FOUND, Severity.CRITICAL),
    (MISSING_TEXTURE, Severity.HIGH),
    (EMPTY_CLIP, Severity.HIGH),
    ("Texture too large", Severity.MEDIUM),
)


def issue_severity(issue: str) -> Severity:
    """Severity of a single issue string."""
    for prefix, severity in SEVERITY_RULES:
        if issue.startswith(prefix):
            return severity
    return Severity.LOW


def format_file_size(size: float) -> str:
    """Human readable byte count (B, KB, MB, GB)."""
    units = ["B", "KB", "MB", "GB"]
    order = 0
    while size >= 1024 and order < len(units) - 1:
        order += 1
        size = size / 1024
    text = f"{size:.2f}".rstrip("0").rstrip(".")
    return f"{text} {units[order]}"


@dataclass
class ValidationEntry:
    """Validation outcome of one output resource."""
    path: str
    name: str
    type: AssetType
    is_valid: bool = True
    file_size_bytes: int = 0
    issues: List[str] = field(default_factory=list)

    def add_issue(self, issue: str, invalidates: bool = False) -> None:
        self.issues.append(issue)
        if invalidates:
            self.is_valid = False

    @property
    def severity(self) -> Optional[Severity]:
        if not self.issues:
            return None
        return max(issue_severity(issue) for issue in self.issues)

    @property
    def has_load_failure(self) -> bool:
        return any(issue.startswith(LOAD_FAILURE_PREFIX) for issue in self.issues)

    def to_dict(self) -> Dict[str, Any]:
        severity = self.severity
        return {
            "path": self.path,
            "name": self.name,
            "type": self.type.value,
            "is_valid": self.is_valid,
            "file_size": self.file_size_bytes,
            "issues": list(self.issues),
            "severity": severity.label if severity else None,
        }


@dataclass
class CategoryReport:
    """Per-category aggregation."""
    name: str
    type: AssetCategory
    expected: int
    assets: List[ValidationEntry] = field(default_factory=list)

    @property
    def valid_count(self) -> int:
        return sum(1 for entry in self.assets if entry.is_valid)

    @property
    def total_count(self) -> int:
        return len(self.assets)

    @property
    def progress(self) -> float:
        if self.expected <= 0:
            return 0.0
        return self.valid_count / self.expected

    @property
    def total_size(self) -> int:
        return sum(entry.file_size_bytes for entry in self.assets)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type.value,
            "expected": self.expected,
            "total": self.total_count,
            "valid": self.valid_count,
            "progress": self.progress,
            "total_size": self.total_size,
            "assets": [entry.to_dict() for entry in self.assets],
        }


@dataclass
class MissingAsset:
    """A ranked gap in the output."""
    name: str
    category: str
    severity: Severity
    reason: str
    path: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "category": self.category,
            "severity": self.severity.label,
            "reason": self.reason,
            "path": self.path,
        }


@dataclass
class MigrationReport:
    """Aggregated validation of one output tree."""
    generation_timestamp: str
    output_root: str
    categories: List[CategoryReport] = field(default_factory=list)
    missing_assets: List[MissingAsset] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    total_assets: int = 0
    valid_assets: int = 0
    missing_texture_count: int = 0
    broken_reference_count: int = 0
    total_file_size_bytes: int = 0
    overall_progress: float = 0.0

    def category(self, key: Union[str, AssetCategory]) -> Optional[CategoryReport]:
        """Look a category up by AssetCategory, category value or display name."""
        for report in self.categories:
            if report.type == key or report.type.value == key or report.name == key:
                return report
        return None

    def entries(self) -> List[ValidationEntry]:
        return [entry for report in self.categories for entry in report.assets]

    def findings(self) -> List[ValidationEntry]:
        """Entries with issues, most severe first."""
        flagged = [entry for entry in self.entries() if entry.issues]
        return sorted(flagged, key=lambda entry: (-entry.severity, entry.path))

    def count_by_severity(self) -> Dict[str, int]:
        counts = {severity.label: 0 for severity in sorted(Severity, reverse=True)}
        for missing in self.missing_assets:
            counts[missing.severity.label] += 1
        return counts

    @property
    def critical_count(self) -> int:
        return sum(1 for missing in self.missing_assets if missing.severity == Severity.CRITICAL)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generation_timestamp": self.generation_timestamp,
            "output_root": self.output_root,
            "statistics": {
                "total_assets": self.total_assets,
                "valid_assets": self.valid_assets,
                "missing_textures": self.missing_texture_count,
                "broken_references": self.broken_reference_count,
                "total_file_size": self.total_file_size_bytes,
                "total_file_size_display": format_file_size(self.total_file_size_bytes),
                "overall_progress": self.overall_progress,
            },
            "categories": [report.to_dict() for report in self.categories],
            "missing_assets": [missing.to_dict() for missing in self.missing_assets],
            "recommendations": list(self.recommendations),
        }

    def export_json(self, path: Union[str, Path]) -> Path:
        """Write the report as JSON atomically."""
        try:
            path = atomic_write_json(path, self.to_dict())
        except OSError as e:
            raise ReportExportError(f"Failed to write {path}: {e}")
        logger.info(f"Report exported to: {path}")
        return path


# (category, display name, ((folder, asset type), ...))
SCAN_PLAN: Tuple[Tuple[AssetCategory, str, Tuple[Tuple[str, AssetType], ...]], ...] = (
    (AssetCategory.CHARACTERS, "Characters",
     (("Sprites/Characters", AssetType.SPRITE), ("Animations/Characters", AssetType.ANIMATION))),
    (AssetCategory.MAPS, "Maps", (("Sprites/Maps", AssetType.SPRITE),)),
    (AssetCategory.UI, "UI Elements", (("Sprites/UI", AssetType.SPRITE),)),
    (AssetCategory.EFFECTS, "Effects", (("Sprites/Effects", AssetType.EFFECT),)),
    (AssetCategory.AUDIO, "Audio", (("Audio", AssetType.AUDIO),)),
    (AssetCategory.MONSTERS, "Monsters",
     (("Sprites/Monsters", AssetType.SPRITE), ("Animations/Monsters", AssetType.ANIMATION))),
)

_EXTENSIONS_BY_TYPE = {
    AssetType.SPRITE: IMAGE_EXTENSIONS,
    AssetType.EFFECT: IMAGE_EXTENSIONS,
    AssetType.ANIMATION: frozenset({CLIP_EXTENSION}),
    AssetType.AUDIO: AUDIO_EXTENSIONS,
}


class MigrationReportBuilder:
    """Builds a MigrationReport from a processed output tree."""

    def __init__(self, expected_counts: Optional[Dict[str, int]] = None,
                 essential_characters: Optional[Sequence[str]] = None,
                 max_texture_size: int = 4096,
                 min_frame_rate: float = 12.0,
                 max_audio_duration: float = 60.0,
                 clock: Optional[Callable[[], datetime]] = None):
        """
        Initialize report builder.

        Args:
            expected_counts: Expected asset count per category value
            essential_characters: Character classes whose absence is critical
            max_texture_size: Largest allowed texture side in pixels
            min_frame_rate: Lowest acceptable clip frame rate
            max_audio_duration: Longest audio clip in seconds before flagging
            clock: Timestamp source
        """
        self.expected_counts = dict(DEFAULT_EXPECTED_COUNTS if expected_counts is None else expected_counts)
        self.essential_characters = list(ESSENTIAL_CHARACTERS if essential_characters is None else essential_characters)
        self.max_texture_size = max_texture_size
        self.min_frame_rate = min_frame_rate
        self.max_audio_duration = max_audio_duration
        self.clock = clock or datetime.now
        self._validators = {
            AssetType.SPRITE: self.validate_sprite,
            AssetType.ANIMATION: self.validate_animation,
            AssetType.AUDIO: self.validate_audio,
            AssetType.EFFECT: self.validate_effect,
        }

    @classmethod
    def from_config(cls, config) -> "MigrationReportBuilder":
        return cls(
            expected_counts=config.expected_counts,
            essential_characters=config.essential_characters,
            max_texture_size=config.max_texture_size,
            min_frame_rate=config.min_frame_rate,
            max_audio_duration=config.max_audio_duration,
        )

    def expected_for(self, category: AssetCategory) -> int:
        return int(self.expected_counts.get(category.value, DEFAULT_EXPECTED_COUNT))

    def build_report(self, output_root: Union[str, Path]) -> MigrationReport:
        """
        Scan and validate an output tree.

        Args:
            output_root: Root of the processed output

        Returns:
            The aggregated report
        """
        output_root = Path(output_root)
        report = MigrationReport(
            generation_timestamp=self.clock().isoformat(timespec="seconds"),
            output_root=str(output_root),
        )

        for category, display_name, sources in SCAN_PLAN:
            category_report = CategoryReport(display_name, category, self.expected_for(category))
            for folder, asset_type in sources:
                for path in self._discover(output_root / folder, asset_type):
                    entry = self._validators[asset_type](path, output_root)
                    category_report.assets.append(entry)
            report.categories.append(category_report)

        self._compute_statistics(report)
        self._collect_missing_assets(report)
        report.recommendations = self._generate_recommendations(report)

        logger.info(
            f"Report built: {report.valid_assets}/{report.total_assets} valid, "
            f"overall progress {report.overall_progress:.1%}"
        )
        return report

    @staticmethod
    def _discover(folder: Path, asset_type: AssetType) -> List[Path]:
        if not folder.is_dir():
            return []
        extensions = _EXTENSIONS_BY_TYPE[asset_type]
        return sorted(
            path for path in folder.rglob("*")
            if path.is_file() and path.suffix.lower() in extensions
        )

    @staticmethod
    def _entry(path: Path, output_root: Path, asset_type: AssetType) -> ValidationEntry:
        try:
            relative = path.relative_to(output_root).as_posix()
        except ValueError:
            relative = path.as_posix()
        entry = ValidationEntry(path=relative, name=path.stem, type=asset_type)
        if path.exists():
            entry.file_size_bytes = path.stat().st_size
        else:
            entry.add_issue(FILE_NOT_FOUND, invalidates=True)
        return entry

    def validate_sprite(self, path: Path, output_root: Path) -> ValidationEntry:
        entry = self._entry(path, output_root, AssetType.SPRITE)
        if not entry.is_valid:
            return entry

        try:
            image = ImageUtils.load_image(path)
        except ValueError:
            entry.add_issue(FAILED_SPRITE, invalidates=True)
            return entry

        if not ImageUtils.has_pixel_data(image):
            entry.add_issue(MISSING_TEXTURE, invalidates=True)
        if max(image.size) > self.max_texture_size:
            entry.add_issue(f"Texture too large (>{self.max_texture_size}px)")
        return entry

    def validate_animation(self, path: Path, output_root: Path) -> ValidationEntry:
        entry = self._entry(path, output_root, AssetType.ANIMATION)
        if not entry.is_valid:
            return entry

        try:
            clip = load_clip(path)
        except ValueError:
            entry.add_issue(FAILED_ANIMATION, invalidates=True)
            return entry

        if not clip.frames or clip.duration <= 0:
            entry.add_issue(EMPTY_CLIP, invalidates=True)
        if clip.frame_rate < self.min_frame_rate:
            entry.add_issue(f"Low framerate (<{self.min_frame_rate:g} fps)")

        missing = sorted({ref.path for ref in clip.frames if not (output_root / ref.path).is_file()})
        for sprite_path in missing:
            entry.add_issue(f"{FAILED_FRAME_SPRITE}: {sprite_path}", invalidates=True)
        return entry

    def validate_audio(self, path: Path, output_root: Path) -> ValidationEntry:
        entry = self._entry(path, output_root, AssetType.AUDIO)
        if not entry.is_valid:
            return entry

        try:
            duration = sf.info(str(path)).duration
        except Exception:
            entry.add_issue(FAILED_AUDIO, invalidates=True)
            return entry

        if duration > self.max_audio_duration:
            entry.add_issue(f"Long audio clip (>{self.max_audio_duration:g}s)")
        return entry

    def validate_effect(self, path: Path, output_root: Path) -> ValidationEntry:
        entry = self._entry(path, output_root, AssetType.EFFECT)
        if not entry.is_valid:
            return entry

        try:
            ImageUtils.load_image(path)
        except ValueError:
            entry.add_issue(FAILED_EFFECT, invalidates=True)
        return entry

    def _compute_statistics(self, report: MigrationReport) -> None:
        entries = report.entries()
        report.total_assets = len(entries)
        report.valid_assets = sum(1 for entry in entries if entry.is_valid)
        report.missing_texture_count = sum(1 for entry in entries if MISSING_TEXTURE in entry.issues)
        report.broken_reference_count = sum(1 for entry in entries if entry.has_load_failure)
        report.total_file_size_bytes = sum(entry.file_size_bytes for entry in entries)

        total_expected = sum(category.expected for category in report.categories)
        report.overall_progress = report.valid_assets / total_expected if total_expected > 0 else 0.0

    def _collect_missing_assets(self, report: MigrationReport) -> None:
        missing = []
        for category in report.categories:
            for entry in category.assets:
                if entry.is_valid:
                    continue
                missing.append(MissingAsset(
                    name=entry.name,
                    category=category.name,
                    severity=entry.severity or Severity.LOW,
                    reason=", ".join(entry.issues),
                    path=entry.path,
                ))

        characters = report.category(AssetCategory.CHARACTERS)
        character_paths = [entry.path.lower() for entry in characters.assets] if characters else []
        for class_name in self.essential_characters:
            token = class_name.lower()
            if not any(token in path for path in character_paths):
                missing.append(MissingAsset(
                    name=f"{class_name} sprites",
                    category="Characters",
                    severity=Severity.CRITICAL,
                    reason="Character class not found",
                ))

        missing.sort(key=lambda item: (-item.severity, item.category, item.name))
        report.missing_assets = missing

    @staticmethod
    def _generate_recommendations(report: MigrationReport) -> List[str]:
        recommendations = []

        characters = report.category(AssetCategory.CHARACTERS)
        if characters and characters.progress < 0.5:
            recommendations.append(
                "Priority: Extract and process character sprites. They are essential for gameplay."
            )

        ui = report.category(AssetCategory.UI)
        if ui and ui.progress < 0.3:
            recommendations.append("UI assets are low. Consider extracting interface elements for a better user experience.")

        if report.total_file_size_bytes > LARGE_OUTPUT_BYTES:
            recommendations.append("Large asset size detected. Consider packing sprites into atlases to reduce memory usage.")

        if report.broken_reference_count > BROKEN_REFERENCE_LIMIT:
            recommendations.append(
                f"{report.broken_reference_count} broken references found. Run a reimport of the affected folders."
            )

        return recommendations


def timestamped_report_name(moment: Optional[datetime] = None, prefix: str = "AssetReport") -> str:
    """File name such as ``AssetReport_20240101_120000.json``."""
    moment = moment or datetime.now()
    return f"{prefix}_{moment.strftime('%Y%m%d_%H%M%S')}.json"
