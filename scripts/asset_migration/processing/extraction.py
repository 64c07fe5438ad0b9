"""
Completeness check of a raw extraction root before bulk processing.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .classifier import AUDIO_EXTENSIONS, IMAGE_EXTENSIONS
from .directions import DIRECTION_MAP, ROW_DIRECTIONS
from .slicer import parse_frame_name
from ..config import default_extraction_expectations


logger = logging.getLogger(__name__)

DEFAULT_EXTRACTION_ROOT = "ExtractedAssets/Raw"
MIN_SPRITES_PER_CHARACTER = 16
COVERAGE_LABELS = ("idle", "walk")


@dataclass
class CategoryScan:
    """Counts for one category folder."""
    name: str
    expected: int
    found: int = 0
    folder_found: bool = False
    optional: bool = False
    subfolder_counts: Dict[str, int] = field(default_factory=dict)
    missing_items: List[str] = field(default_factory=list)

    @property
    def score(self) -> float:
        if not self.folder_found:
            return 0.0
        if self.expected <= 0:
            return 1.0
        return min(self.found / self.expected, 1.0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "expected": self.expected,
            "found": self.found,
            "folder_found": self.folder_found,
            "optional": self.optional,
            "score": self.score,
            "subfolder_counts": dict(self.subfolder_counts),
            "missing_items": list(self.missing_items),
        }


@dataclass
class ExtractionSummary:
    """Result of validating an extraction root."""
    root: str
    categories: Dict[str, CategoryScan] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    overall_score: float = 0.0

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    @property
    def total_found(self) -> int:
        return sum(scan.found for scan in self.categories.values())

    def add_error(self, message: str) -> None:
        self.errors.append(message)

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)

    def ready_for_processing(self, threshold: float = 0.5) -> bool:
        """Go/no-go signal for the bulk processing stage."""
        return self.is_valid and self.overall_score >= threshold

    def to_dict(self) -> Dict[str, Any]:
        return {
            "root": self.root,
            "overall_score": self.overall_score,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "categories": {name: scan.to_dict() for name, scan in self.categories.items()},
        }


def _count_files(folder: Path, extensions) -> int:
    return sum(
        1 for path in folder.rglob("*")
        if path.is_file() and path.suffix.lower() in extensions and not path.name.startswith(".")
    )


class ExtractionValidator:
    """Counts raw assets per category against expected minimums."""

    def __init__(self, expectations: Optional[Dict[str, Dict[str, Any]]] = None,
                 min_sprites_per_character: int = MIN_SPRITES_PER_CHARACTER):
        """
        Initialize validator.

        Args:
            expectations: Per-category ``minimum``, ``subfolders`` and ``optional``
            min_sprites_per_character: Sprite minimum for each character folder
        """
        self.expectations = expectations if expectations is not None else default_extraction_expectations()
        self.min_sprites_per_character = min_sprites_per_character

    @classmethod
    def from_config(cls, config) -> "ExtractionValidator":
        return cls(expectations=config.extraction_expectations)

    def validate(self, root: Union[str, Path, None] = None) -> ExtractionSummary:
        """
        Scan an extraction root.

        Args:
            root: Extraction root, ``ExtractedAssets/Raw`` if None

        Returns:
            Summary with a 0..1 score; a missing root scores 0
        """
        root = Path(root) if root is not None else Path(DEFAULT_EXTRACTION_ROOT)
        summary = ExtractionSummary(root=str(root))

        if not root.is_dir():
            summary.add_error(f"Extraction folder not found: {root}")
            summary.overall_score = 0.0
            return summary

        for name, spec in self.expectations.items():
            summary.categories[name] = self._scan_category(root, name, spec, summary)

        if summary.categories:
            scores = [scan.score for scan in summary.categories.values()]
            summary.overall_score = sum(scores) / len(scores)
        if summary.errors:
            summary.overall_score *= 0.5

        logger.info(f"Extraction score for {root}: {summary.overall_score:.0%}")
        return summary

    def _scan_category(self, root: Path, name: str, spec: Dict[str, Any],
                       summary: ExtractionSummary) -> CategoryScan:
        scan = CategoryScan(
            name=name,
            expected=int(spec.get("minimum", 0)),
            optional=bool(spec.get("optional", False)),
        )
        folder = root / name
        if not folder.is_dir():
            suffix = " (optional)" if scan.optional else ""
            summary.add_warning(f"{name} folder not found{suffix}")
            return scan

        extensions = AUDIO_EXTENSIONS if name == "Audio" else IMAGE_EXTENSIONS
        scan.folder_found = True
        scan.found = _count_files(folder, extensions)

        for subfolder in spec.get("subfolders", []):
            sub_path = folder / subfolder
            if sub_path.is_dir():
                scan.subfolder_counts[subfolder] = _count_files(sub_path, extensions)
            else:
                scan.missing_items.append(f"{subfolder} folder")

        if name == "Characters":
            self._check_characters(folder, scan)

        if scan.found < scan.expected:
            summary.add_warning(f"{name}: found {scan.found}, expected at least {scan.expected}")
        return scan

    def _check_characters(self, folder: Path, scan: CategoryScan) -> None:
        for character_dir in sorted(p for p in folder.iterdir() if p.is_dir()):
            sprites = sorted(
                p for p in character_dir.rglob("*")
                if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS
            )
            if len(sprites) < self.min_sprites_per_character:
                scan.missing_items.append(
                    f"{character_dir.name} has only {len(sprites)} sprites "
                    f"(expected at least {self.min_sprites_per_character})"
                )

            coverage = self._direction_coverage(sprites)
            if not coverage:
                continue
            for label in COVERAGE_LABELS:
                covered = coverage.get(label, set())
                if not covered:
                    scan.missing_items.append(f"{character_dir.name} has no {label} frames")
                    continue
                missing = [d for d in ROW_DIRECTIONS if d not in covered]
                if missing:
                    scan.missing_items.append(
                        f"{character_dir.name} {label} missing directions: {', '.join(missing)}"
                    )

    @staticmethod
    def _direction_coverage(sprites: List[Path]) -> Dict[str, set]:
        """Compass directions covered per label, native facings included."""
        coverage: Dict[str, set] = {}
        for path in sprites:
            parsed = parse_frame_name(path.stem, path.parent.name)
            if parsed is None:
                continue
            covered = coverage.setdefault(parsed.label, set())
            if parsed.native:
                covered.update(d for d, (code, _) in DIRECTION_MAP.items() if code == parsed.direction)
            else:
                covered.add(parsed.direction)
        return coverage
