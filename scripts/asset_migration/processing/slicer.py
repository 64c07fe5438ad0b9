"""
Sprite sheet slicing, frame naming and frame-name parsing.

Sheets are laid out with one direction per row and one frame per column.
Frame rects use a bottom-left raster origin, so sheet row 0 maps to the
bottom-most band of the rect space.
"""

import re
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Optional, Tuple, Union

from .classifier import AssetCategory
from .directions import direction_for_row, normalize_direction, NATIVE_CODES
from .grid import GridSpec, resolve_grid
from ..utils.image import ImageUtils
from ..utils.fileio import atomic_save_image


logger = logging.getLogger(__name__)


class NamingConvention(Enum):
    """Frame naming conventions."""
    DIRECTION_FIRST = "direction_first"
    FRAME_FIRST = "frame_first"
    TYPE_DIRECTION_FRAME = "type_direction_frame"
    INDEX_ONLY = "index_only"


class SpriteAlignment(Enum):
    """Pivot alignment of a frame."""
    CENTER = "center"
    TOP_LEFT = "top_left"
    TOP_CENTER = "top_center"
    TOP_RIGHT = "top_right"
    LEFT_CENTER = "left_center"
    RIGHT_CENTER = "right_center"
    BOTTOM_LEFT = "bottom_left"
    BOTTOM_CENTER = "bottom_center"
    BOTTOM_RIGHT = "bottom_right"
    CUSTOM = "custom"


PIVOTS = MappingProxyType({
    SpriteAlignment.CENTER: (0.5, 0.5),
    SpriteAlignment.TOP_LEFT: (0.0, 1.0),
    SpriteAlignment.TOP_CENTER: (0.5, 1.0),
    SpriteAlignment.TOP_RIGHT: (1.0, 1.0),
    SpriteAlignment.LEFT_CENTER: (0.0, 0.5),
    SpriteAlignment.RIGHT_CENTER: (1.0, 0.5),
    SpriteAlignment.BOTTOM_LEFT: (0.0, 0.0),
    SpriteAlignment.BOTTOM_CENTER: (0.5, 0.0),
    SpriteAlignment.BOTTOM_RIGHT: (1.0, 0.0),
})

TYPE_TOKENS = MappingProxyType({
    AssetCategory.CHARACTERS: "char",
    AssetCategory.MONSTERS: "mob",
    AssetCategory.EFFECTS: "fx",
    AssetCategory.UI: "ui",
})
DEFAULT_TYPE_TOKEN = "sprite"

KNOWN_LABELS = (
    "idle", "static", "walk", "run", "move", "attack", "cast",
    "hit", "death", "special", "emote", "start", "loop", "end",
)
LABEL_ALIASES = MappingProxyType({"static": "idle"})

_DIRECTION_FIRST = re.compile(r"^(?P<base>.+)_(?P<dir>[A-Za-z]+)_(?P<frame>\d+)$")
_FRAME_FIRST = re.compile(r"^(?P<base>.+)_(?P<frame>\d+)_(?P<dir>[A-Za-z]+)$")
_NATIVE_NAME = re.compile(r"^(?P<label>[a-z]+)(?P<code>[FBLRS])(?:_(?P<frame>\d+))?$")
_NATIVE_FOLDER = re.compile(r"(?:^|_)(?P<label>[a-z]+)(?P<code>[FBLRS])$")
_TOKEN_SPLIT = re.compile(r"[_\-\s]+")


@dataclass(frozen=True)
class SpriteFrame:
    """One named sub-region of a sprite sheet."""
    name: str
    rect: Tuple[int, int, int, int]
    pivot: Tuple[float, float]
    alignment: SpriteAlignment
    border: Tuple[int, int, int, int] = (0, 0, 0, 0)
    row: int = 0
    column: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "rect": list(self.rect),
            "pivot": list(self.pivot),
            "alignment": self.alignment.value,
            "border": list(self.border),
            "row": self.row,
            "column": self.column,
        }


@dataclass(frozen=True)
class ParsedFrameName:
    """Animation label, direction and frame index recovered from a name."""
    label: str
    direction: str
    index: int
    native: bool = False


def normalize_label(base: str) -> str:
    """
    Reduce a frame or sheet base name to an animation label.

    The first known animation token wins (``static`` reads as ``idle``);
    emote tokens keep their qualifier. Unknown names fall back to the
    lower-cased base.
    """
    tokens = [token for token in _TOKEN_SPLIT.split(base.lower()) if token]
    for position, token in enumerate(tokens):
        if token.startswith("emote"):
            if token == "emote" and position + 1 < len(tokens):
                return f"emote_{tokens[position + 1]}"
            return token
        if token in KNOWN_LABELS:
            return LABEL_ALIASES.get(token, token)
    return base.lower()


def frame_name(base: str, row: int, column: int, columns: int,
               convention: NamingConvention, category: AssetCategory = AssetCategory.CHARACTERS) -> str:
    """Generate the name of the frame at (row, column)."""
    direction = direction_for_row(row)
    frame = f"{column:02d}"

    if convention == NamingConvention.DIRECTION_FIRST:
        return f"{base}_{direction}_{frame}"
    if convention == NamingConvention.FRAME_FIRST:
        return f"{base}_{frame}_{direction}"
    if convention == NamingConvention.TYPE_DIRECTION_FRAME:
        type_token = TYPE_TOKENS.get(category, DEFAULT_TYPE_TOKEN)
        return f"{base}_{type_token}_{direction}_{frame}"
    return f"{base}_{row * columns + column:03d}"


def pivot_for(alignment: SpriteAlignment, custom_pivot: Tuple[float, float] = (0.5, 0.5)) -> Tuple[float, float]:
    if alignment == SpriteAlignment.CUSTOM:
        return (float(custom_pivot[0]), float(custom_pivot[1]))
    return PIVOTS[alignment]


def slice_sheet(image_width: int, image_height: int, grid: GridSpec,
                naming_convention: NamingConvention = NamingConvention.DIRECTION_FIRST,
                base_name: str = "sprite",
                alignment: SpriteAlignment = SpriteAlignment.CENTER,
                custom_pivot: Tuple[float, float] = (0.5, 0.5),
                category: AssetCategory = AssetCategory.CHARACTERS) -> List[SpriteFrame]:
    """
    Produce the ordered frames of a sheet, row by row.

    Args:
        image_width: Sheet width in pixels
        image_height: Sheet height in pixels
        grid: Grid to slice along
        naming_convention: Frame naming convention
        base_name: Prefix for every frame name
        alignment: Pivot alignment
        custom_pivot: Pivot used with ``SpriteAlignment.CUSTOM``
        category: Category used for the type token

    Returns:
        Frames ordered by (row, column); empty for a degenerate grid
    """
    if grid.is_degenerate:
        return []

    pivot = pivot_for(alignment, custom_pivot)
    frames = []
    for row in range(grid.rows):
        for column in range(grid.columns):
            rect = (
                column * grid.cell_width,
                image_height - (row + 1) * grid.cell_height,
                grid.cell_width,
                grid.cell_height,
            )
            frames.append(SpriteFrame(
                name=frame_name(base_name, row, column, grid.columns, naming_convention, category),
                rect=rect,
                pivot=pivot,
                alignment=alignment,
                row=row,
                column=column,
            ))
    return frames


def _strip_type_token(base: str) -> str:
    for token in list(TYPE_TOKENS.values()) + [DEFAULT_TYPE_TOKEN]:
        suffix = f"_{token}"
        if base.lower().endswith(suffix) and len(base) > len(suffix):
            return base[:-len(suffix)]
    return base


def parse_frame_name(stem: str, parent_name: str = "") -> Optional[ParsedFrameName]:
    """
    Recover (label, direction, frame index) from a frame file name.

    Recognises direction-first, frame-first and type-direction-frame names
    with compass tokens, native names such as ``walkS_3`` and native
    frame folders such as ``DefineSprite_59_walkS/3.png``.

    Args:
        stem: File name without extension
        parent_name: Name of the containing folder

    Returns:
        Parsed name, or None if the name is not a frame name
    """
    match = _DIRECTION_FIRST.match(stem)
    if match and normalize_direction(match.group("dir")):
        base = _strip_type_token(match.group("base"))
        return ParsedFrameName(normalize_label(base), normalize_direction(match.group("dir")),
                               int(match.group("frame")))

    match = _FRAME_FIRST.match(stem)
    if match and normalize_direction(match.group("dir")):
        return ParsedFrameName(normalize_label(match.group("base")), normalize_direction(match.group("dir")),
                               int(match.group("frame")))

    match = _NATIVE_NAME.match(stem)
    if match and match.group("code") in NATIVE_CODES:
        return ParsedFrameName(normalize_label(match.group("label")), match.group("code"),
                               int(match.group("frame") or 0), native=True)

    if stem.isdigit() and parent_name:
        match = _NATIVE_FOLDER.search(parent_name)
        if match:
            return ParsedFrameName(normalize_label(match.group("label")), match.group("code"),
                                   int(stem), native=True)

    return None


@dataclass
class SliceResult:
    """Frames sliced from one sheet."""
    sheet_path: Path
    grid: GridSpec
    frames: List[SpriteFrame]
    label: str
    written: List[Path] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    def to_metadata(self) -> Dict[str, Any]:
        """Sub-region metadata stored in the sheet's sidecar."""
        return {
            "grid": {
                "rows": self.grid.rows,
                "columns": self.grid.columns,
                "cell_width": self.grid.cell_width,
                "cell_height": self.grid.cell_height,
            },
            "label": self.label,
            "frames": [frame.to_dict() for frame in self.frames],
        }


class SpriteSheetSlicer:
    """Slices sprite sheets and commits the frames as images."""

    def __init__(self, naming_convention: NamingConvention = NamingConvention.DIRECTION_FIRST,
                 alignment: SpriteAlignment = SpriteAlignment.CENTER,
                 custom_pivot: Tuple[float, float] = (0.5, 0.5),
                 auto_detect: bool = True,
                 grid_override: Optional[GridSpec] = None):
        """
        Initialize slicer.

        Args:
            naming_convention: Naming convention for generated frames
            alignment: Pivot alignment for generated frames
            custom_pivot: Pivot used with custom alignment
            auto_detect: Detect grids from image size
            grid_override: Explicit grid used when auto detection is off
        """
        self.naming_convention = naming_convention
        self.alignment = alignment
        self.custom_pivot = custom_pivot
        self.auto_detect = auto_detect
        self.grid_override = grid_override

    @classmethod
    def from_config(cls, config) -> "SpriteSheetSlicer":
        """Build a slicer from a MigrationConfig."""
        return cls(
            naming_convention=NamingConvention(config.naming_convention),
            alignment=SpriteAlignment(config.alignment),
            custom_pivot=tuple(config.custom_pivot),
            auto_detect=config.grid_auto_detect,
            grid_override=GridSpec(config.grid_rows, config.grid_columns,
                                   config.cell_width, config.cell_height),
        )

    def grid_for(self, width: int, height: int) -> GridSpec:
        return resolve_grid(width, height, self.auto_detect, self.grid_override)

    def is_sheet(self, path: Union[str, Path], category: AssetCategory) -> bool:
        """
        Decide whether an image should be sliced.

        Character and monster images that do not already carry a frame name
        and whose grid holds more than one cell are sheets.
        """
        path = Path(path)
        if category not in (AssetCategory.CHARACTERS, AssetCategory.MONSTERS):
            return False
        if parse_frame_name(path.stem, path.parent.name) is not None:
            return False
        width, height = ImageUtils.image_size(path)
        grid = self.grid_for(width, height)
        return not grid.is_degenerate and grid.cell_count > 1

    def slice_image(self, sheet_path: Union[str, Path],
                    category: AssetCategory = AssetCategory.CHARACTERS) -> SliceResult:
        """Compute the frames of a sheet without writing anything."""
        sheet_path = Path(sheet_path)
        width, height = ImageUtils.image_size(sheet_path)
        grid = self.grid_for(width, height)
        frames = slice_sheet(width, height, grid, self.naming_convention, sheet_path.stem,
                             self.alignment, self.custom_pivot, category)
        return SliceResult(sheet_path=sheet_path, grid=grid, frames=frames,
                           label=normalize_label(sheet_path.stem))

    def apply(self, sheet_path: Union[str, Path], output_dir: Optional[Union[str, Path]] = None,
              category: AssetCategory = AssetCategory.CHARACTERS) -> SliceResult:
        """
        Slice a sheet and write each in-bounds frame as its own image.

        Args:
            sheet_path: Sheet image
            output_dir: Destination folder, ``<sheet dir>/<sheet stem>`` by default
            category: Category used for naming

        Returns:
            Slice result with written frame paths
        """
        result = self.slice_image(sheet_path, category)
        output_dir = Path(output_dir) if output_dir else result.sheet_path.parent / result.sheet_path.stem

        if not result.frames:
            logger.warning(f"No frames sliced from {result.sheet_path} (grid {result.grid})")
            return result

        image = ImageUtils.load_image(result.sheet_path)
        for frame in result.frames:
            x, y, width, height = frame.rect
            if x < 0 or y < 0 or x + width > image.width or y + height > image.height:
                result.skipped.append(frame.name)
                logger.warning(f"Frame {frame.name} falls outside {result.sheet_path.name}, skipping")
                continue
            cropped = ImageUtils.crop_raster_rect(image, frame.rect)
            result.written.append(atomic_save_image(cropped, output_dir / f"{frame.name}.png"))

        return result
