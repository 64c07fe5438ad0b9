"""
Sprite sheet grid detection.
"""

import math
from dataclasses import dataclass
from typing import Optional, Sequence


CANDIDATE_CELL_SIZES = (64, 96, 128, 256)
DEFAULT_GRID = 8


@dataclass(frozen=True)
class GridSpec:
    """Rows are direction indices, columns are frame indices."""
    rows: int
    columns: int
    cell_width: int
    cell_height: int

    @property
    def cell_count(self) -> int:
        return self.rows * self.columns

    @property
    def is_degenerate(self) -> bool:
        return self.cell_width <= 0 or self.cell_height <= 0 or self.cell_count <= 0


def detect_grid(width: int, height: int, candidate_sizes: Sequence[int] = CANDIDATE_CELL_SIZES) -> GridSpec:
    """
    Infer a sprite sheet grid from image dimensions.

    Square candidate cell sizes are tried in ascending order; the first that
    divides both sides wins. Otherwise the sheet is assumed to be 8 columns
    wide and rows are derived to cover the height.

    Args:
        width: Image width in pixels
        height: Image height in pixels
        candidate_sizes: Square cell sizes to try

    Returns:
        Detected grid. Never raises; degenerate sizes yield zero-size cells.
    """
    if width <= 0 or height <= 0:
        return GridSpec(DEFAULT_GRID, DEFAULT_GRID, 0, 0)

    for size in sorted(candidate_sizes):
        if size > 0 and width % size == 0 and height % size == 0:
            return GridSpec(rows=height // size, columns=width // size,
                            cell_width=size, cell_height=size)

    if width % DEFAULT_GRID == 0 and height % DEFAULT_GRID == 0:
        return GridSpec(DEFAULT_GRID, DEFAULT_GRID, width // DEFAULT_GRID, height // DEFAULT_GRID)

    cell_width = width // DEFAULT_GRID
    if cell_width == 0:
        return GridSpec(DEFAULT_GRID, DEFAULT_GRID, 0, 0)

    rows = max(1, math.ceil(height / cell_width))
    return GridSpec(rows=rows, columns=DEFAULT_GRID, cell_width=cell_width, cell_height=height // rows)


def manual_grid(width: int, height: int, rows: int, columns: int,
                cell_width: int = 0, cell_height: int = 0) -> GridSpec:
    """
    Build an explicit grid, deriving zero cell sizes from the image size.
    """
    rows = max(1, rows)
    columns = max(1, columns)
    if cell_width <= 0:
        cell_width = width // columns
    if cell_height <= 0:
        cell_height = height // rows
    return GridSpec(rows, columns, cell_width, cell_height)


def resolve_grid(width: int, height: int, auto_detect: bool = True,
                 override: Optional[GridSpec] = None) -> GridSpec:
    """Pick the auto-detected grid unless an explicit one is configured."""
    if override is not None and not auto_detect:
        return manual_grid(width, height, override.rows, override.columns,
                           override.cell_width, override.cell_height)
    return detect_grid(width, height)
