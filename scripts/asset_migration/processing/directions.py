"""
Compass direction tables and the mapping onto the source art's native directions.

The source art only draws five facings (front, back, left, right, side) and
reuses mirrored art for the remaining compass points.
"""

import logging
from types import MappingProxyType
from typing import Optional, Tuple


logger = logging.getLogger(__name__)


COMPASS_DIRECTIONS = ("N", "NE", "E", "SE", "S", "SW", "W", "NW")

# Sheet row index -> compass direction.
ROW_DIRECTIONS = ("S", "SW", "W", "NW", "N", "NE", "E", "SE")

FOUR_DIRECTIONS = ("S", "W", "N", "E")

NATIVE_CODES = ("F", "B", "L", "R", "S")

DIRECTION_ALIASES = MappingProxyType({
    "n": "N", "north": "N", "up": "N",
    "ne": "NE", "northeast": "NE", "north_east": "NE",
    "e": "E", "east": "E", "right": "E",
    "se": "SE", "southeast": "SE", "south_east": "SE",
    "s": "S", "south": "S", "down": "S",
    "sw": "SW", "southwest": "SW", "south_west": "SW",
    "w": "W", "west": "W", "left": "W",
    "nw": "NW", "northwest": "NW", "north_west": "NW",
})

DIRECTION_MAP = MappingProxyType({
    "N": ("B", False),
    "NE": ("L", True),
    "E": ("S", False),
    "SE": ("R", False),
    "S": ("F", False),
    "SW": ("R", True),
    "W": ("S", True),
    "NW": ("L", False),
})

MIRROR_TWINS = MappingProxyType({
    "N": "N",
    "NE": "NW",
    "E": "W",
    "SE": "SW",
    "S": "S",
    "SW": "SE",
    "W": "E",
    "NW": "NE",
})

# Unit vectors used as blend-space child positions.
DIRECTION_VECTORS = MappingProxyType({
    "S": (0.0, -1.0),
    "SW": (-1.0, -1.0),
    "W": (-1.0, 0.0),
    "NW": (-1.0, 1.0),
    "N": (0.0, 1.0),
    "NE": (1.0, 1.0),
    "E": (1.0, 0.0),
    "SE": (1.0, -1.0),
})

FALLBACK_NATIVE = ("F", False)


class DirectionError(ValueError):
    """Raised in strict mode for directions outside the compass table."""


def normalize_direction(direction: Optional[str]) -> Optional[str]:
    """
    Normalize a direction token to its compass code.

    Accepts compass codes in any case and long names such as ``northeast``.

    Returns:
        Compass code, or None if the token is not a direction
    """
    if not direction:
        return None
    token = str(direction).strip().lower().replace("-", "_").replace(" ", "_")
    return DIRECTION_ALIASES.get(token)


def direction_for_row(row: int) -> str:
    """Compass direction for a sheet row, ``dir_<row>`` past the table."""
    if 0 <= row < len(ROW_DIRECTIONS):
        return ROW_DIRECTIONS[row]
    return f"dir_{row}"


def map_direction(direction: str, strict: bool = False) -> Tuple[str, bool]:
    """
    Map a compass direction onto the native direction code and mirror flag.

    Args:
        direction: Compass direction (N, NE, ... or long form)
        strict: Raise instead of falling back for unknown input

    Returns:
        (native_code, mirror) tuple

    Raises:
        DirectionError: If strict and the direction is not recognised
    """
    compass = normalize_direction(direction)
    if compass is None:
        if strict:
            raise DirectionError(f"Unknown direction: {direction!r}")
        logger.warning(f"Unknown direction {direction!r}, using front facing")
        return FALLBACK_NATIVE
    return DIRECTION_MAP[compass]


def mirror_twin(direction: str) -> Optional[str]:
    """Return the horizontally mirrored compass direction."""
    compass = normalize_direction(direction)
    if compass is None:
        return None
    return MIRROR_TWINS[compass]


def directions_for(use_8_directions: bool) -> Tuple[str, ...]:
    """Compass directions a state machine covers."""
    return ROW_DIRECTIONS if use_8_directions else FOUR_DIRECTIONS
