"""
Pattern Tiler.

Repeats a design across a target canvas in a grid, brick or half-drop
layout with density and rotation controls.

The tile field is laid out on a working surface larger than the canvas
(1.5x the canvas diagonal) so rotated output has no uncovered corners.
Tile positions are aligned to multiples of the tile size measured from
the canvas origin, and row/column parity is taken from those absolute
indices, so an unrotated pattern always has a tile corner at (0, 0).

Example:
    >>> spec = PatternSpec(pattern_type=PatternType.BRICK, density=25, rotation=15)
    >>> fabric = render_pattern(design, (1200, 1600), spec)
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Tuple

from PIL import Image

from POD_Libs.constants import (
    DEFAULT_PATTERN_DENSITY,
    PATTERN_DIAGONAL_FACTOR,
    PATTERN_EXTRA_TILES,
    RASTER_MODE,
)

logger = logging.getLogger(__name__)


class PatternType(str, Enum):
    GRID = "grid"
    BRICK = "brick"
    HALF_DROP = "half_drop"


@dataclass
class PatternSpec:
    """
    Pattern parameters.

    Attributes:
        pattern_type: Grid, brick (odd rows shifted half a tile right) or
                      half-drop (odd columns shifted half a tile down)
        density: Tile width as a percentage of the canvas width (0-100]
        rotation: Clockwise rotation of the whole field in degrees
    """
    pattern_type: PatternType = PatternType.GRID
    density: float = DEFAULT_PATTERN_DENSITY
    rotation: float = 0.0

    def __post_init__(self) -> None:
        self.pattern_type = PatternType(self.pattern_type)
        if not 0 < self.density <= 100:
            raise ValueError(f"Pattern density must be in (0, 100], got {self.density}")

    def to_dict(self) -> Dict[str, Any]:
        return {"pattern_type": self.pattern_type.value, "density": self.density, "rotation": self.rotation}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PatternSpec":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass
class TileLayout:
    """Geometry of a tile field in canvas coordinates (before rotation)."""
    tile_width: float
    tile_height: float
    diagonal: float
    columns: int
    rows: int
    positions: List[Tuple[float, float]] = field(default_factory=list)

    def centers(self) -> List[Tuple[float, float]]:
        half_w = self.tile_width / 2
        half_h = self.tile_height / 2
        return [(x + half_w, y + half_h) for x, y in self.positions]


def compute_tile_layout(
    design_size: Tuple[int, int],
    target_size: Tuple[int, int],
    spec: PatternSpec,
) -> TileLayout:
    """
    Compute top-left tile positions covering the rotated working surface.

    Args:
        design_size: (width, height) of the design raster
        target_size: (width, height) of the output canvas
        spec: Pattern parameters

    Returns:
        TileLayout with float positions relative to the canvas origin

    Raises:
        ValueError: If any size is not positive
    """
    design_w, design_h = design_size
    width, height = target_size
    if design_w <= 0 or design_h <= 0:
        raise ValueError(f"Design size must be positive, got {design_size}")
    if width <= 0 or height <= 0:
        raise ValueError(f"Target size must be positive, got {target_size}")

    tile_w = width * spec.density / 100.0
    tile_h = tile_w * design_h / design_w
    diagonal = math.hypot(width, height) * PATTERN_DIAGONAL_FACTOR
    columns = math.ceil(diagonal / tile_w) + PATTERN_EXTRA_TILES
    rows = math.ceil(diagonal / tile_h) + PATTERN_EXTRA_TILES

    first_col = math.floor((width / 2 - diagonal / 2) / tile_w)
    first_row = math.floor((height / 2 - diagonal / 2) / tile_h)

    positions = []
    for row in range(first_row, first_row + rows):
        for col in range(first_col, first_col + columns):
            x = col * tile_w
            y = row * tile_h
            if spec.pattern_type == PatternType.BRICK and row % 2 == 1:
                x += tile_w / 2
            elif spec.pattern_type == PatternType.HALF_DROP and col % 2 == 1:
                y += tile_h / 2
            positions.append((x, y))

    return TileLayout(tile_w, tile_h, diagonal, columns, rows, positions)


def render_pattern(design: Any, target_size: Tuple[int, int], spec: PatternSpec) -> Any:
    """
    Render a repeating pattern of design onto a transparent canvas.

    Args:
        design: PIL Image to tile (converted to RGBA)
        target_size: (width, height) of the output
        spec: Pattern parameters

    Returns:
        New RGBA image of target_size

    Raises:
        TypeError: If design is not a PIL Image
        ValueError: If sizes are not positive
    """
    if not hasattr(design, "convert"):
        raise TypeError(f"Expected PIL Image, got {type(design)}")

    design = design.convert(RASTER_MODE)
    width, height = target_size
    layout = compute_tile_layout(design.size, target_size, spec)

    pad_x = max(0, math.ceil((layout.diagonal - width) / 2))
    pad_y = max(0, math.ceil((layout.diagonal - height) / 2))
    field_image = Image.new(RASTER_MODE, (width + 2 * pad_x, height + 2 * pad_y), (0, 0, 0, 0))

    # Tile edges are rounded independently so neighbours abut without seams
    tiles: Dict[Tuple[int, int], Any] = {}
    for x, y in layout.positions:
        left = int(round(x)) + pad_x
        top = int(round(y)) + pad_y
        right = int(round(x + layout.tile_width)) + pad_x
        bottom = int(round(y + layout.tile_height)) + pad_y
        tile_size = (max(1, right - left), max(1, bottom - top))
        if tile_size not in tiles:
            tiles[tile_size] = design.resize(tile_size, Image.Resampling.LANCZOS)
        field_image.paste(tiles[tile_size], (left, top))

    if spec.rotation % 360:
        field_image = field_image.rotate(-spec.rotation, resample=Image.Resampling.BICUBIC)

    logger.debug(
        "Rendered %s pattern: %d tiles of %.1fx%.1f, rotation %.1f",
        spec.pattern_type.value, len(layout.positions), layout.tile_width, layout.tile_height, spec.rotation,
    )
    return field_image.crop((pad_x, pad_y, pad_x + width, pad_y + height))
