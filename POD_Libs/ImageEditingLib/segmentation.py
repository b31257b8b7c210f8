"""
Color Segmentation and Recolor.

Removes background colors from a design by RGB distance and shifts the
hue/saturation of a selected color region, in a single pass.

Per visible pixel (alpha > 0):
    1. If the color lies within ``remove_tolerance`` of any removal
       target, the pixel becomes fully transparent.
    2. Otherwise, while removal targets exist, pixels inside the edge
       band get a second test at 1.5x the tolerance, and the outermost
       one-pixel ring is always cleared.
    3. Pixels that survive and lie within ``edit_tolerance`` of the edit
       target have their hue rotated and saturation offset. Lightness is
       preserved.

Example:
    >>> settings = SegmentationSettings(remove_colors=[(255, 255, 255)])
    >>> cutout = segment_and_recolor(image, settings)
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np
from PIL import Image

from POD_Libs.constants import (
    BACKGROUND_CORNER_DISTANCE,
    BACKGROUND_MIN_CORNER_MATCHES,
    DEFAULT_EDIT_TOLERANCE,
    DEFAULT_REMOVE_TOLERANCE,
    EDGE_MARGIN,
    EDGE_TOLERANCE_FACTOR,
    RASTER_MODE,
)
from POD_Libs.ImageEditingLib.color_utils import hsl_to_rgb_array, rgb_distance, rgb_to_hsl_array
from POD_Libs.ImageEditingLib.image_models import RgbColor

logger = logging.getLogger(__name__)


@dataclass
class SegmentationSettings:
    """
    Background removal and recolor parameters.

    Attributes:
        remove_colors: Ordered removal targets
        remove_tolerance: RGB distance threshold for removal (0-100)
        edit_color: Color region to recolor, or None to skip recoloring
        edit_tolerance: RGB distance threshold for the edit region (0-100)
        hue_shift: Degrees added to the hue, wrapped into [0, 360)
        sat_shift: Points added to saturation, clamped to [0, 100]
    """
    remove_colors: List[RgbColor] = field(default_factory=list)
    remove_tolerance: float = DEFAULT_REMOVE_TOLERANCE
    edit_color: Optional[RgbColor] = None
    edit_tolerance: float = DEFAULT_EDIT_TOLERANCE
    hue_shift: float = 0.0
    sat_shift: float = 0.0

    def clamped(self) -> "SegmentationSettings":
        """Return a copy with negative tolerances raised to 0 and sat_shift limited to [-100, 100]."""
        return SegmentationSettings(
            remove_colors=list(self.remove_colors),
            remove_tolerance=max(0.0, self.remove_tolerance),
            edit_color=self.edit_color,
            edit_tolerance=max(0.0, self.edit_tolerance),
            hue_shift=self.hue_shift % 360,
            sat_shift=min(100.0, max(-100.0, self.sat_shift)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "remove_colors": [list(c) for c in self.remove_colors],
            "remove_tolerance": self.remove_tolerance,
            "edit_color": list(self.edit_color) if self.edit_color is not None else None,
            "edit_tolerance": self.edit_tolerance,
            "hue_shift": self.hue_shift,
            "sat_shift": self.sat_shift,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SegmentationSettings":
        values = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        if "remove_colors" in values:
            values["remove_colors"] = [tuple(int(c) for c in color[:3]) for color in values["remove_colors"]]
        if values.get("edit_color") is not None:
            values["edit_color"] = tuple(int(c) for c in values["edit_color"][:3])
        return cls(**values)


def _distance_map(rgb: np.ndarray, target: RgbColor) -> np.ndarray:
    diff = rgb - np.asarray(target[:3], dtype=np.float64)
    return np.sqrt(np.sum(diff * diff, axis=-1))


def _edge_bands(height: int, width: int) -> tuple:
    """Boolean maps for the edge band and the outermost one-pixel ring."""
    ys = np.arange(height)[:, None]
    xs = np.arange(width)[None, :]
    band = (xs < EDGE_MARGIN) | (xs >= width - EDGE_MARGIN) | (ys < EDGE_MARGIN) | (ys >= height - EDGE_MARGIN)
    ring = (xs == 0) | (xs == width - 1) | (ys == 0) | (ys == height - 1)
    return band, ring


def segment_and_recolor(image: Any, settings: SegmentationSettings) -> Any:
    """
    Apply background removal and recoloring to a design.

    Args:
        image: PIL Image (converted to RGBA)
        settings: Removal targets, tolerances and color shifts

    Returns:
        A new RGBA image of the same size. The input is not modified.

    Raises:
        TypeError: If image is not a PIL Image
    """
    if not hasattr(image, "convert"):
        raise TypeError(f"Expected PIL Image, got {type(image)}")

    pixels = np.array(image.convert(RASTER_MODE), dtype=np.uint8)
    height, width = pixels.shape[:2]
    result = pixels.copy()
    if height == 0 or width == 0:
        return Image.fromarray(result, mode=RASTER_MODE)

    rgb = pixels[..., :3].astype(np.float64)
    visible = pixels[..., 3] > 0
    removed = np.zeros((height, width), dtype=bool)

    if settings.remove_colors:
        band, ring = _edge_bands(height, width)
        edge_tolerance = settings.remove_tolerance * EDGE_TOLERANCE_FACTOR
        for target in settings.remove_colors:
            distance = _distance_map(rgb, target)
            removed |= distance <= settings.remove_tolerance
            removed |= band & (distance <= edge_tolerance)
        removed |= ring
        removed &= visible
        result[..., 3][removed] = 0

    if settings.edit_color is not None:
        selected = visible & ~removed & (_distance_map(rgb, settings.edit_color) <= settings.edit_tolerance)
        if selected.any():
            hsl = rgb_to_hsl_array(rgb[selected])
            hsl[:, 0] = np.mod(hsl[:, 0] + settings.hue_shift, 360.0)
            hsl[:, 1] = np.clip(hsl[:, 1] + settings.sat_shift, 0.0, 100.0)
            result[..., :3][selected] = np.clip(hsl_to_rgb_array(hsl), 0, 255).astype(np.uint8)

    logger.debug(
        "Segmented %dx%d design: %d removed, edit=%s",
        width, height, int(removed.sum()), settings.edit_color,
    )
    return Image.fromarray(result, mode=RASTER_MODE)


def detect_background_color(image: Any) -> Optional[RgbColor]:
    """
    Guess a solid background color from the four corners.

    Returns the top-left color when at least three corners lie within a
    small RGB distance of it, otherwise None.
    """
    rgba = image.convert(RASTER_MODE)
    width, height = rgba.size
    if width == 0 or height == 0:
        return None

    corners = [
        rgba.getpixel((0, 0)),
        rgba.getpixel((width - 1, 0)),
        rgba.getpixel((0, height - 1)),
        rgba.getpixel((width - 1, height - 1)),
    ]
    reference = corners[0]
    matches = sum(1 for corner in corners if rgb_distance(corner, reference) < BACKGROUND_CORNER_DISTANCE)
    if matches >= BACKGROUND_MIN_CORNER_MATCHES:
        return reference[0], reference[1], reference[2]
    return None
