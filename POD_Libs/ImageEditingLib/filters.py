"""
Filter Pipeline.

Applies the fixed-order stylistic filter chain to a design:

    brightness -> contrast -> saturation -> vintage -> posterize
    -> noise -> halftone -> clamp

Each stage reads the output of the previous one. Fully transparent pixels
are left untouched and alpha is never modified. A neutral settings object
returns an image that is bit-identical to the input.

Example:
    >>> settings = FilterSettings(brightness=20, posterize=10)
    >>> styled = apply_filters(image, settings, seed=42)
"""

import logging
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional

import numpy as np
from PIL import Image

from POD_Libs.constants import (
    FILTER_RANGES,
    HALFTONE_CELL_PADDING,
    HALFTONE_DARKEN,
    HALFTONE_LUMA_WEIGHTS,
    LUMA_WEIGHTS,
    POSTERIZE_LEVEL_BASE,
    POSTERIZE_MIN_LEVELS,
    RASTER_MODE,
    SEPIA_MATRIX,
)

logger = logging.getLogger(__name__)


@dataclass
class FilterSettings:
    """Filter amounts. All zero means no filtering."""
    brightness: float = 0.0
    contrast: float = 0.0
    saturation: float = 0.0
    noise: float = 0.0
    vintage: float = 0.0
    posterize: float = 0.0
    halftone: float = 0.0

    def is_neutral(self) -> bool:
        return all(getattr(self, f.name) == 0 for f in fields(self))

    def clamped(self) -> "FilterSettings":
        """Return a copy with every value clamped to its domain."""
        values = {}
        for f in fields(self):
            low, high = FILTER_RANGES[f.name]
            values[f.name] = min(high, max(low, getattr(self, f.name)))
        return FilterSettings(**values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FilterSettings":
        return cls(**{k: float(v) for k, v in data.items() if k in cls.__dataclass_fields__})


def contrast_factor(contrast: float) -> float:
    """Classic contrast curve; exactly 1.0 at contrast 0."""
    return (259.0 * (contrast + 255.0)) / (255.0 * (259.0 - contrast))


def posterize_step(strength: float) -> float:
    levels = max(POSTERIZE_MIN_LEVELS, POSTERIZE_LEVEL_BASE - strength)
    return 255.0 / (levels - 1)


def _apply_halftone(rgb: np.ndarray, halftone: float) -> np.ndarray:
    height, width = rgb.shape[:2]
    size = halftone + HALFTONE_CELL_PADDING
    ys = np.arange(height, dtype=np.float64)[:, None]
    xs = np.arange(width, dtype=np.float64)[None, :]
    center_x = np.floor(xs / size) * size + size / 2
    center_y = np.floor(ys / size) * size + size / 2
    dist = np.sqrt((xs - center_x) ** 2 + (ys - center_y) ** 2)

    gray = rgb @ np.asarray(HALFTONE_LUMA_WEIGHTS)
    radius = (size / 2) * (1 - gray / 255.0)
    inside = dist < radius
    rgb[inside] *= HALFTONE_DARKEN
    return rgb


def apply_filters(
    image: Any,
    settings: FilterSettings,
    seed: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
) -> Any:
    """
    Apply the filter chain to an RGBA image.

    Args:
        image: PIL Image (converted to RGBA)
        settings: Filter amounts
        seed: Seed for the noise stage (ignored when rng is given)
        rng: NumPy random generator for the noise stage

    Returns:
        A new RGBA image of the same size

    Raises:
        TypeError: If image is not a PIL Image
    """
    if not hasattr(image, "convert"):
        raise TypeError(f"Expected PIL Image, got {type(image)}")

    pixels = np.array(image.convert(RASTER_MODE), dtype=np.uint8)
    if settings.is_neutral():
        return Image.fromarray(pixels, mode=RASTER_MODE)

    active = pixels[..., 3] > 0
    rgb = pixels[..., :3].astype(np.float64)

    # Brightness (additive)
    if settings.brightness:
        rgb += settings.brightness

    # Contrast
    factor = contrast_factor(settings.contrast)
    rgb = factor * (rgb - 128.0) + 128.0

    # Saturation
    if settings.saturation != 0:
        multiplier = 1.0 + settings.saturation / 100.0
        gray = (rgb @ np.asarray(LUMA_WEIGHTS))[..., None]
        rgb = gray + (rgb - gray) * multiplier

    # Vintage (sepia blend)
    if settings.vintage > 0:
        amount = settings.vintage / 100.0
        sepia = rgb @ np.asarray(SEPIA_MATRIX).T
        rgb = rgb * (1 - amount) + sepia * amount

    # Posterize
    if settings.posterize > 0:
        step = posterize_step(settings.posterize)
        rgb = np.floor(rgb / step + 0.5) * step

    # Noise, one shared offset per pixel
    if settings.noise > 0:
        generator = rng if rng is not None else np.random.default_rng(seed)
        offsets = (0.5 - generator.random(rgb.shape[:2])) * settings.noise
        rgb = rgb + offsets[..., None]

    # Halftone
    if settings.halftone > 0:
        rgb = _apply_halftone(rgb, settings.halftone)

    result = pixels.copy()
    clamped = np.clip(np.rint(rgb), 0, 255).astype(np.uint8)
    result[..., :3][active] = clamped[active]

    logger.debug("Applied filters %s to %dx%d image", settings.to_dict(), pixels.shape[1], pixels.shape[0])
    return Image.fromarray(result, mode=RASTER_MODE)
