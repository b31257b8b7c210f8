"""
Mask Compositor.

Two single-channel ("L") masks accompany every design:

- Manual mask: 255 keeps a pixel, 0 erases it. Merged into the design by
  taking the minimum of the design alpha and the mask value.
- Generative mask: 255 marks the region to regenerate, 0 leaves it alone.
  Used to cut a hole for generative fill and to stencil the returned patch.

Masks are only changed through brush strokes or an explicit clear.
"""

import logging
from typing import Any, Sequence, Tuple

import numpy as np
from PIL import Image, ImageDraw

from POD_Libs.constants import MASK_EMPTY, MASK_KEEP, MASK_MODE, RASTER_MODE
from POD_Libs.ImageEditingLib.image_models import new_mask

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


def new_manual_mask(size: Tuple[int, int]) -> Any:
    return new_mask(size, MASK_KEEP)


def new_generative_mask(size: Tuple[int, int]) -> Any:
    return new_mask(size, MASK_EMPTY)


def _check_pair(image: Any, mask: Any) -> None:
    if not hasattr(image, "convert"):
        raise TypeError(f"Expected PIL Image, got {type(image)}")
    if not hasattr(mask, "convert"):
        raise TypeError(f"Expected PIL Image mask, got {type(mask)}")
    if image.size != mask.size:
        raise ValueError(f"Mask size {mask.size} does not match image size {image.size}")


def _scale_alpha(image: Any, factor: np.ndarray) -> Any:
    pixels = np.array(image.convert(RASTER_MODE), dtype=np.float32)
    pixels[..., 3] = np.floor(pixels[..., 3] * factor + 0.5)
    return Image.fromarray(np.clip(pixels, 0, 255).astype(np.uint8), mode=RASTER_MODE)


def apply_manual_mask(image: Any, mask: Any) -> Any:
    """
    Merge the manual mask into a design.

    Final alpha is min(alpha, mask) per pixel. Color channels are untouched.

    Raises:
        TypeError: If image or mask is not a PIL Image
        ValueError: If sizes differ
    """
    _check_pair(image, mask)
    pixels = np.array(image.convert(RASTER_MODE), dtype=np.uint8)
    mask_values = np.array(mask.convert(MASK_MODE), dtype=np.uint8)
    pixels[..., 3] = np.minimum(pixels[..., 3], mask_values)
    return Image.fromarray(pixels, mode=RASTER_MODE)


def cut_hole(image: Any, generative_mask: Any) -> Any:
    """Return the design with alpha scaled by (1 - mask/255)."""
    _check_pair(image, generative_mask)
    weights = np.array(generative_mask.convert(MASK_MODE), dtype=np.float32) / 255.0
    return _scale_alpha(image, 1.0 - weights)


def stencil_patch(filled: Any, generative_mask: Any) -> Any:
    """
    Keep only the masked region of a generated image.

    The generated image is resized to the mask size when its dimensions
    differ, then its alpha is scaled by mask/255.
    """
    if not hasattr(filled, "convert"):
        raise TypeError(f"Expected PIL Image, got {type(filled)}")
    filled = filled.convert(RASTER_MODE)
    if filled.size != generative_mask.size:
        logger.debug("Resizing generated image %s to %s", filled.size, generative_mask.size)
        filled = filled.resize(generative_mask.size, Image.Resampling.LANCZOS)
    weights = np.array(generative_mask.convert(MASK_MODE), dtype=np.float32) / 255.0
    return _scale_alpha(filled, weights)


def paint_stroke(mask: Any, points: Sequence[Point], brush_size: float, value: int) -> Any:
    """
    Paint a round-capped stroke through points onto a copy of mask.

    Args:
        mask: "L" mask image
        points: Stroke path in pixel coordinates (one point paints a dot)
        brush_size: Stroke diameter in pixels
        value: Mask value to paint (0-255)

    Returns:
        The new mask image
    """
    if brush_size <= 0:
        raise ValueError(f"Brush size must be positive, got {brush_size}")
    result = mask.convert(MASK_MODE).copy()
    points = [(float(x), float(y)) for x, y in points]
    if not points:
        return result

    draw = ImageDraw.Draw(result)
    radius = brush_size / 2.0
    width = max(1, int(round(brush_size)))
    if len(points) > 1:
        draw.line(points, fill=int(value), width=width)
    for x, y in points:
        draw.ellipse((x - radius, y - radius, x + radius, y + radius), fill=int(value))
    return result


def clear_mask(mask: Any, value: int = MASK_EMPTY) -> Any:
    return new_mask(mask.size, value)


def mask_is_empty(mask: Any) -> bool:
    """True when no pixel of the mask is above zero."""
    return mask.convert(MASK_MODE).getbbox() is None

