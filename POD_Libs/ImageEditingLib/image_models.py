"""
Image editing data models for POD Studio.

This module defines the core data structures and raster helpers used
throughout the raster core.

Classes:
    DesignRecord: Container for a loaded source raster and its latest render

Functions:
    load_raster: Decode a path, bytes or PIL Image into an RGBA raster
    new_mask: Create a single-channel mask filled with a constant value
    ensure_rgba: Convert any PIL Image to RGBA without touching the argument

Type Aliases:
    RgbColor: A tuple of 3 integers representing RGB values (0-255)
    RgbaColor: A tuple of 4 integers representing RGBA values (0-255)
    HslColor: A tuple (hue 0-360, saturation 0-100, lightness 0-100)
"""

import io
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Tuple, Union

from PIL import Image, UnidentifiedImageError

from POD_Libs.constants import MASK_MODE, RASTER_MODE
from POD_Libs.errors import InvalidRasterError

RgbColor = Tuple[int, int, int]
RgbaColor = Tuple[int, int, int, int]
HslColor = Tuple[float, float, float]

RasterSource = Union[str, Path, bytes, bytearray, "Image.Image"]


def ensure_rgba(image: Any) -> Any:
    """
    Return an RGBA copy of a PIL Image.

    Raises:
        TypeError: If image is not a PIL Image
    """
    if not hasattr(image, "convert"):
        raise TypeError(f"Expected PIL Image, got {type(image)}")
    if image.mode == RASTER_MODE:
        return image.copy()
    return image.convert(RASTER_MODE)


def load_raster(source: RasterSource) -> Any:
    """
    Decode a source image into a new RGBA raster.

    Args:
        source: Filesystem path, encoded image bytes, or a PIL Image

    Returns:
        A new RGBA PIL Image, independent of the source object

    Raises:
        InvalidRasterError: If the source cannot be decoded or has zero width/height
    """
    if isinstance(source, (bytes, bytearray)):
        if not source:
            raise InvalidRasterError("Source image bytes are empty")
        try:
            with Image.open(io.BytesIO(source)) as img:
                raster = img.convert(RASTER_MODE)
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise InvalidRasterError(f"Unreadable source image bytes: {e}") from e
    elif isinstance(source, (str, Path)):
        try:
            with Image.open(source) as img:
                raster = img.convert(RASTER_MODE)
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise InvalidRasterError(f"Unreadable source image {source}: {e}") from e
    elif hasattr(source, "convert"):
        raster = ensure_rgba(source)
    else:
        raise TypeError(f"Expected path, bytes or PIL Image, got {type(source)}")

    width, height = raster.size
    if width == 0 or height == 0:
        raise InvalidRasterError(f"Source image has zero dimensions: {width}x{height}")
    return raster


def new_mask(size: Tuple[int, int], value: int) -> Any:
    """Create an 8-bit mask of the given size filled with value (0-255)."""
    return Image.new(MASK_MODE, size, int(value))


@dataclass
class DesignRecord:
    """
    A loaded design and its most recent render.

    Attributes:
        original: Pristine RGBA source raster, kept for reset
        rendered: Latest composited design (None until first render)
        source_path: Where the design came from, when loaded from disk
    """
    original: 'Image.Image'
    rendered: Optional['Image.Image'] = None
    source_path: Optional[Path] = field(default=None)

    @property
    def size(self) -> Tuple[int, int]:
        return self.original.size
