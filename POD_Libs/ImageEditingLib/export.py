"""
Export and print sizing.

Defines the print presets, the print-area guides drawn on previews, and
the high-resolution export of designs and patterns.

Functions:
    preset_pixel_size: Pixel dimensions of a preset at its DPI
    safe_margin_fraction: Safe margin as a fraction of the print width
    draw_safe_area_guides: Overlay dashed safe-area and trim guides
    fit_to_canvas: Contain-fit a design into a canvas, centered
    export_design / export_pattern: High-resolution export helpers
    encode_png / save_image: Serialise an RGBA raster
"""

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from PIL import Image, ImageDraw

from POD_Libs.constants import (
    DEFAULT_OUTPUT_FORMAT,
    GUIDE_DASH,
    GUIDE_SAFE_COLOR,
    GUIDE_SAFE_FILL,
    GUIDE_SAFE_WIDTH,
    GUIDE_TRIM_COLOR,
    GUIDE_TRIM_WIDTH,
    RASTER_MODE,
)
from POD_Libs.ImageEditingLib.pattern_tiler import PatternSpec, render_pattern

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PrintPreset:
    """A print area in inches at a target resolution."""
    name: str
    label: str
    width: float
    height: float
    dpi: int
    safe_margin: float


PRINT_PRESETS: Dict[str, PrintPreset] = {
    "standard": PrintPreset("standard", "Standard T-Shirt (12x16)", 12, 16, 300, 0.5),
    "large": PrintPreset("large", "Oversized (14x18)", 14, 18, 300, 0.75),
    "pocket": PrintPreset("pocket", "Pocket / Chest (4x4)", 4, 4, 300, 0.25),
    "allover": PrintPreset("allover", "All-Over Print (24x30)", 24, 30, 150, 1.0),
}


def get_preset(name: str) -> PrintPreset:
    try:
        return PRINT_PRESETS[name]
    except KeyError:
        raise ValueError(f"Unknown print preset: {name}") from None


def preset_pixel_size(preset: PrintPreset) -> Tuple[int, int]:
    return int(round(preset.width * preset.dpi)), int(round(preset.height * preset.dpi))


def safe_margin_fraction(preset: PrintPreset) -> float:
    return preset.safe_margin / preset.width


def _dashed_line(draw: Any, start: Tuple[float, float], end: Tuple[float, float], fill: Any, width: int) -> None:
    (x0, y0), (x1, y1) = start, end
    length = ((x1 - x0) ** 2 + (y1 - y0) ** 2) ** 0.5
    if length == 0:
        return
    dx = (x1 - x0) / length
    dy = (y1 - y0) / length
    position = 0.0
    while position < length:
        stop = min(position + GUIDE_DASH, length)
        draw.line(
            [(x0 + dx * position, y0 + dy * position), (x0 + dx * stop, y0 + dy * stop)],
            fill=fill,
            width=width,
        )
        position += GUIDE_DASH * 2


def draw_safe_area_guides(image: Any, preset: PrintPreset) -> Any:
    """
    Draw the dashed safe-area rectangle and solid trim border on a copy of image.

    The safe margin is scaled so that the image width spans the preset width.
    """
    result = image.convert(RASTER_MODE)
    width, height = result.size
    margin = safe_margin_fraction(preset) * width

    tint = Image.new(RASTER_MODE, result.size, (0, 0, 0, 0))
    ImageDraw.Draw(tint).rectangle(
        (margin, margin, width - margin, height - margin), fill=GUIDE_SAFE_FILL
    )
    result = Image.alpha_composite(result, tint)

    draw = ImageDraw.Draw(result)
    corners = [
        (margin, margin),
        (width - margin, margin),
        (width - margin, height - margin),
        (margin, height - margin),
    ]
    for index, corner in enumerate(corners):
        _dashed_line(draw, corner, corners[(index + 1) % 4], GUIDE_SAFE_COLOR, GUIDE_SAFE_WIDTH)
    draw.rectangle((0, 0, width - 1, height - 1), outline=GUIDE_TRIM_COLOR, width=GUIDE_TRIM_WIDTH)
    return result


def fit_to_canvas(design: Any, canvas_size: Tuple[int, int]) -> Any:
    """Scale design to fit inside canvas_size, preserving aspect, centered on transparency."""
    design = design.convert(RASTER_MODE)
    canvas_w, canvas_h = canvas_size
    scale = min(canvas_w / design.width, canvas_h / design.height)
    fitted_size = (max(1, int(round(design.width * scale))), max(1, int(round(design.height * scale))))
    fitted = design.resize(fitted_size, Image.Resampling.LANCZOS)

    canvas = Image.new(RASTER_MODE, canvas_size, (0, 0, 0, 0))
    canvas.paste(fitted, ((canvas_w - fitted_size[0]) // 2, (canvas_h - fitted_size[1]) // 2))
    return canvas


def export_design(design: Any, multiplier: float = 1.0, preset: Optional[PrintPreset] = None) -> Any:
    """
    Produce a high-resolution export of a rendered design.

    Args:
        design: Rendered RGBA design
        multiplier: Scale factor applied when no preset is given
        preset: Print preset; when given, the design is contain-fitted into
                the preset's pixel dimensions

    Returns:
        New RGBA image
    """
    if not hasattr(design, "convert"):
        raise TypeError(f"Expected PIL Image, got {type(design)}")
    if preset is not None:
        target = preset_pixel_size(preset)
        logger.info("Exporting design at preset %s (%dx%d)", preset.name, *target)
        return fit_to_canvas(design, target)

    if multiplier <= 0:
        raise ValueError(f"Export multiplier must be positive, got {multiplier}")
    design = design.convert(RASTER_MODE)
    if multiplier == 1:
        return design.copy()
    size = (max(1, int(round(design.width * multiplier))), max(1, int(round(design.height * multiplier))))
    logger.info("Exporting design at %.2fx (%dx%d)", multiplier, *size)
    return design.resize(size, Image.Resampling.LANCZOS)


def export_pattern(design: Any, spec: PatternSpec, target: Union[PrintPreset, Tuple[int, int]]) -> Any:
    """
    Render a pattern for export.

    Uses the same tile math as the live preview, only at the print
    resolution of a preset or at an explicit (width, height).
    """
    if isinstance(target, PrintPreset):
        target = preset_pixel_size(target)
    logger.info("Exporting %s pattern at %dx%d", spec.pattern_type.value, *target)
    return render_pattern(design, target, spec)


def encode_png(image: Any) -> bytes:
    buffer = io.BytesIO()
    image.convert(RASTER_MODE).save(buffer, format="PNG")
    return buffer.getvalue()


def save_image(image: Any, output_path: Path, output_format: str = DEFAULT_OUTPUT_FORMAT, **save_kwargs: Any) -> Path:
    """
    Save a raster to disk, creating parent directories.

    JPEG output has no alpha, so the image is flattened onto white first.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_format = output_format.upper()

    image = image.convert(RASTER_MODE)
    if output_format in ("JPEG", "JPG"):
        background = Image.new("RGB", image.size, (255, 255, 255))
        background.paste(image, mask=image.getchannel("A"))
        image = background
        output_format = "JPEG"

    image.save(output_path, format=output_format, **save_kwargs)
    logger.info("Saved %s to %s", output_format, output_path)
    return output_path
