"""
Print Pre-flight Analysis.

Heuristic checks run on a rendered design before it goes to print:

- Thin lines: opaque pixels whose neighbours on both sides (vertically or
  horizontally) are transparent. These tend to break during screen
  printing or peel off transfers.
- Low contrast: opaque pixels too close in RGB to the fabric color.
- Spot colors: the most frequent colors after coarse quantisation,
  useful for estimating screen counts.

Analysis samples every other pixel in both directions, and both ratios
are measured against the number of sampled pixels.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List

import numpy as np
from PIL import Image

from POD_Libs.constants import (
    AUTO_CONTRAST_DELTA,
    AUTO_CONTRAST_DISTANCE,
    AUTO_CONTRAST_MIN_ALPHA,
    DARK_FABRIC_LUMINANCE,
    DEFAULT_SPOT_COLORS,
    LOW_CONTRAST_DISTANCE,
    LOW_CONTRAST_RATIO,
    PREFLIGHT_OPAQUE_ALPHA,
    PREFLIGHT_SAMPLE_STEP,
    RASTER_MODE,
    SPOT_COLOR_MIN_ALPHA,
    SPOT_COLOR_QUANTUM,
    SPOT_COLOR_SAMPLE_STEP,
    THIN_LINE_RATIO,
)
from POD_Libs.ImageEditingLib.color_utils import hex_to_rgb, luminance
from POD_Libs.ImageEditingLib.image_models import RgbColor

logger = logging.getLogger(__name__)

THIN_LINES_MESSAGE = "Detected thin lines that may break during screen printing or peeling."
LOW_CONTRAST_MESSAGE = "Low contrast detected against {fabric} fabric. Design may blend in."


@dataclass
class SpotColor:
    rgb: RgbColor
    count: int

    @property
    def css(self) -> str:
        return "rgb({},{},{})".format(*self.rgb)


@dataclass
class PreFlightResult:
    """
    Outcome of a pre-flight check.

    Attributes:
        thin_lines: True when thin-line pixels exceed 0.1% of samples
        low_contrast: True when fabric-colored pixels exceed 5% of samples
        issues: Human-readable messages, one per raised flag
        spot_colors: Dominant quantised colors, most frequent first
        sampled: Number of pixels examined
    """
    thin_lines: bool = False
    low_contrast: bool = False
    issues: List[str] = field(default_factory=list)
    spot_colors: List[SpotColor] = field(default_factory=list)
    sampled: int = 0

    @property
    def passed(self) -> bool:
        return not self.issues

    def to_dict(self) -> Dict[str, Any]:
        return {
            "thin_lines": self.thin_lines,
            "low_contrast": self.low_contrast,
            "issues": list(self.issues),
            "spot_colors": [{"rgb": list(s.rgb), "count": s.count} for s in self.spot_colors],
            "sampled": self.sampled,
        }


def analyze_print_quality(image: Any, fabric_hex: str, include_spot_colors: bool = True) -> PreFlightResult:
    """
    Run thin-line and contrast checks against a fabric color.

    Args:
        image: Rendered design (converted to RGBA)
        fabric_hex: Fabric color as '#rrggbb'
        include_spot_colors: Also compute the dominant spot colors

    Returns:
        PreFlightResult
    """
    if not hasattr(image, "convert"):
        raise TypeError(f"Expected PIL Image, got {type(image)}")

    pixels = np.array(image.convert(RASTER_MODE), dtype=np.int32)
    height, width = pixels.shape[:2]
    ys = np.arange(1, height - 1, PREFLIGHT_SAMPLE_STEP)
    xs = np.arange(1, width - 1, PREFLIGHT_SAMPLE_STEP)
    sampled = len(ys) * len(xs)
    result = PreFlightResult(sampled=sampled)

    if sampled:
        alpha = pixels[..., 3]
        center = alpha[np.ix_(ys, xs)]
        top = alpha[np.ix_(ys - 1, xs)]
        bottom = alpha[np.ix_(ys + 1, xs)]
        left = alpha[np.ix_(ys, xs - 1)]
        right = alpha[np.ix_(ys, xs + 1)]

        opaque = center > PREFLIGHT_OPAQUE_ALPHA
        vertical_gap = (top < PREFLIGHT_OPAQUE_ALPHA) & (bottom < PREFLIGHT_OPAQUE_ALPHA)
        horizontal_gap = (left < PREFLIGHT_OPAQUE_ALPHA) & (right < PREFLIGHT_OPAQUE_ALPHA)
        thin_count = int(np.count_nonzero(opaque & (vertical_gap | horizontal_gap)))

        fabric = np.asarray(hex_to_rgb(fabric_hex), dtype=np.float64)
        rgb = pixels[np.ix_(ys, xs)][..., :3].astype(np.float64)
        distance = np.sqrt(np.sum((rgb - fabric) ** 2, axis=-1))
        low_contrast_count = int(np.count_nonzero(opaque & (distance < LOW_CONTRAST_DISTANCE)))

        if thin_count > sampled * THIN_LINE_RATIO:
            result.thin_lines = True
            result.issues.append(THIN_LINES_MESSAGE)
        if low_contrast_count > sampled * LOW_CONTRAST_RATIO:
            result.low_contrast = True
            result.issues.append(LOW_CONTRAST_MESSAGE.format(fabric=fabric_hex))

        logger.debug(
            "Pre-flight: %d sampled, %d thin, %d low contrast",
            sampled, thin_count, low_contrast_count,
        )

    if include_spot_colors:
        result.spot_colors = get_spot_colors(image)
    return result


def get_spot_colors(image: Any, max_colors: int = DEFAULT_SPOT_COLORS) -> List[SpotColor]:
    """
    Estimate the dominant spot colors of a design.

    Every tenth pixel with alpha >= 128 is quantised to multiples of 32
    (clamped to 255). Ties keep first-seen order.
    """
    pixels = np.array(image.convert(RASTER_MODE), dtype=np.float64).reshape(-1, 4)
    samples = pixels[::SPOT_COLOR_SAMPLE_STEP]
    samples = samples[samples[:, 3] >= SPOT_COLOR_MIN_ALPHA]
    if not len(samples):
        return []

    quantised = np.floor(samples[:, :3] / SPOT_COLOR_QUANTUM + 0.5) * SPOT_COLOR_QUANTUM
    quantised = np.minimum(quantised, 255).astype(np.int64)
    counts = Counter(tuple(color) for color in quantised.tolist())
    return [SpotColor(rgb=rgb, count=count) for rgb, count in counts.most_common(max_colors)]


def auto_optimize_contrast(image: Any, fabric_hex: str) -> Any:
    """
    Push colors that nearly match the fabric away from it.

    Pixels (alpha >= 10) within RGB distance 60 of the fabric are
    brightened by 50 on dark fabrics and darkened by 50 on light ones.

    Returns:
        New RGBA image; alpha is unchanged
    """
    pixels = np.array(image.convert(RASTER_MODE), dtype=np.int32)
    fabric = hex_to_rgb(fabric_hex)
    delta = AUTO_CONTRAST_DELTA if luminance(fabric) < DARK_FABRIC_LUMINANCE else -AUTO_CONTRAST_DELTA

    rgb = pixels[..., :3]
    distance = np.sqrt(np.sum((rgb - np.asarray(fabric)) ** 2, axis=-1))
    target = (pixels[..., 3] >= AUTO_CONTRAST_MIN_ALPHA) & (distance < AUTO_CONTRAST_DISTANCE)
    rgb[target] = np.clip(rgb[target] + delta, 0, 255)

    logger.info("Auto contrast adjusted %d pixels against %s", int(target.sum()), fabric_hex)
    return Image.fromarray(pixels.astype(np.uint8), mode=RASTER_MODE)
