"""
Color model utilities for POD Studio.

Scalar conversions between RGB, HSL and hex notation, Euclidean RGB
distance, and NumPy array versions of the HSL conversions used by the
segmentation engine. The scalar conversions wrap the standard library
:mod:`colorsys`; the array versions follow the same formulas, so
hsl_to_rgb_array rounds to exactly the same channels as hsl_to_rgb.

Functions:
    rgb_distance: Euclidean distance between two RGB colors
    rgb_to_hsl / hsl_to_rgb: Bidirectional HSL conversion
    rgb_to_hsl_array / hsl_to_rgb_array: Vectorised HSL conversion
    hex_to_rgb / rgb_to_hex: Hex string parsing and formatting
    luminance: Perceived luminance of an RGB color
"""

import math
import re
from colorsys import hls_to_rgb, rgb_to_hls
from typing import Sequence

import numpy as np

from POD_Libs.ImageEditingLib.image_models import HslColor, RgbColor

_HEX_PATTERN = re.compile(r"^#?([a-f\d]{2})([a-f\d]{2})([a-f\d]{2})$", re.IGNORECASE)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def rgb_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """Euclidean distance in RGB space (0 to ~441.67). Extra channels are ignored."""
    dr = a[0] - b[0]
    dg = a[1] - b[1]
    db = a[2] - b[2]
    return math.sqrt(dr * dr + dg * dg + db * db)


def rgb_to_hsl(r: float, g: float, b: float) -> HslColor:
    """
    Convert 0-255 RGB channels to HSL.

    Returns:
        (hue 0-360, saturation 0-100, lightness 0-100). Achromatic colors
        have hue 0 and saturation 0. When channels tie for the maximum the
        hue is computed from the first of R, G, B.
    """
    h, l, s = rgb_to_hls(r / 255.0, g / 255.0, b / 255.0)
    return h * 360.0, s * 100.0, l * 100.0


def hsl_to_rgb(h: float, s: float, l: float) -> RgbColor:
    """Convert HSL (0-360, 0-100, 0-100) to rounded 0-255 RGB channels."""
    r, g, b = hls_to_rgb(h / 360.0, l / 100.0, s / 100.0)
    return _round_half_up(r * 255), _round_half_up(g * 255), _round_half_up(b * 255)


def rgb_to_hsl_array(rgb: np.ndarray) -> np.ndarray:
    """
    Vectorised rgb_to_hsl.

    Args:
        rgb: Array of shape (..., 3) with 0-255 channel values

    Returns:
        Float64 array of shape (..., 3) holding (h, s, l)
    """
    rgb = np.asarray(rgb, dtype=np.float64) / 255.0
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    mx = rgb.max(axis=-1)
    mn = rgb.min(axis=-1)
    l = (mx + mn) / 2.0
    d = mx - mn
    chromatic = d > 0

    with np.errstate(divide="ignore", invalid="ignore"):
        s = np.where(l > 0.5, d / (2.0 - mx - mn), d / (mx + mn))
        h_r = (g - b) / d + np.where(g < b, 6.0, 0.0)
        h_g = (b - r) / d + 2.0
        h_b = (r - g) / d + 4.0
        h = np.where(mx == r, h_r, np.where(mx == g, h_g, h_b)) / 6.0

    h = np.where(chromatic, h, 0.0)
    s = np.where(chromatic, s, 0.0)
    return np.stack([h * 360.0, s * 100.0, l * 100.0], axis=-1)


def _hue_to_channel_array(p: np.ndarray, q: np.ndarray, t: np.ndarray) -> np.ndarray:
    # Same wrapping and term order as colorsys so rounding agrees with the scalar path
    t = np.mod(t, 1.0)
    return np.where(
        t < 1.0 / 6.0,
        p + (q - p) * t * 6.0,
        np.where(t < 0.5, q, np.where(t < 2.0 / 3.0, p + (q - p) * (2.0 / 3.0 - t) * 6.0, p)),
    )


def hsl_to_rgb_array(hsl: np.ndarray) -> np.ndarray:
    """
    Vectorised hsl_to_rgb.

    Args:
        hsl: Array of shape (..., 3) holding (h 0-360, s 0-100, l 0-100)

    Returns:
        Int array of shape (..., 3) with rounded 0-255 channels
    """
    hsl = np.asarray(hsl, dtype=np.float64)
    h = hsl[..., 0] / 360.0
    s = hsl[..., 1] / 100.0
    l = hsl[..., 2] / 100.0

    q = np.where(l <= 0.5, l * (1.0 + s), l + s - (l * s))
    p = 2 * l - q
    r = _hue_to_channel_array(p, q, h + 1 / 3)
    g = _hue_to_channel_array(p, q, h)
    b = _hue_to_channel_array(p, q, h - 1 / 3)

    achromatic = s == 0
    r = np.where(achromatic, l, r)
    g = np.where(achromatic, l, g)
    b = np.where(achromatic, l, b)

    rgb = np.stack([r, g, b], axis=-1) * 255.0
    return np.floor(rgb + 0.5).astype(np.int64)


def hex_to_rgb(hex_color: str) -> RgbColor:
    """Parse '#rrggbb' (hash optional, any case). Invalid input yields black."""
    match = _HEX_PATTERN.match(hex_color.strip()) if isinstance(hex_color, str) else None
    if not match:
        return 0, 0, 0
    return int(match.group(1), 16), int(match.group(2), 16), int(match.group(3), 16)


def rgb_to_hex(color: Sequence[int]) -> str:
    return "#{:02x}{:02x}{:02x}".format(*(max(0, min(255, int(c))) for c in color[:3]))


def luminance(color: Sequence[float]) -> float:
    """Perceived luminance (0-255) with Rec. 601 weights."""
    return 0.299 * color[0] + 0.587 * color[1] + 0.114 * color[2]
