"""
Layer Renderer.

Composites text and image layers onto a design in stack order. Positions
are percentages resolved against the canvas size at render time.

Text layers:
    Straight text is drawn centered on its anchor with Pillow's "mm"
    anchor; the stroke is drawn under the fill. Curved text places each
    character on a circular arc of radius 10000 / |curvature| that passes
    through the anchor, rotating every glyph to the arc tangent. Positive
    curvature arches upward, negative curvature bends downward with glyphs
    kept upright. Shadows are rendered per layer (per glyph for curved
    text) and never affect other layers.

    Placement differs from a layout that rotates about the anchor and
    translates each glyph out to the radius: there every glyph sits r pixels
    from the anchor. Here the whole arc is shifted by r along the vertical
    axis (down for positive curvature, up for negative) so the middle glyph
    lands on the anchor itself. Positions ported from such a layout must be
    offset by r.

Image layers:
    Resolved through the session AssetCache, scaled to ``scale`` percent
    of the canvas width (aspect preserved), rotated clockwise about their
    center and centered on the anchor. A layer whose asset fails to load is
    skipped and reported as a warning.
"""

import logging
import math
from functools import lru_cache
from typing import Any, Iterable, List, Tuple

from PIL import Image, ImageColor, ImageDraw, ImageFilter, ImageFont, ImageOps

from POD_Libs.constants import (
    CURVE_CHAR_WIDTH_FACTOR,
    CURVE_RADIUS_NUMERATOR,
    LETTER_SPACING_DIVISOR,
    RASTER_MODE,
)
from POD_Libs.errors import AssetLoadError
from POD_Libs.LayersLib.assets import AssetCache
from POD_Libs.LayersLib.layers import ImageLayer, Layer, TextLayer

logger = logging.getLogger(__name__)


@lru_cache(maxsize=64)
def load_font(family: str, size: int) -> Any:
    """Load a TrueType font, falling back to Pillow's built-in font at the same size."""
    try:
        return ImageFont.truetype(family, size)
    except OSError:
        logger.debug("Font %s not found, using default font", family)
        return ImageFont.load_default(size=size)


def parse_color(value: str) -> Tuple[int, int, int, int]:
    return ImageColor.getcolor(value, RASTER_MODE)


def composite_centered(canvas: Any, tile: Any, center_x: float, center_y: float) -> None:
    """Alpha-composite tile onto canvas in place, centered on a point and clipped to the canvas."""
    x0 = int(round(center_x - tile.width / 2))
    y0 = int(round(center_y - tile.height / 2))
    left = max(0, x0)
    top = max(0, y0)
    right = min(canvas.width, x0 + tile.width)
    bottom = min(canvas.height, y0 + tile.height)
    if right <= left or bottom <= top:
        return
    piece = tile.crop((left - x0, top - y0, right - x0, bottom - y0))
    canvas.alpha_composite(piece, dest=(left, top))


def curved_glyph_placements(layer: TextLayer, anchor: Tuple[float, float]) -> List[Tuple[str, float, float, float]]:
    """
    Compute (char, x, y, rotation_degrees) for each character of curved text.

    Rotation is clockwise in degrees. The middle of the arc passes through
    the anchor, so each glyph is r pixels closer to it vertically than in a
    rotate-then-translate-out layout.
    """
    if layer.curvature == 0:
        raise ValueError("Curved placement requires non-zero curvature")

    radius = CURVE_RADIUS_NUMERATOR / abs(layer.curvature)
    step = (layer.size * CURVE_CHAR_WIDTH_FACTOR) / radius
    spacing = layer.letter_spacing / LETTER_SPACING_DIVISOR
    count = len(layer.text)
    total = count * step + (count - 1) * spacing
    anchor_x, anchor_y = anchor

    placements = []
    for index, char in enumerate(layer.text):
        theta = -total / 2 + step / 2 + index * (step + spacing)
        x = anchor_x + radius * math.sin(theta)
        if layer.curvature > 0:
            y = anchor_y + radius - radius * math.cos(theta)
            rotation = theta
        else:
            y = anchor_y - radius + radius * math.cos(theta)
            rotation = -theta
        placements.append((char, x, y, math.degrees(rotation)))
    return placements


class LayerRenderer:
    """Renders a layer sequence with a session's asset cache."""

    def __init__(self, assets: AssetCache) -> None:
        self.assets = assets

    def render(self, base: Any, layers: Iterable[Layer]) -> Tuple[Any, List[str]]:
        """
        Composite layers over base.

        Args:
            base: Design raster (converted to RGBA)
            layers: Layers in render order

        Returns:
            (new RGBA image, list of warnings for skipped layers)
        """
        if not hasattr(base, "convert"):
            raise TypeError(f"Expected PIL Image for base, got {type(base)}")

        canvas = base.convert(RASTER_MODE).copy()
        warnings: List[str] = []
        for layer in layers:
            if isinstance(layer, TextLayer):
                self._render_text_layer(canvas, layer)
            elif isinstance(layer, ImageLayer):
                try:
                    self._render_image_layer(canvas, layer)
                except AssetLoadError as e:
                    logger.warning("Skipping image layer %s: %s", layer.id, e)
                    warnings.append(f"Image layer {layer.id} skipped: {e}")
            else:
                raise TypeError(f"Unsupported layer kind: {type(layer)}")
        return canvas, warnings

    # ========================================================================
    # Image layers
    # ========================================================================

    def _render_image_layer(self, canvas: Any, layer: ImageLayer) -> None:
        asset = self.assets.get(layer.source)
        width = canvas.width * layer.scale / 100.0
        if width <= 0 or asset.width == 0 or asset.height == 0:
            return
        height = width * asset.height / asset.width
        size = (max(1, int(round(width))), max(1, int(round(height))))

        tile = asset if asset.size == size else asset.resize(size, Image.Resampling.LANCZOS)
        if layer.rotation % 360:
            tile = tile.rotate(-layer.rotation, resample=Image.Resampling.BICUBIC, expand=True)

        center = (layer.x / 100.0 * canvas.width, layer.y / 100.0 * canvas.height)
        composite_centered(canvas, tile, *center)

    # ========================================================================
    # Text layers
    # ========================================================================

    def _render_text_layer(self, canvas: Any, layer: TextLayer) -> None:
        if not layer.text:
            return
        font = load_font(layer.font_family, max(1, int(round(layer.size))))
        anchor = (layer.x / 100.0 * canvas.width, layer.y / 100.0 * canvas.height)

        if layer.curvature == 0:
            glyph = self._rasterize_text(layer.text, font, layer)
            self._draw_glyph(canvas, glyph, anchor, layer)
            return

        for char, x, y, degrees in curved_glyph_placements(layer, anchor):
            if char.isspace():
                continue
            glyph = self._rasterize_text(char, font, layer)
            if degrees:
                glyph = glyph.rotate(-degrees, resample=Image.Resampling.BICUBIC, expand=True)
            self._draw_glyph(canvas, glyph, (x, y), layer)

    @staticmethod
    def _rasterize_text(text: str, font: Any, layer: TextLayer) -> Any:
        """Render text onto a transparent tile whose center is the text anchor."""
        stroke_width = max(0, int(round(layer.stroke_width)))
        measure = ImageDraw.Draw(Image.new(RASTER_MODE, (1, 1)))
        left, top, right, bottom = measure.textbbox(
            (0, 0), text, font=font, anchor="mm", stroke_width=stroke_width
        )
        half_w = int(math.ceil(max(-left, right))) + 1
        half_h = int(math.ceil(max(-top, bottom))) + 1

        tile = Image.new(RASTER_MODE, (2 * half_w, 2 * half_h), (0, 0, 0, 0))
        ImageDraw.Draw(tile).text(
            (half_w, half_h),
            text,
            font=font,
            fill=parse_color(layer.color),
            anchor="mm",
            stroke_width=stroke_width,
            stroke_fill=parse_color(layer.stroke_color) if stroke_width else None,
        )
        return tile

    @staticmethod
    def _shadow_enabled(layer: TextLayer) -> bool:
        if parse_color(layer.shadow_color)[3] == 0:
            return False
        return layer.shadow_blur > 0 or layer.shadow_offset_x != 0 or layer.shadow_offset_y != 0

    @staticmethod
    def _shadow_tile(glyph: Any, layer: TextLayer) -> Any:
        red, green, blue, opacity = parse_color(layer.shadow_color)
        alpha = glyph.getchannel("A")
        if opacity < 255:
            alpha = alpha.point(lambda value: value * opacity // 255)

        # Blur radius is half the blur amount; pad so the falloff is not clipped
        pad = int(math.ceil(layer.shadow_blur * 1.5)) + 1 if layer.shadow_blur > 0 else 0
        if pad:
            alpha = ImageOps.expand(alpha, border=pad, fill=0)

        shadow = Image.new(RASTER_MODE, alpha.size, (red, green, blue, 0))
        shadow.putalpha(alpha)
        if layer.shadow_blur > 0:
            shadow = shadow.filter(ImageFilter.GaussianBlur(layer.shadow_blur / 2))
        return shadow

    def _draw_glyph(self, canvas: Any, glyph: Any, center: Tuple[float, float], layer: TextLayer) -> None:
        x, y = center
        if self._shadow_enabled(layer):
            shadow = self._shadow_tile(glyph, layer)
            composite_centered(canvas, shadow, x + layer.shadow_offset_x, y + layer.shadow_offset_y)
        composite_centered(canvas, glyph, x, y)


def render_layers(base: Any, layers: Iterable[Layer], assets: AssetCache) -> Tuple[Any, List[str]]:
    """Convenience wrapper around LayerRenderer.render."""
    return LayerRenderer(assets).render(base, layers)
