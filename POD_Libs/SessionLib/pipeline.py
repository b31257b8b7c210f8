"""
Render pipeline.

Composes the pure raster stages into a finished design:

    segmentation/recolor -> manual mask merge -> filters -> layers

and builds on-fabric previews with optional print-area guides. Each stage
takes a raster and returns a new one; nothing is shared between calls.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, List, Optional

import numpy as np
from PIL import Image

from POD_Libs.constants import RASTER_MODE
from POD_Libs.ImageEditingLib.color_utils import hex_to_rgb
from POD_Libs.ImageEditingLib.export import draw_safe_area_guides, get_preset
from POD_Libs.ImageEditingLib.filters import apply_filters
from POD_Libs.ImageEditingLib.masks import apply_manual_mask
from POD_Libs.ImageEditingLib.segmentation import segment_and_recolor
from POD_Libs.LayersLib.assets import AssetCache
from POD_Libs.LayersLib.renderer import LayerRenderer
from POD_Libs.SessionLib.state import EditorState

logger = logging.getLogger(__name__)


@dataclass
class RenderResult:
    """
    A rendered design.

    Attributes:
        image: Composited RGBA design (transparent where removed)
        warnings: Non-fatal problems, e.g. image layers skipped because
                  their asset failed to load
    """
    image: Any
    warnings: List[str] = field(default_factory=list)


def render_design(
    source: Any,
    state: EditorState,
    manual_mask: Optional[Any],
    assets: AssetCache,
    rng: Optional[np.random.Generator] = None,
) -> RenderResult:
    """
    Run every stage of the pipeline for one state.

    Args:
        source: Pristine source raster
        state: Parameters to render
        manual_mask: "L" retouch mask, or None for no retouching
        assets: Session asset cache used by image layers
        rng: Random generator for the noise filter

    Returns:
        RenderResult
    """
    started = time.perf_counter()

    processed = segment_and_recolor(source, state.segmentation_settings())
    if manual_mask is not None:
        processed = apply_manual_mask(processed, manual_mask)
    filtered = apply_filters(processed, state.filters, rng=rng)
    composed, warnings = LayerRenderer(assets).render(filtered, state.layers)

    logger.debug(
        "Rendered %dx%d design with %d layers in %.1f ms",
        composed.width, composed.height, len(state.layers), (time.perf_counter() - started) * 1000,
    )
    return RenderResult(image=composed, warnings=warnings)


def render_preview(design: Any, state: EditorState) -> Any:
    """
    Place a rendered design on the fabric color for display.

    Guides are drawn only when state.show_guides is set and are never
    part of exported pixels.
    """
    design = design.convert(RASTER_MODE)
    fabric = Image.new(RASTER_MODE, design.size, hex_to_rgb(state.fabric_color) + (255,))
    preview = Image.alpha_composite(fabric, design)
    if state.show_guides:
        preview = draw_safe_area_guides(preview, get_preset(state.print_preset))
    return preview
