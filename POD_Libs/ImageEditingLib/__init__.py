"""
ImageEditingLib - Raster operations for POD Studio

This module provides the pure raster stages of the editor: color
utilities, background segmentation and recolor, the filter pipeline,
mask compositing, pattern tiling, print pre-flight and export sizing.
"""

from POD_Libs.ImageEditingLib.image_models import (
    DesignRecord,
    HslColor,
    RgbColor,
    RgbaColor,
    load_raster,
    new_mask,
)
from POD_Libs.ImageEditingLib.color_utils import (
    hex_to_rgb,
    hsl_to_rgb,
    luminance,
    rgb_distance,
    rgb_to_hex,
    rgb_to_hsl,
)
from POD_Libs.ImageEditingLib.segmentation import (
    SegmentationSettings,
    detect_background_color,
    segment_and_recolor,
)
from POD_Libs.ImageEditingLib.filters import FilterSettings, apply_filters
from POD_Libs.ImageEditingLib.masks import (
    apply_manual_mask,
    cut_hole,
    mask_is_empty,
    paint_stroke,
    stencil_patch,
)
from POD_Libs.ImageEditingLib.pattern_tiler import (
    PatternSpec,
    PatternType,
    compute_tile_layout,
    render_pattern,
)
from POD_Libs.ImageEditingLib.print_preflight import (
    PreFlightResult,
    SpotColor,
    analyze_print_quality,
    auto_optimize_contrast,
    get_spot_colors,
)
from POD_Libs.ImageEditingLib.export import (
    PRINT_PRESETS,
    PrintPreset,
    draw_safe_area_guides,
    export_design,
    export_pattern,
    preset_pixel_size,
)

__all__ = [
    "DesignRecord",
    "HslColor",
    "RgbColor",
    "RgbaColor",
    "load_raster",
    "new_mask",
    "hex_to_rgb",
    "hsl_to_rgb",
    "luminance",
    "rgb_distance",
    "rgb_to_hex",
    "rgb_to_hsl",
    "SegmentationSettings",
    "detect_background_color",
    "segment_and_recolor",
    "FilterSettings",
    "apply_filters",
    "apply_manual_mask",
    "cut_hole",
    "mask_is_empty",
    "paint_stroke",
    "stencil_patch",
    "PatternSpec",
    "PatternType",
    "compute_tile_layout",
    "render_pattern",
    "PreFlightResult",
    "SpotColor",
    "analyze_print_quality",
    "auto_optimize_contrast",
    "get_spot_colors",
    "PRINT_PRESETS",
    "PrintPreset",
    "draw_safe_area_guides",
    "export_design",
    "export_pattern",
    "preset_pixel_size",
]
