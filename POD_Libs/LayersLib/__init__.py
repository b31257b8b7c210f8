"""
LayersLib - Layer models and rendering

Text and image layers, the session asset cache, and the renderer that
composites layers over a processed design.
"""

from POD_Libs.LayersLib.layers import (
    ImageLayer,
    Layer,
    LayerStack,
    TextLayer,
    hit_test,
    layer_from_dict,
)
from POD_Libs.LayersLib.assets import AssetCache, load_asset_from_path
from POD_Libs.LayersLib.renderer import LayerRenderer, curved_glyph_placements, render_layers

__all__ = [
    "ImageLayer",
    "Layer",
    "LayerStack",
    "TextLayer",
    "hit_test",
    "layer_from_dict",
    "AssetCache",
    "load_asset_from_path",
    "LayerRenderer",
    "curved_glyph_placements",
    "render_layers",
]
