"""
Editor parameter state.

EditorState bundles every user-editable parameter of a design session.
Snapshots of it are what the undo history stores.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from POD_Libs.constants import (
    DEFAULT_BRUSH_SIZE,
    DEFAULT_EDIT_TOLERANCE,
    DEFAULT_FABRIC_COLOR,
    DEFAULT_PRINT_PRESET,
    DEFAULT_REMOVE_TOLERANCE,
)
from POD_Libs.ImageEditingLib.filters import FilterSettings
from POD_Libs.ImageEditingLib.image_models import RgbColor
from POD_Libs.ImageEditingLib.segmentation import SegmentationSettings
from POD_Libs.LayersLib.layers import LayerStack


@dataclass
class EditorState:
    """
    All editable parameters of a design.

    Attributes:
        remove_colors: Ordered background removal targets
        remove_tolerance: RGB distance threshold for removal
        edit_color: Region color to recolor, if any
        edit_tolerance: RGB distance threshold for the edit region
        hue_shift: Hue rotation in degrees for the edit region
        sat_shift: Saturation offset for the edit region
        filters: Filter pipeline settings
        layers: Text and image layers in render order
        brush_size: Mask brush diameter in pixels
        fabric_color: Preview/fabric color as hex
        print_preset: Key into PRINT_PRESETS
        show_guides: Draw safe-area guides on previews
    """
    remove_colors: List[RgbColor] = field(default_factory=list)
    remove_tolerance: float = DEFAULT_REMOVE_TOLERANCE
    edit_color: Optional[RgbColor] = None
    edit_tolerance: float = DEFAULT_EDIT_TOLERANCE
    hue_shift: float = 0.0
    sat_shift: float = 0.0
    filters: FilterSettings = field(default_factory=FilterSettings)
    layers: LayerStack = field(default_factory=LayerStack)
    brush_size: float = DEFAULT_BRUSH_SIZE
    fabric_color: str = DEFAULT_FABRIC_COLOR
    print_preset: str = DEFAULT_PRINT_PRESET
    show_guides: bool = True

    def segmentation_settings(self) -> SegmentationSettings:
        return SegmentationSettings(
            remove_colors=list(self.remove_colors),
            remove_tolerance=self.remove_tolerance,
            edit_color=self.edit_color,
            edit_tolerance=self.edit_tolerance,
            hue_shift=self.hue_shift,
            sat_shift=self.sat_shift,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = self.segmentation_settings().to_dict()
        data.update({
            "filters": self.filters.to_dict(),
            "layers": self.layers.to_list(),
            "brush_size": self.brush_size,
            "fabric_color": self.fabric_color,
            "print_preset": self.print_preset,
            "show_guides": self.show_guides,
        })
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EditorState":
        segmentation = SegmentationSettings.from_dict(data)
        return cls(
            remove_colors=segmentation.remove_colors,
            remove_tolerance=segmentation.remove_tolerance,
            edit_color=segmentation.edit_color,
            edit_tolerance=segmentation.edit_tolerance,
            hue_shift=segmentation.hue_shift,
            sat_shift=segmentation.sat_shift,
            filters=FilterSettings.from_dict(data.get("filters", {})),
            layers=LayerStack.from_list(data.get("layers", [])),
            brush_size=data.get("brush_size", DEFAULT_BRUSH_SIZE),
            fabric_color=data.get("fabric_color", DEFAULT_FABRIC_COLOR),
            print_preset=data.get("print_preset", DEFAULT_PRINT_PRESET),
            show_guides=bool(data.get("show_guides", True)),
        )
