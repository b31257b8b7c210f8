"""
Layer models for POD Studio.

A layer is either a TextLayer or an ImageLayer. Both carry a stable ``id``
and a position expressed as percentages of the canvas, so layers keep
their placement when the canvas is resized. ``Layer`` is a closed union:
every consumer dispatches with isinstance checks and raises on anything
else.

Classes:
    TextLayer: Text with stroke, shadow, curvature and letter spacing
    ImageLayer: Reference to an asset handle with scale and rotation
    LayerStack: Ordered collection of layers (render order = list order)

Functions:
    layer_from_dict: Rebuild a layer from its serialised form
    hit_test: Find the top-most layer under a canvas pixel
"""

import uuid
from dataclasses import asdict, dataclass, field, fields
from typing import Any, ClassVar, Dict, Iterator, List, Optional, Tuple, Union

from POD_Libs.constants import (
    DEFAULT_FONT_FAMILY,
    DEFAULT_IMAGE_LAYER_SCALE,
    DEFAULT_SHADOW_COLOR,
    DEFAULT_SHADOW_OFFSET,
    DEFAULT_STROKE_COLOR,
    DEFAULT_TEXT_COLOR,
    DEFAULT_TEXT_SIZE,
    FIELD_LAYER_ID,
    FIELD_LAYER_TYPE,
    LAYER_TYPE_IMAGE,
    LAYER_TYPE_TEXT,
)


def _new_layer_id() -> str:
    return uuid.uuid4().hex


@dataclass
class TextLayer:
    """
    A text layer.

    Attributes:
        text: Content to draw
        font_family: TrueType font file name or path
        color: Fill color as hex
        size: Font size in pixels
        x, y: Anchor position as a percentage of canvas width/height
        stroke_color, stroke_width: Outline drawn under the fill
        shadow_color, shadow_blur, shadow_offset_x, shadow_offset_y: Drop shadow
        curvature: -100..100; 0 draws a straight baseline
        letter_spacing: Extra spacing between characters on curved text
        id: Stable identity, independent of stack position
    """
    LAYER_TYPE: ClassVar[str] = LAYER_TYPE_TEXT

    text: str = ""
    font_family: str = DEFAULT_FONT_FAMILY
    color: str = DEFAULT_TEXT_COLOR
    size: float = DEFAULT_TEXT_SIZE
    x: float = 50.0
    y: float = 50.0
    stroke_color: str = DEFAULT_STROKE_COLOR
    stroke_width: float = 0.0
    shadow_color: str = DEFAULT_SHADOW_COLOR
    shadow_blur: float = 0.0
    shadow_offset_x: float = DEFAULT_SHADOW_OFFSET
    shadow_offset_y: float = DEFAULT_SHADOW_OFFSET
    curvature: float = 0.0
    letter_spacing: float = 0.0
    id: str = field(default_factory=_new_layer_id)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data[FIELD_LAYER_TYPE] = self.LAYER_TYPE
        return data


@dataclass
class ImageLayer:
    """
    An image layer.

    Attributes:
        source: Asset handle resolved through the session's asset cache
        x, y: Center position as a percentage of canvas width/height
        scale: Drawn width as a percentage of canvas width
        rotation: Clockwise rotation in degrees about the center
        id: Stable identity, independent of stack position
    """
    LAYER_TYPE: ClassVar[str] = LAYER_TYPE_IMAGE

    source: str = ""
    x: float = 50.0
    y: float = 50.0
    scale: float = DEFAULT_IMAGE_LAYER_SCALE
    rotation: float = 0.0
    id: str = field(default_factory=_new_layer_id)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data[FIELD_LAYER_TYPE] = self.LAYER_TYPE
        return data


Layer = Union[TextLayer, ImageLayer]

_LAYER_CLASSES = {TextLayer.LAYER_TYPE: TextLayer, ImageLayer.LAYER_TYPE: ImageLayer}


def layer_from_dict(data: Dict[str, Any]) -> Layer:
    """
    Rebuild a layer from a dictionary produced by ``to_dict``.

    Raises:
        ValueError: If the type discriminant is missing or unknown
    """
    layer_type = data.get(FIELD_LAYER_TYPE)
    layer_class = _LAYER_CLASSES.get(layer_type)
    if layer_class is None:
        raise ValueError(f"Unknown layer type: {layer_type!r}")
    values = {k: v for k, v in data.items() if k in layer_class.__dataclass_fields__}
    return layer_class(**values)


def layer_size(layer: Layer, canvas_size: Tuple[int, int]) -> Tuple[float, float]:
    """Approximate (half-width, half-height) extent used for hit-testing."""
    width, _ = canvas_size
    if isinstance(layer, TextLayer):
        return len(layer.text) * layer.size * 0.5, float(layer.size)
    if isinstance(layer, ImageLayer):
        half = width * layer.scale / 100.0 / 2.0
        return half, half
    raise TypeError(f"Unsupported layer kind: {type(layer)}")


def hit_test(layers: "LayerStack | List[Layer]", x: float, y: float, canvas_size: Tuple[int, int]) -> Optional[Layer]:
    """
    Return the top-most layer under canvas pixel (x, y), or None.

    Args:
        layers: Layers in render order
        x, y: Canvas pixel coordinates
        canvas_size: (width, height) of the canvas
    """
    width, height = canvas_size
    for layer in reversed(list(layers)):
        anchor_x = layer.x / 100.0 * width
        anchor_y = layer.y / 100.0 * height
        half_w, half_h = layer_size(layer, canvas_size)
        if abs(x - anchor_x) < half_w and abs(y - anchor_y) < half_h:
            return layer
    return None


class LayerStack:
    """
    Ordered layer collection addressed by stable layer id.

    Iteration yields layers in render order (first = bottom).
    """

    def __init__(self, layers: Optional[List[Layer]] = None) -> None:
        self._layers: List[Layer] = list(layers or [])

    def __iter__(self) -> Iterator[Layer]:
        return iter(self._layers)

    def __len__(self) -> int:
        return len(self._layers)

    def __getitem__(self, index: int) -> Layer:
        return self._layers[index]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, LayerStack):
            return self._layers == other._layers
        return NotImplemented

    def __repr__(self) -> str:
        return f"LayerStack({self._layers!r})"

    def index_of(self, layer_id: str) -> int:
        for index, layer in enumerate(self._layers):
            if layer.id == layer_id:
                return index
        raise KeyError(f"No layer with id {layer_id!r}")

    def get(self, layer_id: str) -> Layer:
        return self._layers[self.index_of(layer_id)]

    def add(self, layer: Layer) -> Layer:
        if not isinstance(layer, (TextLayer, ImageLayer)):
            raise TypeError(f"Expected TextLayer or ImageLayer, got {type(layer)}")
        if any(existing.id == layer.id for existing in self._layers):
            raise ValueError(f"Duplicate layer id: {layer.id}")
        self._layers.append(layer)
        return layer

    def update(self, layer_id: str, **changes: Any) -> Layer:
        """
        Edit layer parameters in place.

        Raises:
            KeyError: If no layer has layer_id
            ValueError: If a change names an unknown field or the id
        """
        layer = self.get(layer_id)
        allowed = {f.name for f in fields(layer)} - {FIELD_LAYER_ID}
        unknown = set(changes) - allowed
        if unknown:
            raise ValueError(f"Unknown {layer.LAYER_TYPE} layer fields: {sorted(unknown)}")
        for name, value in changes.items():
            setattr(layer, name, value)
        return layer

    def remove(self, layer_id: str) -> Layer:
        return self._layers.pop(self.index_of(layer_id))

    def move(self, layer_id: str, new_index: int) -> None:
        layer = self._layers.pop(self.index_of(layer_id))
        new_index = max(0, min(len(self._layers), new_index))
        self._layers.insert(new_index, layer)

    def to_list(self) -> List[Dict[str, Any]]:
        return [layer.to_dict() for layer in self._layers]

    @classmethod
    def from_list(cls, data: List[Dict[str, Any]]) -> "LayerStack":
        return cls([layer_from_dict(item) for item in data])
