"""
Editor session.

EditorSession is the explicit context object of one editing session. It
owns the pristine source raster, the manual and generative masks, the
asset cache, the undo history and the current EditorState, and it runs
the generative-fill workflow:

    1. Paint the generative mask.
    2. Cut the painted region out of the current design (the "hole").
    3. Send the hole and an instruction to the fill capability.
    4. Stencil the returned image with the same mask to get a patch.
    5. Append the patch as a full-canvas image layer.
    6. Clear the generative mask.

Nothing is committed unless step 3 succeeds, and only the latest fill
request may commit; an older request that returns late raises
SupersededRequestError.

Example:
    >>> session = EditorSession("design.png")
    >>> session.update_state(remove_tolerance=25)
    >>> session.paint_generative([(120, 80), (160, 90)])
    >>> layer = session.generative_fill("a golden crown", chain.fill_region)
    >>> final = session.render().image
"""

import copy
import logging
import threading
import uuid
from pathlib import Path
from typing import Any, Callable, Optional, Sequence, Tuple, Union

import numpy as np

from POD_Libs.constants import (
    FIELD_LAYER_ID,
    MASK_EMPTY,
    MASK_KEEP,
)
from POD_Libs.errors import InvalidRasterError, InvalidResponseError, SupersededRequestError
from POD_Libs.ImageEditingLib.export import encode_png, export_design, get_preset
from POD_Libs.ImageEditingLib.image_models import DesignRecord, RasterSource, load_raster, new_mask
from POD_Libs.ImageEditingLib.masks import (
    cut_hole,
    mask_is_empty,
    paint_stroke,
    stencil_patch,
)
from POD_Libs.ImageEditingLib.print_preflight import (
    PreFlightResult,
    analyze_print_quality,
    auto_optimize_contrast,
)
from POD_Libs.ImageEditingLib.segmentation import detect_background_color
from POD_Libs.LayersLib.assets import AssetCache, AssetLoader
from POD_Libs.LayersLib.layers import ImageLayer, Layer, TextLayer, hit_test
from POD_Libs.ServicesLib.generation import GenerationResult, build_fill_instruction
from POD_Libs.SessionLib.history import History
from POD_Libs.SessionLib.pipeline import RenderResult, render_design, render_preview
from POD_Libs.SessionLib.state import EditorState

logger = logging.getLogger(__name__)

FillFunction = Callable[[bytes, str], Union[bytes, GenerationResult]]
Point = Tuple[float, float]

# Changes that only affect previews and are not recorded in history
_VIEW_ONLY_FIELDS = {"show_guides"}


class EditorSession:
    """
    One editing session over a single source design.

    Args:
        source: Path, encoded bytes or PIL Image of the design
        asset_loader: Loader for image-layer handles (defaults to file paths)
        state: Initial parameters; defaults to EditorState()
        detect_background: Seed the removal targets from the corner colors
                           when the initial state has none
        seed: Seed for the noise filter so renders are repeatable

    Raises:
        InvalidRasterError: If the source cannot be decoded
    """

    def __init__(
        self,
        source: RasterSource,
        asset_loader: Optional[AssetLoader] = None,
        state: Optional[EditorState] = None,
        detect_background: bool = True,
        seed: Optional[int] = 0,
    ) -> None:
        self.design = DesignRecord(
            original=load_raster(source),
            source_path=Path(source) if isinstance(source, (str, Path)) else None,
        )
        self.assets = AssetCache(asset_loader)
        self.manual_mask = new_mask(self.size, MASK_KEEP)
        self.generative_mask = new_mask(self.size, MASK_EMPTY)
        self.seed = seed
        self._lock = threading.RLock()
        self._fill_token = 0
        self._closed = False

        self.state = copy.deepcopy(state) if state is not None else EditorState()
        if detect_background and not self.state.remove_colors:
            background = detect_background_color(self.design.original)
            if background is not None:
                logger.info("Detected background color %s", background)
                self.state.remove_colors = [background]
        self.history = History(self.state)
        logger.info("Editor session started for %dx%d design", *self.size)

    @property
    def size(self) -> Tuple[int, int]:
        return self.design.size

    @property
    def source(self) -> Any:
        return self.design.original

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("Editor session is closed")

    # ========================================================================
    # State and history
    # ========================================================================

    def update_state(self, **changes: Any) -> EditorState:
        """
        Apply parameter changes and record them in history.

        Raises:
            ValueError: If a change names an unknown EditorState field
        """
        self._check_open()
        unknown = set(changes) - set(EditorState.__dataclass_fields__)
        if unknown:
            raise ValueError(f"Unknown editor state fields: {sorted(unknown)}")
        with self._lock:
            for name, value in changes.items():
                setattr(self.state, name, value)
            if set(changes) - _VIEW_ONLY_FIELDS:
                self.history.push(self.state)
            return self.state

    def _commit(self) -> None:
        """Record in-place edits of the current state."""
        self.history.push(self.state)

    def undo(self) -> bool:
        with self._lock:
            previous = self.history.undo()
            if previous is None:
                return False
            self.state = previous
            return True

    def redo(self) -> bool:
        with self._lock:
            following = self.history.redo()
            if following is None:
                return False
            self.state = following
            return True

    def reset(self) -> None:
        """
        Return to the oldest snapshot kept in history and clear both masks.

        That snapshot holds the initial parameters unless more than
        HISTORY_CAP edits have pushed it out of history.
        """
        with self._lock:
            self.state = self.history.reset()
            self.manual_mask = new_mask(self.size, MASK_KEEP)
            self.generative_mask = new_mask(self.size, MASK_EMPTY)

    # ========================================================================
    # Color picking
    # ========================================================================

    def _pixel_rgb(self, x: int, y: int) -> Tuple[int, int, int]:
        width, height = self.size
        if not (0 <= x < width and 0 <= y < height):
            raise ValueError(f"Pixel ({x}, {y}) outside {width}x{height} design")
        r, g, b, _ = self.source.getpixel((int(x), int(y)))
        return r, g, b

    def pick_remove_color(self, x: int, y: int) -> Tuple[int, int, int]:
        """Add the source color at (x, y) to the removal targets."""
        color = self._pixel_rgb(x, y)
        if color not in self.state.remove_colors:
            self.update_state(remove_colors=self.state.remove_colors + [color])
        return color

    def pick_edit_color(self, x: int, y: int) -> Tuple[int, int, int]:
        """Select the source color at (x, y) for recoloring, resetting the shifts."""
        color = self._pixel_rgb(x, y)
        self.update_state(edit_color=color, hue_shift=0.0, sat_shift=0.0)
        return color

    # ========================================================================
    # Masks
    # ========================================================================

    def paint_manual(self, points: Sequence[Point], erase: bool = True, brush_size: Optional[float] = None) -> None:
        """Erase (paint 0) or restore (paint 255) the manual mask along a stroke."""
        self._check_open()
        size = brush_size if brush_size is not None else self.state.brush_size
        with self._lock:
            self.manual_mask = paint_stroke(self.manual_mask, points, size, MASK_EMPTY if erase else MASK_KEEP)

    def paint_generative(self, points: Sequence[Point], brush_size: Optional[float] = None) -> None:
        """Select a region for generative fill."""
        self._check_open()
        size = brush_size if brush_size is not None else self.state.brush_size
        with self._lock:
            self.generative_mask = paint_stroke(self.generative_mask, points, size, MASK_KEEP)

    def clear_generative_mask(self) -> None:
        with self._lock:
            self.generative_mask = new_mask(self.size, MASK_EMPTY)

    def clear_manual_mask(self) -> None:
        with self._lock:
            self.manual_mask = new_mask(self.size, MASK_KEEP)

    # ========================================================================
    # Layers
    # ========================================================================

    def add_text_layer(self, text: str, **params: Any) -> TextLayer:
        layer = TextLayer(text=text, **params)
        with self._lock:
            self.state.layers.add(layer)
            self._commit()
        return layer

    def add_image_layer(self, source: str, image: Optional[Any] = None, **params: Any) -> ImageLayer:
        """
        Add an image layer referencing source.

        When image is given it is registered in the asset cache under
        source; otherwise source is resolved lazily at render time.
        """
        if image is not None:
            self.assets.register(source, image)
        layer = ImageLayer(source=source, **params)
        with self._lock:
            self.state.layers.add(layer)
            self._commit()
        return layer

    def update_layer(self, layer_id: str, **changes: Any) -> Layer:
        if FIELD_LAYER_ID in changes:
            raise ValueError("Layer id cannot be changed")
        with self._lock:
            layer = self.state.layers.update(layer_id, **changes)
            self._commit()
            return layer

    def remove_layer(self, layer_id: str) -> Layer:
        with self._lock:
            layer = self.state.layers.remove(layer_id)
            self._commit()
            return layer

    def move_layer(self, layer_id: str, new_index: int) -> None:
        with self._lock:
            self.state.layers.move(layer_id, new_index)
            self._commit()

    def layer_at(self, x: float, y: float) -> Optional[Layer]:
        return hit_test(self.state.layers, x, y, self.size)

    # ========================================================================
    # Rendering
    # ========================================================================

    def render_state(self, state: EditorState) -> RenderResult:
        """Render an arbitrary state against this session's source, masks and assets."""
        self._check_open()
        with self._lock:
            manual_mask = self.manual_mask
        rng = np.random.default_rng(self.seed) if self.seed is not None else None
        result = render_design(self.source, state, manual_mask, self.assets, rng=rng)
        for warning in result.warnings:
            logger.debug("Render warning: %s", warning)
        return result

    def render(self) -> RenderResult:
        with self._lock:
            state = copy.deepcopy(self.state)
        result = self.render_state(state)
        self.design.rendered = result.image
        return result

    def preview(self, result: Optional[RenderResult] = None) -> Any:
        """Render the design on the fabric color, with guides if enabled."""
        result = result if result is not None else self.render()
        return render_preview(result.image, self.state)

    def preflight(self, fabric_color: Optional[str] = None) -> PreFlightResult:
        design = self.render().image
        return analyze_print_quality(design, fabric_color or self.state.fabric_color)

    def contrast_optimized(self, fabric_color: Optional[str] = None) -> Any:
        """Rendered design with colors close to the fabric pushed away from it."""
        design = self.render().image
        return auto_optimize_contrast(design, fabric_color or self.state.fabric_color)

    def export(self, multiplier: float = 1.0, preset_name: Optional[str] = None) -> Any:
        design = self.render().image
        preset = get_preset(preset_name) if preset_name is not None else None
        return export_design(design, multiplier=multiplier, preset=preset)

    # ========================================================================
    # Generative fill
    # ========================================================================

    def generative_fill(self, instruction: str, fill: FillFunction) -> ImageLayer:
        """
        Regenerate the painted region and commit it as a new image layer.

        Args:
            instruction: What to put in the painted region
            fill: Capability called as fill(hole_png_bytes, instruction_text),
                  returning image bytes or a GenerationResult

        Returns:
            The appended ImageLayer

        Raises:
            ValueError: If the generative mask is empty
            GenerationError: If the fill capability fails (nothing is changed)
            InvalidResponseError: If the returned bytes are not an image
            SupersededRequestError: If a newer fill request was started meanwhile
        """
        self._check_open()
        with self._lock:
            if mask_is_empty(self.generative_mask):
                raise ValueError("Generative mask is empty; paint a region to fill first")
            self._fill_token += 1
            token = self._fill_token
            mask = self.generative_mask.copy()

        design = self.render().image
        hole = cut_hole(design, mask)
        logger.info("Generative fill request %d started", token)

        response = fill(encode_png(hole), build_fill_instruction(instruction))
        if isinstance(response, GenerationResult):
            response = response.image_bytes
        try:
            filled = load_raster(response)
        except InvalidRasterError as e:
            raise InvalidResponseError(f"Fill result is not a readable image: {e}") from e

        with self._lock:
            if token != self._fill_token:
                logger.debug("Discarding fill request %d, superseded by %d", token, self._fill_token)
                raise SupersededRequestError(f"Fill request {token} was superseded by request {self._fill_token}")

            patch = stencil_patch(filled, mask)
            handle = f"generated-fill-{uuid.uuid4().hex}"
            self.assets.register(handle, patch)
            layer = ImageLayer(source=handle, x=50.0, y=50.0, scale=100.0, rotation=0.0)
            self.state.layers.add(layer)
            self._commit()
            self.generative_mask = new_mask(self.size, MASK_EMPTY)

        logger.info("Generative fill request %d committed as layer %s", token, layer.id)
        return layer

    # ========================================================================
    # Lifecycle
    # ========================================================================

    def close(self) -> None:
        """Discard session resources. The session cannot be used afterwards."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self.assets.clear()
        logger.info("Editor session closed")

    def __enter__(self) -> "EditorSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
