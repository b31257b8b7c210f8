"""
Tests for the pattern tiler.

Tests cover:
- Tile geometry for grid, brick and half-drop layouts
- Known tile centers on a small canvas
- Coverage of rendered patterns with and without rotation
- Preview/export geometry consistency
"""

import unittest

import numpy as np
import pytest
from PIL import Image

from POD_Libs.ImageEditingLib.pattern_tiler import (
    PatternSpec,
    PatternType,
    compute_tile_layout,
    render_pattern,
)


def _indices(value, size):
    return value / size


class TestTileLayout(unittest.TestCase):
    """Test tile geometry."""

    def test_grid_centers_on_small_canvas(self):
        layout = compute_tile_layout((10, 10), (100, 100), PatternSpec(PatternType.GRID, density=50))

        self.assertEqual(layout.tile_width, 50)
        self.assertEqual(layout.tile_height, 50)
        visible = {c for c in layout.centers() if 0 <= c[0] < 100 and 0 <= c[1] < 100}
        self.assertEqual(visible, {(25.0, 25.0), (75.0, 25.0), (25.0, 75.0), (75.0, 75.0)})

    def test_grid_positions_on_tile_multiples(self):
        layout = compute_tile_layout((20, 10), (200, 100), PatternSpec(PatternType.GRID, density=25))
        for x, y in layout.positions:
            self.assertAlmostEqual(_indices(x, layout.tile_width), round(_indices(x, layout.tile_width)))
            self.assertAlmostEqual(_indices(y, layout.tile_height), round(_indices(y, layout.tile_height)))

    def test_brick_offsets_odd_rows(self):
        layout = compute_tile_layout((20, 10), (200, 100), PatternSpec(PatternType.BRICK, density=25))
        tile_w, tile_h = layout.tile_width, layout.tile_height
        odd_rows = 0
        for x, y in layout.positions:
            row = round(y / tile_h)
            self.assertAlmostEqual(y, row * tile_h)
            offset = x - round((x - (tile_w / 2 if row % 2 else 0)) / tile_w) * tile_w
            if row % 2:
                odd_rows += 1
                self.assertAlmostEqual(offset, tile_w / 2)
            else:
                self.assertAlmostEqual(offset, 0)
        self.assertGreater(odd_rows, 0)

    def test_half_drop_offsets_odd_columns(self):
        layout = compute_tile_layout((20, 10), (200, 100), PatternSpec(PatternType.HALF_DROP, density=25))
        tile_w, tile_h = layout.tile_width, layout.tile_height
        odd_columns = 0
        for x, y in layout.positions:
            col = round(x / tile_w)
            self.assertAlmostEqual(x, col * tile_w)
            offset = y - round((y - (tile_h / 2 if col % 2 else 0)) / tile_h) * tile_h
            if col % 2:
                odd_columns += 1
                self.assertAlmostEqual(offset, tile_h / 2)
            else:
                self.assertAlmostEqual(offset, 0)
        self.assertGreater(odd_columns, 0)

    def test_tile_height_keeps_design_aspect(self):
        layout = compute_tile_layout((40, 10), (100, 100), PatternSpec(density=40))
        self.assertEqual(layout.tile_width, 40)
        self.assertEqual(layout.tile_height, 10)

    def test_field_covers_rotated_canvas(self):
        width, height = 120, 80
        layout = compute_tile_layout((10, 10), (width, height), PatternSpec(density=10, rotation=45))
        reach = layout.diagonal / 2
        xs = [x for x, _ in layout.positions]
        ys = [y for _, y in layout.positions]
        self.assertLessEqual(min(xs), width / 2 - reach)
        self.assertGreaterEqual(max(xs) + layout.tile_width, width / 2 + reach)
        self.assertLessEqual(min(ys), height / 2 - reach)
        self.assertGreaterEqual(max(ys) + layout.tile_height, height / 2 + reach)

    def test_preview_and_export_geometry_scale_together(self):
        spec = PatternSpec(PatternType.BRICK, density=20, rotation=15)
        preview = compute_tile_layout((30, 20), (100, 100), spec)
        export = compute_tile_layout((30, 20), (1000, 1000), spec)
        self.assertEqual(len(preview.positions), len(export.positions))
        np.testing.assert_allclose(np.array(export.positions), np.array(preview.positions) * 10)

    def test_invalid_sizes(self):
        with self.assertRaises(ValueError):
            compute_tile_layout((0, 10), (100, 100), PatternSpec())
        with self.assertRaises(ValueError):
            compute_tile_layout((10, 10), (100, 0), PatternSpec())


class TestPatternSpec:
    """Test pattern parameters."""

    @pytest.mark.parametrize("density", [0, -5, 150])
    def test_density_domain(self, density):
        with pytest.raises(ValueError):
            PatternSpec(density=density)

    def test_type_from_string(self):
        assert PatternSpec(pattern_type="half_drop").pattern_type is PatternType.HALF_DROP

    def test_unknown_type(self):
        with pytest.raises(ValueError):
            PatternSpec(pattern_type="diamond")

    def test_round_trip(self):
        spec = PatternSpec(PatternType.BRICK, density=33, rotation=12)
        assert PatternSpec.from_dict(spec.to_dict()) == spec


class TestRenderPattern:
    """Test rendered output."""

    @pytest.fixture
    def red_design(self):
        return Image.new("RGBA", (10, 10), (255, 0, 0, 255))

    def test_output_size(self, red_design):
        result = render_pattern(red_design, (160, 90), PatternSpec(density=30))
        assert result.size == (160, 90)
        assert result.mode == "RGBA"

    @pytest.mark.parametrize("pattern_type", list(PatternType))
    def test_solid_design_covers_canvas(self, red_design, pattern_type):
        result = np.array(render_pattern(red_design, (100, 100), PatternSpec(pattern_type, density=50)))
        assert result[..., 3].min() >= 250
        assert result[..., 0].min() >= 250

    def test_rotated_pattern_has_no_gaps(self, red_design):
        result = np.array(render_pattern(red_design, (120, 80), PatternSpec(density=15, rotation=30)))
        assert result[..., 3].min() >= 250

    def test_tile_content_lands_on_grid(self):
        design = Image.new("RGBA", (10, 10), (0, 0, 0, 0))
        design.paste((0, 0, 255, 255), (0, 0, 5, 5))
        result = render_pattern(design, (100, 100), PatternSpec(density=50))
        # Each 50px tile has its opaque quarter in the top-left corner
        assert result.getpixel((10, 10))[3] >= 250
        assert result.getpixel((60, 60))[3] >= 250
        assert result.getpixel((40, 40))[3] == 0
        assert result.getpixel((90, 10))[3] == 0
