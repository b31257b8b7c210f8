"""
Tests for the mask compositor.

Tests cover:
- Manual mask merge never raising alpha
- Brush strokes on masks
- Hole cutting and patch stenciling for generative fill
- Size validation
"""

import unittest

import numpy as np
import pytest
from PIL import Image

from POD_Libs.ImageEditingLib.masks import (
    apply_manual_mask,
    clear_mask,
    cut_hole,
    mask_is_empty,
    new_generative_mask,
    new_manual_mask,
    paint_stroke,
    stencil_patch,
)


class TestManualMask(unittest.TestCase):
    """Test manual mask merge."""

    def setUp(self):
        rng = np.random.default_rng(5)
        self.image = Image.fromarray(rng.integers(0, 256, size=(32, 32, 4), dtype=np.uint8), mode="RGBA")
        self.mask = Image.fromarray(rng.integers(0, 256, size=(32, 32), dtype=np.uint8), mode="L")

    def test_final_alpha_never_exceeds_processed_alpha(self):
        result = np.array(apply_manual_mask(self.image, self.mask))
        processed = np.array(self.image)
        self.assertTrue(np.all(result[..., 3] <= processed[..., 3]))
        self.assertTrue(np.all(result[..., 3] <= np.array(self.mask)))

    def test_final_alpha_is_minimum(self):
        result = np.array(apply_manual_mask(self.image, self.mask))
        expected = np.minimum(np.array(self.image)[..., 3], np.array(self.mask))
        self.assertTrue(np.array_equal(result[..., 3], expected))

    def test_color_channels_unchanged(self):
        result = np.array(apply_manual_mask(self.image, self.mask))
        self.assertTrue(np.array_equal(result[..., :3], np.array(self.image)[..., :3]))

    def test_full_keep_mask_is_identity(self):
        result = apply_manual_mask(self.image, new_manual_mask((32, 32)))
        self.assertTrue(np.array_equal(np.array(result), np.array(self.image)))

    def test_size_mismatch(self):
        with self.assertRaises(ValueError):
            apply_manual_mask(self.image, new_manual_mask((10, 10)))


class TestPaintStroke:
    """Test brush strokes."""

    def test_dot_erases_center(self):
        mask = paint_stroke(new_manual_mask((100, 100)), [(50, 50)], 10, 0)
        assert mask.getpixel((50, 50)) == 0
        assert mask.getpixel((10, 10)) == 255

    def test_line_stroke_covers_path(self):
        mask = paint_stroke(new_generative_mask((100, 100)), [(10, 50), (90, 50)], 6, 255)
        assert mask.getpixel((50, 50)) == 255
        assert mask.getpixel((50, 40)) == 0

    def test_stroke_returns_new_mask(self):
        original = new_manual_mask((20, 20))
        painted = paint_stroke(original, [(10, 10)], 4, 0)
        assert original.getpixel((10, 10)) == 255
        assert painted is not original

    def test_restore_after_erase(self):
        mask = paint_stroke(new_manual_mask((40, 40)), [(20, 20)], 10, 0)
        mask = paint_stroke(mask, [(20, 20)], 10, 255)
        assert mask.getpixel((20, 20)) == 255

    def test_empty_stroke(self):
        mask = paint_stroke(new_generative_mask((20, 20)), [], 5, 255)
        assert mask_is_empty(mask)

    def test_invalid_brush(self):
        with pytest.raises(ValueError):
            paint_stroke(new_manual_mask((20, 20)), [(1, 1)], 0, 0)


class TestGenerativeMask:
    """Test hole cutting and stenciling."""

    @pytest.fixture
    def painted(self):
        return paint_stroke(new_generative_mask((64, 64)), [(32, 32)], 20, 255)

    def test_new_masks(self):
        assert mask_is_empty(new_generative_mask((8, 8)))
        assert not mask_is_empty(new_manual_mask((8, 8)))

    def test_clear_mask(self, painted):
        assert not mask_is_empty(painted)
        assert mask_is_empty(clear_mask(painted))

    def test_cut_hole(self, painted):
        design = Image.new("RGBA", (64, 64), (0, 255, 0, 255))
        hole = cut_hole(design, painted)
        assert hole.getpixel((32, 32))[3] == 0
        assert hole.getpixel((2, 2)) == (0, 255, 0, 255)

    def test_stencil_patch_keeps_inside_only(self, painted):
        filled = Image.new("RGBA", (64, 64), (0, 0, 255, 255))
        patch = stencil_patch(filled, painted)
        assert patch.getpixel((32, 32)) == (0, 0, 255, 255)
        assert patch.getpixel((2, 2))[3] == 0

    def test_stencil_patch_resizes_mismatched_result(self, painted):
        filled = Image.new("RGBA", (128, 128), (0, 0, 255, 255))
        patch = stencil_patch(filled, painted)
        assert patch.size == (64, 64)
        assert patch.getpixel((32, 32))[3] >= 250
        assert patch.getpixel((2, 2))[3] == 0

    def test_partial_mask_scales_alpha(self):
        mask = Image.new("L", (4, 4), 128)
        design = Image.new("RGBA", (4, 4), (9, 9, 9, 255))
        assert cut_hole(design, mask).getpixel((0, 0))[3] == 127
        assert stencil_patch(design, mask).getpixel((0, 0))[3] == 128
