"""
Tests for the layer renderer and asset cache.

Tests cover:
- Image layer placement, scaling and rotation
- Skipping layers whose asset fails to load
- Straight and curved text rendering
- Curved glyph placement geometry
- Asset cache loading and caching
"""

import unittest
from unittest.mock import Mock

import numpy as np
import pytest
from PIL import Image

from POD_Libs.errors import AssetLoadError
from POD_Libs.LayersLib.assets import AssetCache, load_asset_from_path
from POD_Libs.LayersLib.layers import ImageLayer, TextLayer
from POD_Libs.LayersLib.renderer import LayerRenderer, curved_glyph_placements, render_layers


def _blank(size=(100, 100)):
    return Image.new("RGBA", size, (0, 0, 0, 0))


class TestImageLayers(unittest.TestCase):
    """Test image layer compositing."""

    def setUp(self):
        self.assets = AssetCache()
        self.assets.register("red", Image.new("RGBA", (10, 10), (255, 0, 0, 255)))
        self.assets.register("wide", Image.new("RGBA", (20, 10), (0, 0, 255, 255)))

    def test_no_layers_returns_copy(self):
        base = Image.new("RGBA", (20, 20), (1, 2, 3, 255))
        result, warnings = render_layers(base, [], self.assets)
        self.assertIsNot(result, base)
        self.assertEqual(warnings, [])
        self.assertTrue(np.array_equal(np.array(result), np.array(base)))

    def test_scaled_and_centered(self):
        layer = ImageLayer(source="red", x=50, y=50, scale=50)
        result, _ = render_layers(_blank(), [layer], self.assets)

        r, _, _, a = result.getpixel((50, 50))
        self.assertGreaterEqual(a, 250)
        self.assertGreaterEqual(r, 250)
        self.assertEqual(result.getpixel((10, 10))[3], 0)
        self.assertEqual(result.getpixel((80, 50))[3], 0)

    def test_full_canvas_layer_is_exact(self):
        asset = Image.new("RGBA", (100, 100), (0, 0, 0, 0))
        asset.paste((9, 99, 199, 255), (0, 0, 50, 100))
        self.assets.register("half", asset)
        layer = ImageLayer(source="half", x=50, y=50, scale=100)

        result, _ = render_layers(_blank(), [layer], self.assets)

        self.assertTrue(np.array_equal(np.array(result), np.array(asset)))

    def test_rotation_about_center(self):
        # 40x20 after scaling, 20x40 after a quarter turn
        layer = ImageLayer(source="wide", x=50, y=50, scale=40, rotation=90)
        result, _ = render_layers(_blank(), [layer], self.assets)

        self.assertEqual(result.getpixel((50, 35))[3], 255)
        self.assertEqual(result.getpixel((35, 50))[3], 0)

    def test_layer_partly_off_canvas(self):
        layer = ImageLayer(source="red", x=0, y=0, scale=40)
        result, _ = render_layers(_blank(), [layer], self.assets)
        self.assertGreaterEqual(result.getpixel((5, 5))[3], 250)
        self.assertEqual(result.getpixel((30, 30))[3], 0)

    def test_later_layers_draw_on_top(self):
        layers = [ImageLayer(source="red", scale=100), ImageLayer(source="wide", scale=100)]
        result, _ = render_layers(_blank(), layers, self.assets)
        r, _, b, a = result.getpixel((50, 50))
        self.assertLessEqual(r, 5)
        self.assertGreaterEqual(b, 250)
        self.assertGreaterEqual(a, 250)

    def test_failed_asset_skipped_with_warning(self):
        loader = Mock(side_effect=FileNotFoundError("gone.png"))
        assets = AssetCache(loader)
        assets.register("red", Image.new("RGBA", (10, 10), (255, 0, 0, 255)))
        layers = [ImageLayer(source="gone.png", id="broken"), ImageLayer(source="red", scale=100)]

        result, warnings = render_layers(_blank(), layers, assets)

        self.assertEqual(len(warnings), 1)
        self.assertIn("broken", warnings[0])
        self.assertGreaterEqual(result.getpixel((50, 50))[0], 250)

    def test_rejects_non_image_base(self):
        with self.assertRaises(TypeError):
            LayerRenderer(self.assets).render(None, [])

    def test_rejects_unknown_layer_kind(self):
        with self.assertRaises(TypeError):
            render_layers(_blank(), [object()], self.assets)


class TestTextLayers:
    """Test text rendering."""

    @pytest.fixture
    def renderer(self):
        return LayerRenderer(AssetCache())

    def test_straight_text_drawn_near_anchor(self, renderer):
        layer = TextLayer(text="HI", size=40, color="#ff0000", shadow_offset_x=0, shadow_offset_y=0)
        result, warnings = renderer.render(_blank((200, 100)), [layer])

        alpha = np.array(result)[..., 3]
        ys, xs = np.nonzero(alpha)
        assert warnings == []
        assert len(xs) > 0
        assert abs(xs.mean() - 100) < 15
        assert abs(ys.mean() - 50) < 15
        red = np.array(result)[alpha == 255]
        assert np.all(red[:, 0] == 255)

    def test_empty_text_draws_nothing(self, renderer):
        result, _ = renderer.render(_blank(), [TextLayer(text="")])
        assert result.getbbox() is None

    def test_stroke_widens_text(self, renderer):
        plain = TextLayer(text="I", size=40, shadow_offset_x=0, shadow_offset_y=0)
        stroked = TextLayer(text="I", size=40, stroke_width=4, shadow_offset_x=0, shadow_offset_y=0)
        plain_result, _ = renderer.render(_blank(), [plain])
        stroked_result, _ = renderer.render(_blank(), [stroked])
        assert np.count_nonzero(np.array(stroked_result)[..., 3]) > np.count_nonzero(np.array(plain_result)[..., 3])

    def test_shadow_offset_drawn(self, renderer):
        layer = TextLayer(text="H", size=40, color="#ff0000", shadow_color="#0000ff",
                          shadow_offset_x=12, shadow_offset_y=12)
        result, _ = renderer.render(_blank(), [layer])
        pixels = np.array(result)
        shadow_only = (pixels[..., 2] == 255) & (pixels[..., 0] == 0) & (pixels[..., 3] == 255)
        assert shadow_only.any()

    def test_transparent_shadow_disabled(self, renderer):
        layer = TextLayer(text="H", size=40, color="#ff0000", shadow_color="#0000ff00",
                          shadow_offset_x=12, shadow_offset_y=12)
        result, _ = renderer.render(_blank(), [layer])
        assert not np.any(np.array(result)[..., 2] > 0)

    def test_curved_text_drawn(self, renderer):
        layer = TextLayer(text="CURVE", size=30, curvature=60, shadow_offset_x=0, shadow_offset_y=0)
        result, _ = renderer.render(_blank((200, 200)), [layer])
        assert result.getbbox() is not None


class TestCurvedPlacement:
    """Test glyph positions along the arc."""

    def test_positive_curvature_arches(self):
        layer = TextLayer(text="ABC", size=40, curvature=50)
        placements = curved_glyph_placements(layer, (100, 100))

        (_, x0, y0, r0), (_, x1, y1, r1), (_, x2, y2, r2) = placements
        assert (x1, y1, r1) == pytest.approx((100, 100, 0))
        assert x0 < 100 < x2
        assert x2 - 100 == pytest.approx(100 - x0)
        assert y0 > 100 and y2 > 100
        assert r0 < 0 < r2

    def test_negative_curvature_smiles_upright(self):
        layer = TextLayer(text="ABC", size=40, curvature=-50)
        (_, x0, y0, r0), (_, x1, y1, r1), (_, x2, y2, r2) = curved_glyph_placements(layer, (100, 100))

        assert (x1, y1) == pytest.approx((100, 100))
        assert x0 < 100 < x2
        assert y0 < 100 and y2 < 100
        assert r0 > 0 > r2

    def test_arc_is_offset_by_radius_from_anchor(self):
        # Radius 200: the arc circle is centered r from the anchor, so each
        # glyph sits r pixels off a translate-out-from-anchor layout
        anchor = (100, 100)
        for curvature, center_y in ((50, 300), (-50, -100)):
            layer = TextLayer(text="HELLO", size=40, curvature=curvature)
            for _, x, y, rotation in curved_glyph_placements(layer, anchor):
                assert np.hypot(x - 100, y - center_y) == pytest.approx(200)
                theta = np.radians(rotation if curvature > 0 else -rotation)
                unshifted_y = 100 - 200 * np.cos(theta) if curvature > 0 else 100 + 200 * np.cos(theta)
                assert abs(y - unshifted_y) == pytest.approx(200)

    def test_letter_spacing_widens_arc(self):
        tight = curved_glyph_placements(TextLayer(text="ABCD", size=40, curvature=40), (0, 0))
        loose = curved_glyph_placements(TextLayer(text="ABCD", size=40, curvature=40, letter_spacing=30), (0, 0))
        assert loose[-1][1] - loose[0][1] > tight[-1][1] - tight[0][1]

    def test_step_follows_radius(self):
        # Radius 200, step = 20 / 200 rad between neighbours
        layer = TextLayer(text="AB", size=40, curvature=50)
        (_, _, _, first), (_, _, _, second) = curved_glyph_placements(layer, (0, 0))
        assert np.radians(second - first) == pytest.approx(0.1)

    def test_zero_curvature_rejected(self):
        with pytest.raises(ValueError):
            curved_glyph_placements(TextLayer(text="A"), (0, 0))


class TestAssetCache(unittest.TestCase):
    """Test lazy loading and caching."""

    def test_loads_once(self):
        loader = Mock(return_value=Image.new("RGB", (4, 4), (1, 2, 3)))
        cache = AssetCache(loader)

        first = cache.get("a")
        second = cache.get("a")

        self.assertIs(first, second)
        self.assertEqual(first.mode, "RGBA")
        loader.assert_called_once_with("a")
        self.assertIn("a", cache)

    def test_failure_not_cached(self):
        loader = Mock(side_effect=[OSError("boom"), Image.new("RGBA", (2, 2))])
        cache = AssetCache(loader)

        with self.assertRaises(AssetLoadError) as ctx:
            cache.get("flaky")
        self.assertEqual(ctx.exception.handle, "flaky")
        self.assertIsNotNone(cache.get("flaky"))

    def test_non_image_result(self):
        cache = AssetCache(Mock(return_value=b"bytes"))
        with self.assertRaises(AssetLoadError):
            cache.get("x")

    def test_clear(self):
        cache = AssetCache()
        cache.register("x", Image.new("RGBA", (2, 2)))
        cache.clear()
        self.assertEqual(len(cache), 0)

    def test_path_loader(self):
        with self.assertRaises(AssetLoadError):
            load_asset_from_path("/nonexistent/asset.png")
