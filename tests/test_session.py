"""
Tests for EditorSession: state history, color picking, layers,
generative fill and export.
"""

import io
import unittest
from unittest.mock import Mock

import pytest
from PIL import Image

from POD_Libs.errors import (
    InvalidRasterError,
    InvalidResponseError,
    NetworkFailureError,
    SupersededRequestError,
)
from POD_Libs.ImageEditingLib.masks import mask_is_empty
from POD_Libs.ImageEditingLib.print_preflight import PreFlightResult
from POD_Libs.LayersLib.layers import ImageLayer, TextLayer
from POD_Libs.ServicesLib.generation import GenerationResult
from POD_Libs.SessionLib.session import EditorSession
from POD_Libs.SessionLib.state import EditorState


def _framed_design():
    image = Image.new("RGBA", (40, 40), (255, 255, 255, 255))
    image.paste((200, 0, 0, 255), (10, 10, 30, 30))
    return image


class TestSessionState(unittest.TestCase):
    """Test parameter edits, history and picking."""

    def setUp(self):
        self.session = EditorSession(_framed_design(), detect_background=False)

    def tearDown(self):
        self.session.close()

    def test_background_detected(self):
        session = EditorSession(_framed_design())
        self.assertEqual(session.state.remove_colors, [(255, 255, 255)])
        self.assertFalse(session.history.can_undo())

    def test_explicit_targets_not_replaced(self):
        session = EditorSession(_framed_design(), state=EditorState(remove_colors=[(1, 2, 3)]))
        self.assertEqual(session.state.remove_colors, [(1, 2, 3)])

    def test_unreadable_source(self):
        with self.assertRaises(InvalidRasterError):
            EditorSession(b"definitely not a png")

    def test_update_and_undo(self):
        self.session.update_state(remove_tolerance=55)
        self.assertEqual(self.session.state.remove_tolerance, 55)

        self.assertTrue(self.session.undo())
        self.assertEqual(self.session.state.remove_tolerance, 30)
        self.assertFalse(self.session.undo())

        self.assertTrue(self.session.redo())
        self.assertEqual(self.session.state.remove_tolerance, 55)

    def test_view_only_change_not_recorded(self):
        self.session.update_state(show_guides=False)
        self.assertFalse(self.session.state.show_guides)
        self.assertFalse(self.session.history.can_undo())

    def test_unknown_field(self):
        with self.assertRaises(ValueError):
            self.session.update_state(sparkle=True)

    def test_pick_remove_color(self):
        color = self.session.pick_remove_color(15, 15)
        self.assertEqual(color, (200, 0, 0))
        self.assertEqual(self.session.state.remove_colors, [(200, 0, 0)])

        # Picking the same color again changes nothing
        self.session.pick_remove_color(20, 20)
        self.assertEqual(len(self.session.history), 2)

        self.session.undo()
        self.assertEqual(self.session.state.remove_colors, [])

    def test_pick_reads_source_not_render(self):
        self.session.update_state(remove_colors=[(255, 255, 255)])
        self.assertEqual(self.session.pick_edit_color(0, 0), (255, 255, 255))

    def test_pick_edit_color_resets_shifts(self):
        self.session.update_state(hue_shift=120, sat_shift=20)
        self.session.pick_edit_color(12, 12)
        self.assertEqual(self.session.state.edit_color, (200, 0, 0))
        self.assertEqual(self.session.state.hue_shift, 0)
        self.assertEqual(self.session.state.sat_shift, 0)

    def test_pick_out_of_bounds(self):
        with self.assertRaises(ValueError):
            self.session.pick_remove_color(40, 0)

    def test_reset(self):
        self.session.update_state(remove_tolerance=10)
        self.session.paint_manual([(5, 5)], brush_size=4)
        self.session.reset()
        self.assertEqual(self.session.state.remove_tolerance, 30)
        self.assertEqual(self.session.manual_mask.getextrema(), (255, 255))

    def test_reset_after_history_overflow(self):
        # 25 edits overflow the 20-entry history, evicting the initial state
        for tolerance in range(1, 26):
            self.session.update_state(remove_tolerance=tolerance)
        self.session.reset()
        self.assertEqual(self.session.state.remove_tolerance, 6)
        self.assertFalse(self.session.history.can_undo())


class TestSessionLayers(unittest.TestCase):
    """Test layer edits through the session."""

    def setUp(self):
        self.session = EditorSession(_framed_design(), detect_background=False)

    def test_text_layer_round(self):
        layer = self.session.add_text_layer("Hello", size=20)
        self.assertIsInstance(layer, TextLayer)
        self.session.update_layer(layer.id, color="#00ff00")
        self.assertEqual(self.session.state.layers.get(layer.id).color, "#00ff00")

        self.session.undo()
        self.assertEqual(self.session.state.layers.get(layer.id).color, "#ffffff")

    def test_layer_id_immutable(self):
        layer = self.session.add_text_layer("Hi")
        with self.assertRaises(ValueError):
            self.session.update_layer(layer.id, id="other")

    def test_image_layer_with_registered_image(self):
        layer = self.session.add_image_layer("stamp", Image.new("RGBA", (8, 8), (0, 0, 255, 255)), scale=100)
        result = self.session.render()
        self.assertEqual(result.warnings, [])
        self.assertGreaterEqual(result.image.getpixel((20, 20))[2], 250)
        self.assertIs(self.session.layer_at(20, 20), layer)

    def test_remove_and_move(self):
        first = self.session.add_text_layer("A")
        second = self.session.add_text_layer("B")
        self.session.move_layer(second.id, 0)
        self.assertEqual([layer.id for layer in self.session.state.layers], [second.id, first.id])
        self.session.remove_layer(first.id)
        self.assertEqual(len(self.session.state.layers), 1)


class TestRenderingAndExport:
    """Test render, preview, preflight and export entry points."""

    @pytest.fixture
    def session(self):
        session = EditorSession(_framed_design())
        yield session
        session.close()

    def test_render_removes_background(self, session):
        result = session.render()
        assert result.image.getpixel((2, 2))[3] == 0
        assert result.image.getpixel((20, 20)) == (200, 0, 0, 255)
        assert session.design.rendered is result.image

    def test_preview_shows_fabric(self, session):
        session.update_state(show_guides=False, fabric_color="#000000")
        preview = session.preview()
        assert preview.getpixel((2, 2)) == (0, 0, 0, 255)

    def test_preflight(self, session):
        report = session.preflight("#ffffff")
        assert isinstance(report, PreFlightResult)
        assert not report.low_contrast

    def test_contrast_optimized_uses_fabric(self, session):
        lifted = session.contrast_optimized("#be0000")
        assert lifted.getpixel((20, 20)) == (250, 50, 50, 255)
        assert lifted.getpixel((2, 2))[3] == 0

        session.update_state(fabric_color="#ffffff")
        assert session.contrast_optimized().getpixel((20, 20)) == (200, 0, 0, 255)

    def test_export_preset(self, session):
        assert session.export(preset_name="pocket").size == (1200, 1200)

    def test_export_multiplier(self, session):
        assert session.export(multiplier=2).size == (80, 80)

    def test_unknown_preset(self, session):
        with pytest.raises(ValueError):
            session.export(preset_name="poster")

    def test_source_path_recorded(self, tmp_path):
        path = tmp_path / "design.png"
        _framed_design().save(path)

        from_path = EditorSession(str(path))
        from_bytes = EditorSession(path.read_bytes())
        assert from_path.design.source_path == path
        assert from_bytes.design.source_path is None
        from_path.close()
        from_bytes.close()

    def test_closed_session(self, session):
        session.add_image_layer("stamp", Image.new("RGBA", (2, 2)))
        session.close()
        assert len(session.assets) == 0
        with pytest.raises(RuntimeError):
            session.render()
        with pytest.raises(RuntimeError):
            session.update_state(remove_tolerance=1)


class TestGenerativeFill:
    """Test the cut-hole, fill, stencil and commit workflow."""

    @pytest.fixture
    def session(self):
        return EditorSession(Image.new("RGBA", (64, 64), (0, 255, 0, 255)), detect_background=False)

    @pytest.fixture
    def blue_png(self, png_bytes):
        return png_bytes((64, 64), (0, 0, 255, 255))

    def test_fill_commits_layer(self, session, blue_png):
        session.paint_generative([(32, 32)], brush_size=20)
        fill = Mock(return_value=blue_png)

        layer = session.generative_fill("  a blue disc ", fill)

        hole_bytes, instruction = fill.call_args[0]
        hole = Image.open(io.BytesIO(hole_bytes))
        assert hole.getpixel((32, 32))[3] == 0
        assert hole.getpixel((0, 0)) == (0, 255, 0, 255)
        assert instruction.startswith("Fill the transparent/missing area with: a blue disc.")

        assert isinstance(layer, ImageLayer)
        assert (layer.x, layer.y, layer.scale, layer.rotation) == (50, 50, 100, 0)
        assert layer.source in session.assets
        assert mask_is_empty(session.generative_mask)
        assert session.history.can_undo()

        image = session.render().image
        assert image.getpixel((32, 32)) == (0, 0, 255, 255)
        assert image.getpixel((0, 0)) == (0, 255, 0, 255)

    def test_generation_result_accepted(self, session, blue_png):
        session.paint_generative([(10, 10)], brush_size=6)
        layer = session.generative_fill("x", Mock(return_value=GenerationResult(blue_png, "mock")))
        assert session.state.layers.get(layer.id) == layer

    def test_empty_mask_rejected(self, session):
        fill = Mock()
        with pytest.raises(ValueError):
            session.generative_fill("anything", fill)
        fill.assert_not_called()

    def test_failure_changes_nothing(self, session):
        session.paint_generative([(32, 32)], brush_size=10)
        fill = Mock(side_effect=NetworkFailureError("offline", "mock"))

        with pytest.raises(NetworkFailureError):
            session.generative_fill("crown", fill)

        assert len(session.state.layers) == 0
        assert not mask_is_empty(session.generative_mask)
        assert not session.history.can_undo()

    def test_unreadable_result(self, session):
        session.paint_generative([(32, 32)], brush_size=10)
        with pytest.raises(InvalidResponseError):
            session.generative_fill("crown", Mock(return_value=b"<html>error</html>"))
        assert len(session.state.layers) == 0

    def test_stale_request_discarded(self, session, blue_png):
        session.paint_generative([(32, 32)], brush_size=10)

        def slow_fill(hole, instruction):
            # A newer request starts and finishes while this one is in flight
            session.generative_fill("newer", Mock(return_value=blue_png))
            return blue_png

        with pytest.raises(SupersededRequestError):
            session.generative_fill("older", slow_fill)

        assert len(session.state.layers) == 1
