"""
Tests for whole-frame preview and export rendering.

Tests cover:
- Display size fitting
- Preview frames: base image, paint order, idempotence
- Full-resolution export with rescaled lenses
"""

import numpy as np
import pytest

from Magnifier.lenses import LensDescriptor, LensStack
from Magnifier.lens_renderer import LensRenderer
from Magnifier.raster import Raster, PixelSampler
from Magnifier.scene import fit_display_size, render_frame, render_export


@pytest.fixture
def source():
    y, x = np.mgrid[:400, :600]
    array = np.zeros((400, 600, 4), dtype=np.uint8)
    array[:, :, 0] = (x * 255) // 599
    array[:, :, 1] = (y * 255) // 399
    array[:, :, 2] = ((x // 20 + y // 20) % 2) * 200
    array[:, :, 3] = 255
    return Raster(array)


class TestFitDisplaySize:
    """Tests for fitting an image into the preview viewport."""

    def test_landscape_downscale(self):
        assert fit_display_size(1800, 1200) == (900, 600)

    def test_wide_image_limited_by_width(self):
        assert fit_display_size(3000, 1000) == (900, 300)

    def test_tall_image_limited_by_height(self):
        assert fit_display_size(1000, 2000) == (300, 600)

    def test_small_image_not_enlarged(self):
        assert fit_display_size(400, 300) == (400, 300)

    def test_custom_viewport(self):
        assert fit_display_size(1920, 1080, 640, 480) == (640, 360)

    def test_rejects_empty(self):
        with pytest.raises(ValueError):
            fit_display_size(0, 100)


class TestRenderFrame:
    """Tests for preview frame rendering."""

    def test_no_lenses_is_resampled_base(self, source):
        frame = render_frame(source, [], 300, 200)

        assert frame.shape == (200, 300, 4)
        np.testing.assert_array_equal(frame, PixelSampler.resample(source, 300, 200))

    def test_lens_changes_frame(self, source):
        lenses = [LensDescriptor("a", 150, 100, 40, 2)]
        plain = render_frame(source, [], 300, 200)
        frame = render_frame(source, lenses, 300, 200)

        assert not np.array_equal(plain, frame)
        np.testing.assert_array_equal(plain[5, 5], frame[5, 5])

    def test_idempotent(self, source):
        """Same lenses, same raster, same size: byte-identical output."""
        lenses = LensStack([
            LensDescriptor("a", 100, 80, 45, 2.5),
            LensDescriptor("b", 180, 120, 60, 1.3),
        ])

        first = render_frame(source, lenses, 300, 200, selected_id="b")
        second = render_frame(source, lenses, 300, 200, selected_id="b")

        assert first.tobytes() == second.tobytes()

    def test_later_lenses_paint_over_earlier(self, source):
        """The top lens fully hides an earlier lens underneath it."""
        small = LensDescriptor("small", 150, 100, 20, 4)
        large = LensDescriptor("large", 150, 100, 80, 1.5)

        stacked = render_frame(source, [small, large], 300, 200)
        alone = render_frame(source, [large], 300, 200)
        reversed_order = render_frame(source, [large, small], 300, 200)

        # Off center, where the two zooms sample different source points
        np.testing.assert_array_equal(stacked[100, 160], alone[100, 160])
        assert not np.array_equal(reversed_order[100, 160], alone[100, 160])

    def test_selection_only_affects_selected_lens(self, source):
        lenses = [LensDescriptor("a", 80, 100, 40, 2), LensDescriptor("b", 220, 100, 40, 2)]

        plain = render_frame(source, lenses, 300, 200)
        selected = render_frame(source, lenses, 300, 200, selected_id="b")

        np.testing.assert_array_equal(plain[100, 80 - 40], selected[100, 80 - 40])
        assert not np.array_equal(plain[100, 220 + 40], selected[100, 220 + 40])

    def test_source_not_mutated(self, source):
        before = source.tobytes()
        render_frame(source, [LensDescriptor("a", 150, 100, 40, 2)], 300, 200)

        assert source.tobytes() == before


class TestRenderExport:
    """Tests for full-resolution export."""

    def test_no_lenses_returns_source(self, source):
        result = render_export(source, [], 300, 200)

        assert isinstance(result, Raster)
        assert result.size == source.size
        assert result.tobytes() == source.tobytes()

    def test_lenses_are_rescaled(self, source):
        """Export equals drawing the lens mapped to source resolution."""
        lens = LensDescriptor("a", 150, 100, 40, 2)
        renderer = LensRenderer()

        result = render_export(source, [lens], 300, 200, renderer=renderer)

        expected = source.to_array()
        renderer.draw(expected, source, LensDescriptor("a", 300, 200, 80, 2))
        np.testing.assert_array_equal(result.pixels, expected)

    def test_export_never_draws_selection(self, source):
        lens = LensDescriptor("a", 150, 100, 40, 2)
        renderer = LensRenderer()

        result = render_export(source, [lens], 300, 200, renderer=renderer)

        selected = source.to_array()
        renderer.draw(selected, source, lens.scaled(2.0, 2.0), selected=True)
        assert not np.array_equal(result.pixels, selected)

    def test_anisotropic_radius_uses_smaller_scale(self, source):
        lens = LensDescriptor("a", 100, 100, 30, 1)
        scaled = lens.scaled(600 / 200, 400 / 200)

        assert scaled.radius == pytest.approx(60)
        assert scaled.x == pytest.approx(300)
        assert scaled.y == pytest.approx(200)
