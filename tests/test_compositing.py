"""
Tests for compositing lens patches and rims onto a surface.

Tests cover:
- Circular clip and patch placement
- Border stroke, inset rim and drop shadow
- Selection accent and resize handle
- Lenses partially or fully off the surface
"""

import math

import numpy as np
import pytest

from Magnifier.config import GlassConfig
from Magnifier.lenses import LensDescriptor
from Magnifier.lens_renderer import LensRenderer
from Magnifier.overlay import draw_lens_rim
from Magnifier.raster import Raster

ACCENT = (59, 130, 246)


@pytest.fixture
def renderer():
    return LensRenderer()


@pytest.fixture
def gradient_raster():
    y, x = np.mgrid[:300, :300]
    array = np.zeros((300, 300, 4), dtype=np.uint8)
    array[:, :, 0] = x * 255 // 299
    array[:, :, 1] = y * 255 // 299
    array[:, :, 2] = 90
    array[:, :, 3] = 255
    return Raster(array)


def dark_surface(size: int = 300) -> np.ndarray:
    surface = np.zeros((size, size, 4), dtype=np.uint8)
    surface[:, :] = (10, 10, 10, 255)
    return surface


class TestPatchPlacement:
    """Tests for drawing the patch inside the circular clip."""

    def test_center_pixel_copied(self, renderer, gradient_raster):
        """Deep inside the lens the surface shows the patch verbatim."""
        surface = dark_surface()
        lens = LensDescriptor("a", 150, 150, 80, 2)

        patch = renderer.render(gradient_raster, lens, 300, 300)
        renderer.composite(surface, patch, lens)

        np.testing.assert_array_equal(surface[150, 150], patch.pixels[80, 80])

    def test_far_pixels_untouched(self, renderer, gradient_raster):
        surface = dark_surface()
        lens = LensDescriptor("a", 60, 60, 20, 2)

        renderer.draw(surface, gradient_raster, lens)

        assert tuple(surface[290, 290]) == (10, 10, 10, 255)
        assert tuple(surface[5, 290]) == (10, 10, 10, 255)

    def test_draw_matches_render_and_composite(self, renderer, gradient_raster):
        lens = LensDescriptor("a", 120.5, 140.25, 33.3, 1.7)
        first = dark_surface()
        second = dark_surface()

        renderer.draw(first, gradient_raster, lens)
        patch = renderer.render(gradient_raster, lens, 300, 300)
        renderer.composite(second, patch, lens)

        np.testing.assert_array_equal(first, second)

    def test_partially_off_surface(self, renderer, gradient_raster):
        """Lenses hanging over the border are clipped, not rejected."""
        surface = dark_surface(50)
        lens = LensDescriptor("a", 0, 0, 30, 2)

        renderer.draw(surface, gradient_raster, lens)

        assert not np.array_equal(surface[2, 2], [10, 10, 10, 255])

    def test_fully_off_surface(self, renderer, gradient_raster):
        surface = dark_surface(50)
        lens = LensDescriptor("a", -500, -500, 30, 2)

        renderer.draw(surface, gradient_raster, lens)

        assert np.all(surface == np.array([10, 10, 10, 255], dtype=np.uint8))


class TestRim:
    """Tests for the border stroke and selection feedback."""

    def test_unselected_border_is_light(self, renderer, gradient_raster):
        surface = dark_surface()
        lens = LensDescriptor("a", 150, 150, 80, 2)

        renderer.draw(surface, gradient_raster, lens, selected=False)

        top = surface[70, 150]
        assert top[0] > 100 and top[1] > 100 and top[2] > 100
        assert tuple(top[:3]) != ACCENT

    def test_selected_border_is_accent(self, renderer, gradient_raster):
        surface = dark_surface()
        lens = LensDescriptor("a", 150, 150, 80, 2)

        renderer.draw(surface, gradient_raster, lens, selected=True)

        assert tuple(surface[70, 150, :3]) == ACCENT

    def test_selected_draws_handle(self, renderer, gradient_raster):
        """A filled accent disc sits on the 45 degree boundary point."""
        surface = dark_surface()
        lens = LensDescriptor("a", 150, 150, 80, 2)

        renderer.draw(surface, gradient_raster, lens, selected=True)

        hx = int(150 + 80 * math.cos(math.pi / 4))
        hy = int(150 + 80 * math.sin(math.pi / 4))
        assert tuple(surface[hy, hx, :3]) == ACCENT

        # White outline 8 px out from the handle center, off the lens border
        assert tuple(surface[hy, hx + 8, :3]) == (255, 255, 255)

    def test_unselected_has_no_handle(self, renderer, gradient_raster):
        surface = dark_surface()
        lens = LensDescriptor("a", 150, 150, 80, 2)

        renderer.draw(surface, gradient_raster, lens, selected=False)

        hx = int(150 + 80 * math.cos(math.pi / 4))
        hy = int(150 + 80 * math.sin(math.pi / 4))
        assert tuple(surface[hy, hx, :3]) != ACCENT

    def test_shadow_darkens_below_lens(self):
        """The drop shadow falls below the rim, outside the circle."""
        surface = np.full((200, 200, 4), 200, dtype=np.uint8)
        surface[:, :, 3] = 255
        lens = LensDescriptor("a", 100, 100, 50, 1)

        draw_lens_rim(surface, lens, GlassConfig())

        below = surface[100 + 50 + 10, 100]
        above = surface[100 - 50 - 10, 100]
        assert below[0] < 200
        assert below[0] < above[0]

    def test_no_shadow_without_blur_far_away(self):
        surface = np.full((200, 200, 4), 200, dtype=np.uint8)
        lens = LensDescriptor("a", 100, 100, 30, 1)
        config = GlassConfig(shadow_blur=0.0, shadow_offset=(0.0, 0.0))

        draw_lens_rim(surface, lens, config)

        assert tuple(surface[100, 100]) == (200, 200, 200, 200)
        assert tuple(surface[100, 160]) == (200, 200, 200, 200)

    def test_transparent_surface_gains_alpha(self):
        """Strokes on an empty surface produce partially opaque pixels."""
        surface = np.zeros((120, 120, 4), dtype=np.uint8)
        lens = LensDescriptor("a", 60, 60, 40, 1)

        draw_lens_rim(surface, lens, GlassConfig())

        assert surface[20, 60, 3] > 0
        assert surface[60, 60, 3] == 0
