"""
Glass rim drawing for composited lenses.

Draws the lens border (with a soft drop shadow), the inner rim highlight and
the selection handle directly onto an RGBA8 numpy surface.
"""

import math
import numpy as np
from typing import Optional, Tuple
import logging

from .config import GlassConfig
from .utils import (
    distance_field,
    circle_coverage,
    ring_coverage,
    apply_gaussian_blur,
    linear_gradient,
    alpha_composite,
)

logger = logging.getLogger(__name__)

Bounds = Tuple[int, int, int, int]


def _bounds_around(surface: np.ndarray, cx: float, cy: float, extent: float) -> Optional[Bounds]:
    """Surface-clipped (x0, y0, x1, y1) box of half-size extent around a point."""
    height, width = surface.shape[:2]
    x0 = max(0, int(math.floor(cx - extent)))
    y0 = max(0, int(math.floor(cy - extent)))
    x1 = min(width, int(math.ceil(cx + extent)) + 1)
    y1 = min(height, int(math.ceil(cy + extent)) + 1)
    if x1 <= x0 or y1 <= y0:
        return None
    return x0, y0, x1, y1


def _shift(array: np.ndarray, dx: int, dy: int) -> np.ndarray:
    """Translate a 2D array by whole pixels, filling with zeros."""
    height, width = array.shape
    shifted = np.zeros_like(array)
    if abs(dx) >= width or abs(dy) >= height:
        return shifted
    src_x = slice(max(0, -dx), width - max(0, dx))
    src_y = slice(max(0, -dy), height - max(0, dy))
    dst_x = slice(max(0, dx), width - max(0, -dx))
    dst_y = slice(max(0, dy), height - max(0, -dy))
    shifted[dst_y, dst_x] = array[src_y, src_x]
    return shifted


def _draw_shadow(region: np.ndarray, shape_alpha: np.ndarray, config: GlassConfig) -> None:
    offset_x, offset_y = config.shadow_offset
    shadow = _shift(shape_alpha, int(round(offset_x)), int(round(offset_y)))
    shadow = apply_gaussian_blur(shadow, config.shadow_sigma)
    color = config.shadow_color
    alpha_composite(region, color[:3], shadow * color[3])


def _draw_handle(region: np.ndarray, origin: Tuple[int, int],
                 cx: float, cy: float, radius: float, config: GlassConfig) -> None:
    angle = math.radians(config.handle_angle)
    handle_x = cx + radius * math.cos(angle)
    handle_y = cy + radius * math.sin(angle)
    size = (region.shape[1], region.shape[0])
    dist = distance_field(origin, size, (handle_x, handle_y))

    alpha_composite(region, config.accent_color, circle_coverage(dist, config.handle_radius))
    alpha_composite(
        region,
        config.handle_outline_color,
        ring_coverage(dist, config.handle_radius, config.handle_outline_width),
    )


def draw_lens_rim(surface: np.ndarray, lens, config: GlassConfig, selected: bool = False) -> None:
    """
    Stroke the rim of a lens onto a surface.

    Unselected lenses get a diagonal white-to-lavender gradient border and a
    faint inset ring; selected lenses get a solid accent border and a resize
    handle on the lower-right diagonal. The outer border always casts a
    blurred shadow offset downward.

    Args:
        surface: Writable uint8 RGBA array (height, width, 4).
        lens: Lens descriptor in surface coordinates.
        config: Glass parameters holding the rim style.
        selected: Whether to draw selection feedback.
    """
    cx, cy, radius = lens.x, lens.y, lens.radius
    stroke_width = config.selected_border_width if selected else config.border_width
    offset_x, offset_y = config.shadow_offset

    extent = radius + stroke_width + 3 * config.shadow_sigma + max(abs(offset_x), abs(offset_y)) + 2
    if selected:
        extent = max(extent, radius + config.handle_radius + config.handle_outline_width + 2)
    bounds = _bounds_around(surface, cx, cy, extent)
    if bounds is None:
        return

    x0, y0, x1, y1 = bounds
    region = surface[y0:y1, x0:x1]
    origin = (x0, y0)
    shape = (y1 - y0, x1 - x0)
    dist = distance_field(origin, (shape[1], shape[0]), (cx, cy))
    diagonal = ((cx - radius, cy - radius), (cx + radius, cy + radius))

    coverage = ring_coverage(dist, radius, stroke_width)
    if selected:
        paint = np.asarray(config.accent_color, dtype=float)
        stroke_alpha = coverage
    else:
        gradient = linear_gradient(shape, origin, diagonal[0], diagonal[1], config.border_stops)
        paint = gradient[:, :, :3]
        stroke_alpha = coverage * gradient[:, :, 3]

    _draw_shadow(region, stroke_alpha, config)
    alpha_composite(region, paint, stroke_alpha)

    if selected:
        _draw_handle(region, origin, cx, cy, radius, config)
    else:
        inset = linear_gradient(shape, origin, diagonal[0], diagonal[1], config.inset_stops)
        inset_alpha = ring_coverage(dist, radius - config.inset_offset, config.inset_width) * inset[:, :, 3]
        alpha_composite(region, inset[:, :, :3], inset_alpha)
