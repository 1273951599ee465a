"""
Whole-frame rendering.

Draws the base image and every lens in paint order, either at preview size
or at the source's full resolution for export.
"""

import numpy as np
from typing import Iterable, Optional, Tuple
import logging

from .lenses import LensDescriptor
from .lens_renderer import LensRenderer
from .raster import Raster, PixelSampler
from .utils import timed

logger = logging.getLogger(__name__)


def fit_display_size(
    image_width: int,
    image_height: int,
    max_width: int = 900,
    max_height: int = 600
) -> Tuple[int, int]:
    """
    Fit an image into a viewport, keeping its aspect ratio.

    The limiting axis is capped at both the viewport and the image's natural
    size, so small images are never enlarged.

    Args:
        image_width: Natural image width.
        image_height: Natural image height.
        max_width: Viewport width.
        max_height: Viewport height.

    Returns:
        (width, height) in whole pixels, each at least 1.
    """
    if image_width <= 0 or image_height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {image_width}x{image_height}")
    if max_width <= 0 or max_height <= 0:
        raise ValueError(f"Viewport dimensions must be positive, got {max_width}x{max_height}")

    aspect_ratio = image_width / image_height
    if image_width / max_width > image_height / max_height:
        display_width = min(max_width, image_width)
        display_height = display_width / aspect_ratio
    else:
        display_height = min(max_height, image_height)
        display_width = display_height * aspect_ratio

    return max(1, int(round(display_width))), max(1, int(round(display_height)))


@timed
def render_frame(
    raster: Raster,
    lenses: Iterable[LensDescriptor],
    dest_width: int,
    dest_height: int,
    selected_id: Optional[str] = None,
    renderer: Optional[LensRenderer] = None
) -> np.ndarray:
    """
    Render a preview frame.

    Args:
        raster: Source image.
        lenses: Lenses in display coordinates, in paint order.
        dest_width: Preview width.
        dest_height: Preview height.
        selected_id: Id of the lens to draw with selection feedback.
        renderer: Lens renderer to use (a default one if None).

    Returns:
        uint8 RGBA array (dest_height, dest_width, 4).
    """
    renderer = renderer or LensRenderer()
    surface = PixelSampler.resample(raster, dest_width, dest_height)
    for lens in lenses:
        renderer.draw(surface, raster, lens, selected=(lens.id == selected_id))
    return surface


@timed
def render_export(
    raster: Raster,
    lenses: Iterable[LensDescriptor],
    display_width: int,
    display_height: int,
    renderer: Optional[LensRenderer] = None
) -> Raster:
    """
    Render the full-resolution result.

    Lenses positioned on a display_width x display_height preview are mapped
    onto the source resolution. Selection feedback is never drawn.

    Args:
        raster: Source image.
        lenses: Lenses in display coordinates, in paint order.
        display_width: Width of the preview the lenses were placed on.
        display_height: Height of the preview the lenses were placed on.
        renderer: Lens renderer to use (a default one if None).

    Returns:
        New Raster the size of the source.
    """
    renderer = renderer or LensRenderer()
    scale_x = raster.width / display_width
    scale_y = raster.height / display_height

    surface = raster.to_array()
    count = 0
    for lens in lenses:
        renderer.draw(surface, raster, lens.scaled(scale_x, scale_y), selected=False)
        count += 1

    logger.info(f"Exported {raster.width}x{raster.height} image with {count} lenses")
    return Raster(surface)
