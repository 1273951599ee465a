"""
Core liquid-glass lens renderer.

Computes the distorted, zoomed and lit view of the source image inside one
lens, then composites it onto a destination surface as a circular overlay.
All per-pixel math runs as numpy array operations over the whole patch and
matches the per-pixel definition exactly.
"""

import math
import numpy as np
from typing import Tuple, Optional, Union
from dataclasses import dataclass
import logging

from .config import GlassConfig
from .lenses import LensDescriptor
from .overlay import draw_lens_rim
from .raster import Raster, PixelSampler
from .utils import Timer, smooth_step, distance_field, circle_coverage, alpha_composite

logger = logging.getLogger(__name__)

ArrayLike = Union[float, np.ndarray]

DEFAULT_GLASS = GlassConfig()


@dataclass(frozen=True)
class RenderTarget:
    """
    Mapping from destination canvas space to source image space.

    Attributes:
        dest_width: Destination width in pixels.
        dest_height: Destination height in pixels.
        source_width: Source raster width in pixels.
        source_height: Source raster height in pixels.
    """
    dest_width: int
    dest_height: int
    source_width: int
    source_height: int

    def __post_init__(self):
        if self.dest_width <= 0 or self.dest_height <= 0:
            raise ValueError("Destination dimensions must be positive")
        if self.source_width <= 0 or self.source_height <= 0:
            raise ValueError("Source dimensions must be positive")

    @classmethod
    def for_raster(cls, raster: Raster, dest_width: int, dest_height: int) -> 'RenderTarget':
        return cls(dest_width, dest_height, raster.width, raster.height)

    @property
    def scale_x(self) -> float:
        return self.source_width / self.dest_width

    @property
    def scale_y(self) -> float:
        return self.source_height / self.dest_height

    def effective_radius(self, lens: LensDescriptor) -> float:
        """Lens radius measured in source pixels."""
        return lens.radius * min(self.scale_x, self.scale_y)


@dataclass(frozen=True, eq=False)
class LensPatch:
    """
    Square RGBA8 buffer rendered for one lens.

    The lens center sits at patch-local (radius, radius); pixels outside the
    lens circle have alpha 0.
    """
    pixels: np.ndarray
    radius: float

    @property
    def side(self) -> int:
        return self.pixels.shape[0]


def _scalar_or_array(value: np.ndarray) -> ArrayLike:
    return float(value) if np.ndim(value) == 0 else value


def patch_side(radius: float) -> int:
    """Side length of the patch buffer for a lens radius."""
    if not radius > 0 or not math.isfinite(radius):
        return 0
    return 2 * int(math.ceil(radius))


def edge_progress(norm_dist: ArrayLike, config: GlassConfig = DEFAULT_GLASS) -> ArrayLike:
    """
    Position inside the rim band: 0 at edge_start and below, 1 at the rim.
    """
    progress = (np.asarray(norm_dist, dtype=float) - config.edge_start) / (1.0 - config.edge_start)
    return _scalar_or_array(np.maximum(progress, 0.0))


def compute_distortion(norm_dist: ArrayLike, config: GlassConfig = DEFAULT_GLASS) -> ArrayLike:
    """
    Sampling offset multiplier simulating refraction at the glass edge.

    Exactly 1 up to edge_start, then rises smoothly to 1 + distortion_strength
    at the rim.

    Args:
        norm_dist: Distance from the lens center divided by the radius.
        config: Glass parameters.

    Returns:
        Distortion factor, same shape as norm_dist.
    """
    norm_dist = np.asarray(norm_dist, dtype=float)
    smooth = smooth_step(edge_progress(norm_dist, config))
    distortion = np.where(
        norm_dist > config.edge_start,
        1.0 + config.distortion_strength * smooth,
        1.0,
    )
    return _scalar_or_array(distortion)


def source_coordinates(
    lens: LensDescriptor,
    dx: ArrayLike,
    dy: ArrayLike,
    scale_x: float,
    scale_y: float,
    distortion: ArrayLike = 1.0
) -> Tuple[ArrayLike, ArrayLike]:
    """
    Map a patch-local offset from the lens center to source image coordinates.

    Args:
        lens: Lens being rendered.
        dx: Horizontal offset from the lens center in destination pixels.
        dy: Vertical offset from the lens center in destination pixels.
        scale_x: Source width / destination width.
        scale_y: Source height / destination height.
        distortion: Edge refraction multiplier.

    Returns:
        (x, y) sample point in source pixels.
    """
    src_center_x = lens.x * scale_x
    src_center_y = lens.y * scale_y
    sample_dx = dx * scale_x * distortion / lens.zoom
    sample_dy = dy * scale_y * distortion / lens.zoom
    return src_center_x + sample_dx, src_center_y + sample_dy


def specular_falloff(nx: ArrayLike, ny: ArrayLike, config: GlassConfig = DEFAULT_GLASS) -> ArrayLike:
    """
    Strength of the fixed specular highlight.

    Args:
        nx: Horizontal offset from the lens center divided by the radius.
        ny: Vertical offset from the lens center divided by the radius.
        config: Glass parameters.

    Returns:
        Highlight amount in [0, specular_strength ** 2].
    """
    anchor_x, anchor_y = config.specular_anchor
    spec_dx = np.asarray(nx, dtype=float) - anchor_x
    spec_dy = np.asarray(ny, dtype=float) - anchor_y
    spec_dist = np.sqrt(spec_dx * spec_dx + spec_dy * spec_dy)
    intensity = np.maximum(0.0, 1.0 - spec_dist * config.specular_falloff) * config.specular_strength
    return _scalar_or_array(intensity * intensity)


class LensRenderer:
    """
    Renders liquid-glass lenses.

    Stateless apart from its configuration; safe to call repeatedly and from
    several threads as long as composites onto a shared surface are
    serialized.
    """

    def __init__(self, config: Optional[GlassConfig] = None):
        """
        Initialize the renderer.

        Args:
            config: Glass parameters (uses the tuned defaults if None).
        """
        self.config = config or DEFAULT_GLASS

    def _geometry(self, radius: float):
        side = patch_side(radius)
        py, px = np.mgrid[:side, :side].astype(float)
        dx = px - radius
        dy = py - radius
        dist_sq = dx * dx + dy * dy
        inside = dist_sq < radius * radius
        dist = np.sqrt(dist_sq)
        norm_dist = dist / radius if side else dist
        return dx, dy, dist, norm_dist, inside

    def sample_patch(self, raster: Raster, lens: LensDescriptor,
                     target: RenderTarget) -> Tuple[np.ndarray, np.ndarray]:
        """
        Fetch the refracted, zoomed source colors for every in-circle pixel.

        Args:
            raster: Source image.
            lens: Lens in destination coordinates.
            target: Destination to source mapping.

        Returns:
            (colors, inside): float array (side, side, 4) of unshaded RGBA,
            zero outside the circle, and the boolean in-circle mask.
        """
        dx, dy, _, norm_dist, inside = self._geometry(lens.radius)
        colors = np.zeros(inside.shape + (4,))
        if not inside.any():
            return colors, inside

        distortion = compute_distortion(norm_dist[inside], self.config)
        sample_x, sample_y = source_coordinates(
            lens, dx[inside], dy[inside], target.scale_x, target.scale_y, distortion
        )
        colors[inside] = PixelSampler.sample_many(raster, sample_x, sample_y)
        return colors, inside

    def shade_patch(self, colors: np.ndarray, radius: float) -> np.ndarray:
        """
        Apply vignette, rim light and the specular highlight.

        Args:
            colors: Unshaded float RGBA patch from sample_patch.
            radius: Lens radius the patch was sampled with.

        Returns:
            New float RGBA array; alpha is copied through unchanged and
            pixels outside the circle stay zero.
        """
        cfg = self.config
        dx, dy, dist, norm_dist, inside = self._geometry(radius)
        shaded = np.zeros_like(colors)
        if not inside.any():
            return shaded
        shaded[inside] = colors[inside]

        edge = inside & (norm_dist > cfg.edge_start)
        if edge.any():
            progress = edge_progress(norm_dist[edge], cfg)
            rgb = shaded[edge, :3] * (1.0 - cfg.vignette_strength * progress * progress)[:, np.newaxis]

            ndx = dx[edge] / dist[edge]
            ndy = dy[edge] / dist[edge]
            light_x, light_y = cfg.light_direction
            light_dot = light_x * ndx + light_y * ndy
            rim_intensity = progress * progress * cfg.rim_strength
            rim_light = rim_intensity * (0.5 + 0.5 * light_dot)

            warm = np.maximum(0.0, light_dot) * progress * cfg.warm_tint
            cool = np.maximum(0.0, -light_dot) * progress * cfg.cool_tint

            w_r, w_g, w_b = cfg.rim_channel_weights
            rgb[:, 0] = np.minimum(255.0, rgb[:, 0] + 255 * rim_light * w_r + 255 * warm)
            rgb[:, 1] = np.minimum(255.0, rgb[:, 1] + 255 * rim_light * w_g)
            rgb[:, 2] = np.minimum(255.0, rgb[:, 2] + 255 * rim_light * w_b + 255 * cool)
            shaded[edge, :3] = rgb

        falloff = specular_falloff(dx[inside] / radius, dy[inside] / radius, cfg)
        shaded[inside, :3] = np.minimum(255.0, shaded[inside, :3] + (255 * falloff)[:, np.newaxis])
        return shaded

    def render(self, raster: Raster, lens: LensDescriptor,
               dest_width: int, dest_height: int) -> LensPatch:
        """
        Render the patch for one lens.

        Args:
            raster: Source image, read only.
            lens: Lens in destination coordinates.
            dest_width: Destination canvas width.
            dest_height: Destination canvas height.

        Returns:
            LensPatch of side 2 * ceil(radius).
        """
        side = patch_side(lens.radius)
        pixels = np.zeros((side, side, 4), dtype=np.uint8)
        if side == 0:
            return LensPatch(pixels, lens.radius)

        target = RenderTarget.for_raster(raster, dest_width, dest_height)
        with Timer(f"Lens {lens.id} patch {side}x{side}"):
            colors, inside = self.sample_patch(raster, lens, target)
            shaded = self.shade_patch(colors, lens.radius)
            pixels[inside] = np.clip(np.rint(shaded[inside]), 0, 255).astype(np.uint8)
        return LensPatch(pixels, lens.radius)

    def composite(self, surface: np.ndarray, patch: LensPatch,
                  lens: LensDescriptor, selected: bool = False) -> None:
        """
        Draw a rendered patch and the lens rim onto a surface.

        Args:
            surface: Writable uint8 RGBA array (height, width, 4).
            patch: Patch returned by render for this lens.
            lens: Lens in the surface's coordinates.
            selected: Draw selection feedback (accent border, resize handle).
        """
        height, width = surface.shape[:2]
        side = patch.side
        if side:
            origin_x = int(math.floor(lens.x - patch.radius + 0.5))
            origin_y = int(math.floor(lens.y - patch.radius + 0.5))
            x0, y0 = max(origin_x, 0), max(origin_y, 0)
            x1, y1 = min(origin_x + side, width), min(origin_y + side, height)
            if x1 > x0 and y1 > y0:
                region = surface[y0:y1, x0:x1]
                src = patch.pixels[y0 - origin_y:y1 - origin_y, x0 - origin_x:x1 - origin_x]
                dist = distance_field((x0, y0), (x1 - x0, y1 - y0), (lens.x, lens.y))
                clip = circle_coverage(dist, lens.radius)
                alpha_composite(region, src[:, :, :3], src[:, :, 3] / 255.0 * clip)

        draw_lens_rim(surface, lens, self.config, selected)

    def draw(self, surface: np.ndarray, raster: Raster,
             lens: LensDescriptor, selected: bool = False) -> LensPatch:
        """Render a lens at the surface's resolution and composite it."""
        height, width = surface.shape[:2]
        patch = self.render(raster, lens, width, height)
        self.composite(surface, patch, lens, selected)
        return patch
