"""
Raster storage and bilinear pixel sampling.

A Raster is an immutable RGBA8 image; PixelSampler reads it at arbitrary
floating-point coordinates with edge replication.
"""

import math
import numpy as np
from typing import Tuple, Union
from dataclasses import dataclass
import logging

from .utils import validate_image_array

logger = logging.getLogger(__name__)

RGBA = Tuple[float, float, float, float]


@dataclass(frozen=True, eq=False)
class Raster:
    """
    Immutable RGBA8 image.

    Attributes:
        pixels: Read-only uint8 array of shape (height, width, 4), row-major.
    """
    pixels: np.ndarray

    def __post_init__(self):
        if not validate_image_array(self.pixels, expected_channels=4):
            raise ValueError(
                f"Raster pixels must be a non-empty (H, W, 4) array, "
                f"got shape {getattr(self.pixels, 'shape', None)}"
            )
        if self.pixels.dtype != np.uint8:
            raise ValueError(f"Raster pixels must be uint8, got {self.pixels.dtype}")
        if self.pixels.flags.writeable:
            frozen = self.pixels.copy()
            frozen.flags.writeable = False
            object.__setattr__(self, 'pixels', frozen)

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @classmethod
    def from_array(cls, array: np.ndarray) -> 'Raster':
        """
        Build a raster from an RGB or RGBA array.

        Args:
            array: (H, W, 3) or (H, W, 4) array; RGB input gets opaque alpha.

        Returns:
            New Raster holding a private copy of the data.

        Raises:
            ValueError: If the array is not a non-empty color image.
        """
        if not validate_image_array(array):
            raise ValueError(
                f"Expected a non-empty (H, W, 3) or (H, W, 4) array, "
                f"got shape {getattr(array, 'shape', None)}"
            )
        data = np.clip(array, 0, 255).astype(np.uint8)
        if data.shape[2] == 3:
            alpha = np.full(data.shape[:2] + (1,), 255, dtype=np.uint8)
            data = np.concatenate([data, alpha], axis=2)
        return cls(data)

    @classmethod
    def from_bytes(cls, width: int, height: int, data: Union[bytes, bytearray]) -> 'Raster':
        """Build a raster from row-major RGBA8 bytes."""
        if width <= 0 or height <= 0:
            raise ValueError(f"Raster dimensions must be positive, got {width}x{height}")
        expected = width * height * 4
        if len(data) != expected:
            raise ValueError(f"Expected {expected} bytes for {width}x{height} RGBA, got {len(data)}")
        array = np.frombuffer(bytes(data), dtype=np.uint8).reshape(height, width, 4)
        return cls(array)

    @classmethod
    def solid(cls, width: int, height: int,
              rgba: Tuple[int, int, int, int] = (0, 0, 0, 255)) -> 'Raster':
        """Build a raster filled with one color."""
        if width <= 0 or height <= 0:
            raise ValueError(f"Raster dimensions must be positive, got {width}x{height}")
        array = np.empty((height, width, 4), dtype=np.uint8)
        array[:, :] = rgba
        return cls(array)

    def tobytes(self) -> bytes:
        """Row-major RGBA8 bytes."""
        return self.pixels.tobytes()

    def to_array(self) -> np.ndarray:
        """Writable copy of the pixel data."""
        return self.pixels.copy()


class PixelSampler:
    """
    Bilinear point sampling over a Raster.

    Coordinates outside the image are clamped to the border, so edge pixels
    replicate instead of wrapping or fading to transparent.
    """

    @staticmethod
    def sample(raster: Raster, x: float, y: float) -> RGBA:
        """
        Sample one point.

        Args:
            raster: Source image.
            x: Horizontal image coordinate, unconstrained.
            y: Vertical image coordinate, unconstrained.

        Returns:
            Interpolated (r, g, b, a) as floats in [0, 255].
        """
        width, height = raster.width, raster.height
        x = max(0.0, min(width - 1.0, x))
        y = max(0.0, min(height - 1.0, y))

        x0 = int(math.floor(x))
        y0 = int(math.floor(y))
        x1 = min(x0 + 1, width - 1)
        y1 = min(y0 + 1, height - 1)

        fx = x - x0
        fy = y - y0

        data = raster.pixels
        p00 = data[y0, x0]
        p10 = data[y0, x1]
        p01 = data[y1, x0]
        p11 = data[y1, x1]

        return tuple(
            float(p00[c]) * (1 - fx) * (1 - fy)
            + float(p10[c]) * fx * (1 - fy)
            + float(p01[c]) * (1 - fx) * fy
            + float(p11[c]) * fx * fy
            for c in range(4)
        )

    @staticmethod
    def sample_many(raster: Raster, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
        """
        Sample many points at once.

        Args:
            raster: Source image.
            xs: Horizontal coordinates, any shape.
            ys: Vertical coordinates, same shape as xs.

        Returns:
            Float64 array of shape xs.shape + (4,).
        """
        width, height = raster.width, raster.height
        x = np.clip(np.asarray(xs, dtype=float), 0.0, width - 1.0)
        y = np.clip(np.asarray(ys, dtype=float), 0.0, height - 1.0)
        # NaN lands on the far border, as the scalar min/max clamp does
        x = np.where(np.isnan(x), width - 1.0, x)
        y = np.where(np.isnan(y), height - 1.0, y)

        x0 = np.floor(x).astype(np.intp)
        y0 = np.floor(y).astype(np.intp)
        x1 = np.minimum(x0 + 1, width - 1)
        y1 = np.minimum(y0 + 1, height - 1)

        fx = (x - x0)[..., np.newaxis]
        fy = (y - y0)[..., np.newaxis]

        data = raster.pixels
        p00 = data[y0, x0].astype(float)
        p10 = data[y0, x1].astype(float)
        p01 = data[y1, x0].astype(float)
        p11 = data[y1, x1].astype(float)

        return (
            p00 * (1 - fx) * (1 - fy)
            + p10 * fx * (1 - fy)
            + p01 * (1 - fx) * fy
            + p11 * fx * fy
        )

    @classmethod
    def resample(cls, raster: Raster, width: int, height: int) -> np.ndarray:
        """
        Resize a raster by sampling it at destination pixel centers.

        Args:
            raster: Source image.
            width: Target width.
            height: Target height.

        Returns:
            Writable uint8 array (height, width, 4).
        """
        if (width, height) == raster.size:
            return raster.to_array()

        scale_x = raster.width / width
        scale_y = raster.height / height
        xs = (np.arange(width) + 0.5) * scale_x - 0.5
        ys = (np.arange(height) + 0.5) * scale_y - 0.5
        grid_x, grid_y = np.meshgrid(xs, ys)

        sampled = cls.sample_many(raster, grid_x, grid_y)
        logger.debug(f"Resampled {raster.width}x{raster.height} -> {width}x{height}")
        return np.clip(np.rint(sampled), 0, 255).astype(np.uint8)
