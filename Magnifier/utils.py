"""
Utility functions for the liquid-glass magnifier.

Provides timing helpers, vectorized interpolation, anti-aliased coverage
masks, blurring, gradients and alpha compositing on numpy arrays.
"""

import numpy as np
from typing import Tuple, Optional, Callable, Sequence, Union
from functools import wraps
import time
import logging

logger = logging.getLogger(__name__)

ArrayLike = Union[float, np.ndarray]


class Timer:
    """Context manager for timing code blocks."""

    def __init__(self, name: str = "Operation", log: bool = True):
        """
        Initialize timer.

        Args:
            name: Name of the operation being timed.
            log: Whether to log the result.
        """
        self.name = name
        self.log = log
        self.elapsed: float = 0.0

    def __enter__(self) -> 'Timer':
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, *args) -> None:
        self.elapsed = time.perf_counter() - self.start_time
        if self.log:
            logger.debug(f"{self.name} took {self.elapsed * 1000:.2f}ms")


def timed(func: Callable) -> Callable:
    """
    Decorator to time function execution.

    Args:
        func: Function to wrap.

    Returns:
        Wrapped function that logs execution time.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        with Timer(func.__qualname__):
            return func(*args, **kwargs)
    return wrapper


def clamp(value: float, min_val: float, max_val: float) -> float:
    """
    Clamp a value to a range.

    Args:
        value: Value to clamp.
        min_val: Minimum allowed value.
        max_val: Maximum allowed value.

    Returns:
        Clamped value.
    """
    return max(min_val, min(value, max_val))


def smooth_step(t: ArrayLike) -> ArrayLike:
    """
    Hermite smoothstep of an already normalized parameter.

    Works element-wise on arrays; inputs are clipped to [0, 1].
    """
    t = np.clip(t, 0.0, 1.0)
    return t * t * (3.0 - 2.0 * t)


def distance_field(
    origin: Tuple[int, int],
    size: Tuple[int, int],
    center: Tuple[float, float]
) -> np.ndarray:
    """
    Distance from every pixel center of a region to a point.

    Args:
        origin: Top-left (x, y) of the region in surface coordinates.
        size: Region (width, height).
        center: Point (x, y) in surface coordinates.

    Returns:
        Float array of shape (height, width).
    """
    ox, oy = origin
    width, height = size
    y, x = np.ogrid[:height, :width]
    dx = x + ox + 0.5 - center[0]
    dy = y + oy + 0.5 - center[1]
    return np.sqrt(dx * dx + dy * dy)


def circle_coverage(distance: np.ndarray, radius: float) -> np.ndarray:
    """
    Anti-aliased coverage of a filled circle.

    Args:
        distance: Distance of each pixel center to the circle center.
        radius: Circle radius.

    Returns:
        Float array in [0, 1], 1 = fully inside.
    """
    return np.clip(radius + 0.5 - distance, 0.0, 1.0)


def ring_coverage(distance: np.ndarray, radius: float, width: float) -> np.ndarray:
    """
    Anti-aliased coverage of a stroked circle outline.

    Args:
        distance: Distance of each pixel center to the circle center.
        radius: Radius of the stroke's center line.
        width: Stroke width.

    Returns:
        Float array in [0, 1].
    """
    if width <= 0:
        return np.zeros_like(distance)
    return np.clip(width / 2.0 + 0.5 - np.abs(distance - radius), 0.0, min(1.0, width))


def apply_gaussian_blur(
    image: np.ndarray,
    sigma: float = 1.0
) -> np.ndarray:
    """
    Apply Gaussian blur to a single-channel float image.

    Separable convolution with zero padding, so content fades out at the
    array border.

    Args:
        image: 2D input array.
        sigma: Standard deviation of the Gaussian.

    Returns:
        Blurred float array of the same shape.
    """
    if sigma <= 0:
        return image.astype(float)

    # Create Gaussian kernel
    size = int(6 * sigma + 1)
    if size % 2 == 0:
        size += 1

    x = np.arange(size) - size // 2
    kernel_1d = np.exp(-x ** 2 / (2 * sigma ** 2))
    kernel_1d /= kernel_1d.sum()

    result = image.astype(float)

    # np.convolve 'same' returns max(M, N) samples, so pad short axes first
    pad = size // 2
    padded = np.pad(result, pad)
    padded = np.apply_along_axis(
        lambda row: np.convolve(row, kernel_1d, mode='same'), axis=1, arr=padded
    )
    padded = np.apply_along_axis(
        lambda col: np.convolve(col, kernel_1d, mode='same'), axis=0, arr=padded
    )
    return padded[pad:pad + result.shape[0], pad:pad + result.shape[1]]


def linear_gradient(
    shape: Tuple[int, int],
    origin: Tuple[int, int],
    start: Tuple[float, float],
    end: Tuple[float, float],
    stops: Sequence[Tuple[float, Tuple[int, int, int, float]]]
) -> np.ndarray:
    """
    Evaluate a linear color gradient over a region.

    Pixels are projected onto the start->end axis and colors are linearly
    interpolated between stops; beyond either end the edge color repeats.

    Args:
        shape: Region (height, width).
        origin: Top-left (x, y) of the region in surface coordinates.
        start: Gradient start point in surface coordinates.
        end: Gradient end point in surface coordinates.
        stops: (offset, (r, g, b, alpha)) pairs, offsets ascending in [0, 1],
            alpha in [0, 1].

    Returns:
        Float array (height, width, 4) with RGB in [0, 255] and alpha in [0, 1].
    """
    height, width = shape
    y, x = np.ogrid[:height, :width]
    gx = end[0] - start[0]
    gy = end[1] - start[1]
    length_sq = gx * gx + gy * gy
    px = x + origin[0] + 0.5 - start[0]
    py = y + origin[1] + 0.5 - start[1]
    if length_sq == 0:
        t = np.zeros((height, width))
    else:
        t = np.clip((px * gx + py * gy) / length_sq, 0.0, 1.0)
    t = np.broadcast_to(t, (height, width))

    offsets = [offset for offset, _ in stops]
    colors = np.array([color for _, color in stops], dtype=float)
    result = np.empty((height, width, 4))
    for c in range(4):
        result[:, :, c] = np.interp(t, offsets, colors[:, c])
    return result


def alpha_composite(
    dest: np.ndarray,
    color: np.ndarray,
    alpha: np.ndarray
) -> np.ndarray:
    """
    Source-over blend a color layer onto an RGBA8 region in place.

    Args:
        dest: uint8 array (height, width, 4), modified in place.
        color: Source RGB in [0, 255], shape (height, width, 3) or (3,).
        alpha: Source alpha in [0, 1], shape (height, width).

    Returns:
        The updated dest array.
    """
    if dest.size == 0:
        return dest
    src_a = np.clip(alpha, 0.0, 1.0)[:, :, np.newaxis]
    src_rgb = np.broadcast_to(np.asarray(color, dtype=float), dest.shape[:2] + (3,))
    dst_rgb = dest[:, :, :3].astype(float)
    dst_a = dest[:, :, 3:4].astype(float) / 255.0

    out_a = src_a + dst_a * (1.0 - src_a)
    weighted = src_rgb * src_a + dst_rgb * dst_a * (1.0 - src_a)
    out_rgb = np.divide(weighted, out_a, out=np.zeros_like(weighted), where=out_a > 0)

    dest[:, :, :3] = np.clip(np.rint(out_rgb), 0, 255).astype(np.uint8)
    dest[:, :, 3] = np.clip(np.rint(out_a[:, :, 0] * 255.0), 0, 255).astype(np.uint8)
    return dest


def validate_image_array(
    array: np.ndarray,
    expected_channels: Optional[int] = None
) -> bool:
    """
    Validate that an array is a usable color image.

    Args:
        array: Array to validate.
        expected_channels: Expected number of channels (None for 3 or 4).

    Returns:
        True if valid, False otherwise.
    """
    if not isinstance(array, np.ndarray):
        return False

    if array.ndim != 3:
        return False

    height, width, channels = array.shape
    if height == 0 or width == 0:
        return False

    if expected_channels is not None:
        return channels == expected_channels
    return channels in (3, 4)
