"""
Lens descriptors and their paint-ordered collection.
"""

import math
from dataclasses import dataclass, replace
from typing import Iterator, List, Optional, Iterable
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LensDescriptor:
    """
    A circular magnifying lens in destination canvas coordinates.

    Attributes:
        id: Identifier, unique within a LensStack.
        x: Lens center x.
        y: Lens center y.
        radius: Lens radius in destination pixels.
        zoom: Magnification factor, 1 = no magnification.
    """
    id: str
    x: float
    y: float
    radius: float
    zoom: float = 1.0

    def __post_init__(self):
        for name in ('x', 'y', 'radius', 'zoom'):
            if not math.isfinite(getattr(self, name)):
                raise ValueError(f"{name} must be finite, got {getattr(self, name)}")
        if not self.radius > 0:
            raise ValueError(f"radius must be positive, got {self.radius}")
        if not self.zoom >= 1.0:
            raise ValueError(f"zoom must be at least 1, got {self.zoom}")

    def contains(self, x: float, y: float) -> bool:
        """Whether a point lies inside the lens circle (boundary included)."""
        return math.hypot(x - self.x, y - self.y) <= self.radius

    def moved_to(self, x: float, y: float) -> 'LensDescriptor':
        return replace(self, x=x, y=y)

    def resized(self, radius: float) -> 'LensDescriptor':
        return replace(self, radius=radius)

    def zoomed(self, zoom: float) -> 'LensDescriptor':
        return replace(self, zoom=zoom)

    def scaled(self, scale_x: float, scale_y: float) -> 'LensDescriptor':
        """
        Map the lens into another canvas resolution.

        The radius follows the smaller axis scale so the lens stays circular.
        """
        return replace(
            self,
            x=self.x * scale_x,
            y=self.y * scale_y,
            radius=self.radius * min(scale_x, scale_y),
        )


class LensStack:
    """
    Ordered collection of lenses; iteration order is paint order.

    Later entries are drawn over earlier ones. Ids are unique.
    """

    def __init__(self, lenses: Optional[Iterable[LensDescriptor]] = None):
        self._lenses: List[LensDescriptor] = []
        for lens in lenses or ():
            self.append(lens)

    def __iter__(self) -> Iterator[LensDescriptor]:
        return iter(list(self._lenses))

    def __len__(self) -> int:
        return len(self._lenses)

    def __contains__(self, lens_id: object) -> bool:
        return any(lens.id == lens_id for lens in self._lenses)

    def __getitem__(self, index: int) -> LensDescriptor:
        return self._lenses[index]

    def ids(self) -> List[str]:
        return [lens.id for lens in self._lenses]

    def index_of(self, lens_id: str) -> int:
        """
        Position of a lens in paint order.

        Raises:
            KeyError: If no lens has this id.
        """
        for idx, lens in enumerate(self._lenses):
            if lens.id == lens_id:
                return idx
        raise KeyError(lens_id)

    def get(self, lens_id: str) -> LensDescriptor:
        return self._lenses[self.index_of(lens_id)]

    def append(self, lens: LensDescriptor) -> None:
        """
        Add a lens on top of the stack.

        Raises:
            ValueError: If the id is already taken.
        """
        if lens.id in self:
            raise ValueError(f"Duplicate lens id: {lens.id!r}")
        self._lenses.append(lens)
        logger.debug(f"Lens {lens.id} added ({len(self._lenses)} total)")

    def replace(self, lens: LensDescriptor) -> None:
        """Swap in an updated record for the lens with the same id, keeping its position."""
        self._lenses[self.index_of(lens.id)] = lens

    def remove(self, lens_id: str) -> LensDescriptor:
        lens = self._lenses.pop(self.index_of(lens_id))
        logger.debug(f"Lens {lens_id} removed ({len(self._lenses)} left)")
        return lens

    def clear(self) -> None:
        self._lenses.clear()

    def topmost_at(self, x: float, y: float) -> Optional[LensDescriptor]:
        """The last-painted lens containing the point, if any."""
        for lens in reversed(self._lenses):
            if lens.contains(x, y):
                return lens
        return None
