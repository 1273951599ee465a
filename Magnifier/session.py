"""
Interactive lens editing session.

Holds the UI state around the lens collection: which lens is selected and
whether the pointer is moving or resizing it. Lenses are referenced by id;
the descriptors themselves carry no UI flags.
"""

import itertools
import math
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Tuple
import logging

from .config import SessionConfig
from .lenses import LensDescriptor, LensStack
from .utils import clamp

logger = logging.getLogger(__name__)


class InteractionMode(Enum):
    """Pointer interaction state."""
    IDLE = auto()
    MOVING = auto()
    RESIZING = auto()


@dataclass
class DragState:
    """Grab offset between the pointer and the dragged lens center."""
    offset_x: float = 0.0
    offset_y: float = 0.0


class LensSession:
    """
    Editing state for lenses placed on a preview of fixed size.

    Coordinates are in display (preview) pixels.
    """

    def __init__(self, display_width: int = 0, display_height: int = 0,
                 config: Optional[SessionConfig] = None):
        self.config = config or SessionConfig()
        self.lenses = LensStack()
        self.display_width = display_width
        self.display_height = display_height
        self.selected_id: Optional[str] = None
        self.mode = InteractionMode.IDLE
        self._drag = DragState()
        self._ids = itertools.count(1)

    @property
    def selected(self) -> Optional[LensDescriptor]:
        if self.selected_id is None or self.selected_id not in self.lenses:
            return None
        return self.lenses.get(self.selected_id)

    def reset(self, display_width: int, display_height: int) -> None:
        """Start over for a newly loaded image."""
        self.lenses.clear()
        self.selected_id = None
        self.mode = InteractionMode.IDLE
        self.display_width = display_width
        self.display_height = display_height
        logger.debug(f"Session reset for {display_width}x{display_height} display")

    def _next_id(self) -> str:
        while True:
            lens_id = f"lens-{next(self._ids)}"
            if lens_id not in self.lenses:
                return lens_id

    def add_lens(self) -> Optional[LensDescriptor]:
        """
        Add a lens at the center of the display and select it.

        Returns:
            The new lens, or None when no display size is known yet.
        """
        if self.display_width <= 0 or self.display_height <= 0:
            return None
        lens = LensDescriptor(
            id=self._next_id(),
            x=self.display_width / 2,
            y=self.display_height / 2,
            radius=self.config.default_radius,
            zoom=self.config.default_zoom,
        )
        self.lenses.append(lens)
        self.selected_id = lens.id
        return lens

    def delete_selected(self) -> Optional[LensDescriptor]:
        """Remove the selected lens; returns it, or None if nothing was selected."""
        lens = self.selected
        if lens is None:
            return None
        self.lenses.remove(lens.id)
        self.selected_id = None
        self.mode = InteractionMode.IDLE
        return lens

    def handle_position(self, lens: LensDescriptor) -> Tuple[float, float]:
        """Location of the resize handle on the lens boundary (45 degrees)."""
        return (
            lens.x + lens.radius * math.cos(math.pi / 4),
            lens.y + lens.radius * math.sin(math.pi / 4),
        )

    def is_on_resize_handle(self, x: float, y: float, lens: LensDescriptor) -> bool:
        handle_x, handle_y = self.handle_position(lens)
        return math.hypot(x - handle_x, y - handle_y) <= self.config.handle_hit_radius

    def pointer_down(self, x: float, y: float) -> None:
        """
        Begin an interaction at a pointer position.

        The selected lens' resize handle takes priority, then the topmost
        lens under the pointer; clicking empty space clears the selection.
        """
        selected = self.selected
        if selected is not None and self.is_on_resize_handle(x, y, selected):
            self.mode = InteractionMode.RESIZING
            return

        lens = self.lenses.topmost_at(x, y)
        if lens is not None:
            self.selected_id = lens.id
            self.mode = InteractionMode.MOVING
            self._drag = DragState(x - lens.x, y - lens.y)
            return

        self.selected_id = None
        self.mode = InteractionMode.IDLE

    def pointer_move(self, x: float, y: float) -> bool:
        """
        Continue the current interaction.

        Returns:
            True if a lens changed.
        """
        lens = self.selected
        if lens is None or self.mode is InteractionMode.IDLE:
            return False

        if self.mode is InteractionMode.MOVING:
            self.lenses.replace(lens.moved_to(x - self._drag.offset_x, y - self._drag.offset_y))
        else:
            distance = math.hypot(x - lens.x, y - lens.y)
            radius = clamp(distance, self.config.min_radius, self.config.max_radius)
            self.lenses.replace(lens.resized(radius))
        return True

    def pointer_up(self) -> None:
        self.mode = InteractionMode.IDLE

    def cursor_at(self, x: float, y: float) -> str:
        """
        Cursor hint for a hover position: 'resize', 'move' or 'default'.

        The selected lens' resize handle takes priority over 'move', even where
        the handle overlaps a lens body, so the hint matches what pointer_down
        would start there.
        """
        selected = self.selected
        if selected is not None and self.is_on_resize_handle(x, y, selected):
            return "resize"
        if self.lenses.topmost_at(x, y) is not None:
            return "move"
        return "default"

    def snap_zoom(self, zoom: float) -> float:
        """Clamp a zoom value to the slider range and its step."""
        cfg = self.config
        zoom = clamp(zoom, cfg.min_zoom, cfg.max_zoom)
        steps = round((zoom - cfg.min_zoom) / cfg.zoom_step)
        return round(clamp(cfg.min_zoom + steps * cfg.zoom_step, cfg.min_zoom, cfg.max_zoom), 6)

    def set_zoom(self, zoom: float) -> Optional[LensDescriptor]:
        """Set the selected lens' zoom; no-op without a selection."""
        lens = self.selected
        if lens is None:
            return None
        updated = lens.zoomed(self.snap_zoom(zoom))
        self.lenses.replace(updated)
        return updated

    def step_zoom(self, steps: int) -> Optional[LensDescriptor]:
        """Nudge the selected lens' zoom by whole slider steps."""
        lens = self.selected
        if lens is None:
            return None
        return self.set_zoom(lens.zoom + steps * self.config.zoom_step)
