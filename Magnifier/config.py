"""
Configuration module for the liquid-glass magnifier.

Defines the tuned visual constants of the glass effect, the styling of the
lens rim overlay, and the bounds of the interactive lens session.
"""

from dataclasses import dataclass, field
from typing import Tuple


Color = Tuple[int, int, int]
GradientStop = Tuple[float, Tuple[int, int, int, float]]


@dataclass(frozen=True)
class GlassConfig:
    """
    Visual parameters of the glass effect and its rim overlay.

    The defaults are empirically tuned and reproduce the reference look;
    treat them as fixed unless a different style is wanted.

    Attributes:
        edge_start: Normalized distance where refraction and edge shading begin.
        distortion_strength: Extra sampling reach at the very rim (0.25 = 25%).
        vignette_strength: RGB darkening at the rim.
        rim_strength: Peak additive rim light.
        light_direction: Unit-ish vector the light arrives from (top-left).
        rim_channel_weights: Per-channel multiplier of the rim light (R, G, B).
        warm_tint: Red boost on the lit side of the rim.
        cool_tint: Blue boost on the shadowed side of the rim.
        specular_anchor: Highlight center in radius-normalized lens coordinates.
        specular_falloff: How quickly the highlight fades with distance.
        specular_strength: Highlight intensity before squaring.
    """
    edge_start: float = 0.85
    distortion_strength: float = 0.25
    vignette_strength: float = 0.15
    rim_strength: float = 0.4
    light_direction: Tuple[float, float] = (-0.707, -0.707)
    rim_channel_weights: Tuple[float, float, float] = (1.0, 0.9, 0.85)
    warm_tint: float = 0.12
    cool_tint: float = 0.08
    specular_anchor: Tuple[float, float] = (0.0, -0.55)
    specular_falloff: float = 3.0
    specular_strength: float = 0.15

    # Rim overlay
    border_width: float = 2.5
    selected_border_width: float = 3.0
    border_stops: Tuple[GradientStop, ...] = (
        (0.0, (255, 255, 255, 0.7)),
        (0.5, (255, 255, 255, 0.4)),
        (1.0, (200, 200, 220, 0.3)),
    )
    inset_offset: float = 1.5
    inset_width: float = 1.0
    inset_stops: Tuple[GradientStop, ...] = (
        (0.0, (255, 255, 255, 0.25)),
        (1.0, (255, 255, 255, 0.05)),
    )
    shadow_color: Tuple[int, int, int, float] = (0, 0, 0, 0.25)
    shadow_blur: float = 20.0
    shadow_offset: Tuple[float, float] = (0.0, 6.0)
    accent_color: Color = (59, 130, 246)  # #3b82f6
    handle_radius: float = 8.0
    handle_outline_width: float = 2.0
    handle_outline_color: Color = (255, 255, 255)
    handle_angle: float = 45.0

    def __post_init__(self):
        if not 0.0 < self.edge_start < 1.0:
            raise ValueError(f"edge_start must be in (0, 1), got {self.edge_start}")
        for name in ('distortion_strength', 'vignette_strength', 'rim_strength',
                     'warm_tint', 'cool_tint', 'specular_falloff',
                     'specular_strength'):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative, got {getattr(self, name)}")
        for name in ('border_width', 'selected_border_width', 'inset_width',
                     'shadow_blur', 'handle_radius', 'handle_outline_width'):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative, got {getattr(self, name)}")
        if not self.border_stops or not self.inset_stops:
            raise ValueError("Gradient stops cannot be empty")

    @property
    def shadow_sigma(self) -> float:
        """Gaussian sigma equivalent of the shadow blur radius."""
        return self.shadow_blur / 2.0


@dataclass(frozen=True)
class SessionConfig:
    """
    Bounds for interactive lens editing.

    Attributes:
        default_radius: Radius of a freshly added lens, in display pixels.
        default_zoom: Zoom of a freshly added lens.
        min_radius: Smallest radius reachable by dragging the resize handle.
        max_radius: Largest radius reachable by dragging the resize handle.
        min_zoom: Lower bound of the zoom slider.
        max_zoom: Upper bound of the zoom slider.
        zoom_step: Slider granularity.
        handle_hit_radius: Pick tolerance around the resize handle.
        max_display_width: Preview width cap.
        max_display_height: Preview height cap.
    """
    default_radius: float = 60.0
    default_zoom: float = 2.0
    min_radius: float = 30.0
    max_radius: float = 200.0
    min_zoom: float = 1.0
    max_zoom: float = 5.0
    zoom_step: float = 0.1
    handle_hit_radius: float = 12.0
    max_display_width: int = 900
    max_display_height: int = 600

    def __post_init__(self):
        if not 0 < self.min_radius <= self.max_radius:
            raise ValueError("Radius bounds must satisfy 0 < min_radius <= max_radius")
        if not 1.0 <= self.min_zoom <= self.max_zoom:
            raise ValueError("Zoom bounds must satisfy 1 <= min_zoom <= max_zoom")
        if self.zoom_step <= 0:
            raise ValueError(f"zoom_step must be positive, got {self.zoom_step}")
        if not self.min_radius <= self.default_radius <= self.max_radius:
            raise ValueError("default_radius must lie within the radius bounds")
        if not self.min_zoom <= self.default_zoom <= self.max_zoom:
            raise ValueError("default_zoom must lie within the zoom bounds")
        if self.max_display_width <= 0 or self.max_display_height <= 0:
            raise ValueError("Display caps must be positive")


@dataclass
class MagnifierConfig:
    """Bundle of glass and session settings handed to the application."""
    glass: GlassConfig = field(default_factory=GlassConfig)
    session: SessionConfig = field(default_factory=SessionConfig)


def create_default_config() -> MagnifierConfig:
    """Factory function to create the default magnifier configuration."""
    return MagnifierConfig()


def create_session_config(max_width: int, max_height: int) -> SessionConfig:
    """
    Factory function for a session whose preview fits a given viewport.

    Args:
        max_width: Largest preview width in pixels.
        max_height: Largest preview height in pixels.

    Returns:
        SessionConfig with the display caps replaced.
    """
    return SessionConfig(max_display_width=max_width, max_display_height=max_height)
