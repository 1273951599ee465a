"""
Main application module for the liquid-glass magnifier.

Provides pygame-based image loading and saving, an interactive preview
window for placing lenses, and the command line entry point.
"""

import sys
import logging
import argparse
from pathlib import Path
from typing import List, Optional, Sequence, Union
from dataclasses import dataclass
from enum import Enum, auto

import numpy as np

try:
    import pygame
    PYGAME_AVAILABLE = True
except ImportError:
    PYGAME_AVAILABLE = False

from .config import MagnifierConfig, create_default_config, create_session_config
from .lenses import LensDescriptor
from .lens_renderer import LensRenderer
from .raster import Raster
from .scene import fit_display_size, render_frame, render_export
from .session import LensSession, InteractionMode
from .utils import Timer

logger = logging.getLogger(__name__)


def _require_pygame() -> None:
    if not PYGAME_AVAILABLE:
        raise RuntimeError(
            "pygame is required for image I/O and the preview window. "
            "Install with: pip install pygame"
        )


class AppState(Enum):
    """Application state enumeration."""
    INITIALIZING = auto()
    RUNNING = auto()
    STOPPED = auto()


@dataclass
class AppStats:
    """Runtime statistics for the application."""
    frame_count: int = 0
    total_render_time: float = 0.0
    last_frame_time: float = 0.0

    def update(self, frame_time: float) -> None:
        """Update statistics with new frame data."""
        self.frame_count += 1
        self.total_render_time += frame_time
        self.last_frame_time = frame_time

    @property
    def average_frame_time(self) -> float:
        if self.frame_count == 0:
            return 0.0
        return self.total_render_time / self.frame_count


class ImageLoader:
    """Handles decoding, encoding and generating source images."""

    @staticmethod
    def load_raster(path: Union[str, Path]) -> Raster:
        """
        Decode an image file into an RGBA raster.

        Args:
            path: Path to the image file.

        Returns:
            Raster at the image's natural size.

        Raises:
            FileNotFoundError: If image file doesn't exist.
            ValueError: If image cannot be decoded.
        """
        _require_pygame()

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Image not found: {path}")

        try:
            surface = pygame.image.load(str(path))
        except pygame.error as e:
            raise ValueError(f"Failed to load image: {e}") from e

        width, height = surface.get_size()
        data = pygame.image.tobytes(surface, "RGBA")
        logger.info(f"Loaded image {path} ({width}x{height})")
        return Raster.from_bytes(width, height, data)

    @staticmethod
    def save_raster(raster: Raster, path: Union[str, Path]) -> Path:
        """
        Encode a raster to disk; the format follows the file extension.

        Args:
            raster: Image to write.
            path: Destination file, typically .png.

        Returns:
            The written path.
        """
        _require_pygame()

        path = Path(path)
        surface = pygame.image.frombytes(raster.tobytes(), raster.size, "RGBA")
        pygame.image.save(surface, str(path))
        logger.info(f"Saved {raster.width}x{raster.height} image to {path}")
        return path

    @staticmethod
    def create_test_pattern(width: int, height: int) -> Raster:
        """
        Create a test pattern with fine detail for judging magnification.

        Args:
            width: Image width.
            height: Image height.

        Returns:
            Opaque raster with a color gradient, grid lines and rings.
        """
        image = np.zeros((height, width, 3), dtype=np.uint8)

        # Background gradient
        y_coords, x_coords = np.ogrid[:height, :width]
        image[:, :, 0] = (x_coords * 255 // max(width, 1)).astype(np.uint8)
        image[:, :, 1] = (y_coords * 255 // max(height, 1)).astype(np.uint8)
        image[:, :, 2] = 128

        # Add grid lines
        grid_spacing = 50
        image[::grid_spacing, :] = [255, 255, 255]
        image[:, ::grid_spacing] = [255, 255, 255]

        # Concentric rings around the center
        distance = np.sqrt((x_coords - width / 2) ** 2 + (y_coords - height / 2) ** 2)
        rings = (distance % 100 < 1.5) & (distance > 10)
        image[rings] = [255, 255, 0]

        # Checkerboard in the center, useful to spot the edge refraction
        checker = ((x_coords // 8 + y_coords // 8) % 2 == 0) & (distance < 40)
        image[checker] = [20, 20, 20]

        return Raster.from_array(image)


def parse_lens_argument(value: str) -> LensDescriptor:
    """
    Parse a "x,y,radius[,zoom]" command line lens.

    Raises:
        argparse.ArgumentTypeError: If the value is malformed or out of range.
    """
    parts = [part.strip() for part in value.split(',')]
    if len(parts) not in (3, 4):
        raise argparse.ArgumentTypeError(f"Expected x,y,radius[,zoom], got {value!r}")
    try:
        numbers = [float(part) for part in parts]
    except ValueError:
        raise argparse.ArgumentTypeError(f"Lens values must be numbers, got {value!r}")
    x, y, radius = numbers[:3]
    zoom = numbers[3] if len(numbers) == 4 else 2.0
    try:
        return LensDescriptor(id="pending", x=x, y=y, radius=radius, zoom=zoom)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


class MagnifierApp:
    """
    Interactive lens placement window.

    Left mouse drags lenses or the selected lens' resize handle; keys add,
    delete and zoom lenses and export the full-resolution result.
    """

    def __init__(self,
                 config: Optional[MagnifierConfig] = None,
                 image_path: Optional[Union[str, Path]] = None,
                 export_path: Union[str, Path] = "magnified-image.png"):
        """
        Initialize the application.

        Args:
            config: Magnifier configuration (uses defaults if None).
            image_path: Optional path to an image file to display.
            export_path: Where the E key writes the full-resolution PNG.
        """
        self.config = config or create_default_config()
        self.image_path = image_path
        self.export_path = Path(export_path)
        self.state = AppState.INITIALIZING
        self.stats = AppStats()

        self.renderer = LensRenderer(self.config.glass)
        self.session = LensSession(config=self.config.session)
        self.source: Optional[Raster] = None

        self._screen = None
        self._clock = None
        self._frame_surface = None
        self._dirty = True
        self._show_debug = False

        logger.info("MagnifierApp initialized")

    @property
    def display_size(self):
        return self.session.display_width, self.session.display_height

    def load_source(self) -> None:
        """Load the configured image, falling back to a generated pattern."""
        raster = None
        if self.image_path:
            try:
                raster = ImageLoader.load_raster(self.image_path)
            except (FileNotFoundError, ValueError) as e:
                logger.warning(f"Failed to load image: {e}. Using test pattern.")
        if raster is None:
            raster = ImageLoader.create_test_pattern(1600, 1000)
            logger.info("Using generated test pattern")
        self.set_source(raster)

    def set_source(self, raster: Raster) -> None:
        """Show a new image; existing lenses are discarded."""
        self.source = raster
        cfg = self.config.session
        width, height = fit_display_size(
            raster.width, raster.height, cfg.max_display_width, cfg.max_display_height
        )
        self.session.reset(width, height)
        self._dirty = True

    def add_lenses(self, lenses: Sequence[LensDescriptor]) -> None:
        """Place lenses given in display coordinates, keeping their geometry."""
        for lens in lenses:
            added = self.session.add_lens()
            if added is None:
                return
            self.session.lenses.replace(
                added.moved_to(lens.x, lens.y).resized(lens.radius).zoomed(lens.zoom)
            )
        self._dirty = True

    def render_preview(self) -> np.ndarray:
        """Render the current session at display size."""
        if self.source is None:
            self.load_source()
        width, height = self.display_size
        with Timer("Preview frame", log=False) as timer:
            frame = render_frame(
                self.source, self.session.lenses, width, height,
                selected_id=self.session.selected_id, renderer=self.renderer
            )
        self.stats.update(timer.elapsed)
        return frame

    def export(self, path: Optional[Union[str, Path]] = None) -> Path:
        """Render the full-resolution result and write it to disk."""
        if self.source is None:
            self.load_source()
        width, height = self.display_size
        result = render_export(self.source, self.session.lenses, width, height, renderer=self.renderer)
        return ImageLoader.save_raster(result, path or self.export_path)

    def _init_pygame(self) -> None:
        """Initialize pygame and create the window."""
        pygame.init()
        pygame.display.set_caption("Liquid Glass Magnifier - A to add a lens")
        self._screen = pygame.display.set_mode(self.display_size)
        self._clock = pygame.time.Clock()
        logger.info(f"Pygame initialized: {self.display_size[0]}x{self.display_size[1]}")

    def _refresh_frame(self) -> None:
        if not self._dirty:
            return
        frame = self.render_preview()
        self._frame_surface = pygame.image.frombytes(frame.tobytes(), self.display_size, "RGBA")
        self._dirty = False

    def _draw_debug_overlay(self) -> None:
        """Draw debug information overlay."""
        if not self._show_debug or self._screen is None:
            return

        font = pygame.font.Font(None, 24)
        selected = self.session.selected
        lines = [
            f"Frame time: {self.stats.last_frame_time * 1000:.2f}ms "
            f"(avg {self.stats.average_frame_time * 1000:.2f}ms)",
            f"Lenses: {len(self.session.lenses)}",
            f"Selected: {selected.id} r={selected.radius:.0f} zoom={selected.zoom:.1f}"
            if selected else "Selected: None",
            "",
            "Controls:",
            "A - Add lens",
            "Drag - Move / resize",
            "Up/Down - Zoom",
            "Del - Delete lens",
            "E - Export PNG",
            "D - Toggle debug overlay",
            "ESC - Quit",
        ]

        overlay_height = len(lines) * 22 + 10
        overlay_surface = pygame.Surface((260, overlay_height))
        overlay_surface.set_alpha(180)
        overlay_surface.fill((0, 0, 0))
        self._screen.blit(overlay_surface, (10, 10))

        y_offset = 15
        for line in lines:
            text_surface = font.render(line, True, (255, 255, 255))
            self._screen.blit(text_surface, (15, y_offset))
            y_offset += 22

    def _update_cursor(self, pos) -> None:
        hint = self.session.cursor_at(*pos)
        cursors = {
            "resize": pygame.SYSTEM_CURSOR_SIZENWSE,
            "move": pygame.SYSTEM_CURSOR_SIZEALL,
            "default": pygame.SYSTEM_CURSOR_ARROW,
        }
        pygame.mouse.set_cursor(cursors[hint])

    def _handle_key(self, key: int) -> bool:
        if key == pygame.K_ESCAPE:
            return False
        if key == pygame.K_a:
            lens = self.session.add_lens()
            if lens:
                logger.debug(f"Added {lens.id}")
        elif key in (pygame.K_DELETE, pygame.K_BACKSPACE):
            self.session.delete_selected()
        elif key in (pygame.K_UP, pygame.K_PLUS, pygame.K_EQUALS, pygame.K_KP_PLUS):
            self.session.step_zoom(1)
        elif key in (pygame.K_DOWN, pygame.K_MINUS, pygame.K_KP_MINUS):
            self.session.step_zoom(-1)
        elif key == pygame.K_e:
            try:
                self.export()
            except (OSError, pygame.error) as e:
                logger.error(f"Export failed: {e}")
        elif key == pygame.K_d:
            self._show_debug = not self._show_debug
        self._dirty = True
        return True

    def _handle_events(self) -> bool:
        """
        Handle pygame events.

        Returns:
            False if application should quit, True otherwise.
        """
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                return False

            elif event.type == pygame.KEYDOWN:
                if not self._handle_key(event.key):
                    return False

            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                self.session.pointer_down(*event.pos)
                self._dirty = True

            elif event.type == pygame.MOUSEMOTION:
                if self.session.pointer_move(*event.pos):
                    self._dirty = True
                if self.session.mode is InteractionMode.IDLE:
                    self._update_cursor(event.pos)

            elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
                self.session.pointer_up()

        return True

    def run(self) -> None:
        """
        Run the main application loop.

        This method blocks until the application is closed.
        """
        _require_pygame()
        try:
            if self.source is None:
                self.load_source()
            self._init_pygame()

            self.state = AppState.RUNNING
            logger.info("Application started")

            running = True
            while running:
                running = self._handle_events()
                self._refresh_frame()

                if self._frame_surface and self._screen:
                    self._screen.blit(self._frame_surface, (0, 0))
                    self._draw_debug_overlay()
                    pygame.display.flip()

                self._clock.tick(60)

        except Exception as e:
            logger.error(f"Application error: {e}", exc_info=True)
            raise

        finally:
            self.state = AppState.STOPPED
            pygame.quit()
            logger.info("Application stopped")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Liquid glass magnifier: place zoom lenses over an image'
    )
    parser.add_argument(
        '--image', '-i',
        type=str,
        help='Path to an image file to magnify'
    )
    parser.add_argument(
        '--lens', '-l',
        type=parse_lens_argument,
        action='append',
        default=[],
        metavar='X,Y,RADIUS[,ZOOM]',
        help='Lens in preview coordinates; repeat for several lenses'
    )
    parser.add_argument(
        '--max-width', '-W',
        type=int,
        default=900,
        help='Preview width cap (default: 900)'
    )
    parser.add_argument(
        '--max-height', '-H',
        type=int,
        default=600,
        help='Preview height cap (default: 600)'
    )
    parser.add_argument(
        '--export', '-o',
        type=str,
        help='Write the full-resolution result to this PNG and exit'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable debug logging'
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if args.max_width <= 0 or args.max_height <= 0:
        parser.error("--max-width and --max-height must be positive")

    config = MagnifierConfig(session=create_session_config(args.max_width, args.max_height))
    app = MagnifierApp(config=config, image_path=args.image,
                       export_path=args.export or "magnified-image.png")
    app.load_source()
    app.add_lenses(args.lens)

    if args.export:
        app.export(args.export)
        return 0

    app.run()
    return 0


if __name__ == '__main__':
    sys.exit(main())
