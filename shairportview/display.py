"""
Pygame window showing the cover art, title and artist of the current track.

Layout:
- A fixed pad around the window
- The middle 60% of the remaining height holds the art and text
- Art is square, right-aligned within the left 40%, centred vertically
- Title and artist sit to the right of the art
"""

import threading
from typing import Dict, Optional

import pygame

from .art import CoverArt
from .config import DisplayConfig
from .metadata import Album, Art, Artist, Metadata, Track
from .metadata_monitor import MetadataMonitor
from .module_registry import module_registry

module_registry.register_module(
    name="display",
    description="Pygame now playing window",
    logger_name="display",
    debug_flag="--debug-display",
    category="output",
)

log = module_registry.get_logger("display")

TEXT_SPACER = 40


def compute_layout(width: int, height: int, pad: int = 20) -> Dict[str, pygame.Rect]:
    """Compute the art, title and artist rectangles for a window size."""
    inner_w = max(0, width - 2 * pad)
    inner_h = max(0, height - 2 * pad)

    # Art/title band: 60% of the inner height, below a 20% top area
    x = pad
    y = pad + inner_h * 2 // 10
    w = inner_w
    h = inner_h * 6 // 10

    art_side_w = w * 4 // 10
    art_size = min(h, art_side_w)
    art_x = x + (art_side_w - art_size)
    art_y = y + (h - art_size) // 2

    text_x = x + art_side_w + TEXT_SPACER
    text_w = max(0, w - art_side_w - TEXT_SPACER)
    text_h = art_size * 2 // 10

    return {
        "art": pygame.Rect(art_x, art_y, art_size, art_size),
        "title": pygame.Rect(text_x, art_y + art_size * 7 // 20, text_w, text_h),
        "artist": pygame.Rect(text_x, art_y + art_size * 13 // 20, text_w, text_h),
    }


class NowPlayingModel:
    """Latest metadata received, shared between the handler and the drawing code."""

    def __init__(self, default_art: Optional[CoverArt] = None):
        """Initialize with empty text and the given art."""
        self._lock = threading.Lock()
        self.title = ""
        self.artist = ""
        self.album = ""
        self.art: Optional[CoverArt] = default_art
        self.version = 0

    def on_metadata(self, metadata: Metadata) -> None:
        """Metadata handler: store the new value."""
        with self._lock:
            if isinstance(metadata, Track):
                self.title = metadata.text
            elif isinstance(metadata, Artist):
                self.artist = metadata.text
            elif isinstance(metadata, Album):
                # Not shown, kept for completeness
                self.album = metadata.text
            elif isinstance(metadata, Art):
                self.art = metadata.image
            self.version += 1
        log.debug("Display updated: %s", metadata)

    def snapshot(self) -> dict:
        with self._lock:
            return {"title": self.title, "artist": self.artist, "album": self.album, "art": self.art}


class DisplayApp:
    """Runs the pygame window and pulls metadata from a MetadataMonitor each frame."""

    def __init__(self, model: NowPlayingModel, config: Optional[DisplayConfig] = None, fullscreen: bool = False):
        """Initialize the app; the window is created by run()."""
        self._model = model
        self._config = config or DisplayConfig()
        self._fullscreen = fullscreen
        self._screen: Optional[pygame.Surface] = None
        self._font: Optional[pygame.font.Font] = None
        self._scaled_art: Optional[pygame.Surface] = None
        self._scaled_key = None
        self.running = False

    def setup_pygame(self) -> None:
        """Initialize pygame and open the window."""
        pygame.init()
        pygame.display.set_caption(self._config.title)

        if self._fullscreen:
            self._screen = pygame.display.set_mode((0, 0), pygame.FULLSCREEN)
        else:
            self._screen = pygame.display.set_mode(
                (self._config.window_width, self._config.window_height), pygame.RESIZABLE
            )
        self._font = pygame.font.Font(None, self._config.font_size)
        log.info("Display started: %dx%d", *self._screen.get_size())

    def handle_events(self) -> None:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.KEYDOWN and event.key in (pygame.K_q, pygame.K_ESCAPE):
                self.running = False
            elif event.type == pygame.VIDEORESIZE and not self._fullscreen:
                min_w, min_h = self._config.min_size
                max_w, max_h = self._config.max_size
                size = (min(max(event.w, min_w), max_w), min(max(event.h, min_h), max_h))
                self._screen = pygame.display.set_mode(size, pygame.RESIZABLE)

    def draw(self) -> None:
        state = self._model.snapshot()
        screen = self._screen
        screen.fill(self._config.color_bg)

        layout = compute_layout(*screen.get_size(), pad=self._config.pad_size)

        art_rect = layout["art"]
        art = state["art"]
        if art is not None and art_rect.width > 0:
            key = (id(art), art_rect.size)
            if key != self._scaled_key:
                self._scaled_art = pygame.transform.smoothscale(art.surface.convert(), art_rect.size)
                self._scaled_key = key
            screen.blit(self._scaled_art, art_rect)

        self._draw_text(state["title"], layout["title"], self._config.color_text)
        self._draw_text(state["artist"], layout["artist"], self._config.color_dim_text)

        pygame.display.flip()

    def _draw_text(self, text: str, rect: pygame.Rect, color: tuple) -> None:
        if not text or rect.width <= 0:
            return
        rendered = self._font.render(text, True, color)
        # Clip long text to the text column
        self._screen.blit(rendered, rect.topleft, pygame.Rect(0, 0, rect.width, rendered.get_height()))

    def run(self, monitor: MetadataMonitor) -> None:
        """Draw frames until the window is closed or the metadata feed ends."""
        self.setup_pygame()
        clock = pygame.time.Clock()
        self.running = True

        try:
            monitor.start()
            while self.running:
                self.handle_events()
                if not monitor.poll():
                    log.info("Metadata feed closed, closing display")
                    break
                self.draw()
                clock.tick(self._config.target_fps)
        finally:
            monitor.stop()
            pygame.quit()
