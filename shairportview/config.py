"""
Configuration management for shairport-view.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class FeedConfig:
    """Configuration for reading the metadata feed."""

    # Line source
    pipe_path: Optional[str] = None
    default_pipe_path: str = "/tmp/shairport-sync-metadata"

    # Timing configuration
    idle_sleep_seconds: float = 0.05
    poll_interval_seconds: float = 0.05
    thread_join_timeout: float = 1.0

    # Threading
    daemon_threads: bool = True

    # Error handling
    stop_on_xml_error: bool = False

    def get_effective_pipe_path(self) -> str:
        """Get the effective pipe path, falling back to default if not set."""
        return self.pipe_path or self.default_pipe_path


@dataclass
class DecoderConfig:
    """Configuration for the metadata decoder."""

    # Image shown when cover art cannot be decoded (None draws a placeholder)
    default_art_path: Optional[str] = None

    # Value used for type/code fields that are not valid hex
    hex_error_text: str = "XML Data Error"


@dataclass
class DisplayConfig:
    """Configuration for the pygame display."""

    title: str = "shairport-view"
    target_fps: int = 30

    # Window geometry
    window_width: int = 1200
    window_height: int = 900
    min_size: tuple = (640, 480)
    max_size: tuple = (1600, 1200)
    pad_size: int = 20

    # Text
    font_size: int = 45

    # Colors (RGB tuples)
    color_bg: tuple = (10, 10, 14)
    color_text: tuple = (230, 230, 230)
    color_dim_text: tuple = (170, 170, 170)


@dataclass
class AppConfig:
    """Main application configuration container."""

    feed: FeedConfig = field(default_factory=FeedConfig)
    decoder: DecoderConfig = field(default_factory=DecoderConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)

    # Global settings
    debug: bool = False
    log_level: str = "INFO"

    @classmethod
    def create_default(cls) -> "AppConfig":
        """Create a default configuration instance."""
        return cls()

    @classmethod
    def create_for_testing(cls) -> "AppConfig":
        """Create a configuration suitable for testing."""
        config = cls()
        config.feed.idle_sleep_seconds = 0.0
        config.feed.poll_interval_seconds = 0.01
        config.feed.thread_join_timeout = 0.1
        config.debug = True
        config.log_level = "DEBUG"
        return config
