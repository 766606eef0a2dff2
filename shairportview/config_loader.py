"""
Configuration loader for shairport-view.

Supports loading configuration from YAML files with environment variable overrides.
"""

import logging
import os
from typing import Optional

import yaml

from .config import AppConfig, DecoderConfig, DisplayConfig, FeedConfig

log = logging.getLogger("config")

DEFAULT_CONFIG_PATH = "config.yaml"


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load configuration from file with environment variable overrides.

    Args:
        config_path: Path to YAML config file. Defaults to "config.yaml"

    Returns:
        AppConfig instance with loaded settings
    """
    config = AppConfig.create_default()

    config_path = config_path or DEFAULT_CONFIG_PATH
    if os.path.exists(config_path):
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config_data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            # Log error but continue with defaults
            log.warning("Could not load config from %s: %s", config_path, e)
            config_data = None

        if config_data:
            apply_config_data(config, config_data)

    apply_env_overrides(config)

    return config


def apply_config_data(config: AppConfig, config_data: dict) -> None:
    """Apply the sections of a parsed YAML document to ``config``."""
    if "feed" in config_data:
        feed_data = config_data["feed"] or {}
        defaults = FeedConfig()
        config.feed = FeedConfig(
            pipe_path=feed_data.get("pipe_path"),
            default_pipe_path=feed_data.get("default_pipe_path", defaults.default_pipe_path),
            idle_sleep_seconds=feed_data.get("idle_sleep_seconds", defaults.idle_sleep_seconds),
            poll_interval_seconds=feed_data.get("poll_interval_seconds", defaults.poll_interval_seconds),
            thread_join_timeout=feed_data.get("thread_join_timeout", defaults.thread_join_timeout),
            daemon_threads=feed_data.get("daemon_threads", defaults.daemon_threads),
            stop_on_xml_error=feed_data.get("stop_on_xml_error", defaults.stop_on_xml_error),
        )

    if "decoder" in config_data:
        decoder_data = config_data["decoder"] or {}
        config.decoder = DecoderConfig(
            default_art_path=decoder_data.get("default_art_path"),
            hex_error_text=decoder_data.get("hex_error_text", DecoderConfig().hex_error_text),
        )

    if "display" in config_data:
        display_data = config_data["display"] or {}
        known = set(DisplayConfig.__dataclass_fields__)
        unknown = set(display_data) - known
        if unknown:
            log.warning("Ignoring unknown display settings: %s", ", ".join(sorted(unknown)))
        config.display = DisplayConfig(**{k: v for k, v in display_data.items() if k in known})

    config.debug = config_data.get("debug", False)
    config.log_level = config_data.get("log_level", "INFO")


def apply_env_overrides(config: AppConfig) -> None:
    """Apply environment variable overrides to configuration."""
    if os.getenv("SHAIRPORT_VIEW_PIPE"):
        config.feed.pipe_path = os.getenv("SHAIRPORT_VIEW_PIPE")

    if os.getenv("SHAIRPORT_VIEW_DEFAULT_ART"):
        config.decoder.default_art_path = os.getenv("SHAIRPORT_VIEW_DEFAULT_ART")

    # Global settings
    if os.getenv("DEBUG"):
        config.debug = os.getenv("DEBUG").lower() in ("true", "1", "yes")

    if os.getenv("LOG_LEVEL"):
        config.log_level = os.getenv("LOG_LEVEL").upper()
