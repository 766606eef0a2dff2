"""
Cover art decoding.

shairport-sync sends cover art as JPEG or PNG. The two are told apart by the
first byte only: JPEG data starts with the 0xFF marker, anything else is
treated as PNG.
"""

import io
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import pygame

from .metadata import CorruptImageError, EmptyPayloadError
from .module_registry import module_registry

module_registry.register_module(
    name="art",
    description="Cover art classification and image decoding",
    logger_name="art",
    debug_flag="--debug-art",
    category="core",
)

log = module_registry.get_logger("art")

JPEG_MARKER = 0xFF

DEFAULT_ART_SIZE = 300
DEFAULT_ART_BG = (40, 40, 60)
DEFAULT_ART_FG = (170, 170, 170)


class ArtFormat(Enum):
    """Where a cover art image came from."""

    JPEG = "jpeg"
    PNG = "png"
    DEFAULT = "default"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, eq=False)
class CoverArt:
    """A decoded cover art image. Instances compare by identity."""

    format: ArtFormat
    surface: pygame.Surface

    @property
    def size(self) -> Tuple[int, int]:
        return self.surface.get_size()


def _load(payload: bytes, namehint: str) -> pygame.Surface:
    try:
        return pygame.image.load(io.BytesIO(payload), namehint)
    except pygame.error as e:
        raise CorruptImageError(f"{namehint} decoder rejected {len(payload)} bytes: {e}") from e


def decode_jpeg(payload: bytes) -> CoverArt:
    return CoverArt(ArtFormat.JPEG, _load(payload, "cover.jpg"))


def decode_png(payload: bytes) -> CoverArt:
    return CoverArt(ArtFormat.PNG, _load(payload, "cover.png"))


def classify_and_decode(payload: bytes) -> CoverArt:
    """
    Decode cover art bytes into an image.

    Args:
        payload: Raw image bytes from a PICT item

    Returns:
        CoverArt holding the decoded surface

    Raises:
        EmptyPayloadError: payload has no bytes
        CorruptImageError: the JPEG or PNG decoder rejected the bytes
    """
    if not payload:
        raise EmptyPayloadError("Invalid art bytes: empty payload")

    if payload[0] == JPEG_MARKER:
        log.debug("Decoding %d bytes of JPEG cover art", len(payload))
        return decode_jpeg(payload)

    log.debug("Decoding %d bytes of PNG cover art", len(payload))
    return decode_png(payload)


def load_default_art(path: Optional[str] = None) -> CoverArt:
    """Load the "no art" image from ``path``, or draw the built-in placeholder."""
    if path:
        try:
            return CoverArt(ArtFormat.DEFAULT, pygame.image.load(path))
        except (pygame.error, OSError) as e:
            log.warning("Could not load default art from %s, using placeholder: %s", path, e)

    surface = pygame.Surface((DEFAULT_ART_SIZE, DEFAULT_ART_SIZE))
    surface.fill(DEFAULT_ART_BG)
    inset = DEFAULT_ART_SIZE // 4
    note_rect = pygame.Rect(inset, inset, DEFAULT_ART_SIZE - 2 * inset, DEFAULT_ART_SIZE - 2 * inset)
    pygame.draw.rect(surface, DEFAULT_ART_FG, surface.get_rect(), 3)
    pygame.draw.circle(surface, DEFAULT_ART_FG, note_rect.center, note_rect.width // 2, 3)
    pygame.draw.circle(surface, DEFAULT_ART_FG, note_rect.center, note_rect.width // 10)
    return CoverArt(ArtFormat.DEFAULT, surface)
