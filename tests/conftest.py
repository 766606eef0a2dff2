"""Shared fixtures for the shairport-view tests."""

import base64
import os

# pygame must not try to open a real window or audio device
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import pygame  # noqa: E402
import pytest  # noqa: E402

requires_image_ext = pytest.mark.skipif(
    not pygame.image.get_extended(), reason="pygame built without SDL_image"
)


def b64(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def item_line(type_hex: str, code_hex: str, data: str) -> str:
    """A complete single-line shairport-sync item."""
    return (
        f"<item><type>{type_hex}</type><code>{code_hex}</code>"
        f'<length>{len(data)}</length><data encoding="base64">{data}</data></item>'
    )


def _image_bytes(tmp_path, filename, size, color):
    surface = pygame.Surface(size)
    surface.fill(color)
    path = tmp_path / filename
    pygame.image.save(surface, str(path))
    return path.read_bytes()


@pytest.fixture
def png_bytes(tmp_path):
    """A 16x12 PNG image."""
    if not pygame.image.get_extended():
        pytest.skip("pygame built without SDL_image")
    return _image_bytes(tmp_path, "cover.png", (16, 12), (200, 30, 30))


@pytest.fixture
def jpeg_bytes(tmp_path):
    """A 20x10 JPEG image."""
    if not pygame.image.get_extended():
        pytest.skip("pygame built without SDL_image")
    return _image_bytes(tmp_path, "cover.jpg", (20, 10), (30, 30, 200))
