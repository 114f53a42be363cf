"""Shared fixtures: small synthetic images built with numpy and Pillow."""

import logging
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from cinemagif.models import ImageBuffer, MotionRegion

BLACK = (0, 0, 0)
RED = (255, 0, 0)
GREEN = (0, 255, 0)
BLUE = (0, 0, 255)


def make_gradient(width: int, height: int) -> ImageBuffer:
    """Red ramps along x, green along y, blue along the diagonal."""
    ys, xs = np.mgrid[0:height, 0:width]
    samples = np.stack(
        [
            xs * 255 // max(width - 1, 1),
            ys * 255 // max(height - 1, 1),
            (xs + ys) * 255 // max(width + height - 2, 1),
        ],
        axis=-1,
    ).astype(np.uint8)
    return ImageBuffer.from_array(samples)


def make_solid(width: int, height: int, color: tuple[int, int, int]) -> ImageBuffer:
    samples = np.empty((height, width, 3), dtype=np.uint8)
    samples[:] = color
    return ImageBuffer.from_array(samples)


@pytest.fixture
def gray_image() -> ImageBuffer:
    """8x8 solid (128, 128, 128)."""
    return make_solid(8, 8, (128, 128, 128))


@pytest.fixture
def primaries_image() -> ImageBuffer:
    """4x1 row of black, red, green, blue."""
    return ImageBuffer.from_array(np.array([[BLACK, RED, GREEN, BLUE]], dtype=np.uint8))


@pytest.fixture
def gradient_image() -> ImageBuffer:
    return make_gradient(100, 100)


@pytest.fixture
def small_gradient() -> ImageBuffer:
    return make_gradient(24, 16)


@pytest.fixture
def center_region() -> MotionRegion:
    return MotionRegion(x=50, y=50, radius=20, dx=15.0, dy=10.0)


@pytest.fixture
def jpeg_path(tmp_path: Path) -> Path:
    """A 64x48 RGB JPEG on disk."""
    path = tmp_path / "photo.jpg"
    make_gradient(64, 48).to_pil().save(path, quality=95)
    return path


@pytest.fixture
def grayscale_jpeg_path(tmp_path: Path) -> Path:
    path = tmp_path / "gray.jpg"
    Image.new("L", (32, 32), 100).save(path)
    return path


@pytest.fixture(autouse=True)
def restore_root_logging():
    """Undo handlers installed by setup_logging during CLI runs."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
