"""Cinemagif - turn a still photograph into a looping cinemagraph GIF."""

__version__: str = "0.1.0"
__author__: str = "Cinemagif Team"
__email__: str = "team@cinemagif.example"

# Public re-exports for convenience ---------------------------------------------------

# NOTE: keep imports lightweight; the interactive picker (matplotlib) is only
# imported when it is actually used.

from .error_handling import (
    CinemagifError,
    EncodingError,
    InputError,
    InternalError,
    ResourceError,
)
from .gif_writer import AnimatedGifWriter, GifWriteResult, write_gif
from .models import Color, ImageBuffer, IndexedFrame, MotionRegion, Palette
from .palette_map import index_frame
from .pipeline import CinemagraphResult, build_cinemagraph, run_cinemagraph
from .quantize import ColorBox, median_cut, quantize
from .regions import MotionMode, make_region
from .warp import warp_frame, warp_frames

__all__ = [
    "AnimatedGifWriter",
    "CinemagifError",
    "CinemagraphResult",
    "Color",
    "ColorBox",
    "EncodingError",
    "GifWriteResult",
    "ImageBuffer",
    "IndexedFrame",
    "InputError",
    "InternalError",
    "MotionMode",
    "MotionRegion",
    "Palette",
    "ResourceError",
    "build_cinemagraph",
    "index_frame",
    "make_region",
    "median_cut",
    "quantize",
    "run_cinemagraph",
    "warp_frame",
    "warp_frames",
    "write_gif",
]
