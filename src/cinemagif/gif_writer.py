"""Animated GIF (89a) writer with a single global palette.

Layout of the written stream::

    "GIF89a"
    logical screen descriptor + global color table
    NETSCAPE2.0 application extension (loop count)
    per frame:
        graphics control extension (delay)
        image descriptor (full canvas, no local table)
        LZW minimum code size + image data sub-blocks
    trailer (0x3B)

The palette comes from median-cut quantization of the first frame and is
reused for every frame, which keeps colors stable across the loop.
"""

from __future__ import annotations

import logging
import struct
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from .config import DEFAULT_ANIMATION_CONFIG, DEFAULT_ENCODER_CONFIG
from .error_handling import EncodingError, InputError, error_context
from .io import atomic_write
from .lzw import MAX_SUB_BLOCK, LzwEncoder, minimum_code_size, pack_sub_blocks
from .models import RGB_CHANNELS, ImageBuffer, IndexedFrame, Palette
from .palette_map import index_frame
from .quantize import quantize

logger = logging.getLogger(__name__)

GIF_SIGNATURE = b"GIF89a"
EXTENSION_INTRODUCER = 0x21
GRAPHIC_CONTROL_LABEL = 0xF9
APPLICATION_LABEL = 0xFF
IMAGE_SEPARATOR = 0x2C
TRAILER = 0x3B

NETSCAPE_IDENTIFIER = b"NETSCAPE2.0"

# Global color table present, 8 bits of color resolution, not sorted
SCREEN_FLAGS = 0x80 | (7 << 4)

# Disposal method 1 (leave in place), no user input, no transparency
GCE_FLAGS = 0x04

ProgressCallback = Callable[[int, int], None]


def logical_screen_descriptor(width: int, height: int, palette: Palette) -> bytes:
    packed = SCREEN_FLAGS | (palette.table_bits - 1)
    return struct.pack("<HHBBB", width, height, packed, 0, 0)


def loop_extension(loop_count: int = 0) -> bytes:
    """NETSCAPE2.0 block; a loop count of 0 repeats forever."""
    return (
        bytes((EXTENSION_INTRODUCER, APPLICATION_LABEL, len(NETSCAPE_IDENTIFIER)))
        + NETSCAPE_IDENTIFIER
        + bytes((3, 1))
        + struct.pack("<H", loop_count)
        + b"\x00"
    )


def graphics_control_extension(delay_cs: int) -> bytes:
    return bytes((EXTENSION_INTRODUCER, GRAPHIC_CONTROL_LABEL, 4, GCE_FLAGS)) + struct.pack(
        "<HBB", delay_cs, 0, 0
    )


def image_descriptor(width: int, height: int) -> bytes:
    return bytes((IMAGE_SEPARATOR,)) + struct.pack("<HHHHB", 0, 0, width, height, 0)


@dataclass
class GifWriteResult:
    """Summary of a written animation."""

    path: Path
    frame_count: int
    width: int
    height: int
    palette_size: int
    delay_cs: int
    bytes_written: int
    encode_seconds: float = 0.0


class AnimatedGifWriter:
    """Encode RGB frames into a looping GIF file."""

    def __init__(
        self,
        path: Path,
        delay_cs: int = DEFAULT_ANIMATION_CONFIG.DEFAULT_DELAY_CS,
        color_depth: int = DEFAULT_ENCODER_CONFIG.COLOR_DEPTH,
        loop_count: int = DEFAULT_ENCODER_CONFIG.LOOP_COUNT,
        progress: ProgressCallback | None = None,
    ):
        if not 0 <= delay_cs <= DEFAULT_ANIMATION_CONFIG.MAX_DELAY_CS:
            raise InputError(
                f"Delay must be between 0 and {DEFAULT_ANIMATION_CONFIG.MAX_DELAY_CS} "
                f"hundredths of a second, got {delay_cs}"
            )
        if not 0 <= loop_count <= 0xFFFF:
            raise InputError(f"Loop count must fit in 16 bits, got {loop_count}")

        self.path = Path(path)
        self.delay_cs = delay_cs
        self.color_depth = color_depth
        self.loop_count = loop_count
        self.progress = progress
        self._bytes_written = 0

    def write(self, frames: Sequence[ImageBuffer]) -> GifWriteResult:
        """Quantize, index and write ``frames`` in order.

        Raises:
            InputError: If the frames are empty, non-RGB or differ in size
            EncodingError: If writing any part of the file fails
        """
        self._validate_frames(frames)
        start_time = time.time()
        first = frames[0]

        with error_context("build global palette", context={"path": str(self.path)}):
            palette = quantize(first, self.color_depth)
        logger.info(f"Built global palette with {len(palette)} colors from frame 0")

        self._bytes_written = 0
        # Failures of the individual steps are typed inside; this catches open and rename
        with error_context(f"write output file {self.path}", EncodingError):
            with atomic_write(self.path, "wb") as fh:
                self._write_header(fh, first.width, first.height, palette)
                for frame_index, frame in enumerate(frames):
                    self._write_frame(fh, frame_index, frame, palette)
                    if self.progress:
                        self.progress(frame_index + 1, len(frames))
                self._put(fh, bytes((TRAILER,)), "write trailer")

        result = GifWriteResult(
            path=self.path,
            frame_count=len(frames),
            width=first.width,
            height=first.height,
            palette_size=len(palette),
            delay_cs=self.delay_cs,
            bytes_written=self._bytes_written,
            encode_seconds=time.time() - start_time,
        )
        logger.info(
            f"Wrote {result.frame_count} frame(s) to {self.path} "
            f"({result.bytes_written} bytes, {result.encode_seconds:.2f}s)"
        )
        return result

    @staticmethod
    def _validate_frames(frames: Sequence[ImageBuffer]) -> None:
        if not frames:
            raise InputError("At least one frame is required")

        first = frames[0]
        for index, frame in enumerate(frames):
            if frame.channels != RGB_CHANNELS:
                raise InputError(f"Frame {index} has {frame.channels} channels, expected 3")
            if (frame.width, frame.height) != (first.width, first.height):
                raise InputError(
                    f"Frame {index} is {frame.width}x{frame.height}, "
                    f"expected {first.width}x{first.height}"
                )
        if first.width > 0xFFFF or first.height > 0xFFFF:
            raise InputError(f"Frame size {first.width}x{first.height} exceeds GIF limits")

    def _put(self, fh: BinaryIO, data: bytes, operation: str) -> None:
        with error_context(operation, EncodingError, context={"path": str(self.path)}):
            fh.write(data)
        self._bytes_written += len(data)

    def _write_header(self, fh: BinaryIO, width: int, height: int, palette: Palette) -> None:
        self._put(
            fh,
            GIF_SIGNATURE + logical_screen_descriptor(width, height, palette) + palette.to_table_bytes(),
            "write screen descriptor",
        )
        self._put(fh, loop_extension(self.loop_count), "write application extension")

    def _write_frame(
        self, fh: BinaryIO, frame_index: int, frame: ImageBuffer, palette: Palette
    ) -> None:
        self._put(
            fh,
            graphics_control_extension(self.delay_cs),
            f"write graphics control extension of frame {frame_index}",
        )

        with error_context(f"index frame {frame_index}"):
            indexed = index_frame(frame, palette)

        self._put(
            fh,
            image_descriptor(frame.width, frame.height),
            f"write image descriptor of frame {frame_index}",
        )
        self._write_image_data(fh, frame_index, indexed, palette)

    def _write_image_data(
        self, fh: BinaryIO, frame_index: int, indexed: IndexedFrame, palette: Palette
    ) -> None:
        min_code_size = minimum_code_size(palette.table_size)
        encoder = LzwEncoder(min_code_size)
        pending = bytearray()

        self._put(fh, bytes((min_code_size,)), f"write image data of frame {frame_index}")

        for line, row in enumerate(indexed.rows()):
            pending += encoder.feed(row)
            full = len(pending) - len(pending) % MAX_SUB_BLOCK
            if full:
                self._put(
                    fh,
                    pack_sub_blocks(pending[:full], terminate=False),
                    f"write image data line {line} of frame {frame_index}",
                )
                del pending[:full]

        pending += encoder.finish()
        self._put(
            fh,
            pack_sub_blocks(pending),
            f"write image data of frame {frame_index}",
        )


def write_gif(
    path: Path,
    frames: Sequence[ImageBuffer],
    delay_cs: int = DEFAULT_ANIMATION_CONFIG.DEFAULT_DELAY_CS,
    *,
    color_depth: int = DEFAULT_ENCODER_CONFIG.COLOR_DEPTH,
    loop_count: int = DEFAULT_ENCODER_CONFIG.LOOP_COUNT,
    progress: ProgressCallback | None = None,
) -> GifWriteResult:
    """Write ``frames`` as a looping GIF at ``path``."""
    writer = AnimatedGifWriter(
        path, delay_cs=delay_cs, color_depth=color_depth, loop_count=loop_count, progress=progress
    )
    return writer.write(frames)
