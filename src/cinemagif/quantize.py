"""Median-cut color quantization.

The palette is built from every pixel of a single frame (duplicates kept, so
frequent colors pull their box averages). Boxes are split until the requested
number exists or no box has any spread left:

1. choose the box with the largest single-channel range (lowest index wins
   a tie),
2. stable-sort it along that channel (a tie between channels picks green,
   then blue, then red),
3. cut at ``count // 2``; the lower half stays at the box's index and the
   upper half, median included, is appended.

Each surviving box is represented by its integer-truncated mean color.
"""

from __future__ import annotations

import logging

import numpy as np

from .config import DEFAULT_ENCODER_CONFIG
from .error_handling import InputError, InternalError
from .models import Color, ImageBuffer, Palette

logger = logging.getLogger(__name__)

RED, GREEN, BLUE = 0, 1, 2

# Channel preferred when several share the widest range
SPLIT_PRIORITY = (GREEN, BLUE, RED)


class ColorBox:
    """A slice of the color distribution."""

    def __init__(self, colors: np.ndarray):
        self.colors = np.asarray(colors, dtype=np.uint8).reshape(-1, 3)
        self.average: Color | None = None
        self._ranges: np.ndarray | None = None

    @property
    def count(self) -> int:
        return len(self.colors)

    def channel_ranges(self) -> np.ndarray:
        """``max - min`` of R, G and B; zeros for an empty box."""
        if self._ranges is None:
            if self.count == 0:
                self._ranges = np.zeros(3, dtype=np.int64)
            else:
                self._ranges = self.colors.max(axis=0).astype(np.int64) - self.colors.min(axis=0)
        return self._ranges

    def widest_range(self) -> int:
        return int(self.channel_ranges().max())

    def split_channel(self) -> int:
        ranges = self.channel_ranges()
        widest = ranges.max()
        for channel in SPLIT_PRIORITY:
            if ranges[channel] == widest:
                return channel
        raise InternalError(f"No widest channel among ranges {ranges.tolist()}")

    def can_split(self) -> bool:
        # A non-zero range implies at least two colors
        return self.widest_range() > 0

    def split(self) -> tuple[ColorBox, ColorBox]:
        """Cut at the median of the widest channel."""
        if not self.can_split():
            raise InternalError(f"Cannot split a box of {self.count} colors with no spread")

        channel = self.split_channel()
        order = np.argsort(self.colors[:, channel], kind="stable")
        ordered = self.colors[order]
        median = self.count // 2
        return ColorBox(ordered[:median]), ColorBox(ordered[median:])

    def compute_average(self) -> Color:
        if self.count == 0:
            raise InternalError("Empty color box survived median cut")
        totals = self.colors.sum(axis=0, dtype=np.uint64)
        r, g, b = (int(total) // self.count for total in totals)
        self.average = Color(r, g, b)
        return self.average

    def __repr__(self) -> str:
        return f"ColorBox(count={self.count}, ranges={self.channel_ranges().tolist()})"


def _validate_color_depth(color_depth: int) -> None:
    if not isinstance(color_depth, int) or not 1 <= color_depth <= 256:
        raise InputError(f"Color depth must be between 1 and 256, got {color_depth}")


def median_cut(frame: ImageBuffer, color_depth: int = DEFAULT_ENCODER_CONFIG.COLOR_DEPTH) -> list[ColorBox]:
    """Partition the frame's pixels into at most ``color_depth`` boxes.

    Every pixel of ``frame`` ends up in exactly one box.
    """
    _validate_color_depth(color_depth)

    boxes = [ColorBox(frame.samples.reshape(-1, frame.channels))]

    while len(boxes) < color_depth:
        best_index = -1
        best_range = 0
        for index, box in enumerate(boxes):
            box_range = box.widest_range()
            if box_range > best_range:
                best_range = box_range
                best_index = index

        if best_index < 0:
            logger.debug(f"Median cut stopped early with {len(boxes)} boxes")
            break

        lower, upper = boxes[best_index].split()
        boxes[best_index] = lower
        boxes.append(upper)

    return boxes


def quantize(frame: ImageBuffer, color_depth: int = DEFAULT_ENCODER_CONFIG.COLOR_DEPTH) -> Palette:
    """Build a palette of at most ``color_depth`` colors for ``frame``."""
    boxes = median_cut(frame, color_depth)
    palette = Palette([box.compute_average() for box in boxes])
    logger.debug(f"Built {len(palette)}-color palette from {frame.width}x{frame.height} frame")
    return palette
