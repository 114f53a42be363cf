"""Motion-warp synthesizer.

Each frame ``f`` of an ``N``-frame loop is the source image pulled through a
displacement field evaluated at phase ``2*pi*f/N``. A region contributes

    influence(x, y) * sin(phase * frequency) * (dx, dy)

where ``influence = 1 - (distance / radius) ** falloff`` inside the disk and
zero outside it. Contributions of overlapping regions add up. Destination
pixels sample the source at the rounded, edge-clamped displaced coordinate
(nearest neighbour), so frame ``N`` would equal frame ``0`` and the loop
closes without a seam.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence

import numpy as np

from .config import DEFAULT_ANIMATION_CONFIG
from .error_handling import InputError, ResourceError
from .models import ImageBuffer, MotionRegion

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


def frame_phase(index: int, frame_count: int) -> float:
    """Animation phase in radians of frame ``index``."""
    return 2.0 * math.pi * index / frame_count


def validate_frame_count(frame_count: int) -> None:
    max_frames = DEFAULT_ANIMATION_CONFIG.MAX_FRAMES
    if not isinstance(frame_count, int) or not 1 <= frame_count <= max_frames:
        raise InputError(f"Frame count must be between 1 and {max_frames}, got {frame_count}")


def _pixel_grid(width: int, height: int) -> tuple[np.ndarray, np.ndarray]:
    ys, xs = np.mgrid[0:height, 0:width]
    return xs, ys


def region_influence(region: MotionRegion, width: int, height: int) -> np.ndarray:
    """Per-pixel influence of ``region`` as an ``(H, W)`` float array.

    One at the center, falling to zero at the rim and staying zero outside.
    """
    if region.radius <= 0:
        return np.zeros((height, width), dtype=np.float64)

    xs, ys = _pixel_grid(width, height)
    distance = np.hypot(xs - region.x, ys - region.y)
    inside = distance <= region.radius
    influence = np.zeros((height, width), dtype=np.float64)
    influence[inside] = 1.0 - (distance[inside] / region.radius) ** region.falloff
    return influence


class DisplacementModel:
    """Phase-independent part of the displacement field.

    Influences depend only on geometry, so they are computed once per
    region and reused for every frame.
    """

    def __init__(self, width: int, height: int, regions: Sequence[MotionRegion]):
        self.width = width
        self.height = height
        self.regions = [region for region in regions if region.is_active]
        self._influences = [
            region_influence(region, width, height) for region in self.regions
        ]

    def field(self, phase: float) -> tuple[np.ndarray, np.ndarray]:
        """Total ``(dx, dy)`` displacement at ``phase``."""
        total_dx = np.zeros((self.height, self.width), dtype=np.float64)
        total_dy = np.zeros((self.height, self.width), dtype=np.float64)

        for region, influence in zip(self.regions, self._influences):
            weight = influence * math.sin(phase * region.frequency)
            if region.dx:
                total_dx += weight * region.dx
            if region.dy:
                total_dy += weight * region.dy

        return total_dx, total_dy

    def source_coordinates(self, phase: float) -> tuple[np.ndarray, np.ndarray]:
        """Clamped integer source coordinates sampled by each destination pixel."""
        total_dx, total_dy = self.field(phase)
        xs, ys = _pixel_grid(self.width, self.height)

        # Half-up rounding: floor(d + 0.5)
        src_x = xs + np.floor(total_dx + 0.5).astype(np.int64)
        src_y = ys + np.floor(total_dy + 0.5).astype(np.int64)

        np.clip(src_x, 0, self.width - 1, out=src_x)
        np.clip(src_y, 0, self.height - 1, out=src_y)
        return src_x, src_y

    def render(self, src: ImageBuffer, phase: float) -> ImageBuffer:
        if not self.regions:
            return src.copy()
        src_x, src_y = self.source_coordinates(phase)
        samples = src.samples[src_y, src_x]
        return ImageBuffer(src.width, src.height, src.channels, samples)


def displacement_field(
    width: int, height: int, regions: Sequence[MotionRegion], phase: float
) -> tuple[np.ndarray, np.ndarray]:
    """Summed ``(dx, dy)`` displacement of all regions at ``phase``."""
    return DisplacementModel(width, height, regions).field(phase)


def warp_frame(src: ImageBuffer, regions: Sequence[MotionRegion], phase: float) -> ImageBuffer:
    """Render a single warped frame at ``phase``."""
    return DisplacementModel(src.width, src.height, regions).render(src, phase)


def warp_frames(
    src: ImageBuffer,
    regions: Sequence[MotionRegion],
    frame_count: int,
    *,
    workers: int = 1,
    progress: ProgressCallback | None = None,
) -> list[ImageBuffer]:
    """Synthesize the ``frame_count`` frames of the loop.

    Args:
        src: Source image, never modified
        regions: Motion regions; order does not matter
        frame_count: Frames per loop, 1..30
        workers: Processes to spread frames over; 1 renders in-process
        progress: Optional callback receiving (completed, total)

    Returns:
        Frames in loop order, each with the source's dimensions

    Raises:
        InputError: If ``frame_count`` is out of range
        ResourceError: If frame buffers cannot be allocated
    """
    validate_frame_count(frame_count)

    if workers > 1 and frame_count > 1:
        from .multiprocessing_support import ParallelFrameWarper

        warper = ParallelFrameWarper(max_workers=workers, logger=logger)
        return warper.warp_frames_parallel(src, regions, frame_count, progress_callback=progress)

    logger.debug(
        f"Warping {frame_count} frames of {src.width}x{src.height} with {len(regions)} region(s)"
    )

    try:
        model = DisplacementModel(src.width, src.height, regions)
        frames = []
        for index in range(frame_count):
            frames.append(model.render(src, frame_phase(index, frame_count)))
            if progress:
                progress(index + 1, frame_count)
    except MemoryError as e:
        raise ResourceError(
            f"Out of memory while warping {frame_count} frames of {src.width}x{src.height}",
            cause=e,
            context={"operation": "warp frames"},
        ) from e

    return frames
