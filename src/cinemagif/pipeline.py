"""End-to-end cinemagraph pipeline: load, acquire regions, warp, encode."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from .config import DEFAULT_ANIMATION_CONFIG, DEFAULT_RUNTIME_CONFIG
from .error_handling import EncodingError, InputError, error_context, log_info_with_context
from .gif_inspect import compute_file_sha256, inspect_gif
from .gif_writer import write_gif
from .io import load_source_image
from .models import ImageBuffer, MotionRegion
from .regions import MotionMode, validate_regions
from .warp import validate_frame_count, warp_frames

logger = logging.getLogger(__name__)

STAGE_WARP = "warp"
STAGE_ENCODE = "encode"

# Receives (stage, completed, total)
StageProgress = Callable[[str, int, int], None]

RegionSource = Callable[[ImageBuffer, MotionMode], Sequence[MotionRegion]]


@dataclass
class CinemagraphResult:
    """What a finished run produced."""

    output_path: Path
    frame_count: int
    delay_cs: int
    palette_size: int
    region_count: int
    bytes_written: int
    elapsed_seconds: float
    width: int = 0
    height: int = 0
    sha256: str = ""

    def summary_line(self) -> str:
        return (
            f"{self.output_path}: {self.width}x{self.height}, {self.frame_count} frames "
            f"at {self.delay_cs}/100 s, {self.palette_size} colors, "
            f"{self.region_count} region(s), {self.bytes_written} bytes "
            f"in {self.elapsed_seconds:.2f}s"
        )


def _stage_callback(progress: StageProgress | None, stage: str) -> Callable[[int, int], None] | None:
    if progress is None:
        return None

    def report(completed: int, total: int) -> None:
        progress(stage, completed, total)

    return report


def _verify_output(output_path: Path, frame_count: int, delay_cs: int) -> None:
    """Re-read the written file and check its frame structure."""
    with error_context(f"verify output file {output_path}", EncodingError):
        summary = inspect_gif(output_path)

    if summary.frame_count != frame_count or not summary.has_trailer:
        raise EncodingError(
            f"Output file {output_path} has {summary.frame_count} frame(s), expected {frame_count}",
            context={"operation": "verify output file"},
        )
    if any(delay != delay_cs for delay in summary.delays):
        raise EncodingError(
            f"Output file {output_path} has inconsistent frame delays {summary.delays}",
            context={"operation": "verify output file"},
        )
    logger.debug(
        f"Verified {output_path}: {summary.width}x{summary.height}, "
        f"{summary.frame_count} frames, loop count {summary.loop_count}"
    )


def build_cinemagraph(
    source: ImageBuffer,
    regions: Sequence[MotionRegion],
    output_path: Path,
    *,
    frame_count: int = DEFAULT_ANIMATION_CONFIG.DEFAULT_FRAME_COUNT,
    delay_cs: int = DEFAULT_ANIMATION_CONFIG.DEFAULT_DELAY_CS,
    workers: int = DEFAULT_RUNTIME_CONFIG.WORKERS,
    progress: StageProgress | None = None,
) -> CinemagraphResult:
    """Warp ``source`` by ``regions`` and write the loop to ``output_path``.

    Args:
        source: Decoded RGB source image
        regions: Motion regions, 1..10
        output_path: Destination GIF path
        frame_count: Frames per loop, 1..30
        delay_cs: Per-frame delay in hundredths of a second
        workers: Processes used for warping
        progress: Optional callback receiving (stage, completed, total)

    Raises:
        InputError: For invalid regions, frame count or delay
        ResourceError: If memory runs out
        EncodingError: If the output cannot be written
    """
    start_time = time.time()
    output_path = Path(output_path)

    validate_frame_count(frame_count)
    if not 0 <= delay_cs <= DEFAULT_ANIMATION_CONFIG.MAX_DELAY_CS:
        raise InputError(
            f"Delay must be between 0 and {DEFAULT_ANIMATION_CONFIG.MAX_DELAY_CS}, got {delay_cs}"
        )
    regions = validate_regions(regions, source.width, source.height)

    frames: list[ImageBuffer] = []
    try:
        with error_context("warp frames", context={"frame_count": frame_count}):
            frames = warp_frames(
                source,
                regions,
                frame_count,
                workers=workers,
                progress=_stage_callback(progress, STAGE_WARP),
            )

        write_result = write_gif(
            output_path,
            frames,
            delay_cs,
            progress=_stage_callback(progress, STAGE_ENCODE),
        )
    finally:
        frames.clear()

    _verify_output(output_path, frame_count, delay_cs)

    result = CinemagraphResult(
        output_path=output_path,
        frame_count=write_result.frame_count,
        delay_cs=delay_cs,
        palette_size=write_result.palette_size,
        region_count=len(regions),
        bytes_written=write_result.bytes_written,
        elapsed_seconds=time.time() - start_time,
        width=write_result.width,
        height=write_result.height,
        sha256=compute_file_sha256(output_path),
    )
    log_info_with_context(
        "Cinemagraph written",
        context={
            "path": output_path,
            "frames": result.frame_count,
            "colors": result.palette_size,
            "bytes": result.bytes_written,
            "seconds": f"{result.elapsed_seconds:.2f}",
        },
        logger=logger,
    )
    return result


def run_cinemagraph(
    input_path: Path,
    output_path: Path,
    regions: Sequence[MotionRegion] | None = None,
    *,
    region_source: RegionSource | None = None,
    mode: int | MotionMode = DEFAULT_ANIMATION_CONFIG.DEFAULT_MOTION_MODE,
    frame_count: int = DEFAULT_ANIMATION_CONFIG.DEFAULT_FRAME_COUNT,
    delay_cs: int = DEFAULT_ANIMATION_CONFIG.DEFAULT_DELAY_CS,
    workers: int = DEFAULT_RUNTIME_CONFIG.WORKERS,
    progress: StageProgress | None = None,
) -> CinemagraphResult:
    """Load ``input_path`` and build its cinemagraph.

    When ``regions`` is None they are requested from ``region_source``,
    which defaults to the interactive picker.
    """
    source = load_source_image(Path(input_path))
    logger.info(f"Loaded {input_path} ({source.width}x{source.height})")

    if regions is None:
        if region_source is None:
            from .picker import pick_regions

            region_source = pick_regions
        regions = list(region_source(source, MotionMode(int(mode))))

    return build_cinemagraph(
        source,
        regions,
        Path(output_path),
        frame_count=frame_count,
        delay_cs=delay_cs,
        workers=workers,
        progress=progress,
    )
