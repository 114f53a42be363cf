"""Multiprocessing support for frame synthesis.

Frames of a loop are independent of each other, so they can be rendered in
separate worker processes. The source image and regions are shipped to
each worker once through the pool initializer; each task then only carries
a frame index. Results are reassembled in frame order, which makes the
parallel path byte-identical to the sequential one.
"""

from __future__ import annotations

import logging
import multiprocessing as mp
import time
from collections.abc import Callable, Sequence
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass

import numpy as np

from .error_handling import InternalError, ResourceError
from .models import ImageBuffer, MotionRegion
from .warp import DisplacementModel, frame_phase


@dataclass
class FrameWarpTask:
    """Task specification for parallel frame warping."""

    frame_index: int
    frame_count: int


@dataclass
class FrameWarpResult:
    """Result from parallel frame warping."""

    frame_index: int
    success: bool
    samples: np.ndarray | None = None
    error_type: str | None = None
    error_message: str | None = None
    generation_time: float = 0.0


# Per-process state populated by _init_worker
_worker_source: ImageBuffer | None = None
_worker_model: DisplacementModel | None = None


def _init_worker(samples: np.ndarray, regions: Sequence[MotionRegion]) -> None:
    global _worker_source, _worker_model
    _worker_source = ImageBuffer.from_array(samples)
    _worker_model = DisplacementModel(_worker_source.width, _worker_source.height, regions)


def _warp_single_frame(task: FrameWarpTask) -> FrameWarpResult:
    """Worker function rendering one frame in a pool process."""
    start_time = time.time()

    try:
        if _worker_source is None or _worker_model is None:
            raise RuntimeError("worker process was not initialized")

        frame = _worker_model.render(
            _worker_source, frame_phase(task.frame_index, task.frame_count)
        )
        return FrameWarpResult(
            frame_index=task.frame_index,
            success=True,
            samples=frame.samples,
            generation_time=time.time() - start_time,
        )

    except Exception as e:
        return FrameWarpResult(
            frame_index=task.frame_index,
            success=False,
            error_type=type(e).__name__,
            error_message=str(e),
            generation_time=time.time() - start_time,
        )


class ParallelFrameWarper:
    """Render the frames of a loop across worker processes."""

    def __init__(
        self,
        max_workers: int | None = None,
        logger: logging.Logger | None = None,
    ):
        """Initialize the parallel frame warper.

        Args:
            max_workers: Maximum number of worker processes (default: CPU count)
            logger: Logger instance for debugging
        """
        self.max_workers = max_workers or mp.cpu_count()
        self.logger = logger or logging.getLogger(__name__)

    def warp_frames_parallel(
        self,
        src: ImageBuffer,
        regions: Sequence[MotionRegion],
        frame_count: int,
        progress_callback: Callable[[int, int], None] | None = None,
    ) -> list[ImageBuffer]:
        """Warp all frames of the loop in parallel.

        Args:
            src: Source image
            regions: Motion regions
            frame_count: Frames per loop
            progress_callback: Optional callback for progress updates (completed, total)

        Returns:
            Frames in loop order

        Raises:
            ResourceError: If a worker ran out of memory
            InternalError: If a worker failed for any other reason
        """
        tasks = [FrameWarpTask(index, frame_count) for index in range(frame_count)]
        workers = min(self.max_workers, len(tasks))
        start_time = time.time()

        self.logger.info(
            f"Starting parallel frame warp: {len(tasks)} frames with {workers} workers"
        )

        results: list[FrameWarpResult] = []
        with ProcessPoolExecutor(
            max_workers=workers,
            initializer=_init_worker,
            initargs=(src.samples, list(regions)),
        ) as executor:
            futures = [executor.submit(_warp_single_frame, task) for task in tasks]

            for future in as_completed(futures):
                result = future.result()
                if not result.success:
                    for pending in futures:
                        pending.cancel()
                    self._raise_for_failure(result)
                results.append(result)

                if progress_callback:
                    progress_callback(len(results), len(tasks))

        results.sort(key=lambda r: r.frame_index)

        elapsed_time = time.time() - start_time
        self.logger.info(
            f"Parallel frame warp completed: {len(results)} frames in {elapsed_time:.2f}s"
        )

        return [
            ImageBuffer(src.width, src.height, src.channels, result.samples)
            for result in results
        ]

    def _raise_for_failure(self, result: FrameWarpResult) -> None:
        message = f"Warping frame {result.frame_index} failed: {result.error_message}"
        self.logger.error(message)
        context = {"operation": "warp frames", "frame_index": result.frame_index}
        if result.error_type == "MemoryError":
            raise ResourceError(message, context=context)
        raise InternalError(message, context=context)
