"""Interactive region picker.

Shows the source image in a matplotlib window. Each mouse drag selects a
circle whose diameter is the drag; a rectangle outline follows the pointer
while dragging and selected circles stay drawn. Escape, Enter or closing
the window ends the selection, which also ends by itself once the region
limit is reached.
"""

from __future__ import annotations

import logging
from typing import Any

from .config import DEFAULT_ANIMATION_CONFIG
from .error_handling import InputError
from .models import ImageBuffer, MotionRegion
from .regions import MotionMode, region_from_drag

logger = logging.getLogger(__name__)

FINISH_KEYS = ("escape", "enter")
OUTLINE_COLOR = "white"
REGION_COLOR = "yellow"


def _import_pyplot() -> Any:
    try:
        import matplotlib.pyplot as plt
    except ImportError as e:
        raise InputError(
            "The interactive picker needs matplotlib; install it with "
            "`pip install cinemagif[picker]` or pass regions with --region / --regions-file",
            cause=e,
        ) from e
    return plt


class RegionPicker:
    """Collect motion regions from mouse drags over an image.

    The event handlers only read ``xdata``, ``ydata``, ``button`` and
    ``key`` from the events they receive, and draw only when an axes is
    attached, so they can be driven without a window.
    """

    def __init__(
        self,
        mode: int | MotionMode = MotionMode.BOTH,
        max_regions: int = DEFAULT_ANIMATION_CONFIG.MAX_REGIONS,
    ):
        self.mode = mode
        self.max_regions = max_regions
        self.regions: list[MotionRegion] = []
        self.finished = False

        self._start: tuple[float, float] | None = None
        self._figure: Any = None
        self._axes: Any = None
        self._outline: Any = None

    def pick(self, image: ImageBuffer, title: str = "cinemagif") -> list[MotionRegion]:
        """Open a window over ``image`` and block until selection ends."""
        plt = _import_pyplot()

        self._figure, self._axes = plt.subplots()
        self._axes.imshow(image.samples)
        self._axes.set_title(
            f"{title}: drag to select up to {self.max_regions} regions, Esc to finish"
        )
        self._axes.axis("off")

        canvas = self._figure.canvas
        canvas.mpl_connect("button_press_event", self._on_press)
        canvas.mpl_connect("motion_notify_event", self._on_motion)
        canvas.mpl_connect("button_release_event", self._on_release)
        canvas.mpl_connect("key_press_event", self._on_key)
        canvas.mpl_connect("close_event", self._on_close)

        plt.show()

        logger.info(f"Selected {len(self.regions)} region(s) interactively")
        return list(self.regions)

    def _finish(self) -> None:
        if self.finished:
            return
        self.finished = True
        if self._figure is not None:
            plt = _import_pyplot()
            plt.close(self._figure)

    def _on_press(self, event: Any) -> None:
        if self.finished or event.button != 1 or event.xdata is None or event.ydata is None:
            return
        self._start = (event.xdata, event.ydata)

    def _on_motion(self, event: Any) -> None:
        if self._start is None or event.xdata is None or event.ydata is None:
            return
        if self._axes is None:
            return

        from matplotlib.patches import Rectangle

        x0, y0 = self._start
        if self._outline is not None:
            self._outline.remove()
        self._outline = Rectangle(
            (min(x0, event.xdata), min(y0, event.ydata)),
            abs(event.xdata - x0),
            abs(event.ydata - y0),
            fill=False,
            edgecolor=OUTLINE_COLOR,
            linestyle="--",
        )
        self._axes.add_patch(self._outline)
        self._figure.canvas.draw_idle()

    def _on_release(self, event: Any) -> None:
        if self._start is None:
            return
        start, self._start = self._start, None

        if self._outline is not None:
            self._outline.remove()
            self._outline = None

        if event.xdata is None or event.ydata is None:
            return

        region = region_from_drag(start, (event.xdata, event.ydata), self.mode)
        if region is None:
            logger.debug("Ignoring drag shorter than two pixels")
            return

        self.regions.append(region)
        logger.debug(
            f"Region {len(self.regions)}: center ({region.x}, {region.y}), radius {region.radius}"
        )
        self._draw_region(region)

        if len(self.regions) >= self.max_regions:
            self._finish()

    def _on_key(self, event: Any) -> None:
        if event.key in FINISH_KEYS:
            self._finish()

    def _on_close(self, event: Any) -> None:
        self.finished = True

    def _draw_region(self, region: MotionRegion) -> None:
        if self._axes is None:
            return

        from matplotlib.patches import Circle

        self._axes.add_patch(
            Circle((region.x, region.y), region.radius, fill=False, edgecolor=REGION_COLOR)
        )
        self._figure.canvas.draw_idle()


def pick_regions(
    image: ImageBuffer,
    mode: int | MotionMode = MotionMode.BOTH,
    max_regions: int = DEFAULT_ANIMATION_CONFIG.MAX_REGIONS,
) -> list[MotionRegion]:
    """Let the user drag out regions over ``image``.

    Raises:
        InputError: If matplotlib is unavailable or no region was selected
    """
    regions = RegionPicker(mode=mode, max_regions=max_regions).pick(image)
    if not regions:
        raise InputError("No regions selected")
    return regions
