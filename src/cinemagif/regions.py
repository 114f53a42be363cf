"""Motion region acquisition: mode templates, parsing, files and validation.

Regions reach the pipeline from three places, all producing the same
:class:`~cinemagif.models.MotionRegion` values:

- ``--region X,Y,R[,DX,DY[,FREQ[,FALLOFF]]]`` options on the command line
- a JSON regions file (a list of objects with ``x``, ``y``, ``radius`` and
  optional ``dx``, ``dy``, ``frequency``, ``falloff``)
- the interactive picker (:mod:`cinemagif.picker`), which turns mouse
  drags into regions through :func:`region_from_drag`

Amplitudes that are not given explicitly come from the motion mode chosen
at acquisition time.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from enum import IntEnum
from pathlib import Path
from typing import Any

from .config import DEFAULT_ANIMATION_CONFIG
from .error_handling import InputError, error_context, log_warning_with_context
from .io import load_json, save_json
from .models import MotionRegion

logger = logging.getLogger(__name__)


class MotionMode(IntEnum):
    """Direction template applied to newly acquired regions."""

    HORIZONTAL = 0
    VERTICAL = 1
    BOTH = 2


def motion_template(mode: int | MotionMode) -> tuple[float, float]:
    """Return the ``(dx, dy)`` amplitude for a motion mode.

    Raises:
        InputError: If the mode is unknown
    """
    amplitudes = DEFAULT_ANIMATION_CONFIG.MOTION_AMPLITUDES or {}
    try:
        return amplitudes[int(mode)]
    except (KeyError, ValueError) as e:
        raise InputError(
            f"Motion mode must be 0 (horizontal), 1 (vertical), or 2 (both), got {mode}"
        ) from e


def make_region(
    x: int,
    y: int,
    radius: int,
    mode: int | MotionMode = MotionMode.BOTH,
    frequency: float = DEFAULT_ANIMATION_CONFIG.DEFAULT_FREQUENCY,
    falloff: float = DEFAULT_ANIMATION_CONFIG.DEFAULT_FALLOFF,
) -> MotionRegion:
    """Create a region whose amplitude follows the motion mode template."""
    dx, dy = motion_template(mode)
    return MotionRegion(
        x=int(x), y=int(y), radius=int(radius), dx=dx, dy=dy,
        frequency=frequency, falloff=falloff,
    )


def region_from_drag(
    start: tuple[float, float],
    end: tuple[float, float],
    mode: int | MotionMode = MotionMode.BOTH,
) -> MotionRegion | None:
    """Turn a press/release drag into a region.

    The drag is the diameter of the circle: the center is the integer
    midpoint and the radius half the (truncated) drag length. Drags too
    short to give a radius of at least one pixel return None.
    """
    start_x, start_y = int(start[0]), int(start[1])
    end_x, end_y = int(end[0]), int(end[1])

    center_x = (start_x + end_x) // 2
    center_y = (start_y + end_y) // 2
    radius = int(math.sqrt((start_x - end_x) ** 2 + (start_y - end_y) ** 2)) // 2

    if radius <= 0:
        return None
    return make_region(center_x, center_y, radius, mode)


def parse_region_spec(text: str, mode: int | MotionMode = MotionMode.BOTH) -> MotionRegion:
    """Parse ``X,Y,R[,DX,DY[,FREQ[,FALLOFF]]]`` into a region.

    Raises:
        InputError: If the text is malformed or describes an invalid region
    """
    parts = [part.strip() for part in text.split(",")]
    if len(parts) not in (3, 5, 6, 7):
        raise InputError(
            f"Invalid region {text!r}: expected X,Y,R[,DX,DY[,FREQ[,FALLOFF]]]"
        )

    try:
        x, y, radius = (int(value) for value in parts[:3])
        if len(parts) >= 5:
            dx, dy = float(parts[3]), float(parts[4])
        else:
            dx, dy = motion_template(mode)
        frequency = float(parts[5]) if len(parts) >= 6 else DEFAULT_ANIMATION_CONFIG.DEFAULT_FREQUENCY
        falloff = float(parts[6]) if len(parts) == 7 else DEFAULT_ANIMATION_CONFIG.DEFAULT_FALLOFF
        return MotionRegion(x, y, radius, dx, dy, frequency=frequency, falloff=falloff)
    except ValueError as e:
        raise InputError(f"Invalid region {text!r}: {e}") from e


def region_from_dict(data: dict[str, Any], mode: int | MotionMode = MotionMode.BOTH) -> MotionRegion:
    """Build a region from one entry of a regions file."""
    missing = [key for key in ("x", "y", "radius") if key not in data]
    if missing:
        raise InputError(f"Region entry {data} is missing {', '.join(missing)}")

    default_dx, default_dy = motion_template(mode)
    try:
        return MotionRegion(
            x=int(data["x"]),
            y=int(data["y"]),
            radius=int(data["radius"]),
            dx=float(data.get("dx", default_dx)),
            dy=float(data.get("dy", default_dy)),
            frequency=float(data.get("frequency", DEFAULT_ANIMATION_CONFIG.DEFAULT_FREQUENCY)),
            falloff=float(data.get("falloff", DEFAULT_ANIMATION_CONFIG.DEFAULT_FALLOFF)),
        )
    except (TypeError, ValueError) as e:
        raise InputError(f"Invalid region entry {data}: {e}") from e


def region_to_dict(region: MotionRegion) -> dict[str, Any]:
    return {
        "x": region.x,
        "y": region.y,
        "radius": region.radius,
        "dx": region.dx,
        "dy": region.dy,
        "frequency": region.frequency,
        "falloff": region.falloff,
    }


def load_regions_file(path: Path, mode: int | MotionMode = MotionMode.BOTH) -> list[MotionRegion]:
    """Load regions from a JSON file.

    Accepts either a bare list of region objects or ``{"regions": [...]}``.
    """
    with error_context(f"read regions file {path}", InputError, context={"path": str(path)}):
        data = load_json(path)

    if isinstance(data, dict):
        data = data.get("regions")
    if not isinstance(data, list):
        raise InputError(f"Regions file {path} must contain a list of regions")

    regions = []
    for entry in data:
        if not isinstance(entry, dict):
            raise InputError(f"Regions file {path} contains a non-object entry: {entry!r}")
        regions.append(region_from_dict(entry, mode))
    return regions


def save_regions_file(path: Path, regions: Sequence[MotionRegion]) -> None:
    """Write regions in the format read by :func:`load_regions_file`."""
    save_json({"regions": [region_to_dict(r) for r in regions]}, path)


def validate_regions(
    regions: Sequence[MotionRegion],
    width: int,
    height: int,
    max_regions: int = DEFAULT_ANIMATION_CONFIG.MAX_REGIONS,
) -> list[MotionRegion]:
    """Check the region list handed to the synthesizer.

    Regions that can never move a pixel, or whose center lies outside the
    image, are kept but reported.

    Raises:
        InputError: If there are no regions or more than ``max_regions``
    """
    if not regions:
        raise InputError("No regions selected")
    if len(regions) > max_regions:
        raise InputError(f"Too many regions: {len(regions)} (maximum {max_regions})")

    for index, region in enumerate(regions):
        if not region.is_active:
            log_warning_with_context(
                f"Region {index + 1} has no effect",
                context={"radius": region.radius, "dx": region.dx, "dy": region.dy},
                logger=logger,
            )
        elif not (0 <= region.x < width and 0 <= region.y < height):
            log_warning_with_context(
                f"Region {index + 1} is centered outside the image",
                context={"center": (region.x, region.y), "size": (width, height)},
                logger=logger,
            )

    return list(regions)
