"""Nearest-color mapping of RGB frames onto a palette."""

from __future__ import annotations

import numpy as np

from .config import DEFAULT_ENCODER_CONFIG
from .models import ImageBuffer, IndexedFrame, Palette


def nearest_palette_indices(
    colors: np.ndarray,
    palette: np.ndarray,
    chunk_size: int = DEFAULT_ENCODER_CONFIG.MAPPING_CHUNK_SIZE,
) -> np.ndarray:
    """Index of the closest palette entry for each row of ``colors``.

    Closeness is squared RGB distance; on a tie the lowest index wins, exactly
    as a linear scan over the palette would pick it.

    Args:
        colors: ``(n, 3)`` array of RGB colors
        palette: ``(k, 3)`` array of RGB palette entries
        chunk_size: Colors compared per batch, bounding the ``n x k`` distance matrix

    Returns:
        ``(n,)`` uint8 array of palette indices
    """
    colors = np.asarray(colors, dtype=np.int32).reshape(-1, 3)
    palette = np.asarray(palette, dtype=np.int32).reshape(-1, 3)
    result = np.empty(len(colors), dtype=np.uint8)

    for start in range(0, len(colors), chunk_size):
        chunk = colors[start : start + chunk_size]
        diff = chunk[:, None, :] - palette[None, :, :]
        # At most 3 * 255**2, well inside int32
        distance = np.einsum("ijk,ijk->ij", diff, diff)
        # argmin returns the first occurrence of the minimum
        result[start : start + chunk_size] = distance.argmin(axis=1)

    return result


def index_frame(frame: ImageBuffer, palette: Palette) -> IndexedFrame:
    """Map every pixel of ``frame`` to its nearest palette index."""
    pixels = frame.samples.reshape(-1, frame.channels)

    # Map each distinct color once, then scatter back to pixel positions
    unique_colors, inverse = np.unique(pixels, axis=0, return_inverse=True)
    nearest = nearest_palette_indices(unique_colors, palette.to_array())
    indices = nearest[inverse.reshape(-1)]

    return IndexedFrame(frame.width, frame.height, indices)
