"""Value types shared by the warp synthesizer and the GIF encoder."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass

import numpy as np
from PIL import Image

RGB_CHANNELS = 3


@dataclass
class ImageBuffer:
    """Row-major 8-bit RGB image.

    ``samples`` has shape ``(height, width, channels)`` and is C-contiguous,
    so its flat layout is the usual ``R, G, B`` triple per pixel, row by row.
    """

    width: int
    height: int
    channels: int
    samples: np.ndarray

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Image dimensions must be positive, got {self.width}x{self.height}"
            )
        if self.channels != RGB_CHANNELS:
            raise ValueError(f"Only RGB images are supported, got {self.channels} channels")

        samples = np.ascontiguousarray(self.samples, dtype=np.uint8)
        expected = self.width * self.height * self.channels
        if samples.size != expected:
            raise ValueError(
                f"Sample count {samples.size} does not match "
                f"{self.width}x{self.height}x{self.channels} = {expected}"
            )
        self.samples = samples.reshape(self.height, self.width, self.channels)

    @classmethod
    def from_array(cls, array: np.ndarray) -> ImageBuffer:
        """Build an image from an ``(H, W, 3)`` array."""
        arr = np.asarray(array)
        if arr.ndim != 3:
            raise ValueError(f"Expected an (H, W, C) array, got shape {arr.shape}")
        if arr.dtype != np.uint8:
            if arr.min(initial=0) < 0 or arr.max(initial=0) > 255:
                raise ValueError("Sample values must be in range 0..255")
            arr = arr.astype(np.uint8)
        height, width, channels = arr.shape
        return cls(width=width, height=height, channels=channels, samples=arr)

    @classmethod
    def from_bytes(cls, width: int, height: int, channels: int, data: bytes) -> ImageBuffer:
        """Build an image from raw row-major bytes."""
        samples = np.frombuffer(data, dtype=np.uint8)
        return cls(width=width, height=height, channels=channels, samples=samples.copy())

    @classmethod
    def from_pil(cls, image: Image.Image) -> ImageBuffer:
        """Build an image from an RGB Pillow image."""
        if image.mode != "RGB":
            raise ValueError(f"Expected an RGB image, got mode {image.mode}")
        return cls.from_array(np.asarray(image, dtype=np.uint8))

    def to_pil(self) -> Image.Image:
        return Image.fromarray(self.samples)

    def to_bytes(self) -> bytes:
        return self.samples.tobytes()

    def pixel(self, x: int, y: int) -> tuple[int, int, int]:
        r, g, b = self.samples[y, x]
        return int(r), int(g), int(b)

    def copy(self) -> ImageBuffer:
        return ImageBuffer(self.width, self.height, self.channels, self.samples.copy())

    @property
    def shape(self) -> tuple[int, int, int]:
        return self.width, self.height, self.channels

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ImageBuffer):
            return NotImplemented
        return self.shape == other.shape and np.array_equal(self.samples, other.samples)


@dataclass(frozen=True)
class MotionRegion:
    """Circular area that undulates during the loop.

    A radius of 0 is an empty disk and never moves anything.
    """

    x: int
    y: int
    radius: int
    dx: float
    dy: float
    frequency: float = 1.0
    falloff: float = 2.0

    def __post_init__(self) -> None:
        if self.radius < 0:
            raise ValueError(f"Region radius must be non-negative, got {self.radius}")
        if self.frequency <= 0:
            raise ValueError(f"Region frequency must be positive, got {self.frequency}")
        if self.falloff <= 0:
            raise ValueError(f"Region falloff must be positive, got {self.falloff}")

    @property
    def is_active(self) -> bool:
        """Whether the region can displace any pixel at all."""
        return self.radius > 0 and (self.dx != 0 or self.dy != 0)

    def contains(self, x: float, y: float) -> bool:
        return (x - self.x) ** 2 + (y - self.y) ** 2 <= self.radius**2


@dataclass(frozen=True)
class Color:
    """8-bit RGB color."""

    r: int
    g: int
    b: int

    def __post_init__(self) -> None:
        for value in (self.r, self.g, self.b):
            if not 0 <= value <= 255:
                raise ValueError(f"Color components must be in range 0..255, got {self}")

    def as_tuple(self) -> tuple[int, int, int]:
        return self.r, self.g, self.b


@dataclass
class Palette:
    """Ordered color table; list position is the GIF color index."""

    colors: list[Color]

    def __post_init__(self) -> None:
        if not self.colors:
            raise ValueError("Palette must contain at least one color")
        if len(self.colors) > 256:
            raise ValueError(f"Palette cannot exceed 256 colors, got {len(self.colors)}")

    @classmethod
    def from_tuples(cls, colors: Sequence[tuple[int, int, int]]) -> Palette:
        return cls([Color(int(r), int(g), int(b)) for r, g, b in colors])

    def __len__(self) -> int:
        return len(self.colors)

    def __getitem__(self, index: int) -> Color:
        return self.colors[index]

    def __iter__(self) -> Iterator[Color]:
        return iter(self.colors)

    @property
    def table_bits(self) -> int:
        """Bits per index of the smallest table holding every entry (at least 1)."""
        return max(1, (len(self.colors) - 1).bit_length())

    @property
    def table_size(self) -> int:
        return 1 << self.table_bits

    def to_array(self) -> np.ndarray:
        """Palette as a ``(K, 3)`` uint8 array."""
        return np.array([c.as_tuple() for c in self.colors], dtype=np.uint8)

    def to_table_bytes(self) -> bytes:
        """RGB triples padded with black up to :attr:`table_size` entries."""
        table = bytearray(self.to_array().tobytes())
        table.extend(b"\x00\x00\x00" * (self.table_size - len(self.colors)))
        return bytes(table)


@dataclass(eq=False)
class IndexedFrame:
    """Row-major palette indices for one frame."""

    width: int
    height: int
    indices: np.ndarray

    def __post_init__(self) -> None:
        indices = np.ascontiguousarray(self.indices, dtype=np.uint8)
        if indices.size != self.width * self.height:
            raise ValueError(
                f"Index count {indices.size} does not match {self.width}x{self.height}"
            )
        self.indices = indices.reshape(self.height, self.width)

    def rows(self) -> Iterator[bytes]:
        for row in self.indices:
            yield row.tobytes()

    def to_bytes(self) -> bytes:
        return self.indices.tobytes()
