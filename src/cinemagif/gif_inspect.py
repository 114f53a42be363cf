"""Read back the structure of GIF files.

Reports what an encoder put in a file: canvas size, loop count, per-frame
delays and disposal methods, and optionally the decoded RGB pixels of every
frame. Decoding is Pillow's, so this is an independent check on what the
writer produced.
"""

from __future__ import annotations

import hashlib
import io
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np
from PIL import Image

from .error_handling import InputError

GIF_TRAILER = b"\x3b"


@dataclass
class GifFrameInfo:
    """Timing and disposal of one frame, and its pixels when decoded."""

    delay_cs: int | None = None
    disposal: int = 0
    pixels: np.ndarray | None = None


@dataclass
class GifSummary:
    """Structure of a GIF stream."""

    version: str
    width: int
    height: int
    loop_count: int | None = None
    frames: list[GifFrameInfo] = field(default_factory=list)
    has_trailer: bool = False

    @property
    def frame_count(self) -> int:
        return len(self.frames)

    @property
    def delays(self) -> list[int | None]:
        return [frame.delay_cs for frame in self.frames]


def compute_file_sha256(file_path: Path) -> str:
    """Compute SHA256 hash of a file.

    Args:
        file_path: Path to the file to hash

    Returns:
        Hexadecimal SHA256 hash string
    """
    sha256_hash = hashlib.sha256()
    with open(file_path, "rb") as f:
        # Read file in chunks to handle large files
        for chunk in iter(lambda: f.read(4096), b""):
            sha256_hash.update(chunk)
    return sha256_hash.hexdigest()


def parse_gif(data: bytes, decode: bool = False) -> GifSummary:
    """Parse a GIF byte stream with Pillow.

    Args:
        data: Complete file contents
        decode: Also decode every frame to an (height, width, 3) uint8 array

    Raises:
        InputError: If Pillow cannot read the stream or it is not a GIF
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            if img.format != "GIF":
                raise InputError(f"Not a GIF stream (found {img.format})")

            width, height = img.size
            version = img.info.get("version", b"GIF")[3:].decode("ascii", errors="replace")
            summary = GifSummary(
                version=version,
                width=width,
                height=height,
                loop_count=img.info.get("loop"),
                has_trailer=data.endswith(GIF_TRAILER),
            )

            for i in range(img.n_frames):
                img.seek(i)
                duration = img.info.get("duration")
                frame = GifFrameInfo(
                    delay_cs=None if duration is None else int(duration) // 10,
                    disposal=getattr(img, "disposal_method", 0),
                )
                if decode:
                    frame.pixels = np.asarray(img.convert("RGB"))
                summary.frames.append(frame)

    except InputError:
        raise
    except (OSError, EOFError, SyntaxError, ValueError) as e:
        raise InputError(f"Not a readable GIF stream: {e}") from e

    return summary


def inspect_gif(source: Path | str | bytes, decode: bool = False) -> GifSummary:
    """Parse a GIF file or an in-memory GIF stream; see :func:`parse_gif`."""
    if isinstance(source, (bytes, bytearray)):
        return parse_gif(bytes(source), decode=decode)

    path = Path(source)
    if not path.exists():
        raise InputError(f"File not found: {path}")
    return parse_gif(path.read_bytes(), decode=decode)
