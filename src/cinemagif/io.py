"""I/O utilities for logging setup, atomic writes, JSON and source images."""

import json
import logging
import tempfile
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from shutil import move
from typing import Any

from PIL import Image, UnidentifiedImageError

from .error_handling import InputError, error_context
from .models import ImageBuffer

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(log_dir: Path | None = None, log_level: str = "INFO") -> logging.Logger:
    """Set up logging configuration for cinemagif.

    Args:
        log_dir: Directory to store log files, None for console-only logging
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Configured logger instance
    """
    handlers: list[logging.Handler] = [logging.StreamHandler()]

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        handlers.append(logging.FileHandler(log_dir / f"cinemagif_{timestamp}.log"))

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )

    return logging.getLogger("cinemagif")


@contextmanager
def atomic_write(target_path: Path, mode: str = "w"):
    """Context manager for atomic file writes using temporary files.

    Args:
        target_path: Final path where file should be written
        mode: File open mode ("w" or "wb")

    Yields:
        File handle for writing

    Example:
        with atomic_write(Path("out.gif"), "wb") as f:
            f.write(data)
    """
    target_path.parent.mkdir(parents=True, exist_ok=True)

    # Temporary file lives next to the target so the final move is a rename
    temp_file = tempfile.NamedTemporaryFile(
        mode=mode,
        dir=target_path.parent,
        delete=False,
        suffix=f".tmp_{target_path.name}",
    )
    try:
        with temp_file:
            yield temp_file
            temp_file.flush()
        move(temp_file.name, target_path)
    except BaseException:
        Path(temp_file.name).unlink(missing_ok=True)
        raise


def save_json(data: Any, json_path: Path) -> None:
    """Atomically save data as JSON file.

    Args:
        data: Data to save as JSON
        json_path: Path where JSON should be saved

    Raises:
        IOError: If file cannot be written
    """
    with atomic_write(json_path) as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def load_json(json_path: Path) -> Any:
    """Load JSON data from file.

    Raises:
        IOError: If file cannot be read
        json.JSONDecodeError: If JSON is invalid
    """
    with open(json_path, encoding="utf-8") as f:
        return json.load(f)


def load_source_image(image_path: Path) -> ImageBuffer:
    """Decode the source photograph into an RGB :class:`ImageBuffer`.

    Only images that decode to 3-channel 8-bit RGB are accepted; grayscale,
    CMYK and images with alpha are rejected rather than converted.

    Raises:
        InputError: If the file is missing, undecodable or not RGB
        ResourceError: If decoding runs out of memory
    """
    if not image_path.exists():
        raise InputError(f"Source image not found: {image_path}")

    with error_context(
        f"decode source image {image_path}", InputError, context={"path": str(image_path)}
    ):
        try:
            with Image.open(image_path) as img:
                if img.mode != "RGB":
                    raise InputError(
                        f"Unsupported source image mode {img.mode} in {image_path}; "
                        f"only RGB images are supported"
                    )
                img.load()
                image = ImageBuffer.from_pil(img)
        except UnidentifiedImageError as e:
            raise InputError(f"Cannot identify image file {image_path}", cause=e) from e

    logger.debug(
        f"Loaded source image {image_path} ({image.width}x{image.height}, {image.channels} channels)"
    )
    return image
