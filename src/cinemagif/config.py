"""Configuration settings for cinemagif."""

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass
class AnimationConfig:
    """Configuration for frame synthesis and region acquisition."""

    # Hard upper bound on frames per loop
    MAX_FRAMES: int = 30

    DEFAULT_FRAME_COUNT: int = 24

    # Delay between frames in hundredths of a second
    DEFAULT_DELAY_CS: int = 3
    MAX_DELAY_CS: int = 0xFFFF

    # 0 = horizontal, 1 = vertical, 2 = both
    DEFAULT_MOTION_MODE: int = 2

    MAX_REGIONS: int = 10

    DEFAULT_FREQUENCY: float = 1.0
    DEFAULT_FALLOFF: float = 2.0

    # Per-region (dx, dy) amplitude for each motion mode, in pixels
    MOTION_AMPLITUDES: dict[int, tuple[float, float]] | None = None

    def __post_init__(self) -> None:
        if self.MOTION_AMPLITUDES is None:
            self.MOTION_AMPLITUDES = {
                0: (15.0, 0.0),
                1: (0.0, 15.0),
                2: (15.0, 10.0),
            }

        if self.MAX_FRAMES <= 0:
            raise ValueError(f"MAX_FRAMES must be positive, got {self.MAX_FRAMES}")

        if not 1 <= self.DEFAULT_FRAME_COUNT <= self.MAX_FRAMES:
            raise ValueError(
                f"DEFAULT_FRAME_COUNT must be between 1 and {self.MAX_FRAMES}, "
                f"got {self.DEFAULT_FRAME_COUNT}"
            )

        if not 0 <= self.DEFAULT_DELAY_CS <= self.MAX_DELAY_CS:
            raise ValueError(
                f"DEFAULT_DELAY_CS must be between 0 and {self.MAX_DELAY_CS}, "
                f"got {self.DEFAULT_DELAY_CS}"
            )

        if self.DEFAULT_MOTION_MODE not in self.MOTION_AMPLITUDES:
            raise ValueError(f"Unknown DEFAULT_MOTION_MODE: {self.DEFAULT_MOTION_MODE}")

        if self.MAX_REGIONS <= 0:
            raise ValueError(f"MAX_REGIONS must be positive, got {self.MAX_REGIONS}")

        if self.DEFAULT_FREQUENCY <= 0 or self.DEFAULT_FALLOFF <= 0:
            raise ValueError("DEFAULT_FREQUENCY and DEFAULT_FALLOFF must be positive")


@dataclass
class EncoderConfig:
    """Configuration for palette construction and GIF encoding."""

    # Palette entries built from the first frame
    COLOR_DEPTH: int = 256

    # NETSCAPE2.0 loop count, 0 loops forever
    LOOP_COUNT: int = 0

    # Colors compared against the palette per numpy batch
    MAPPING_CHUNK_SIZE: int = 4096

    def __post_init__(self) -> None:
        if not 1 <= self.COLOR_DEPTH <= 256:
            raise ValueError(f"COLOR_DEPTH must be between 1 and 256, got {self.COLOR_DEPTH}")

        if not 0 <= self.LOOP_COUNT <= 0xFFFF:
            raise ValueError(f"LOOP_COUNT must fit in 16 bits, got {self.LOOP_COUNT}")

        if self.MAPPING_CHUNK_SIZE <= 0:
            raise ValueError("MAPPING_CHUNK_SIZE must be positive")


@dataclass
class RuntimeConfig:
    """Runtime settings with environment variable overrides."""

    # Processes used to synthesize frames; 1 keeps everything in-process.
    # Override with: CINEMAGIF_WORKERS
    WORKERS: int = 1

    # Override with: CINEMAGIF_LOG_LEVEL
    LOG_LEVEL: str = "INFO"

    # Directory for timestamped log files, None logs to stderr only.
    # Override with: CINEMAGIF_LOG_DIR
    LOG_DIR: Path | None = None

    def __post_init__(self) -> None:
        """Apply environment variable overrides after initialization."""
        workers = os.getenv("CINEMAGIF_WORKERS")
        if workers:
            try:
                self.WORKERS = int(workers)
            except ValueError as e:
                raise ValueError(f"CINEMAGIF_WORKERS must be an integer, got {workers!r}") from e

        log_level = os.getenv("CINEMAGIF_LOG_LEVEL")
        if log_level:
            self.LOG_LEVEL = log_level.upper()

        log_dir = os.getenv("CINEMAGIF_LOG_DIR")
        if log_dir:
            self.LOG_DIR = Path(log_dir)

        if self.WORKERS < 1:
            raise ValueError(f"WORKERS must be at least 1, got {self.WORKERS}")

        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.LOG_LEVEL not in valid_levels:
            raise ValueError(f"Invalid LOG_LEVEL: {self.LOG_LEVEL}")


DEFAULT_ANIMATION_CONFIG = AnimationConfig()
DEFAULT_ENCODER_CONFIG = EncoderConfig()
DEFAULT_RUNTIME_CONFIG = RuntimeConfig()
