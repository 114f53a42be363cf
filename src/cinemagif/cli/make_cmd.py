"""Turn a still photograph into a looping cinemagraph GIF."""

from pathlib import Path

import click
from rich.console import Console
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn

from .. import __version__
from ..config import DEFAULT_ANIMATION_CONFIG, DEFAULT_RUNTIME_CONFIG
from ..io import setup_logging
from ..models import ImageBuffer, MotionRegion
from ..pipeline import STAGE_ENCODE, STAGE_WARP, run_cinemagraph
from ..regions import MotionMode, load_regions_file, save_regions_file
from .utils import (
    display_path_info,
    handle_generic_error,
    handle_keyboard_interrupt,
    parse_region_options,
    resolve_worker_count,
)

COMMAND_NAME = "cinemagif"

STAGE_DESCRIPTIONS = {
    STAGE_WARP: "Warping frames",
    STAGE_ENCODE: "Encoding GIF",
}

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class StageProgressDisplay:
    """rich progress bars, one per pipeline stage."""

    def __init__(self, progress: Progress):
        self.progress = progress
        self._tasks: dict[str, int] = {}

    def __call__(self, stage: str, completed: int, total: int) -> None:
        if stage not in self._tasks:
            self._tasks[stage] = self.progress.add_task(
                STAGE_DESCRIPTIONS.get(stage, stage), total=total
            )
        self.progress.update(self._tasks[stage], completed=completed)


@click.command(name=COMMAND_NAME, context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("input_path", metavar="INPUT", type=click.Path(dir_okay=False, path_type=Path))
@click.argument("output_path", metavar="OUTPUT", type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "--frames",
    "-f",
    "frame_count",
    type=click.IntRange(1, DEFAULT_ANIMATION_CONFIG.MAX_FRAMES),
    default=DEFAULT_ANIMATION_CONFIG.DEFAULT_FRAME_COUNT,
    show_default=True,
    help="Frames per loop",
)
@click.option(
    "--delay",
    "-t",
    "delay_cs",
    type=click.IntRange(0, DEFAULT_ANIMATION_CONFIG.MAX_DELAY_CS),
    default=DEFAULT_ANIMATION_CONFIG.DEFAULT_DELAY_CS,
    show_default=True,
    help="Delay between frames in hundredths of a second",
)
@click.option(
    "--mode",
    "-m",
    type=click.IntRange(0, 2),
    default=DEFAULT_ANIMATION_CONFIG.DEFAULT_MOTION_MODE,
    show_default=True,
    help="Motion direction: 0 horizontal, 1 vertical, 2 both",
)
@click.option(
    "--region",
    "-r",
    "region_specs",
    multiple=True,
    metavar="X,Y,R[,DX,DY[,FREQ[,FALLOFF]]]",
    help="Motion region; repeat for several. Without regions an interactive picker opens",
)
@click.option(
    "--regions-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON file with motion regions",
)
@click.option(
    "--save-regions",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the regions used to a JSON file",
)
@click.option(
    "--workers",
    "-j",
    type=click.IntRange(min=0),
    default=DEFAULT_RUNTIME_CONFIG.WORKERS,
    show_default=True,
    help="Worker processes for frame synthesis (0 = CPU count)",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=DEFAULT_RUNTIME_CONFIG.LOG_LEVEL,
    show_default=True,
    help="Logging verbosity",
)
@click.option(
    "--log-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=DEFAULT_RUNTIME_CONFIG.LOG_DIR,
    help="Also write logs to a timestamped file in this directory",
)
@click.option("--no-progress", is_flag=True, help="Hide progress bars")
@click.version_option(version=__version__, prog_name=COMMAND_NAME)
def make(
    input_path: Path,
    output_path: Path,
    frame_count: int,
    delay_cs: int,
    mode: int,
    region_specs: tuple[str, ...],
    regions_file: Path | None,
    save_regions: Path | None,
    workers: int,
    log_level: str,
    log_dir: Path | None,
    no_progress: bool,
) -> None:
    """🎞️ Animate circular regions of INPUT and write the loop to OUTPUT."""
    setup_logging(log_dir, log_level)

    regions = parse_region_options(region_specs, mode)

    try:
        if regions_file is not None:
            regions.extend(load_regions_file(regions_file, MotionMode(mode)))

        def pick_and_save(source: ImageBuffer, motion_mode: MotionMode) -> list[MotionRegion]:
            from ..picker import pick_regions

            picked = pick_regions(source, motion_mode)
            if save_regions is not None:
                save_regions_file(save_regions, picked)
                display_path_info("Saved regions", save_regions, "💾")
            return picked

        if regions and save_regions is not None:
            save_regions_file(save_regions, regions)
            display_path_info("Saved regions", save_regions, "💾")

        run_kwargs = dict(
            regions=regions or None,
            region_source=pick_and_save,
            mode=mode,
            frame_count=frame_count,
            delay_cs=delay_cs,
            workers=resolve_worker_count(workers),
        )

        if no_progress:
            result = run_cinemagraph(input_path, output_path, **run_kwargs)
        else:
            with Progress(
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TaskProgressColumn(),
                console=Console(stderr=True),
                transient=True,
            ) as progress:
                result = run_cinemagraph(
                    input_path,
                    output_path,
                    progress=StageProgressDisplay(progress),
                    **run_kwargs,
                )

        click.echo(f"✅ {result.summary_line()}")

    except KeyboardInterrupt:
        handle_keyboard_interrupt(COMMAND_NAME)
    except Exception as e:
        handle_generic_error(COMMAND_NAME, e)
