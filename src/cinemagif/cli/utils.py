"""Shared utilities for CLI commands."""

import multiprocessing
import sys
from pathlib import Path

import click

from ..error_handling import CinemagifError
from ..models import MotionRegion
from ..regions import MotionMode, parse_region_spec


def handle_generic_error(command_name: str, error: Exception) -> None:
    """Handle generic command errors with consistent formatting."""
    click.echo(f"❌ {command_name} failed: {error}", err=True)
    sys.exit(1)


def handle_keyboard_interrupt(command_name: str) -> None:
    """Handle keyboard interrupt with consistent formatting."""
    click.echo(f"\n⏹️  {command_name} interrupted by user", err=True)
    sys.exit(1)


def get_cpu_count() -> int:
    """Get the number of available CPU cores."""
    return multiprocessing.cpu_count()


def resolve_worker_count(workers: int) -> int:
    """0 means one worker per CPU core."""
    return workers if workers > 0 else get_cpu_count()


def parse_region_options(specs: tuple[str, ...], mode: int) -> list[MotionRegion]:
    """Turn repeated ``--region`` values into regions, as a usage error on bad input."""
    regions = []
    for spec in specs:
        try:
            regions.append(parse_region_spec(spec, MotionMode(mode)))
        except CinemagifError as e:
            raise click.BadParameter(str(e), param_hint="'-r' / '--region'") from e
    return regions


def display_path_info(label: str, path: Path, emoji: str = "📁") -> None:
    """Display path information with consistent formatting."""
    click.echo(f"{emoji} {label}: {path}")
