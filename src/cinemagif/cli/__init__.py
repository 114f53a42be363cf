"""Command-line interface for cinemagif.

The package exposes a single command; ``main`` is the console script entry
point declared in ``pyproject.toml``.
"""

from .make_cmd import make

main = make

__all__ = ["main", "make"]
