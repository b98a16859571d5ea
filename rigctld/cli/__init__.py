# rigctld/cli/__init__.py
"""Command line entry points."""

from __future__ import annotations

from .sweep_runner import main as sweep_main

__all__ = ["sweep_main"]
