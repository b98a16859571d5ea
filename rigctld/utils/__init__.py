# rigctld/utils/__init__.py
"""Utility package re-exporting shared helpers for rigctld."""

from rigctld.utils.error_tracker import ErrorTracker, error_scope
from rigctld.utils.io import dump_yaml, load_yaml
from rigctld.utils.logger import configure, get_logger
from rigctld.utils.progress import track

__all__ = [
    "ErrorTracker",
    "configure",
    "dump_yaml",
    "error_scope",
    "get_logger",
    "load_yaml",
    "track",
]
