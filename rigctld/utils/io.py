# rigctld/utils/io.py
"""File IO helpers for settings files."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from rigctld.utils.logger import get_logger

LOGGER = get_logger(__name__)


def load_yaml(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle)
    LOGGER.debug(f"Loaded YAML {path}")
    return data


def dump_yaml(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(data, handle, sort_keys=False)
    LOGGER.debug(f"Wrote YAML {path}")


__all__ = ["dump_yaml", "load_yaml"]
