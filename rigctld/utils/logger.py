# rigctld/utils/logger.py
"""Single-source Loguru setup: console sink always, file sink on request."""

from __future__ import annotations

import inspect
import os
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional, TextIO

from loguru import logger as _root_logger
from loguru._logger import Logger as LoguruLogger


# ---------- options ----------
@dataclass(slots=True)
class _LogOptions:
    level: str = os.environ.get("RIGCTLD_LOG_LEVEL", "INFO")
    log_dir: Optional[str] = os.environ.get("RIGCTLD_LOG_DIR")


_OPTIONS = _LogOptions()
_CONFIGURED = False
_LOG_FILE: Optional[Path] = None
_LOG_HANDLE: Optional[TextIO] = None


# ---------- sinks as callables ----------
def _console_sink(msg) -> None:
    r = msg.record
    module = r["extra"].get("module", r.get("name", "unknown"))
    print(f"{r['time']:%H:%M:%S} | {r['level'].name: <3.3} | {module} | {r['message']}")


def _make_file_sink(fh: TextIO):
    def _file_sink(msg) -> None:
        r = msg.record
        module = r["extra"].get("module", r.get("name", "unknown"))
        fh.write(
            f"{r['time'].isoformat()} | {r['level'].name} | {module} | {r['message']}\n"
        )
        fh.flush()

    return _file_sink


def _configure_logger(level: str | None = None, log_dir: str | Path | None = None) -> None:
    global _CONFIGURED, _LOG_FILE, _LOG_HANDLE

    # drop every handler (including loguru's default stderr one)
    _root_logger.remove()
    if _LOG_HANDLE is not None:
        _LOG_HANDLE.close()
        _LOG_HANDLE = None
        _LOG_FILE = None

    def _inject_extras(record):
        record["extra"].setdefault("module", record.get("name", "unknown"))
        return record

    logger = _root_logger.patch(_inject_extras)
    effective = (level or _OPTIONS.level).upper()

    logger.add(_console_sink, level=effective, catch=True)

    target_dir = log_dir if log_dir is not None else _OPTIONS.log_dir
    if target_dir:
        path = Path(target_dir).expanduser()
        path.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        _LOG_FILE = path / f"rigctld_{timestamp}.log"
        _LOG_HANDLE = _LOG_FILE.open("a", encoding="utf-8")
        logger.add(_make_file_sink(_LOG_HANDLE), level=effective, catch=True)

    globals()["_LOGGER"] = logger
    _CONFIGURED = True


def get_logger(name: str | None = None) -> LoguruLogger:
    if not _CONFIGURED:
        _configure_logger()

    # module name is resolved from the caller when not given
    module_name = name
    frame = inspect.currentframe()
    if module_name is None and frame is not None:
        caller_frame = frame.f_back
        if caller_frame is not None:
            module = inspect.getmodule(caller_frame)
            if module is not None and module.__name__ != "__main__":
                module_name = module.__name__

    bound = globals()["_LOGGER"].bind(module=module_name or "unknown")

    def _tag(label: str, msg: str | None = None, *args, level: str = "info") -> None:
        text = f"[{label}] " + (msg or "")
        method = getattr(bound, level, bound.info)
        if args:
            try:
                text = text.format(*args)
            except (IndexError, KeyError, ValueError):
                pass
        method(text)

    setattr(bound, "tag", _tag)
    return bound


def configure(level: str | None = None, log_dir: str | Path | None = None) -> None:
    _configure_logger(level=level, log_dir=log_dir)


def current_log_file() -> Optional[Path]:
    return _LOG_FILE


@contextmanager
def logging_context(
    *, level: str | None = None, log_dir: str | Path | None = None
) -> Iterator[LoguruLogger]:
    configure(level=level, log_dir=log_dir)
    yield get_logger()


__all__ = ["configure", "current_log_file", "get_logger", "logging_context"]
