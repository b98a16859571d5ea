# rigctld/utils/error_tracker.py
"""Centralised error tracking for the client, the supervisor and runners."""

from __future__ import annotations

import os
import signal
import sys
import traceback
from collections import deque
from collections.abc import Callable
from contextlib import contextmanager
from dataclasses import dataclass, field
from types import FrameType
from typing import ClassVar, Iterator

from rigctld.utils.logger import get_logger

CleanupFn = Callable[[], None]

# most recent reports kept by ErrorTracker.history()
HISTORY_LIMIT = 256


@dataclass(slots=True)
class ErrorTracker:
    """Collect failures and contextual information during execution."""

    context: str = "ErrorTracker"
    errors: dict[str, list[str]] = field(default_factory=dict)

    # ────────────── collection API ──────────────
    def record(self, key: str, message: str) -> None:
        logger = get_logger(self.context)
        logger.error(f"{key}: {message}")
        self.errors.setdefault(key, []).append(message)

    def summary(self) -> dict[str, list[str]]:
        logger = get_logger(self.context)
        if not self.errors:
            logger.info("No errors recorded")
            return {}
        for key, messages in self.errors.items():
            logger.warning(f"Encountered {len(messages)} issues for {key}")
        return dict(self.errors)

    # ────────────── process-wide plumbing ──────────────
    _cleanups: ClassVar[list[CleanupFn]] = []
    _cleanup_running: ClassVar[bool] = False
    _history: ClassVar[deque[tuple[str, str]]] = deque(maxlen=HISTORY_LIMIT)

    @classmethod
    def report(
        cls,
        exc: BaseException,
        *,
        key: str = "exception",
        context: str = "ErrorTracker",
    ) -> None:
        """Log ``exc`` and remember it; only the last ``HISTORY_LIMIT`` reports are kept."""
        logger = get_logger(context)
        logger.debug(f"{key}: {type(exc).__name__}: {exc}")
        cls._history.append((key, f"{type(exc).__name__}: {exc}"))

    @classmethod
    def history(cls) -> list[tuple[str, str]]:
        return list(cls._history)

    @classmethod
    def clear_history(cls) -> None:
        cls._history.clear()

    @classmethod
    def register_cleanup(cls, fn: CleanupFn) -> None:
        cls._cleanups.append(fn)

    @classmethod
    def unregister_cleanup(cls, fn: CleanupFn) -> None:
        if fn in cls._cleanups:
            cls._cleanups.remove(fn)

    @classmethod
    def run_cleanups(cls) -> None:
        # guard against re-entry from a signal arriving mid-cleanup
        if cls._cleanup_running:
            return
        cls._cleanup_running = True

        logger = get_logger("ErrorTracker")
        try:
            for fn in cls._cleanups[:]:
                try:
                    fn()
                except Exception as exc:
                    logger.warning(f"cleanup failed: {exc}")
        finally:
            cls._cleanup_running = False

    @classmethod
    def install_signal_handlers(cls) -> None:
        logger = get_logger("ErrorTracker")

        signal_count = [0]

        def _handler(signum: int, frame: FrameType | None) -> None:
            signal_count[0] += 1

            if signal_count[0] == 1:
                logger.warning(f"signal {signum} received, running cleanups")
                cls.run_cleanups()
                sys.exit(128 + signum)
            elif signal_count[0] == 2:
                logger.warning(f"second signal {signum}, forcing exit")
                sys.exit(128 + signum)
            else:
                logger.warning(f"multiple signals ({signal_count[0]}), hard exit")
                os._exit(128 + signum)

        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                signal.signal(sig, _handler)
            except ValueError:
                # not the main thread
                logger.debug(f"cannot install handler for {sig}")
        logger.tag("ET", "signal handlers installed")


# ────────────── context manager API ──────────────


@contextmanager
def error_scope(name: str = "scope") -> Iterator[ErrorTracker]:
    """Log any exception escaping the block with its traceback, then re-raise."""
    tracker = ErrorTracker(context=name)
    try:
        yield tracker
    except Exception as exc:
        tracker.record(type(exc).__name__, str(exc))
        get_logger(name).debug(f"Traceback:\n{traceback.format_exc()}")
        raise


__all__ = ["HISTORY_LIMIT", "ErrorTracker", "error_scope"]
