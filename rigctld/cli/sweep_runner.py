# rigctld/cli/sweep_runner.py
"""Frequency sweep entry point.

Starts rigctld, tunes the rig to LSB and steps through a frequency range,
reading every step back. Daemon and rig parameters come from
``rigctld.config.get_settings`` (``RIGCTLD_*`` environment variables) or from
a YAML settings file passed as ``settings_path``. The rig is reached at the
``client`` address, which may differ from the daemon's listen address (e.g.
``0.0.0.0``).
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

from rigctld.client import Rig
from rigctld.config import Settings, get_settings, load_settings
from rigctld.daemon import Daemon
from rigctld.errors import DaemonError, RigError
from rigctld.utils.error_tracker import ErrorTracker, error_scope
from rigctld.utils.logger import configure as configure_logging
from rigctld.utils.logger import get_logger
from rigctld.utils.progress import track
from rigctld.wire import Mode

_log = get_logger("rigctld.sweep")

SWEEP_START_HZ = 7_000_000
SWEEP_STOP_HZ = 7_200_000
SWEEP_STEP_HZ = 10_000


def sweep(rig: Rig, start_hz: int, stop_hz: int, step_hz: int) -> list[int]:
    """Tune ``rig`` from ``start_hz`` up to (excluding) ``stop_hz``; return read-backs."""
    if step_hz <= 0:
        raise ValueError(f"step must be positive, got {step_hz}")
    steps = range(start_hz, stop_hz, step_hz)
    readback: list[int] = []
    for freq in track(steps, description="sweep", total=len(steps)):
        rig.set_frequency(freq)
        readback.append(rig.get_frequency())
    return readback


def main(
    settings_path: Optional[Path] = None,
    start_hz: int = SWEEP_START_HZ,
    stop_hz: int = SWEEP_STOP_HZ,
    step_hz: int = SWEEP_STEP_HZ,
) -> int:
    """Run the sweep.

    Returns:
        Exit code (0 for success)
    """
    settings: Settings = load_settings(settings_path) if settings_path else get_settings()
    configure_logging(level=settings.logging.level.value, log_dir=settings.logging.log_dir)

    daemon = Daemon(settings.daemon)
    ErrorTracker.register_cleanup(daemon.close)
    ErrorTracker.install_signal_handlers()
    try:
        with error_scope("rigctld.sweep"), daemon, Rig.from_config(settings.client) as rig:
            _log.tag("START", f"rigctld version: {daemon.get_version()}")
            daemon.spawn()
            # the daemon may exit right after start, e.g. when the port is taken
            if not daemon.wait_until_listening():
                _log.tag("START", "rigctld did not come up. Another instance running?", level="error")
                return 1

            rig.connect()
            mode, passband = rig.get_mode()
            _log.tag("RIG", f"started in mode {mode} passband={passband}")
            rig.set_mode(Mode.LSB, 0)
            mode, _ = rig.get_mode()
            _log.tag("RIG", f"set mode {mode}")

            for freq in sweep(rig, start_hz, stop_hz, step_hz):
                _log.tag("RIG", f"current frequency {freq} Hz")
    except (RigError, DaemonError) as exc:
        _log.tag("SWEEP", f"failed: {exc}", level="error")
        return 1
    finally:
        ErrorTracker.unregister_cleanup(daemon.close)

    _log.tag("SWEEP", "done")
    return 0


def run() -> None:
    path = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    sys.exit(main(settings_path=path))


if __name__ == "__main__":
    run()


__all__ = ["main", "run", "sweep"]
