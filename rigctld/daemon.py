# rigctld/daemon.py
"""Supervisor for a ``rigctld`` child process."""

from __future__ import annotations

import socket
import subprocess
import time
import weakref
from dataclasses import dataclass
from types import TracebackType
from typing import List, Optional, Type, Union

from rigctld.config import (
    DAEMON_READY_POLL_S,
    DAEMON_READY_TIMEOUT_S,
    DAEMON_STOP_TIMEOUT_S,
    DAEMON_VERSION_FLAG,
    DaemonConfig,
)
from rigctld.errors import AlreadyRunning, NotStarted, SpawnFailed
from rigctld.utils.error_tracker import ErrorTracker
from rigctld.utils.logger import get_logger

_log = get_logger("rigctld.daemon")


def build_argv(config: DaemonConfig) -> List[str]:
    """Command line for ``config``."""
    argv = [
        config.program,
        "-T", config.host,
        "-t", str(config.port),
        "-m", str(config.model),
    ]
    if config.rig_file is not None:
        argv += ["-r", config.rig_file]
    if config.serial_speed is not None:
        argv += ["-s", str(config.serial_speed)]
    if config.civ_address is not None:
        argv += ["-c", str(config.civ_address)]
    return argv


def _terminate(proc: subprocess.Popen, timeout: float = DAEMON_STOP_TIMEOUT_S) -> None:
    """Stop ``proc``: SIGTERM, then SIGKILL if it outlives ``timeout``."""
    if proc.poll() is not None:
        return
    proc.terminate()
    try:
        proc.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        proc.kill()
        proc.wait()


@dataclass(frozen=True)
class _NoChild:
    pass


@dataclass(frozen=True)
class _Child:
    proc: subprocess.Popen
    # terminates the process if the Daemon is collected or the interpreter exits
    guard: weakref.finalize


_State = Union[_NoChild, _Child]


class Daemon:
    """
    Manages the lifecycle of one ``rigctld`` process.

    - Spawns the daemon from a :class:`DaemonConfig`.
    - Provides liveness polling and forced termination.
    - Never leaves an orphan: a held child is terminated when the instance is
      discarded, closed or used as a context manager that exits.
    """

    def __init__(self, config: Optional[DaemonConfig] = None) -> None:
        self.config = config or DaemonConfig()
        self._state: _State = _NoChild()

    @property
    def pid(self) -> Optional[int]:
        state = self._state
        return state.proc.pid if isinstance(state, _Child) else None

    def spawn(self) -> Daemon:
        """Start the daemon. Raises :class:`AlreadyRunning` if a child is held."""
        if isinstance(self._state, _Child):
            raise AlreadyRunning(f"rigctld already running (pid {self._state.proc.pid})")

        argv = build_argv(self.config)
        _log.tag("DAEMON", f"spawn {' '.join(argv)}")
        try:
            proc = subprocess.Popen(argv, stdin=subprocess.DEVNULL)
        except OSError as exc:
            ErrorTracker.report(exc, key="spawn", context="rigctld.daemon")
            _log.tag("DAEMON", f"spawn failed: {exc!r}", level="error")
            raise SpawnFailed(exc.errno, f"failed to start {self.config.program}: {exc}") from exc

        self._state = _Child(proc=proc, guard=weakref.finalize(self, _terminate, proc))
        _log.tag("DAEMON", f"started pid={proc.pid}")
        return self

    def get_version(self) -> str:
        """Run ``<program> --version`` and return its output."""
        argv = [self.config.program, DAEMON_VERSION_FLAG]
        try:
            result = subprocess.run(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                check=False,
            )
        except OSError as exc:
            ErrorTracker.report(exc, key="version", context="rigctld.daemon")
            raise SpawnFailed(exc.errno, f"failed to run {' '.join(argv)}: {exc}") from exc
        version = result.stdout.decode("utf-8", errors="replace").rstrip()
        _log.tag("DAEMON", f"version {version!r}", level="debug")
        return version

    def is_running(self) -> bool:
        """Poll the child without blocking; forget it once it has exited."""
        state = self._state
        if isinstance(state, _NoChild):
            raise NotStarted("rigctld not started")
        code = state.proc.poll()
        if code is None:
            return True
        state.guard.detach()
        self._state = _NoChild()
        _log.tag("DAEMON", f"pid={state.proc.pid} exited code={code}", level="warning")
        return False

    def kill(self, timeout_s: float = DAEMON_STOP_TIMEOUT_S) -> None:
        """Terminate the child and wait for it. The handle is cleared in any case."""
        state = self._state
        if isinstance(state, _NoChild):
            raise NotStarted("rigctld not started")
        try:
            state.guard.detach()
            _terminate(state.proc, timeout_s)
        finally:
            self._state = _NoChild()
        _log.tag("DAEMON", f"pid={state.proc.pid} stopped code={state.proc.returncode}")

    def close(self) -> None:
        """Kill the child if one is held."""
        if isinstance(self._state, _Child):
            self.kill()

    def wait_until_listening(
        self,
        timeout_s: float = DAEMON_READY_TIMEOUT_S,
        poll_s: float = DAEMON_READY_POLL_S,
    ) -> bool:
        """Wait until the daemon accepts TCP connections.

        Returns ``False`` if the child exits first (e.g. the port is taken by
        another instance) or ``timeout_s`` passes.
        """
        host = self.config.host
        if host in ("", "0.0.0.0"):
            host = "127.0.0.1"
        elif host == "::":
            host = "::1"
        deadline = time.monotonic() + timeout_s
        while time.monotonic() < deadline:
            if not self.is_running():
                return False
            try:
                with socket.create_connection((host, self.config.port), timeout=poll_s):
                    _log.tag("DAEMON", f"listening on {host}:{self.config.port}")
                    return True
            except OSError:
                time.sleep(poll_s)
        _log.tag("DAEMON", f"not listening after {timeout_s}s", level="warning")
        return False

    def __enter__(self) -> Daemon:
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.close()


def spawn_daemon(config: Optional[DaemonConfig] = None) -> Daemon:
    """Create a :class:`Daemon` for ``config`` and start it."""
    return Daemon(config).spawn()


__all__ = ["Daemon", "build_argv", "spawn_daemon"]
