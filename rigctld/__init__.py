# rigctld/__init__.py
"""Client and process supervisor for Hamlib's rigctld."""

from __future__ import annotations

__version__ = "0.3.0"

from rigctld.client import Rig, create_rig
from rigctld.config import (
    ClientConfig,
    DaemonConfig,
    Settings,
    configure,
    get_settings,
    load_settings,
)
from rigctld.daemon import Daemon, build_argv, spawn_daemon
from rigctld.errors import (
    AlreadyConnected,
    AlreadyRunning,
    CommunicationTimeout,
    ConnectionLost,
    DaemonError,
    InternalError,
    NotConnected,
    NotStarted,
    RigConnectionError,
    RigError,
    RigReportError,
    SpawnFailed,
)
from rigctld.wire import Mode, PowerState

__all__ = [
    "AlreadyConnected",
    "AlreadyRunning",
    "ClientConfig",
    "CommunicationTimeout",
    "ConnectionLost",
    "Daemon",
    "DaemonConfig",
    "DaemonError",
    "InternalError",
    "Mode",
    "NotConnected",
    "NotStarted",
    "PowerState",
    "Rig",
    "RigConnectionError",
    "RigError",
    "RigReportError",
    "Settings",
    "SpawnFailed",
    "build_argv",
    "configure",
    "create_rig",
    "get_settings",
    "load_settings",
    "spawn_daemon",
]
