# rigctld/errors.py
"""Exception taxonomy for the protocol client and the process supervisor."""

from __future__ import annotations


class RigError(Exception):
    """Base class for protocol client failures."""


class RigConnectionError(RigError, ConnectionError):
    """The TCP connection to ``rigctld`` could not be established."""


class AlreadyConnected(RigError):
    """``connect`` was called while a connection is held."""


class CommunicationTimeout(RigError, TimeoutError):
    """No complete response line arrived within the configured timeout."""


class ConnectionLost(RigError, ConnectionError):
    """The daemon closed the stream; the client is disconnected."""


class NotConnected(ConnectionLost):
    """A command was issued without a live connection."""


class InternalError(RigError):
    """Protocol violation, echo mismatch or a non-timeout I/O failure."""


class RigReportError(InternalError):
    """The daemon answered with a non-zero ``RPRT`` status."""

    def __init__(self, code: int, line: str) -> None:
        super().__init__(f"rigctld reported RPRT {code}: {line!r}")
        self.code = code
        self.line = line


class DaemonError(Exception):
    """Base class for process supervisor failures."""


class AlreadyRunning(DaemonError):
    """``spawn`` was called while a child process is held."""


class SpawnFailed(DaemonError, OSError):
    """The OS could not launch the daemon program."""


class NotStarted(DaemonError):
    """No child process is held."""


__all__ = [
    "AlreadyConnected",
    "AlreadyRunning",
    "CommunicationTimeout",
    "ConnectionLost",
    "DaemonError",
    "InternalError",
    "NotConnected",
    "NotStarted",
    "RigConnectionError",
    "RigError",
    "RigReportError",
    "SpawnFailed",
]
