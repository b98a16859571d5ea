# rigctld/client.py
"""TCP client for the rigctld remote-control protocol.

Handles the connection lifecycle, newline framing with a bounded read and the
echo confirmation of every "set" command.
"""

from __future__ import annotations

import socket
import time
from dataclasses import dataclass
from types import TracebackType
from typing import Any, Optional, Tuple, Type, Union

from rigctld.config import (
    CLIENT_CONNECT_TIMEOUT_S,
    CLIENT_RECV_CHUNK,
    CLIENT_TIMEOUT_S,
    DAEMON_DEFAULT_HOST,
    DAEMON_DEFAULT_PORT,
    ClientConfig,
)
from rigctld.errors import (
    AlreadyConnected,
    CommunicationTimeout,
    ConnectionLost,
    InternalError,
    NotConnected,
    RigConnectionError,
)
from rigctld.utils.error_tracker import ErrorTracker
from rigctld.utils.logger import get_logger
from rigctld.wire import (
    GET_FREQ,
    GET_MODE,
    GET_POWERSTAT,
    SET_FREQ,
    SET_MODE,
    SET_POWERSTAT,
    UINT16_MAX,
    Command,
    Mode,
    PowerState,
)

_log = get_logger("rigctld.client")


class LineReader:
    """Read half of a connection: buffered newline framing with a deadline."""

    def __init__(self, sock: socket.socket, chunk_size: int = CLIENT_RECV_CHUNK) -> None:
        self._sock = sock
        self._chunk_size = chunk_size
        self._buf = bytearray()

    def readline(self, timeout: float) -> bytes:
        """Return one line including ``\\n``, or ``b""`` once the peer closed.

        Raises ``TimeoutError`` when no full line arrives before ``timeout``
        seconds pass. Bytes of an incomplete line stay buffered.
        """
        deadline = time.monotonic() + timeout
        while True:
            idx = self._buf.find(b"\n")
            if idx >= 0:
                line = bytes(self._buf[: idx + 1])
                del self._buf[: idx + 1]
                return line
            remain = deadline - time.monotonic()
            if remain <= 0:
                raise TimeoutError("receive timeout")
            self._sock.settimeout(remain)
            chunk = self._sock.recv(self._chunk_size)
            if not chunk:
                return b""
            self._buf.extend(chunk)


class LineWriter:
    """Write half of a connection."""

    def __init__(self, sock: socket.socket, timeout: float = CLIENT_CONNECT_TIMEOUT_S) -> None:
        self._sock = sock
        self._timeout = timeout

    def write_line(self, line: str) -> None:
        """Send ``line`` followed by a single ``\\n``."""
        self._sock.settimeout(self._timeout)
        self._sock.sendall(f"{line}\n".encode("ascii"))


@dataclass(frozen=True)
class _Disconnected:
    pass


@dataclass
class _Connected:
    sock: socket.socket
    reader: LineReader
    writer: LineWriter
    peer: Tuple[str, int]
    # requests that timed out; their replies may still arrive and are dropped
    pending: int = 0


_State = Union[_Disconnected, _Connected]


class Rig:
    """Connection to a running ``rigctld``.

    Only one command may be in flight per instance; the caller serializes
    access. The instance can be reused across connect/disconnect cycles.
    """

    def __init__(
        self,
        host: str = DAEMON_DEFAULT_HOST,
        port: int = DAEMON_DEFAULT_PORT,
        timeout_s: float = CLIENT_TIMEOUT_S,
        connect_timeout_s: float = CLIENT_CONNECT_TIMEOUT_S,
    ) -> None:
        self.host = host
        self.port = port
        self.connect_timeout_s = connect_timeout_s
        self._timeout = CLIENT_TIMEOUT_S
        self.set_timeout(timeout_s)
        self._state: _State = _Disconnected()

    @classmethod
    def from_config(cls, config: ClientConfig) -> Rig:
        return cls(
            host=config.host,
            port=config.port,
            timeout_s=config.timeout_s,
            connect_timeout_s=config.connect_timeout_s,
        )

    # ────────────── connection lifecycle ──────────────

    def connect(self, host: Optional[str] = None, port: Optional[int] = None) -> None:
        """Connect to ``host:port`` (defaults to the address given at construction)."""
        if isinstance(self._state, _Connected):
            raise AlreadyConnected(
                f"already connected to {self._state.peer[0]}:{self._state.peer[1]}"
            )
        target = (host or self.host, port if port is not None else self.port)
        _log.tag("NET", f"connect host={target[0]} port={target[1]}")
        sock: Optional[socket.socket] = None
        try:
            sock = socket.create_connection(target, timeout=self.connect_timeout_s)
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        except OSError as exc:
            if sock is not None:
                sock.close()
            ErrorTracker.report(exc, key="connect", context="rigctld.client")
            _log.tag("NET", f"connect failed: {exc!r}", level="warning")
            raise RigConnectionError(f"cannot connect to {target[0]}:{target[1]}: {exc}") from exc
        self._state = _Connected(
            sock=sock,
            reader=LineReader(sock),
            writer=LineWriter(sock, timeout=self.connect_timeout_s),
            peer=target,
        )
        _log.tag("NET", "connected")

    def disconnect(self) -> bool:
        """Drop the connection. Returns ``False`` if there was none."""
        state = self._state
        if isinstance(state, _Disconnected):
            return False
        self._state = _Disconnected()
        try:
            state.sock.close()
        except OSError as exc:
            _log.tag("NET", f"close failed: {exc!r}", level="debug")
        _log.tag("NET", "disconnected")
        return True

    def is_connected(self) -> bool:
        return isinstance(self._state, _Connected)

    @property
    def timeout(self) -> float:
        return self._timeout

    def set_timeout(self, timeout_s: float) -> None:
        """Set the read timeout (seconds) for subsequent commands."""
        if timeout_s <= 0:
            raise ValueError(f"timeout must be positive, got {timeout_s}")
        self._timeout = float(timeout_s)

    set_communication_timeout = set_timeout

    def __enter__(self) -> Rig:
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.disconnect()

    # ────────────── protocol primitive ──────────────

    def execute(self, request: str) -> str:
        """Send one request line and return the response line without terminator.

        Replies to requests that timed out earlier are read and discarded
        first, each bounded by the timeout, so answers stay paired with
        their requests.
        """
        if "\n" in request or "\r" in request:
            raise ValueError(f"request must be a single line, got {request!r}")
        if not request.isascii():
            raise ValueError(f"request must be ASCII, got {request!r}")
        state = self._state
        if isinstance(state, _Disconnected):
            raise NotConnected("not connected to rigctld")

        _log.tag("WIRE", f"tx {request}", level="debug")
        try:
            state.writer.write_line(request)
        except OSError as exc:
            ErrorTracker.report(exc, key="write", context="rigctld.client")
            _log.tag("WIRE", f"send failed request={request!r} error={exc!r}", level="error")
            raise InternalError(f"write failed: {exc}") from exc

        try:
            raw = state.reader.readline(self._timeout)
            while raw and state.pending:
                state.pending -= 1
                _log.tag("WIRE", f"dropped late reply {raw!r}", level="warning")
                raw = state.reader.readline(self._timeout)
        except TimeoutError as exc:
            state.pending += 1
            ErrorTracker.report(exc, key="timeout", context="rigctld.client")
            _log.tag(
                "WIRE",
                f"timeout after {self._timeout}s request={request!r} pending={state.pending}",
                level="warning",
            )
            raise CommunicationTimeout(
                f"no response to {request!r} within {self._timeout}s"
            ) from exc
        except OSError as exc:
            ErrorTracker.report(exc, key="read", context="rigctld.client")
            _log.tag("WIRE", f"recv failed request={request!r} error={exc!r}", level="error")
            raise InternalError(f"read failed: {exc}") from exc

        if not raw:
            self.disconnect()
            _log.tag("WIRE", "peer closed connection", level="warning")
            raise ConnectionLost("rigctld closed the connection")

        try:
            line = raw.decode("ascii").rstrip("\r\n")
        except UnicodeDecodeError as exc:
            raise InternalError(f"non-ASCII response {raw!r}") from exc
        _log.tag("WIRE", f"rx {line}", level="debug")
        return line

    def _transact(self, command: Command, *args: Any) -> Tuple[Any, ...]:
        response = self.execute(command.request(*args))
        return command.parse(response)

    # ────────────── typed operations ──────────────

    def get_frequency(self) -> int:
        """Return the current frequency in Hz."""
        (frequency,) = self._transact(GET_FREQ)
        return frequency

    def set_frequency(self, frequency: int) -> None:
        """Set the frequency in Hz and confirm the daemon applied it."""
        frequency = _check_uint(frequency, "frequency")
        (echoed,) = self._transact(SET_FREQ, frequency)
        if echoed != frequency:
            raise InternalError(f"set_freq echoed {echoed}, requested {frequency}")
        _log.tag("RIG", f"frequency={frequency}")

    def get_mode(self) -> Tuple[Mode, int]:
        """Return the operating mode and its passband in Hz."""
        mode, passband = self._transact(GET_MODE)
        return mode, passband

    def set_mode(self, mode: Mode, passband: int) -> None:
        """Set mode and passband (Hz) and confirm both were applied."""
        mode = Mode(mode)
        passband = _check_uint(passband, "passband", UINT16_MAX)
        echoed_mode, echoed_passband = self._transact(SET_MODE, mode, passband)
        if echoed_mode != mode or echoed_passband != passband:
            raise InternalError(
                f"set_mode echoed {echoed_mode} {echoed_passband}, requested {mode} {passband}"
            )
        _log.tag("RIG", f"mode={mode} passband={passband}")

    def get_powerstate(self) -> PowerState:
        """Return the power status.

        Some ``rigctld`` releases answer ``get_powerstat`` outside the extended
        response format; such a reply is reported as :class:`InternalError`.
        """
        (state,) = self._transact(GET_POWERSTAT)
        return state

    def set_powerstate(self, state: PowerState) -> None:
        state = PowerState(state)
        (echoed,) = self._transact(SET_POWERSTAT, state)
        if echoed != state:
            raise InternalError(f"set_powerstat echoed {echoed}, requested {state}")
        _log.tag("RIG", f"powerstate={state.name}")


def _check_uint(value: int, name: str, maximum: Optional[int] = None) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0 or (maximum is not None and value > maximum):
        bound = f"0..{maximum}" if maximum is not None else ">= 0"
        raise ValueError(f"{name} must be {bound}, got {value}")
    return value


def create_rig(config: Optional[ClientConfig] = None) -> Rig:
    """Build a :class:`Rig` from ``config`` and connect it."""
    rig = Rig.from_config(config or ClientConfig())
    rig.connect()
    return rig


__all__ = ["LineReader", "LineWriter", "Rig", "create_rig"]
