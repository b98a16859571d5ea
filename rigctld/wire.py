# rigctld/wire.py
"""Line grammar of the rigctld extended response protocol.

Requests are sent with a leading ``;`` which switches ``rigctld`` into
extended response mode with ``;`` as record separator, so every answer is a
single line such as ``get_freq:;Frequency: 145000000;RPRT 0``.

Each supported command is described by a :class:`Command` that knows how to
format its request line and a :class:`ResponseGrammar` that validates the
answer and extracts typed fields from it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Callable, Tuple, Union

from rigctld.errors import InternalError, RigReportError

UINT16_MAX = 0xFFFF


class Mode(str, Enum):
    """Operating (modulation) mode of the rig."""

    USB = "USB"
    LSB = "LSB"
    CW = "CW"
    CWR = "CWR"
    RTTY = "RTTY"
    RTTYR = "RTTYR"
    AM = "AM"
    FM = "FM"
    WFM = "WFM"
    AMS = "AMS"
    PKTLSB = "PKTLSB"
    PKTUSB = "PKTUSB"
    PKTFM = "PKTFM"
    ECSSUSB = "ECSSUSB"
    ECSSLSB = "ECSSLSB"
    FAX = "FAX"
    SAM = "SAM"
    SAL = "SAL"
    SAH = "SAH"
    DSB = "DSB"

    @classmethod
    def from_token(cls, token: str) -> Mode:
        try:
            return cls(token)
        except ValueError:
            raise InternalError(f"unknown mode token {token!r}") from None

    def __str__(self) -> str:
        return self.value


class PowerState(IntEnum):
    """Power status of the rig, sent as a single digit."""

    OFF = 0
    ON = 1
    STANDBY = 2

    @classmethod
    def from_digit(cls, digit: str) -> PowerState:
        try:
            return cls(int(digit))
        except ValueError:
            raise InternalError(f"unknown power state {digit!r}") from None

    def __str__(self) -> str:
        return str(self.value)


# ────────────── field types ──────────────


def _uint16(text: str) -> int:
    value = int(text)
    if value > UINT16_MAX:
        raise InternalError(f"passband {value} exceeds {UINT16_MAX}")
    return value


@dataclass(frozen=True)
class FieldType:
    """A typed capture inside a response line."""

    name: str
    pattern: str
    convert: Callable[[str], Any]


UINT = FieldType("uint", r"[0-9]+", int)
UINT16 = FieldType("uint16", r"[0-9]+", _uint16)
TOKEN = FieldType("token", r"[A-Z]+", Mode.from_token)
DIGIT = FieldType("digit", r"[0-9]", PowerState.from_digit)

Part = Union[str, FieldType]

_STATUS_RE = re.compile(r";RPRT (-?[0-9]+)$")


class ResponseGrammar:
    """Anchored sequence of literal text and typed fields."""

    def __init__(self, *parts: Part) -> None:
        self.parts: Tuple[Part, ...] = parts
        regex = "".join(
            re.escape(p) if isinstance(p, str) else f"({p.pattern})" for p in parts
        )
        self._regex = re.compile(regex)
        self.fields = tuple(p for p in parts if isinstance(p, FieldType))

    def parse(self, line: str) -> Tuple[Any, ...]:
        """Return the converted fields of ``line`` or raise :class:`InternalError`."""
        match = self._regex.fullmatch(line)
        if match is None:
            status = _STATUS_RE.search(line)
            if status is not None and int(status.group(1)) != 0:
                raise RigReportError(int(status.group(1)), line)
            raise InternalError(f"unexpected response {line!r}")
        values = []
        for field_type, text in zip(self.fields, match.groups()):
            try:
                values.append(field_type.convert(text))
            except InternalError:
                raise
            except ValueError as exc:
                raise InternalError(f"bad {field_type.name} field {text!r}: {exc}") from exc
        return tuple(values)

    def __repr__(self) -> str:
        shown = "".join(p if isinstance(p, str) else f"<{p.name}>" for p in self.parts)
        return f"ResponseGrammar({shown!r})"


# ────────────── command table ──────────────


@dataclass(frozen=True)
class Command:
    """A protocol command: request formatting plus its response grammar."""

    name: str
    grammar: ResponseGrammar

    def request(self, *args: Any) -> str:
        words = [self.name, *(str(a) for a in args)]
        return ";\\" + " ".join(words)

    def parse(self, line: str) -> Tuple[Any, ...]:
        return self.grammar.parse(line)


_OK = ";RPRT 0"

GET_FREQ = Command("get_freq", ResponseGrammar("get_freq:;Frequency: ", UINT, _OK))
SET_FREQ = Command("set_freq", ResponseGrammar("set_freq: ", UINT, _OK))
GET_MODE = Command(
    "get_mode",
    ResponseGrammar("get_mode:;Mode: ", TOKEN, ";Passband: ", UINT16, _OK),
)
SET_MODE = Command("set_mode", ResponseGrammar("set_mode: ", TOKEN, " ", UINT16, _OK))
GET_POWERSTAT = Command(
    "get_powerstat", ResponseGrammar("get_powerstat:;Power Status: ", DIGIT, _OK)
)
SET_POWERSTAT = Command("set_powerstat", ResponseGrammar("set_powerstat: ", DIGIT, _OK))

COMMANDS = {
    cmd.name: cmd
    for cmd in (GET_FREQ, SET_FREQ, GET_MODE, SET_MODE, GET_POWERSTAT, SET_POWERSTAT)
}


__all__ = [
    "COMMANDS",
    "Command",
    "FieldType",
    "GET_FREQ",
    "GET_MODE",
    "GET_POWERSTAT",
    "Mode",
    "PowerState",
    "ResponseGrammar",
    "SET_FREQ",
    "SET_MODE",
    "SET_POWERSTAT",
    "UINT16_MAX",
]
