# tests/test_wire.py
"""Tests for the response grammar and command table."""

from __future__ import annotations

import pytest

from rigctld.errors import InternalError, RigReportError
from rigctld.wire import (
    COMMANDS,
    GET_FREQ,
    GET_MODE,
    GET_POWERSTAT,
    SET_FREQ,
    SET_MODE,
    SET_POWERSTAT,
    Mode,
    PowerState,
)


def test_request_lines_use_extended_response_prefix() -> None:
    """Requests are prefixed with ';' so the answer is one ';'-separated line."""
    assert GET_FREQ.request() == ";\\get_freq"
    assert SET_FREQ.request(7123000) == ";\\set_freq 7123000"
    assert SET_MODE.request(Mode.LSB, 1234) == ";\\set_mode LSB 1234"
    assert SET_POWERSTAT.request(PowerState.STANDBY) == ";\\set_powerstat 2"
    assert GET_POWERSTAT.request() == ";\\get_powerstat"


def test_command_table_complete() -> None:
    assert set(COMMANDS) == {
        "get_freq",
        "set_freq",
        "get_mode",
        "set_mode",
        "get_powerstat",
        "set_powerstat",
    }


def test_parse_valid_responses() -> None:
    assert GET_FREQ.parse("get_freq:;Frequency: 145000000;RPRT 0") == (145000000,)
    assert SET_FREQ.parse("set_freq: 7123000;RPRT 0") == (7123000,)
    assert GET_MODE.parse("get_mode:;Mode: FM;Passband: 15000;RPRT 0") == (Mode.FM, 15000)
    assert SET_MODE.parse("set_mode: PKTUSB 3000;RPRT 0") == (Mode.PKTUSB, 3000)
    assert GET_POWERSTAT.parse("get_powerstat:;Power Status: 1;RPRT 0") == (PowerState.ON,)
    assert SET_POWERSTAT.parse("set_powerstat: 0;RPRT 0") == (PowerState.OFF,)


def test_frequency_above_32_bits() -> None:
    assert GET_FREQ.parse("get_freq:;Frequency: 10368000000;RPRT 0") == (10_368_000_000,)


@pytest.mark.parametrize(
    "line",
    [
        "",
        "get_freq:;Frequency: ;RPRT 0",
        "get_freq:;Frequency: 14x;RPRT 0",
        "get_freq:;Frequency: 145000000",
        "get_freq:;Frequency: 145000000;RPRT 0 trailing",
        " get_freq:;Frequency: 145000000;RPRT 0",
        "get_freq:;Frequency: -5;RPRT 0",
        "get_freq:;Frequency: 1.5;RPRT 0",
        "set_freq: 7123000;RPRT 0",
    ],
)
def test_get_freq_rejects_malformed(line: str) -> None:
    with pytest.raises(InternalError):
        GET_FREQ.parse(line)


@pytest.mark.parametrize(
    "line",
    [
        "get_mode:;Mode: FM;RPRT 0",
        "get_mode:;Mode: fm;Passband: 15000;RPRT 0",
        "get_mode:;Mode: XYZ;Passband: 15000;RPRT 0",
        "get_mode:;Mode: FM;Passband: 65536;RPRT 0",
        "get_mode:;Mode: FM;Passband: 15000;Extra: 1;RPRT 0",
    ],
)
def test_get_mode_rejects_malformed(line: str) -> None:
    with pytest.raises(InternalError):
        GET_MODE.parse(line)


def test_passband_upper_bound_accepted() -> None:
    assert GET_MODE.parse("get_mode:;Mode: WFM;Passband: 65535;RPRT 0") == (Mode.WFM, 65535)


def test_powerstat_rejects_unknown_digit_and_multi_digit() -> None:
    with pytest.raises(InternalError):
        GET_POWERSTAT.parse("get_powerstat:;Power Status: 7;RPRT 0")
    with pytest.raises(InternalError):
        GET_POWERSTAT.parse("get_powerstat:;Power Status: 11;RPRT 0")


def test_nonzero_status_reported_with_code() -> None:
    with pytest.raises(RigReportError) as info:
        SET_FREQ.parse("set_freq: 7123000;RPRT -9")
    assert info.value.code == -9
    assert isinstance(info.value, InternalError)


def test_zero_status_with_bad_body_is_plain_internal_error() -> None:
    with pytest.raises(InternalError) as info:
        SET_FREQ.parse("set_freq: abc;RPRT 0")
    assert not isinstance(info.value, RigReportError)


def test_mode_tokens_round_trip() -> None:
    for mode in Mode:
        assert Mode.from_token(str(mode)) is mode
    with pytest.raises(InternalError):
        Mode.from_token("usb")


def test_power_state_digits() -> None:
    assert [str(s) for s in PowerState] == ["0", "1", "2"]
    assert PowerState.from_digit("2") is PowerState.STANDBY
    with pytest.raises(InternalError):
        PowerState.from_digit("3")
