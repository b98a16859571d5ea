# tests/test_integration.py
"""Integration smoke tests."""

from __future__ import annotations

import shutil

import pytest

from rigctld.config import Settings


def test_config_import_smoke() -> None:
    """Smoke test: import and instantiate main config."""
    from rigctld.config import get_settings

    settings = get_settings()
    assert isinstance(settings, Settings)


def test_client_import_smoke() -> None:
    """Smoke test: import rig client."""
    from rigctld import Rig

    rig = Rig(host="localhost", port=4532)
    assert rig.is_connected() is False


def _exercise(daemon_config) -> None:
    from rigctld import Rig, spawn_daemon
    from rigctld.errors import NotStarted

    daemon = spawn_daemon(daemon_config)
    try:
        assert daemon.wait_until_listening(timeout_s=10.0)
        with Rig(host=daemon_config.get_host(), port=daemon_config.get_port(), timeout_s=2.0) as rig:
            rig.connect()
            assert rig.get_frequency() == 145_000_000
            rig.set_frequency(7_123_000)
            assert rig.get_frequency() == 7_123_000
    finally:
        daemon.kill()

    with pytest.raises(NotStarted):
        daemon.is_running()


@pytest.mark.slow
def test_dummy_rig_scenario_with_fake_program(fake_daemon_config) -> None:
    """Spawn, connect, tune and kill against a stand-in executable."""
    _exercise(fake_daemon_config)


@pytest.mark.integration
@pytest.mark.skipif(shutil.which("rigctld") is None, reason="Hamlib rigctld not installed")
def test_dummy_rig_scenario_with_hamlib(free_port: int) -> None:
    """Same scenario against a real rigctld with the dummy rig."""
    from rigctld.config import DaemonConfig

    _exercise(DaemonConfig().set_port(free_port))
