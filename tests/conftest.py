# tests/conftest.py
"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import socket
import stat
import sys
from pathlib import Path
from typing import TYPE_CHECKING
from unittest.mock import MagicMock

import pytest

from fake_rigctld import FakeRigctld

if TYPE_CHECKING:
    from collections.abc import Iterator

    from rigctld.client import Rig
    from rigctld.config import DaemonConfig

TESTS_DIR = Path(__file__).resolve().parent


@pytest.fixture
def mock_socket() -> MagicMock:
    """Mock socket answering one get_freq line per recv."""
    mock = MagicMock()
    mock.recv.return_value = b"get_freq:;Frequency: 145000000;RPRT 0\n"
    return mock


@pytest.fixture
def free_port() -> int:
    """A loopback TCP port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture
def fake_rigctld() -> Iterator[FakeRigctld]:
    """Threaded fake daemon on an ephemeral loopback port."""
    server = FakeRigctld().start()
    try:
        yield server
    finally:
        server.stop()


@pytest.fixture
def rig(fake_rigctld: FakeRigctld) -> Iterator[Rig]:
    """Client connected to the fake daemon."""
    from rigctld.client import Rig

    client = Rig(host=fake_rigctld.host, port=fake_rigctld.port, timeout_s=1.0)
    client.connect()
    try:
        yield client
    finally:
        client.disconnect()


@pytest.fixture
def fake_program(tmp_path: Path) -> Path:
    """Executable that behaves like rigctld (listens, answers --version)."""
    script = tmp_path / "rigctld"
    script.write_text(
        f"#!{sys.executable}\n"
        "import sys\n"
        f"sys.path.insert(0, {str(TESTS_DIR)!r})\n"
        "from fake_rigctld import main\n"
        "sys.exit(main(sys.argv[1:]))\n",
        encoding="utf-8",
    )
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return script


@pytest.fixture
def fake_daemon_config(fake_program: Path, free_port: int) -> DaemonConfig:
    """DaemonConfig pointing at the fake executable on a free port."""
    from rigctld.config import DaemonConfig

    return DaemonConfig().set_program(str(fake_program)).set_port(free_port)


@pytest.fixture(autouse=True)
def _clear_error_history() -> Iterator[None]:
    from rigctld.utils.error_tracker import ErrorTracker

    ErrorTracker.clear_history()
    yield
    ErrorTracker.clear_history()
