# rigctld/config.py
"""Centralized configuration for the rigctld client and supervisor.

All constants, settings, and configuration dataclasses are defined here.
Modules should import from this single source of truth.
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any, Final, Mapping, Optional

from rigctld.utils.io import load_yaml

# ============================================================================
# DAEMON CONSTANTS
# ============================================================================

DAEMON_DEFAULT_PROGRAM: Final[str] = "rigctld"
DAEMON_DEFAULT_HOST: Final[str] = "127.0.0.1"
DAEMON_DEFAULT_PORT: Final[int] = 4532
# Hamlib model 1 is the software-simulated "dummy" rig
DAEMON_DEFAULT_MODEL: Final[int] = 1
DAEMON_VERSION_FLAG: Final[str] = "--version"
DAEMON_READY_TIMEOUT_S: Final[float] = 5.0
DAEMON_READY_POLL_S: Final[float] = 0.05
DAEMON_STOP_TIMEOUT_S: Final[float] = 2.0

# ============================================================================
# CLIENT CONSTANTS
# ============================================================================

CLIENT_TIMEOUT_S: Final[float] = 0.25
CLIENT_CONNECT_TIMEOUT_S: Final[float] = 5.0
CLIENT_RECV_CHUNK: Final[int] = 4096

# ============================================================================
# ENV HELPERS
# ============================================================================


def _env_path(key: str, default: Optional[Path]) -> Optional[Path]:
    """Resolve path from environment variable with fallback."""
    value = os.getenv(key)
    return Path(value).expanduser() if value else default


def _env_str(key: str, default: str) -> str:
    """Resolve string from environment variable with fallback."""
    value = os.getenv(key)
    return value if value is not None else default


def _env_int(key: str, default: int) -> int:
    """Resolve integer from environment variable with fallback.

    Accepts any base Python understands, so ``0x76`` works for CI-V addresses.
    """
    value = os.getenv(key)
    return int(value, 0) if value is not None else default


def _env_opt_int(key: str) -> Optional[int]:
    """Resolve optional integer from environment variable; unset or empty is ``None``."""
    value = os.getenv(key)
    return int(value, 0) if value else None


def _env_float(key: str, default: float) -> float:
    """Resolve float from environment variable with fallback."""
    value = os.getenv(key)
    return float(value) if value is not None else default


# ============================================================================
# ENUMS
# ============================================================================


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


# ============================================================================
# DATACLASSES - Configuration Sections
# ============================================================================


@dataclass(frozen=True)
class DaemonConfig:
    """Command line parameters for a ``rigctld`` instance.

    Instances are immutable snapshots. The ``set_*`` methods return a new
    instance, so a configuration can be built fluently::

        cfg = DaemonConfig().set_model(3061).set_serial_speed(19200)
    """

    program: str = DAEMON_DEFAULT_PROGRAM
    host: str = DAEMON_DEFAULT_HOST
    port: int = DAEMON_DEFAULT_PORT
    model: int = DAEMON_DEFAULT_MODEL
    rig_file: Optional[str] = None
    serial_speed: Optional[int] = None
    civ_address: Optional[int] = None

    def __post_init__(self) -> None:
        if not self.program:
            raise ValueError("program must not be empty")
        if not 0 < self.port < 65536:
            raise ValueError(f"port must be in 1..65535, got {self.port}")

    def set_program(self, program: str) -> DaemonConfig:
        """Name of the program, optionally prefixed with a path if not on ``PATH``."""
        return replace(self, program=program)

    def set_host(self, host: str) -> DaemonConfig:
        """Address the daemon opens its listening socket on."""
        return replace(self, host=host)

    def set_port(self, port: int) -> DaemonConfig:
        return replace(self, port=port)

    def set_model(self, model: int) -> DaemonConfig:
        """Device model, see ``rigctld -l`` for supported models."""
        return replace(self, model=model)

    def set_rig_file(self, rig_file: str) -> DaemonConfig:
        """Device file of the rig, e.g. ``/dev/ttyUSB0``."""
        return replace(self, rig_file=rig_file)

    def set_serial_speed(self, speed: int) -> DaemonConfig:
        """Serial speed of the rig, e.g. 19200."""
        return replace(self, serial_speed=speed)

    def set_civ_address(self, address: int) -> DaemonConfig:
        """CI-V address of the rig, e.g. 0x76."""
        return replace(self, civ_address=address)

    def get_host(self) -> str:
        return self.host

    def get_port(self) -> int:
        return self.port


@dataclass(frozen=True)
class ClientConfig:
    """Protocol client configuration."""

    host: str = DAEMON_DEFAULT_HOST
    port: int = DAEMON_DEFAULT_PORT
    timeout_s: float = CLIENT_TIMEOUT_S
    connect_timeout_s: float = CLIENT_CONNECT_TIMEOUT_S

    def __post_init__(self) -> None:
        if self.timeout_s <= 0:
            raise ValueError(f"timeout_s must be positive, got {self.timeout_s}")


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""

    level: LogLevel = LogLevel.INFO
    log_dir: Optional[Path] = None


# ============================================================================
# MAIN CONFIGURATION
# ============================================================================


@dataclass(frozen=True)
class Settings:
    """Main application configuration.

    Instances are immutable (frozen=True) to prevent accidental mutation.
    """

    daemon: DaemonConfig = field(default_factory=DaemonConfig)
    client: ClientConfig = field(default_factory=ClientConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def as_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["logging"]["level"] = self.logging.level.value
        if self.logging.log_dir is not None:
            data["logging"]["log_dir"] = str(self.logging.log_dir)
        return data


def configure(**options: Any) -> DaemonConfig:
    """Build a :class:`DaemonConfig` from keyword options.

    Recognised options are the field names of :class:`DaemonConfig`; anything
    else raises ``TypeError``.
    """
    return DaemonConfig(**options)


def get_settings() -> Settings:
    """Factory function to create Settings with environment variable overrides.

    Environment variables:
        RIGCTLD_PROGRAM: Daemon program name or path
        RIGCTLD_HOST: Daemon listen / client connect address
        RIGCTLD_PORT: Daemon listen / client connect port
        RIGCTLD_MODEL: Hamlib rig model
        RIGCTLD_RIG_FILE: Rig device file
        RIGCTLD_SERIAL_SPEED: Rig serial speed
        RIGCTLD_CIV_ADDRESS: Rig CI-V address (``0x76`` accepted)
        RIGCTLD_TIMEOUT: Client read timeout in seconds
        RIGCTLD_LOG_LEVEL: Logging level
        RIGCTLD_LOG_DIR: Directory for the log file sink
    """
    host = _env_str("RIGCTLD_HOST", DAEMON_DEFAULT_HOST)
    port = _env_int("RIGCTLD_PORT", DAEMON_DEFAULT_PORT)

    rig_file = os.getenv("RIGCTLD_RIG_FILE") or None
    daemon = DaemonConfig(
        program=_env_str("RIGCTLD_PROGRAM", DAEMON_DEFAULT_PROGRAM),
        host=host,
        port=port,
        model=_env_int("RIGCTLD_MODEL", DAEMON_DEFAULT_MODEL),
        rig_file=rig_file,
        serial_speed=_env_opt_int("RIGCTLD_SERIAL_SPEED"),
        civ_address=_env_opt_int("RIGCTLD_CIV_ADDRESS"),
    )

    client = ClientConfig(
        host=host,
        port=port,
        timeout_s=_env_float("RIGCTLD_TIMEOUT", CLIENT_TIMEOUT_S),
    )

    logging = LoggingConfig(
        level=LogLevel(_env_str("RIGCTLD_LOG_LEVEL", LogLevel.INFO.value).upper()),
        log_dir=_env_path("RIGCTLD_LOG_DIR", None),
    )

    return Settings(daemon=daemon, client=client, logging=logging)


def _override(section: Any, values: Mapping[str, Any], name: str) -> Any:
    known = {f.name for f in fields(section)}
    unknown = set(values) - known
    if unknown:
        raise ValueError(f"unknown keys in '{name}': {', '.join(sorted(unknown))}")
    return replace(section, **values)


def load_settings(path: Path, base: Optional[Settings] = None) -> Settings:
    """Load a YAML settings file on top of ``base`` (env-derived by default).

    The file may contain ``daemon``, ``client`` and ``logging`` sections whose
    keys are the field names of the matching dataclass.
    """
    settings = base or get_settings()
    raw = load_yaml(Path(path)) or {}
    if not isinstance(raw, Mapping):
        raise ValueError(f"{path}: top level must be a mapping")

    unknown = set(raw) - {"daemon", "client", "logging"}
    if unknown:
        raise ValueError(f"{path}: unknown sections {', '.join(sorted(unknown))}")

    daemon = _override(settings.daemon, raw.get("daemon") or {}, "daemon")
    client = _override(settings.client, raw.get("client") or {}, "client")

    log_values = dict(raw.get("logging") or {})
    if "level" in log_values:
        log_values["level"] = LogLevel(str(log_values["level"]).upper())
    if log_values.get("log_dir") is not None:
        log_values["log_dir"] = Path(log_values["log_dir"]).expanduser()
    logging = _override(settings.logging, log_values, "logging")

    return Settings(daemon=daemon, client=client, logging=logging)


# ============================================================================
# MODULE EXPORTS
# ============================================================================

__all__ = [
    # Factories
    "configure",
    "get_settings",
    "load_settings",
    # Main config
    "Settings",
    # Config sections
    "DaemonConfig",
    "ClientConfig",
    "LoggingConfig",
    # Enums
    "LogLevel",
    # Constants (selected for external use)
    "DAEMON_DEFAULT_PROGRAM",
    "DAEMON_DEFAULT_HOST",
    "DAEMON_DEFAULT_PORT",
    "DAEMON_DEFAULT_MODEL",
    "DAEMON_VERSION_FLAG",
    "CLIENT_TIMEOUT_S",
]
