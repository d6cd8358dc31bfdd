"""
Configuration for procctl.

Settings are read from a YAML file (or a dict) and may be overridden by
environment variables with the PROCCTL_ prefix:

    # procctl.yaml
    logging:
      level: debug
    spawn:
      flush_stdio: true
      shell: /bin/sh
    detach:
      thread_name: procctl-detach

    PROCCTL_LOGGING_LEVEL=trace        # overrides logging.level
    PROCCTL_SPAWN_FLUSH_STDIO=false    # overrides spawn.flush_stdio

The settings may also live under a top-level ``procctl`` key of a larger
application config. configure() applies a ProcConfig to the package defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]

from .exceptions import ConfigError

ENV_PREFIX = "PROCCTL_"

# Config files are small; anything larger is a mistake
MAX_CONFIG_SIZE_BYTES = 1024 * 1024


@dataclass(frozen=True)
class LoggingSettings:
    level: str | int | bool = "warning"
    micros: bool = False
    colors: bool = True


@dataclass(frozen=True)
class SpawnSettings:
    flush_stdio: bool = True
    shell: str = "/bin/sh"


@dataclass(frozen=True)
class DetachSettings:
    thread_name: str = "procctl-detach"


_SECTIONS: dict[str, type] = {
    "logging": LoggingSettings,
    "spawn": SpawnSettings,
    "detach": DetachSettings,
}


def _convert_env_value(value: str) -> bool | int | str:
    """Convert an environment variable string to bool, int or str."""
    lowered = value.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    try:
        return int(value)
    except ValueError:
        return value


def _check_type(section: str, key: str, value: Any, expected: Any) -> None:
    if expected is bool or expected == "bool":
        ok = isinstance(value, bool)
    elif expected == "str":
        ok = isinstance(value, str)
    else:
        ok = isinstance(value, (str, int, bool))
    if not ok:
        raise ConfigError(
            "invalid configuration value", key=f"{section}.{key}", value=repr(value)
        )


def _build_section(name: str, values: Any) -> Any:
    cls = _SECTIONS[name]
    if values is None:
        return cls()
    if not isinstance(values, dict):
        raise ConfigError("configuration section must be a mapping", section=name)

    known = {f.name: f.type for f in fields(cls)}
    for key, value in values.items():
        if key not in known:
            raise ConfigError("unknown configuration key", key=f"{name}.{key}")
        _check_type(name, key, value, known[key])
    return cls(**values)


@dataclass(frozen=True)
class ProcConfig:
    """
    Immutable procctl configuration.

    Example:
        cfg = ProcConfig.from_file("etc/procctl.yaml")
        configure(cfg)
    """

    logging: LoggingSettings = field(default_factory=LoggingSettings)
    spawn: SpawnSettings = field(default_factory=SpawnSettings)
    detach: DetachSettings = field(default_factory=DetachSettings)

    @classmethod
    def from_dict(
        cls, data: dict[str, Any] | None, enable_env_overrides: bool = True
    ) -> ProcConfig:
        """
        Build a config from a dict, applying PROCCTL_* overrides.

        Raises:
            ConfigError: Unknown section or key, or a value of the wrong type
        """
        data = dict(data or {})
        if "procctl" in data:
            data = dict(data["procctl"] or {})

        if enable_env_overrides:
            data = _apply_env_overrides(data, os.environ)

        for name in data:
            if name not in _SECTIONS:
                raise ConfigError("unknown configuration section", section=name)

        return cls(**{name: _build_section(name, data.get(name)) for name in _SECTIONS})

    @classmethod
    def from_file(
        cls, path: str | Path, enable_env_overrides: bool = True
    ) -> ProcConfig:
        """
        Load a config from a YAML file.

        Raises:
            ConfigError: File missing, too large, or not valid YAML
        """
        path = Path(path)
        try:
            size = path.stat().st_size
        except OSError as e:
            raise ConfigError("cannot read configuration file", path=str(path)) from e
        if size > MAX_CONFIG_SIZE_BYTES:
            raise ConfigError(
                "configuration file too large", path=str(path), size=size
            )

        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError("invalid YAML", path=str(path)) from e

        if data is not None and not isinstance(data, dict):
            raise ConfigError("configuration root must be a mapping", path=str(path))
        return cls.from_dict(data, enable_env_overrides)


def _apply_env_overrides(data: dict[str, Any], environ: Any) -> dict[str, Any]:
    """Apply PROCCTL_<SECTION>_<KEY>=value variables to data."""
    for env_key, env_value in environ.items():
        if not env_key.startswith(ENV_PREFIX):
            continue
        rest = env_key[len(ENV_PREFIX) :].lower()
        section, _, key = rest.partition("_")
        if section not in _SECTIONS or not key:
            continue
        current = data.get(section)
        merged = dict(current) if isinstance(current, dict) else {}
        merged[key] = _convert_env_value(env_value)
        data[section] = merged
    return data


def configure(cfg: ProcConfig) -> None:
    """
    Apply cfg to the package defaults.

    Reconfigures the /procctl root logger, replaces the process-wide spawner
    and sets the detach thread name.
    """
    from .detach import set_default_thread_name
    from .log import LogConfig, root_lg
    from .spawn import Spawner, set_default_spawner

    root_lg().reconfigure(
        LogConfig.from_params(
            cfg.logging.level, micros=cfg.logging.micros, colors=cfg.logging.colors
        )
    )
    set_default_spawner(
        Spawner(flush_stdio=cfg.spawn.flush_stdio, shell=cfg.spawn.shell)
    )
    set_default_thread_name(cfg.detach.thread_name)
