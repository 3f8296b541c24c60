"""Runtime configuration for notemod.

Settings are resolved in three layers, later layers winning:

1. Built-in defaults (data under ``~/.notemod/``)
2. An optional YAML file -- ``$NOTEMOD_CONFIG`` or ``<data_dir>/config.yaml``
3. ``NOTEMOD_*`` environment variables
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from notemod.errors import ValidationError

SESSION_BACKENDS = ("file", "memory")

_ENV_PREFIX = "NOTEMOD_"


@dataclass
class Settings:
    """Resolved configuration values."""

    data_dir: str = str(Path.home() / ".notemod")
    session_backend: str = "file"
    session_ttl_hours: int = 24
    default_page_size: int = 10
    max_page_size: int = 100
    log_level: str = "INFO"
    cookie_name: str = "notemod_session"
    cookie_secure: bool = False

    def __post_init__(self) -> None:
        if self.session_backend not in SESSION_BACKENDS:
            raise ValidationError(
                f"session_backend must be one of {list(SESSION_BACKENDS)}, "
                f"got '{self.session_backend}'"
            )
        if self.session_ttl_hours < 1:
            raise ValidationError("session_ttl_hours must be at least 1")
        if self.max_page_size < 1:
            raise ValidationError("max_page_size must be at least 1")
        if not 1 <= self.default_page_size <= self.max_page_size:
            raise ValidationError(
                f"default_page_size must be between 1 and {self.max_page_size}"
            )
        if logging.getLevelName(self.log_level.upper()) == f"Level {self.log_level.upper()}":
            raise ValidationError(f"Unknown log level: {self.log_level}")
        self.log_level = self.log_level.upper()

    @property
    def base_path(self) -> Path:
        return Path(self.data_dir).expanduser()


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def _coerce(name: str, raw: Any, target: type) -> Any:
    if target is bool:
        if isinstance(raw, bool):
            return raw
        return str(raw).strip().lower() in ("1", "true", "yes", "on")
    if target is int:
        try:
            return int(raw)
        except (TypeError, ValueError):
            raise ValidationError(f"{name} must be an integer, got '{raw}'")
    return str(raw)


def _read_yaml(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as exc:
        raise ValidationError(f"Invalid config file {path}: {exc}")
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError(f"Config file {path} must contain a mapping")
    return data


def load_settings(
    environ: Optional[Mapping[str, str]] = None,
    config_path: Optional[str] = None,
) -> Settings:
    """Build a :class:`Settings` from defaults, YAML, and the environment."""
    env = os.environ if environ is None else environ
    types = {f.name: f.type for f in fields(Settings)}
    type_map = {"str": str, "int": int, "bool": bool}

    values: dict[str, Any] = {}
    data_dir = env.get(f"{_ENV_PREFIX}HOME")
    if data_dir:
        values["data_dir"] = data_dir

    path_str = config_path or env.get(f"{_ENV_PREFIX}CONFIG")
    if path_str:
        path = Path(path_str).expanduser()
    else:
        path = Path(values.get("data_dir", Settings.data_dir)).expanduser() / "config.yaml"

    for key, raw in _read_yaml(path).items():
        if key not in types:
            raise ValidationError(f"Unknown config key '{key}' in {path}")
        values[key] = _coerce(key, raw, type_map[types[key]])

    for name, type_name in types.items():
        raw = env.get(f"{_ENV_PREFIX}{name.upper()}")
        if raw is not None and name != "data_dir":
            values[name] = _coerce(name, raw, type_map[type_name])

    return Settings(**values)


def configure_logging(settings: Settings) -> None:
    """Install the root log handler for CLI and web entry points."""
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
