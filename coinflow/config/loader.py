"""YAML loader for the config subsystem.

The dashboard reads a single YAML file whose root keys mirror
:class:`DashboardConfig` (``exchange``, ``symbols``, ``quotes``, ``chart``,
``telemetry``, ``timezone``). Missing sections fall back to model defaults.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping

import yaml
from pydantic import ValidationError

from coinflow.core.errors import ConfigurationError

from .models import DashboardConfig

_DEFAULT_CONFIG_PATH = Path("config") / "dashboard.yml"
CONFIG_ENV_VAR = "COINFLOW_CONFIG"


def _read_yaml(path: Path) -> Mapping:
    """Read a YAML file and return a mapping (empty dict if file is blank)."""

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("r", encoding="utf-8") as fp:
        data = yaml.safe_load(fp) or {}
    if not isinstance(data, Mapping):
        raise ValueError(f"YAML root must be a mapping in {path}")
    return data


def load_dashboard_config(path: Path | str = _DEFAULT_CONFIG_PATH) -> DashboardConfig:
    """Load and validate dashboard.yml."""

    data = _read_yaml(Path(path))
    try:
        return DashboardConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid dashboard config in {path}: {exc}") from exc


def resolve_dashboard_config(default_path: Path | str = _DEFAULT_CONFIG_PATH) -> DashboardConfig:
    """Return config from ``$COINFLOW_CONFIG``, ``default_path`` or built-in defaults.

    An explicitly configured path must exist; the default path is optional.
    """

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return load_dashboard_config(env_path)
    candidate = Path(default_path)
    if candidate.exists():
        return load_dashboard_config(candidate)
    return DashboardConfig.default()
