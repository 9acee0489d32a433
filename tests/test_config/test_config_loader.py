from __future__ import annotations

from pathlib import Path
from textwrap import dedent

import pytest

from coinflow.config.loader import CONFIG_ENV_VAR, load_dashboard_config, resolve_dashboard_config
from coinflow.core.enums import Period
from coinflow.core.errors import ConfigurationError


def _write_yaml(path: Path, content: str) -> Path:
    path.write_text(dedent(content), encoding="utf-8")
    return path


def test_load_dashboard_config_should_parse_valid_yaml(tmp_path: Path) -> None:
    path = _write_yaml(
        tmp_path / "dashboard.yml",
        """
        exchange:
          rest_endpoint: https://api.binance.us
          timeout_sec: 2.5
        symbols:
          - symbol: BTC
            name: Bitcoin
            seed_price: 60000
            seed_change_pct: -0.5
          - symbol: SOL
            seed_price: 150
        quotes:
          poll_interval_sec: 2
        chart:
          reference_symbol: SOL
          default_period: 1M
        timezone: Asia/Shanghai
        """,
    )
    config = load_dashboard_config(path)
    assert config.exchange.rest_endpoint == "https://api.binance.us"
    assert config.exchange.timeout_sec == 2.5
    assert config.tracked_symbols == ["BTC", "SOL"]
    assert config.quotes.poll_interval_sec == 2
    assert config.chart.default_period is Period.MONTH
    assert config.pair_for(config.chart.reference_symbol) == "SOLUSDT"
    assert config.timezone == "Asia/Shanghai"


def test_blank_yaml_should_yield_defaults(tmp_path: Path) -> None:
    path = _write_yaml(tmp_path / "dashboard.yml", "")
    config = load_dashboard_config(path)
    assert config.tracked_symbols == ["BTC", "ETH"]


def test_missing_file_should_raise(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_dashboard_config(tmp_path / "missing.yml")


def test_non_mapping_root_should_raise(tmp_path: Path) -> None:
    path = _write_yaml(tmp_path / "dashboard.yml", "- just\n- a list\n")
    with pytest.raises(ValueError):
        load_dashboard_config(path)


def test_invalid_values_should_raise_configuration_error(tmp_path: Path) -> None:
    path = _write_yaml(
        tmp_path / "dashboard.yml",
        """
        quotes:
          poll_interval_sec: -1
        """,
    )
    with pytest.raises(ConfigurationError):
        load_dashboard_config(path)


def test_resolve_should_prefer_env_then_file_then_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    assert resolve_dashboard_config(tmp_path / "absent.yml").tracked_symbols == ["BTC", "ETH"]

    file_path = _write_yaml(tmp_path / "dashboard.yml", "timezone: Europe/Berlin\n")
    assert resolve_dashboard_config(file_path).timezone == "Europe/Berlin"

    env_path = _write_yaml(tmp_path / "env.yml", "timezone: Asia/Tokyo\n")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(env_path))
    assert resolve_dashboard_config(file_path).timezone == "Asia/Tokyo"


def test_load_dashboard_config_rejects_non_finite_seeds(tmp_path: Path) -> None:
    path = _write_yaml(
        tmp_path / "dashboard.yml",
        """
        symbols:
          - symbol: BTC
            seed_price: .inf
            seed_change_pct: .nan
        """,
    )
    with pytest.raises(ConfigurationError):
        load_dashboard_config(path)
