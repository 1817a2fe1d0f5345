"""Tests for runtime settings loading and validation."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

import pytest

from pnl_attribution.config import AppSettings, SettingsLoadError, config_load_settings


def test_config_load_settings_reads_environment_variables(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Load typed values from uppercase environment variables.

    Args:
        monkeypatch: Pytest monkeypatch fixture.
        tmp_path: Directory without a dotenv file.

    Returns:
        None: Assertions validate loaded values.

    Raises:
        AssertionError: Raised when values are not loaded.
    """

    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DEFAULT_TRADING_ENVIRONMENT", "Testnet")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("ATTRIBUTION_QUERY_MAX_WORKERS", "3")
    monkeypatch.setenv("ATTRIBUTION_STRICT_CONSISTENCY", "true")
    monkeypatch.setenv("PNL_SYNC_TOLERANCE", "0.01")

    settings = config_load_settings()

    assert settings.default_trading_environment == "testnet"
    assert settings.log_level == "DEBUG"
    assert settings.attribution_query_max_workers == 3
    assert settings.attribution_strict_consistency is True
    assert settings.pnl_sync_tolerance == Decimal("0.01")


@pytest.mark.parametrize(
    ("variable_name", "variable_value"),
    [
        ("DEFAULT_TRADING_ENVIRONMENT", "devnet"),
        ("LOG_LEVEL", "verbose"),
        ("REPORT_TIMEZONE", "Mars/Olympus_Mons"),
        ("ATTRIBUTION_QUERY_MAX_WORKERS", "0"),
        ("DATABASE_URL", "   "),
    ],
)
def test_config_load_settings_rejects_invalid_values(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    variable_name: str,
    variable_value: str,
) -> None:
    """Raise SettingsLoadError for invalid configuration values.

    Args:
        monkeypatch: Pytest monkeypatch fixture.
        tmp_path: Directory without a dotenv file.
        variable_name: Environment variable to override.
        variable_value: Invalid value.

    Returns:
        None: Assertions validate startup failure.

    Raises:
        AssertionError: Raised when invalid settings load.
    """

    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv(variable_name, variable_value)

    with pytest.raises(SettingsLoadError, match="Startup configuration validation failed"):
        config_load_settings()


def test_config_app_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    """Expose documented defaults for attribution settings.

    Args:
        monkeypatch: Pytest monkeypatch fixture.

    Returns:
        None: Assertions validate defaults.

    Raises:
        AssertionError: Raised when defaults diverge.
    """

    for variable_name in ("REPORT_TIMEZONE", "ATTRIBUTION_QUERY_MAX_WORKERS", "PNL_SYNC_TOLERANCE"):
        monkeypatch.delenv(variable_name, raising=False)

    settings = AppSettings(_env_file=None)

    assert settings.report_timezone == "UTC"
    assert settings.attribution_query_max_workers == 5
    assert settings.pnl_sync_tolerance == Decimal("0.000001")
