from __future__ import annotations

from pathlib import Path

import pydantic
import pytest

from tradedash.config import load_settings
from tradedash.services.regime import RegimeRibbonBuilder


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("TRADEDASH_BACKEND_URL", "SYMBOL", "INTERVAL"):
        monkeypatch.delenv(name, raising=False)


def test_missing_file_uses_defaults(tmp_path: Path) -> None:
    settings = load_settings(tmp_path / "absent.yaml")

    assert settings.backend.base_url == "http://localhost:8080"
    assert settings.dashboard.lookback_days == 7
    assert settings.ribbon.max_samples == 60


def test_yaml_and_env_overrides(tmp_path: Path, monkeypatch) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text(
        "backend:\n  base_url: http://reports:9000\n  timeout_seconds: 3\n"
        "dashboard:\n  symbol: ETHUSDT\n  interval: 5m\n"
        "ribbon:\n  max_samples: 12\n  tail_duration_ms: 5000\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("SYMBOL", "SOLUSDT")
    monkeypatch.setenv("INTERVAL", "3m")

    settings = load_settings(path)

    assert settings.backend.base_url == "http://reports:9000"
    assert settings.backend.timeout_seconds == 3.0
    assert settings.dashboard.symbol == "SOLUSDT"
    # unsupported interval override is ignored
    assert settings.dashboard.interval == "5m"

    builder = RegimeRibbonBuilder.from_settings(settings)
    assert builder.max_samples == 12
    assert builder.tail_duration_ms == 5000


def test_invalid_interval_in_yaml(tmp_path: Path) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text("dashboard:\n  interval: 2m\n", encoding="utf-8")

    with pytest.raises(pydantic.ValidationError):
        load_settings(path)


def test_repository_settings_file() -> None:
    settings = load_settings(Path(__file__).resolve().parents[1] / "configs" / "settings.yaml")

    assert settings.dashboard.symbol == "BTCUSDT"
    assert not hasattr(settings.dashboard, "symbols")
    assert settings.dashboard.klines_limit == 1500
