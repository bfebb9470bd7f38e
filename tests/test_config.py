from decimal import Decimal
from pathlib import Path

import pytest

from mokka.config import load_settings, resolve_config_path
from mokka.errors import ConfigurationError

YAML = """\
interval: 15
log_file_type: date
markets:
  binance:
    max_fund: 50
    max_sell: 0.25
indicators:
  percent:
    buy_percent: 3
"""


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for key in ("MOKKA_INTERVAL", "MOKKA_MARKETS__BINANCE__API_KEY"):
        monkeypatch.delenv(key, raising=False)
    (tmp_path / "config").mkdir()
    (tmp_path / "config" / "test.yml").write_text(YAML)
    return tmp_path / "config"


def test_loads_named_yaml(config_dir):
    settings = load_settings("test")
    assert settings.interval == 15
    assert settings.log_file_type == "date"
    market = settings.market("binance")
    assert market.max_fund == Decimal("50")
    assert market.max_sell == Decimal("0.25")
    assert market.quote_asset == "USDT"
    assert settings.indicator("percent") == {"buy_percent": 3}


def test_environment_overrides_yaml(config_dir, monkeypatch):
    monkeypatch.setenv("MOKKA_INTERVAL", "5")
    monkeypatch.setenv("MOKKA_MARKETS__BINANCE__API_KEY", "abc")
    settings = load_settings("test")
    assert settings.interval == 5
    assert settings.market("binance").api_key == "abc"
    assert settings.market("binance").max_fund == Decimal("50")


def test_path_instead_of_name(config_dir):
    assert resolve_config_path("other.yaml") == Path("other.yaml")
    assert load_settings(str(config_dir / "test.yml")).interval == 15


def test_missing_config_file(config_dir):
    with pytest.raises(ConfigurationError, match="not found"):
        load_settings("nope")


def test_unknown_market_and_indicator(config_dir):
    settings = load_settings("test")
    with pytest.raises(ConfigurationError, match="kraken"):
        settings.market("kraken")
    with pytest.raises(ConfigurationError, match="rsi"):
        settings.indicator("rsi")


def test_invalid_values(config_dir):
    (config_dir / "bad.yml").write_text("markets:\n  binance:\n    max_fund: lots\n    max_sell: 1\n")
    with pytest.raises(ConfigurationError, match="Invalid config"):
        load_settings("bad")
