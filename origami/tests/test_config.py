from __future__ import annotations

import json
import os

import pytest
import yaml

from origami.config import COIN, DAY_MS, RaffleConfig, from_env, from_file, from_mapping, load_config, pretty
from origami.errors import ConfigError


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for k in list(os.environ):
        if k.startswith("ORIGAMI_"):
            monkeypatch.delenv(k, raising=False)


def test_defaults():
    cfg = load_config()
    assert cfg == RaffleConfig()
    assert cfg.max_tickets == 200
    assert cfg.start_price == 5 * COIN
    assert cfg.price_increment == COIN // 5
    assert cfg.reserve_per_ticket == COIN
    assert cfg.small_prize_bps == 2_000
    assert cfg.main_split_bps == (6_000, 3_000, 1_000)
    assert cfg.end_date_mode == "absolute"
    assert cfg.daily_interval_ms == DAY_MS
    assert cfg.payout_mode == "lump"


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("ORIGAMI_MAX_TICKETS", "10")
    monkeypatch.setenv("ORIGAMI_MAIN_SPLIT_BPS", "5000, 3000, 2000")
    monkeypatch.setenv("ORIGAMI_PAYOUT_MODE", "VESTED")
    monkeypatch.setenv("ORIGAMI_START_PRICE", "7_000_000_000")
    cfg = from_env()
    assert cfg.max_tickets == 10
    assert cfg.main_split_bps == (5_000, 3_000, 2_000)
    assert cfg.payout_mode == "vested"
    assert cfg.start_price == 7 * COIN


def test_yaml_file_then_env(tmp_path, monkeypatch):
    path = tmp_path / "raffle.yaml"
    path.write_text(yaml.safe_dump({"max_tickets": 50, "end_date_mode": "offset", "end_offset_ms": 3 * DAY_MS}))
    monkeypatch.setenv("ORIGAMI_CONFIG_FILE", str(path))
    monkeypatch.setenv("ORIGAMI_MAX_TICKETS", "60")
    cfg = load_config()
    assert cfg.max_tickets == 60
    assert cfg.end_date_mode == "offset"
    assert cfg.end_offset_ms == 3 * DAY_MS


def test_json_file(tmp_path):
    path = tmp_path / "raffle.json"
    path.write_text(json.dumps({"main_split_bps": [7_000, 2_000, 1_000]}))
    assert from_file(path).main_split_bps == (7_000, 2_000, 1_000)
    with pytest.raises(FileNotFoundError):
        from_file(tmp_path / "missing.json")


@pytest.mark.parametrize(
    "overrides",
    [
        {"main_split_bps": (6_000, 3_000, 2_000)},
        {"main_split_bps": (5_000, 5_000)},
        {"small_prize_bps": 10_001},
        {"max_tickets": 0},
        {"start_price": 1, "reserve_per_ticket": 2},
        {"end_date_mode": "never"},
        {"payout_mode": "monthly"},
        {"vesting_instalments": 0},
    ],
)
def test_invalid_values_are_rejected(overrides):
    with pytest.raises(ConfigError):
        RaffleConfig(**overrides)


def test_unknown_and_malformed_keys():
    with pytest.raises(ConfigError) as ei:
        from_mapping({"max_tikets": 1})
    assert ei.value.details == {"keys": ["max_tikets"]}
    with pytest.raises(ConfigError):
        from_mapping({"max_tickets": "lots"})


def test_pretty_is_json():
    assert json.loads(pretty(RaffleConfig()))["main_split_bps"] == [6_000, 3_000, 1_000]
