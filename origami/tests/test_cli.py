from __future__ import annotations

import json
import os

import pytest
from typer.testing import CliRunner

from origami.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for k in list(os.environ):
        if k.startswith("ORIGAMI_"):
            monkeypatch.delenv(k, raising=False)


def test_simulate_json():
    result = runner.invoke(app, ["simulate", "--buyers", "5", "--json"])
    assert result.exit_code == 0, result.output
    out = json.loads(result.stdout)
    assert out["tickets_sold"] == 5
    assert out["rejected_purchases"] == 0
    assert out["main_distributed"] is True
    assert len(out["holders"]) == 5
    assert set(out["nft_owners"].values()) <= set(out["holders"])
    assert any(c["function"] == "transfer_nfts" for c in out["scheduled_calls"])


def test_simulate_text_summary(monkeypatch):
    monkeypatch.setenv("ORIGAMI_PAYOUT_MODE", "vested")
    result = runner.invoke(app, ["simulate", "--buyers", "3", "--seed", "demo"])
    assert result.exit_code == 0, result.output
    assert "tickets sold: 3" in result.stdout
    assert "distributed=True" in result.stdout


def test_simulate_reports_config_errors(monkeypatch):
    monkeypatch.setenv("ORIGAMI_SMALL_PRIZE_BPS", "20000")
    result = runner.invoke(app, ["simulate", "--buyers", "1"])
    assert result.exit_code == 1


def test_config_json(monkeypatch):
    monkeypatch.setenv("ORIGAMI_MAX_TICKETS", "12")
    result = runner.invoke(app, ["config", "--json"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["max_tickets"] == 12
    assert data["payout_mode"] == "lump"


def test_simulate_metrics():
    result = runner.invoke(app, ["simulate", "--buyers", "2", "--metrics"])
    assert result.exit_code == 0, result.output
    assert "origami_tickets_sold_total" in result.stdout


def test_simulate_system_random(monkeypatch):
    import origami
    from origami.runtime.random_api import SystemRandomSource

    draws = []

    class CountingSource(SystemRandomSource):
        def next_int(self, bound: int) -> int:
            v = super().next_int(bound)
            draws.append((bound, v))
            return v

    monkeypatch.setattr(origami, "SystemRandomSource", CountingSource)
    result = runner.invoke(app, ["simulate", "--buyers", "3", "--system-random", "--json"])
    assert result.exit_code == 0, result.output
    out = json.loads(result.stdout)
    assert out["tickets_sold"] == 3
    assert set(out["nft_owners"].values()) <= set(out["holders"])
    assert draws and all(0 <= v < bound for bound, v in draws)
