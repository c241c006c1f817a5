# -*- coding: utf-8 -*-
"""
origami.tests.conftest
======================

Fixtures for the raffle test-suite.

- `cfg`: a RaffleConfig whose end date sits ten days after T0.
- `host` / `raffle`: fresh in-memory host with an initialized raffle.
- `scripted`: a random source that returns a fixed, cycling sequence of draws.
- `buy`: helper that funds a buyer and buys one ticket at the current price.

All timestamps are milliseconds; T0 is an arbitrary fixed instant.
"""
from __future__ import annotations

import os
from typing import Callable, Iterable, List, Optional

import pytest

from origami.config import COIN, DAY_MS, RaffleConfig
from origami.raffle import OrigamiRaffle
from origami.runtime import CallContext, Host

os.environ.setdefault("TZ", "UTC")

T0 = 1_700_000_000_000
END = T0 + 10 * DAY_MS
OWNER = "AU1owner"
A, B, C = "AU1alice", "AU1bob", "AU1carol"


class ScriptedRandom:
    """Returns the scripted draws in order, cycling; each draw is reduced mod bound."""

    def __init__(self, draws: Iterable[int]) -> None:
        self.draws: List[int] = list(draws) or [0]
        self.calls: List[int] = []
        self._i = 0

    def next_int(self, bound: int) -> int:
        value = self.draws[self._i % len(self.draws)] % bound
        self._i += 1
        self.calls.append(bound)
        return value


def make_config(**overrides) -> RaffleConfig:
    base = dict(end_date_mode="absolute", end_date_ms=END)
    base.update(overrides)
    return RaffleConfig(**base)


def make_raffle(cfg: Optional[RaffleConfig] = None, *, rng=None, seed: bytes = b"tests") -> OrigamiRaffle:
    cfg = cfg or make_config()
    host = Host.in_memory(seed=seed, rng=rng, max_value_bytes=cfg.max_storage_value_bytes)
    raffle = OrigamiRaffle(host, cfg)
    raffle.initialize(CallContext(timestamp=T0, caller=OWNER))
    return raffle


def buy_ticket(raffle: OrigamiRaffle, buyer: str, now: int = T0, value: Optional[int] = None) -> int:
    amount = raffle.current_price() if value is None else value
    raffle.host.treasury.credit(buyer, amount)
    return raffle.buy_ticket(CallContext(timestamp=now, caller=buyer, value=amount))


@pytest.fixture
def cfg() -> RaffleConfig:
    return make_config()


@pytest.fixture
def scripted() -> ScriptedRandom:
    return ScriptedRandom([0, 1, 2])


@pytest.fixture
def raffle(cfg: RaffleConfig, scripted: ScriptedRandom) -> OrigamiRaffle:
    return make_raffle(cfg, rng=scripted)


@pytest.fixture
def host(raffle: OrigamiRaffle) -> Host:
    return raffle.host


@pytest.fixture
def buy() -> Callable[..., int]:
    return buy_ticket


@pytest.fixture
def three_holders(raffle: OrigamiRaffle) -> OrigamiRaffle:
    """A, B, C each bought one ticket at T0, T0+1, T0+2 (prices 5, 5.2, 5.4 coin)."""
    for i, who in enumerate((A, B, C)):
        buy_ticket(raffle, who, T0 + i)
    return raffle


@pytest.fixture
def self_ctx(raffle: OrigamiRaffle) -> Callable[[int], CallContext]:
    def _ctx(now: int) -> CallContext:
        return CallContext(timestamp=now, caller=raffle.address)

    return _ctx


__all__ = ["T0", "END", "OWNER", "A", "B", "C", "COIN", "ScriptedRandom", "make_config", "make_raffle", "buy_ticket"]
