from __future__ import annotations

"""
Prometheus metrics for the Origami raffle.

Counters and gauges covering:
- sales: tickets sold and coins collected
- reassignments: NFT moves by colour
- payouts: main / vested / small / reserve transfers and their amounts
- pools: current reserve, small-prize and main-prize balances
- scheduler: scheduled calls fired by function and result, and their latency

Contract metrics are derived from the event log of committed calls only, so a
rolled-back call never shows up here.
"""


import time
from contextlib import contextmanager
from typing import Any, Iterable, Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest

from .config import COIN

# Dedicated registry so embedding apps can choose to merge or expose it directly.
REGISTRY = CollectorRegistry()

TICKETS_SOLD = Counter(
    "origami_tickets_sold_total",
    "Total raffle tickets sold.",
    registry=REGISTRY,
)

COLLECTED_COINS = Counter(
    "origami_collected_coins_total",
    "Total coins paid for tickets.",
    registry=REGISTRY,
)

NFT_REASSIGNMENTS = Counter(
    "origami_nft_reassignments_total",
    "NFT reassignments by colour.",
    labelnames=("color",),
    registry=REGISTRY,
)

PAYOUTS = Counter(
    "origami_payouts_total",
    "Payout transfers by kind.",
    labelnames=("kind",),  # kind: "main" | "vested" | "small" | "reserve"
    registry=REGISTRY,
)

PAYOUT_AMOUNT_COINS = Histogram(
    "origami_payout_amount_coins",
    "Distribution of payout amounts (in coins).",
    labelnames=("kind",),
    buckets=(0.01, 0.1, 0.5, 1, 2.5, 5, 10, 25, 50, 100, 250, 500, 1000),
    registry=REGISTRY,
)

POOL_BALANCE_COINS = Gauge(
    "origami_pool_balance_coins",
    "Current pool balances (in coins).",
    labelnames=("pool",),  # pool: "reserve" | "small" | "main"
    registry=REGISTRY,
)

SCHEDULED_CALLS = Counter(
    "origami_scheduled_calls_total",
    "Scheduled calls fired by the dispatcher, by function and result.",
    labelnames=("function", "result"),  # result: "ok" | "rejected" | "dropped"
    registry=REGISTRY,
)

SCHEDULED_CALL_SECONDS = Histogram(
    "origami_scheduled_call_seconds",
    "Wall time spent running one scheduled call.",
    labelnames=("function",),
    buckets=(0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0),
    registry=REGISTRY,
)


def _coins(units: int) -> float:
    return units / COIN


def _payout(kind: str, amount: int) -> None:
    if amount <= 0:
        return
    PAYOUTS.labels(kind=kind).inc()
    PAYOUT_AMOUNT_COINS.labels(kind=kind).observe(_coins(amount))


def record_events(events: Iterable[Any]) -> None:
    """Update counters from the events a committed call emitted."""
    for ev in events:
        a = ev.args
        if ev.name == "TicketSold":
            TICKETS_SOLD.inc()
            COLLECTED_COINS.inc(_coins(a.get("paid", 0)))
        elif ev.name == "NftReassigned":
            NFT_REASSIGNMENTS.labels(color=a.get("color", "?")).inc()
        elif ev.name == "MainPrizePaid":
            _payout("main", a.get("amount", 0))
        elif ev.name == "VestingReleased":
            for amount in a.get("paid", []):
                _payout("vested", amount)
        elif ev.name == "SmallPrizePaid":
            for _ in a.get("holders", []):
                _payout("small", a.get("share", 0))
            _payout("small", a.get("remainder", 0))
        elif ev.name == "ReserveWithdrawn":
            _payout("reserve", a.get("amount", 0))


def set_pools(*, reserve: int, small: int, main: int) -> None:
    POOL_BALANCE_COINS.labels(pool="reserve").set(_coins(reserve))
    POOL_BALANCE_COINS.labels(pool="small").set(_coins(small))
    POOL_BALANCE_COINS.labels(pool="main").set(_coins(main))


def record_scheduled_call(function: str, result: str) -> None:
    SCHEDULED_CALLS.labels(function=function, result=result).inc()


@contextmanager
def time_scheduled_call(function: str):
    """Context manager observing how long one scheduled call takes."""
    start = time.perf_counter()
    try:
        yield
    finally:
        SCHEDULED_CALL_SECONDS.labels(function=function).observe(time.perf_counter() - start)


def render(registry: Optional[CollectorRegistry] = None) -> str:
    """Prometheus text exposition of the registry."""
    return generate_latest(registry or REGISTRY).decode("utf-8")


__all__ = [
    "REGISTRY",
    "record_events",
    "set_pools",
    "record_scheduled_call",
    "time_scheduled_call",
    "render",
]
