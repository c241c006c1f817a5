"""
Origami raffle - package marker and public entrypoints.

A ticket raffle with three coloured NFTs that move between ticket holders every
day and a prize payout after a fixed end date, written against injectable host
ports so it runs without a blockchain.

- version() -> str
- build_raffle(config=None, *, seed=b"origami", owner="AU1owner", now=0, rng=None) -> OrigamiRaffle
    Fresh in-memory host + initialized raffle; draws come from a seeded DRBG
    unless another RandomSource is passed.
- simulate(buyers, *, config=None, seed=b"origami", start=None, days=None, system_random=False) -> dict
    Sell `buyers` tickets and run the scheduler past the end date.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from .config import COIN, DAY_MS, RaffleConfig, load_config
from .errors import OrigamiError, PreconditionViolation
from .raffle import Color, OrigamiRaffle
from .runtime import CallContext, Dispatcher, Host
from .runtime.random_api import RandomSource, SystemRandomSource
from .version import __version__


def version() -> str:
    """Return the package version string."""
    return __version__


def build_raffle(
    config: Optional[RaffleConfig] = None,
    *,
    seed: bytes = b"origami",
    owner: str = "AU1owner",
    now: int = 0,
    rng: Optional[RandomSource] = None,
) -> OrigamiRaffle:
    """Create an in-memory host and an initialized raffle owned by `owner`."""
    cfg = config or load_config()
    host = Host.in_memory(seed=seed, rng=rng, max_value_bytes=cfg.max_storage_value_bytes)
    raffle = OrigamiRaffle(host, cfg)
    raffle.initialize(CallContext(timestamp=now, caller=owner))
    return raffle


def simulate(
    buyers: int,
    *,
    config: Optional[RaffleConfig] = None,
    seed: bytes = b"origami",
    start: Optional[int] = None,
    days: Optional[int] = None,
    system_random: bool = False,
) -> Dict[str, Any]:
    """
    Local end-to-end run: `buyers` distinct addresses each buy one ticket an
    hour apart starting at `start`, then the dispatcher walks time forward one
    hour at a time for `days` days (default: until one day past the end date).
    With `system_random` the holder draws come from the OS CSPRNG and the run
    is not reproducible.
    """
    cfg = config or load_config()
    if start is None:
        start = cfg.end_date_ms - 7 * DAY_MS if cfg.end_date_mode == "absolute" else DAY_MS
    rng = SystemRandomSource() if system_random else None
    raffle = build_raffle(cfg, seed=seed, now=start, rng=rng)
    host = raffle.host
    disp = Dispatcher(raffle)
    hour = DAY_MS // 24

    now = start
    rejected = 0
    for i in range(buyers):
        addr = f"AU1buyer{i:04d}"
        price = raffle.current_price()
        host.treasury.credit(addr, price)
        disp.run_once(now)
        try:
            raffle.buy_ticket(CallContext(timestamp=now, caller=addr, value=price))
        except PreconditionViolation:
            rejected += 1
        now += hour

    end = raffle.end_date()
    if days is not None:
        horizon = start + days * DAY_MS
    else:
        horizon = (end if end is not None else now) + DAY_MS
    disp.advance(now, horizon, hour)

    out = raffle.status()
    out["rejected_purchases"] = rejected
    out["scheduled_calls"] = [
        {"at": o.timestamp, "function": o.call.function, "ok": o.ok} for o in disp.history
    ]
    return out


__all__ = [
    "__version__",
    "version",
    "build_raffle",
    "simulate",
    "COIN",
    "DAY_MS",
    "Color",
    "OrigamiError",
    "OrigamiRaffle",
    "RaffleConfig",
]
