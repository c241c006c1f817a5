from __future__ import annotations
"""
Split rules: how a ticket payment and the prize pools are divided.

Deterministic, integer-only arithmetic. Percentages are basis points
(bps, 1/100 of a percent) and rounding remainders always go to a fixed,
documented recipient, so no base unit is ever created or lost.

Example
-------
>>> split_sale(5_000_000_000, reserve=1_000_000_000, small_bps=2_000)
SaleSplit(reserve=1000000000, small=800000000, main=3200000000)
>>> split_main(1_000, (6_000, 3_000, 1_000))
(600, 300, 100)
"""


from dataclasses import dataclass
from typing import Sequence, Tuple

from origami.errors import ConfigError

Amount = int


@dataclass(frozen=True)
class SaleSplit:
    reserve: Amount
    small: Amount
    main: Amount

    @property
    def total(self) -> Amount:
        return self.reserve + self.small + self.main


def split_sale(payment: Amount, *, reserve: Amount, small_bps: int) -> SaleSplit:
    """
    Divide one ticket payment: a fixed `reserve`, then `small_bps` of the
    remainder (floor) to the small-prize pool, and everything left to the main
    pool. The three parts always sum to `payment`.
    """
    if payment < 0 or reserve < 0:
        raise ConfigError("payment and reserve must be non-negative", details={"payment": payment, "reserve": reserve})
    if payment < reserve:
        raise ConfigError("payment does not cover the reserve", details={"payment": payment, "reserve": reserve})
    if not (0 <= small_bps <= 10_000):
        raise ConfigError("small_bps must be between 0 and 10000", details={"small_bps": small_bps})
    remainder = payment - reserve
    small = (remainder * small_bps) // 10_000
    out = SaleSplit(reserve=reserve, small=small, main=remainder - small)
    assert out.total == payment, "sale split invariant violated"
    return out


def split_main(total: Amount, bps: Sequence[int]) -> Tuple[Amount, Amount, Amount]:
    """
    Divide the main pool between RED, GREEN and BLUE by `bps` (sum 10_000).
    The integer-division remainder goes to RED.
    """
    if total < 0:
        raise ConfigError("total must be non-negative", details={"total": total})
    if len(bps) != 3 or sum(bps) != 10_000 or min(bps) < 0:
        raise ConfigError("bps must be three non-negative entries summing to 10000", details={"bps": list(bps)})
    red, green, blue = ((total * b) // 10_000 for b in bps)
    red += total - (red + green + blue)
    return red, green, blue


def cumulative_instalment(total: Amount, k: int, instalments: int) -> Amount:
    """Amount released after `k` of `instalments` equal parts (floor of cumulative share)."""
    if instalments <= 0:
        raise ConfigError("instalments must be positive")
    k = max(0, min(k, instalments))
    return (total * k) // instalments


def instalments_due(now: int, start: int, interval: int, instalments: int) -> int:
    """Number of instalments matured by `now`; the first matures at `start`."""
    if now < start:
        return 0
    return min(instalments, 1 + (now - start) // interval)


def even_three(amount: Amount) -> Tuple[Amount, Amount]:
    """Return (per-holder share, leftover) for an even three-way division."""
    share = amount // 3
    return share, amount - 3 * share


__all__ = [
    "SaleSplit",
    "split_sale",
    "split_main",
    "cumulative_instalment",
    "instalments_due",
    "even_three",
]
