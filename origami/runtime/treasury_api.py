"""
origami.runtime.treasury_api - native-coin balances for local raffle runs.

This is a simulation-only ledger. Real accounting happens inside the chain's
execution layer; a host embedding the raffle on chain supplies its own
Treasury implementation.

- balance(addr) -> int
- transfer(frm, to, amount)   # debit frm, credit to
- credit(addr, amount)        # host/testing helper (faucet)

Deterministic: no wall-clock, no randomness, pure integer arithmetic.
"""

from __future__ import annotations

import threading
from typing import Dict, Protocol, runtime_checkable

from origami.errors import HostError, InsufficientFunds

MAX_BALANCE_BITS = 256


@runtime_checkable
class Treasury(Protocol):
    def balance(self, addr: str) -> int: ...
    def transfer(self, frm: str, to: str, amount: int) -> None: ...


def _check_addr(addr: str) -> str:
    if not isinstance(addr, str) or not addr:
        raise HostError("address must be a non-empty string")
    return addr


def _check_amount(amount: int) -> int:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise HostError("amount must be int")
    if amount < 0:
        raise HostError("amount must be non-negative", details={"amount": amount})
    if amount.bit_length() > MAX_BALANCE_BITS:
        raise HostError(f"amount exceeds {MAX_BALANCE_BITS}-bit limit")
    return amount


class Ledger:
    """In-memory address -> balance map."""

    def __init__(self) -> None:
        self._balances: Dict[str, int] = {}
        self._lock = threading.RLock()

    def balance(self, addr: str) -> int:
        with self._lock:
            return self._balances.get(_check_addr(addr), 0)

    def credit(self, addr: str, amount: int) -> None:
        _check_addr(addr)
        _check_amount(amount)
        with self._lock:
            total = self._balances.get(addr, 0) + amount
            if total.bit_length() > MAX_BALANCE_BITS:
                raise HostError("balance overflow", details={"address": addr})
            self._balances[addr] = total

    def debit(self, addr: str, amount: int) -> None:
        _check_addr(addr)
        _check_amount(amount)
        with self._lock:
            cur = self._balances.get(addr, 0)
            if amount > cur:
                raise InsufficientFunds(address=addr, required=amount, available=cur)
            self._balances[addr] = cur - amount

    def transfer(self, frm: str, to: str, amount: int) -> None:
        """Debit `frm` and credit `to`; atomic w.r.t. this ledger."""
        _check_addr(frm)
        _check_addr(to)
        _check_amount(amount)
        if amount == 0:
            return
        with self._lock:
            self.debit(frm, amount)
            self.credit(to, amount)

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._balances)

    def restore(self, snap: Dict[str, int]) -> None:
        with self._lock:
            self._balances = dict(snap)


__all__ = ["Treasury", "Ledger", "MAX_BALANCE_BITS"]
