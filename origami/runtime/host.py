"""
origami.runtime.host - the bundle of host services a raffle runs against.

A Host owns one instance of every port (storage, treasury, NFT registry,
random source, scheduler, event sink) plus the contract's own address. It also
provides the transactional boundary a chain runtime gives every entry point:
state of every port is snapshotted before the call and restored if the call
raises, so a rejected call leaves no partial change behind.

Typical usage
-------------
    host = Host.in_memory(seed=b"demo")
    with host.transaction(ctx, entry="buy_ticket", payable=True):
        ...  # mutate ports
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from origami.errors import NonPayable

from .context import CallContext
from .events_api import EventSink
from .nft_api import NftLedger, NftRegistry
from .random_api import DRBG, RandomSource
from .scheduler_api import CallQueue, Scheduler
from .storage_api import DEFAULT_MAX_VALUE_BYTES, MemoryBackend, Storage
from .treasury_api import Ledger, Treasury

log = logging.getLogger(__name__)

DEFAULT_CONTRACT_ADDRESS = "AS1origami"

_PORTS = ("storage", "treasury", "nfts", "scheduler", "rng", "events")


class Host:
    __slots__ = ("storage", "treasury", "nfts", "scheduler", "rng", "events", "self_address")

    def __init__(
        self,
        *,
        storage: Storage,
        treasury: Treasury,
        nfts: NftRegistry,
        scheduler: Scheduler,
        rng: RandomSource,
        events: Optional[EventSink] = None,
        self_address: str = DEFAULT_CONTRACT_ADDRESS,
    ) -> None:
        self.storage = storage
        self.treasury = treasury
        self.nfts = nfts
        self.scheduler = scheduler
        self.rng = rng
        self.events = events if events is not None else EventSink()
        self.self_address = self_address

    @classmethod
    def in_memory(
        cls,
        *,
        seed: bytes = b"origami",
        rng: Optional[RandomSource] = None,
        self_address: str = DEFAULT_CONTRACT_ADDRESS,
        max_value_bytes: int = DEFAULT_MAX_VALUE_BYTES,
    ) -> "Host":
        """Fresh host with every port backed by its in-memory adapter."""
        return cls(
            storage=Storage(MemoryBackend(), max_value_bytes=max_value_bytes),
            treasury=Ledger(),
            nfts=NftLedger(),
            scheduler=CallQueue(),
            rng=rng if rng is not None else DRBG.new(seed),
            events=EventSink(),
            self_address=self_address,
        )

    # --------------------------- call boundary ---------------------------

    def _snapshot(self) -> Dict[str, Any]:
        snaps: Dict[str, Any] = {}
        for name in _PORTS:
            port = getattr(self, name)
            snap = getattr(port, "snapshot", None)
            if callable(snap):
                snaps[name] = snap()
        return snaps

    def _restore(self, snaps: Dict[str, Any]) -> None:
        for name, snap in snaps.items():
            getattr(self, name).restore(snap)

    @contextmanager
    def transaction(self, ctx: CallContext, *, entry: str, payable: bool = False) -> Iterator[CallContext]:
        """
        Run one entry point atomically. Attached value is moved from the caller
        to the contract inside the boundary, so it is refunded on failure.
        """
        if ctx.value and not payable:
            raise NonPayable(entry=entry, value=ctx.value)
        snaps = self._snapshot()
        try:
            if ctx.value:
                self.treasury.transfer(ctx.caller, self.self_address, ctx.value)
            yield ctx
        except Exception as exc:
            self._restore(snaps)
            log.debug("host: %s rolled back (caller=%s): %s", entry, ctx.caller, exc)
            raise

    def contract_balance(self) -> int:
        return self.treasury.balance(self.self_address)


__all__ = ["DEFAULT_CONTRACT_ADDRESS", "Host"]
