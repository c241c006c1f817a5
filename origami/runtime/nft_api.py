"""
origami.runtime.nft_api - NFT ownership port.

The token standard itself lives in a separate host module; the raffle only
mints its three tokens once and moves them between holders. NftLedger is the
in-memory stand-in used for local runs and tests.
"""

from __future__ import annotations

import threading
from typing import Dict, Optional, Protocol, runtime_checkable

from origami.errors import HostError


@runtime_checkable
class NftRegistry(Protocol):
    def mint(self, token_id: int, to: str) -> None: ...
    def owner_of(self, token_id: int) -> Optional[str]: ...
    def transfer_from(self, frm: str, to: str, token_id: int) -> None: ...


class NftLedger:
    """Token id -> owner map with ERC-721-like transfer checks."""

    def __init__(self) -> None:
        self._owners: Dict[int, str] = {}
        self._lock = threading.RLock()

    def mint(self, token_id: int, to: str) -> None:
        if not to:
            raise HostError("cannot mint to an empty address", details={"token_id": token_id})
        with self._lock:
            if token_id in self._owners:
                raise HostError("token already minted", details={"token_id": token_id})
            self._owners[token_id] = to

    def owner_of(self, token_id: int) -> Optional[str]:
        with self._lock:
            return self._owners.get(token_id)

    def transfer_from(self, frm: str, to: str, token_id: int) -> None:
        if not to:
            raise HostError("cannot transfer to an empty address", details={"token_id": token_id})
        with self._lock:
            owner = self._owners.get(token_id)
            if owner is None:
                raise HostError("unknown token", details={"token_id": token_id})
            if owner != frm:
                raise HostError(
                    "transfer from non-owner",
                    details={"token_id": token_id, "owner": owner, "from": frm},
                )
            self._owners[token_id] = to

    def snapshot(self) -> Dict[int, str]:
        with self._lock:
            return dict(self._owners)

    def restore(self, snap: Dict[int, str]) -> None:
        with self._lock:
            self._owners = dict(snap)


__all__ = ["NftRegistry", "NftLedger"]
