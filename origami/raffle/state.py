"""
origami.raffle.state - the raffle's persisted record.

Every field lives under a fixed storage key. An entry point loads the whole
record at the start of a call, mutates the in-memory copy and saves it back;
the host's transactional boundary makes that read-modify-write atomic.

Storage layout
--------------
    ORIGAMI_INIT       -> u  1 once initialized
    OWNER              -> str
    TICKETS_SOLD       -> u
    CURRENT_PRICE      -> u
    RESERVE            -> u  reserve balance
    SMALL_POOL         -> u
    MAIN_POOL          -> u
    TOTAL_COLLECTED    -> u  sum of all ticket payments
    ORIGAMI_HOLDERS    -> str list (append-only roster)
    RED_NFT / GREEN_NFT / BLUE_NFT -> str current owner ("" = contract)
    LAST_EXECUTION     -> u  ms of last daily arm
    FIRST_MINT         -> u  ms of first sale (0 = none yet)
    MAIN_DONE          -> u  1 once main prizes are distributed
    MAIN_PAID          -> u  main-prize coins actually transferred
    VEST_RECIPIENTS    -> str list (RED, GREEN, BLUE)
    VEST_TOTAL_{R,G,B} -> u
    VEST_RELEASED      -> u  instalments released
    VEST_START         -> u  ms of the first instalment
    SMALL_PAID_COUNT   -> u  small-prize instalments paid
    SMALL_PAID         -> u  small-prize coins transferred
    LAST_SMALL_PAYOUT  -> u  ms
    RESERVE_WITHDRAWN  -> u
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List

from origami.runtime.storage_api import Storage


class Color(str, Enum):
    RED = "RED"
    GREEN = "GREEN"
    BLUE = "BLUE"

    @property
    def token_id(self) -> int:
        return _TOKEN_IDS[self]

    @property
    def key(self) -> bytes:
        return f"{self.value}_NFT".encode("ascii")


COLORS = (Color.RED, Color.GREEN, Color.BLUE)
_TOKEN_IDS = {Color.RED: 1, Color.GREEN: 2, Color.BLUE: 3}

K_INIT = b"ORIGAMI_INIT"
K_OWNER = b"OWNER"
K_TICKETS_SOLD = b"TICKETS_SOLD"
K_CURRENT_PRICE = b"CURRENT_PRICE"
K_RESERVE = b"RESERVE"
K_SMALL_POOL = b"SMALL_POOL"
K_MAIN_POOL = b"MAIN_POOL"
K_TOTAL_COLLECTED = b"TOTAL_COLLECTED"
K_HOLDERS = b"ORIGAMI_HOLDERS"
K_LAST_EXECUTION = b"LAST_EXECUTION"
K_FIRST_MINT = b"FIRST_MINT"
K_MAIN_DONE = b"MAIN_DONE"
K_MAIN_PAID = b"MAIN_PAID"
K_VEST_RECIPIENTS = b"VEST_RECIPIENTS"
K_VEST_TOTALS = (b"VEST_TOTAL_R", b"VEST_TOTAL_G", b"VEST_TOTAL_B")
K_VEST_RELEASED = b"VEST_RELEASED"
K_VEST_START = b"VEST_START"
K_SMALL_PAID_COUNT = b"SMALL_PAID_COUNT"
K_SMALL_PAID = b"SMALL_PAID"
K_LAST_SMALL_PAYOUT = b"LAST_SMALL_PAYOUT"
K_RESERVE_WITHDRAWN = b"RESERVE_WITHDRAWN"

_INT_FIELDS = {
    "tickets_sold": K_TICKETS_SOLD,
    "current_price": K_CURRENT_PRICE,
    "reserve_balance": K_RESERVE,
    "small_prize_pool": K_SMALL_POOL,
    "main_prize_pool": K_MAIN_POOL,
    "total_collected": K_TOTAL_COLLECTED,
    "last_execution": K_LAST_EXECUTION,
    "first_mint": K_FIRST_MINT,
    "main_paid": K_MAIN_PAID,
    "vest_released": K_VEST_RELEASED,
    "vest_start": K_VEST_START,
    "small_instalments_paid": K_SMALL_PAID_COUNT,
    "small_paid": K_SMALL_PAID,
    "last_small_payout": K_LAST_SMALL_PAYOUT,
    "reserve_withdrawn": K_RESERVE_WITHDRAWN,
}


@dataclass
class RaffleState:
    initialized: bool = False
    owner: str = ""
    # sale
    tickets_sold: int = 0
    current_price: int = 0
    # treasury split
    reserve_balance: int = 0
    small_prize_pool: int = 0
    main_prize_pool: int = 0
    total_collected: int = 0
    # roster & NFTs
    holders: List[str] = field(default_factory=list)
    nft_owners: Dict[Color, str] = field(default_factory=lambda: {c: "" for c in COLORS})
    # schedule
    last_execution: int = 0
    first_mint: int = 0
    # main prize
    main_distributed: bool = False
    main_paid: int = 0
    vest_recipients: List[str] = field(default_factory=list)
    vest_totals: List[int] = field(default_factory=lambda: [0, 0, 0])
    vest_released: int = 0
    vest_start: int = 0
    # small prize
    small_instalments_paid: int = 0
    small_paid: int = 0
    last_small_payout: int = 0
    # reserve
    reserve_withdrawn: int = 0

    # ---- persistence ----

    @classmethod
    def load(cls, storage: Storage) -> "RaffleState":
        st = cls(
            initialized=storage.get_int(K_INIT) == 1,
            owner=storage.get_str(K_OWNER),
            holders=storage.get_str_list(K_HOLDERS),
            nft_owners={c: storage.get_str(c.key) for c in COLORS},
            main_distributed=storage.get_int(K_MAIN_DONE) == 1,
            vest_recipients=storage.get_str_list(K_VEST_RECIPIENTS),
            vest_totals=[storage.get_int(k) for k in K_VEST_TOTALS],
        )
        for name, key in _INT_FIELDS.items():
            setattr(st, name, storage.get_int(key))
        return st

    def save(self, storage: Storage) -> None:
        storage.set_int(K_INIT, 1 if self.initialized else 0)
        storage.set_str(K_OWNER, self.owner)
        storage.set_str_list(K_HOLDERS, self.holders)
        for c in COLORS:
            storage.set_str(c.key, self.nft_owners.get(c, ""))
        storage.set_int(K_MAIN_DONE, 1 if self.main_distributed else 0)
        storage.set_str_list(K_VEST_RECIPIENTS, self.vest_recipients)
        for key, total in zip(K_VEST_TOTALS, self.vest_totals):
            storage.set_int(key, total)
        for name, key in _INT_FIELDS.items():
            storage.set_int(key, getattr(self, name))

    # ---- views ----

    @property
    def vesting_active(self) -> bool:
        return bool(self.vest_recipients)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "initialized": self.initialized,
            "owner": self.owner,
            "tickets_sold": self.tickets_sold,
            "current_price": self.current_price,
            "reserve_balance": self.reserve_balance,
            "small_prize_pool": self.small_prize_pool,
            "main_prize_pool": self.main_prize_pool,
            "total_collected": self.total_collected,
            "holders": list(self.holders),
            "nft_owners": {c.value: self.nft_owners.get(c, "") for c in COLORS},
            "last_execution": self.last_execution,
            "first_mint": self.first_mint,
            "main_distributed": self.main_distributed,
            "main_paid": self.main_paid,
            "vesting": {
                "recipients": list(self.vest_recipients),
                "totals": list(self.vest_totals),
                "released": self.vest_released,
                "start": self.vest_start,
            },
            "small_instalments_paid": self.small_instalments_paid,
            "small_paid": self.small_paid,
            "last_small_payout": self.last_small_payout,
            "reserve_withdrawn": self.reserve_withdrawn,
        }


__all__ = ["Color", "COLORS", "RaffleState"]
