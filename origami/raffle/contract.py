"""
origami.raffle.contract - the Origami raffle state machine.

Entry points (all take a CallContext first and run inside the host's
transactional boundary):

    initialize(ctx)                   owner = caller; mint RED/GREEN/BLUE to self
    buy_ticket(ctx)                   payable; sell one ticket at the current price
    schedule_daily_execution(ctx)     arm the next daily reassignment (if due)
    transfer_nfts(ctx)                daily reassignment, or the terminal payout
    distribute_main_prizes(ctx)       pay (or start vesting) the main pool
    release_vested(ctx)               release matured vesting instalments
    distribute_small_prizes(ctx)      pay one small-prize instalment
    withdraw_reserve(ctx, amount)     owner only

Read-only views: status(), holders(), nft_owner(color), end_date(),
current_price(), tickets_sold().

Events
------
- Initialized {owner}
- TicketSold {buyer, ticket, price, paid, reserve, small, main}
- NftReassigned {color, frm, to}
- MainPrizePaid {color, to, amount}
- VestingStarted {totals, instalments, interval_ms}
- VestingReleased {released, instalments, paid}
- SmallPrizePaid {instalment, share, remainder, holders}
- ReserveWithdrawn {to, amount}
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, Dict, List, Optional, TypeVar

from origami import metrics
from origami.config import RaffleConfig
from origami.errors import (
    AlreadyDistributed,
    AlreadyInitialized,
    EmptyRoster,
    NotInitialized,
    NothingDue,
    PreconditionViolation,
    SaleClosed,
    SoldOut,
    TooEarly,
    Unauthorized,
    Underpayment,
)
from origami.runtime.context import CallContext
from origami.runtime.host import Host

from .split import SaleSplit, cumulative_instalment, even_three, instalments_due, split_main, split_sale
from .state import COLORS, Color, RaffleState

log = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def entrypoint(*, payable: bool = False) -> Callable[[F], F]:
    """
    Wrap a method `fn(self, ctx, state, *args)` as a host entry point: open a
    transaction, load the state, run, save. Any exception rolls everything back;
    metrics only see calls that committed.
    """

    def deco(fn: F) -> F:
        @functools.wraps(fn)
        def wrapper(self: "OrigamiRaffle", ctx: CallContext, *args: Any, **kwargs: Any) -> Any:
            mark = len(self.host.events.events)
            with self.host.transaction(ctx, entry=fn.__name__, payable=payable):
                st = RaffleState.load(self.host.storage)
                out = fn(self, ctx, st, *args, **kwargs)
                st.save(self.host.storage)
            metrics.record_events(self.host.events.events[mark:])
            metrics.set_pools(reserve=st.reserve_balance, small=st.small_prize_pool, main=st.main_prize_pool)
            return out

        wrapper.__origami_entry__ = True  # type: ignore[attr-defined]
        return wrapper  # type: ignore[return-value]

    return deco


class OrigamiRaffle:
    """Ticket sale, daily NFT reassignment and prize payout for one raffle."""

    def __init__(self, host: Host, config: Optional[RaffleConfig] = None) -> None:
        self.host = host
        self.config = config or RaffleConfig()

    @property
    def address(self) -> str:
        return self.host.self_address

    # ------------------------------------------------------------------ setup

    @entrypoint()
    def initialize(self, ctx: CallContext, st: RaffleState) -> None:
        if st.initialized:
            raise AlreadyInitialized("raffle already initialized")
        st.initialized = True
        st.owner = ctx.caller
        st.current_price = self.config.start_price
        for c in COLORS:
            self.host.nfts.mint(c.token_id, self.address)
        self.host.events.emit("Initialized", {"owner": ctx.caller})
        log.info("raffle: initialized owner=%s start_price=%d", ctx.caller, st.current_price)

    # ------------------------------------------------------------------- sale

    @entrypoint(payable=True)
    def buy_ticket(self, ctx: CallContext, st: RaffleState) -> int:
        """Sell one ticket to the caller; returns the ticket number (1-based)."""
        self._require_initialized(st)
        end = self._end_date(st)
        if st.main_distributed or (end is not None and ctx.timestamp >= end):
            raise SaleClosed("raffle is closed", details={"now": ctx.timestamp, "end_date": end})
        if st.tickets_sold >= self.config.max_tickets:
            raise SoldOut(max_tickets=self.config.max_tickets)
        if ctx.value < st.current_price:
            raise Underpayment(price=st.current_price, paid=ctx.value)

        parts = split_sale(ctx.value, reserve=self.config.reserve_per_ticket, small_bps=self.config.small_prize_bps)
        if st.small_instalments_paid >= self.config.small_intervals:
            # no small-prize instalment is left to pay this share out
            parts = SaleSplit(reserve=parts.reserve, small=0, main=parts.small + parts.main)
        price = st.current_price
        st.reserve_balance += parts.reserve
        st.small_prize_pool += parts.small
        st.main_prize_pool += parts.main
        st.total_collected += ctx.value
        st.tickets_sold += 1
        st.holders.append(ctx.caller)
        st.current_price += self.config.price_increment

        if st.tickets_sold == 1:
            st.first_mint = ctx.timestamp
            self._arm_daily(ctx, st)
            self._arm_small(ctx, st)

        self.host.events.emit(
            "TicketSold",
            {
                "buyer": ctx.caller,
                "ticket": st.tickets_sold,
                "price": price,
                "paid": ctx.value,
                "reserve": parts.reserve,
                "small": parts.small,
                "main": parts.main,
            },
        )
        log.info("raffle: ticket #%d sold to %s for %d (next price %d)", st.tickets_sold, ctx.caller, ctx.value, st.current_price)
        return st.tickets_sold

    # -------------------------------------------------------- daily reassignment

    @entrypoint()
    def schedule_daily_execution(self, ctx: CallContext, st: RaffleState) -> bool:
        self._require_initialized(st)
        return self._arm_daily(ctx, st)

    @entrypoint()
    def transfer_nfts(self, ctx: CallContext, st: RaffleState) -> Dict[str, Any]:
        """
        Reassign each NFT to a uniformly drawn holder and re-arm for tomorrow.
        Past the end date nothing is re-armed and the main prizes are paid instead.
        """
        self._require_initialized(st)
        if ctx.caller not in (self.address, st.owner):
            raise Unauthorized(caller=ctx.caller)

        end = self._end_date(st)
        if end is not None and ctx.timestamp >= end:
            if st.main_distributed:
                return {"action": "idle"}
            return {"action": "distributed", **self._distribute_main(ctx, st)}

        if not st.holders:
            raise EmptyRoster()
        for c in COLORS:
            self._reassign(st, c, self.host.rng.next_int(len(st.holders)))
        self._arm_daily(ctx, st)
        return {"action": "reassigned", "owners": {c.value: st.nft_owners[c] for c in COLORS}}

    # ---------------------------------------------------------------- main prize

    @entrypoint()
    def distribute_main_prizes(self, ctx: CallContext, st: RaffleState) -> Dict[str, Any]:
        self._require_initialized(st)
        return self._distribute_main(ctx, st)

    @entrypoint()
    def release_vested(self, ctx: CallContext, st: RaffleState) -> Dict[str, Any]:
        self._require_initialized(st)
        if not st.vesting_active:
            raise NothingDue("no vesting schedule")
        return self._release_vested(ctx, st)

    # --------------------------------------------------------------- small prize

    @entrypoint()
    def distribute_small_prizes(self, ctx: CallContext, st: RaffleState) -> Dict[str, Any]:
        """
        Pay one instalment of the small-prize pool: pool // remaining instalments,
        split evenly between the three NFT holders. The indivisible remainder
        stays in the pool for the next instalment; the last instalment empties
        the pool and gives that remainder to the RED holder.
        """
        self._require_initialized(st)
        cfg = self.config
        if not st.holders:
            raise EmptyRoster()
        if st.small_instalments_paid >= cfg.small_intervals:
            raise AlreadyDistributed(
                "all small-prize instalments paid",
                details={"instalments": cfg.small_intervals},
            )
        reference = st.last_small_payout if st.small_instalments_paid else st.first_mint
        not_before = reference + cfg.small_interval_ms
        if ctx.timestamp < not_before:
            raise TooEarly("small-prize interval has not elapsed", now=ctx.timestamp, not_before=not_before)

        self._ensure_assigned(st)
        remaining = cfg.small_intervals - st.small_instalments_paid
        share, remainder = even_three(st.small_prize_pool // remaining)
        if remaining > 1:
            remainder = 0
        recipients = [st.nft_owners[c] for c in COLORS]
        for to in recipients:
            self._pay(to, share)
        self._pay(recipients[0], remainder)
        paid = 3 * share + remainder
        st.small_prize_pool -= paid
        st.small_paid += paid
        st.small_instalments_paid += 1
        st.last_small_payout = ctx.timestamp
        if st.small_instalments_paid < cfg.small_intervals:
            self._arm_small(ctx, st)

        self.host.events.emit(
            "SmallPrizePaid",
            {"instalment": st.small_instalments_paid, "share": share, "remainder": remainder, "holders": recipients},
        )
        log.info(
            "raffle: small prize instalment %d/%d paid share=%d to %s",
            st.small_instalments_paid, cfg.small_intervals, share, recipients,
        )
        return {"instalment": st.small_instalments_paid, "share": share, "remainder": remainder, "holders": recipients}

    # ------------------------------------------------------------------ reserve

    @entrypoint()
    def withdraw_reserve(self, ctx: CallContext, st: RaffleState, amount: Optional[int] = None) -> int:
        self._require_initialized(st)
        if ctx.caller != st.owner:
            raise Unauthorized(caller=ctx.caller)
        amount = st.reserve_balance if amount is None else int(amount)
        if amount < 0 or amount > st.reserve_balance:
            raise PreconditionViolation(
                "amount exceeds reserve",
                details={"amount": amount, "reserve": st.reserve_balance},
            )
        self._pay(st.owner, amount)
        st.reserve_balance -= amount
        st.reserve_withdrawn += amount
        self.host.events.emit("ReserveWithdrawn", {"to": st.owner, "amount": amount})
        log.info("raffle: reserve withdrawn amount=%d", amount)
        return amount

    # -------------------------------------------------------------------- views

    def _view(self) -> RaffleState:
        return RaffleState.load(self.host.storage)

    def status(self) -> Dict[str, Any]:
        st = self._view()
        out = st.to_dict()
        out["end_date"] = self._end_date(st)
        out["contract_balance"] = self.host.contract_balance()
        return out

    def holders(self) -> List[str]:
        return self._view().holders

    def nft_owner(self, color: Color | str) -> str:
        return self._view().nft_owners[Color(color)]

    def end_date(self) -> Optional[int]:
        return self._end_date(self._view())

    def current_price(self) -> int:
        return self._view().current_price

    def tickets_sold(self) -> int:
        return self._view().tickets_sold

    # ----------------------------------------------------------------- internals

    def _require_initialized(self, st: RaffleState) -> None:
        if not st.initialized:
            raise NotInitialized("raffle not initialized")

    def _end_date(self, st: RaffleState) -> Optional[int]:
        if self.config.end_date_mode == "absolute":
            return self.config.end_date_ms
        return st.first_mint + self.config.end_offset_ms if st.tickets_sold else None

    def _pay(self, to: str, amount: int) -> None:
        if amount:
            self.host.treasury.transfer(self.address, to, amount)

    def _arm_daily(self, ctx: CallContext, st: RaffleState) -> bool:
        end = self._end_date(st)
        if end is not None and ctx.timestamp >= end:
            return False
        if not st.holders:
            return False
        interval = self.config.daily_interval_ms
        if st.last_execution and ctx.timestamp - st.last_execution < interval:
            return False
        self.host.scheduler.schedule_call(self.address, "transfer_nfts", (), interval, now=ctx.timestamp)
        st.last_execution = ctx.timestamp
        log.debug("raffle: transfer_nfts armed for %d", ctx.timestamp + interval)
        return True

    def _arm_small(self, ctx: CallContext, st: RaffleState) -> None:
        self.host.scheduler.schedule_call(
            self.address, "distribute_small_prizes", (), self.config.small_interval_ms, now=ctx.timestamp
        )
        log.debug("raffle: distribute_small_prizes armed for %d", ctx.timestamp + self.config.small_interval_ms)

    def _reassign(self, st: RaffleState, color: Color, index: int) -> None:
        new_owner = st.holders[index]
        current = self.host.nfts.owner_of(color.token_id) or self.address
        self.host.nfts.transfer_from(current, new_owner, color.token_id)
        st.nft_owners[color] = new_owner
        self.host.events.emit("NftReassigned", {"color": color.value, "frm": current, "to": new_owner})
        log.info("raffle: %s NFT %s -> %s", color.value, current, new_owner)

    def _ensure_assigned(self, st: RaffleState) -> None:
        """Draw a holder for any color still held by the contract."""
        for c in COLORS:
            if not st.nft_owners.get(c):
                self._reassign(st, c, self.host.rng.next_int(len(st.holders)))

    def _distribute_main(self, ctx: CallContext, st: RaffleState) -> Dict[str, Any]:
        cfg = self.config
        end = self._end_date(st)
        if end is None or ctx.timestamp < end:
            raise TooEarly("it is not yet time to distribute rewards", now=ctx.timestamp, not_before=end)
        if st.main_distributed:
            raise AlreadyDistributed("main prizes already distributed", details={"paid": st.main_paid})
        if not st.holders:
            raise EmptyRoster()

        self._ensure_assigned(st)
        shares = split_main(st.main_prize_pool, cfg.main_split_bps)
        recipients = [st.nft_owners[c] for c in COLORS]
        st.main_prize_pool = 0
        st.main_distributed = True

        if cfg.payout_mode == "lump":
            for c, to, amount in zip(COLORS, recipients, shares):
                self._pay(to, amount)
                st.main_paid += amount
                self.host.events.emit("MainPrizePaid", {"color": c.value, "to": to, "amount": amount})
            log.info("raffle: main prizes paid %s to %s", shares, recipients)
            return {"mode": "lump", "recipients": recipients, "amounts": list(shares)}

        st.vest_recipients = recipients
        st.vest_totals = list(shares)
        st.vest_start = ctx.timestamp
        st.vest_released = 0
        self.host.events.emit(
            "VestingStarted",
            {"totals": list(shares), "instalments": cfg.vesting_instalments, "interval_ms": cfg.vesting_interval_ms},
        )
        log.info("raffle: main prizes vesting %s to %s", shares, recipients)
        released = self._release_vested(ctx, st)
        return {"mode": "vested", "recipients": recipients, "amounts": list(shares), **released}

    def _release_vested(self, ctx: CallContext, st: RaffleState) -> Dict[str, Any]:
        cfg = self.config
        n = cfg.vesting_instalments
        due = instalments_due(ctx.timestamp, st.vest_start, cfg.vesting_interval_ms, n)
        if due <= st.vest_released:
            raise NothingDue(
                "no vesting instalment due",
                details={"released": st.vest_released, "instalments": n, "now": ctx.timestamp},
            )
        paid: List[int] = []
        for to, total in zip(st.vest_recipients, st.vest_totals):
            amount = cumulative_instalment(total, due, n) - cumulative_instalment(total, st.vest_released, n)
            self._pay(to, amount)
            st.main_paid += amount
            paid.append(amount)
        st.vest_released = due
        if due < n:
            next_at = st.vest_start + due * cfg.vesting_interval_ms
            self.host.scheduler.schedule_call(self.address, "release_vested", (), next_at - ctx.timestamp, now=ctx.timestamp)
        self.host.events.emit("VestingReleased", {"released": due, "instalments": n, "paid": paid})
        log.info("raffle: vesting released %d/%d amounts=%s", due, n, paid)
        return {"released": due, "paid": paid}


__all__ = ["entrypoint", "OrigamiRaffle"]
