from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from origami.config import COIN
from origami.errors import (
    AlreadyInitialized,
    InsufficientFunds,
    NonPayable,
    NotInitialized,
    SaleClosed,
    SoldOut,
    Underpayment,
)
from origami.raffle import OrigamiRaffle
from origami.runtime import CallContext, Host

from .conftest import END, OWNER, T0, A, B, buy_ticket, make_config, make_raffle


def test_ten_sales_raise_price_to_seven_coins(raffle):
    for i in range(10):
        buy_ticket(raffle, f"AU1buyer{i}", T0 + i)
    assert raffle.tickets_sold() == 10
    assert raffle.current_price() == 7 * COIN


def test_sale_splits_payment_into_reserve_small_and_main(raffle):
    buy_ticket(raffle, A)
    s = raffle.status()
    # 5 coin: 1 reserve, 20% of the remaining 4 to the small pool, the rest to main
    assert s["reserve_balance"] == 1 * COIN
    assert s["small_prize_pool"] == 800_000_000
    assert s["main_prize_pool"] == 3_200_000_000
    assert s["contract_balance"] == 5 * COIN
    assert raffle.holders() == [A]


def test_overpayment_is_kept_in_the_main_pool(raffle):
    buy_ticket(raffle, A, value=6 * COIN)
    s = raffle.status()
    assert s["reserve_balance"] + s["small_prize_pool"] + s["main_prize_pool"] == 6 * COIN
    assert s["small_prize_pool"] == 1 * COIN
    # price still rises by exactly one step
    assert raffle.current_price() == 5 * COIN + COIN // 5


def test_duplicate_holders_are_allowed(raffle):
    buy_ticket(raffle, A)
    buy_ticket(raffle, B)
    buy_ticket(raffle, A)
    assert raffle.holders() == [A, B, A]


def test_underpayment_is_rejected_and_refunded(raffle, host):
    host.treasury.credit(A, 5 * COIN)
    with pytest.raises(Underpayment) as ei:
        raffle.buy_ticket(CallContext(timestamp=T0, caller=A, value=4 * COIN))
    assert ei.value.details == {"price": 5 * COIN, "paid": 4 * COIN}
    assert host.treasury.balance(A) == 5 * COIN
    assert host.contract_balance() == 0
    assert raffle.tickets_sold() == 0
    assert raffle.holders() == []
    assert host.events.named("TicketSold") == []
    assert len(host.scheduler) == 0


def test_sold_out():
    raffle = make_raffle(make_config(max_tickets=3))
    for i in range(3):
        buy_ticket(raffle, f"AU1b{i}", T0 + i)
    with pytest.raises(SoldOut):
        buy_ticket(raffle, "AU1late", T0 + 10)
    assert raffle.tickets_sold() == 3
    # the late buyer got the attached coins back
    assert raffle.host.treasury.balance("AU1late") == raffle.current_price()


def test_sale_closes_at_end_date(raffle):
    with pytest.raises(SaleClosed):
        buy_ticket(raffle, A, END)


def test_buyer_without_funds_is_rejected(raffle, host):
    with pytest.raises(InsufficientFunds):
        raffle.buy_ticket(CallContext(timestamp=T0, caller=A, value=5 * COIN))
    assert raffle.tickets_sold() == 0


def test_first_sale_arms_daily_and_small_prize_calls(raffle, host, cfg):
    buy_ticket(raffle, A, T0 + 5)
    pending = [(c.function, c.due_ms) for c in host.scheduler.pending()]
    assert ("transfer_nfts", T0 + 5 + cfg.daily_interval_ms) in pending
    assert ("distribute_small_prizes", T0 + 5 + cfg.small_interval_ms) in pending
    assert raffle.status()["first_mint"] == T0 + 5
    buy_ticket(raffle, B, T0 + 6)
    assert len(host.scheduler) == 2


def test_entry_points_require_initialize():
    host = Host.in_memory()
    raffle = OrigamiRaffle(host, make_config())
    with pytest.raises(NotInitialized):
        buy_ticket(raffle, A)


def test_initialize_twice_is_rejected(raffle):
    with pytest.raises(AlreadyInitialized):
        raffle.initialize(CallContext(timestamp=T0, caller="AU1other"))
    assert raffle.status()["owner"] == OWNER


def test_initialize_mints_the_three_nfts_to_the_contract(raffle, host):
    assert [host.nfts.owner_of(i) for i in (1, 2, 3)] == [raffle.address] * 3


def test_non_payable_entry_rejects_value(raffle, host):
    host.treasury.credit(A, COIN)
    with pytest.raises(NonPayable):
        raffle.schedule_daily_execution(CallContext(timestamp=T0, caller=A, value=COIN))
    assert host.treasury.balance(A) == COIN


@settings(max_examples=40, deadline=None)
@given(
    extras=st.lists(st.integers(min_value=0, max_value=3 * COIN), min_size=1, max_size=12),
    max_tickets=st.integers(min_value=1, max_value=8),
)
def test_sales_respect_cap_monotone_price_and_conservation(extras, max_tickets):
    raffle = make_raffle(make_config(max_tickets=max_tickets))
    last_price = raffle.current_price()
    paid_total = 0
    for i, extra in enumerate(extras):
        value = raffle.current_price() + extra
        try:
            buy_ticket(raffle, f"AU1p{i}", T0 + i, value=value)
            paid_total += value
        except SoldOut:
            pass
        s = raffle.status()
        assert s["tickets_sold"] <= max_tickets
        assert s["current_price"] >= last_price
        last_price = s["current_price"]
        assert s["reserve_balance"] + s["small_prize_pool"] + s["main_prize_pool"] == paid_total
        assert s["total_collected"] == paid_total == s["contract_balance"]
    assert raffle.tickets_sold() == min(len(extras), max_tickets)
