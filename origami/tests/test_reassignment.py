from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from origami.config import DAY_MS
from origami.errors import EmptyRoster, Unauthorized
from origami.raffle import COLORS, Color
from origami.runtime import CallContext, Dispatcher
from origami.runtime.random_api import DRBG

from .conftest import END, OWNER, T0, A, B, C, buy_ticket, make_config, make_raffle


def test_scripted_draw_reassigns_each_color(three_holders, scripted, self_ctx):
    scripted.draws = [1, 0, 2]
    out = three_holders.transfer_nfts(self_ctx(T0 + DAY_MS))
    assert out == {"action": "reassigned", "owners": {"RED": B, "GREEN": A, "BLUE": C}}
    assert three_holders.nft_owner(Color.RED) == B
    assert three_holders.nft_owner("GREEN") == A
    host = three_holders.host
    assert host.nfts.owner_of(Color.RED.token_id) == B
    assert host.nfts.owner_of(Color.BLUE.token_id) == C
    # each draw is taken over the whole roster
    assert scripted.calls == [3, 3, 3]


def test_red_draw_does_not_influence_other_colors(three_holders, scripted, self_ctx):
    scripted.draws = [1, 1, 1]
    three_holders.transfer_nfts(self_ctx(T0 + DAY_MS))
    assert [three_holders.nft_owner(c) for c in COLORS] == [B, B, B]


def test_reassignment_moves_tokens_from_previous_owner(three_holders, scripted, self_ctx):
    scripted.draws = [0, 0, 0, 2, 2, 2]
    three_holders.transfer_nfts(self_ctx(T0 + DAY_MS))
    three_holders.transfer_nfts(self_ctx(T0 + 2 * DAY_MS))
    moves = [(e.args["frm"], e.args["to"]) for e in three_holders.host.events.named("NftReassigned")]
    assert moves[:3] == [(three_holders.address, A)] * 3
    assert moves[3:] == [(A, C)] * 3


def test_reassignment_rearms_for_next_day(three_holders, host, self_ctx):
    host.scheduler.restore([])
    three_holders.transfer_nfts(self_ctx(T0 + DAY_MS))
    pending = host.scheduler.pending()
    assert [(c.function, c.due_ms) for c in pending] == [("transfer_nfts", T0 + 2 * DAY_MS)]
    assert three_holders.status()["last_execution"] == T0 + DAY_MS


def test_public_schedule_call_may_queue_a_second_reassignment(three_holders, host):
    # first sale at T0 armed the call already
    assert three_holders.schedule_daily_execution(CallContext(timestamp=T0 + 1000, caller=A)) is False
    assert three_holders.schedule_daily_execution(CallContext(timestamp=T0 + DAY_MS, caller=A)) is True
    assert [c.function for c in host.scheduler.pending()].count("transfer_nfts") == 2


def test_second_reassignment_in_one_interval_does_not_rearm(three_holders, host):
    assert three_holders.schedule_daily_execution(CallContext(timestamp=T0 + DAY_MS, caller=A)) is True
    fired = Dispatcher(three_holders).advance(T0, T0 + 2 * DAY_MS, DAY_MS // 24)
    assert [(o.call.function, o.timestamp, o.ok) for o in fired] == [
        ("transfer_nfts", T0 + DAY_MS, True),
        ("transfer_nfts", T0 + 2 * DAY_MS, True),
    ]
    transfers = [c for c in host.scheduler.pending() if c.function == "transfer_nfts"]
    assert [c.due_ms for c in transfers] == [T0 + 3 * DAY_MS]
    assert three_holders.status()["last_execution"] == T0 + 2 * DAY_MS


def test_schedule_daily_execution_stops_at_end_date(three_holders):
    assert three_holders.schedule_daily_execution(CallContext(timestamp=END, caller=A)) is False


def test_transfer_nfts_restricted_to_contract_and_owner(three_holders):
    with pytest.raises(Unauthorized):
        three_holders.transfer_nfts(CallContext(timestamp=T0 + DAY_MS, caller="AU1mallory"))
    out = three_holders.transfer_nfts(CallContext(timestamp=T0 + DAY_MS, caller=OWNER))
    assert out["action"] == "reassigned"


def test_transfer_nfts_with_empty_roster(raffle, self_ctx):
    with pytest.raises(EmptyRoster):
        raffle.transfer_nfts(self_ctx(T0 + DAY_MS))
    assert raffle.nft_owner(Color.RED) == ""


def test_transfer_nfts_past_end_date_distributes_instead(three_holders, host, self_ctx):
    host.scheduler.restore([])
    out = three_holders.transfer_nfts(self_ctx(END))
    assert out["action"] == "distributed"
    assert three_holders.status()["main_distributed"] is True
    assert [c.function for c in host.scheduler.pending()] == []
    assert three_holders.transfer_nfts(self_ctx(END + DAY_MS)) == {"action": "idle"}


@settings(max_examples=30, deadline=None)
@given(
    holders=st.integers(min_value=1, max_value=12),
    days=st.integers(min_value=1, max_value=8),
    seed=st.binary(min_size=1, max_size=16),
)
def test_owners_always_come_from_the_roster(holders, days, seed):
    raffle = make_raffle(make_config(), rng=DRBG.new(seed))
    for i in range(holders):
        buy_ticket(raffle, f"AU1h{i}", T0 + i)
    roster = set(raffle.holders())
    for d in range(1, days + 1):
        raffle.transfer_nfts(CallContext(timestamp=T0 + d * DAY_MS, caller=raffle.address))
        for c in COLORS:
            assert raffle.nft_owner(c) in roster
            assert raffle.host.nfts.owner_of(c.token_id) == raffle.nft_owner(c)


def test_drbg_draws_are_reproducible():
    def run(seed: bytes):
        raffle = make_raffle(make_config(), rng=DRBG.new(seed))
        for i in range(6):
            buy_ticket(raffle, f"AU1h{i}", T0 + i)
        raffle.transfer_nfts(CallContext(timestamp=T0 + DAY_MS, caller=raffle.address))
        return [raffle.nft_owner(c) for c in COLORS]

    assert run(b"same") == run(b"same")


def test_failed_call_does_not_consume_randomness():
    rng = DRBG.new(b"rollback")
    raffle = make_raffle(make_config(), rng=rng)
    before = rng.snapshot()
    with pytest.raises(EmptyRoster):
        raffle.transfer_nfts(CallContext(timestamp=T0 + DAY_MS, caller=raffle.address))
    assert rng.snapshot() == before
