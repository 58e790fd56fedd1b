from __future__ import annotations

import pytest

from raffle.lottery.errors import NoPendingPayout, PayoutFailed, UnknownRequest
from raffle.lottery.fulfillment import select_winner_index
from raffle.lottery.state import RaffleState

from conftest import FEE, INTERVAL


def test_winner_index_is_value_mod_player_count() -> None:
    assert select_winner_index(9, 4) == 1
    assert select_winner_index(0, 4) == 0
    assert select_winner_index(2**256 - 1, 1) == 0
    assert select_winner_index(2**256 - 1, 7) == (2**256 - 1) % 7


def test_winner_index_requires_players() -> None:
    with pytest.raises(ValueError):
        select_winner_index(9, 0)


def test_unknown_request_before_upkeep(rig) -> None:
    rig.raffle.enter("alice", FEE)
    before = rig.raffle.snapshot()

    with pytest.raises(UnknownRequest):
        rig.raffle.on_randomness_delivered(1, 9)

    assert rig.raffle.snapshot() == before


def test_unknown_request_id_while_calculating(rig) -> None:
    request_id = rig.lock_round("alice", "bob")
    before = rig.raffle.snapshot()

    with pytest.raises(UnknownRequest) as exc_info:
        rig.raffle.on_randomness_delivered(request_id + 100, 9)

    assert exc_info.value.pending_request_id == request_id
    assert rig.raffle.snapshot() == before
    assert rig.collector.of_type("raffle.winner_selected") == []


def test_request_from_resolved_round_is_rejected(rig) -> None:
    first = rig.lock_round("alice")
    rig.coordinator.fulfill(first)

    second = rig.lock_round("bob", "carol")
    before = rig.raffle.snapshot()

    with pytest.raises(UnknownRequest):
        rig.raffle.on_randomness_delivered(first, 9)

    assert second != first
    assert rig.raffle.snapshot() == before


def test_payout_conservation_and_reset(rig) -> None:
    players = ["p0", "p1", "p2", "p3"]
    for p in players:
        rig.accounts.fund(p, 100)
        rig.accounts.debit(p, FEE)
        rig.raffle.enter(p, FEE)

    rig.clock.advance(INTERVAL + 1)
    request_id = rig.raffle.perform_upkeep()
    rig.clock.advance(5)

    rig.coordinator.fulfill_with(request_id, 9)

    assert rig.accounts.balance_of("p1") == 100 - FEE + 4 * FEE
    for loser in ("p0", "p2", "p3"):
        assert rig.accounts.balance_of(loser) == 100 - FEE

    assert rig.raffle.pool_balance == 0
    assert rig.raffle.players == ()
    assert rig.raffle.state is RaffleState.OPEN
    assert rig.raffle.pending_request_id is None
    assert rig.raffle.recent_winner == "p1"
    assert rig.raffle.last_timestamp == rig.clock.now()
    assert rig.raffle.round_number == 2
    rig.raffle.check_invariants()

    selected = rig.collector.of_type("raffle.winner_selected")
    assert len(selected) == 1
    assert selected[0].winner == "p1"
    assert selected[0].amount == 4 * FEE
    assert selected[0].winner_index == 1
    assert selected[0].round_number == 1


def test_round_trip_returns_to_initial_shape(rig) -> None:
    start = rig.raffle.snapshot()

    request_id = rig.lock_round("alice")
    rig.clock.advance(2)
    rig.coordinator.fulfill(request_id)

    end = rig.raffle.snapshot()
    assert end.state is start.state is RaffleState.OPEN
    assert end.players == start.players == ()
    assert end.pool_balance == start.pool_balance == 0
    assert end.pending_request_id is None
    assert end.last_timestamp > start.last_timestamp

    # A second round runs exactly like the first
    request_id = rig.lock_round("bob")
    rig.coordinator.fulfill(request_id)
    assert rig.raffle.recent_winner == "bob"
    assert rig.accounts.balance_of("bob") == FEE


def test_failed_payout_keeps_round_locked(rig) -> None:
    request_id = rig.lock_round("alice", "bob")
    rig.accounts.mark_unreachable("bob")

    with pytest.raises(PayoutFailed) as exc_info:
        rig.coordinator.fulfill_with(request_id, 1)

    assert exc_info.value.winner == "bob"
    assert exc_info.value.amount == 2 * FEE
    assert rig.raffle.state is RaffleState.CALCULATING
    assert rig.raffle.pending_request_id == request_id
    assert rig.raffle.pool_balance == 2 * FEE
    assert rig.raffle.players == ("alice", "bob")
    assert rig.raffle.pending_payout is not None
    assert rig.raffle.pending_payout.winner == "bob"
    assert rig.accounts.balance_of("bob") == 0
    assert len(rig.collector.of_type("raffle.payout_failed")) == 1
    rig.raffle.check_invariants()


def test_redelivery_after_failed_payout_is_rejected(rig) -> None:
    request_id = rig.lock_round("alice", "bob")
    rig.accounts.mark_unreachable("bob")
    with pytest.raises(PayoutFailed):
        rig.coordinator.fulfill_with(request_id, 1)

    rig.accounts.mark_reachable("bob")
    with pytest.raises(UnknownRequest):
        rig.raffle.on_randomness_delivered(request_id, 0)

    assert rig.raffle.pending_payout.winner == "bob"


def test_retry_pays_the_recorded_winner(rig) -> None:
    request_id = rig.lock_round("alice", "bob")
    rig.accounts.mark_unreachable("bob")
    with pytest.raises(PayoutFailed):
        rig.coordinator.fulfill_with(request_id, 1)

    # Still unreachable: retry fails the same way, nothing moves
    with pytest.raises(PayoutFailed):
        rig.raffle.retry_payout()
    assert rig.raffle.pool_balance == 2 * FEE

    rig.accounts.mark_reachable("bob")
    winner = rig.raffle.retry_payout()

    assert winner == "bob"
    assert rig.accounts.balance_of("bob") == 2 * FEE
    assert rig.raffle.state is RaffleState.OPEN
    assert rig.raffle.pending_payout is None
    assert rig.raffle.pool_balance == 0
    assert rig.coordinator.pending() == ()
    assert len(rig.collector.of_type("oracle.randomness_requested")) == 1
    assert len(rig.collector.of_type("raffle.winner_selected")) == 1


def test_retry_without_failed_payout(rig) -> None:
    with pytest.raises(NoPendingPayout):
        rig.raffle.retry_payout()
