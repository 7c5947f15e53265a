"""Unit tests for PayoutCalculator (pure functions)."""

import pytest

from src.tk_common.enums import Outcome
from src.tk_common.errors import NotResolvedError
from src.tk_round.domain.models import Round
from src.tk_settlement.domain.payout import (
    compute_fee,
    compute_payout,
    distributable,
    project_claim,
    round_fee,
)


def _round(
    up: int = 100,
    down: int = 50,
    outcome: Outcome = Outcome.UP,
    resolved: bool = True,
    fee_bps: int = 500,
) -> Round:
    return Round(
        id=1,
        market="BTC/USD",
        start_ts=1000,
        lock_ts=1050,
        resolve_ts=1060,
        fee_bps=fee_bps,
        ref_price=100,
        up_pool=up,
        down_pool=down,
        resolved=resolved,
        outcome=outcome,
    )


class TestComputeFee:
    def test_floors(self) -> None:
        assert compute_fee(150, 500) == 7

    def test_zero_bps(self) -> None:
        assert compute_fee(150, 0) == 0

    def test_small_pool_rounds_to_zero(self) -> None:
        assert compute_fee(19, 500) == 0

    def test_flat_round_has_no_fee(self) -> None:
        assert round_fee(_round(outcome=Outcome.FLAT), Outcome.FLAT) == 0


class TestComputePayout:
    def test_winner_pro_rata_after_fee(self) -> None:
        rnd = _round()
        assert distributable(rnd) == 143
        assert compute_payout(rnd, 20, 0) == 28

    def test_loser_gets_zero(self) -> None:
        assert compute_payout(_round(), 0, 10) == 0

    def test_down_winner(self) -> None:
        rnd = _round(up=50, down=100, outcome=Outcome.DOWN)
        assert compute_payout(rnd, 0, 100) == 143

    def test_flat_refunds_both_sides_exactly(self) -> None:
        rnd = _round(outcome=Outcome.FLAT)
        assert compute_payout(rnd, 20, 5) == 25

    def test_unresolved_raises(self) -> None:
        with pytest.raises(NotResolvedError):
            compute_payout(_round(resolved=False, outcome=Outcome.NONE), 20, 0)

    def test_does_not_mutate_round(self) -> None:
        rnd = _round()
        compute_payout(rnd, 20, 0)
        assert (rnd.up_pool, rnd.down_pool, rnd.fee_charged) == (100, 50, False)

    def test_payouts_never_exceed_distributable(self) -> None:
        # Three winners splitting 143 over a pool of 100: floors leave dust
        rnd = _round()
        payouts = [compute_payout(rnd, s, 0) for s in (33, 33, 34)]
        assert sum(payouts) <= distributable(rnd)
        assert distributable(rnd) - sum(payouts) < 3


class TestProjectClaim:
    def test_unresolved(self) -> None:
        p = project_claim(_round(resolved=False, outcome=Outcome.NONE), 10, 0)
        assert (p.claimable, p.can_claim, p.reason) == (0, False, "Round not resolved")

    def test_flat_without_bets(self) -> None:
        p = project_claim(_round(outcome=Outcome.FLAT), 0, 0)
        assert p.reason == "No bets placed"
        assert not p.can_claim

    def test_flat_refund(self) -> None:
        p = project_claim(_round(outcome=Outcome.FLAT), 3, 4)
        assert (p.claimable, p.can_claim, p.reason) == (7, True, None)

    def test_lost_up(self) -> None:
        p = project_claim(_round(), 0, 10)
        assert p.reason == "Lost or did not bet UP"

    def test_lost_down(self) -> None:
        p = project_claim(_round(outcome=Outcome.DOWN), 10, 0)
        assert p.reason == "Lost or did not bet DOWN"

    def test_winner(self) -> None:
        p = project_claim(_round(), 20, 0)
        assert (p.claimable, p.can_claim) == (28, True)
