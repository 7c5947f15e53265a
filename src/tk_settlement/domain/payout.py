"""PayoutCalculator — pure integer math over a resolved round.

    fee           = floor(total * fee_bps / 10000)     (non-FLAT only)
    distributable = total - fee
    payout        = user_winning_stake * distributable // winning_pool

Flooring every payout leaves at most (winners - 1) units of dust per round
in custody. FLAT refunds stakes exactly and never charges a fee.
"""

from dataclasses import dataclass

from src.tk_common.enums import Outcome
from src.tk_common.errors import NotResolvedError
from src.tk_common.fixed_point import floor_fee
from src.tk_round.domain.models import Round


def compute_fee(total: int, fee_bps: int) -> int:
    return floor_fee(total, fee_bps)


def round_fee(rnd: Round, outcome: Outcome) -> int:
    """Fee owed by a round settling with `outcome`; 0 for FLAT."""
    if outcome in (Outcome.FLAT, Outcome.NONE):
        return 0
    return compute_fee(rnd.total_pool, rnd.fee_bps)


def distributable(rnd: Round) -> int:
    return rnd.total_pool - round_fee(rnd, rnd.outcome)


def compute_payout(rnd: Round, user_up: int, user_down: int) -> int:
    """Amount a participant with (user_up, user_down) receives. Never mutates."""
    if not rnd.resolved:
        raise NotResolvedError(rnd.id)

    if rnd.outcome == Outcome.FLAT:
        return user_up + user_down

    user_winning = user_up if rnd.outcome == Outcome.UP else user_down
    winning_pool = rnd.pool_for(rnd.outcome)
    if user_winning == 0 or winning_pool == 0:
        return 0
    return user_winning * distributable(rnd) // winning_pool


@dataclass(frozen=True)
class ClaimProjection:
    claimable: int
    can_claim: bool
    reason: str | None = None


def project_claim(rnd: Round, user_up: int, user_down: int) -> ClaimProjection:
    """Read-model view of compute_payout with a human-readable reason."""
    if not rnd.resolved:
        return ClaimProjection(0, False, "Round not resolved")

    if rnd.outcome == Outcome.FLAT:
        refund = user_up + user_down
        if refund == 0:
            return ClaimProjection(0, False, "No bets placed")
        return ClaimProjection(refund, True)

    if rnd.outcome == Outcome.UP and user_up == 0:
        return ClaimProjection(0, False, "Lost or did not bet UP")
    if rnd.outcome == Outcome.DOWN and user_down == 0:
        return ClaimProjection(0, False, "Lost or did not bet DOWN")
    return ClaimProjection(compute_payout(rnd, user_up, user_down), True)
