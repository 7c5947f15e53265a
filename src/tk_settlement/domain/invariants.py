"""Round invariant verification. Raises AssertionError naming the violated rule."""

import logging

from src.tk_common.enums import Outcome
from src.tk_round.domain.models import Round

logger = logging.getLogger(__name__)


def verify_round_invariants(
    rnd: Round,
    up_stakes: int,
    down_stakes: int,
    paid_out: int = 0,
    fee_paid: int = 0,
) -> None:
    """Check one round against its stake totals and ledger movements.

    INV-R1: up_pool == sum of UP stakes        (unresolved rounds)
    INV-R2: down_pool == sum of DOWN stakes    (unresolved rounds)
    INV-R3: a resolved UP/DOWN round has a non-empty winning pool
    INV-R4: fee_charged implies a non-FLAT outcome
    INV-R5: payouts + fee never exceed the total pool
    """
    if not rnd.resolved:
        assert rnd.up_pool == up_stakes, (
            f"INV-R1 violated: round={rnd.id} up_pool={rnd.up_pool} != stakes={up_stakes}"
        )
        assert rnd.down_pool == down_stakes, (
            f"INV-R2 violated: round={rnd.id} down_pool={rnd.down_pool} "
            f"!= stakes={down_stakes}"
        )
    elif rnd.outcome in (Outcome.UP, Outcome.DOWN):
        assert rnd.pool_for(rnd.outcome) > 0, (
            f"INV-R3 violated: round={rnd.id} resolved {rnd.outcome.name} with empty pool"
        )

    if rnd.fee_charged:
        assert rnd.resolved and rnd.outcome in (Outcome.UP, Outcome.DOWN), (
            f"INV-R4 violated: round={rnd.id} fee charged with outcome={rnd.outcome.name}"
        )

    assert paid_out + fee_paid <= rnd.total_pool, (
        f"INV-R5 violated: round={rnd.id} payouts({paid_out}) + fee({fee_paid}) "
        f"> total_pool={rnd.total_pool}"
    )

    logger.debug("Round invariants OK: round=%d pools=%d/%d", rnd.id, rnd.up_pool, rnd.down_pool)
