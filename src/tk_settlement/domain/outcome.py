"""Outcome selection at resolution time."""

from src.tk_common.enums import Outcome
from src.tk_round.domain.models import Round


def price_outcome(ref_price: int, settle_price: int) -> Outcome:
    if settle_price > ref_price:
        return Outcome.UP
    if settle_price < ref_price:
        return Outcome.DOWN
    return Outcome.FLAT


def decide_outcome(rnd: Round, settle_price: int) -> Outcome:
    """Price comparison, voided to FLAT when nobody backed the winning side."""
    outcome = price_outcome(rnd.ref_price, settle_price)
    if outcome != Outcome.FLAT and rnd.pool_for(outcome) == 0:
        return Outcome.FLAT
    return outcome
