"""Pydantic schemas for tk_betting API requests/responses."""

from pydantic import BaseModel, Field

from src.tk_betting.domain.models import BetReceipt, Stake
from src.tk_common.enums import Side


class PlaceBetRequest(BaseModel):
    side: Side
    # Range checks live in the service so API and internal callers share them
    amount: int = Field(..., description="Stake in credit units")


class BetResponse(BaseModel):
    round_id: int
    side: str
    amount: int
    up_stake: int
    down_stake: int
    ref_price: int
    up_pool: int
    down_pool: int

    @classmethod
    def from_receipt(cls, r: BetReceipt) -> "BetResponse":
        return cls(
            round_id=r.round_id,
            side=r.side.value,
            amount=r.amount,
            up_stake=r.stake.up_amount,
            down_stake=r.stake.down_amount,
            ref_price=r.ref_price,
            up_pool=r.up_pool,
            down_pool=r.down_pool,
        )


class StakeResponse(BaseModel):
    round_id: int
    up_amount: int
    down_amount: int

    @classmethod
    def from_domain(cls, s: Stake) -> "StakeResponse":
        return cls(round_id=s.round_id, up_amount=s.up_amount, down_amount=s.down_amount)
