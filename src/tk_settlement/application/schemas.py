"""Pydantic schemas for tk_settlement API responses."""

from pydantic import BaseModel

from src.tk_settlement.domain.models import ClaimResult, DueResolution, ResolutionResult
from src.tk_settlement.domain.payout import ClaimProjection


class ResolutionResponse(BaseModel):
    round_id: int
    outcome: str
    ref_price: int
    settle_price: int
    fee: int
    fee_charged: bool

    @classmethod
    def from_domain(cls, r: ResolutionResult) -> "ResolutionResponse":
        return cls(
            round_id=r.round_id,
            outcome=r.outcome.name,
            ref_price=r.ref_price,
            settle_price=r.settle_price,
            fee=r.fee,
            fee_charged=r.fee_charged,
        )


class ClaimResponse(BaseModel):
    round_id: int
    payout: int
    outcome: str

    @classmethod
    def from_domain(cls, c: ClaimResult) -> "ClaimResponse":
        return cls(round_id=c.round_id, payout=c.payout, outcome=c.outcome.name)


class ClaimableResponse(BaseModel):
    round_id: int
    claimable: int
    can_claim: bool
    reason: str | None

    @classmethod
    def from_projection(cls, round_id: int, p: ClaimProjection) -> "ClaimableResponse":
        return cls(
            round_id=round_id, claimable=p.claimable, can_claim=p.can_claim, reason=p.reason
        )


class DueResolutionItem(BaseModel):
    round_id: int
    ok: bool
    result: ResolutionResponse | None = None
    error_code: int | None = None
    error: str | None = None

    @classmethod
    def from_domain(cls, d: DueResolution) -> "DueResolutionItem":
        return cls(
            round_id=d.round_id,
            ok=d.result is not None,
            result=ResolutionResponse.from_domain(d.result) if d.result else None,
            error_code=d.error_code,
            error=d.error,
        )
