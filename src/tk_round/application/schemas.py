"""Pydantic schemas for tk_round API requests/responses.

Prices are returned as raw scaled integers together with `price_decimals`;
clients do the decimal formatting.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from config.settings import settings
from src.tk_common.enums import RoundStatus
from src.tk_round.domain.models import FeePolicy, Round, RoundEvent


def _iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt is not None else None


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class CreateRoundRequest(BaseModel):
    market: str = Field(..., min_length=1, max_length=128)
    start_ts: int
    lock_ts: int
    resolve_ts: int
    fee_bps: int | None = Field(None, ge=0)


class CreateRoundNowRequest(BaseModel):
    market: str = Field(..., min_length=1, max_length=128)
    start_ts: int | None = Field(None, description="Defaults to now")
    fee_bps: int | None = Field(None, ge=0)


# ---------------------------------------------------------------------------
# Round detail
# ---------------------------------------------------------------------------


class RoundDetail(BaseModel):
    id: int
    market: str
    status: str
    start_ts: int
    lock_ts: int
    resolve_ts: int
    ref_price: int
    settle_price: int
    price_decimals: int
    up_pool: int
    down_pool: int
    total_pool: int
    resolved: bool
    outcome: str
    fee_bps: int
    fee_charged: bool
    created_at: str | None
    resolved_at: str | None

    @classmethod
    def from_domain(cls, r: Round, status: RoundStatus) -> "RoundDetail":
        return cls(
            id=r.id,
            market=r.market,
            status=status.value,
            start_ts=r.start_ts,
            lock_ts=r.lock_ts,
            resolve_ts=r.resolve_ts,
            ref_price=r.ref_price,
            settle_price=r.settle_price,
            price_decimals=settings.PRICE_DECIMALS,
            up_pool=r.up_pool,
            down_pool=r.down_pool,
            total_pool=r.total_pool,
            resolved=r.resolved,
            outcome=r.outcome.name,
            fee_bps=r.fee_bps,
            fee_charged=r.fee_charged,
            created_at=_iso(r.created_at),
            resolved_at=_iso(r.resolved_at),
        )


class RoundListResponse(BaseModel):
    items: list[RoundDetail]
    next_cursor: int | None
    has_more: bool


# ---------------------------------------------------------------------------
# Fee policy
# ---------------------------------------------------------------------------


class SetFeePolicyRequest(BaseModel):
    fee_bps: int = Field(..., ge=0)
    fee_sink_user_id: str = Field(..., min_length=1, max_length=64)


class FeePolicyResponse(BaseModel):
    fee_bps: int
    fee_sink_user_id: str
    updated_at: str | None

    @classmethod
    def from_domain(cls, p: FeePolicy) -> "FeePolicyResponse":
        return cls(
            fee_bps=p.fee_bps,
            fee_sink_user_id=p.fee_sink_user_id,
            updated_at=_iso(p.updated_at),
        )


# ---------------------------------------------------------------------------
# Outbox events
# ---------------------------------------------------------------------------


class RoundEventItem(BaseModel):
    id: int
    round_id: int
    event_type: str
    payload: dict[str, object]
    created_at: str | None

    @classmethod
    def from_domain(cls, e: RoundEvent) -> "RoundEventItem":
        return cls(
            id=e.id,
            round_id=e.round_id,
            event_type=e.event_type,
            payload=e.payload,
            created_at=_iso(e.created_at),
        )


class RoundEventListResponse(BaseModel):
    items: list[RoundEventItem]
    last_id: int
