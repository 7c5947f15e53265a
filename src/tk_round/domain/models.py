"""Domain models for tk_round — pure dataclasses, no business logic."""

from dataclasses import dataclass
from datetime import datetime

from src.tk_common.enums import Outcome

ROUND_SECONDS = 60
LOCK_GAP_SECONDS = 10


@dataclass
class Round:
    id: int
    market: str
    start_ts: int            # unix seconds
    lock_ts: int             # == resolve_ts - LOCK_GAP_SECONDS
    resolve_ts: int          # == start_ts + ROUND_SECONDS
    fee_bps: int             # copied at creation, never follows later policy changes
    ref_price: int = 0       # 0 = not captured yet
    settle_price: int = 0    # 0 until resolved
    up_pool: int = 0
    down_pool: int = 0
    resolved: bool = False
    outcome: Outcome = Outcome.NONE
    fee_charged: bool = False
    created_at: datetime | None = None
    resolved_at: datetime | None = None

    @property
    def total_pool(self) -> int:
        return self.up_pool + self.down_pool

    def pool_for(self, outcome: Outcome) -> int:
        if outcome == Outcome.UP:
            return self.up_pool
        if outcome == Outcome.DOWN:
            return self.down_pool
        return 0


@dataclass
class FeePolicy:
    fee_bps: int
    fee_sink_user_id: str
    updated_at: datetime | None = None


@dataclass
class RoundEvent:
    """Append-only outbox record consumed by downstream read models."""

    id: int                  # BIGSERIAL
    round_id: int
    event_type: str          # RoundEventType value
    payload: dict[str, object]
    created_at: datetime | None = None
