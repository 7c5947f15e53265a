"""Domain models for tk_betting — pure dataclasses, no business logic."""

from dataclasses import dataclass
from datetime import datetime

from src.tk_common.enums import Side


@dataclass
class Stake:
    """A participant's cumulative position in one round; one row per (round, user)."""

    round_id: int
    user_id: str
    up_amount: int = 0
    down_amount: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def total(self) -> int:
        return self.up_amount + self.down_amount


@dataclass
class BetReceipt:
    """What a successful bet changed, returned to the caller."""

    round_id: int
    user_id: str
    side: Side
    amount: int
    stake: Stake
    ref_price: int
    up_pool: int
    down_pool: int
