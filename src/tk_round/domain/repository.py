# src/tk_round/domain/repository.py
"""Repository Protocols — dependency inversion for testability.

Unit tests inject mocks (or in-memory fakes) that conform to these Protocols.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.tk_common.enums import Outcome, Side
from src.tk_round.domain.models import FeePolicy, Round, RoundEvent


class RoundRepositoryProtocol(Protocol):
    async def create_round(
        self,
        db: AsyncSession,
        market: str,
        start_ts: int,
        lock_ts: int,
        resolve_ts: int,
        fee_bps: int,
    ) -> Round: ...

    async def get_round(
        self, db: AsyncSession, round_id: int, for_update: bool = False
    ) -> Round | None: ...

    async def list_rounds(
        self, db: AsyncSession, cursor_id: int | None, limit: int
    ) -> list[Round]: ...

    async def list_due_round_ids(
        self, db: AsyncSession, now: int, limit: int
    ) -> list[int]: ...

    async def set_ref_price(
        self, db: AsyncSession, round_id: int, price: int
    ) -> bool: ...

    async def add_to_pool(
        self, db: AsyncSession, round_id: int, side: Side, amount: int
    ) -> None: ...

    async def mark_resolved(
        self,
        db: AsyncSession,
        round_id: int,
        outcome: Outcome,
        settle_price: int,
        fee_charged: bool,
    ) -> bool: ...

    async def get_fee_policy(self, db: AsyncSession) -> FeePolicy: ...

    async def set_fee_policy(
        self, db: AsyncSession, fee_bps: int, fee_sink_user_id: str
    ) -> FeePolicy: ...


class EventOutboxProtocol(Protocol):
    async def append(
        self,
        db: AsyncSession,
        round_id: int,
        event_type: str,
        payload: dict[str, object],
    ) -> None: ...

    async def list_events(
        self, db: AsyncSession, after_id: int, limit: int
    ) -> list[RoundEvent]: ...
