"""Repository Protocol for stakes — dependency inversion for testability."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.tk_betting.domain.models import Stake
from src.tk_common.enums import Side


class StakeRepositoryProtocol(Protocol):
    async def get_stake(
        self, db: AsyncSession, round_id: int, user_id: str, for_update: bool = False
    ) -> Stake | None: ...

    async def add_stake(
        self, db: AsyncSession, round_id: int, user_id: str, side: Side, amount: int
    ) -> Stake: ...

    async def zero_stake(self, db: AsyncSession, round_id: int, user_id: str) -> bool: ...

    async def sum_stakes(self, db: AsyncSession, round_id: int) -> tuple[int, int]: ...
