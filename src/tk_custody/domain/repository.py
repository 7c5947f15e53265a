"""Repository and custody Protocols — dependency inversion for testability.

The round engine only knows the three custody roles below; how value
physically moves (internal credits here, native transfer or a bridge
elsewhere) stays behind them.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.tk_custody.domain.models import Account, LedgerEntry


class AccountRepositoryProtocol(Protocol):
    async def get_account_by_user_id(
        self, db: AsyncSession, user_id: str
    ) -> Account | None: ...

    async def credit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        entry_type: str,
        ref_type: str | None,
        ref_id: str | None,
        description: str,
    ) -> tuple[Account, LedgerEntry]: ...

    async def debit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        entry_type: str,
        ref_type: str | None,
        ref_id: str | None,
        description: str,
    ) -> tuple[Account, LedgerEntry]: ...

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[LedgerEntry]: ...

    async def sum_by_reference(
        self, db: AsyncSession, entry_type: str, ref_type: str, ref_id: str
    ) -> int: ...

    async def reconcile_totals(self, db: AsyncSession) -> tuple[int, int]: ...

    async def custody_held(self, db: AsyncSession) -> int: ...


class ValueSourceProtocol(Protocol):
    """Takes a participant's stake into engine custody when a bet is placed."""

    async def collect(
        self, db: AsyncSession, user_id: str, amount: int, round_id: int
    ) -> None: ...


class ValueSinkProtocol(Protocol):
    """Delivers a claim payout. Raises SinkTransferFailedError on failure."""

    async def deliver(
        self, db: AsyncSession, user_id: str, amount: int, round_id: int
    ) -> None: ...


class FeeSinkProtocol(Protocol):
    """Receives the one-time platform fee of a round."""

    async def collect_fee(
        self, db: AsyncSession, sink_user_id: str, amount: int, round_id: int
    ) -> None: ...
