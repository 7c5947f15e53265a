"""AccountApplicationService — thin composition layer over the credit ledger.

Deposit and withdraw commit their own transaction; reads run without one.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.tk_common.enums import LedgerEntryType
from src.tk_common.errors import AccountNotFoundError
from src.tk_custody.application.schemas import (
    BalanceResponse,
    LedgerEntryItem,
    LedgerResponse,
    TransferResponse,
    cursor_decode,
    cursor_encode,
)
from src.tk_custody.domain.repository import AccountRepositoryProtocol
from src.tk_custody.infrastructure.persistence import AccountRepository


class AccountApplicationService:
    def __init__(self, repo: AccountRepositoryProtocol | None = None) -> None:
        self._repo: AccountRepositoryProtocol = repo or AccountRepository()

    async def get_balance(self, db: AsyncSession, user_id: str) -> BalanceResponse:
        account = await self._repo.get_account_by_user_id(db, user_id)
        if account is None:
            raise AccountNotFoundError(user_id)
        return BalanceResponse.from_units(user_id, account.available_balance)

    async def deposit(
        self, db: AsyncSession, user_id: str, amount: int
    ) -> TransferResponse:
        try:
            account, entry = await self._repo.credit(
                db, user_id, amount, LedgerEntryType.DEPOSIT.value,
                "DEPOSIT", None, "Credit deposit",
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return TransferResponse.from_result(account.available_balance, amount, entry.id)

    async def withdraw(
        self, db: AsyncSession, user_id: str, amount: int
    ) -> TransferResponse:
        try:
            account, entry = await self._repo.debit(
                db, user_id, amount, LedgerEntryType.WITHDRAW.value,
                "WITHDRAW", None, "Credit withdrawal",
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return TransferResponse.from_result(account.available_balance, amount, entry.id)

    async def list_ledger(
        self,
        db: AsyncSession,
        user_id: str,
        cursor: str | None,
        limit: int,
        entry_type: str | None,
    ) -> LedgerResponse:
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        entries = await self._repo.list_ledger_entries(
            db, user_id, cursor_id, limit + 1, entry_type
        )
        has_more = len(entries) > limit
        page = entries[:limit]
        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return LedgerResponse(
            items=[LedgerEntryItem.from_domain(e) for e in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )
