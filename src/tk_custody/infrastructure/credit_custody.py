"""CreditLedgerCustody — value source, value sink and fee sink over internal credits.

Bet:   debit participant available_balance (BET_STAKE)
Claim: credit participant available_balance (CLAIM_PAYOUT)
Fee:   credit the fee-sink account (FEE_REVENUE)

Every movement writes a ledger entry referencing the round, inside the
caller's transaction.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.tk_common.enums import LedgerEntryType
from src.tk_common.errors import AccountNotFoundError, SinkTransferFailedError
from src.tk_custody.domain.repository import AccountRepositoryProtocol
from src.tk_custody.infrastructure.persistence import AccountRepository

logger = logging.getLogger(__name__)

ROUND_REFERENCE = "ROUND"


class CreditLedgerCustody:
    def __init__(self, repo: AccountRepositoryProtocol | None = None) -> None:
        self._repo: AccountRepositoryProtocol = repo or AccountRepository()

    async def collect(
        self, db: AsyncSession, user_id: str, amount: int, round_id: int
    ) -> None:
        await self._repo.debit(
            db,
            user_id,
            amount,
            LedgerEntryType.BET_STAKE.value,
            ROUND_REFERENCE,
            str(round_id),
            f"Stake for round {round_id}",
        )

    async def deliver(
        self, db: AsyncSession, user_id: str, amount: int, round_id: int
    ) -> None:
        try:
            await self._repo.credit(
                db,
                user_id,
                amount,
                LedgerEntryType.CLAIM_PAYOUT.value,
                ROUND_REFERENCE,
                str(round_id),
                f"Payout for round {round_id}",
            )
        except AccountNotFoundError as e:
            logger.error("Payout delivery failed: round=%d user=%s", round_id, user_id)
            raise SinkTransferFailedError(e.message) from e

    async def collect_fee(
        self, db: AsyncSession, sink_user_id: str, amount: int, round_id: int
    ) -> None:
        try:
            await self._repo.credit(
                db,
                sink_user_id,
                amount,
                LedgerEntryType.FEE_REVENUE.value,
                ROUND_REFERENCE,
                str(round_id),
                f"Platform fee for round {round_id}",
            )
        except AccountNotFoundError as e:
            logger.error("Fee transfer failed: round=%d sink=%s", round_id, sink_user_id)
            raise SinkTransferFailedError(e.message) from e


_custody: CreditLedgerCustody | None = None


def get_custody() -> CreditLedgerCustody:
    global _custody  # noqa: PLW0603
    if _custody is None:
        _custody = CreditLedgerCustody()
    return _custody
