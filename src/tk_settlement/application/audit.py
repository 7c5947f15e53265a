"""Operator-triggered invariant sweep over every round plus the credit ledger.

INV-G1: sum of account balances == sum of ledger amounts
INV-G2: value held by the engine == sum over rounds of (pool - payouts - fee)
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.tk_betting.domain.repository import StakeRepositoryProtocol
from src.tk_betting.infrastructure.persistence import StakeRepository
from src.tk_common.enums import LedgerEntryType
from src.tk_custody.domain.repository import AccountRepositoryProtocol
from src.tk_custody.infrastructure.credit_custody import ROUND_REFERENCE
from src.tk_custody.infrastructure.persistence import AccountRepository
from src.tk_round.domain.repository import RoundRepositoryProtocol
from src.tk_round.infrastructure.persistence import RoundRepository
from src.tk_settlement.domain.invariants import verify_round_invariants

logger = logging.getLogger(__name__)

_PAGE = 500


class InvariantAuditor:
    def __init__(
        self,
        rounds: RoundRepositoryProtocol | None = None,
        stakes: StakeRepositoryProtocol | None = None,
        accounts: AccountRepositoryProtocol | None = None,
    ) -> None:
        self._rounds: RoundRepositoryProtocol = rounds or RoundRepository()
        self._stakes: StakeRepositoryProtocol = stakes or StakeRepository()
        self._accounts: AccountRepositoryProtocol = accounts or AccountRepository()

    async def verify_all_invariants(self, db: AsyncSession) -> dict[str, object]:
        violations: list[str] = []
        outstanding = 0
        checked = 0

        cursor: int | None = None
        while True:
            page = await self._rounds.list_rounds(db, cursor, _PAGE)
            for rnd in page:
                ref_id = str(rnd.id)
                up, down = await self._stakes.sum_stakes(db, rnd.id)
                paid_out = await self._accounts.sum_by_reference(
                    db, LedgerEntryType.CLAIM_PAYOUT.value, ROUND_REFERENCE, ref_id
                )
                fee_paid = await self._accounts.sum_by_reference(
                    db, LedgerEntryType.FEE_REVENUE.value, ROUND_REFERENCE, ref_id
                )
                outstanding += rnd.total_pool - paid_out - fee_paid
                try:
                    verify_round_invariants(rnd, up, down, paid_out, fee_paid)
                except AssertionError as e:
                    violations.append(str(e))
                checked += 1
            if len(page) < _PAGE:
                break
            cursor = page[-1].id

        balances, ledger_total = await self._accounts.reconcile_totals(db)
        if balances != ledger_total:
            violations.append(
                f"INV-G1 violated: account balances={balances} != ledger total={ledger_total}"
            )
        held = await self._accounts.custody_held(db)
        if held != outstanding:
            violations.append(
                f"INV-G2 violated: custody held={held} != outstanding round value={outstanding}"
            )

        for v in violations:
            logger.error(v)
        if not violations:
            logger.debug("Invariant sweep OK: rounds=%d held=%d", checked, held)
        return {"ok": not violations, "rounds_checked": checked, "violations": violations}
