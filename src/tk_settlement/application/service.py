"""SettlementEngine and ClaimProcessor.

resolve() is callable by anyone once resolve_ts has passed. All oracle I/O
happens before the first write, so a stale or missing price leaves the round
untouched. The fee transfer and the resolved flag commit together; a failed
fee transfer leaves the round unresolved and retryable.

claim() follows checks-effects-interactions: the stake is zeroed before the
value sink is called, and a sink failure rolls back the zeroing with it.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.tk_betting.domain.repository import StakeRepositoryProtocol
from src.tk_betting.infrastructure.persistence import StakeRepository
from src.tk_common.datetime_utils import Clock, unix_now
from src.tk_common.enums import Outcome, RoundEventType
from src.tk_common.errors import (
    AlreadyResolvedError,
    AppError,
    NothingToClaimError,
    NotResolvedError,
    RoundNotFoundError,
    TooEarlyError,
)
from src.tk_custody.domain.repository import FeeSinkProtocol, ValueSinkProtocol
from src.tk_custody.infrastructure.credit_custody import get_custody
from src.tk_oracle.application.service import fetch_fresh_price, get_oracle_client
from src.tk_oracle.domain.client import PriceOracleClientProtocol
from src.tk_round.application.locks import RoundLockRegistry, get_round_locks
from src.tk_round.domain.models import Round
from src.tk_round.domain.repository import EventOutboxProtocol, RoundRepositoryProtocol
from src.tk_round.infrastructure.persistence import EventOutbox, RoundRepository
from src.tk_settlement.domain.models import ClaimResult, DueResolution, ResolutionResult
from src.tk_settlement.domain.outcome import decide_outcome
from src.tk_settlement.domain.payout import compute_payout, round_fee

logger = logging.getLogger(__name__)

_DEFAULT_DUE_BATCH = 50


class SettlementEngine:
    def __init__(
        self,
        rounds: RoundRepositoryProtocol | None = None,
        outbox: EventOutboxProtocol | None = None,
        fee_sink: FeeSinkProtocol | None = None,
        oracle: PriceOracleClientProtocol | None = None,
        locks: RoundLockRegistry | None = None,
        clock: Clock = unix_now,
    ) -> None:
        self._rounds: RoundRepositoryProtocol = rounds or RoundRepository()
        self._outbox: EventOutboxProtocol = outbox or EventOutbox()
        self._fee_sink: FeeSinkProtocol = fee_sink or get_custody()
        self._oracle: PriceOracleClientProtocol = oracle or get_oracle_client()
        self._locks = locks or get_round_locks()
        self._clock = clock

    async def resolve(self, db: AsyncSession, round_id: int) -> ResolutionResult:
        async with self._locks.get(round_id):
            try:
                result = await self._resolve_locked(db, round_id)
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info(
            "Round resolved: id=%d outcome=%s ref=%d settle=%d fee=%d",
            round_id, result.outcome.name, result.ref_price, result.settle_price, result.fee,
        )
        return result

    async def _resolve_locked(self, db: AsyncSession, round_id: int) -> ResolutionResult:
        rnd = await self._rounds.get_round(db, round_id, for_update=True)
        if rnd is None:
            raise RoundNotFoundError(round_id)
        if self._clock() < rnd.resolve_ts:
            raise TooEarlyError(round_id, rnd.resolve_ts)
        if rnd.resolved:
            raise AlreadyResolvedError(round_id)

        settle_price, outcome = await self._settle_price_and_outcome(rnd)

        fee = round_fee(rnd, outcome)
        fee_charged = False
        if fee > 0:
            await self._charge_fee(db, rnd, fee)
            fee_charged = True

        if not await self._rounds.mark_resolved(db, round_id, outcome, settle_price, fee_charged):
            raise AlreadyResolvedError(round_id)

        await self._outbox.append(
            db,
            round_id,
            RoundEventType.ROUND_RESOLVED.value,
            {
                "outcome": outcome.name,
                "ref_price": rnd.ref_price,
                "settle_price": settle_price,
                "up_pool": rnd.up_pool,
                "down_pool": rnd.down_pool,
                "fee": fee,
            },
        )
        return ResolutionResult(
            round_id=round_id,
            outcome=outcome,
            ref_price=rnd.ref_price,
            settle_price=settle_price,
            fee=fee,
            fee_charged=fee_charged,
        )

    async def _settle_price_and_outcome(self, rnd: Round) -> tuple[int, Outcome]:
        if rnd.ref_price == 0:
            # Nobody bet, so no reference price exists: refund-only, oracle untouched
            return 0, Outcome.FLAT
        reading = await fetch_fresh_price(self._oracle, rnd.market)
        outcome = decide_outcome(rnd, reading.price)
        if outcome == Outcome.FLAT and reading.price != rnd.ref_price:
            logger.info("Round %d voided to FLAT: winning side has no stakes", rnd.id)
        return reading.price, outcome

    async def _charge_fee(self, db: AsyncSession, rnd: Round, fee: int) -> None:
        policy = await self._rounds.get_fee_policy(db)
        await self._fee_sink.collect_fee(db, policy.fee_sink_user_id, fee, rnd.id)
        await self._outbox.append(
            db,
            rnd.id,
            RoundEventType.FEE_CHARGED.value,
            {"fee": fee, "fee_bps": rnd.fee_bps, "sink": policy.fee_sink_user_id},
        )
        logger.info("Fee charged: round=%d fee=%d sink=%s", rnd.id, fee, policy.fee_sink_user_id)

    async def resolve_due(
        self, db: AsyncSession, now: int | None = None, limit: int = _DEFAULT_DUE_BATCH
    ) -> list[DueResolution]:
        """Resolve every unresolved round whose resolve_ts has passed.

        Failures are reported per round; one stale price does not stop the sweep.
        """
        cutoff = now if now is not None else self._clock()
        round_ids = await self._rounds.list_due_round_ids(db, cutoff, limit)
        results: list[DueResolution] = []
        for round_id in round_ids:
            try:
                result = await self.resolve(db, round_id)
            except AppError as e:
                logger.warning("Keeper could not resolve round %d: %s", round_id, e.message)
                results.append(DueResolution(round_id, error_code=e.code, error=e.message))
            else:
                results.append(DueResolution(round_id, result=result))
        return results


class ClaimProcessor:
    def __init__(
        self,
        rounds: RoundRepositoryProtocol | None = None,
        stakes: StakeRepositoryProtocol | None = None,
        outbox: EventOutboxProtocol | None = None,
        sink: ValueSinkProtocol | None = None,
        locks: RoundLockRegistry | None = None,
    ) -> None:
        self._rounds: RoundRepositoryProtocol = rounds or RoundRepository()
        self._stakes: StakeRepositoryProtocol = stakes or StakeRepository()
        self._outbox: EventOutboxProtocol = outbox or EventOutbox()
        self._sink: ValueSinkProtocol = sink or get_custody()
        self._locks = locks or get_round_locks()

    async def claim(self, db: AsyncSession, round_id: int, user_id: str) -> ClaimResult:
        async with self._locks.get(round_id):
            try:
                result = await self._claim_locked(db, round_id, user_id)
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info(
            "Claimed: round=%d user=%s payout=%d outcome=%s",
            round_id, user_id, result.payout, result.outcome.name,
        )
        return result

    async def _claim_locked(self, db: AsyncSession, round_id: int, user_id: str) -> ClaimResult:
        rnd = await self._rounds.get_round(db, round_id)
        if rnd is None:
            raise RoundNotFoundError(round_id)
        if not rnd.resolved:
            raise NotResolvedError(round_id)

        stake = await self._stakes.get_stake(db, round_id, user_id, for_update=True)
        if stake is None or stake.total == 0:
            raise NothingToClaimError(round_id)

        payout = compute_payout(rnd, stake.up_amount, stake.down_amount)

        # Effects before interaction
        if not await self._stakes.zero_stake(db, round_id, user_id):
            raise NothingToClaimError(round_id)
        if payout > 0:
            await self._sink.deliver(db, user_id, payout, round_id)

        await self._outbox.append(
            db,
            round_id,
            RoundEventType.CLAIMED.value,
            {
                "user_id": user_id,
                "payout": payout,
                "up_amount": stake.up_amount,
                "down_amount": stake.down_amount,
            },
        )
        return ClaimResult(round_id=round_id, user_id=user_id, payout=payout, outcome=rnd.outcome)


_engine: SettlementEngine | None = None
_claims: ClaimProcessor | None = None


def get_settlement_engine() -> SettlementEngine:
    global _engine  # noqa: PLW0603
    if _engine is None:
        _engine = SettlementEngine()
    return _engine


def get_claim_processor() -> ClaimProcessor:
    global _claims  # noqa: PLW0603
    if _claims is None:
        _claims = ClaimProcessor()
    return _claims
