"""RoundRegistry — owns Round records and their creation rules.

Creation and fee-policy changes are operator-only and commit as one unit
together with their outbox record. Reads run without an explicit transaction.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.tk_common.caller import Caller, require_operator
from src.tk_common.datetime_utils import Clock, unix_now
from src.tk_common.enums import RoundEventType, RoundStatus
from src.tk_common.errors import InvalidFeeError, InvalidMarketError, RoundNotFoundError
from src.tk_round.domain.models import FeePolicy, Round
from src.tk_round.domain.repository import EventOutboxProtocol, RoundRepositoryProtocol
from src.tk_round.domain.state_machine import derive_status, fixed_schedule, validate_timing
from src.tk_round.infrastructure.persistence import EventOutbox, RoundRepository

logger = logging.getLogger(__name__)


def validate_market(market: str) -> None:
    """Reject empty identifiers and all-zero hashes (e.g. '0x000...0')."""
    stripped = market.strip()
    if not stripped:
        raise InvalidMarketError()
    digits = stripped.removeprefix("0x")
    if digits and set(digits) == {"0"}:
        raise InvalidMarketError()


def validate_fee_bps(fee_bps: int) -> None:
    if not (0 <= fee_bps <= settings.MAX_FEE_BPS):
        raise InvalidFeeError(fee_bps, settings.MAX_FEE_BPS)


class RoundRegistry:
    def __init__(
        self,
        repo: RoundRepositoryProtocol | None = None,
        outbox: EventOutboxProtocol | None = None,
        clock: Clock = unix_now,
    ) -> None:
        self._repo: RoundRepositoryProtocol = repo or RoundRepository()
        self._outbox: EventOutboxProtocol = outbox or EventOutbox()
        self._clock = clock

    async def create_round(
        self,
        db: AsyncSession,
        caller: Caller,
        market: str,
        start_ts: int,
        lock_ts: int,
        resolve_ts: int,
        fee_bps: int | None = None,
    ) -> Round:
        require_operator(caller)
        validate_market(market)
        validate_timing(start_ts, lock_ts, resolve_ts, self._clock())
        if fee_bps is not None:
            validate_fee_bps(fee_bps)

        try:
            if fee_bps is None:
                fee_bps = (await self._repo.get_fee_policy(db)).fee_bps
            rnd = await self._repo.create_round(
                db, market, start_ts, lock_ts, resolve_ts, fee_bps
            )
            await self._outbox.append(
                db,
                rnd.id,
                RoundEventType.ROUND_CREATED.value,
                {
                    "market": market,
                    "start_ts": start_ts,
                    "lock_ts": lock_ts,
                    "resolve_ts": resolve_ts,
                    "fee_bps": fee_bps,
                },
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Round created: id=%d market=%s start=%d resolve=%d fee_bps=%d",
            rnd.id, market, start_ts, resolve_ts, fee_bps,
        )
        return rnd

    async def create_round60(
        self,
        db: AsyncSession,
        caller: Caller,
        market: str,
        start_ts: int,
        fee_bps: int | None = None,
    ) -> Round:
        start, lock, resolve = fixed_schedule(start_ts)
        return await self.create_round(db, caller, market, start, lock, resolve, fee_bps)

    async def create_round_now60(
        self, db: AsyncSession, caller: Caller, market: str, fee_bps: int | None = None
    ) -> Round:
        return await self.create_round60(db, caller, market, self._clock(), fee_bps)

    async def get_round(self, db: AsyncSession, round_id: int) -> Round:
        rnd = await self._repo.get_round(db, round_id)
        if rnd is None:
            raise RoundNotFoundError(round_id)
        return rnd

    async def list_rounds(
        self, db: AsyncSession, cursor_id: int | None, limit: int
    ) -> tuple[list[Round], int | None]:
        """Newest first. Returns (page, next_cursor)."""
        # Fetch limit+1 to detect has_more without COUNT(*)
        rounds = await self._repo.list_rounds(db, cursor_id, limit + 1)
        page = rounds[:limit]
        next_cursor = page[-1].id if len(rounds) > limit and page else None
        return page, next_cursor

    def status_of(self, rnd: Round) -> RoundStatus:
        return derive_status(rnd, self._clock())

    async def get_fee_policy(self, db: AsyncSession) -> FeePolicy:
        return await self._repo.get_fee_policy(db)

    async def set_fee_policy(
        self,
        db: AsyncSession,
        caller: Caller,
        fee_bps: int,
        fee_sink_user_id: str,
    ) -> FeePolicy:
        """Change the rate applied to rounds created from now on."""
        require_operator(caller)
        validate_fee_bps(fee_bps)
        try:
            policy = await self._repo.set_fee_policy(db, fee_bps, fee_sink_user_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Fee policy updated: fee_bps=%d sink=%s", fee_bps, fee_sink_user_id)
        return policy
