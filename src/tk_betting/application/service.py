"""BettingLedger — accepts UP/DOWN stakes while a round is open.

A bet is one unit of work under the per-round lock:
    1. lock the round row, check the betting window and amount
    2. capture the reference price if this is the round's first bet
    3. collect the stake from the value source
    4. grow the participant's stake and the side's pool
    5. append a BetPlaced outbox record
Any failure rolls back everything, including the reference price.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.tk_betting.domain.models import BetReceipt, Stake
from src.tk_betting.domain.repository import StakeRepositoryProtocol
from src.tk_betting.infrastructure.persistence import StakeRepository
from src.tk_common.datetime_utils import Clock, unix_now
from src.tk_common.enums import RoundEventType, Side
from src.tk_common.errors import (
    AmountTooLargeError,
    BettingClosedError,
    NotStartedError,
    ReferencePriceUnavailableError,
    RoundNotFoundError,
    StalePriceError,
    ZeroAmountError,
)
from src.tk_custody.domain.repository import ValueSourceProtocol
from src.tk_custody.infrastructure.credit_custody import get_custody
from src.tk_oracle.application.service import fetch_fresh_price, get_oracle_client
from src.tk_oracle.domain.client import PriceOracleClientProtocol
from src.tk_round.application.locks import RoundLockRegistry, get_round_locks
from src.tk_round.domain.models import Round
from src.tk_round.domain.repository import EventOutboxProtocol, RoundRepositoryProtocol
from src.tk_round.infrastructure.persistence import EventOutbox, RoundRepository

logger = logging.getLogger(__name__)


def validate_amount(amount: int) -> None:
    if amount <= 0:
        raise ZeroAmountError()
    if amount > settings.MAX_BET_AMOUNT:
        raise AmountTooLargeError(amount, settings.MAX_BET_AMOUNT)


def check_betting_window(rnd: Round, now: int) -> None:
    if now < rnd.start_ts:
        raise NotStartedError(rnd.id)
    if now >= rnd.lock_ts or rnd.resolved:
        raise BettingClosedError(rnd.id)


class BettingLedger:
    def __init__(
        self,
        stakes: StakeRepositoryProtocol | None = None,
        rounds: RoundRepositoryProtocol | None = None,
        outbox: EventOutboxProtocol | None = None,
        source: ValueSourceProtocol | None = None,
        oracle: PriceOracleClientProtocol | None = None,
        locks: RoundLockRegistry | None = None,
        clock: Clock = unix_now,
    ) -> None:
        self._stakes: StakeRepositoryProtocol = stakes or StakeRepository()
        self._rounds: RoundRepositoryProtocol = rounds or RoundRepository()
        self._outbox: EventOutboxProtocol = outbox or EventOutbox()
        self._source: ValueSourceProtocol = source or get_custody()
        self._oracle: PriceOracleClientProtocol = oracle or get_oracle_client()
        self._locks = locks or get_round_locks()
        self._clock = clock

    async def bet(
        self, db: AsyncSession, round_id: int, user_id: str, side: Side, amount: int
    ) -> BetReceipt:
        async with self._locks.get(round_id):
            try:
                receipt = await self._bet_locked(db, round_id, user_id, side, amount)
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info(
            "Bet placed: round=%d user=%s side=%s amount=%d pools=%d/%d",
            round_id, user_id, side.value, amount, receipt.up_pool, receipt.down_pool,
        )
        return receipt

    async def _bet_locked(
        self, db: AsyncSession, round_id: int, user_id: str, side: Side, amount: int
    ) -> BetReceipt:
        rnd = await self._rounds.get_round(db, round_id, for_update=True)
        if rnd is None:
            raise RoundNotFoundError(round_id)
        check_betting_window(rnd, self._clock())
        validate_amount(amount)

        if rnd.ref_price == 0:
            await self._capture_reference_price(db, rnd)

        await self._source.collect(db, user_id, amount, round_id)
        stake = await self._stakes.add_stake(db, round_id, user_id, side, amount)
        await self._rounds.add_to_pool(db, round_id, side, amount)
        if side == Side.UP:
            rnd.up_pool += amount
        else:
            rnd.down_pool += amount

        await self._outbox.append(
            db,
            round_id,
            RoundEventType.BET_PLACED.value,
            {"user_id": user_id, "side": side.value, "amount": amount},
        )
        return BetReceipt(
            round_id=round_id,
            user_id=user_id,
            side=side,
            amount=amount,
            stake=stake,
            ref_price=rnd.ref_price,
            up_pool=rnd.up_pool,
            down_pool=rnd.down_pool,
        )

    async def _capture_reference_price(self, db: AsyncSession, rnd: Round) -> None:
        try:
            reading = await fetch_fresh_price(self._oracle, rnd.market)
        except StalePriceError as e:
            logger.warning(
                "Reference price unavailable: round=%d market=%s (%s)",
                rnd.id, rnd.market, e.message,
            )
            raise ReferencePriceUnavailableError(rnd.market) from e

        if await self._rounds.set_ref_price(db, rnd.id, reading.price):
            rnd.ref_price = reading.price
            logger.info("Reference price captured: round=%d price=%d", rnd.id, reading.price)
        else:
            # Captured by another writer since the row was read
            current = await self._rounds.get_round(db, rnd.id, for_update=True)
            if current is not None:
                rnd.ref_price = current.ref_price

    async def get_user_stakes(
        self, db: AsyncSession, round_id: int, user_id: str
    ) -> tuple[int, int]:
        """(up, down) staked by the user; (0, 0) when they never bet."""
        if await self._rounds.get_round(db, round_id) is None:
            raise RoundNotFoundError(round_id)
        stake = await self._stakes.get_stake(db, round_id, user_id)
        if stake is None:
            return 0, 0
        return stake.up_amount, stake.down_amount

    async def get_stake(self, db: AsyncSession, round_id: int, user_id: str) -> Stake:
        up, down = await self.get_user_stakes(db, round_id, user_id)
        return Stake(round_id=round_id, user_id=user_id, up_amount=up, down_amount=down)


_ledger: BettingLedger | None = None


def get_betting_ledger() -> BettingLedger:
    global _ledger  # noqa: PLW0603
    if _ledger is None:
        _ledger = BettingLedger()
    return _ledger
