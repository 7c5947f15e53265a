"""Admin application service — operator-only maintenance operations."""
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.tk_common.caller import Caller, require_operator
from src.tk_round.application.service import RoundRegistry
from src.tk_round.domain.models import FeePolicy
from src.tk_settlement.application.audit import InvariantAuditor
from src.tk_settlement.application.service import SettlementEngine, get_settlement_engine
from src.tk_settlement.domain.models import DueResolution

# Participation figures come from the outbox because claims zero the stake rows
_ROUND_STATS_SQL = text("""
    SELECT
        COUNT(*) FILTER (WHERE event_type = 'BetPlaced') AS total_bets,
        COUNT(DISTINCT payload->>'user_id') FILTER (WHERE event_type = 'BetPlaced')
            AS unique_bettors,
        COUNT(*) FILTER (WHERE event_type = 'Claimed') AS total_claims,
        COALESCE(SUM((payload->>'payout')::BIGINT) FILTER (WHERE event_type = 'Claimed'), 0)
            AS total_paid_out,
        COALESCE(SUM((payload->>'fee')::BIGINT) FILTER (WHERE event_type = 'FeeCharged'), 0)
            AS total_fee
    FROM round_events
    WHERE round_id = :round_id
""")


class AdminService:
    def __init__(
        self,
        registry: RoundRegistry | None = None,
        engine: SettlementEngine | None = None,
        auditor: InvariantAuditor | None = None,
    ) -> None:
        self._registry = registry or RoundRegistry()
        self._engine = engine or get_settlement_engine()
        self._auditor = auditor or InvariantAuditor()

    async def set_fee_policy(
        self, db: AsyncSession, caller: Caller, fee_bps: int, fee_sink_user_id: str
    ) -> FeePolicy:
        return await self._registry.set_fee_policy(db, caller, fee_bps, fee_sink_user_id)

    async def get_fee_policy(self, db: AsyncSession, caller: Caller) -> FeePolicy:
        require_operator(caller)
        return await self._registry.get_fee_policy(db)

    async def verify_all_invariants(self, db: AsyncSession, caller: Caller) -> dict[str, object]:
        require_operator(caller)
        return await self._auditor.verify_all_invariants(db)

    async def resolve_due(
        self, db: AsyncSession, caller: Caller, limit: int
    ) -> list[DueResolution]:
        require_operator(caller)
        return await self._engine.resolve_due(db, limit=limit)

    async def get_round_stats(
        self, db: AsyncSession, caller: Caller, round_id: int
    ) -> dict[str, Any]:
        require_operator(caller)
        rnd = await self._registry.get_round(db, round_id)
        stats = (await db.execute(_ROUND_STATS_SQL, {"round_id": round_id})).fetchone()
        return {
            "round_id": rnd.id,
            "market": rnd.market,
            "status": self._registry.status_of(rnd).value,
            "outcome": rnd.outcome.name,
            "up_pool": rnd.up_pool,
            "down_pool": rnd.down_pool,
            "total_pool": rnd.total_pool,
            "total_bets": int(stats.total_bets) if stats else 0,
            "unique_bettors": int(stats.unique_bettors) if stats else 0,
            "total_claims": int(stats.total_claims) if stats else 0,
            "total_paid_out": int(stats.total_paid_out) if stats else 0,
            "total_fee": int(stats.total_fee) if stats else 0,
        }
