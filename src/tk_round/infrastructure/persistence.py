"""RoundRepository / EventOutbox — concrete implementations of the tk_round Protocols.

All queries use raw text() SQL (no ORM).
Write-once columns are guarded in the WHERE clause (ref_price = 0,
resolved = FALSE) so a lost race updates 0 rows instead of overwriting.

Transaction ownership: the CALLER (application service) commits or rolls back.
"""

import json

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.tk_common.enums import Outcome, Side
from src.tk_round.domain.models import FeePolicy, Round, RoundEvent

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_ROUND_COLUMNS = """
    id, market, start_ts, lock_ts, resolve_ts, fee_bps,
    ref_price, settle_price, up_pool, down_pool,
    resolved, outcome, fee_charged, created_at, resolved_at
"""

_INSERT_ROUND_SQL = text(f"""
    INSERT INTO rounds (market, start_ts, lock_ts, resolve_ts, fee_bps)
    VALUES (:market, :start_ts, :lock_ts, :resolve_ts, :fee_bps)
    RETURNING {_ROUND_COLUMNS}
""")

_GET_ROUND_SQL = text(f"SELECT {_ROUND_COLUMNS} FROM rounds WHERE id = :round_id")

_GET_ROUND_FOR_UPDATE_SQL = text(
    f"SELECT {_ROUND_COLUMNS} FROM rounds WHERE id = :round_id FOR UPDATE"
)

_LIST_ROUNDS_SQL = text(f"""
    SELECT {_ROUND_COLUMNS}
    FROM rounds
    WHERE CAST(:cursor_id AS BIGINT) IS NULL OR id < CAST(:cursor_id AS BIGINT)
    ORDER BY id DESC
    LIMIT :limit
""")

_LIST_DUE_SQL = text("""
    SELECT id FROM rounds
    WHERE resolved = FALSE AND resolve_ts <= :now
    ORDER BY id ASC
    LIMIT :limit
""")

_SET_REF_PRICE_SQL = text("""
    UPDATE rounds SET ref_price = :price
    WHERE id = :round_id AND ref_price = 0 AND resolved = FALSE
""")

_ADD_UP_POOL_SQL = text("""
    UPDATE rounds SET up_pool = up_pool + :amount
    WHERE id = :round_id AND resolved = FALSE
""")

_ADD_DOWN_POOL_SQL = text("""
    UPDATE rounds SET down_pool = down_pool + :amount
    WHERE id = :round_id AND resolved = FALSE
""")

_MARK_RESOLVED_SQL = text("""
    UPDATE rounds
    SET resolved = TRUE,
        outcome = :outcome,
        settle_price = :settle_price,
        fee_charged = :fee_charged,
        resolved_at = NOW()
    WHERE id = :round_id AND resolved = FALSE
""")

_GET_FEE_POLICY_SQL = text(
    "SELECT fee_bps, fee_sink_user_id, updated_at FROM fee_policy WHERE id = 1"
)

_SET_FEE_POLICY_SQL = text("""
    INSERT INTO fee_policy (id, fee_bps, fee_sink_user_id)
    VALUES (1, :fee_bps, :fee_sink_user_id)
    ON CONFLICT (id) DO UPDATE
    SET fee_bps = EXCLUDED.fee_bps,
        fee_sink_user_id = EXCLUDED.fee_sink_user_id,
        updated_at = NOW()
    RETURNING fee_bps, fee_sink_user_id, updated_at
""")

_INSERT_EVENT_SQL = text("""
    INSERT INTO round_events (round_id, event_type, payload)
    VALUES (:round_id, :event_type, :payload)
""")

_LIST_EVENTS_SQL = text("""
    SELECT id, round_id, event_type, payload, created_at
    FROM round_events
    WHERE id > :after_id
    ORDER BY id ASC
    LIMIT :limit
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_round(row: object) -> Round:
    return Round(
        id=row.id,  # type: ignore[attr-defined]
        market=row.market,  # type: ignore[attr-defined]
        start_ts=row.start_ts,  # type: ignore[attr-defined]
        lock_ts=row.lock_ts,  # type: ignore[attr-defined]
        resolve_ts=row.resolve_ts,  # type: ignore[attr-defined]
        fee_bps=row.fee_bps,  # type: ignore[attr-defined]
        ref_price=row.ref_price,  # type: ignore[attr-defined]
        settle_price=row.settle_price,  # type: ignore[attr-defined]
        up_pool=row.up_pool,  # type: ignore[attr-defined]
        down_pool=row.down_pool,  # type: ignore[attr-defined]
        resolved=row.resolved,  # type: ignore[attr-defined]
        outcome=Outcome(row.outcome),  # type: ignore[attr-defined]
        fee_charged=row.fee_charged,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        resolved_at=row.resolved_at,  # type: ignore[attr-defined]
    )


# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------


class RoundRepository:
    async def create_round(
        self,
        db: AsyncSession,
        market: str,
        start_ts: int,
        lock_ts: int,
        resolve_ts: int,
        fee_bps: int,
    ) -> Round:
        result = await db.execute(
            _INSERT_ROUND_SQL,
            {
                "market": market,
                "start_ts": start_ts,
                "lock_ts": lock_ts,
                "resolve_ts": resolve_ts,
                "fee_bps": fee_bps,
            },
        )
        return _row_to_round(result.fetchone())

    async def get_round(
        self, db: AsyncSession, round_id: int, for_update: bool = False
    ) -> Round | None:
        sql = _GET_ROUND_FOR_UPDATE_SQL if for_update else _GET_ROUND_SQL
        row = (await db.execute(sql, {"round_id": round_id})).fetchone()
        return _row_to_round(row) if row else None

    async def list_rounds(
        self, db: AsyncSession, cursor_id: int | None, limit: int
    ) -> list[Round]:
        result = await db.execute(
            _LIST_ROUNDS_SQL, {"cursor_id": cursor_id, "limit": limit}
        )
        return [_row_to_round(row) for row in result.fetchall()]

    async def list_due_round_ids(
        self, db: AsyncSession, now: int, limit: int
    ) -> list[int]:
        result = await db.execute(_LIST_DUE_SQL, {"now": now, "limit": limit})
        return [row.id for row in result.fetchall()]

    async def set_ref_price(
        self, db: AsyncSession, round_id: int, price: int
    ) -> bool:
        result = await db.execute(
            _SET_REF_PRICE_SQL, {"round_id": round_id, "price": price}
        )
        return result.rowcount == 1  # type: ignore[attr-defined]

    async def add_to_pool(
        self, db: AsyncSession, round_id: int, side: Side, amount: int
    ) -> None:
        sql = _ADD_UP_POOL_SQL if side == Side.UP else _ADD_DOWN_POOL_SQL
        await db.execute(sql, {"round_id": round_id, "amount": amount})

    async def mark_resolved(
        self,
        db: AsyncSession,
        round_id: int,
        outcome: Outcome,
        settle_price: int,
        fee_charged: bool,
    ) -> bool:
        result = await db.execute(
            _MARK_RESOLVED_SQL,
            {
                "round_id": round_id,
                "outcome": int(outcome),
                "settle_price": settle_price,
                "fee_charged": fee_charged,
            },
        )
        return result.rowcount == 1  # type: ignore[attr-defined]

    async def get_fee_policy(self, db: AsyncSession) -> FeePolicy:
        row = (await db.execute(_GET_FEE_POLICY_SQL)).fetchone()
        if row is None:
            # Unseeded database: fall back to configured defaults
            return FeePolicy(settings.DEFAULT_FEE_BPS, settings.PLATFORM_FEE_USER_ID)
        return FeePolicy(
            fee_bps=row.fee_bps,
            fee_sink_user_id=row.fee_sink_user_id,
            updated_at=row.updated_at,
        )

    async def set_fee_policy(
        self, db: AsyncSession, fee_bps: int, fee_sink_user_id: str
    ) -> FeePolicy:
        row = (
            await db.execute(
                _SET_FEE_POLICY_SQL,
                {"fee_bps": fee_bps, "fee_sink_user_id": fee_sink_user_id},
            )
        ).fetchone()
        return FeePolicy(
            fee_bps=row.fee_bps,  # type: ignore[union-attr]
            fee_sink_user_id=row.fee_sink_user_id,  # type: ignore[union-attr]
            updated_at=row.updated_at,  # type: ignore[union-attr]
        )


class EventOutbox:
    """Append-only round_events writer, called inside the caller's transaction."""

    async def append(
        self,
        db: AsyncSession,
        round_id: int,
        event_type: str,
        payload: dict[str, object],
    ) -> None:
        await db.execute(
            _INSERT_EVENT_SQL,
            {
                "round_id": round_id,
                "event_type": event_type,
                "payload": json.dumps(payload),
            },
        )

    async def list_events(
        self, db: AsyncSession, after_id: int, limit: int
    ) -> list[RoundEvent]:
        result = await db.execute(
            _LIST_EVENTS_SQL, {"after_id": after_id, "limit": limit}
        )
        return [
            RoundEvent(
                id=row.id,
                round_id=row.round_id,
                event_type=row.event_type,
                payload=row.payload if isinstance(row.payload, dict) else json.loads(row.payload),
                created_at=row.created_at,
            )
            for row in result.fetchall()
        ]
