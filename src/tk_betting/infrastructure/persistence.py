"""StakeRepository — raw SQL over the stakes table.

Stakes only grow while a round is open and are zeroed exactly once on claim;
the zeroing UPDATE is guarded so a second claim touches 0 rows.
Transaction ownership: the CALLER commits or rolls back.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.tk_betting.domain.models import Stake
from src.tk_common.enums import Side

_STAKE_COLUMNS = "round_id, user_id, up_amount, down_amount, created_at, updated_at"

_GET_STAKE_SQL = text(f"""
    SELECT {_STAKE_COLUMNS} FROM stakes
    WHERE round_id = :round_id AND user_id = :user_id
""")

_GET_STAKE_FOR_UPDATE_SQL = text(f"""
    SELECT {_STAKE_COLUMNS} FROM stakes
    WHERE round_id = :round_id AND user_id = :user_id
    FOR UPDATE
""")

# Upsert: first bet inserts the row, later bets on either side accumulate
_ADD_STAKE_SQL = text(f"""
    INSERT INTO stakes (round_id, user_id, up_amount, down_amount)
    VALUES (:round_id, :user_id, :up, :down)
    ON CONFLICT (round_id, user_id) DO UPDATE
    SET up_amount = stakes.up_amount + EXCLUDED.up_amount,
        down_amount = stakes.down_amount + EXCLUDED.down_amount,
        updated_at = NOW()
    RETURNING {_STAKE_COLUMNS}
""")

_ZERO_STAKE_SQL = text("""
    UPDATE stakes
    SET up_amount = 0, down_amount = 0, updated_at = NOW()
    WHERE round_id = :round_id AND user_id = :user_id
      AND up_amount + down_amount > 0
""")

_SUM_STAKES_SQL = text("""
    SELECT COALESCE(SUM(up_amount), 0) AS up_total,
           COALESCE(SUM(down_amount), 0) AS down_total
    FROM stakes
    WHERE round_id = :round_id
""")


def _row_to_stake(row: object) -> Stake:
    return Stake(
        round_id=row.round_id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        up_amount=row.up_amount,  # type: ignore[attr-defined]
        down_amount=row.down_amount,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


class StakeRepository:
    async def get_stake(
        self, db: AsyncSession, round_id: int, user_id: str, for_update: bool = False
    ) -> Stake | None:
        sql = _GET_STAKE_FOR_UPDATE_SQL if for_update else _GET_STAKE_SQL
        row = (await db.execute(sql, {"round_id": round_id, "user_id": user_id})).fetchone()
        return _row_to_stake(row) if row else None

    async def add_stake(
        self, db: AsyncSession, round_id: int, user_id: str, side: Side, amount: int
    ) -> Stake:
        up, down = (amount, 0) if side == Side.UP else (0, amount)
        result = await db.execute(
            _ADD_STAKE_SQL,
            {"round_id": round_id, "user_id": user_id, "up": up, "down": down},
        )
        return _row_to_stake(result.fetchone())

    async def zero_stake(self, db: AsyncSession, round_id: int, user_id: str) -> bool:
        result = await db.execute(
            _ZERO_STAKE_SQL, {"round_id": round_id, "user_id": user_id}
        )
        return result.rowcount == 1  # type: ignore[attr-defined]

    async def sum_stakes(self, db: AsyncSession, round_id: int) -> tuple[int, int]:
        row = (await db.execute(_SUM_STAKES_SQL, {"round_id": round_id})).fetchone()
        return int(row.up_total), int(row.down_total)  # type: ignore[union-attr]
