"""006: create rounds table

Revision ID: 006
Revises: 005
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE rounds (
            id              BIGSERIAL       PRIMARY KEY,
            market          VARCHAR(128)    NOT NULL,
            start_ts        BIGINT          NOT NULL,
            lock_ts         BIGINT          NOT NULL,
            resolve_ts      BIGINT          NOT NULL,
            fee_bps         INTEGER         NOT NULL,
            ref_price       BIGINT          NOT NULL DEFAULT 0,
            settle_price    BIGINT          NOT NULL DEFAULT 0,
            up_pool         BIGINT          NOT NULL DEFAULT 0,
            down_pool       BIGINT          NOT NULL DEFAULT 0,
            resolved        BOOLEAN         NOT NULL DEFAULT FALSE,
            outcome         SMALLINT        NOT NULL DEFAULT 0,
            fee_charged     BOOLEAN         NOT NULL DEFAULT FALSE,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            resolved_at     TIMESTAMPTZ,
            CONSTRAINT ck_rounds_market_nonempty CHECK (LENGTH(market) > 0),
            CONSTRAINT ck_rounds_timing CHECK (
                start_ts < lock_ts AND lock_ts < resolve_ts
                AND resolve_ts = start_ts + 60 AND lock_ts = resolve_ts - 10
            ),
            CONSTRAINT ck_rounds_fee_bps CHECK (fee_bps BETWEEN 0 AND 10000),
            CONSTRAINT ck_rounds_pools_gte_0 CHECK (up_pool >= 0 AND down_pool >= 0),
            CONSTRAINT ck_rounds_ref_price_gte_0 CHECK (ref_price >= 0),
            CONSTRAINT ck_rounds_outcome CHECK (outcome BETWEEN 0 AND 3),
            CONSTRAINT ck_rounds_resolved_outcome CHECK (resolved = (outcome <> 0)),
            CONSTRAINT ck_rounds_fee_charged CHECK (
                NOT fee_charged OR (resolved AND outcome IN (1, 2))
            )
        );
    """)
    op.execute("""
        CREATE INDEX idx_rounds_due
        ON rounds (resolve_ts)
        WHERE resolved = FALSE;
    """)
    op.execute("COMMENT ON TABLE rounds IS '60s UP/DOWN rounds; never deleted';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS rounds CASCADE;")
