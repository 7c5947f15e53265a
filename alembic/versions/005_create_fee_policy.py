"""005: create fee_policy table, seed policy and fee sink account

Revision ID: 005
Revises: 004
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE fee_policy (
            id                  SMALLINT    PRIMARY KEY DEFAULT 1,
            fee_bps             INTEGER     NOT NULL,
            fee_sink_user_id    VARCHAR(64) NOT NULL,
            updated_at          TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_fee_policy_single_row CHECK (id = 1),
            CONSTRAINT ck_fee_policy_bps CHECK (fee_bps BETWEEN 0 AND 10000)
        );
    """)
    op.execute("""
        INSERT INTO fee_policy (id, fee_bps, fee_sink_user_id)
        VALUES (1, 500, 'PLATFORM_FEE');
    """)
    op.execute("""
        INSERT INTO accounts (user_id, available_balance, version)
        VALUES ('PLATFORM_FEE', 0, 0);
    """)


def downgrade() -> None:
    op.execute("DELETE FROM accounts WHERE user_id = 'PLATFORM_FEE';")
    op.execute("DROP TABLE IF EXISTS fee_policy CASCADE;")
