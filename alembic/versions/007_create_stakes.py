"""007: create stakes table

Revision ID: 007
Revises: 006
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "007"
down_revision: Union[str, None] = "006"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE stakes (
            round_id        BIGINT          NOT NULL REFERENCES rounds (id),
            user_id         VARCHAR(64)     NOT NULL,
            up_amount       BIGINT          NOT NULL DEFAULT 0,
            down_amount     BIGINT          NOT NULL DEFAULT 0,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            PRIMARY KEY (round_id, user_id),
            CONSTRAINT ck_stakes_gte_0 CHECK (up_amount >= 0 AND down_amount >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_stakes_user ON stakes (user_id);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS stakes CASCADE;")
