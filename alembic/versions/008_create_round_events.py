"""008: create round_events outbox table

Revision ID: 008
Revises: 007
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "008"
down_revision: Union[str, None] = "007"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE round_events (
            id              BIGSERIAL       PRIMARY KEY,
            round_id        BIGINT          NOT NULL REFERENCES rounds (id),
            event_type      VARCHAR(30)     NOT NULL,
            payload         JSONB           NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_round_event_type CHECK (
                event_type IN (
                    'RoundCreated', 'BetPlaced', 'RoundResolved', 'Claimed', 'FeeCharged'
                )
            )
        );
    """)
    op.execute("CREATE INDEX idx_round_events_round ON round_events (round_id, id);")
    op.execute("""
        CREATE TRIGGER trg_round_events_append_only
            BEFORE UPDATE OR DELETE ON round_events
            FOR EACH ROW EXECUTE FUNCTION fn_reject_mutation();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS round_events CASCADE;")
