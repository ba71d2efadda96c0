"""007: create cancellations audit table

Revision ID: 007
Revises: 006
Create Date: 2026-09-14
"""
from typing import Sequence, Union
from alembic import op

revision: str = "007"
down_revision: Union[str, None] = "006"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE cancellations (
            id                  VARCHAR(64)     PRIMARY KEY,
            transaction_id      VARCHAR(64)     NOT NULL REFERENCES transactions (id),
            user_id             VARCHAR(64)     NOT NULL REFERENCES profiles (id),
            reason              TEXT            NOT NULL,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW()
        );
    """)
    op.execute("CREATE INDEX idx_cancellations_transaction ON cancellations (transaction_id);")
    op.execute("CREATE INDEX idx_cancellations_user ON cancellations (user_id, created_at DESC);")
    op.execute("COMMENT ON TABLE cancellations IS 'Append-only: one row per manual cancellation';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS cancellations CASCADE;")
