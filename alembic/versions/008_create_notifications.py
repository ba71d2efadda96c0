"""008: create notifications table

Revision ID: 008
Revises: 007
Create Date: 2026-09-14
"""
from typing import Sequence, Union
from alembic import op

revision: str = "008"
down_revision: Union[str, None] = "007"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE notifications (
            id                  VARCHAR(64)     PRIMARY KEY,
            user_id             VARCHAR(64)     NOT NULL REFERENCES profiles (id),
            type                VARCHAR(32)     NOT NULL,
            title               VARCHAR(255)    NOT NULL,
            message             TEXT            NOT NULL,
            card_id             VARCHAR(64),
            offer_id            VARCHAR(64),
            transaction_id      VARCHAR(64),
            read                BOOLEAN         NOT NULL DEFAULT FALSE,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_notifications_type CHECK (
                type IN ('offer_received', 'offer_accepted', 'offer_rejected',
                         'card_sold', 'transaction_expired')
            )
        );
    """)
    op.execute("CREATE INDEX idx_notifications_user_created ON notifications (user_id, created_at DESC, id DESC);")
    op.execute("""
        CREATE INDEX idx_notifications_user_unread
        ON notifications (user_id)
        WHERE read = FALSE;
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS notifications CASCADE;")
