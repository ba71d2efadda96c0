"""005: create offers table

Revision ID: 005
Revises: 004
Create Date: 2026-09-14
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE offers (
            id                  VARCHAR(64)     PRIMARY KEY,
            card_id             VARCHAR(64)     NOT NULL REFERENCES cards (id),
            buyer_id            VARCHAR(64)     NOT NULL REFERENCES profiles (id),
            price               BIGINT          NOT NULL,
            message             TEXT,
            status              VARCHAR(20)     NOT NULL DEFAULT 'pending',
            transaction_id      VARCHAR(64),
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_offers_price          CHECK (price > 0),
            CONSTRAINT ck_offers_status         CHECK (
                status IN ('pending', 'chosen', 'rejected', 'accepted')
            ),
            CONSTRAINT ck_offers_chosen_has_tx  CHECK (
                status <> 'chosen' OR transaction_id IS NOT NULL
            )
        );
    """)
    # One current (pending) offer per buyer per card; resubmission reprices it.
    op.execute("""
        CREATE UNIQUE INDEX uq_offers_card_buyer_pending
        ON offers (card_id, buyer_id)
        WHERE status = 'pending';
    """)
    op.execute("CREATE INDEX idx_offers_card_price ON offers (card_id, price DESC);")
    op.execute("""
        CREATE TRIGGER trg_offers_updated_at
            BEFORE UPDATE ON offers
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS offers CASCADE;")
