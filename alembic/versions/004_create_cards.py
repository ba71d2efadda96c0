"""004: create cards table

Revision ID: 004
Revises: 003
Create Date: 2026-09-14
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE cards (
            id                  VARCHAR(64)     PRIMARY KEY,
            seller_id           VARCHAR(64)     NOT NULL REFERENCES profiles (id),
            name                VARCHAR(255)    NOT NULL,
            category            VARCHAR(64)     NOT NULL,
            listing_type        VARCHAR(10)     NOT NULL,
            status              VARCHAR(20)     NOT NULL DEFAULT 'active',
            price               BIGINT,
            current_bid         BIGINT,
            ticket_price        BIGINT,
            last_sold_price     BIGINT,
            condition           VARCHAR(64),
            description         TEXT,
            image_url           VARCHAR(2048),
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_cards_listing_type    CHECK (listing_type IN ('sale', 'auction', 'razz')),
            CONSTRAINT ck_cards_status          CHECK (
                status IN ('active', 'in_transaction', 'sold', 'expired')
            ),
            CONSTRAINT ck_cards_price_positive  CHECK (
                (price IS NULL OR price > 0)
                AND (current_bid IS NULL OR current_bid > 0)
                AND (ticket_price IS NULL OR ticket_price > 0)
            ),
            CONSTRAINT ck_cards_price_for_type  CHECK (
                (listing_type = 'sale' AND price IS NOT NULL) OR
                (listing_type = 'auction' AND current_bid IS NOT NULL) OR
                (listing_type = 'razz' AND ticket_price IS NOT NULL)
            )
        );
    """)
    op.execute("CREATE INDEX idx_cards_status_created ON cards (status, created_at DESC, id DESC);")
    op.execute("CREATE INDEX idx_cards_seller ON cards (seller_id, created_at DESC);")
    op.execute("""
        CREATE TRIGGER trg_cards_updated_at
            BEFORE UPDATE ON cards
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE cards IS 'Listings; status in_transaction is the per-card escrow mutex';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS cards CASCADE;")
