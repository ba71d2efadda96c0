"""006: create transactions table

Revision ID: 006
Revises: 005
Create Date: 2026-09-14
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE transactions (
            id                  VARCHAR(64)     PRIMARY KEY,
            card_id             VARCHAR(64)     NOT NULL REFERENCES cards (id),
            seller_id           VARCHAR(64)     NOT NULL REFERENCES profiles (id),
            buyer_id            VARCHAR(64)     NOT NULL REFERENCES profiles (id),
            offer_id            VARCHAR(64)     NOT NULL REFERENCES offers (id),
            price               BIGINT          NOT NULL,
            status              VARCHAR(20)     NOT NULL DEFAULT 'active',
            expires_at          TIMESTAMPTZ     NOT NULL,
            cancelled_by        VARCHAR(10),
            cancellation_reason TEXT,
            completed_at        TIMESTAMPTZ,
            cancelled_at        TIMESTAMPTZ,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_transactions_offer        UNIQUE (offer_id),
            CONSTRAINT ck_transactions_price        CHECK (price > 0),
            CONSTRAINT ck_transactions_parties      CHECK (seller_id <> buyer_id),
            CONSTRAINT ck_transactions_status       CHECK (
                status IN ('active', 'completed', 'cancelled', 'auto_cancelled')
            ),
            CONSTRAINT ck_transactions_cancelled_by CHECK (
                cancelled_by IS NULL OR cancelled_by IN ('seller', 'buyer', 'system')
            ),
            CONSTRAINT ck_transactions_expiry       CHECK (expires_at > created_at),
            CONSTRAINT ck_transactions_terminal     CHECK (
                (status = 'active' AND completed_at IS NULL AND cancelled_at IS NULL) OR
                (status = 'completed' AND completed_at IS NOT NULL) OR
                (status = 'cancelled' AND cancelled_at IS NOT NULL
                    AND cancelled_by IN ('seller', 'buyer')
                    AND cancellation_reason IS NOT NULL) OR
                (status = 'auto_cancelled' AND cancelled_at IS NOT NULL
                    AND cancelled_by = 'system')
            )
        );
    """)
    # Storage-level backstop for the per-card mutex.
    op.execute("""
        CREATE UNIQUE INDEX uq_transactions_card_active
        ON transactions (card_id)
        WHERE status = 'active';
    """)
    op.execute("""
        CREATE INDEX idx_transactions_active_expiry
        ON transactions (expires_at)
        WHERE status = 'active';
    """)
    op.execute("CREATE INDEX idx_transactions_seller ON transactions (seller_id, status);")
    op.execute("CREATE INDEX idx_transactions_buyer ON transactions (buyer_id, status);")
    op.execute("""
        ALTER TABLE offers
            ADD CONSTRAINT fk_offers_transaction
            FOREIGN KEY (transaction_id) REFERENCES transactions (id)
            DEFERRABLE INITIALLY DEFERRED;
    """)
    op.execute("""
        CREATE TRIGGER trg_transactions_updated_at
            BEFORE UPDATE ON transactions
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE transactions IS 'Escrow records; expires_at is fixed at creation';")


def downgrade() -> None:
    op.execute("ALTER TABLE offers DROP CONSTRAINT IF EXISTS fk_offers_transaction;")
    op.execute("DROP TABLE IF EXISTS transactions CASCADE;")
