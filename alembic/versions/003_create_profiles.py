"""003: create profiles table

Revision ID: 003
Revises: 002
Create Date: 2026-09-14
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE profiles (
            id                      VARCHAR(64)     PRIMARY KEY,
            email                   VARCHAR(255)    NOT NULL,
            display_name            VARCHAR(64),
            phone_number            VARCHAR(32),
            address                 VARCHAR(255),
            city                    VARCHAR(64),
            profile_image_url       VARCHAR(2048),
            legit_rate              SMALLINT        NOT NULL DEFAULT 100,
            total_transactions      INT             NOT NULL DEFAULT 0,
            completed_transactions  INT             NOT NULL DEFAULT 0,
            cancelled_transactions  INT             NOT NULL DEFAULT 0,
            daily_cancellations     INT             NOT NULL DEFAULT 0,
            last_cancellation_date  DATE,
            created_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_profiles_legit_rate       CHECK (legit_rate BETWEEN 0 AND 100),
            CONSTRAINT ck_profiles_counters_gte_0   CHECK (
                total_transactions >= 0 AND completed_transactions >= 0
                AND cancelled_transactions >= 0 AND daily_cancellations >= 0
            )
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_profiles_updated_at
            BEFORE UPDATE ON profiles
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE profiles IS 'Public profile and buyer legit rate (0-100)';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS profiles CASCADE;")
