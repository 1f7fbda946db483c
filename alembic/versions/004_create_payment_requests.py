"""004: create payment_requests table

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
        CREATE TABLE payment_requests (
            id              VARCHAR(32)     PRIMARY KEY,
            user_id         VARCHAR(64)     NOT NULL REFERENCES accounts (user_id),
            amount_rub      NUMERIC(14, 2)  NOT NULL,
            amount_usdt     NUMERIC(20, 8)  NOT NULL,
            frozen_rate     NUMERIC(18, 8)  NOT NULL,
            urgency         VARCHAR(10)     NOT NULL DEFAULT 'STANDARD',
            status          VARCHAR(16)     NOT NULL DEFAULT 'SUBMITTED',
            comment         TEXT,
            attachments     JSONB           NOT NULL DEFAULT '[]'::jsonb,
            receipt         JSONB,
            admin_comment   TEXT,
            processed_by    VARCHAR(64),
            processed_at    TIMESTAMPTZ,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_payment_requests_amount_rub_gt_0  CHECK (amount_rub > 0),
            CONSTRAINT ck_payment_requests_amount_usdt_gt_0 CHECK (amount_usdt > 0),
            CONSTRAINT ck_payment_requests_rate_gt_0        CHECK (frozen_rate > 0),
            CONSTRAINT ck_payment_requests_urgency CHECK (urgency IN ('STANDARD', 'URGENT')),
            CONSTRAINT ck_payment_requests_status CHECK (
                status IN ('SUBMITTED', 'PROCESSING', 'PAID', 'REJECTED', 'CANCELLED')
            )
        );
    """)
    op.execute("CREATE INDEX idx_payment_requests_user ON payment_requests (user_id, created_at DESC);")
    op.execute("CREATE INDEX idx_payment_requests_status ON payment_requests (status, created_at DESC);")
    op.execute("""
        CREATE TRIGGER trg_payment_requests_updated_at
            BEFORE UPDATE ON payment_requests
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE payment_requests IS 'Cash-out requests; amount_usdt frozen until a terminal status';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS payment_requests CASCADE;")
