"""005: create deposits table

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
        CREATE TABLE deposits (
            id                  VARCHAR(32)     PRIMARY KEY,
            user_id             VARCHAR(64)     NOT NULL REFERENCES accounts (user_id),
            requested_amount    NUMERIC(20, 8)  NOT NULL,
            payable_amount      NUMERIC(20, 4)  NOT NULL,
            wallet_address      VARCHAR(128)    NOT NULL DEFAULT '',
            status              VARCHAR(16)     NOT NULL DEFAULT 'PENDING',
            expires_at          TIMESTAMPTZ     NOT NULL,
            tx_hash             VARCHAR(128),
            confirmed_amount    NUMERIC(20, 8),
            confirmed_by        VARCHAR(64),
            confirmed_at        TIMESTAMPTZ,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_deposits_requested_gt_0 CHECK (requested_amount > 0),
            CONSTRAINT ck_deposits_payable_gt_0   CHECK (payable_amount > 0),
            CONSTRAINT ck_deposits_payable_lte_requested CHECK (payable_amount <= requested_amount),
            CONSTRAINT ck_deposits_status CHECK (
                status IN ('PENDING', 'CONFIRMED', 'REJECTED', 'EXPIRED')
            )
        );
    """)
    # One active holder per payable amount; backstop for the matcher's advisory lock
    op.execute("""
        CREATE UNIQUE INDEX uq_deposits_pending_payable
        ON deposits (payable_amount)
        WHERE status = 'PENDING';
    """)
    op.execute("""
        CREATE UNIQUE INDEX uq_deposits_tx_hash
        ON deposits (tx_hash)
        WHERE tx_hash IS NOT NULL;
    """)
    op.execute("CREATE INDEX idx_deposits_user ON deposits (user_id, created_at DESC);")
    op.execute("CREATE INDEX idx_deposits_pending_expiry ON deposits (expires_at) WHERE status = 'PENDING';")
    op.execute("""
        CREATE TRIGGER trg_deposits_updated_at
            BEFORE UPDATE ON deposits
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE deposits IS 'Incoming USDT deposits matched by unique payable_amount';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS deposits CASCADE;")
