"""003: create ledger_entries table

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
        CREATE TABLE ledger_entries (
            id              BIGSERIAL       PRIMARY KEY,
            user_id         VARCHAR(64)     NOT NULL,
            entry_type      VARCHAR(30)     NOT NULL,
            available_delta NUMERIC(20, 8)  NOT NULL,
            frozen_delta    NUMERIC(20, 8)  NOT NULL,
            available_after NUMERIC(20, 8)  NOT NULL,
            frozen_after    NUMERIC(20, 8)  NOT NULL,
            reference_type  VARCHAR(30),
            reference_id    VARCHAR(64),
            description     VARCHAR(500),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_ledger_entry_type CHECK (
                entry_type IN (
                    'REQUEST_FREEZE', 'REQUEST_RELEASE', 'REQUEST_SETTLE', 'FREEZE_ADJUST',
                    'DEPOSIT_CREDIT', 'ADMIN_CREDIT', 'ADMIN_SET'
                )
            ),
            CONSTRAINT ck_ledger_available_after_gte_0 CHECK (available_after >= 0),
            CONSTRAINT ck_ledger_frozen_after_gte_0 CHECK (frozen_after >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_ledger_user_id ON ledger_entries (user_id, id DESC);")
    op.execute("""
        CREATE INDEX idx_ledger_reference
        ON ledger_entries (reference_type, reference_id)
        WHERE reference_id IS NOT NULL;
    """)
    op.execute("""
        CREATE TRIGGER trg_ledger_entries_append_only
            BEFORE UPDATE OR DELETE ON ledger_entries
            FOR EACH ROW EXECUTE FUNCTION fn_reject_modification();
    """)
    op.execute("COMMENT ON TABLE ledger_entries IS 'Balance audit trail: append-only, never updated or deleted';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS ledger_entries CASCADE;")
