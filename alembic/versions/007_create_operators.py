"""007: create operators table

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
        CREATE TABLE operators (
            id              UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            login           VARCHAR(64)     NOT NULL,
            display_name    VARCHAR(128),
            password_hash   VARCHAR(255)    NOT NULL,
            is_active       BOOLEAN         NOT NULL DEFAULT TRUE,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_operators_login UNIQUE (login),
            CONSTRAINT ck_operators_login_len CHECK (LENGTH(login) >= 3)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_operators_updated_at
            BEFORE UPDATE ON operators
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS operators CASCADE;")
