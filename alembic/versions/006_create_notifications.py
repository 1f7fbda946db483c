"""006: create notifications table

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
        CREATE TABLE notifications (
            id          BIGSERIAL       PRIMARY KEY,
            user_id     VARCHAR(64)     NOT NULL,
            message     TEXT            NOT NULL,
            request_id  VARCHAR(32),
            deposit_id  VARCHAR(32),
            is_read     BOOLEAN         NOT NULL DEFAULT FALSE,
            created_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW()
        );
    """)
    op.execute("CREATE INDEX idx_notifications_user ON notifications (user_id, id DESC);")
    op.execute("""
        CREATE INDEX idx_notifications_unread
        ON notifications (user_id)
        WHERE is_read = FALSE;
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS notifications CASCADE;")
