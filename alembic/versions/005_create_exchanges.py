"""005: create exchanges table

Revision ID: 005
Revises: 004
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE exchanges (
            id              VARCHAR(64)     PRIMARY KEY,
            book_id         VARCHAR(64)     NOT NULL REFERENCES books (id),
            from_user_id    VARCHAR(64)     NOT NULL,
            to_user_id      VARCHAR(64)     NOT NULL,
            points_used     INTEGER         NOT NULL,
            status          VARCHAR(16)     NOT NULL DEFAULT 'REQUESTED',
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            completed_at    TIMESTAMPTZ,
            CONSTRAINT ck_exchanges_status CHECK (
                status IN ('REQUESTED', 'COMPLETED', 'REJECTED', 'DISPUTED')
            ),
            CONSTRAINT ck_exchanges_points_gt_0 CHECK (points_used > 0),
            CONSTRAINT ck_exchanges_distinct_users CHECK (from_user_id <> to_user_id)
        );
    """)
    # At most one pending request per book
    op.execute("""
        CREATE UNIQUE INDEX uq_exchanges_book_requested
        ON exchanges (book_id)
        WHERE status = 'REQUESTED';
    """)
    op.execute("""
        CREATE INDEX idx_exchanges_pair_completed
        ON exchanges (from_user_id, to_user_id, completed_at)
        WHERE status = 'COMPLETED';
    """)
    op.execute("CREATE INDEX idx_exchanges_to_user ON exchanges (to_user_id, created_at DESC);")
    op.execute("CREATE INDEX idx_exchanges_from_user ON exchanges (from_user_id, created_at DESC);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS exchanges CASCADE;")
