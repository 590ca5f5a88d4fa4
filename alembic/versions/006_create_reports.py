"""006: create reports table

Revision ID: 006
Revises: 005
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE reports (
            id              VARCHAR(64)     PRIMARY KEY,
            exchange_id     VARCHAR(64)     NOT NULL REFERENCES exchanges (id),
            book_id         VARCHAR(64)     NOT NULL REFERENCES books (id),
            reporter_id     VARCHAR(64)     NOT NULL,
            reason          VARCHAR(32)     NOT NULL,
            description     VARCHAR(1000),
            status          VARCHAR(16)     NOT NULL DEFAULT 'OPEN',
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_reports_exchange_reporter_reason
                UNIQUE (exchange_id, reporter_id, reason),
            CONSTRAINT ck_reports_reason CHECK (
                reason IN (
                    'CONDITION_MISMATCH', 'DAMAGED_BOOK', 'WRONG_BOOK',
                    'MISSING_PAGES', 'FAKE_LISTING', 'OTHER'
                )
            ),
            CONSTRAINT ck_reports_status CHECK (
                status IN ('OPEN', 'UNDER_REVIEW', 'RESOLVED', 'REJECTED')
            )
        );
    """)
    op.execute("CREATE INDEX idx_reports_reporter_time ON reports (reporter_id, created_at DESC);")
    op.execute("CREATE INDEX idx_reports_exchange_status ON reports (exchange_id, status);")
    op.execute("CREATE INDEX idx_reports_status_time ON reports (status, created_at DESC);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS reports CASCADE;")
