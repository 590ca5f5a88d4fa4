"""004: create books table

Revision ID: 004
Revises: 003
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE books (
            id                          VARCHAR(64)     PRIMARY KEY,
            owner_id                    VARCHAR(64)     NOT NULL,
            title                       VARCHAR(255)    NOT NULL,
            author                      VARCHAR(255)    NOT NULL,
            condition                   VARCHAR(16)     NOT NULL,
            is_available                BOOLEAN         NOT NULL DEFAULT TRUE,
            is_deleted                  BOOLEAN         NOT NULL DEFAULT FALSE,
            computed_points             INTEGER,
            points_last_calculated_at   TIMESTAMPTZ,
            created_at                  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at                  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_books_condition CHECK (
                condition IN ('POOR', 'FAIR', 'GOOD', 'EXCELLENT')
            ),
            CONSTRAINT ck_books_points_range CHECK (
                computed_points IS NULL OR computed_points BETWEEN 5 AND 20
            )
        );
    """)
    op.execute("CREATE INDEX idx_books_owner ON books (owner_id) WHERE NOT is_deleted;")
    op.execute("CREATE INDEX idx_books_title_author ON books (title, author);")
    op.execute("""
        CREATE TRIGGER trg_books_updated_at
            BEFORE UPDATE ON books
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS books CASCADE;")
