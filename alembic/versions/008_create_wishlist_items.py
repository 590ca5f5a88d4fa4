"""008: create wishlist_items table

Revision ID: 008
Revises: 007
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "008"
down_revision: Union[str, None] = "007"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE wishlist_items (
            id          BIGSERIAL       PRIMARY KEY,
            book_id     VARCHAR(64)     NOT NULL REFERENCES books (id),
            user_id     VARCHAR(64)     NOT NULL,
            created_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_wishlist_book_user UNIQUE (book_id, user_id)
        );
    """)
    op.execute("COMMENT ON TABLE wishlist_items IS 'Demand signal for book valuation';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS wishlist_items CASCADE;")
