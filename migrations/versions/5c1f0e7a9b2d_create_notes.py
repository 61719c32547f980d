"""create notes

Revision ID: 5c1f0e7a9b2d
Revises:
Create Date: 2026-10-19 10:12:44.318205

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5c1f0e7a9b2d"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create the authoritative notes table (one logical table per user)."""
    op.create_table(
        "notes",
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.BigInteger(), nullable=False),
        sa.Column("updated_at", sa.BigInteger(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column(
            "deleted",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        sa.PrimaryKeyConstraint("user_id", "id"),
    )

    # Watermark pulls: WHERE user_id = ? AND updated_at > ?
    op.create_index(
        "ix_notes_user_id_updated_at", "notes", ["user_id", "updated_at"]
    )


def downgrade() -> None:
    """Drop the notes table."""
    op.drop_index("ix_notes_user_id_updated_at", table_name="notes")
    op.drop_table("notes")
