"""Add claimed_until column to notifications table.

Revision ID: 8b3e6d4f2c10
Revises: 5f1c2a7d9e01
Create Date: 2026-10-17 09:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "8b3e6d4f2c10"
down_revision: str | None = "5f1c2a7d9e01"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Add the delivery lease column to notifications."""
    op.add_column(
        "notifications",
        sa.Column("claimed_until", sa.DateTime(timezone=True), nullable=True),
    )


def downgrade() -> None:
    """Remove the delivery lease column from notifications."""
    op.drop_column("notifications", "claimed_until")
