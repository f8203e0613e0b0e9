"""add free chat trial window to consultation sessions

Revision ID: 8d21b5c0e7f3
Revises: 3f9c1e7a2b40
Create Date: 2026-10-19 16:10:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "8d21b5c0e7f3"
down_revision = "3f9c1e7a2b40"
branch_labels = None
depends_on = None


def upgrade() -> None:
    with op.batch_alter_table("consultation_sessions") as batch_op:
        batch_op.add_column(sa.Column("free_trial_ends_at", sa.DateTime(timezone=True), nullable=True))


def downgrade() -> None:
    with op.batch_alter_table("consultation_sessions") as batch_op:
        batch_op.drop_column("free_trial_ends_at")
