"""
Initial migration - Create key-value snapshot table

Revision ID: 001_initial
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

# Revision identifiers
revision = '001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create kv_store table."""

    # Holds the mw_reports and mw_scores documents
    op.create_table(
        'kv_store',
        sa.Column('key', sa.String(64), primary_key=True),
        sa.Column('value', sa.JSON(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    """Drop kv_store table."""
    op.drop_table('kv_store')
