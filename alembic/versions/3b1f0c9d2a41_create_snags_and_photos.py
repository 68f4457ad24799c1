"""create snags and snag_photos

Revision ID: 3b1f0c9d2a41
Revises:
Create Date: 2026-10-18 10:02:11.204113

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3b1f0c9d2a41'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


snag_priority = sa.Enum('LOW', 'MEDIUM', 'HIGH', name='snagpriority')
snag_status = sa.Enum('OPEN', 'IN_PROGRESS', 'CLOSED', name='snagstatus')


def upgrade() -> None:
    op.create_table(
        'snags',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=False),
        sa.Column('location', sa.String(), nullable=False),
        sa.Column('priority', snag_priority, nullable=False),
        sa.Column('status', snag_status, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'snag_photos',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('snag_id', sa.String(), nullable=False),
        sa.Column('filename', sa.String(), nullable=False),
        sa.Column('width', sa.Integer(), nullable=True),
        sa.Column('height', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['snag_id'], ['snags.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('filename'),
    )
    # indexes
    op.create_index('ix_snag_photos_snag_id', 'snag_photos', ['snag_id'])
    op.create_index('idx_snags_updated_at', 'snags', ['updated_at'])


def downgrade() -> None:
    # reverse order
    op.drop_index('idx_snags_updated_at')
    op.drop_index('ix_snag_photos_snag_id')
    op.drop_table('snag_photos')
    op.drop_table('snags')
    snag_status.drop(op.get_bind(), checkfirst=True)
    snag_priority.drop(op.get_bind(), checkfirst=True)
