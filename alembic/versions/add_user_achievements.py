"""add user achievements

One row per unlocked achievement; (user_id, achievement_id) is unique so that
awarding is an idempotent ON CONFLICT DO NOTHING insert.

Revision ID: add_user_achievements
Revises: create_users_reports
Create Date: 2026-10-02 09:30:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'add_user_achievements'
down_revision: Union[str, Sequence[str], None] = 'create_users_reports'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'user_achievements',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('achievement_id', sa.Integer(), nullable=False),
        sa.Column('achievement_title', sa.String(length=120), nullable=False),
        sa.Column('achievement_description', sa.String(length=500), nullable=True),
        sa.Column('unlocked_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('user_id', 'achievement_id', name='uq_user_achievement'),
    )
    op.create_index('ix_user_achievements_user_id', 'user_achievements', ['user_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('user_achievements')
