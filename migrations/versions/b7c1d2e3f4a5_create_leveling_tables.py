"""create habit and leveling tables

Revision ID: b7c1d2e3f4a5
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'b7c1d2e3f4a5'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'categories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('color', sa.String(length=20), nullable=False, server_default='#6366f1'),
        sa.Column('icon', sa.String(length=50), nullable=False, server_default='star'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )

    op.create_table(
        'habits',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('difficulty', sa.String(length=16), nullable=False),
        sa.Column('cadence', sa.String(length=16), nullable=False),
        sa.Column('target', sa.Float(), nullable=True),
        sa.Column('is_archived', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True),
                  server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint(
            "difficulty IN ('trivial', 'easy', 'normal', 'hard', 'epic')",
            name='ck_habits_difficulty',
        ),
        sa.CheckConstraint(
            "cadence IN ('daily', 'weekly', 'custom')",
            name='ck_habits_cadence',
        ),
    )
    op.create_index('ix_habits_user_id', 'habits', ['user_id'])

    op.create_table(
        'habit_completions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('habit_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('completion_date', sa.Date(), nullable=False),
        sa.Column('amount', sa.Float(), nullable=True),
        sa.Column('xp_applied', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('category_gain', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('overall_gain', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True),
                  server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('habit_id', 'completion_date', name='uq_habit_completion_day'),
    )
    op.create_index(
        'ix_habit_completions_user_date',
        'habit_completions',
        ['user_id', 'completion_date'],
    )

    op.create_table(
        'user_progress',
        sa.Column('user_id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('overall_level', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('overall_current_xp', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('overall_total_xp', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True),
                  server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('user_id'),
        sa.CheckConstraint('overall_level BETWEEN 1 AND 100', name='ck_user_progress_level'),
    )

    op.create_table(
        'category_progress',
        sa.Column('user_id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('category_id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('level', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('xp', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('rank', sa.String(length=32), nullable=False, server_default='Novice'),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True),
                  server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('user_id', 'category_id'),
        sa.CheckConstraint('level BETWEEN 1 AND 100', name='ck_category_progress_level'),
    )

    op.create_table(
        'streaks',
        sa.Column('user_id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('habit_id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('cadence', sa.String(length=16), nullable=False),
        sa.Column('count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_completed_on', sa.Date(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True),
                  server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('user_id', 'habit_id'),
    )


def downgrade() -> None:
    op.drop_table('streaks')
    op.drop_table('category_progress')
    op.drop_table('user_progress')
    op.drop_index('ix_habit_completions_user_date', table_name='habit_completions')
    op.drop_table('habit_completions')
    op.drop_index('ix_habits_user_id', table_name='habits')
    op.drop_table('habits')
    op.drop_table('categories')
