"""Create learning_card table

Revision ID: 001_create_learning_card_table
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_create_learning_card_table'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create learning_card table with SM-2 scheduling state."""
    op.create_table(
        'learning_card',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('kind', sa.String(), nullable=False, server_default='grammar'),
        sa.Column('topic_id', sa.String(), nullable=False),
        sa.Column('title', sa.String(), nullable=False, server_default=''),
        sa.Column('language', sa.String(length=2), nullable=False, server_default='fr'),
        sa.Column('level', sa.String(), nullable=False, server_default='A1'),
        sa.Column('ease_factor', sa.Float(), nullable=False, server_default='2.5'),
        sa.Column('interval', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('repetitions', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('next_review_at', sa.DateTime(), nullable=False),
        sa.Column('last_review_time', sa.DateTime(), nullable=True),
        sa.Column('created_time', sa.DateTime(), nullable=False),
        sa.Column('practice_stats', sa.JSON(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'kind', 'topic_id', name='uq_learning_card_user_kind_topic'),
        sa.CheckConstraint('ease_factor >= 1.3', name='ck_learning_card_ease_floor'),
        sa.CheckConstraint('interval >= 0', name='ck_learning_card_interval_non_negative'),
        sa.CheckConstraint('repetitions >= 0', name='ck_learning_card_repetitions_non_negative'),
    )
    op.create_index('ix_learning_card_user_id', 'learning_card', ['user_id'])
    op.create_index('ix_learning_card_next_review_at', 'learning_card', ['next_review_at'])


def downgrade() -> None:
    """Drop learning_card table."""
    op.drop_index('ix_learning_card_next_review_at', table_name='learning_card')
    op.drop_index('ix_learning_card_user_id', table_name='learning_card')
    op.drop_table('learning_card')
