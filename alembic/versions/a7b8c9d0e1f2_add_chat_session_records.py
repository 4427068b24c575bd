"""add chat_session_records table

Revision ID: a7b8c9d0e1f2
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = 'a7b8c9d0e1f2'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'chat_session_records',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('channel_name', sa.String(), nullable=False),
        sa.Column('avatar_url', sa.String(), nullable=True),
        sa.Column('avg_mpm', sa.Integer(), nullable=False),
        sa.Column('avg_mps', sa.Float(), nullable=False),
        sa.Column('duration_ms', sa.Integer(), nullable=False),
        sa.Column('avg_viewers', sa.Integer(), nullable=False),
        sa.Column('total_messages', sa.Integer(), nullable=False),
        sa.Column('unique_chatters', sa.Integer(), nullable=False),
        sa.Column('platform', sa.String(), nullable=False),
        sa.Column('recorded_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_chat_session_records_recorded_at',
        'chat_session_records',
        ['recorded_at'],
    )


def downgrade() -> None:
    op.drop_index('ix_chat_session_records_recorded_at', table_name='chat_session_records')
    op.drop_table('chat_session_records')
