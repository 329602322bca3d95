"""Create saved prompt, test run and settings tables

Revision ID: 4a1f0c2e9b7d
Revises:
Create Date: 2025-01-06 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4a1f0c2e9b7d'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Tables for saved prompts, run history and key/value settings."""
    op.create_table(
        'saved_prompts',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('prompt_type', sa.String(), nullable=False),
        sa.Column('created_at', sa.BigInteger(), nullable=False),
        sa.Column('is_favorite', sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index('ix_saved_prompts_id', 'saved_prompts', ['id'])
    op.create_index('ix_saved_prompts_prompt_type', 'saved_prompts', ['prompt_type'])

    op.create_table(
        'test_runs',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('timestamp', sa.BigInteger(), nullable=False),
        sa.Column('system_prompt', sa.Text(), nullable=False),
        sa.Column('user_prompt', sa.Text(), nullable=False),
        sa.Column('config', sa.JSON(), nullable=False),
        sa.Column('results', sa.JSON(), nullable=False),
        sa.Column('is_favorite', sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index('ix_test_runs_id', 'test_runs', ['id'])
    op.create_index('ix_test_runs_timestamp', 'test_runs', ['timestamp'])

    op.create_table(
        'settings',
        sa.Column('key', sa.String(), primary_key=True),
        sa.Column('value', sa.Text(), nullable=False),
    )


def downgrade() -> None:
    """Drop all workbench tables."""
    op.drop_table('settings')
    op.drop_index('ix_test_runs_timestamp', table_name='test_runs')
    op.drop_index('ix_test_runs_id', table_name='test_runs')
    op.drop_table('test_runs')
    op.drop_index('ix_saved_prompts_prompt_type', table_name='saved_prompts')
    op.drop_index('ix_saved_prompts_id', table_name='saved_prompts')
    op.drop_table('saved_prompts')
