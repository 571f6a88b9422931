"""create_pool_and_token_tables

Revision ID: 4c1f7a92d0e3
Revises:
Create Date: 2025-09-14 10:12:41.118305

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4c1f7a92d0e3'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'pool_entries',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('value', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='unclaimed'),
        sa.Column('claimed_by', sa.String(length=100), nullable=True),
        sa.Column('claimed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_pool_entries_status', 'pool_entries', ['status'])
    # Claim scans walk unclaimed rows in id order
    op.create_index('ix_pool_entry_status_id', 'pool_entries', ['status', 'id'])

    op.create_table(
        'access_tokens',
        sa.Column('token', sa.String(length=64), nullable=False),
        sa.Column('login', sa.Text(), nullable=False),
        sa.Column('secret', sa.Text(), nullable=False),
        sa.Column('owner_id', sa.String(length=100), nullable=False, server_default=''),
        sa.Column('owner_handle', sa.String(length=100), nullable=False, server_default=''),
        sa.Column('pool_entry_id', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_by', sa.String(length=100), nullable=True),
        sa.Column('access_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_access_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('token'),
    )
    op.create_index('ix_access_tokens_owner_id', 'access_tokens', ['owner_id'])
    op.create_index('ix_access_token_created', 'access_tokens', ['created_at'])

    op.create_table(
        'token_opens',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('token', sa.String(length=64), nullable=False),
        sa.Column('opened_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('ip', sa.String(length=64), nullable=True),
        sa.Column('user_agent', sa.Text(), nullable=True),
        sa.Column('platform', sa.String(length=100), nullable=True),
        sa.Column('language', sa.String(length=50), nullable=True),
        sa.Column('screen', sa.String(length=50), nullable=True),
        sa.Column('timezone', sa.String(length=100), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_token_open_lookup', 'token_opens', ['token', 'opened_at'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_token_open_lookup', table_name='token_opens')
    op.drop_table('token_opens')
    op.drop_index('ix_access_token_created', table_name='access_tokens')
    op.drop_index('ix_access_tokens_owner_id', table_name='access_tokens')
    op.drop_table('access_tokens')
    op.drop_index('ix_pool_entry_status_id', table_name='pool_entries')
    op.drop_index('ix_pool_entries_status', table_name='pool_entries')
    op.drop_table('pool_entries')
