"""Create tokens and scan_cursors tables.

Revision ID: 20261018_000001
Revises:
Create Date: 2026-10-18

Factory tokens with pool data, and the per-deployment scan cursor.
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261018_000001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create tokens and scan_cursors tables."""
    op.create_table(
        'tokens',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('contract_address', sa.String(length=42), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('symbol', sa.Text(), nullable=False),
        sa.Column('decimals', sa.Integer(), nullable=False, server_default='18'),
        sa.Column(
            'deployer',
            sa.String(length=42),
            nullable=False,
            comment='Resolved deployer address or "unknown"'
        ),
        sa.Column(
            'block_number',
            sa.BigInteger(),
            nullable=False,
            comment='First block the token was seen in'
        ),
        sa.Column('transaction_hash', sa.String(length=66), nullable=False),
        sa.Column(
            'has_pool',
            sa.Boolean(),
            nullable=False,
            server_default=sa.false()
        ),
        sa.Column('pools', sa.JSON(), nullable=False),
        sa.Column(
            'pools_checked_at',
            sa.DateTime(timezone=True),
            nullable=True,
            comment='NULL until pool discovery ran for the token'
        ),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_tokens_contract_address', 'tokens', ['contract_address'], unique=True
    )
    op.create_index('ix_tokens_deployer', 'tokens', ['deployer'])
    op.create_index('ix_tokens_block_number', 'tokens', ['block_number'])
    op.create_index('ix_tokens_pools_checked_at', 'tokens', ['pools_checked_at'])

    op.create_table(
        'scan_cursors',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            'deployment',
            sa.String(length=64),
            nullable=False,
            comment='Lowercase factory address'
        ),
        sa.Column(
            'last_processed_block',
            sa.BigInteger(),
            nullable=False,
            server_default='0'
        ),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_scan_cursors_deployment', 'scan_cursors', ['deployment'], unique=True
    )


def downgrade() -> None:
    """Drop tokens and scan_cursors tables."""
    op.drop_index('ix_scan_cursors_deployment', table_name='scan_cursors')
    op.drop_table('scan_cursors')

    op.drop_index('ix_tokens_pools_checked_at', table_name='tokens')
    op.drop_index('ix_tokens_block_number', table_name='tokens')
    op.drop_index('ix_tokens_deployer', table_name='tokens')
    op.drop_index('ix_tokens_contract_address', table_name='tokens')
    op.drop_table('tokens')
