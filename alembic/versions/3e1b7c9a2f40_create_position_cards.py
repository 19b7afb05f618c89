"""Create position_cards

Revision ID: 3e1b7c9a2f40
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3e1b7c9a2f40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'position_cards',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('symbol', sa.String(length=30), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('margin_mode', sa.String(length=10), nullable=False),
        sa.Column('leverage', sa.Integer(), nullable=False),
        sa.Column('position_type', sa.String(length=10), nullable=False),
        sa.Column('signal_bars', sa.Integer(), nullable=False),
        sa.Column('size', sa.Float(), nullable=False),
        sa.Column('size_unit', sa.String(length=20), nullable=False),
        sa.Column('entry_price', sa.Float(), nullable=False),
        sa.Column('mark_price', sa.Float(), nullable=False),
        sa.Column('wallet_balance', sa.Float(), nullable=False),
        sa.Column('unrealized_pnl', sa.Float(), nullable=False),
        sa.Column('roi', sa.Float(), nullable=False),
        sa.Column('margin', sa.Float(), nullable=False),
        sa.Column('margin_ratio', sa.Float(), nullable=False),
        sa.Column('liq_price', sa.Float(), nullable=False),
        sa.Column('tp_price', sa.String(length=30), nullable=False),
        sa.Column('sl_price', sa.String(length=30), nullable=False),
        sa.Column('is_live', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )


def downgrade() -> None:
    op.drop_table('position_cards')
