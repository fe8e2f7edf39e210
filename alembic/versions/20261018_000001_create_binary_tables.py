"""Create binary plan tables

Revision ID: 20261018_000001
Revises: 
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261018_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create members table
    op.create_table(
        'members',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('code', sa.String(8), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(32), nullable=True),
        sa.Column('sponsor_id', sa.Integer(), nullable=True),
        sa.Column('position', sa.String(5), nullable=True),
        sa.Column('left_child_id', sa.Integer(), nullable=True),
        sa.Column('right_child_id', sa.Integer(), nullable=True),
        sa.Column('left_volume', sa.DECIMAL(18, 8), nullable=False, server_default='0'),
        sa.Column('right_volume', sa.DECIMAL(18, 8), nullable=False, server_default='0'),
        sa.Column('total_earnings', sa.DECIMAL(18, 8), nullable=False, server_default='0'),
        sa.Column('wallet_balance', sa.DECIMAL(18, 8), nullable=False, server_default='0'),
        sa.Column('binary_pairs', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('joined_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['sponsor_id'], ['members.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['left_child_id'], ['members.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['right_child_id'], ['members.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code'),
        sa.UniqueConstraint('left_child_id'),
        sa.UniqueConstraint('right_child_id'),
        sa.UniqueConstraint('sponsor_id', 'position', name='uq_member_sponsor_position'),
        sa.CheckConstraint("position IN ('left', 'right')", name='check_member_position_valid'),
        sa.CheckConstraint('left_volume >= 0', name='check_member_left_volume_non_negative'),
        sa.CheckConstraint('right_volume >= 0', name='check_member_right_volume_non_negative'),
        sa.CheckConstraint('total_earnings >= 0', name='check_member_total_earnings_non_negative'),
        sa.CheckConstraint('wallet_balance >= 0', name='check_member_wallet_balance_non_negative'),
        sa.CheckConstraint('binary_pairs >= 0', name='check_member_binary_pairs_non_negative'),
    )
    op.create_index('ix_members_code', 'members', ['code'])
    op.create_index('ix_members_sponsor_id', 'members', ['sponsor_id'])

    # Create sales table
    op.create_table(
        'sales',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('member_id', sa.Integer(), nullable=False),
        sa.Column('sponsor_id', sa.Integer(), nullable=True),
        sa.Column('side', sa.String(5), nullable=True),
        sa.Column('amount', sa.DECIMAL(18, 8), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('status', sa.String(20), nullable=False, server_default='paid'),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['member_id'], ['members.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['sponsor_id'], ['members.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('amount >= 0', name='check_sale_amount_non_negative'),
        sa.CheckConstraint('quantity > 0', name='check_sale_quantity_positive'),
    )
    op.create_index('ix_sales_member_id', 'sales', ['member_id'])
    op.create_index('idx_sales_member_created', 'sales', ['member_id', 'created_at'])

    # Create commissions table
    op.create_table(
        'commissions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('member_id', sa.Integer(), nullable=False),
        sa.Column('source_member_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.DECIMAL(18, 8), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('cycles', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('volume_used', sa.DECIMAL(18, 8), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['member_id'], ['members.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['source_member_id'], ['members.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('amount >= 0', name='check_commission_amount_non_negative'),
        sa.CheckConstraint('cycles >= 0', name='check_commission_cycles_non_negative'),
    )
    op.create_index('ix_commissions_member_id', 'commissions', ['member_id'])
    op.create_index('ix_commissions_type', 'commissions', ['type'])
    op.create_index('idx_commissions_member_created', 'commissions', ['member_id', 'created_at'])

    # Create binary_cappings table
    op.create_table(
        'binary_cappings',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('member_id', sa.Integer(), nullable=False),
        sa.Column('capping_date', sa.Date(), nullable=False),
        sa.Column('week_start', sa.Date(), nullable=False),
        sa.Column('cycles_paid_today', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('cycles_paid_this_week', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_reset_date', sa.Date(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['member_id'], ['members.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('member_id', 'capping_date', name='uq_binary_capping_member_date'),
        sa.CheckConstraint('cycles_paid_today >= 0', name='check_binary_capping_today_non_negative'),
        sa.CheckConstraint('cycles_paid_this_week >= 0', name='check_binary_capping_week_non_negative'),
    )
    op.create_index('ix_binary_cappings_member_id', 'binary_cappings', ['member_id'])
    op.create_index('ix_binary_cappings_week_start', 'binary_cappings', ['week_start'])


def downgrade() -> None:
    op.drop_index('ix_binary_cappings_week_start', table_name='binary_cappings')
    op.drop_index('ix_binary_cappings_member_id', table_name='binary_cappings')
    op.drop_table('binary_cappings')

    op.drop_index('idx_commissions_member_created', table_name='commissions')
    op.drop_index('ix_commissions_type', table_name='commissions')
    op.drop_index('ix_commissions_member_id', table_name='commissions')
    op.drop_table('commissions')

    op.drop_index('idx_sales_member_created', table_name='sales')
    op.drop_index('ix_sales_member_id', table_name='sales')
    op.drop_table('sales')

    op.drop_index('ix_members_sponsor_id', table_name='members')
    op.drop_index('ix_members_code', table_name='members')
    op.drop_table('members')
