"""Create affiliate engine tables.

Revision ID: 20260101_000001
Revises:
Create Date: 2026-01-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20260101_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create users, affiliates, withdrawals, transactions, referrals, commissions."""

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table(
        'affiliates',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('referral_code', sa.String(20), nullable=False),
        sa.Column('parent_id', sa.Integer(), nullable=True),
        sa.Column('package_tier', sa.String(20), nullable=False, comment='SILVER, GOLD or PLATINUM'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('total_direct_earnings', sa.DECIMAL(12, 2), nullable=False, server_default='0'),
        sa.Column('total_indirect_earnings', sa.DECIMAL(12, 2), nullable=False, server_default='0'),
        sa.Column('current_balance', sa.DECIMAL(12, 2), nullable=False, server_default='0'),
        sa.Column('total_withdrawn', sa.DECIMAL(12, 2), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.CheckConstraint('current_balance >= 0', name='check_affiliate_balance_non_negative'),
        sa.CheckConstraint('total_withdrawn >= 0', name='check_affiliate_total_withdrawn_non_negative'),
        sa.CheckConstraint('total_direct_earnings >= 0', name='check_affiliate_direct_earnings_non_negative'),
        sa.CheckConstraint('total_indirect_earnings >= 0', name='check_affiliate_indirect_earnings_non_negative'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['parent_id'], ['affiliates.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_affiliates_user_id'), 'affiliates', ['user_id'], unique=True)
    op.create_index(op.f('ix_affiliates_referral_code'), 'affiliates', ['referral_code'], unique=True)
    op.create_index(op.f('ix_affiliates_parent_id'), 'affiliates', ['parent_id'])

    op.create_table(
        'withdrawal_requests',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.DECIMAL(12, 2), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='PENDING', comment='PENDING, APPROVED, COMPLETED, REJECTED, CANCELLED'),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('processed_by_id', sa.Integer(), nullable=True),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.CheckConstraint('amount > 0', name='check_withdrawal_amount_positive'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['processed_by_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_withdrawal_requests_status'), 'withdrawal_requests', ['status'])
    op.create_index('idx_withdrawal_user_status', 'withdrawal_requests', ['user_id', 'status'])

    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(32), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='PENDING'),
        sa.Column('amount', sa.DECIMAL(12, 2), nullable=False),
        sa.Column('package_tier', sa.String(20), nullable=True),
        sa.Column('withdrawal_request_id', sa.Integer(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['withdrawal_request_id'], ['withdrawal_requests.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_transactions_user_id'), 'transactions', ['user_id'])
    op.create_index(op.f('ix_transactions_type'), 'transactions', ['type'])
    op.create_index(op.f('ix_transactions_withdrawal_request_id'), 'transactions', ['withdrawal_request_id'])

    op.create_table(
        'referrals',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('affiliate_id', sa.Integer(), nullable=False),
        sa.Column('referred_user_id', sa.Integer(), nullable=False),
        sa.Column('commission_earned', sa.DECIMAL(12, 2), nullable=False, server_default='0'),
        sa.Column('status', sa.String(20), nullable=False, server_default='ACTIVE'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['affiliate_id'], ['affiliates.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['referred_user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_referrals_affiliate_id'), 'referrals', ['affiliate_id'])
    op.create_index(op.f('ix_referrals_referred_user_id'), 'referrals', ['referred_user_id'], unique=True)

    op.create_table(
        'commissions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('affiliate_id', sa.Integer(), nullable=False),
        sa.Column('from_affiliate_id', sa.Integer(), nullable=False),
        sa.Column('transaction_id', sa.Integer(), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('commission_type', sa.String(32), nullable=False),
        sa.Column('amount', sa.DECIMAL(12, 2), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='PENDING', comment='PENDING, APPROVED, PAID, CANCELLED'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.CheckConstraint('amount > 0', name='check_commission_amount_positive'),
        sa.CheckConstraint('level IN (1, 2)', name='check_commission_level'),
        sa.ForeignKeyConstraint(['affiliate_id'], ['affiliates.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['from_affiliate_id'], ['affiliates.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['transaction_id'], ['transactions.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
        # Idempotency: at most one commission per purchase and level
        sa.UniqueConstraint('transaction_id', 'level', name='uq_commission_transaction_level')
    )
    op.create_index(op.f('ix_commissions_from_affiliate_id'), 'commissions', ['from_affiliate_id'])
    op.create_index(op.f('ix_commissions_transaction_id'), 'commissions', ['transaction_id'])
    op.create_index('idx_commission_affiliate_level', 'commissions', ['affiliate_id', 'level'])
    op.create_index('idx_commission_affiliate_status', 'commissions', ['affiliate_id', 'status'])


def downgrade() -> None:
    """Drop affiliate engine tables."""

    op.drop_table('commissions')
    op.drop_table('referrals')
    op.drop_table('transactions')
    op.drop_table('withdrawal_requests')
    op.drop_table('affiliates')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_table('users')
