"""create_ledger_schema

Revision ID: 3f1c9a7d2b10
Revises:
Create Date: 2026-10-19 10:24:51.418377

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a7d2b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.String(), nullable=True),
        sa.Column('updated_by', sa.String(), nullable=True),
    ]


def _soft_delete():
    return [
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deleted_by', sa.String(), nullable=True),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'coa_groups',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('code', sa.String(length=20), nullable=False),
        sa.Column('parent', sa.String(length=20), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_coa_groups_id', 'coa_groups', ['id'])
    op.create_index('ix_coa_groups_code', 'coa_groups', ['code'])
    op.create_index('ix_coa_groups_user_id', 'coa_groups', ['user_id'])

    op.create_table(
        'coa_sub_groups',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('coa_group_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('code', sa.String(length=20), nullable=False),
        sa.Column('type', sa.String(length=30), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['coa_group_id'], ['coa_groups.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_coa_sub_groups_id', 'coa_sub_groups', ['id'])
    op.create_index('ix_coa_sub_groups_coa_group_id', 'coa_sub_groups', ['coa_group_id'])
    op.create_index('ix_coa_sub_groups_user_id', 'coa_sub_groups', ['user_id'])

    op.create_table(
        'coa_accounts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('code', sa.String(length=20), nullable=False),
        sa.Column('coa_group_id', sa.Integer(), nullable=False),
        sa.Column('coa_sub_group_id', sa.Integer(), nullable=False),
        sa.Column('person_id', sa.String(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('is_default', sa.Boolean(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['coa_group_id'], ['coa_groups.id']),
        sa.ForeignKeyConstraint(['coa_sub_group_id'], ['coa_sub_groups.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'code', name='_owner_account_code_uc'),
    )
    op.create_index('ix_coa_accounts_id', 'coa_accounts', ['id'])
    op.create_index('ix_coa_accounts_code', 'coa_accounts', ['code'])
    op.create_index('ix_coa_accounts_coa_sub_group_id', 'coa_accounts', ['coa_sub_group_id'])
    op.create_index('ix_coa_accounts_user_id', 'coa_accounts', ['user_id'])

    op.create_table(
        'vouchers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('voucher_no', sa.Integer(), nullable=False),
        sa.Column('type', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('total_amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('coa_account_id', sa.Integer(), nullable=True),
        sa.Column('is_approved', sa.Boolean(), nullable=False),
        sa.Column('is_post_dated', sa.Boolean(), nullable=False),
        sa.Column('cheque_no', sa.String(), nullable=True),
        sa.Column('cheque_date', sa.Date(), nullable=True),
        sa.Column('cleared_date', sa.Date(), nullable=True),
        sa.Column('is_auto', sa.Boolean(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('generated_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        *_soft_delete(),
        sa.CheckConstraint('type BETWEEN 1 AND 7', name='check_voucher_type'),
        sa.ForeignKeyConstraint(['coa_account_id'], ['coa_accounts.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_vouchers_id', 'vouchers', ['id'])
    op.create_index('ix_vouchers_type', 'vouchers', ['type'])
    op.create_index('ix_vouchers_user_id', 'vouchers', ['user_id'])

    op.create_table(
        'voucher_transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('voucher_id', sa.Integer(), nullable=False),
        sa.Column('coa_account_id', sa.Integer(), nullable=False),
        sa.Column('debit', sa.Numeric(14, 2), nullable=False),
        sa.Column('credit', sa.Numeric(14, 2), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('is_approved', sa.Boolean(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        *_timestamps(),
        *_soft_delete(),
        sa.CheckConstraint('debit >= 0'),
        sa.CheckConstraint('credit >= 0'),
        sa.CheckConstraint(
            '(debit > 0 AND credit = 0) OR (debit = 0 AND credit > 0) OR (debit = 0 AND credit = 0)',
            name='check_debit_or_credit_exclusive'
        ),
        sa.ForeignKeyConstraint(['voucher_id'], ['vouchers.id']),
        sa.ForeignKeyConstraint(['coa_account_id'], ['coa_accounts.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_voucher_transactions_id', 'voucher_transactions', ['id'])
    op.create_index('ix_voucher_transactions_voucher_id', 'voucher_transactions', ['voucher_id'])
    op.create_index('ix_voucher_transactions_user_id', 'voucher_transactions', ['user_id'])
    op.create_index('ix_voucher_transactions_account_date', 'voucher_transactions', ['coa_account_id', 'date'])

    op.create_table(
        'audit_log',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('table_name', sa.String(), nullable=False),
        sa.Column('record_id', sa.Integer(), nullable=False),
        sa.Column('changed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('changed_by', sa.String(), nullable=False),
        sa.Column('action', sa.String(), nullable=False),
        sa.Column('old_values', sa.JSON(), nullable=True),
        sa.Column('new_values', sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_audit_log_id', 'audit_log', ['id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_audit_log_id', table_name='audit_log')
    op.drop_table('audit_log')

    op.drop_index('ix_voucher_transactions_account_date', table_name='voucher_transactions')
    op.drop_index('ix_voucher_transactions_user_id', table_name='voucher_transactions')
    op.drop_index('ix_voucher_transactions_voucher_id', table_name='voucher_transactions')
    op.drop_index('ix_voucher_transactions_id', table_name='voucher_transactions')
    op.drop_table('voucher_transactions')

    op.drop_index('ix_vouchers_user_id', table_name='vouchers')
    op.drop_index('ix_vouchers_type', table_name='vouchers')
    op.drop_index('ix_vouchers_id', table_name='vouchers')
    op.drop_table('vouchers')

    op.drop_index('ix_coa_accounts_user_id', table_name='coa_accounts')
    op.drop_index('ix_coa_accounts_coa_sub_group_id', table_name='coa_accounts')
    op.drop_index('ix_coa_accounts_code', table_name='coa_accounts')
    op.drop_index('ix_coa_accounts_id', table_name='coa_accounts')
    op.drop_table('coa_accounts')

    op.drop_index('ix_coa_sub_groups_user_id', table_name='coa_sub_groups')
    op.drop_index('ix_coa_sub_groups_coa_group_id', table_name='coa_sub_groups')
    op.drop_index('ix_coa_sub_groups_id', table_name='coa_sub_groups')
    op.drop_table('coa_sub_groups')

    op.drop_index('ix_coa_groups_user_id', table_name='coa_groups')
    op.drop_index('ix_coa_groups_code', table_name='coa_groups')
    op.drop_index('ix_coa_groups_id', table_name='coa_groups')
    op.drop_table('coa_groups')
